"""Geo module - tile projection and bounding box utilities."""

from .bounds import bounds_center, is_bounds_contained, normalize_bounds, union_bounds
from .projection import (
    TileRange,
    create_bounds_around_coords,
    haversine_distance_m,
    lat_to_tile_y,
    lon_to_tile_x,
    tile_for_point,
    tile_range_for_bounds,
    tile_x_to_lon,
    tile_y_to_lat,
)

__all__ = [
    'TileRange',
    'bounds_center',
    'create_bounds_around_coords',
    'haversine_distance_m',
    'is_bounds_contained',
    'lat_to_tile_y',
    'lon_to_tile_x',
    'normalize_bounds',
    'tile_for_point',
    'tile_range_for_bounds',
    'tile_x_to_lon',
    'tile_y_to_lat',
    'union_bounds',
]
