"""Web Mercator slippy-tile projection and distance helpers."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING

from domain.models import BoundingBox, GeoPoint, TileCoordinate
from geo.bounds import normalize_bounds
from shared.constants import (
    EARTH_RADIUS_M,
    KM_PER_DEG_LAT,
    KM_PER_DEG_LON_EQUATOR,
    MERCATOR_MAX_LAT,
    MIN_KM_PER_DEG_LON,
    MIN_OFFLINE_AREA_SQ_KM,
    TARGET_OFFLINE_AREA_SQ_KM,
)

if TYPE_CHECKING:
    from collections.abc import Iterator


def lon_to_tile_x(lon: float, zoom: int) -> int:
    """Tile column for a longitude. Not clamped: lon=180 gives 2**zoom."""
    n = 2**zoom
    return math.floor(((lon + 180.0) / 360.0) * n)


def lat_to_tile_y(lat: float, zoom: int) -> int:
    """
    Tile row for a latitude.

    Not clamped; latitudes beyond the Mercator limit produce rows outside
    the grid and ±90° has no finite value.
    """
    lat_rad = math.radians(lat)
    n = 2**zoom
    return math.floor(
        ((1.0 - math.log(math.tan(lat_rad) + 1.0 / math.cos(lat_rad)) / math.pi) / 2.0) * n
    )


def tile_x_to_lon(x: int, zoom: int) -> float:
    """Longitude of the western edge of a tile column."""
    return x / 2**zoom * 360.0 - 180.0


def tile_y_to_lat(y: int, zoom: int) -> float:
    """Latitude of the northern edge of a tile row."""
    n = math.pi - 2.0 * math.pi * y / 2**zoom
    return math.degrees(math.atan(math.sinh(n)))


def _clamp_index(value: int, zoom: int) -> int:
    return min(max(value, 0), 2**zoom - 1)


def _mercator_lat(lat: float) -> float:
    return min(max(lat, -MERCATOR_MAX_LAT), MERCATOR_MAX_LAT)


def tile_for_point(point: GeoPoint, zoom: int) -> TileCoordinate:
    """Tile containing a point, clamped onto the grid."""
    return TileCoordinate(
        zoom=zoom,
        x=_clamp_index(lon_to_tile_x(point.longitude, zoom), zoom),
        y=_clamp_index(lat_to_tile_y(_mercator_lat(point.latitude), zoom), zoom),
    )


@dataclass(frozen=True)
class TileRange:
    """Inclusive rectangle of tile indices at one zoom level."""

    zoom: int
    x_min: int
    x_max: int
    y_min: int
    y_max: int

    @property
    def count(self) -> int:
        return (self.x_max - self.x_min + 1) * (self.y_max - self.y_min + 1)

    def tiles(self) -> Iterator[TileCoordinate]:
        for x in range(self.x_min, self.x_max + 1):
            for y in range(self.y_min, self.y_max + 1):
                yield TileCoordinate(zoom=self.zoom, x=x, y=y)


def tile_range_for_bounds(bounds: BoundingBox, zoom: int) -> TileRange | None:
    """
    Tile rectangle covering a bounding box at the given zoom.

    All four corners are projected and min/max taken per axis, so the result
    does not depend on which corner is north-east. Indices are clamped to
    [0, 2**zoom - 1]; returns None when the box lies entirely off the grid.
    """
    box = normalize_bounds(bounds)
    corners = (
        (box.north_east.latitude, box.north_east.longitude),
        (box.north_east.latitude, box.south_west.longitude),
        (box.south_west.latitude, box.north_east.longitude),
        (box.south_west.latitude, box.south_west.longitude),
    )
    xs = [lon_to_tile_x(lon, zoom) for _, lon in corners]
    ys = [lat_to_tile_y(_mercator_lat(lat), zoom) for lat, _ in corners]

    max_index = 2**zoom - 1
    x_min, x_max = max(min(xs), 0), min(max(xs), max_index)
    y_min, y_max = max(min(ys), 0), min(max(ys), max_index)
    if x_min > x_max or y_min > y_max:
        return None
    return TileRange(zoom=zoom, x_min=x_min, x_max=x_max, y_min=y_min, y_max=y_max)


def km_per_degree_longitude(latitude: float) -> float:
    clamped = min(max(latitude, -90.0), 90.0)
    return KM_PER_DEG_LON_EQUATOR * math.cos(math.radians(clamped))


def create_bounds_around_coords(
    point: GeoPoint,
    area_sq_km: float = TARGET_OFFLINE_AREA_SQ_KM,
) -> BoundingBox:
    """Square box of the requested area (at least 0.25 km²) centered on a point."""
    safe_area = max(area_sq_km, MIN_OFFLINE_AREA_SQ_KM)
    side_km = math.sqrt(safe_area)
    lat_padding = side_km / KM_PER_DEG_LAT
    km_per_lon_degree = max(MIN_KM_PER_DEG_LON, km_per_degree_longitude(point.latitude))
    lon_padding = side_km / km_per_lon_degree

    # Corners are clipped to valid coordinates near the poles and the antimeridian
    return BoundingBox(
        north_east=_clipped_point(
            point.latitude + lat_padding / 2,
            point.longitude + lon_padding / 2,
        ),
        south_west=_clipped_point(
            point.latitude - lat_padding / 2,
            point.longitude - lon_padding / 2,
        ),
    )


def _clipped_point(latitude: float, longitude: float) -> GeoPoint:
    return GeoPoint(
        latitude=min(max(latitude, -90.0), 90.0),
        longitude=min(max(longitude, -180.0), 180.0),
    )


def haversine_distance_m(a: GeoPoint, b: GeoPoint) -> float:
    """Great-circle distance in meters."""
    d_lat = math.radians(b.latitude - a.latitude)
    d_lon = math.radians(b.longitude - a.longitude)
    h = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(a.latitude))
        * math.cos(math.radians(b.latitude))
        * math.sin(d_lon / 2) ** 2
    )
    return EARTH_RADIUS_M * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))
