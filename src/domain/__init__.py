"""Domain layer - value types of the offline tile cache."""
from domain.models import (
    BoundingBox,
    CacheMetadata,
    GeoPoint,
    NetworkState,
    TileCoordinate,
)

__all__ = [
    'BoundingBox',
    'CacheMetadata',
    'GeoPoint',
    'NetworkState',
    'TileCoordinate',
]
