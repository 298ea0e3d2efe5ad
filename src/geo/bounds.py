"""Bounding box arithmetic in latitude/longitude space."""

from __future__ import annotations

from domain.models import BoundingBox, GeoPoint
from shared.constants import BOUNDS_TOLERANCE_DEG


def normalize_bounds(bounds: BoundingBox) -> BoundingBox:
    """Swap corners per axis so north_east >= south_west on both axes."""
    ne, sw = bounds.north_east, bounds.south_west
    return BoundingBox(
        north_east=GeoPoint(
            latitude=max(ne.latitude, sw.latitude),
            longitude=max(ne.longitude, sw.longitude),
        ),
        south_west=GeoPoint(
            latitude=min(ne.latitude, sw.latitude),
            longitude=min(ne.longitude, sw.longitude),
        ),
    )


def bounds_center(bounds: BoundingBox) -> GeoPoint:
    """Arithmetic midpoint of the two corners."""
    return GeoPoint(
        latitude=(bounds.north_east.latitude + bounds.south_west.latitude) / 2,
        longitude=(bounds.north_east.longitude + bounds.south_west.longitude) / 2,
    )


def is_bounds_contained(
    container: BoundingBox,
    target: BoundingBox,
    tolerance: float = BOUNDS_TOLERANCE_DEG,
) -> bool:
    """
    Check that ``target`` lies inside ``container``.

    Both boxes are normalized first. Every edge comparison is relaxed by
    ``tolerance`` degrees so small viewport drift still counts as contained.
    """
    outer = normalize_bounds(container)
    inner = normalize_bounds(target)
    return (
        outer.north_east.latitude + tolerance >= inner.north_east.latitude
        and outer.north_east.longitude + tolerance >= inner.north_east.longitude
        and outer.south_west.latitude - tolerance <= inner.south_west.latitude
        and outer.south_west.longitude - tolerance <= inner.south_west.longitude
    )


def union_bounds(a: BoundingBox, b: BoundingBox) -> BoundingBox:
    """Smallest normalized box containing both boxes."""
    na, nb = normalize_bounds(a), normalize_bounds(b)
    return BoundingBox(
        north_east=GeoPoint(
            latitude=max(na.north_east.latitude, nb.north_east.latitude),
            longitude=max(na.north_east.longitude, nb.north_east.longitude),
        ),
        south_west=GeoPoint(
            latitude=min(na.south_west.latitude, nb.south_west.latitude),
            longitude=min(na.south_west.longitude, nb.south_west.longitude),
        ),
    )
