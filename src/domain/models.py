from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class GeoPoint(BaseModel):
    """Geographic point in WGS84 degrees."""

    model_config = ConfigDict(frozen=True)

    latitude: float = Field(ge=-90.0, le=90.0)
    longitude: float = Field(ge=-180.0, le=180.0)


class BoundingBox(BaseModel):
    """
    Rectangle in latitude/longitude space.

    Boxes coming from a map surface or drawn by the user may have their
    corners swapped; use geo.bounds.normalize_bounds before comparing them.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    north_east: GeoPoint = Field(alias='northEast')
    south_west: GeoPoint = Field(alias='southWest')


class TileCoordinate(BaseModel):
    """Slippy-map tile index."""

    model_config = ConfigDict(frozen=True)

    zoom: int = Field(ge=0)
    x: int = Field(ge=0)
    y: int = Field(ge=0)

    @model_validator(mode='after')
    def _check_grid(self) -> TileCoordinate:
        n = 1 << self.zoom
        if self.x >= n or self.y >= n:
            msg = f'Tile {self.zoom}/{self.x}/{self.y} is outside the {n}x{n} grid'
            raise ValueError(msg)
        return self

    def __str__(self) -> str:
        return f'{self.zoom}/{self.x}/{self.y}'


class CacheMetadata(BaseModel):
    """Describes the area, zoom levels and time of the current tile set."""

    model_config = ConfigDict(populate_by_name=True)

    center: GeoPoint
    # Absent for point-only snapshots written by older versions
    bounds: BoundingBox | None = None
    # Epoch milliseconds
    downloaded_at: int = Field(alias='downloadedAt')
    zoom_levels: list[int] = Field(alias='zoomLevels')

    @field_validator('zoom_levels')
    @classmethod
    def validate_zoom_levels(cls, v: list[int]) -> list[int]:
        if any(z < 0 for z in v):
            msg = 'zoom levels must be non-negative'
            raise ValueError(msg)
        return v


class NetworkState(BaseModel):
    """Connectivity snapshot reported by the platform."""

    is_connected: bool | None = None
    # None when the platform cannot tell
    is_internet_reachable: bool | None = None
