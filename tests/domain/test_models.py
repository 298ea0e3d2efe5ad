"""Tests for domain.models module."""

import json

import pytest
from pydantic import ValidationError

from domain.models import BoundingBox, CacheMetadata, GeoPoint, NetworkState, TileCoordinate


class TestGeoPoint:
    """Tests for GeoPoint model."""

    def test_valid(self):
        p = GeoPoint(latitude=-15.8, longitude=-47.9)
        assert p.latitude == -15.8

    @pytest.mark.parametrize(
        ('lat', 'lon'),
        [(90.1, 0.0), (-90.1, 0.0), (0.0, 180.1), (0.0, -180.1)],
    )
    def test_out_of_range(self, lat, lon):
        with pytest.raises(ValidationError):
            GeoPoint(latitude=lat, longitude=lon)

    def test_frozen_and_hashable(self):
        p = GeoPoint(latitude=1.0, longitude=2.0)
        with pytest.raises(ValidationError):
            p.latitude = 3.0
        assert {p, GeoPoint(latitude=1.0, longitude=2.0)} == {p}


class TestBoundingBox:
    """Tests for BoundingBox model."""

    def test_accepts_camel_case(self):
        box = BoundingBox.model_validate(
            {
                'northEast': {'latitude': 1.0, 'longitude': 1.0},
                'southWest': {'latitude': 0.0, 'longitude': 0.0},
            }
        )
        assert box.north_east == GeoPoint(latitude=1.0, longitude=1.0)

    def test_allows_swapped_corners(self):
        """Corner order is not validated; normalization happens in geo.bounds."""
        box = BoundingBox(
            north_east=GeoPoint(latitude=0.0, longitude=0.0),
            south_west=GeoPoint(latitude=1.0, longitude=1.0),
        )
        assert box.south_west.latitude == 1.0


class TestTileCoordinate:
    """Tests for TileCoordinate model."""

    def test_str(self):
        assert str(TileCoordinate(zoom=15, x=100, y=200)) == '15/100/200'

    @pytest.mark.parametrize(('zoom', 'x', 'y'), [(0, 1, 0), (2, 0, 4), (13, 8192, 0)])
    def test_outside_grid(self, zoom, x, y):
        with pytest.raises(ValidationError):
            TileCoordinate(zoom=zoom, x=x, y=y)

    def test_negative(self):
        with pytest.raises(ValidationError):
            TileCoordinate(zoom=13, x=-1, y=0)

    def test_max_index(self):
        assert TileCoordinate(zoom=13, x=8191, y=8191).x == 8191


class TestCacheMetadata:
    """Tests for CacheMetadata model."""

    def test_serializes_with_aliases(self):
        meta = CacheMetadata(
            center=GeoPoint(latitude=1.0, longitude=2.0),
            downloaded_at=123,
            zoom_levels=[13],
        )
        data = json.loads(meta.model_dump_json(by_alias=True))
        assert data == {
            'center': {'latitude': 1.0, 'longitude': 2.0},
            'bounds': None,
            'downloadedAt': 123,
            'zoomLevels': [13],
        }

    def test_negative_zoom_rejected(self):
        with pytest.raises(ValidationError):
            CacheMetadata(
                center=GeoPoint(latitude=1.0, longitude=2.0),
                downloaded_at=1,
                zoom_levels=[-1],
            )


class TestNetworkState:
    """Tests for NetworkState model."""

    def test_defaults_unknown(self):
        state = NetworkState()
        assert state.is_connected is None
        assert state.is_internet_reachable is None
