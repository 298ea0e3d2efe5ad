"""Tests for tiles.ledger module."""

import json

import pytest

from domain.models import BoundingBox, CacheMetadata, GeoPoint
from tiles.ledger import CacheLedger


@pytest.fixture
def ledger(tmp_path):
    return CacheLedger(tmp_path)


@pytest.fixture
def metadata():
    return CacheMetadata(
        center=GeoPoint(latitude=-15.5, longitude=-47.5),
        bounds=BoundingBox(
            north_east=GeoPoint(latitude=-15.0, longitude=-47.0),
            south_west=GeoPoint(latitude=-16.0, longitude=-48.0),
        ),
        downloaded_at=1_700_000_000_000,
        zoom_levels=[13, 14, 15],
    )


class TestCacheLedger:
    """Tests for CacheLedger class."""

    def test_path_uses_key(self, tmp_path):
        assert CacheLedger(tmp_path).path == tmp_path / 'offline_tile_metadata_v1.json'
        assert CacheLedger(tmp_path, key='other').path == tmp_path / 'other.json'

    def test_read_absent(self, ledger):
        assert ledger.read() is None

    def test_write_then_read(self, ledger, metadata):
        ledger.write(metadata)
        assert ledger.read() == metadata

    def test_stored_with_camel_case_keys(self, ledger, metadata):
        ledger.write(metadata)
        raw = json.loads(ledger.path.read_text(encoding='utf-8'))
        assert set(raw) == {'center', 'bounds', 'downloadedAt', 'zoomLevels'}
        assert raw['bounds']['northEast'] == {'latitude': -15.0, 'longitude': -47.0}
        assert raw['downloadedAt'] == 1_700_000_000_000

    def test_write_replaces_previous(self, ledger, metadata):
        ledger.write(metadata)
        newer = metadata.model_copy(update={'downloaded_at': 1_800_000_000_000, 'zoom_levels': [13]})
        ledger.write(newer)
        assert ledger.read() == newer

    def test_record_without_bounds(self, ledger):
        """Point-only records are still readable."""
        ledger.path.write_text(
            json.dumps(
                {
                    'center': {'latitude': 1.0, 'longitude': 2.0},
                    'downloadedAt': 5,
                    'zoomLevels': [13],
                }
            ),
            encoding='utf-8',
        )
        record = ledger.read()
        assert record is not None
        assert record.bounds is None
        assert record.center == GeoPoint(latitude=1.0, longitude=2.0)

    @pytest.mark.parametrize('payload', ['not json', '{}', '{"center": 1}'])
    def test_corrupt_record_reads_as_absent(self, ledger, payload):
        ledger.path.write_text(payload, encoding='utf-8')
        assert ledger.read() is None

    def test_clear(self, ledger, metadata):
        ledger.write(metadata)
        assert ledger.clear() is True
        assert ledger.read() is None
        assert not ledger.path.exists()

    def test_clear_absent(self, ledger):
        assert ledger.clear() is True
