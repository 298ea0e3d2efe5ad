"""Pytest configuration and fixtures for offline tile cache tests."""

import io
import sys
from pathlib import Path

import pytest
from PIL import Image

# Add src directory to path for imports
src_path = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(src_path))


def make_png_bytes(size: int = 8, color=(120, 200, 150)) -> bytes:
    buffer = io.BytesIO()
    Image.new('RGB', (size, size), color=color).save(buffer, format='PNG')
    return buffer.getvalue()


@pytest.fixture
def png_bytes():
    """Small valid PNG payload."""
    return make_png_bytes()


class FakeSession:
    """Stands in for aiohttp.ClientSession inside a download batch."""

    closed = False

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.closed = True
        return None


class FakeTileFetcher:
    """Records requested tiles and returns PNG bytes (or fails on demand)."""

    def __init__(self, payload: bytes, fail_on=None):
        self.payload = payload
        self.fail_on = set(fail_on or ())
        self.calls = []

    async def __call__(self, client, coord):
        self.calls.append(coord)
        if (coord.zoom, coord.x, coord.y) in self.fail_on:
            from shared.errors import TileFetchError

            msg = f'boom {coord}'
            raise TileFetchError(msg)
        return self.payload


@pytest.fixture
def fake_fetcher(png_bytes):
    return FakeTileFetcher(png_bytes)


@pytest.fixture
def make_fetcher(png_bytes):
    """Factory for fetchers that fail on the given (zoom, x, y) tiles."""

    def _make(fail_on=None):
        return FakeTileFetcher(png_bytes, fail_on=fail_on)

    return _make


@pytest.fixture
def session_factory():
    return FakeSession
