"""HTTP client infrastructure."""
from infrastructure.http.client import (
    ensure_image_bytes,
    fetch_tile_bytes,
    make_http_session,
)

__all__ = [
    'ensure_image_bytes',
    'fetch_tile_bytes',
    'make_http_session',
]
