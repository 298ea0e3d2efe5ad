"""Offline tile storage.

This module provides:
- TileStore: tile files laid out as <root>/<zoom>/<x>/<y>.png
- CacheLedger: the single metadata record describing the cached tile set
"""

from tiles.ledger import CacheLedger
from tiles.store import TileStore

__all__ = [
    'CacheLedger',
    'TileStore',
]
