"""Filesystem tile store.

This module provides TileStore class for storing and retrieving map tiles
as individual files laid out as <root>/<zoom>/<x>/<y>.png.
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING

from shared.constants import TILE_PATH_TEMPLATE

if TYPE_CHECKING:
    from domain.models import TileCoordinate

logger = logging.getLogger(__name__)


class TileStore:
    """Tile files on local storage, keyed by zoom/x/y.

    Features:
    - One PNG file per tile, directories created lazily
    - put() never overwrites a tile that is already present
    - Atomic writes (temporary file + rename), so a present file is complete
    - Best-effort clear() of the whole tree

    Usage:
        store = TileStore(root)
        store.put(TileCoordinate(zoom=15, x=100, y=200), tile_bytes)
        path = store.get(TileCoordinate(zoom=15, x=100, y=200))
    """

    def __init__(self, root: str | Path) -> None:
        """Initialize tile store.

        Args:
            root: Directory holding the tile tree. Created on first write.
        """
        self.root = Path(root)
        logger.info('TileStore initialized at %s', self.root)

    @property
    def path_template(self) -> str:
        """Local tile path with {z}/{x}/{y} placeholders for the map renderer."""
        return f'{self.root.as_posix()}/{TILE_PATH_TEMPLATE}'

    def tile_dir(self, coord: TileCoordinate) -> Path:
        return self.root / str(coord.zoom) / str(coord.x)

    def tile_path(self, coord: TileCoordinate) -> Path:
        return self.tile_dir(coord) / f'{coord.y}.png'

    @staticmethod
    def ensure_directory(path: Path) -> None:
        """Create a directory and its parents; no-op if it exists."""
        path.mkdir(parents=True, exist_ok=True)

    def exists(self, coord: TileCoordinate) -> bool:
        return self.tile_path(coord).is_file()

    def get(self, coord: TileCoordinate) -> Path | None:
        """Path of a cached tile, or None if not stored."""
        path = self.tile_path(coord)
        return path if path.is_file() else None

    def put(self, coord: TileCoordinate, data: bytes) -> bool:
        """Store a tile.

        Args:
            coord: Tile coordinate.
            data: Raw tile image bytes.

        Returns:
            True if the tile was written, False if it was already present.
        """
        path = self.tile_path(coord)
        if path.is_file():
            return False

        self.ensure_directory(path.parent)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, suffix='.part')
        try:
            with os.fdopen(fd, 'wb') as fh:
                fh.write(data)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        logger.debug('Stored tile %s (%d bytes)', coord, len(data))
        return True

    def count_tiles(self) -> int:
        """Number of tile files currently stored."""
        if not self.root.is_dir():
            return 0
        return sum(1 for _ in self.root.glob('*/*/*.png'))

    def clear(self) -> bool:
        """Delete the entire tile tree.

        Failures are logged and reported, never raised.

        Returns:
            True if the tree is gone afterwards.
        """
        if not self.root.exists():
            return True
        try:
            shutil.rmtree(self.root)
        except OSError:
            logger.exception('Failed to remove offline tiles at %s', self.root)
            return False
        logger.info('Offline tiles cleared at %s', self.root)
        return True
