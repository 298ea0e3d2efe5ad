"""Single-record ledger describing the current offline tile set."""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

from pydantic import ValidationError

from domain.models import CacheMetadata
from shared.constants import OFFLINE_TILE_METADATA_KEY

logger = logging.getLogger(__name__)


class CacheLedger:
    """JSON file holding the one CacheMetadata record of this installation.

    write() replaces the record unconditionally; there is no merge or
    versioning. A record that cannot be read or parsed is reported as
    absent so callers re-download rather than trust a corrupt cache.
    """

    def __init__(
        self,
        directory: str | Path,
        key: str = OFFLINE_TILE_METADATA_KEY,
    ) -> None:
        self.path = Path(directory) / f'{key}.json'

    def read(self) -> CacheMetadata | None:
        try:
            raw = self.path.read_text(encoding='utf-8')
        except FileNotFoundError:
            return None
        except OSError:
            logger.exception('Failed to read offline tile metadata %s', self.path)
            return None

        try:
            return CacheMetadata.model_validate_json(raw)
        except ValidationError:
            logger.exception('Malformed offline tile metadata in %s', self.path)
            return None

    def write(self, metadata: CacheMetadata) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = metadata.model_dump_json(by_alias=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, suffix='.tmp')
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as fh:
                fh.write(payload)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        logger.info(
            'Offline tile metadata written: zooms=%s downloaded_at=%d',
            metadata.zoom_levels,
            metadata.downloaded_at,
        )

    def clear(self) -> bool:
        """Remove the record. Failures are logged, not raised."""
        try:
            self.path.unlink(missing_ok=True)
        except OSError:
            logger.exception('Failed to clear offline tile metadata %s', self.path)
            return False
        return True
