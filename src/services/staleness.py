"""Decides whether the offline tile cache has to be refreshed."""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

from geo.bounds import is_bounds_contained
from geo.projection import haversine_distance_m
from shared.config import OfflineTilesSettings

if TYPE_CHECKING:
    from domain.models import BoundingBox, GeoPoint
    from tiles.ledger import CacheLedger

logger = logging.getLogger(__name__)


def now_ms() -> int:
    return int(time.time() * 1000)


class StalenessPolicy:
    """Combines coverage, distance and age checks against the ledger.

    Each check is an independent trigger: a refresh is needed when there is
    no ledger, when the target box is not covered by the cached bounds, or
    when the target point is too far from the cached center or the cache is
    too old.
    """

    def __init__(
        self,
        ledger: CacheLedger,
        settings: OfflineTilesSettings | None = None,
    ) -> None:
        self._ledger = ledger
        self._settings = settings or OfflineTilesSettings()

    def should_refresh(
        self,
        bounds: BoundingBox | None = None,
        point: GeoPoint | None = None,
        now: int | None = None,
    ) -> bool:
        """
        Return True if tiles must be (re)downloaded.

        Args:
            bounds: Target area (e.g. the visible map viewport).
            point: Target position (e.g. the current GPS fix).
            now: Current time in epoch milliseconds; defaults to the clock.
        """
        metadata = self._ledger.read()
        if metadata is None:
            logger.debug('No offline tile metadata; refresh required')
            return True

        if bounds is not None:
            if metadata.bounds is None:
                logger.debug('Cached snapshot has no bounds; refresh required')
                return True
            if not is_bounds_contained(
                metadata.bounds, bounds, self._settings.bounds_tolerance_deg
            ):
                logger.debug('Target bounds not covered by cached bounds')
                return True

        if point is not None:
            distance = haversine_distance_m(point, metadata.center)
            elapsed_ms = (now if now is not None else now_ms()) - metadata.downloaded_at
            max_age_ms = self._settings.refresh_age.total_seconds() * 1000
            if distance > self._settings.refresh_distance_m or elapsed_ms > max_age_ms:
                logger.debug(
                    'Cache stale: distance=%.0fm elapsed=%.1fh',
                    distance,
                    elapsed_ms / 3_600_000,
                )
                return True

        return False
