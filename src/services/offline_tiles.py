"""
Offline tile download orchestration.

Enumerates the tiles covering an area at the configured zoom levels,
downloads the missing ones into the tile store and records the snapshot in
the cache ledger. At most one batch runs per service instance.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from domain.models import BoundingBox, CacheMetadata, GeoPoint
from geo.bounds import bounds_center, normalize_bounds, union_bounds
from geo.projection import create_bounds_around_coords, tile_for_point, tile_range_for_bounds
from infrastructure.http.client import fetch_tile_bytes, make_http_session
from services.staleness import StalenessPolicy, now_ms
from shared.config import OfflineTilesSettings
from shared.errors import ProviderNotConfiguredError

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Iterator

    import aiohttp

    from domain.models import TileCoordinate
    from services.connectivity import ConnectivityMonitor
    from shared.config import TileProviderConfig
    from tiles.ledger import CacheLedger
    from tiles.store import TileStore

    TileFetch = Callable[[aiohttp.ClientSession, TileCoordinate], Awaitable[bytes]]

logger = logging.getLogger(__name__)


class DownloadState(str, Enum):
    IDLE = 'IDLE'
    RUNNING = 'RUNNING'


class DownloadStatus(str, Enum):
    DOWNLOADED = 'DOWNLOADED'
    UP_TO_DATE = 'UP_TO_DATE'
    CONFIG_ERROR = 'CONFIG_ERROR'
    FAILED = 'FAILED'
    SKIPPED = 'SKIPPED'


MSG_UNSUPPORTED = 'Offline maps are not available on this platform.'
MSG_OFFLINE = 'Connect to the internet to save the offline map.'
MSG_NOT_CONFIGURED = (
    'Configure an offline tile provider before saving maps '
    '(environment variables TILE_PROVIDER_URL and TILE_PROVIDER_API_KEY).'
)
MSG_FAILED = 'Failed to save the offline map. Try again later.'


@dataclass
class DownloadOutcome:
    """Result of one download request, with a user-facing message."""

    status: DownloadStatus
    message: str
    new_tiles: int = 0
    attempted_tiles: int = 0
    metadata: CacheMetadata | None = None

    @property
    def ok(self) -> bool:
        return self.status in (DownloadStatus.DOWNLOADED, DownloadStatus.UP_TO_DATE)


def _success_message(new_tiles: int, *, force: bool) -> str:
    if new_tiles > 0:
        if force:
            return f'Offline map saved ({new_tiles} new tiles).'
        return f'Offline maps updated ({new_tiles} new tiles).'
    if force:
        return 'The offline map was already up to date for this area.'
    return 'Offline maps were already up to date for this area.'


class OfflineTileService:
    """Keeps the offline tile cache in line with the area of interest.

    Features:
    - Single-flight downloads guarded by a per-instance DownloadState
    - Staleness-driven refresh (coverage, distance, age)
    - Forced refresh that clears tiles and metadata first
    - Single-tile coverage probe for the map surface

    A failing tile aborts the whole batch: tiles already written stay on
    disk, but the ledger is only written once every tile succeeded.
    """

    def __init__(
        self,
        store: TileStore | None,
        ledger: CacheLedger,
        provider: TileProviderConfig,
        settings: OfflineTilesSettings | None = None,
        *,
        connectivity: ConnectivityMonitor | None = None,
        fetch_tile: TileFetch | None = None,
        session_factory: Callable[[], aiohttp.ClientSession] = make_http_session,
        supports_offline: bool = True,
    ) -> None:
        """
        Args:
            store: Tile store; None when no tile directory is resolvable.
            ledger: Cache metadata ledger.
            provider: Remote tile provider configuration.
            settings: Cache policy; defaults to OfflineTilesSettings().
            connectivity: Optional connectivity monitor consulted before
                automatic and manual refreshes.
            fetch_tile: Override of the per-tile download coroutine.
            session_factory: Creates the HTTP session for one batch.
            supports_offline: False on platforms without offline tiles.
        """
        self._store = store
        self._ledger = ledger
        self._provider = provider
        self._settings = settings or OfflineTilesSettings()
        self._connectivity = connectivity
        self._fetch_tile = fetch_tile or self._fetch_from_provider
        self._session_factory = session_factory
        self._supports_offline = supports_offline
        self.policy = StalenessPolicy(ledger, self._settings)
        self.state = DownloadState.IDLE
        self.has_coverage = False
        self.last_outcome: DownloadOutcome | None = None

    @property
    def is_running(self) -> bool:
        return self.state is DownloadState.RUNNING

    @property
    def is_offline(self) -> bool:
        return self._connectivity is not None and self._connectivity.is_offline

    @property
    def local_tile_template(self) -> str | None:
        """Path template ({z}/{x}/{y}) for rendering cached tiles."""
        return self._store.path_template if self._store is not None else None

    async def _fetch_from_provider(
        self, client: aiohttp.ClientSession, coord: TileCoordinate
    ) -> bytes:
        url = self._provider.build_tile_url(coord)
        if url is None:
            msg = 'Tile provider is not configured'
            raise ProviderNotConfiguredError(msg)
        logger.debug('Fetching tile %s from %s', coord, self._provider.display_url(coord))
        return await fetch_tile_bytes(
            client,
            url,
            headers=self._provider.request_headers(),
            label=str(coord),
            timeout=self._settings.tile_timeout_s,
            retries=self._settings.tile_retries,
            backoff=self._settings.tile_backoff,
        )

    def _finish(self, outcome: DownloadOutcome) -> DownloadOutcome:
        self.last_outcome = outcome
        return outcome

    def iter_batch_tiles(self, bounds: BoundingBox) -> Iterator[TileCoordinate]:
        """Every tile covering ``bounds`` at each configured zoom level."""
        for zoom in self._settings.zoom_levels:
            tile_range = tile_range_for_bounds(bounds, zoom)
            if tile_range is None:
                continue
            yield from tile_range.tiles()

    async def download_tiles_for_bounds(
        self,
        bounds: BoundingBox,
        force: bool = False,
        *,
        check_policy: bool = True,
    ) -> DownloadOutcome:
        """
        Make sure the tiles covering ``bounds`` are cached.

        Args:
            bounds: Target area; may be unnormalized.
            force: Clear tiles and metadata first and download everything.
            check_policy: Ask the staleness policy before a non-forced batch;
                callers that already decided to refresh pass False.

        Returns:
            DownloadOutcome describing what happened.
        """
        if not self._supports_offline or self._store is None:
            return self._finish(DownloadOutcome(DownloadStatus.SKIPPED, MSG_UNSUPPORTED))
        if self.state is DownloadState.RUNNING:
            logger.debug('Offline tile download already running; request dropped')
            # Silent no-op: no user-facing message
            return DownloadOutcome(DownloadStatus.SKIPPED, '')
        if not self._provider.is_configured:
            logger.warning('Offline tile download aborted: provider not configured')
            return self._finish(DownloadOutcome(DownloadStatus.CONFIG_ERROR, MSG_NOT_CONFIGURED))

        # Set before the first suspension point; a concurrent caller sees RUNNING
        self.state = DownloadState.RUNNING
        try:
            return self._finish(
                await self._run_batch(bounds, force=force, check_policy=check_policy)
            )
        except Exception:
            logger.exception('Offline tile download failed')
            return self._finish(DownloadOutcome(DownloadStatus.FAILED, MSG_FAILED))
        finally:
            self.state = DownloadState.IDLE

    async def _run_batch(
        self, bounds: BoundingBox, *, force: bool, check_policy: bool
    ) -> DownloadOutcome:
        store = self._store
        assert store is not None

        if not force:
            if check_policy and not self.policy.should_refresh(bounds=bounds):
                logger.info('Offline tiles already cover the requested area')
                return DownloadOutcome(
                    DownloadStatus.UP_TO_DATE, _success_message(0, force=False)
                )
            previous = self._ledger.read()
        else:
            previous = None
            self.clear_offline_tiles()

        normalized = normalize_bounds(bounds)
        zoom_levels = list(self._settings.zoom_levels)
        logger.info(
            '%s offline tiles from %s for zooms %s',
            'Saving' if force else 'Updating',
            self._provider.name,
            zoom_levels,
        )

        new_tiles, attempted = await self._download_missing(list(self.iter_batch_tiles(normalized)))

        recorded_bounds = normalized
        if self._settings.merge_bounds and previous is not None and previous.bounds is not None:
            recorded_bounds = union_bounds(previous.bounds, normalized)
        metadata = CacheMetadata(
            center=bounds_center(recorded_bounds),
            bounds=recorded_bounds,
            downloaded_at=now_ms(),
            zoom_levels=zoom_levels,
        )
        self._ledger.write(metadata)
        self.has_offline_coverage(normalized)

        logger.info('Offline tile batch done: %d new of %d fetched', new_tiles, attempted)
        status = DownloadStatus.DOWNLOADED if new_tiles > 0 else DownloadStatus.UP_TO_DATE
        return DownloadOutcome(
            status,
            _success_message(new_tiles, force=force),
            new_tiles=new_tiles,
            attempted_tiles=attempted,
            metadata=metadata,
        )

    async def _download_missing(self, coords: list[TileCoordinate]) -> tuple[int, int]:
        """Fetch and store every tile not yet present. Returns (new, attempted)."""
        store = self._store
        assert store is not None
        new_tiles = 0
        attempted = 0

        async with self._session_factory() as client:

            async def _one(coord: TileCoordinate) -> None:
                nonlocal new_tiles, attempted
                if store.exists(coord):
                    return
                attempted += 1
                data = await self._fetch_tile(client, coord)
                if await asyncio.to_thread(store.put, coord, data):
                    new_tiles += 1

            if self._settings.concurrency <= 1:
                for coord in coords:
                    await _one(coord)
            else:
                sem = asyncio.Semaphore(self._settings.concurrency)

                async def _bounded(coord: TileCoordinate) -> None:
                    async with sem:
                        await _one(coord)

                # TaskGroup cancels the remaining fetches on the first failure
                async with asyncio.TaskGroup() as tg:
                    for coord in coords:
                        tg.create_task(_bounded(coord))

        return new_tiles, attempted

    async def download_tiles_around_coords(
        self,
        point: GeoPoint,
        force: bool = False,
        area_sq_km: float | None = None,
        *,
        check_policy: bool = True,
    ) -> DownloadOutcome:
        bounds = create_bounds_around_coords(
            point, area_sq_km if area_sq_km is not None else self._settings.target_area_sq_km
        )
        return await self.download_tiles_for_bounds(bounds, force=force, check_policy=check_policy)

    def has_offline_coverage(self, reference: GeoPoint | BoundingBox | None = None) -> bool:
        """
        Probe whether cached tiles are usable for ``reference``.

        Checks a single tile (the one containing the reference center at the
        first cached zoom level) instead of scanning the whole area. Without a
        reference the cached bounds center (or the cached center) is used.
        """
        metadata = self._ledger.read()
        if metadata is None or self._store is None:
            self.has_coverage = False
            return False

        if isinstance(reference, BoundingBox):
            center = bounds_center(reference)
        elif isinstance(reference, GeoPoint):
            center = reference
        elif metadata.bounds is not None:
            center = bounds_center(metadata.bounds)
        else:
            center = metadata.center

        zoom = metadata.zoom_levels[0] if metadata.zoom_levels else self._settings.zoom_levels[0]
        self.has_coverage = self._store.exists(tile_for_point(center, zoom))
        return self.has_coverage

    def clear_offline_tiles(self) -> None:
        """Best-effort removal of all tiles and the metadata record."""
        if not self._supports_offline or self._store is None:
            return
        if not self._store.clear():
            logger.warning('Old offline tiles could not be fully removed')
        if not self._ledger.clear():
            logger.warning('Offline tile metadata could not be removed')
        self.has_coverage = False

    async def ensure_offline_tiles(
        self,
        point: GeoPoint,
        visible_bounds: BoundingBox | None = None,
    ) -> DownloadOutcome:
        """Cache the visible area, or the area around ``point``, when online."""
        if not self._supports_offline:
            return DownloadOutcome(DownloadStatus.SKIPPED, MSG_UNSUPPORTED)
        if self.is_offline:
            logger.debug('Network offline; skipping offline tile check')
            return DownloadOutcome(DownloadStatus.SKIPPED, MSG_OFFLINE)
        if visible_bounds is not None:
            return await self.download_tiles_for_bounds(visible_bounds)
        return await self.download_tiles_around_coords(point)

    async def refresh_if_stale(
        self,
        point: GeoPoint,
        visible_bounds: BoundingBox | None = None,
    ) -> DownloadOutcome:
        """Reconnect handler: download only when the policy says the cache is stale."""
        if not self._supports_offline:
            return DownloadOutcome(DownloadStatus.SKIPPED, MSG_UNSUPPORTED)
        if self.is_offline:
            return DownloadOutcome(DownloadStatus.SKIPPED, MSG_OFFLINE)

        if visible_bounds is not None:
            needs_update = self.policy.should_refresh(bounds=visible_bounds)
        else:
            needs_update = self.policy.should_refresh(point=point)
        if not needs_update:
            return DownloadOutcome(DownloadStatus.UP_TO_DATE, _success_message(0, force=False))

        if visible_bounds is not None:
            return await self.download_tiles_for_bounds(visible_bounds, check_policy=False)
        return await self.download_tiles_around_coords(point, check_policy=False)

    async def refresh_now(self, point: GeoPoint) -> DownloadOutcome:
        """Manual forced refresh around the current position."""
        if not self._supports_offline:
            return DownloadOutcome(DownloadStatus.SKIPPED, MSG_UNSUPPORTED)
        if self._connectivity is not None:
            await self._connectivity.sync_now()
        if self.is_offline:
            return DownloadOutcome(DownloadStatus.SKIPPED, MSG_OFFLINE)
        if not self._provider.is_configured:
            return DownloadOutcome(DownloadStatus.CONFIG_ERROR, MSG_NOT_CONFIGURED)
        return await self.download_tiles_around_coords(point, force=True)
