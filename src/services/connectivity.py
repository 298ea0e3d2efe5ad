"""Connectivity polling for offline tile decisions."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import TYPE_CHECKING

from shared.constants import NETWORK_POLL_INTERVAL_S

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from domain.models import NetworkState

logger = logging.getLogger(__name__)


def is_network_offline(state: NetworkState | None) -> bool:
    """Interpret a platform network snapshot; unknown states count as online."""
    if state is None:
        return False
    if not state.is_connected:
        return True
    if state.is_internet_reachable is not None:
        return not state.is_internet_reachable
    return False


class ConnectivityMonitor:
    """Polls the platform network state on a fixed interval.

    Only maintains the ``is_offline`` flag and notifies listeners when it
    flips; it never touches downloads in progress.

    Usage:
        monitor = ConnectivityMonitor(probe)
        monitor.add_listener(on_change)
        monitor.start()
        ...
        await monitor.stop()
    """

    def __init__(
        self,
        probe: Callable[[], Awaitable[NetworkState | None]],
        interval_s: float = NETWORK_POLL_INTERVAL_S,
    ) -> None:
        self._probe = probe
        self.interval_s = interval_s
        self.is_offline = False
        self._listeners: list[Callable[[bool], None]] = []
        self._task: asyncio.Task[None] | None = None

    def add_listener(self, listener: Callable[[bool], None]) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: Callable[[bool], None]) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    async def sync_now(self) -> bool:
        """Probe once (also used when the app returns to foreground)."""
        try:
            state = await self._probe()
        except Exception:
            logger.exception('Failed to read network state')
            return self.is_offline

        offline = is_network_offline(state)
        if offline != self.is_offline:
            self.is_offline = offline
            logger.info('Network is now %s', 'offline' if offline else 'online')
            self._notify(offline)
        return self.is_offline

    def _notify(self, offline: bool) -> None:
        for listener in list(self._listeners):
            try:
                listener(offline)
            except Exception:
                logger.exception('Error notifying connectivity listener %r', listener)

    async def _run(self) -> None:
        while True:
            await self.sync_now()
            await asyncio.sleep(self.interval_s)

    def start(self) -> None:
        if self._task is not None and not self._task.done():
            return
        self._task = asyncio.create_task(self._run())
        logger.debug('Connectivity polling started (every %.0fs)', self.interval_s)

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
