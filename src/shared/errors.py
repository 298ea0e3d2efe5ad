"""Errors raised by the offline tile cache."""

from __future__ import annotations


class TileCacheError(RuntimeError):
    """Base class for offline tile cache failures."""


class ProviderNotConfiguredError(TileCacheError):
    """No tile provider URL template is available."""


class TileFetchError(TileCacheError):
    """A single tile could not be downloaded."""

    def __init__(self, msg: str, *, status: int | None = None) -> None:
        super().__init__(msg)
        self.status = status
