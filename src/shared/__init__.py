"""Shared utilities and helpers."""
from shared.config import (
    OfflineTilesSettings,
    TileProviderConfig,
    load_provider_config,
    resolve_data_dir,
    resolve_tile_dir,
)
from shared.errors import ProviderNotConfiguredError, TileCacheError, TileFetchError
from shared.logging_setup import setup_logging

__all__ = [
    'OfflineTilesSettings',
    'ProviderNotConfiguredError',
    'TileCacheError',
    'TileFetchError',
    'TileProviderConfig',
    'load_provider_config',
    'resolve_data_dir',
    'resolve_tile_dir',
    'setup_logging',
]
