"""Services package - offline tile policy and orchestration."""

from services.connectivity import ConnectivityMonitor, is_network_offline
from services.offline_tiles import (
    DownloadOutcome,
    DownloadState,
    DownloadStatus,
    OfflineTileService,
)
from services.staleness import StalenessPolicy

__all__ = [
    'ConnectivityMonitor',
    'DownloadOutcome',
    'DownloadState',
    'DownloadStatus',
    'OfflineTileService',
    'StalenessPolicy',
    'is_network_offline',
]
