"""Asset index models, content-addressed store and synchronizer."""

from .manifest import AssetEntry, AssetIndexInfo, AssetManifest
from .store import AssetStore
from .download import HttpDownloader
from .sync import (
    AssetSyncEngine,
    CancellationToken,
    EntryOutcome,
    ProgressEvent,
    SyncReport,
    SyncState,
    provide_assets,
)

__all__ = [
    "AssetEntry",
    "AssetIndexInfo",
    "AssetManifest",
    "AssetStore",
    "HttpDownloader",
    "AssetSyncEngine",
    "CancellationToken",
    "EntryOutcome",
    "ProgressEvent",
    "SyncReport",
    "SyncState",
    "provide_assets",
]
