"""Incremental, checksum-driven asset synchronization.

One invocation walks a small state machine::

    FETCH_MANIFEST -> VERIFY_MANIFEST -> DIFF_ENTRIES -> FOR_EACH_ENTRY -> COMPLETED

Offline runs may pass through DEGRADED (local index present but not
verifiable) or end in FAILED (index or asset absent). Progress is
produced as a lazy stream of ``ProgressEvent`` values; consumers decide
how to display them and the engine never depends on them for control
flow.

Objects already present and valid are never transferred, so re-running
against an intact store performs no network requests.
"""

from __future__ import annotations

import logging
import threading
from collections import Counter
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from enum import Enum, auto
from pathlib import Path
from typing import Callable, Dict, Iterator, List, Optional, Tuple

from moddev.assets.download import HttpDownloader, Transport, etag_path
from moddev.assets.manifest import AssetEntry, AssetIndexInfo, AssetManifest
from moddev.assets.store import AssetStore, file_matches, sha1_file
from moddev.config.schema import DEFAULT_RESOURCES_BASE, AssetSyncConfig
from moddev.errors import AssetMissing, ChecksumMismatch, ManifestMissing, SyncCancelled

logger = logging.getLogger("moddev.assets.sync")


class SyncState(Enum):
    """Lifecycle states of one synchronization run."""

    PENDING = auto()
    FETCH_MANIFEST = auto()
    VERIFY_MANIFEST = auto()
    DEGRADED = auto()
    DIFF_ENTRIES = auto()
    FOR_EACH_ENTRY = auto()
    COMPLETED = auto()
    FAILED = auto()

    def __str__(self) -> str:
        return self.name.replace("_", " ").title()


class EntryOutcome(str, Enum):
    """What happened to a single manifest entry."""

    SKIPPED = "skipped"
    FETCHED = "fetched"
    STALE = "stale"


@dataclass(frozen=True)
class ProgressEvent:
    """Emitted after each entry, whatever its outcome."""

    processed: int
    total: int
    logical_path: str
    outcome: EntryOutcome

    @property
    def asset_name(self) -> str:
        return self.logical_path.rsplit("/", 1)[-1]

    @property
    def percent(self) -> int:
        return int(self.processed * 100 / self.total) if self.total else 100


@dataclass
class SyncReport:
    """Summary of a finished run."""

    manifest_id: str
    root: Path
    total: int = 0
    counts: Counter = field(default_factory=Counter)
    manifest_degraded: bool = False

    @property
    def fetched(self) -> int:
        return self.counts[EntryOutcome.FETCHED]

    @property
    def skipped(self) -> int:
        return self.counts[EntryOutcome.SKIPPED]

    @property
    def stale(self) -> int:
        return self.counts[EntryOutcome.STALE]


class CancellationToken:
    """Cooperative cancellation flag checked between entries."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise SyncCancelled("Asset synchronization cancelled")


class AssetSyncEngine:
    """Synchronize one asset index and its objects into an AssetStore.

    Args:
        store: Destination store.
        index_info: Asset index reference from the version descriptor.
        game_version: Game version the index belongs to.
        transport: Downloader; required unless ``offline``.
        offline: Never use the network.
        workers: Size of the fetch pool (1 processes entries inline).
        resources_base: Content origin URL, ending with ``/``.
        cancel_token: Optional token checked before each entry.
    """

    def __init__(
        self,
        store: AssetStore,
        index_info: AssetIndexInfo,
        game_version: str,
        transport: Optional[Transport] = None,
        offline: bool = False,
        workers: int = 8,
        resources_base: str = DEFAULT_RESOURCES_BASE,
        cancel_token: Optional[CancellationToken] = None,
    ) -> None:
        if transport is None and not offline:
            raise ValueError("An online AssetSyncEngine needs a transport")
        self.store = store
        self.index_info = index_info
        self.game_version = game_version
        self.transport = transport
        self.offline = offline
        self.workers = max(1, workers)
        self.resources_base = resources_base if resources_base.endswith("/") else resources_base + "/"
        self.cancel_token = cancel_token or CancellationToken()
        self.state = SyncState.PENDING
        self.manifest_degraded = False

    @classmethod
    def from_config(
        cls,
        config: AssetSyncConfig,
        root: Path,
        index_info: AssetIndexInfo,
        game_version: str,
        transport: Optional[Transport] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> "AssetSyncEngine":
        if transport is None and not config.offline:
            transport = HttpDownloader(
                timeout=config.timeout, retries=config.retries, backoff=config.backoff
            )
        return cls(
            AssetStore(root),
            index_info,
            game_version,
            transport=transport,
            offline=config.offline,
            workers=config.workers,
            resources_base=config.resources_base,
            cancel_token=cancel_token,
        )

    @property
    def manifest_id(self) -> str:
        return self.index_info.manifest_id(self.game_version)

    def object_url(self, sha1: str) -> str:
        return f"{self.resources_base}{sha1[:2]}/{sha1}"

    # ------------------------------------------------------------------
    # Manifest
    # ------------------------------------------------------------------

    def prepare_manifest(self) -> AssetManifest:
        """Make sure a usable asset index is on disk and load it.

        Raises:
            ManifestMissing: Offline with no local index.
            ChecksumMismatch: Online and the downloaded index does not
                match the descriptor's sha1.
            ManifestCorrupt: The index on disk cannot be parsed.
        """
        self.state = SyncState.FETCH_MANIFEST
        path = self.store.index_path(self.manifest_id)
        expected = self.index_info.sha1

        if not file_matches(path, expected):
            logger.info(":downloading asset index")
            if self.offline:
                if path.exists():
                    logger.warning("Asset index outdated")
                    self.manifest_degraded = True
                    self.state = SyncState.DEGRADED
                else:
                    self.state = SyncState.FAILED
                    raise ManifestMissing(path)
            else:
                changed = self.transport.download_if_changed(self.index_info.url, path)
                self.state = SyncState.VERIFY_MANIFEST
                if not changed and not file_matches(path, expected):
                    # server said 304 but our copy is bad; drop the ETag and retry
                    etag_path(path).unlink(missing_ok=True)
                    self.transport.download_if_changed(self.index_info.url, path)
                if not file_matches(path, expected):
                    self.state = SyncState.FAILED
                    raise ChecksumMismatch(expected, _sha1_or_missing(path), what=f"asset index {path.name}")

        return AssetManifest.from_path(path)

    # ------------------------------------------------------------------
    # Entries
    # ------------------------------------------------------------------

    def needed(self, manifest: AssetManifest) -> List[Tuple[str, AssetEntry]]:
        """Entries whose object is absent or invalid in the store."""
        return [
            (logical_path, entry)
            for logical_path, entry in manifest.entries()
            if not self.store.has(entry.hash, entry.size or None)
        ]

    def process_entry(self, logical_path: str, entry: AssetEntry) -> EntryOutcome:
        self.cancel_token.raise_if_cancelled()
        if self.store.has(entry.hash, entry.size or None):
            return EntryOutcome.SKIPPED

        if self.offline:
            if self.store.exists(entry.hash):
                logger.warning("Outdated asset %s", logical_path)
                return EntryOutcome.STALE
            raise AssetMissing(logical_path, self.store.object_path(entry.hash))

        logger.debug(":downloading asset %s", logical_path)
        url = self.object_url(entry.hash)
        data = self.transport.fetch(url)
        try:
            self.store.put(entry.hash, data)
        except ChecksumMismatch:
            logger.warning("Corrupt transfer of %s; downloading again", logical_path)
            self.store.put(entry.hash, self.transport.fetch(url))
        return EntryOutcome.FETCHED

    def events(self) -> Iterator[ProgressEvent]:
        """Run the synchronization lazily, yielding one event per entry."""
        try:
            manifest = self.prepare_manifest()

            self.state = SyncState.DIFF_ENTRIES
            total = len(manifest)
            pending = self.needed(manifest)
            pending_paths = {logical_path for logical_path, _ in pending}
            logger.info(":downloading assets... %d of %d need work", len(pending), total)

            processed = 0
            for logical_path, _ in manifest.entries():
                if logical_path in pending_paths:
                    continue
                self.cancel_token.raise_if_cancelled()
                processed += 1
                yield ProgressEvent(processed, total, logical_path, EntryOutcome.SKIPPED)

            self.state = SyncState.FOR_EACH_ENTRY
            if self.offline or self.workers == 1:
                yield from self._run_inline(pending, processed, total)
            else:
                yield from self._run_pooled(pending, processed, total)
        except BaseException:
            self.state = SyncState.FAILED
            raise
        self.state = SyncState.COMPLETED

    def _run_inline(self, entries, processed: int, total: int) -> Iterator[ProgressEvent]:
        for logical_path, entry in entries:
            outcome = self.process_entry(logical_path, entry)
            processed += 1
            yield ProgressEvent(processed, total, logical_path, outcome)

    def _run_pooled(self, entries, processed: int, total: int) -> Iterator[ProgressEvent]:
        executor = ThreadPoolExecutor(max_workers=self.workers, thread_name_prefix="asset-fetch")
        try:
            futures: Dict[Future, str] = {
                executor.submit(self.process_entry, logical_path, entry): logical_path
                for logical_path, entry in entries
            }
            for future in as_completed(futures):
                outcome = future.result()
                processed += 1
                yield ProgressEvent(processed, total, futures[future], outcome)
        except BaseException:
            self.cancel_token.cancel()
            executor.shutdown(wait=True, cancel_futures=True)
            raise
        executor.shutdown(wait=True)

    def run(self, observer: Optional[Callable[[ProgressEvent], None]] = None) -> SyncReport:
        """Consume ``events()`` to completion and summarize."""
        report = SyncReport(manifest_id=self.manifest_id, root=self.store.root)
        for event in self.events():
            report.counts[event.outcome] += 1
            report.total = event.total
            if observer is not None:
                observer(event)
        report.manifest_degraded = self.manifest_degraded
        logger.info(
            "Assets %s: %d fetched, %d up to date, %d stale",
            self.manifest_id, report.fetched, report.skipped, report.stale,
        )
        return report


def provide_assets(
    config: AssetSyncConfig,
    index_info: AssetIndexInfo,
    game_version: str,
    transport: Optional[Transport] = None,
    observer: Optional[Callable[[ProgressEvent], None]] = None,
    cancel_token: Optional[CancellationToken] = None,
) -> List[SyncReport]:
    """Populate the shared cache and, when configured, the run directory."""
    roots = [config.assets_dir]
    if config.run_dir is not None:
        roots.append(config.run_dir / "assets")

    owned: Optional[HttpDownloader] = None
    if transport is None and not config.offline:
        owned = transport = HttpDownloader(
            timeout=config.timeout, retries=config.retries, backoff=config.backoff
        )

    reports = []
    try:
        for root in roots:
            if root != config.assets_dir:
                logger.info(":downloading assets into run directory")
            engine = AssetSyncEngine.from_config(
                config, root, index_info, game_version, transport=transport, cancel_token=cancel_token
            )
            reports.append(engine.run(observer))
    finally:
        if owned is not None:
            owned.close()
    return reports


def _sha1_or_missing(path: Path) -> str:
    try:
        return sha1_file(path)
    except FileNotFoundError:
        return "<missing>"


__all__ = [
    "AssetSyncEngine",
    "CancellationToken",
    "EntryOutcome",
    "ProgressEvent",
    "SyncReport",
    "SyncState",
    "provide_assets",
]
