"""Rich-based progress display for asset synchronization.

The display is a plain observer of ``ProgressEvent`` values; the sync
engine works the same whether or not one is attached.
"""

from __future__ import annotations

import logging
import threading
from typing import Optional

from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)

from moddev.assets.sync import EntryOutcome, ProgressEvent

logger = logging.getLogger("moddev.runtime.progress")


class AssetProgress:
    """Progress bar fed by ProgressEvents.

    A new bar starts whenever an event with ``processed == 1`` arrives, so
    a single instance can follow several consecutive runs (cache and run
    directory).

    Usage:
        with AssetProgress() as progress:
            engine.run(progress)
    """

    def __init__(
        self,
        enabled: bool = True,
        console: Optional[Console] = None,
        description: str = "Downloading assets...",
    ) -> None:
        self.enabled = enabled
        self.description = description
        # Use stderr for Console to align with logging conventions
        self.console = console or Console(stderr=True)
        self._lock = threading.Lock()
        self._task: Optional[TaskID] = None
        self._progress: Optional[Progress] = None
        self.events_seen = 0
        self.stale_seen = 0

        if self.enabled:
            self._progress = Progress(
                SpinnerColumn(),
                TextColumn("[bold blue]{task.description}"),
                BarColumn(bar_width=40),
                MofNCompleteColumn(),
                TextColumn("•"),
                TextColumn("{task.fields[asset]}"),
                TimeElapsedColumn(),
                console=self.console,
                expand=False,
            )

    def __enter__(self) -> "AssetProgress":
        if self._progress is not None:
            self._progress.start()
        return self

    def __exit__(self, *exc_info) -> None:
        if self._progress is not None:
            try:
                self._progress.stop()
            except Exception as exc:  # pylint: disable=broad-exception-caught
                logger.debug("Progress display stop failed: %s", exc)

    def __call__(self, event: ProgressEvent) -> None:
        with self._lock:
            self.events_seen += 1
            if event.outcome is EntryOutcome.STALE:
                self.stale_seen += 1
            if self._progress is None:
                return
            try:
                if self._task is None or event.processed == 1:
                    self._task = self._progress.add_task(
                        self.description, total=event.total, asset=""
                    )
                self._progress.update(
                    self._task,
                    completed=event.processed,
                    asset=f"{event.asset_name} ({event.percent}%)",
                )
            except Exception as exc:  # pylint: disable=broad-exception-caught
                logger.debug("Progress display update failed: %s", exc)


__all__ = ["AssetProgress"]
