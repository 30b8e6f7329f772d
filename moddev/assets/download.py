"""HTTP transfers for the asset synchronizer.

Each calling thread gets its own ``requests.Session``. Requests use a
per-request timeout and a bounded number of attempts with exponential
backoff. Client errors other than 408/429 are not retried.
"""

from __future__ import annotations

import logging
import threading
import time
from pathlib import Path
from typing import Callable, List, Optional, Protocol

import requests

from moddev.assets.store import atomic_write
from moddev.errors import NetworkFailure

logger = logging.getLogger("moddev.assets.download")

_RETRYABLE_STATUS = {408, 429}


class Transport(Protocol):
    """What the sync engine needs from a downloader."""

    def fetch(self, url: str) -> bytes: ...

    def download_if_changed(self, url: str, target_path: Path) -> bool: ...


def etag_path(target_path: Path) -> Path:
    return target_path.with_name(target_path.name + ".etag")


class HttpDownloader:
    """Retrying HTTP downloader.

    Args:
        timeout: Per-request timeout in seconds.
        retries: Total attempts per URL.
        backoff: Base delay in seconds; doubles after every failed attempt.
        session_factory: Builds one session per calling thread.
        sleep: Delay function, replaceable in tests.
    """

    def __init__(
        self,
        timeout: float = 30.0,
        retries: int = 3,
        backoff: float = 0.5,
        session_factory: Callable[[], requests.Session] = requests.Session,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.timeout = timeout
        self.retries = max(1, retries)
        self.backoff = backoff
        self._session_factory = session_factory
        self._local = threading.local()
        self._sessions: List[requests.Session] = []
        self._sleep = sleep
        self._lock = threading.Lock()
        self.request_count = 0

    def _get_session(self) -> requests.Session:
        """Session owned by the calling thread, created on first use."""
        session = getattr(self._local, "session", None)
        if session is None:
            session = self._session_factory()
            with self._lock:
                self._sessions.append(session)
            self._local.session = session
            logger.debug("Created HTTP session for thread %s", threading.current_thread().name)
        return session

    def _get(self, url: str, headers: Optional[dict] = None) -> requests.Response:
        last_error: Optional[BaseException] = None
        for attempt in range(1, self.retries + 1):
            with self._lock:
                self.request_count += 1
            try:
                response = self._get_session().get(url, timeout=self.timeout, headers=headers)
                if response.status_code == 304:
                    return response
                response.raise_for_status()
                return response
            except requests.HTTPError as exc:
                status = exc.response.status_code if exc.response is not None else 0
                last_error = exc
                if 400 <= status < 500 and status not in _RETRYABLE_STATUS:
                    raise NetworkFailure(url, attempt, exc) from exc
            except requests.RequestException as exc:
                last_error = exc

            if attempt < self.retries:
                delay = self.backoff * (2 ** (attempt - 1))
                logger.warning(
                    "Download of %s failed (attempt %d/%d): %s; retrying in %.1fs",
                    url, attempt, self.retries, last_error, delay,
                )
                self._sleep(delay)

        raise NetworkFailure(url, self.retries, last_error)

    def fetch(self, url: str) -> bytes:
        """Download ``url`` fully into memory.

        Raises:
            NetworkFailure: After the retry budget is exhausted.
        """
        logger.debug("Downloading %s", url)
        return self._get(url).content

    def download_if_changed(self, url: str, target_path: Path) -> bool:
        """Download ``url`` to ``target_path`` unless the server reports 304.

        The ETag of the last successful download is kept next to the file
        and sent as ``If-None-Match``.

        Returns:
            True if the file was (re)written, False if it was up to date.
        """
        tag_file = etag_path(target_path)
        headers = {}
        if target_path.exists() and tag_file.exists():
            etag = tag_file.read_text(encoding="utf-8").strip()
            if etag:
                headers["If-None-Match"] = etag

        response = self._get(url, headers=headers or None)
        if response.status_code == 304:
            logger.info("'%s' Not Modified, skipping.", target_path)
            return False

        atomic_write(target_path, response.content)
        etag = response.headers.get("ETag")
        if etag:
            tag_file.write_text(etag, encoding="utf-8")
        else:
            tag_file.unlink(missing_ok=True)
        logger.info("Downloaded %s to %s", url, target_path)
        return True

    def close(self) -> None:
        with self._lock:
            sessions, self._sessions = self._sessions, []
        for session in sessions:
            session.close()
        self._local = threading.local()

    def __enter__(self) -> "HttpDownloader":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


__all__ = ["HttpDownloader", "Transport", "etag_path"]
