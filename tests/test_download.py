"""Tests for the retrying HTTP downloader."""

from __future__ import annotations

import threading
from pathlib import Path

import pytest
import requests

from moddev.assets.download import HttpDownloader, etag_path
from moddev.errors import NetworkFailure


def _response(status: int, content: bytes = b"", headers: dict | None = None, url: str = "") -> requests.Response:
    response = requests.Response()
    response.status_code = status
    response._content = content
    response.url = url
    if headers:
        response.headers.update(headers)
    return response


class ScriptedSession:
    """Session stub returning scripted responses or raising scripted errors."""

    def __init__(self, script: list) -> None:
        self.script = list(script)
        self.calls: list[dict] = []
        self.closed = False

    def get(self, url, timeout=None, headers=None):
        self.calls.append({"url": url, "timeout": timeout, "headers": headers})
        item = self.script.pop(0)
        if isinstance(item, Exception):
            raise item
        item.url = url
        return item

    def close(self) -> None:
        self.closed = True


def _downloader(script: list, retries: int = 3) -> tuple[HttpDownloader, ScriptedSession, list]:
    session = ScriptedSession(script)
    delays: list[float] = []
    downloader = HttpDownloader(
        timeout=5.0,
        retries=retries,
        backoff=0.5,
        session_factory=lambda: session,
        sleep=delays.append,
    )
    return downloader, session, delays


def test_fetch_retries_transient_errors_with_backoff() -> None:
    downloader, session, delays = _downloader(
        [
            requests.ConnectionError("reset"),
            _response(503),
            _response(200, b"payload"),
        ]
    )

    assert downloader.fetch("https://example.invalid/x") == b"payload"
    assert delays == [0.5, 1.0]
    assert all(call["timeout"] == 5.0 for call in session.calls)
    assert downloader.request_count == 3


def test_fetch_gives_up_after_budget() -> None:
    downloader, _, delays = _downloader([requests.Timeout("slow")] * 3)

    with pytest.raises(NetworkFailure) as excinfo:
        downloader.fetch("https://example.invalid/x")

    assert excinfo.value.attempts == 3
    assert len(delays) == 2


def test_client_error_not_retried() -> None:
    downloader, session, delays = _downloader([_response(404)])

    with pytest.raises(NetworkFailure) as excinfo:
        downloader.fetch("https://example.invalid/missing")

    assert excinfo.value.attempts == 1
    assert len(session.calls) == 1
    assert delays == []


def test_download_if_changed_uses_etag(tmp_path: Path) -> None:
    target = tmp_path / "indexes" / "1.14.json"
    downloader, session, _ = _downloader(
        [
            _response(200, b'{"objects": {}}', headers={"ETag": '"abc"'}),
            _response(304),
        ]
    )

    assert downloader.download_if_changed("https://example.invalid/i.json", target) is True
    assert target.read_bytes() == b'{"objects": {}}'
    assert etag_path(target).read_text(encoding="utf-8") == '"abc"'

    assert downloader.download_if_changed("https://example.invalid/i.json", target) is False
    assert session.calls[0]["headers"] is None
    assert session.calls[1]["headers"] == {"If-None-Match": '"abc"'}


def test_each_thread_gets_its_own_session() -> None:
    created: list[ScriptedSession] = []

    def factory() -> ScriptedSession:
        session = ScriptedSession([_response(200, b"a"), _response(200, b"b")])
        created.append(session)
        return session

    downloader = HttpDownloader(session_factory=factory, sleep=lambda _: None)
    downloader.fetch("https://example.invalid/main")
    downloader.fetch("https://example.invalid/main-again")

    worker = threading.Thread(target=downloader.fetch, args=("https://example.invalid/worker",))
    worker.start()
    worker.join()

    assert len(created) == 2
    assert [call["url"] for call in created[0].calls] == [
        "https://example.invalid/main",
        "https://example.invalid/main-again",
    ]
    assert [call["url"] for call in created[1].calls] == ["https://example.invalid/worker"]

    downloader.close()
    assert all(session.closed for session in created)
