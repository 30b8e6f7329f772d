"""Tests for the content-addressed asset store."""

from __future__ import annotations

import hashlib
from pathlib import Path

import pytest

from moddev.assets.store import AssetStore
from moddev.errors import ChecksumMismatch, ObjectNotFound


def _sha1(data: bytes) -> str:
    return hashlib.sha1(data).hexdigest()


def test_object_path_layout(tmp_path: Path) -> None:
    store = AssetStore(tmp_path)
    sha1 = "abc123" + "0" * 34

    assert store.object_path(sha1) == tmp_path / "objects" / "ab" / sha1
    assert store.index_path("1.14-1.14.4") == tmp_path / "indexes" / "1.14-1.14.4.json"


def test_object_path_rejects_malformed_hash(tmp_path: Path) -> None:
    with pytest.raises(ValueError):
        AssetStore(tmp_path).object_path("../../etc/passwd")


def test_put_then_has_and_read(tmp_path: Path) -> None:
    store = AssetStore(tmp_path)
    data = b"\x89PNG fake texture"
    sha1 = _sha1(data)

    assert store.has(sha1) is False
    path = store.put(sha1, data)

    assert path.parent.name == sha1[:2]
    assert store.has(sha1) is True
    assert store.has(sha1, expected_size=len(data)) is True
    assert store.read(sha1) == data
    assert not list(path.parent.glob("*.tmp"))


def test_put_rejects_mismatched_content(tmp_path: Path) -> None:
    store = AssetStore(tmp_path)
    sha1 = _sha1(b"expected")

    with pytest.raises(ChecksumMismatch):
        store.put(sha1, b"something else")
    assert not store.exists(sha1)


def test_read_missing_raises_not_found(tmp_path: Path) -> None:
    store = AssetStore(tmp_path)
    sha1 = _sha1(b"nothing")

    with pytest.raises(ObjectNotFound) as excinfo:
        store.read(sha1)
    assert excinfo.value.sha1 == sha1


def test_has_verifies_content_not_size(tmp_path: Path) -> None:
    """A same-size file with wrong content is stale, not present."""
    store = AssetStore(tmp_path)
    data = b"0123456789"
    sha1 = _sha1(data)
    path = store.object_path(sha1)
    path.parent.mkdir(parents=True)
    path.write_bytes(b"9876543210")

    assert store.exists(sha1) is True
    assert store.has(sha1, expected_size=len(data)) is False
    assert store.has(sha1) is False



def test_has_ignores_wrong_advisory_size(tmp_path: Path) -> None:
    store = AssetStore(tmp_path)
    data = b"payload"
    sha1 = _sha1(data)
    store.put(sha1, data)

    assert store.has(sha1, expected_size=999) is True
    assert store.has(sha1, expected_size=0) is True


def test_queries_on_malformed_hash_answer_false(tmp_path: Path) -> None:
    store = AssetStore(tmp_path)

    assert store.has("not-a-hash") is False
    assert store.exists("../../etc/passwd") is False
    with pytest.raises(ValueError):
        store.put("not-a-hash", b"data")
