"""Content-addressed asset store.

Layout under the store root::

    indexes/<manifest_id>.json
    objects/<hash[0:2]>/<hash>

An object is valid only if its content hashes to its file name; file
size and modification time are never trusted on their own. Writes go
to a temporary file in the target bucket and are renamed into place,
so concurrent writers of different objects never observe partial files.
"""

from __future__ import annotations

import hashlib
import logging
import os
import tempfile
from pathlib import Path
from typing import Optional, Union

from moddev.assets.manifest import validate_sha1
from moddev.errors import ChecksumMismatch, ObjectNotFound

logger = logging.getLogger("moddev.assets.store")

_CHUNK_SIZE = 64 * 1024


def sha1_bytes(data: bytes) -> str:
    return hashlib.sha1(data).hexdigest()


def sha1_file(path: Path) -> str:
    digest = hashlib.sha1()
    with path.open("rb") as handle:
        for chunk in iter(lambda: handle.read(_CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.hexdigest()


def file_matches(path: Path, sha1: str) -> bool:
    """True if ``path`` exists and its content hashes to ``sha1``."""
    try:
        return sha1_file(path) == sha1
    except FileNotFoundError:
        return False


def atomic_write(path: Path, data: bytes) -> None:
    """Write ``data`` to ``path`` via a sibling temp file and rename."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(data)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


class AssetStore:
    """Directory-backed, content-addressed object cache."""

    def __init__(self, root: Union[str, Path]) -> None:
        self.root = Path(root)

    @property
    def objects_dir(self) -> Path:
        return self.root / "objects"

    @property
    def indexes_dir(self) -> Path:
        return self.root / "indexes"

    def object_path(self, sha1: str) -> Path:
        """Canonical path ``objects/<hash[0:2]>/<hash>``."""
        sha1 = validate_sha1(sha1)
        return self.objects_dir / sha1[:2] / sha1

    def index_path(self, manifest_id: str) -> Path:
        return self.indexes_dir / f"{manifest_id}.json"

    def _query_path(self, sha1: str) -> Optional[Path]:
        try:
            return self.object_path(sha1)
        except ValueError:
            return None

    def exists(self, sha1: str) -> bool:
        """True if a file is present at the object's path, valid or not."""
        path = self._query_path(sha1)
        return path is not None and path.is_file()

    def has(self, sha1: str, expected_size: Optional[int] = None) -> bool:
        """True iff the object exists and its content hashes to ``sha1``.

        ``expected_size`` is advisory. A differing size is logged and the
        content hash still decides.
        """
        path = self._query_path(sha1)
        if path is None:
            return False
        try:
            actual_size = path.stat().st_size
        except FileNotFoundError:
            return False
        if expected_size is not None and actual_size != expected_size:
            logger.debug(
                "Object %s is %d bytes, index says %d", path.name, actual_size, expected_size
            )
        return file_matches(path, path.name)

    def put(self, sha1: str, data: bytes) -> Path:
        """Store ``data`` under ``sha1``.

        Raises:
            ChecksumMismatch: If ``data`` does not hash to ``sha1``. Nothing
                is written in that case.
        """
        path = self.object_path(sha1)
        actual = sha1_bytes(data)
        if actual != path.name:
            raise ChecksumMismatch(path.name, actual, what=f"object {path.name}")
        atomic_write(path, data)
        logger.debug("Stored object %s (%d bytes)", path.name, len(data))
        return path

    def read(self, sha1: str) -> bytes:
        """Return the stored bytes of ``sha1``.

        Raises:
            ObjectNotFound: If no object is stored under ``sha1``.
        """
        path = self.object_path(sha1)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            raise ObjectNotFound(path.name, path) from None

    def write_index(self, manifest_id: str, data: bytes) -> Path:
        path = self.index_path(manifest_id)
        atomic_write(path, data)
        return path


__all__ = [
    "AssetStore",
    "atomic_write",
    "file_matches",
    "sha1_bytes",
    "sha1_file",
]
