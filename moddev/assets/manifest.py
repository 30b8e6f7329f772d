"""Asset manifest (asset index) models.

An asset index maps logical resource paths to content hashes. The
version descriptor names the index, its URL and its expected sha1.
"""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Dict, Iterator, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from moddev.errors import ManifestCorrupt

logger = logging.getLogger("moddev.assets.manifest")

_SHA1_RE = re.compile(r"^[0-9a-f]{40}$")


def validate_sha1(value: str) -> str:
    value = value.strip().lower()
    if not _SHA1_RE.match(value):
        raise ValueError(f"Invalid sha1 '{value}'")
    return value


class AssetEntry(BaseModel):
    """One asset object: content hash and advisory size."""

    model_config = ConfigDict(frozen=True)

    hash: str
    size: int = Field(default=0, ge=0)

    @field_validator("hash")
    @classmethod
    def check_hash(cls, v: str) -> str:
        return validate_sha1(v)


class AssetManifest(BaseModel):
    """Versioned index of logical asset paths."""

    objects: Dict[str, AssetEntry] = Field(default_factory=dict)
    virtual: bool = False
    map_to_resources: bool = False

    model_config = {"extra": "ignore"}

    @classmethod
    def from_path(cls, path: Path) -> "AssetManifest":
        """Load an index file.

        Raises:
            ManifestCorrupt: If the file is not valid JSON or not an index.
        """
        try:
            with path.open("r", encoding="utf-8") as handle:
                data = json.load(handle)
            return cls.model_validate(data)
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise ManifestCorrupt(path, str(exc)) from exc
        except ValidationError as exc:
            raise ManifestCorrupt(path, f"{exc.error_count()} schema error(s)") from exc

    def entries(self) -> Iterator[Tuple[str, AssetEntry]]:
        return iter(self.objects.items())

    def __len__(self) -> int:
        return len(self.objects)


class AssetIndexInfo(BaseModel):
    """Asset index reference from a game version descriptor."""

    id: str
    sha1: str
    url: str
    size: int = 0
    total_size: int = Field(default=0, alias="totalSize")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @field_validator("sha1")
    @classmethod
    def check_sha1(cls, v: str) -> str:
        return validate_sha1(v)

    def manifest_id(self, game_version: str) -> str:
        """Local file name stem for the index.

        Indexes shared across versions are suffixed with the version so two
        versions never overwrite each other's copy.
        """
        if self.id == game_version:
            return self.id
        return f"{self.id}-{game_version}"


__all__ = ["AssetEntry", "AssetManifest", "AssetIndexInfo", "validate_sha1"]
