"""Exception hierarchy for moddev.

Fatal errors abort the current operation. Retrievable errors are raised
to the caller, who may recover. ``ExtensionNotFound`` is only logged.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional


class ModdevError(Exception):
    """Base class for all moddev errors."""

    pass


class ConfigurationError(ModdevError):
    """Invalid user or environment configuration."""

    pass


class UnknownConfigurationError(ModdevError, KeyError):
    """Lookup of a configuration name that was never declared."""

    def __init__(self, name: str) -> None:
        super().__init__(name)
        self.name = name

    def __str__(self) -> str:
        return f"Configuration '{self.name}' is not declared"


class CycleError(ModdevError):
    """Adding an extends-from edge would create a cycle.

    Attributes:
        child: Configuration that was being extended.
        parent: Configuration it was being extended from.
        cycle: Configuration names along the cycle, starting at ``child``.
    """

    def __init__(self, child: str, parent: str, cycle: Optional[list[str]] = None) -> None:
        self.child = child
        self.parent = parent
        self.cycle = cycle or [child, parent, child]
        super().__init__(
            f"Configuration '{child}' cannot extend from '{parent}': "
            f"cycle {' -> '.join(self.cycle)}"
        )


class ManifestMissing(ModdevError):
    """Offline and no local asset manifest exists."""

    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(f"Asset index not found at {path}")


class ManifestCorrupt(ModdevError):
    """Local asset index cannot be parsed or does not match the index schema."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Asset index at {path} is unreadable: {reason}")


class AssetMissing(ModdevError):
    """Offline and an asset has never been materialized."""

    def __init__(self, logical_path: str, path: Path) -> None:
        self.logical_path = logical_path
        self.path = path
        super().__init__(f"Asset {logical_path} not found at {path}")


class ChecksumMismatch(ModdevError):
    """Content does not hash to the expected value."""

    def __init__(self, expected: str, actual: str, what: str = "object") -> None:
        self.expected = expected
        self.actual = actual
        self.what = what
        super().__init__(f"Checksum mismatch for {what}: expected {expected}, got {actual}")


class ObjectNotFound(ModdevError, LookupError):
    """Read of an object that is not present in the asset store."""

    def __init__(self, sha1: str, path: Path) -> None:
        self.sha1 = sha1
        self.path = path
        super().__init__(f"Object {sha1} not found at {path}")


class NetworkFailure(ModdevError):
    """Transfer failed after the retry budget was exhausted."""

    def __init__(self, url: str, attempts: int, cause: Optional[BaseException] = None) -> None:
        self.url = url
        self.attempts = attempts
        self.cause = cause
        super().__init__(f"Failed to download {url} after {attempts} attempt(s): {cause}")


class SyncCancelled(ModdevError):
    """Asset synchronization was cancelled between entries."""

    pass


class ExtensionNotFound(ModdevError):
    """Optional compiler extension was not found in any project scope.

    Never raised across the public API; the scanner logs it and returns
    ``False`` so the caller can proceed without the capability.
    """

    def __init__(self, scopes: list[str]) -> None:
        self.scopes = scopes
        super().__init__(f"Extension not found in scopes: {', '.join(scopes) or '<none>'}")


__all__ = [
    "ModdevError",
    "ConfigurationError",
    "UnknownConfigurationError",
    "CycleError",
    "ManifestMissing",
    "ManifestCorrupt",
    "AssetMissing",
    "ChecksumMismatch",
    "ObjectNotFound",
    "NetworkFailure",
    "SyncCancelled",
    "ExtensionNotFound",
]
