"""CLI command to synchronize the asset cache for a game version.

Reads the asset index reference from a version descriptor JSON (the
``assetIndex`` object plus the version ``id``), then populates the shared
cache and the run directory.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import ValidationError

from moddev.assets.manifest import AssetIndexInfo
from moddev.assets.sync import provide_assets
from moddev.config import load_environment_config
from moddev.errors import ConfigurationError, ModdevError
from moddev.runtime.progress import AssetProgress

logger = logging.getLogger("moddev.cli.assets")


def load_version_descriptor(path: Path) -> tuple[AssetIndexInfo, str]:
    """Return the asset index reference and game version from a descriptor."""
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigurationError(f"Cannot read version descriptor {path}: {exc}") from exc

    if "assetIndex" not in data or "id" not in data:
        raise ConfigurationError(f"{path} has no 'assetIndex'/'id' entries")
    try:
        return AssetIndexInfo.model_validate(data["assetIndex"]), str(data["id"])
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid assetIndex in {path}: {exc}") from exc


def assets_command(args) -> int:
    """Execute asset synchronization.

    Args:
        args: Parsed command-line arguments.

    Returns:
        int: Exit code (0 for success, non-zero for failure).
    """
    try:
        env = load_environment_config(getattr(args, "config", None))
        overrides = {}
        if getattr(args, "cache_dir", None):
            overrides["cache_dir"] = Path(args.cache_dir).expanduser().resolve()
        if getattr(args, "run_dir", None):
            overrides["run_dir"] = Path(args.run_dir).expanduser().resolve()
        if getattr(args, "offline", False):
            overrides["offline"] = True
        if getattr(args, "workers", None):
            overrides["workers"] = args.workers
        assets_config = env.assets.model_copy(update=overrides)

        index_info, game_version = load_version_descriptor(Path(args.version_json))
        logger.info(
            "Synchronizing assets for %s (index %s) into %s",
            game_version, index_info.id, assets_config.assets_dir,
        )

        with AssetProgress(enabled=not getattr(args, "no_progress", False)) as progress:
            reports = provide_assets(assets_config, index_info, game_version, observer=progress)

        for report in reports:
            print(
                f"{report.root}: {report.total} assets, {report.fetched} fetched, "
                f"{report.skipped} up to date, {report.stale} stale"
                + (" (index outdated)" if report.manifest_degraded else "")
            )
        return 0

    except ModdevError as e:
        logger.error("Asset synchronization failed: %s", e)
        return 1
