"""Helpers for loading environment configuration from TOML/JSON sources.

This module provides a single entry point `load_environment_config`
that accepts various configuration sources:

* None -> default EnvironmentConfig (environment overrides applied)
* dict -> EnvironmentConfig.from_dict
* Path / path-like string -> load .toml/.json from filesystem
* Inline JSON/TOML strings
"""

from __future__ import annotations

import json
import logging
import tomllib
from pathlib import Path
from typing import Any, Dict, Optional, Union

from pydantic import ValidationError

from moddev.config.schema import EnvironmentConfig
from moddev.errors import ConfigurationError

logger = logging.getLogger("moddev.config.loader")

ConfigSource = Union[str, Path, Dict[str, Any], None]


def _detect_format(text: str) -> str:
    stripped = text.lstrip()
    return "json" if stripped.startswith(("{", "[")) else "toml"


def load_environment_config(source: ConfigSource) -> EnvironmentConfig:
    """Load EnvironmentConfig from various configuration sources.

    Args:
        source: One of:
            * None: defaults plus environment overrides
            * dict: treated as already-parsed configuration mapping
            * str/Path: either a filesystem path to a .toml/.json file,
              or an inline TOML/JSON string (auto-detected)

    Returns:
        EnvironmentConfig instance.

    Raises:
        ConfigurationError: If the source cannot be parsed or validated.
    """
    if source is None:
        logger.debug("No config source provided; using default EnvironmentConfig")
        return _validate({})

    if isinstance(source, dict):
        logger.debug("Loading EnvironmentConfig from provided dict")
        return _validate(source)

    if not isinstance(source, (str, Path)):
        raise TypeError(f"Unsupported config source type: {type(source)!r}")

    path = Path(source)
    text: Optional[str] = None
    fmt: Optional[str] = None

    if _is_file(path):
        text = path.read_text(encoding="utf-8")
        suffix = path.suffix.lower()
        if suffix in {".toml", ".tml"}:
            fmt = "toml"
        elif suffix == ".json":
            fmt = "json"
        else:
            fmt = _detect_format(text)
        logger.info("Loading configuration from file: %s (fmt=%s)", path, fmt)
    else:
        text = str(source)
        fmt = _detect_format(text)
        logger.info("Loading configuration from inline %s string", fmt)

    try:
        data = json.loads(text) if fmt == "json" else tomllib.loads(text)
    except (json.JSONDecodeError, tomllib.TOMLDecodeError) as exc:
        raise ConfigurationError(f"Cannot parse {fmt} configuration: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigurationError("Top-level configuration must be a mapping/dict")

    return _validate(data)


def _is_file(path: Path) -> bool:
    # inline TOML can exceed the OS name limit
    try:
        return path.is_file()
    except OSError:
        return False


def _validate(data: Dict[str, Any]) -> EnvironmentConfig:
    try:
        return EnvironmentConfig.from_dict(data)
    except ValidationError as exc:
        raise ConfigurationError(str(exc)) from exc


__all__ = ["load_environment_config", "ConfigSource"]
