"""CLI command to print the wired configuration graph.

Optionally scans resolved build-tooling classpaths (JSON trees, innermost
project first) for the mixin compile extensions.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import List

from moddev.config import load_environment_config
from moddev.errors import ConfigurationError, ModdevError
from moddev.graph.scanner import DependencyResultNode, ScopeLevel
from moddev.runtime.context import BuildContext, configure_project

logger = logging.getLogger("moddev.cli.wire")


def load_scopes(path: Path) -> List[ScopeLevel]:
    """Read ``[{"name": ..., "roots": [tree, ...]}, ...]``."""
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigurationError(f"Cannot read scopes file {path}: {exc}") from exc
    if not isinstance(data, list):
        raise ConfigurationError(f"{path} must contain a list of scopes")
    try:
        return [
            ScopeLevel(
                name=item.get("name") or f"scope{idx}",
                roots=[DependencyResultNode.from_dict(root) for root in item.get("roots", [])],
            )
            for idx, item in enumerate(data)
        ]
    except (AttributeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid scopes file {path}: {exc}") from exc


def wire_command(args) -> int:
    """Execute configuration wiring and print the graph as JSON.

    Args:
        args: Parsed command-line arguments.

    Returns:
        int: Exit code (0 for success, non-zero for failure).
    """
    try:
        env = load_environment_config(getattr(args, "config", None))
        project_dir = Path(getattr(args, "project_dir", None) or ".").resolve()
        scopes_arg = getattr(args, "scopes", None)
        context = BuildContext(
            project_name=project_dir.name,
            project_dir=project_dir,
            config=env,
            scopes=load_scopes(Path(scopes_arg)) if scopes_arg else [],
        )
        configure_project(context)

        payload = {
            "configurations": context.graph.to_dict(),
            "mixin_extension_found": context.mixin_extension_found,
        }
        text = json.dumps(payload, indent=2, sort_keys=True)
        output = getattr(args, "output", None)
        if output:
            Path(output).write_text(text + "\n", encoding="utf-8")
            logger.info("Wrote configuration graph to %s", output)
        else:
            print(text)
        return 0

    except ModdevError as e:
        logger.error("Configuration wiring failed: %s", e)
        return 1
