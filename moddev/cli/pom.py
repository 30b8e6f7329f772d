"""CLI command to merge mod dependencies into a POM file."""

from __future__ import annotations

import json
import logging
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Dict, List

from moddev.config import load_environment_config
from moddev.errors import ConfigurationError, ModdevError
from moddev.graph.pipeline import wire_pipeline
from moddev.publishing.pom import merge_pom_dependencies, pom_candidates

logger = logging.getLogger("moddev.cli.pom")


def load_declared(path: Path) -> Dict[str, List[str]]:
    """Read ``{"modCompile": ["group:name:version", ...], ...}``."""
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigurationError(f"Cannot read dependencies file {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigurationError(f"{path} must map configuration names to notations")
    return data


def pom_command(args) -> int:
    """Execute the POM dependency merge.

    Args:
        args: Parsed command-line arguments.

    Returns:
        int: Exit code (0 for success, non-zero for failure).
    """
    try:
        env = load_environment_config(getattr(args, "config", None))
        graph = wire_pipeline(env.pipeline)
        for name, notations in load_declared(Path(args.dependencies)).items():
            if name not in graph:
                raise ConfigurationError(f"Unknown configuration '{name}' in {args.dependencies}")
            for notation in notations:
                try:
                    graph.add_dependency(name, notation)
                except ValueError as exc:
                    raise ConfigurationError(str(exc)) from exc

        pom_path = Path(args.pom)
        original = pom_path.read_text(encoding="utf-8")
        merged = merge_pom_dependencies(original, pom_candidates(graph, env.pipeline))

        output = Path(args.output) if getattr(args, "output", None) else pom_path
        if merged != original or output != pom_path:
            output.write_text(merged, encoding="utf-8")
        logger.info("POM written to %s", output)
        return 0

    except (OSError, ET.ParseError) as e:
        logger.error("POM merge failed: %s", e)
        return 1
    except ModdevError as e:
        logger.error("POM merge failed: %s", e)
        return 1
