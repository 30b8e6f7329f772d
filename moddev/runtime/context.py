"""Per-invocation build context.

One ``BuildContext`` is created per build invocation and handed to every
component that needs project state, instead of components looking up
shared singletons.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from moddev.config.schema import EnvironmentConfig
from moddev.graph.configurations import ConfigurationGraph
from moddev.graph.pipeline import ANNOTATION_PROCESSOR, wire_pipeline
from moddev.graph.scanner import (
    MIXIN_COMPILE_EXTENSIONS,
    ModulePredicate,
    ScopeLevel,
    TransitiveDependencyScanner,
)

logger = logging.getLogger("moddev.runtime.context")


@dataclass
class BuildContext:
    """State shared by the components of one build invocation.

    Args:
        project_name: Name of the project being configured.
        project_dir: Project directory.
        config: Validated environment configuration.
        graph: Configuration graph, wired by ``configure_project``.
        scopes: Build-tooling classpaths from this project up to the root
            project, innermost first.
        game_version: Game version the environment targets.
        mixin_extension_found: Set by ``configure_project``.
    """

    project_name: str
    project_dir: Path
    config: EnvironmentConfig = field(default_factory=EnvironmentConfig)
    graph: ConfigurationGraph = field(default_factory=ConfigurationGraph)
    scopes: List[ScopeLevel] = field(default_factory=list)
    game_version: Optional[str] = None
    mixin_extension_found: bool = False

    @property
    def run_dir(self) -> Path:
        return self.config.assets.run_dir or (self.project_dir / "run")


def configure_project(
    context: BuildContext,
    predicate: ModulePredicate = MIXIN_COMPILE_EXTENSIONS,
) -> BuildContext:
    """Wire the configuration pipeline and inject the mixin extension.

    A missing extension is logged and tolerated.
    """
    logger.info("Configuring %s", context.project_name)
    wire_pipeline(context.config.pipeline, context.graph)

    scanner = TransitiveDependencyScanner()
    context.mixin_extension_found = scanner.scan_scopes(
        context.scopes, context.graph.get(ANNOTATION_PROCESSOR), predicate
    )
    return context


def mixin_compiler_args(
    mappings_file: Path,
    mixin_export_file: Path,
    destination_dir: Path,
    refmap_name: str,
) -> List[str]:
    """Annotation processor arguments for the mixin compile extensions."""
    return [
        f"-AinMapFileNamedOfficial={mappings_file.resolve()}",
        f"-AoutMapFileNamedOfficial={mixin_export_file.resolve()}",
        f"-AoutRefMapFile={(destination_dir / refmap_name).resolve()}",
        "-AdefaultObfuscationEnv=named:official",
    ]


__all__ = ["BuildContext", "configure_project", "mixin_compiler_args"]
