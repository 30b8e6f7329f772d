"""Wire the remapping pipeline into a ConfigurationGraph.

Artifacts flow raw -> remapped -> target. Source configurations are
transitive so a declared mod pulls its own dependencies; remapped
configurations are not, so already-remapped artifacts never re-pull
theirs.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from moddev.config.schema import PipelineStageEntry, default_pipeline
from moddev.graph.configurations import ConfigurationGraph

logger = logging.getLogger("moddev.graph.pipeline")

MOD_COMPILE_CLASSPATH = "modCompileClasspath"
MOD_COMPILE_CLASSPATH_MAPPED = "modCompileClasspathMapped"
MINECRAFT = "minecraft"
MINECRAFT_NAMED = "minecraftNamed"
MINECRAFT_INTERMEDIARY = "minecraftIntermediary"
MINECRAFT_DEPENDENCIES = "minecraftDependencies"
INCLUDE = "include"
MAPPINGS = "mappings"
COMPILE = "compile"
ANNOTATION_PROCESSOR = "annotationProcessor"

# name -> transitive
BASE_CONFIGURATIONS = (
    (MOD_COMPILE_CLASSPATH, True),
    (MOD_COMPILE_CLASSPATH_MAPPED, False),
    (MINECRAFT_NAMED, False),
    (MINECRAFT_INTERMEDIARY, False),
    (MINECRAFT_DEPENDENCIES, False),
    (MINECRAFT, False),
    (INCLUDE, False),
    (MAPPINGS, True),
    (COMPILE, True),
    (ANNOTATION_PROCESSOR, True),
)

# (child, parent)
CROSS_LINKS = (
    (COMPILE, MINECRAFT_NAMED),
    (ANNOTATION_PROCESSOR, MINECRAFT_NAMED),
    (ANNOTATION_PROCESSOR, MOD_COMPILE_CLASSPATH_MAPPED),
    (MINECRAFT_NAMED, MINECRAFT_DEPENDENCIES),
    (MINECRAFT_INTERMEDIARY, MINECRAFT_DEPENDENCIES),
    (COMPILE, MAPPINGS),
    (ANNOTATION_PROCESSOR, MAPPINGS),
)


class PipelineWirer:
    """Build the configuration graph from pipeline stage descriptors."""

    def __init__(self, graph: Optional[ConfigurationGraph] = None) -> None:
        self.graph = graph if graph is not None else ConfigurationGraph()

    def declare_base(self) -> None:
        for name, transitive in BASE_CONFIGURATIONS:
            if name not in self.graph:
                self.graph.declare(name, transitive)

    def wire_stage(self, entry: PipelineStageEntry) -> None:
        graph = self.graph
        graph.declare(entry.source_config, transitive=True)
        graph.declare(entry.remapped_config, transitive=False)
        if entry.target_config not in graph:
            graph.declare(entry.target_config, transitive=True)

        graph.extend(entry.target_config, entry.remapped_config)
        if entry.on_mod_compile_classpath:
            graph.extend(MOD_COMPILE_CLASSPATH, entry.source_config)
            graph.extend(MOD_COMPILE_CLASSPATH_MAPPED, entry.remapped_config)

    def wire_pipeline(self, entries: Iterable[PipelineStageEntry]) -> ConfigurationGraph:
        """Apply every stage and then the fixed cross-links.

        Re-wiring the same entries leaves the graph unchanged.
        """
        self.declare_base()
        count = 0
        for entry in entries:
            self.wire_stage(entry)
            count += 1
        for child, parent in CROSS_LINKS:
            self.graph.extend(child, parent)
        logger.info("Wired %d pipeline stage(s) into %d configuration(s)", count, len(self.graph))
        return self.graph


def wire_pipeline(
    entries: Optional[Iterable[PipelineStageEntry]] = None,
    graph: Optional[ConfigurationGraph] = None,
) -> ConfigurationGraph:
    """Wire ``entries`` (default stage table when None) into ``graph``."""
    stages = list(entries) if entries is not None else default_pipeline()
    return PipelineWirer(graph).wire_pipeline(stages)


__all__ = [
    "PipelineWirer",
    "wire_pipeline",
    "BASE_CONFIGURATIONS",
    "CROSS_LINKS",
    "MOD_COMPILE_CLASSPATH",
    "MOD_COMPILE_CLASSPATH_MAPPED",
    "MINECRAFT",
    "MINECRAFT_NAMED",
    "MINECRAFT_INTERMEDIARY",
    "MINECRAFT_DEPENDENCIES",
    "INCLUDE",
    "MAPPINGS",
    "COMPILE",
    "ANNOTATION_PROCESSOR",
]
