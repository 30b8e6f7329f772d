"""Configuration graph: named dependency sets with extends-from edges.

Each configuration is a node in a ``networkx.DiGraph``. An edge
``child -> parent`` means the child's resolved dependency set includes
the parent's. The graph is kept acyclic at all times; an ``extend`` that
would close a cycle is rejected before the edge is inserted.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Set

import networkx as nx

from moddev.errors import CycleError, UnknownConfigurationError

logger = logging.getLogger("moddev.graph.configurations")


@dataclass(frozen=True, order=True)
class DependencyNotation:
    """Module coordinates ``group:name:version`` of a declared dependency."""

    group: str
    name: str
    version: Optional[str] = None

    @classmethod
    def parse(cls, notation: str) -> "DependencyNotation":
        """Parse ``group:name[:version]``.

        Raises:
            ValueError: If group or name is missing.
        """
        parts = notation.strip().split(":")
        if len(parts) < 2 or not parts[0] or not parts[1]:
            raise ValueError(f"Invalid dependency notation '{notation}'")
        version = parts[2] if len(parts) > 2 and parts[2] else None
        return cls(parts[0], parts[1], version)

    @property
    def module_key(self) -> str:
        return f"{self.group}:{self.name}"

    def __str__(self) -> str:
        if self.version:
            return f"{self.group}:{self.name}:{self.version}"
        return self.module_key


class Configuration:
    """Handle for one named configuration.

    Handles are owned by their ConfigurationGraph; topology changes go
    through the graph so cycle checks always apply.
    """

    def __init__(self, graph: "ConfigurationGraph", name: str, transitive: bool) -> None:
        self._graph = graph
        self.name = name
        self.transitive = transitive
        # dict keeps insertion order and gives set semantics
        self._dependencies: Dict[DependencyNotation, None] = {}

    @property
    def dependencies(self) -> List[DependencyNotation]:
        """Dependencies declared directly on this configuration."""
        return list(self._dependencies)

    @property
    def extends_from(self) -> Set["Configuration"]:
        return {self._graph.get(name) for name in self._graph.parents(self.name)}

    def add_dependency(self, notation: "DependencyNotation | str") -> DependencyNotation:
        dep = DependencyNotation.parse(notation) if isinstance(notation, str) else notation
        if dep not in self._dependencies:
            self._dependencies[dep] = None
            logger.debug("Added %s to %s", dep, self.name)
        return dep

    def extend(self, parent: "Configuration | str") -> None:
        parent_name = parent if isinstance(parent, str) else parent.name
        self._graph.extend(self.name, parent_name)

    def resolved_dependencies(self) -> Set[DependencyNotation]:
        return self._graph.resolved_dependencies(self.name)

    def __repr__(self) -> str:
        return f"Configuration(name={self.name!r}, transitive={self.transitive})"


class ConfigurationGraph:
    """Mapping from configuration name to node plus extends-from edges."""

    def __init__(self) -> None:
        self._dag = nx.DiGraph()
        self._configs: Dict[str, Configuration] = {}

    def declare(self, name: str, transitive: bool = True) -> Configuration:
        """Create a configuration, or return the existing one.

        Re-declaring an existing name updates its transitivity flag and
        never creates a second node.
        """
        config = self._configs.get(name)
        if config is None:
            config = Configuration(self, name, transitive)
            self._configs[name] = config
            self._dag.add_node(name)
            logger.debug("Declared configuration %s (transitive=%s)", name, transitive)
        elif config.transitive != transitive:
            logger.debug("Configuration %s transitive: %s -> %s", name, config.transitive, transitive)
            config.transitive = transitive
        return config

    def get(self, name: str) -> Configuration:
        try:
            return self._configs[name]
        except KeyError:
            raise UnknownConfigurationError(name) from None

    def find(self, name: str) -> Optional[Configuration]:
        return self._configs.get(name)

    def extend(self, child: str, parent: str) -> None:
        """Make ``child`` extend from ``parent``.

        Raises:
            UnknownConfigurationError: If either name is undeclared.
            CycleError: If the edge would create a cycle. The graph is
                left unchanged.
        """
        for name in (child, parent):
            if name not in self._configs:
                raise UnknownConfigurationError(name)

        if self._dag.has_edge(child, parent):
            return

        if child == parent:
            raise CycleError(child, parent, [child, child])
        if nx.has_path(self._dag, parent, child):
            path = nx.shortest_path(self._dag, parent, child)
            raise CycleError(child, parent, [child] + path)

        self._dag.add_edge(child, parent)
        logger.debug("%s extends from %s", child, parent)

    def add_dependency(self, name: str, notation: "DependencyNotation | str") -> DependencyNotation:
        return self.get(name).add_dependency(notation)

    def parents(self, name: str) -> List[str]:
        """Direct extends-from targets of ``name``."""
        self.get(name)
        return sorted(self._dag.successors(name))

    def ancestors(self, name: str) -> Set[str]:
        """All configurations ``name`` transitively extends from."""
        self.get(name)
        return set(nx.descendants(self._dag, name))

    def resolved_dependencies(self, name: str) -> Set[DependencyNotation]:
        """Own declared dependencies plus those of every ancestor."""
        resolved: Set[DependencyNotation] = set(self.get(name).dependencies)
        for ancestor in self.ancestors(name):
            resolved.update(self._configs[ancestor].dependencies)
        return resolved

    def edges(self) -> List[tuple[str, str]]:
        return sorted(self._dag.edges())

    def names(self) -> List[str]:
        return list(self._configs)

    def to_dict(self) -> Dict[str, Dict[str, object]]:
        """Plain mapping view used by the CLI and tests."""
        return {
            name: {
                "transitive": config.transitive,
                "extends_from": self.parents(name),
                "dependencies": [str(d) for d in config.dependencies],
            }
            for name, config in self._configs.items()
        }

    def __contains__(self, name: object) -> bool:
        return name in self._configs

    def __iter__(self) -> Iterator[Configuration]:
        return iter(list(self._configs.values()))

    def __len__(self) -> int:
        return len(self._configs)


__all__ = ["Configuration", "ConfigurationGraph", "DependencyNotation"]
