"""Locate an artifact in a resolved dependency graph and inject its closure.

The input graph is owned by the host resolver and is only read here.
Searching escalates through an explicit, ordered list of project scopes
(innermost first) so that tooling declared on a parent project is found
for its submodules too.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional, Sequence

from moddev.errors import ExtensionNotFound
from moddev.graph.configurations import Configuration, DependencyNotation

logger = logging.getLogger("moddev.graph.scanner")

ModulePredicate = Callable[[DependencyNotation], bool]


@dataclass
class DependencyResultNode:
    """One node of an already-resolved dependency graph.

    Attributes:
        identity: Module coordinates, or None for components that are not
            published modules (e.g. sibling projects).
        children: Ordered dependencies of the selected component.
        resolved: False when the host resolver failed to resolve the
            dependency; such nodes and their subtrees are skipped.
    """

    identity: Optional[DependencyNotation] = None
    children: List["DependencyResultNode"] = field(default_factory=list)
    resolved: bool = True

    @classmethod
    def from_dict(cls, data: dict) -> "DependencyResultNode":
        """Build a tree from ``{"id": "g:m:v" | None, "resolved": bool, "children": [...]}``."""
        raw_id = data.get("id")
        identity = DependencyNotation.parse(raw_id) if raw_id else None
        children = [cls.from_dict(child) for child in data.get("children") or []]
        return cls(identity=identity, children=children, resolved=data.get("resolved", True))


@dataclass
class ScopeLevel:
    """Root dependencies of one project's build-tooling classpath."""

    name: str
    roots: Sequence[DependencyResultNode]


def module_predicate(group: str, module: str) -> ModulePredicate:
    def _matches(identity: DependencyNotation) -> bool:
        return identity.group == group and identity.name == module

    return _matches


MIXIN_COMPILE_EXTENSIONS = module_predicate("net.fabricmc", "fabric-mixin-compile-extensions")


class TransitiveDependencyScanner:
    """Inject every match of a predicate, with its closure, into a configuration."""

    def inject_closure(self, node: DependencyResultNode, target: Configuration) -> int:
        """Add ``node`` and every resolved descendant to ``target``.

        Returns:
            Number of identities visited (duplicates included).
        """
        if not node.resolved:
            return 0
        count = 0
        if node.identity is not None:
            target.add_dependency(node.identity)
            logger.debug("Added module %s to %s", node.identity, target.name)
            count = 1
        for child in node.children:
            count += self.inject_closure(child, target)
        return count

    def find_and_inject(
        self,
        root: DependencyResultNode,
        target: Configuration,
        predicate: ModulePredicate,
    ) -> bool:
        """Depth-first search of ``root`` for modules matching ``predicate``.

        The scan continues past the first match so every occurrence's
        closure is injected. Unresolved nodes are skipped with their
        subtrees.
        """
        if not root.resolved:
            return False

        found = False
        if root.identity is not None and predicate(root.identity):
            self.inject_closure(root, target)
            found = True

        for child in root.children:
            if self.find_and_inject(child, target, predicate):
                found = True
        return found

    def scan_roots(
        self,
        roots: Iterable[DependencyResultNode],
        target: Configuration,
        predicate: ModulePredicate,
    ) -> bool:
        found = False
        for root in roots:
            if self.find_and_inject(root, target, predicate):
                found = True
        return found

    def scan_scopes(
        self,
        scopes: Sequence[ScopeLevel],
        target: Configuration,
        predicate: ModulePredicate,
    ) -> bool:
        """Scan each scope in order, stopping at the first with a match.

        Returns:
            True if some scope matched, False once every scope was searched.
            The miss is logged as a warning and never raised.
        """
        for scope in scopes:
            if self.scan_roots(scope.roots, target, predicate):
                logger.info("Found extension in %s; injected into %s", scope.name, target.name)
                return True
            logger.debug("No match in scope %s", scope.name)

        missing = ExtensionNotFound([scope.name for scope in scopes])
        logger.warning("%s; continuing without it", missing)
        return False


__all__ = [
    "DependencyResultNode",
    "ScopeLevel",
    "TransitiveDependencyScanner",
    "ModulePredicate",
    "module_predicate",
    "MIXIN_COMPILE_EXTENSIONS",
]
