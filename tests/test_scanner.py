"""Tests for the transitive dependency scanner."""

from __future__ import annotations

import logging

import pytest

from moddev.graph.configurations import ConfigurationGraph, DependencyNotation
from moddev.graph.scanner import (
    MIXIN_COMPILE_EXTENSIONS,
    DependencyResultNode,
    ScopeLevel,
    TransitiveDependencyScanner,
    module_predicate,
)

EXT = "net.fabricmc:fabric-mixin-compile-extensions"


def _node(notation: str | None, *children: DependencyResultNode, resolved: bool = True) -> DependencyResultNode:
    identity = DependencyNotation.parse(notation) if notation else None
    return DependencyResultNode(identity=identity, children=list(children), resolved=resolved)


@pytest.fixture
def target():
    graph = ConfigurationGraph()
    return graph.declare("annotationProcessor")


def _injected(config) -> set[str]:
    return {str(dep) for dep in config.dependencies}


def test_both_occurrences_injected_with_closures(target) -> None:
    """The scan continues past the first match."""
    root = _node(
        "net.fabricmc:fabric-loom:0.2.0",
        _node(f"{EXT}:0.1.0", _node("org.ow2.asm:asm:7.0", _node("org.ow2.asm:asm-tree:7.0"))),
        _node(
            "net.fabricmc:tiny-remapper:0.1.0",
            _node(f"{EXT}:0.1.1", _node("net.fabricmc:sponge-mixin:0.7.11")),
        ),
    )

    found = TransitiveDependencyScanner().find_and_inject(root, target, MIXIN_COMPILE_EXTENSIONS)

    assert found is True
    assert _injected(target) == {
        f"{EXT}:0.1.0",
        "org.ow2.asm:asm:7.0",
        "org.ow2.asm:asm-tree:7.0",
        f"{EXT}:0.1.1",
        "net.fabricmc:sponge-mixin:0.7.11",
    }


def test_duplicate_closure_tolerated(target) -> None:
    shared = _node("org.ow2.asm:asm:7.0")
    root = _node(
        "a:root:1",
        _node(f"{EXT}:0.1.0", shared),
        _node("a:other:1", _node(f"{EXT}:0.1.0", shared)),
    )

    assert TransitiveDependencyScanner().find_and_inject(root, target, MIXIN_COMPILE_EXTENSIONS)
    assert len(target.dependencies) == 2


def test_unresolved_subtrees_skipped(target) -> None:
    root = _node(
        "a:root:1",
        _node(f"{EXT}:0.1.0", resolved=False),
        _node(f"{EXT}:0.2.0", _node("x:broken:1", resolved=False), _node("x:fine:1")),
    )

    assert TransitiveDependencyScanner().find_and_inject(root, target, MIXIN_COMPILE_EXTENSIONS)
    assert _injected(target) == {f"{EXT}:0.2.0", "x:fine:1"}


def test_non_module_components_are_traversed(target) -> None:
    """Project components carry no identity but their children are searched."""
    root = _node(None, _node(f"{EXT}:0.1.0"))

    assert TransitiveDependencyScanner().find_and_inject(root, target, MIXIN_COMPILE_EXTENSIONS)
    assert _injected(target) == {f"{EXT}:0.1.0"}


def test_escalates_to_parent_scope(target) -> None:
    scopes = [
        ScopeLevel("subproject", [_node("a:plugin:1", _node("a:util:1"))]),
        ScopeLevel("root", [_node("b:plugin:1", _node(f"{EXT}:0.1.0"))]),
        ScopeLevel("never-reached", [_node(f"{EXT}:9.9.9")]),
    ]

    found = TransitiveDependencyScanner().scan_scopes(scopes, target, MIXIN_COMPILE_EXTENSIONS)

    assert found is True
    assert _injected(target) == {f"{EXT}:0.1.0"}


def test_match_in_later_root_of_same_scope(target) -> None:
    scope = ScopeLevel("project", [_node("a:x:1"), _node(f"{EXT}:0.1.0")])

    assert TransitiveDependencyScanner().scan_scopes([scope], target, MIXIN_COMPILE_EXTENSIONS)


def test_not_found_is_non_fatal(target, caplog: pytest.LogCaptureFixture) -> None:
    scopes = [ScopeLevel("subproject", [_node("a:x:1")]), ScopeLevel("root", [])]

    with caplog.at_level(logging.WARNING, logger="moddev.graph.scanner"):
        found = TransitiveDependencyScanner().scan_scopes(
            scopes, target, module_predicate("g", "missing")
        )

    assert found is False
    assert target.dependencies == []
    assert "subproject, root" in caplog.text


def test_tree_from_dict(target) -> None:
    tree = DependencyResultNode.from_dict(
        {
            "id": "a:root:1",
            "children": [
                {"id": f"{EXT}:0.1.0", "children": [{"id": "c:dep:2"}]},
                {"id": f"{EXT}:0.0.1", "resolved": False},
            ],
        }
    )

    assert TransitiveDependencyScanner().find_and_inject(tree, target, MIXIN_COMPILE_EXTENSIONS)
    assert _injected(target) == {f"{EXT}:0.1.0", "c:dep:2"}
