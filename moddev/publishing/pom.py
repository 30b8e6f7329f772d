"""Merge mod dependencies into a published Maven POM.

Only the dependency-merge rule lives here: for each pipeline stage with a
Maven scope, every declared dependency of its source configuration is
appended to ``<dependencies>`` unless the same ``groupId:artifactId`` is
already listed. Existing entries are never rewritten.
"""

from __future__ import annotations

import logging
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from typing import Iterable, List, Optional, Set, Tuple

from moddev.config.schema import PipelineStageEntry
from moddev.graph.configurations import ConfigurationGraph

logger = logging.getLogger("moddev.publishing.pom")

MAVEN_POM_NS = "http://maven.apache.org/POM/4.0.0"

_XML_DECLARATION_RE = re.compile(r"\A\s*(<\?xml[^>]*\?>)")

ET.register_namespace("", MAVEN_POM_NS)


@dataclass(frozen=True)
class PomDependency:
    """A ``<dependency>`` candidate for the published POM."""

    group_id: str
    artifact_id: str
    version: Optional[str]
    scope: str

    @property
    def key(self) -> Tuple[str, str]:
        return (self.group_id, self.artifact_id)


def pom_candidates(
    graph: ConfigurationGraph, entries: Iterable[PipelineStageEntry]
) -> List[PomDependency]:
    """Collect publishable dependencies from stages carrying a Maven scope."""
    candidates: List[PomDependency] = []
    for entry in entries:
        if not entry.has_maven_scope or entry.source_config not in graph:
            continue
        for dep in graph.get(entry.source_config).resolved_dependencies():
            candidates.append(PomDependency(dep.group, dep.name, dep.version, entry.maven_scope))
    candidates.sort(key=lambda c: (c.group_id, c.artifact_id, c.version or ""))
    return candidates


def merge_pom_dependencies(xml_text: str, candidates: Iterable[PomDependency]) -> str:
    """Append candidates missing from the POM's dependency list.

    Args:
        xml_text: Existing POM document.
        candidates: Dependencies to add, in order. The first candidate for
            a given ``(groupId, artifactId)`` wins among candidates too.

    Returns:
        The updated document, or ``xml_text`` itself when nothing was added.
    """
    parser = ET.XMLParser(target=ET.TreeBuilder(insert_comments=True))
    root = ET.fromstring(xml_text, parser=parser)
    ns = _detect_namespace(root)

    dependencies = _child(root, "dependencies", ns)
    found = _existing_keys(dependencies, ns) if dependencies is not None else set()

    added = 0
    for candidate in candidates:
        if candidate.key in found:
            logger.debug("Keeping existing POM entry for %s:%s", *candidate.key)
            continue
        if dependencies is None:
            dependencies = ET.SubElement(root, _qualify("dependencies", ns))
        node = ET.SubElement(dependencies, _qualify("dependency", ns))
        _append_text(node, "groupId", candidate.group_id, ns)
        _append_text(node, "artifactId", candidate.artifact_id, ns)
        if candidate.version:
            _append_text(node, "version", candidate.version, ns)
        _append_text(node, "scope", candidate.scope, ns)
        found.add(candidate.key)
        added += 1

    if not added:
        return xml_text

    logger.info("Added %d dependency entr%s to POM", added, "y" if added == 1 else "ies")
    merged = _serialize(root, ns)
    declaration = _XML_DECLARATION_RE.match(xml_text)
    if declaration:
        merged = f"{declaration.group(1)}\n{merged}"
    return merged


def _serialize(root: ET.Element, ns: str) -> str:
    if not ns or ns == MAVEN_POM_NS:
        return ET.tostring(root, encoding="unicode")
    try:
        return ET.tostring(root, encoding="unicode", default_namespace=ns)
    except ValueError:
        # unprefixed attribute names; keep generated prefixes
        return ET.tostring(root, encoding="unicode")


def _existing_keys(dependencies: ET.Element, ns: str) -> Set[Tuple[str, str]]:
    keys: Set[Tuple[str, str]] = set()
    for dep in dependencies.findall(_qualify("dependency", ns)):
        group_id = _child_text(dep, "groupId", ns)
        artifact_id = _child_text(dep, "artifactId", ns)
        if group_id and artifact_id:
            keys.add((group_id, artifact_id))
    return keys


def _qualify(tag: str, ns: str) -> str:
    return f"{{{ns}}}{tag}" if ns else tag


def _child(elem: ET.Element, tag: str, ns: str) -> Optional[ET.Element]:
    return elem.find(_qualify(tag, ns))


def _child_text(elem: ET.Element, tag: str, ns: str) -> Optional[str]:
    target = _child(elem, tag, ns)
    if target is not None and target.text:
        return target.text.strip()
    return None


def _append_text(parent: ET.Element, tag: str, text: str, ns: str) -> None:
    ET.SubElement(parent, _qualify(tag, ns)).text = text


def _detect_namespace(root: ET.Element) -> str:
    if root.tag.startswith("{"):
        return root.tag.split("}")[0][1:]
    return ""


__all__ = ["PomDependency", "pom_candidates", "merge_pom_dependencies"]
