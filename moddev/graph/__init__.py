"""Configuration graph, pipeline wiring and dependency scanning."""

from .configurations import Configuration, ConfigurationGraph, DependencyNotation
from .pipeline import PipelineWirer, wire_pipeline
from .scanner import (
    DependencyResultNode,
    ScopeLevel,
    TransitiveDependencyScanner,
    module_predicate,
    MIXIN_COMPILE_EXTENSIONS,
)

__all__ = [
    "Configuration",
    "ConfigurationGraph",
    "DependencyNotation",
    "PipelineWirer",
    "wire_pipeline",
    "DependencyResultNode",
    "ScopeLevel",
    "TransitiveDependencyScanner",
    "module_predicate",
    "MIXIN_COMPILE_EXTENSIONS",
]
