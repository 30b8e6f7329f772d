"""Publication helpers."""

from .pom import PomDependency, merge_pom_dependencies, pom_candidates

__all__ = ["PomDependency", "merge_pom_dependencies", "pom_candidates"]
