"""Resolved dependency graph handed over by the build tool.

- models.py: repositories, dependency groups, cached artifacts, group filter
- export.py: loader for the JSON build graph export
"""

from .models import BuildGraph, CachedArtifact, DependencyGroup, GroupFilter, ResolvedDependency
from .export import GraphExportError, load_build_graph

__all__ = [
    "BuildGraph",
    "CachedArtifact",
    "DependencyGroup",
    "GroupFilter",
    "ResolvedDependency",
    "GraphExportError",
    "load_build_graph",
]
