"""Artifact resolution engine.

This package finds the remote location of every file an offline build needs:
- coordinate.py: Maven coordinates, paths and filenames
- fetcher.py: memoized HEAD probes and downloads
- digest.py: SHA-512 digests with bounded concurrency
- module_metadata.py: Gradle module file parsing
- pom.py: parent POM and BOM walking
- resolver.py: per-dependency resolution and the manifest
- walker.py: concurrent walk over the dependency graph
"""

from .coordinate import Coordinate, MalformedCoordinateError
from .digest import DigestAlgorithmUnavailable, DigestEngine
from .fetcher import ContentFetcher
from .manifest import ManifestEntry, ManifestStore, render_manifest, write_manifest
from .resolver import ArtifactResolver
from .walker import DependencyWalker, WalkSummary, WorkerTaskFailure, build_repository_list

__all__ = [
    "Coordinate",
    "MalformedCoordinateError",
    "DigestAlgorithmUnavailable",
    "DigestEngine",
    "ContentFetcher",
    "ManifestEntry",
    "ManifestStore",
    "render_manifest",
    "write_manifest",
    "ArtifactResolver",
    "DependencyWalker",
    "WalkSummary",
    "WorkerTaskFailure",
    "build_repository_list",
]
