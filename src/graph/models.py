"""Data models for the resolved dependency graph handed over by the build tool."""

import os
from dataclasses import dataclass, field
from typing import BinaryIO, List, Optional


@dataclass(frozen=True)
class ResolvedDependency:
    """One resolved dependency of a group, with the variant the build selected."""
    id: str  # group:name:version[:snapshotDetail], or "project :sub" for local projects
    variant: str = ""


@dataclass(frozen=True)
class CachedArtifact:
    """A file the build tool already downloaded into its local cache."""
    id: str  # group:name:version
    path: str

    @property
    def name(self) -> str:
        return os.path.basename(self.path)

    def open(self) -> BinaryIO:
        return open(self.path, "rb")


@dataclass
class DependencyGroup:
    """A resolvable dependency group ("configuration")."""
    name: str
    dependencies: List[ResolvedDependency] = field(default_factory=list)
    artifacts: List[CachedArtifact] = field(default_factory=list)
    can_be_resolved: bool = True

    def artifacts_for(self, module_id: str) -> List[CachedArtifact]:
        return [a for a in self.artifacts if a.id == module_id]


@dataclass
class BuildGraph:
    """Everything the walker needs from the build tool."""
    repositories: List[str] = field(default_factory=list)
    plugin_repositories: List[str] = field(default_factory=list)
    buildscript_groups: List[DependencyGroup] = field(default_factory=list)
    groups: List[DependencyGroup] = field(default_factory=list)
    source: Optional[str] = None


@dataclass(frozen=True)
class GroupFilter:
    """Include/exclude filter on group names; exclusion wins."""
    include: Optional[frozenset] = None
    exclude: frozenset = frozenset()

    def allows(self, name: str) -> bool:
        if name in self.exclude:
            return False
        return self.include is None or name in self.include
