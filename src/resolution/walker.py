"""Walk the resolved dependency graph and resolve every dependency concurrently."""
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence, Set

from constants import Constants
from common.logging_utils import extra_context, is_debug_enabled
from graph.models import BuildGraph, DependencyGroup, GroupFilter, ResolvedDependency
from .coordinate import Coordinate, MalformedCoordinateError
from .resolver import ArtifactResolver

logger = logging.getLogger(__name__)


class WorkerTaskFailure(RuntimeError):
    """A unit of work raised; the run is aborted before any output is written."""

    def __init__(self, dependency_id: str, cause: BaseException):
        super().__init__(f"Resolving {dependency_id} failed: {cause}")
        self.dependency_id = dependency_id
        self.cause = cause


@dataclass(frozen=True)
class WorkUnit:
    """One dependency to resolve, with its group's cached files and the repositories to try."""
    dependency: ResolvedDependency
    group: DependencyGroup
    repositories: Sequence[str]


@dataclass
class WalkSummary:
    submitted: int = 0
    resolved: List[str] = field(default_factory=list)
    unresolved: List[str] = field(default_factory=list)
    malformed: List[str] = field(default_factory=list)


def build_repository_list(urls: Iterable[str]) -> List[str]:
    """Normalize to a trailing slash, drop local repositories and duplicates, keep order."""
    repositories: List[str] = []
    for url in urls:
        if not url or url.startswith(Constants.LOCAL_REPOSITORY_PREFIX):
            continue
        url = url if url.endswith("/") else url + "/"
        if url not in repositories:
            repositories.append(url)
    return repositories


class DependencyWalker:
    """Drive resolution over the build script and project dependency groups.

    Args:
        resolver: Resolver collecting the manifest.
        max_workers: Size of the worker pool; units are I/O bound.
        group_filter: Include/exclude filter on group names.
    """

    def __init__(
        self,
        resolver: ArtifactResolver,
        max_workers: int = Constants.MAX_WORKERS,
        group_filter: Optional[GroupFilter] = None,
    ):
        self.resolver = resolver
        self.max_workers = max(1, max_workers)
        self.group_filter = group_filter or GroupFilter()

    def walk(self, graph: BuildGraph) -> WalkSummary:
        """Resolve all dependencies of ``graph``.

        Raises:
            WorkerTaskFailure: a unit raised; raised only after every unit
                of the pass has finished.
        """
        plugin_repositories = build_repository_list(
            list(graph.plugin_repositories) + [Constants.GRADLE_PLUGIN_PORTAL]
        )
        project_repositories = build_repository_list(list(graph.repositories) + plugin_repositories)

        summary = WalkSummary()
        seen: Set[str] = set()
        # Build script classpath first, then the project's own groups.
        for groups, repositories in (
            (graph.buildscript_groups, plugin_repositories),
            (graph.groups, project_repositories),
        ):
            units = self._collect(groups, repositories, seen)
            summary.submitted += len(units)
            self._run(units, summary)

        logger.info(
            "Resolved %d of %d dependencies (%d not found, %d malformed).",
            len(summary.resolved),
            summary.submitted,
            len(summary.unresolved),
            len(summary.malformed),
        )
        return summary

    def _collect(
        self, groups: Iterable[DependencyGroup], repositories: Sequence[str], seen: Set[str]
    ) -> List[WorkUnit]:
        units = []
        for group in groups:
            if not group.can_be_resolved or not self.group_filter.allows(group.name):
                logger.debug("Skipping configuration %s", group.name)
                continue
            for dependency in group.dependencies:
                # Don't process the same dependency multiple times
                if dependency.id in seen:
                    continue
                seen.add(dependency.id)
                # Local sub-projects are built, not downloaded
                if dependency.id.startswith(Constants.LOCAL_PROJECT_PREFIX):
                    continue
                units.append(WorkUnit(dependency, group, repositories))
        return units

    def _run(self, units: List[WorkUnit], summary: WalkSummary) -> None:
        if not units:
            return
        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(units))) as pool:
            futures = [pool.submit(self._resolve_unit, unit) for unit in units]
            wait(futures)

        failure = None
        for unit, future in zip(units, futures):
            exc = future.exception()
            if exc is not None:
                logger.error("Resolving %s failed: %s", unit.dependency.id, exc)
                failure = failure or (unit, exc)
                continue
            outcome = future.result()
            if outcome == "malformed":
                summary.malformed.append(unit.dependency.id)
            elif outcome == "resolved":
                summary.resolved.append(unit.dependency.id)
            else:
                summary.unresolved.append(unit.dependency.id)

        if failure is not None:
            unit, exc = failure
            raise WorkerTaskFailure(unit.dependency.id, exc) from exc

    def _resolve_unit(self, unit: WorkUnit) -> str:
        try:
            coordinate = Coordinate.parse(unit.dependency.id)
        except MalformedCoordinateError as exc:
            logger.error("%s; skipping", exc)
            return "malformed"

        repository = self.resolver.resolve_dependency(
            coordinate,
            unit.dependency.variant,
            unit.repositories,
            unit.group.artifacts_for(coordinate.module_id),
        )
        if is_debug_enabled(logger):
            logger.debug(
                "Unit finished",
                extra=extra_context(
                    event="function_exit",
                    component="walker",
                    action="resolve_unit",
                    outcome="resolved" if repository else "not_found",
                    dependency=unit.dependency.id
                )
            )
        if repository is None:
            logger.warning("Dependency %s not found in any repository", coordinate)
            return "unresolved"
        return "resolved"
