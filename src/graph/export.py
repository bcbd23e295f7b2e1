"""Load the build graph export written by the build tool.

The export is a JSON document::

    {
      "repositories": ["https://repo.maven.apache.org/maven2/"],
      "pluginRepositories": [],
      "buildscriptConfigurations": [<group>],
      "configurations": [<group>]
    }

where each group is::

    {"name": "runtimeClasspath", "canBeResolved": true,
     "dependencies": [{"id": "g:n:v", "variant": "runtimeElements"}],
     "artifacts": [{"id": "g:n:v", "file": "path/to/n-v.jar"}]}

Relative artifact paths are resolved against the directory of the export.
"""
from __future__ import annotations

import json
import logging
import os
from typing import Any, Dict, List

from .models import BuildGraph, CachedArtifact, DependencyGroup, ResolvedDependency

logger = logging.getLogger(__name__)


class GraphExportError(Exception):
    """The build graph export is missing or malformed."""


def _string_list(document: Dict[str, Any], key: str) -> List[str]:
    value = document.get(key, [])
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise GraphExportError(f"'{key}' must be a list of strings")
    return list(value)


def _list(container: Dict[str, Any], key: str, where: str) -> List[Any]:
    value = container.get(key, [])
    if not isinstance(value, list):
        raise GraphExportError(f"{where}: '{key}' must be a list")
    return value


def _group(raw: Any, base_dir: str) -> DependencyGroup:
    if not isinstance(raw, dict) or not isinstance(raw.get("name"), str):
        raise GraphExportError("Every configuration needs a 'name'")

    dependencies = []
    for dep in _list(raw, "dependencies", f"Configuration {raw['name']}"):
        if not isinstance(dep, dict) or not isinstance(dep.get("id"), str):
            raise GraphExportError(f"Configuration {raw['name']}: dependency without 'id'")
        dependencies.append(ResolvedDependency(id=dep["id"], variant=str(dep.get("variant") or "")))

    artifacts = []
    for art in _list(raw, "artifacts", f"Configuration {raw['name']}"):
        if not isinstance(art, dict) or not isinstance(art.get("id"), str) or not isinstance(art.get("file"), str):
            raise GraphExportError(f"Configuration {raw['name']}: artifact needs 'id' and 'file'")
        artifacts.append(CachedArtifact(id=art["id"], path=os.path.join(base_dir, art["file"])))

    return DependencyGroup(
        name=raw["name"],
        dependencies=dependencies,
        artifacts=artifacts,
        can_be_resolved=bool(raw.get("canBeResolved", True)),
    )


def load_build_graph(path: str) -> BuildGraph:
    """Read a build graph export.

    Args:
        path: Location of the JSON export.

    Returns:
        BuildGraph: repositories and dependency groups.

    Raises:
        GraphExportError: file unreadable, invalid JSON, or wrong shape.
    """
    try:
        with open(path, "r", encoding="utf-8") as handle:
            document = json.load(handle)
    except OSError as exc:
        raise GraphExportError(f"Cannot read build graph export {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise GraphExportError(f"Invalid JSON in build graph export {path}: {exc}") from exc

    if not isinstance(document, dict):
        raise GraphExportError("Build graph export must be a JSON object")

    base_dir = os.path.dirname(os.path.abspath(path))
    graph = BuildGraph(
        repositories=_string_list(document, "repositories"),
        plugin_repositories=_string_list(document, "pluginRepositories"),
        buildscript_groups=[_group(g, base_dir) for g in _list(document, "buildscriptConfigurations", "Build graph export")],
        groups=[_group(g, base_dir) for g in _list(document, "configurations", "Build graph export")],
        source=path,
    )
    logger.info(
        "Loaded build graph: %d repositories, %d build script and %d project configurations.",
        len(graph.repositories),
        len(graph.buildscript_groups),
        len(graph.groups),
    )
    return graph
