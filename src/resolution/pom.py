"""POM handling: register parent POMs and imported BOMs, recursively.

A POM can refer to a parent POM and manage dependencies through BOMs; the
build tool needs all of them offline. The document is stream-parsed, the
parent and managed-dependency coordinates are resolved against the
repository the POM came from, and the ancestors are walked in turn.
"""
from __future__ import annotations

import io
import logging
import re
import xml.etree.ElementTree as ET
from typing import TYPE_CHECKING, Dict, Iterator, List, Optional, Set, Tuple

from constants import Constants
from common.logging_utils import extra_context, is_debug_enabled
from .coordinate import Coordinate

if TYPE_CHECKING:  # pragma: no cover
    from .resolver import ArtifactResolver

logger = logging.getLogger(__name__)

_PLACEHOLDER = re.compile(r"\$\{(.+?)\}")
_COORDINATE_FIELDS = ("groupId", "artifactId", "version")

PARENT_PATH = ("project", "parent")
MANAGED_DEPENDENCY_PATH = ("project", "dependencyManagement", "dependencies", "dependency")

PARENT = "parent"
MANAGED = "dependency"


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


class PomDocument:
    """Stream parser for one POM document.

    One instance per document; it keeps the element path, the declared
    properties and the project's own coordinates seen so far.
    """

    def __init__(self, contents: bytes):
        self._contents = contents
        self._path: List[str] = []
        self.properties: Dict[str, str] = {}
        self.project: Dict[str, str] = {}
        self.parent: Dict[str, str] = {}

    def substitute(self, text: str, depth: int = 0) -> str:
        """Replace ``${name}`` references; unknown references are left as-is.

        Expansion stops, leaving the references in place, once the result
        would grow past ``Constants.MAX_PROPERTY_LENGTH`` characters.
        """
        if depth >= Constants.MAX_PROPERTY_DEPTH or "${" not in text:
            return text

        pieces: List[str] = []
        size = 0
        last = 0
        for match in _PLACEHOLDER.finditer(text):
            value = self._lookup(match.group(1))
            piece = text[last:match.start()] + (match.group(0) if value is None else value)
            size += len(piece)
            if size > Constants.MAX_PROPERTY_LENGTH:
                logger.debug("Property expansion of %.60s exceeds %d characters", text, Constants.MAX_PROPERTY_LENGTH)
                return text
            pieces.append(piece)
            last = match.end()
        pieces.append(text[last:])
        result = "".join(pieces)

        if len(result) > Constants.MAX_PROPERTY_LENGTH:
            return text
        if result == text:
            return result
        return self.substitute(result, depth + 1)

    def _lookup(self, key: str) -> Optional[str]:
        if key in self.properties:
            return self.properties[key]
        if key.startswith("project.parent."):
            return self.parent.get(key[len("project.parent."):])
        for prefix in ("project.", "pom."):
            if key.startswith(prefix):
                key = key[len(prefix):]
                break
        else:
            if key != "version":
                return None
        # A project inherits groupId and version from its parent when omitted.
        return self.project.get(key) or (self.parent.get(key) if key != "artifactId" else None)

    def coordinates(self) -> Iterator[Tuple[str, Coordinate]]:
        """Yield ``(kind, coordinate)`` for the parent and each managed dependency.

        ``kind`` is ``"parent"`` or ``"dependency"``. Parsing stops quietly at
        the first XML error; whatever was yielded before stands.
        """
        fields: Dict[str, str] = {}
        try:
            for event, elem in ET.iterparse(io.BytesIO(self._contents), events=("start", "end")):
                if event == "start":
                    self._path.append(_local_name(elem.tag))
                    continue

                path = tuple(self._path)
                text = (elem.text or "").strip()

                if len(path) == 3 and path[:2] == ("project", "properties"):
                    self.properties[path[2]] = text
                elif len(path) == 2 and path[0] == "project" and path[1] in _COORDINATE_FIELDS:
                    self.project[path[1]] = self.substitute(text)
                elif path[:-1] in (PARENT_PATH, MANAGED_DEPENDENCY_PATH) and path[-1] in _COORDINATE_FIELDS:
                    fields[path[-1]] = self.substitute(text)
                    if path[:-1] == PARENT_PATH:
                        self.parent[path[-1]] = fields[path[-1]]
                elif path in (PARENT_PATH, MANAGED_DEPENDENCY_PATH):
                    coordinate = self._coordinate(fields)
                    fields = {}
                    if coordinate is not None:
                        yield (PARENT if path == PARENT_PATH else MANAGED), coordinate

                self._path.pop()
                if len(path) == 2:
                    elem.clear()
        except ET.ParseError as exc:
            if is_debug_enabled(logger):
                logger.debug(
                    "Stopped parsing POM",
                    extra=extra_context(
                        event="parse",
                        component="pom",
                        action="iterparse",
                        outcome="parse_error",
                        error=str(exc)
                    )
                )

    @staticmethod
    def _coordinate(fields: Dict[str, str]) -> Optional[Coordinate]:
        values = [fields.get(name, "") for name in _COORDINATE_FIELDS]
        if not all(values) or any("${" in value for value in values):
            logger.debug("Skipping incomplete POM coordinate %s", ":".join(values))
            return None
        return Coordinate(*values)


class PomHandler:
    """Register the POMs a POM depends on through its parent and BOM imports."""

    def __init__(self, resolver: "ArtifactResolver", max_depth: int = Constants.MAX_POM_DEPTH):
        self.resolver = resolver
        self.max_depth = max_depth

    def add_parent_poms(self, contents: bytes, repository: str) -> None:
        """Resolve and register the ancestors of the POM in ``contents``.

        Args:
            contents: The POM, as downloaded.
            repository: Repository the POM was downloaded from; ancestors are
                looked up there too.
        """
        self._walk(contents, repository, 0, set())

    def _walk(self, contents: bytes, repository: str, depth: int, visited: Set[str]) -> None:
        if depth >= self.max_depth:
            logger.warning("POM ancestry deeper than %d levels, not following further", self.max_depth)
            return

        for kind, coordinate in PomDocument(contents).coordinates():
            if coordinate.module_id in visited:
                continue
            visited.add(coordinate.module_id)

            pom = self.resolver.try_resolve(coordinate, repository, coordinate.filename("pom"))
            if pom is None:
                continue
            if kind == PARENT or coordinate.name.endswith(Constants.BOM_SUFFIX):
                self._walk(pom, repository, depth + 1, visited)
