"""Artifact resolution: find where each required file is hosted and fingerprint it."""
from __future__ import annotations

import logging
import posixpath
from typing import Iterable, List, Optional, Sequence, Tuple
from urllib.parse import urlsplit

from constants import Constants
from common.logging_utils import extra_context, is_debug_enabled, safe_url
from graph.models import CachedArtifact
from .cache import SingleFlightCache
from .coordinate import Coordinate
from .digest import DigestEngine
from .fetcher import ContentFetcher
from .manifest import ManifestEntry, ManifestStore, render_manifest
from .module_metadata import (
    ModuleFiles,
    ModuleMetadataError,
    ModuleRedirect,
    ModuleResult,
    NoFilesDeclared,
    parse_module_metadata,
)
from .pom import PomHandler

logger = logging.getLogger(__name__)


def normalize_dest(dest: Optional[str]) -> str:
    """Return the download directory prefix, always ending with a slash."""
    dest = dest or Constants.DEFAULT_DOWNLOAD_DIRECTORY
    return dest if dest.endswith("/") else dest + "/"


class ArtifactResolver:
    """Resolve dependencies against repositories and collect the manifest.

    One instance per run. It owns the manifest and the digest memo table;
    the fetcher it is given owns the URL caches.

    Args:
        dest: Prefix for the ``dest`` field, ``offline-repository`` by default.
        fetcher: Memoizing content fetcher.
        digests: Digest engine.
        manifest: Manifest store to fill, a new one by default.
    """

    def __init__(
        self,
        dest: Optional[str],
        fetcher: ContentFetcher,
        digests: DigestEngine,
        manifest: Optional[ManifestStore] = None,
    ):
        self.dest = normalize_dest(dest)
        self.fetcher = fetcher
        self.digests = digests
        self.manifest = manifest if manifest is not None else ManifestStore()
        self.pom_handler = PomHandler(self)
        self._digest_cache: SingleFlightCache[str] = SingleFlightCache()

    # ------------------------------------------------------------------ core

    def resolve_dependency(
        self,
        coordinate: Coordinate,
        variant: str,
        repositories: Sequence[str],
        artifacts: Iterable[CachedArtifact],
    ) -> Optional[str]:
        """Register every file of ``coordinate`` found in the first repository that has it.

        Args:
            coordinate: Dependency to resolve.
            variant: Resolved variant name, selects files in the module file.
            repositories: Candidate repository base URLs, in order.
            artifacts: Files the build tool already downloaded for this run.

        Returns:
            The repository that held the module file or POM, else None.
        """
        artifacts = [a for a in artifacts if a.id == coordinate.module_id]

        for repository in repositories:
            module = self.try_resolve(coordinate, repository, coordinate.filename("module"))
            if module is not None:
                result = self._parse_module(coordinate, module, variant)
                if isinstance(result, ModuleRedirect):
                    module = self.try_resolve(coordinate, repository, result.url)
                    result = self._parse_module(coordinate, module, variant) if module is not None else None
                    if isinstance(result, ModuleRedirect):
                        logger.debug("Ignoring second redirect for %s to %s", coordinate, result.url)
                        result = None

                if isinstance(result, ModuleFiles):
                    for file in result.files:
                        self.resolve_cached(
                            coordinate, repository, artifacts, file.url, check_name=True, alt_name=file.name
                        )
                elif isinstance(result, NoFilesDeclared):
                    self.resolve_cached(coordinate, repository, artifacts, coordinate.filename("jar"))
            else:
                self.resolve_cached(coordinate, repository, artifacts, coordinate.filename("jar"))

            pom = self.try_resolve(coordinate, repository, coordinate.filename("pom"))
            if pom is not None:
                self.pom_handler.add_parent_poms(pom, repository)

            if repository == Constants.GRADLE_PLUGIN_PORTAL and coordinate.group.startswith(
                Constants.PLUGIN_GROUP_PREFIX
            ):
                self.add_plugin_marker(coordinate)

            if module is not None or pom is not None:
                if is_debug_enabled(logger):
                    logger.debug(
                        "Dependency resolved",
                        extra=extra_context(
                            event="resolve",
                            component="resolver",
                            action="resolve_dependency",
                            outcome="found",
                            target=safe_url(repository),
                            dependency=str(coordinate)
                        )
                    )
                return repository

        logger.debug("No repository holds a module file or POM for %s", coordinate)
        return None

    def _parse_module(self, coordinate: Coordinate, contents: bytes, variant: str) -> ModuleResult:
        try:
            return parse_module_metadata(contents, variant)
        except ModuleMetadataError as exc:
            logger.warning("Unreadable module file for %s: %s", coordinate, exc)
            return NoFilesDeclared()

    def add_plugin_marker(self, coordinate: Coordinate) -> Optional[bytes]:
        """Register the plugin marker POM of a plugin published as ``gradle.plugin.<id>``."""
        plugin_id = coordinate.group[len(Constants.PLUGIN_GROUP_PREFIX):]
        marker = Coordinate(
            group=plugin_id,
            name=plugin_id + Constants.PLUGIN_MARKER_SUFFIX,
            version=coordinate.version,
            snapshot_detail=coordinate.snapshot_detail,
        )
        return self.try_resolve(marker, Constants.GRADLE_PLUGIN_PORTAL, marker.filename("pom"))

    # ------------------------------------------------------- file resolution

    def try_resolve(self, coordinate: Coordinate, repository: str, filename: str) -> Optional[bytes]:
        """Download a file and register it in the manifest.

        ``filename`` is relative to the coordinate's directory and may
        contain a path (``../../other/1.0/other-1.0.module``); absolute URLs
        are used as they are.

        Returns:
            The downloaded bytes, or None when the file is not there.
        """
        url, relative = self._locate(coordinate, repository, filename)
        contents = self.fetcher.fetch(url)
        if contents is None:
            return None

        digest = self._digest_cache.get_or_compute(("url", url), lambda: self.digests.digest(contents))
        directory, dest_filename = posixpath.split(relative)
        dest = self.dest + directory
        self.generate_entry(url, digest, dest, dest_filename)

        # Snapshots are also looked up under their -SNAPSHOT name offline.
        if coordinate.is_snapshot and "." in dest_filename:
            ext = dest_filename.rsplit(".", 1)[1]
            snapshot_name = f"{coordinate.name}-{coordinate.version}.{ext}"
            if snapshot_name != dest_filename:
                self.generate_entry(url, digest, dest, snapshot_name)

        return contents

    def resolve_cached(  # pylint: disable=too-many-arguments, too-many-positional-arguments
        self,
        coordinate: Coordinate,
        repository: str,
        artifacts: Iterable[CachedArtifact],
        filename: str,
        check_name: bool = False,
        alt_name: Optional[str] = None,
    ) -> int:
        """Register locally cached artifacts whose remote URL checks out.

        The build tool already downloaded these files, so only a HEAD request
        is needed to confirm the remote location; the digest is computed from
        the local copy.

        Args:
            coordinate: Dependency the artifacts belong to.
            repository: Repository to build URLs against.
            artifacts: Locally cached files.
            filename: Requested remote filename.
            check_name: Only consider local files named ``filename`` or
                ``alt_name``, and register them as ``filename``.
            alt_name: Alternative local name accepted when ``check_name``.

        Returns:
            Number of entries registered.
        """
        path = coordinate.path()
        dest = self.dest + path
        registered = 0

        for artifact in artifacts:
            if artifact.id != coordinate.module_id:
                continue
            local_name = artifact.name
            if check_name and local_name not in (filename, alt_name):
                continue

            dest_filename = filename if check_name else local_name
            if self.manifest.contains(dest, dest_filename):
                continue

            url = self._first_valid(repository, path, self._candidate_names(coordinate, local_name, filename))
            if url is None:
                continue

            digest = self._digest_cache.get_or_compute(("file", artifact.path), lambda a=artifact: self._digest_file(a))
            self.generate_entry(url, digest, dest, dest_filename)
            registered += 1

        return registered

    @staticmethod
    def _candidate_names(coordinate: Coordinate, local_name: str, filename: str) -> List[str]:
        names = [local_name]
        if filename not in names:
            names.append(filename)
        if Constants.SNAPSHOT_MARKER in filename and coordinate.snapshot_detail:
            detailed = filename.replace(Constants.SNAPSHOT_MARKER, coordinate.snapshot_detail)
            if detailed not in names:
                names.append(detailed)
        return names

    def _first_valid(self, repository: str, path: str, names: Sequence[str]) -> Optional[str]:
        for name in names:
            url = f"{repository}{path}/{name}"
            if self.fetcher.probe(url):
                return url
        return None

    def _digest_file(self, artifact: CachedArtifact) -> str:
        with artifact.open() as stream:
            return self.digests.digest(stream)

    @staticmethod
    def _locate(coordinate: Coordinate, repository: str, filename: str) -> Tuple[str, str]:
        """Return the download URL and the repository-relative path of a file."""
        if urlsplit(filename).scheme:
            if filename.startswith(repository):
                relative = filename[len(repository):]
            else:
                relative = urlsplit(filename).path.lstrip("/")
            return filename, posixpath.normpath(relative)
        relative = posixpath.normpath(f"{coordinate.path()}/{filename}")
        return repository + relative, relative

    # ---------------------------------------------------------------- output

    def generate_entry(self, url: str, digest: str, dest: str, dest_filename: str) -> None:
        """Add or replace the manifest entry for ``dest/dest_filename``."""
        self.manifest.upsert(ManifestEntry(url=url, digest=digest, dest=dest, dest_filename=dest_filename))

    def serialize(self) -> List[ManifestEntry]:
        """All entries, sorted by destination path."""
        return self.manifest.entries()

    def render(self) -> str:
        """The manifest as JSON text."""
        return render_manifest(self.serialize())
