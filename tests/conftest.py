"""Shared fixtures: an in-memory repository fetcher and POM/module builders."""

import json
import threading

import pytest

from resolution import ArtifactResolver, DigestEngine

REPO = "https://repo.example/"


class FakeFetcher:
    """Stands in for ContentFetcher, serving files from a dict.

    ``files`` maps URL to bytes (downloadable and probe-able); ``valid``
    holds URLs that only answer HEAD requests.
    """

    def __init__(self, files=None, valid=None):
        self.files = dict(files or {})
        self.valid = set(valid or ())
        self.probed = []
        self.fetched = []
        self._lock = threading.Lock()

    def probe(self, url):
        with self._lock:
            self.probed.append(url)
        return url in self.valid or url in self.files

    def fetch(self, url):
        with self._lock:
            self.fetched.append(url)
        return self.files.get(url)

    @property
    def probes_performed(self):
        return len(self.probed)

    @property
    def fetches_performed(self):
        return len(self.fetched)


def pom_xml(group, artifact, version, parent=None, managed=(), properties=None):
    """Build a namespaced POM document."""
    parts = ['<project xmlns="http://maven.apache.org/POM/4.0.0">']
    if parent:
        parts.append(
            "<parent><groupId>%s</groupId><artifactId>%s</artifactId><version>%s</version></parent>" % parent
        )
    if properties:
        parts.append("<properties>")
        parts.extend(f"<{k}>{v}</{k}>" for k, v in properties.items())
        parts.append("</properties>")
    if group:
        parts.append(f"<groupId>{group}</groupId>")
    parts.append(f"<artifactId>{artifact}</artifactId>")
    if version:
        parts.append(f"<version>{version}</version>")
    if managed:
        parts.append("<dependencyManagement><dependencies>")
        for g, a, v in managed:
            parts.append(
                f"<dependency><groupId>{g}</groupId><artifactId>{a}</artifactId>"
                f"<version>{v}</version><type>pom</type><scope>import</scope></dependency>"
            )
        parts.append("</dependencies></dependencyManagement>")
    parts.append("</project>")
    return "".join(parts).encode("utf-8")


def module_json(*variants):
    """Build a module metadata document from ``(name, files, extra)`` tuples."""
    doc = {"formatVersion": "1.1", "variants": []}
    for name, files, extra in variants:
        variant = {
            "name": name,
            "attributes": {"org.gradle.category": "library"},
            "files": [{"name": f, "url": f, "sha512": "ignored"} for f in files],
        }
        variant.update(extra)
        doc["variants"].append(variant)
    return json.dumps(doc).encode("utf-8")


@pytest.fixture
def make_resolver():
    """Factory returning ``(resolver, fetcher)`` for the given remote files."""

    def _make(files=None, valid=None, dest=None):
        fetcher = FakeFetcher(files, valid)
        return ArtifactResolver(dest, fetcher, DigestEngine()), fetcher

    return _make
