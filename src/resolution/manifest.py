"""The de-duplicated download manifest and its JSON rendering."""
from __future__ import annotations

import json
import logging
import os
import stat
import tempfile
import threading
from dataclasses import dataclass
from typing import Any, Dict, List

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ManifestEntry:
    """One file to download: where from, where to, and its digest."""

    url: str
    digest: str
    dest: str
    dest_filename: str

    @property
    def key(self) -> str:
        return f"{self.dest}/{self.dest_filename}"

    def to_json(self) -> Dict[str, Any]:
        return {
            "type": "file",
            "url": self.url,
            "sha512": self.digest,
            "dest": self.dest,
            "dest-filename": self.dest_filename,
        }


class ManifestStore:
    """Thread-safe mapping of ``dest/dest-filename`` to entries.

    Registering the same key again replaces the previous entry, so repeated
    discovery of one file never produces duplicates.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: Dict[str, ManifestEntry] = {}

    def upsert(self, entry: ManifestEntry) -> None:
        with self._lock:
            self._entries[entry.key] = entry

    def contains(self, dest: str, dest_filename: str) -> bool:
        with self._lock:
            return f"{dest}/{dest_filename}" in self._entries

    def entries(self) -> List[ManifestEntry]:
        """Entries in ascending key order."""
        with self._lock:
            return [self._entries[key] for key in sorted(self._entries)]

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


def render_manifest(entries: List[ManifestEntry]) -> str:
    """Render entries as the pretty-printed JSON sources list."""
    if not entries:
        return "[\n]\n"
    return json.dumps([e.to_json() for e in entries], indent=2, ensure_ascii=False) + "\n"


def _output_mode(path: str) -> int:
    """Mode of the existing file at ``path``, else what a plain ``open`` would create."""
    try:
        return stat.S_IMODE(os.stat(path).st_mode)
    except FileNotFoundError:
        umask = os.umask(0)
        os.umask(umask)
        return 0o666 & ~umask


def write_manifest(text: str, path: str) -> None:
    """Write ``text`` to ``path`` atomically.

    The content goes to a temporary file in the target directory first and
    is renamed into place, so ``path`` never holds a truncated manifest. The
    file keeps the mode of the one it replaces.
    """
    directory = os.path.dirname(os.path.abspath(path))
    os.makedirs(directory, exist_ok=True)
    mode = _output_mode(path)
    fd, tmp_path = tempfile.mkstemp(prefix=".offline-sources-", suffix=".json", dir=directory)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as handle:
            handle.write(text)
        os.chmod(tmp_path, mode)
        os.replace(tmp_path, path)
    except BaseException:
        if os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise
    logger.info("Sources list has been successfully written to: %s", path)
