"""Maven coordinates and the repository paths derived from them."""

from __future__ import annotations

from dataclasses import dataclass

from constants import Constants


class MalformedCoordinateError(ValueError):
    """Raised when an identifier cannot be split into group, name and version."""

    def __init__(self, identifier: str):
        super().__init__(f"Malformed dependency identifier: {identifier!r}")
        self.identifier = identifier


@dataclass(frozen=True)
class Coordinate:
    """A resolved dependency.

    Attributes:
        group: Maven groupId (dotted).
        name: Maven artifactId.
        version: Version; snapshots end with ``-SNAPSHOT``.
        snapshot_detail: Timestamped build qualifier (``yyyymmdd.hhmmss-n``),
            only set for snapshots.
    """

    group: str
    name: str
    version: str
    snapshot_detail: str = ""

    @classmethod
    def parse(cls, identifier: str) -> "Coordinate":
        """Parse ``group:name:version[:snapshotDetail]``.

        Raises:
            MalformedCoordinateError: fewer than three segments, or an empty
                group, name or version.
        """
        parts = identifier.strip().split(":")
        if len(parts) < 3 or not all(parts[:3]):
            raise MalformedCoordinateError(identifier)
        return cls(
            group=parts[0],
            name=parts[1],
            version=parts[2],
            snapshot_detail=parts[3] if len(parts) > 3 else "",
        )

    @property
    def is_snapshot(self) -> bool:
        return self.version.endswith(Constants.SNAPSHOT_SUFFIX)

    @property
    def module_id(self) -> str:
        """``group:name:version``, the key locally cached artifacts are filed under."""
        return f"{self.group}:{self.name}:{self.version}"

    def path(self) -> str:
        """Repository-relative directory, e.g. ``com/example/lib/1.0``."""
        return f"{self.group.replace('.', '/')}/{self.name}/{self.version}"

    def filename(self, ext: str) -> str:
        """Remote filename ``name-version.ext``.

        Binary artifacts of a snapshot are published under their timestamped
        name, so the ``SNAPSHOT`` token is replaced by the snapshot detail.
        Description and metadata files keep the literal token.
        """
        version = self.version
        if ext in Constants.BINARY_EXTENSIONS and self.is_snapshot and self.snapshot_detail:
            version = version.replace(Constants.SNAPSHOT_MARKER, self.snapshot_detail)
        return f"{self.name}-{version}.{ext}"

    def __str__(self) -> str:
        return self.module_id
