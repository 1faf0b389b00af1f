"""Protocol for build history storage."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Protocol

from bundlr.core.manifest.models import BuildRecord, VersionContainer


@dataclass(frozen=True)
class RecordRef:
    """Identifies one stored build record."""

    version: int
    timestamp: int
    file_name: str


class HistoryRepository(Protocol):
    """
    Protocol for build history storage.

    Records are immutable once saved. Several records may share a version
    number (after an operator renumbering); lookups by version resolve to
    the newest timestamp.
    """

    def save_record(self, record: BuildRecord) -> RecordRef:
        """Persist a build record."""
        ...

    def save_container(self, container: VersionContainer) -> str:
        """Persist a numbered, timestamped copy of a version container."""
        ...

    def list_records(self) -> list[RecordRef]:
        """All stored records, newest first."""
        ...

    def load_record(self, version: int) -> BuildRecord:
        """
        Load the newest record with this version.

        Raises:
            RecordNotFoundError: If no record exists for version
        """
        ...

    def latest_record(self, version: int | None = None) -> BuildRecord | None:
        """Newest record overall, or newest with the given version."""
        ...

    def delete_records(self, refs: Iterable[RecordRef]) -> int:
        """Delete records and their container copies; returns the count deleted."""
        ...

    def purge(
        self,
        keep_latest: int | None = None,
        versions: Iterable[int] | None = None,
    ) -> list[RecordRef]:
        """Delete stale records selected by count or version; returns what was deleted."""
        ...

    def rename_version(self, old_version: int, new_version: int, timestamp: int) -> bool:
        """Renumber the record (and container copy) written at timestamp."""
        ...

    def set_comment(self, ref: RecordRef, comment: str) -> None:
        """Attach an operator comment to a record (empty clears it)."""
        ...

    def comments(self) -> dict[str, str]:
        """Record file name -> comment."""
        ...
