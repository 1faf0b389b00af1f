"""Lineage result types."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from bundlr.core.manifest.models import BuildRecord, VersionContainer


@dataclass
class PublishResult:
    """Outcome of publishing a packaging run.

    Attributes:
        changed: Whether any bundle hash or manifest changed
        version: Current version number after the run
        container: Written version container (None when unchanged)
        record: Written build record (None when unchanged)
        new_files: Build-root relative names of files new in this version
        new_files_size: Total size of new_files in bytes
        upload_list_path: ``new_files_v{N}.txt`` in the upload folder, if written
    """

    changed: bool
    version: int
    container: VersionContainer | None = None
    record: BuildRecord | None = None
    new_files: list[str] = field(default_factory=list)
    new_files_size: int = 0
    upload_list_path: Path | None = None


@dataclass
class GarbageReport:
    """Files removed from the platform build directory."""

    deleted: list[str] = field(default_factory=list)
    freed_bytes: int = 0
    kept: int = 0
