"""Filesystem-backed history repository.

Layout (flat, numbered files inside the reserved history folder)::

    ~history/
        build_record_v{N}_{timestamp}.json
        version_v{N}_{timestamp}.json
        comments.json
"""

from __future__ import annotations

from collections.abc import Iterable
import logging
from pathlib import Path
import re

from bundlr.core.errors import RecordNotFoundError
from bundlr.core.history.protocols import RecordRef
from bundlr.core.manifest.io import load_model, save_model, try_load_model
from bundlr.core.manifest.models import BuildRecord, VersionContainer
from bundlr.core.utils.json import read_json, write_json

logger = logging.getLogger(__name__)

RECORD_PREFIX = "build_record_v"
CONTAINER_PREFIX = "version_v"
COMMENTS_FILE = "comments.json"

_NAME_PATTERN = re.compile(
    r"^(?P<prefix>build_record_v|version_v)(?P<version>\d+)_(?P<ts>\d+)\.json$"
)


def record_file_name(version: int, timestamp: int) -> str:
    return f"{RECORD_PREFIX}{version}_{timestamp}.json"


def container_file_name(version: int, timestamp: int) -> str:
    return f"{CONTAINER_PREFIX}{version}_{timestamp}.json"


def parse_file_name(file_name: str) -> tuple[str, int, int] | None:
    """Split a history file name into (prefix, version, timestamp)."""
    match = _NAME_PATTERN.match(file_name)
    if match is None:
        return None
    return match["prefix"], int(match["version"]), int(match["ts"])


class FSHistoryRepository:
    """History repository storing flat JSON files in one folder.

    Example:
        >>> history = FSHistoryRepository(config.history_path)
        >>> [ref.version for ref in history.list_records()]
    """

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def _path(self, file_name: str) -> Path:
        return self.root / file_name

    def save_record(self, record: BuildRecord) -> RecordRef:
        file_name = record_file_name(record.version_number, record.timestamp)
        save_model(self._path(file_name), record)
        logger.debug(f"Saved build record {file_name}")
        return RecordRef(record.version_number, record.timestamp, file_name)

    def save_container(self, container: VersionContainer) -> str:
        file_name = container_file_name(container.version_number, container.timestamp_epoch)
        save_model(self._path(file_name), container)
        return file_name

    def list_records(self) -> list[RecordRef]:
        if not self.root.is_dir():
            return []
        refs: list[RecordRef] = []
        for path in self.root.iterdir():
            parsed = parse_file_name(path.name)
            if parsed is None or parsed[0] != RECORD_PREFIX:
                continue
            refs.append(RecordRef(version=parsed[1], timestamp=parsed[2], file_name=path.name))
        return sorted(refs, key=lambda r: (r.timestamp, r.version), reverse=True)

    def find(self, version: int) -> RecordRef | None:
        """Newest record reference with this version."""
        for ref in self.list_records():
            if ref.version == version:
                return ref
        return None

    def load_record(self, version: int) -> BuildRecord:
        ref = self.find(version)
        if ref is None:
            raise RecordNotFoundError(version)
        return load_model(self._path(ref.file_name), BuildRecord)

    def latest_record(self, version: int | None = None) -> BuildRecord | None:
        refs = self.list_records()
        if version is not None:
            refs = [r for r in refs if r.version == version]
        for ref in refs:
            record = try_load_model(self._path(ref.file_name), BuildRecord)
            if record is not None:
                return record
        return None

    def delete_records(self, refs: Iterable[RecordRef]) -> int:
        comments = self.comments()
        deleted = 0
        for ref in refs:
            for file_name in (ref.file_name, container_file_name(ref.version, ref.timestamp)):
                path = self._path(file_name)
                if path.exists():
                    path.unlink()
            comments.pop(ref.file_name, None)
            deleted += 1
            logger.debug(f"Deleted build record {ref.file_name}")
        self._write_comments(comments)
        return deleted

    def purge(
        self,
        keep_latest: int | None = None,
        versions: Iterable[int] | None = None,
    ) -> list[RecordRef]:
        """Delete stale history.

        Args:
            keep_latest: Keep only this many newest records (by timestamp)
            versions: Delete every record with one of these version numbers

        Returns:
            References of the deleted records
        """
        refs = self.list_records()
        selected: list[RecordRef] = []
        if keep_latest is not None:
            if keep_latest < 0:
                raise ValueError(f"keep_latest must be >= 0, got {keep_latest}")
            selected.extend(refs[keep_latest:])
        if versions is not None:
            wanted = set(versions)
            selected.extend(r for r in refs if r.version in wanted and r not in selected)
        self.delete_records(selected)
        if selected:
            logger.info(f"Purged {len(selected)} build records")
        return selected

    def rename_version(self, old_version: int, new_version: int, timestamp: int) -> bool:
        if old_version == new_version:
            return True
        old_path = self._path(record_file_name(old_version, timestamp))
        record = try_load_model(old_path, BuildRecord)
        if record is None:
            return False

        renamed = record.model_copy(update={"version_number": new_version})
        new_ref = self.save_record(renamed)
        old_path.unlink()

        old_container = self._path(container_file_name(old_version, timestamp))
        container = try_load_model(old_container, VersionContainer)
        if container is not None:
            container.version_number = new_version
            self.save_container(container)
            old_container.unlink()

        comments = self.comments()
        comment = comments.pop(old_path.name, None)
        if comment is not None:
            comments[new_ref.file_name] = comment
            self._write_comments(comments)
        return True

    def set_comment(self, ref: RecordRef, comment: str) -> None:
        comments = self.comments()
        if comment:
            comments[ref.file_name] = comment
        else:
            comments.pop(ref.file_name, None)
        self._write_comments(comments)

    def comments(self) -> dict[str, str]:
        path = self._path(COMMENTS_FILE)
        if not path.is_file():
            return {}
        data = read_json(path)
        return {str(k): str(v) for k, v in data.items()} if isinstance(data, dict) else {}

    def _write_comments(self, comments: dict[str, str]) -> None:
        path = self._path(COMMENTS_FILE)
        if not comments and not path.exists():
            return
        write_json(path, dict(sorted(comments.items())))
