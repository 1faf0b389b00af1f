"""Snapshot diff engine: classifies every artifact across two build records."""

from __future__ import annotations

from collections.abc import Generator, Iterable
import logging
import threading

from bundlr.core.diff.models import (
    AssetDiff,
    BundleDiff,
    ChangeType,
    DiffReport,
    FileDiff,
    GroupDiff,
)
from bundlr.core.errors import DiffOrderError
from bundlr.core.fingerprint import format_bytes
from bundlr.core.manifest.models import (
    AUTO_GROUP_LABEL,
    BuildRecord,
    RecordAsset,
    RecordBundle,
    VersionFileInfo,
)
from bundlr.core.progress import ProgressCallback, ProgressUpdate, drive_steps

logger = logging.getLogger(__name__)

PHASE = "diff"


def classify(old_hash: str | None, new_hash: str | None) -> ChangeType:
    """Classify an item from its hash in each snapshot (None = absent)."""
    if old_hash is None:
        return ChangeType.ADDED
    if new_hash is None:
        return ChangeType.REMOVED
    if old_hash == new_hash:
        return ChangeType.SAME
    return ChangeType.MODIFIED


def size_delta(change: ChangeType, old_size: int, new_size: int) -> int:
    if change == ChangeType.ADDED:
        return new_size
    if change == ChangeType.REMOVED:
        return -old_size
    if change == ChangeType.MODIFIED:
        return new_size - old_size
    return 0


def _first_wins(items: Iterable, key) -> dict:
    index: dict = {}
    for item in items:
        index.setdefault(key(item), item)
    return index


def diff_assets(
    old_assets: Iterable[RecordAsset] | None,
    new_assets: Iterable[RecordAsset] | None,
) -> tuple[AssetDiff, ...]:
    """Diff two asset lists; paths are compared by hash."""
    old_index: dict[str, RecordAsset] = _first_wins(old_assets or (), lambda a: a.path)
    new_index: dict[str, RecordAsset] = _first_wins(new_assets or (), lambda a: a.path)

    diffs: list[AssetDiff] = []
    for path in [*new_index, *(p for p in old_index if p not in new_index)]:
        old = old_index.get(path)
        new = new_index.get(path)
        change = classify(old.hash if old else None, new.hash if new else None)
        old_size = old.size if old else 0
        new_size = new.size if new else 0
        diffs.append(
            AssetDiff(
                path=path,
                change=change,
                old_size=old_size,
                new_size=new_size,
                changed_size=size_delta(change, old_size, new_size),
            )
        )
    return tuple(diffs)


class SnapshotDiffEngine:
    """Compares two build records, old first.

    Example:
        >>> engine = SnapshotDiffEngine(history.load_record(3), history.load_record(4))
        >>> report = engine.run()
        >>> report.bundle("assets_ui").change
        <ChangeType.MODIFIED: 'modified'>
    """

    def __init__(self, old: BuildRecord, new: BuildRecord) -> None:
        if old.timestamp > new.timestamp:
            raise DiffOrderError(
                f"Old record v{old.version_number} ({old.timestamp}) is newer than "
                f"v{new.version_number} ({new.timestamp})"
            )
        self.old = old
        self.new = new

    def run(
        self,
        progress: ProgressCallback | None = None,
        cancel_token: threading.Event | None = None,
    ) -> DiffReport:
        """Compute the full report.

        Raises:
            BuildCancelled: If cancel_token is set before the diff finishes
        """
        return drive_steps(self.iter_steps(), PHASE, progress, cancel_token)

    def iter_steps(self) -> Generator[ProgressUpdate, None, DiffReport]:
        report = DiffReport(
            old_version=self.old.version_number, new_version=self.new.version_number
        )

        old_files: dict[str, VersionFileInfo] = _first_wins(
            self.old.version_file_infos, lambda f: f.name
        )
        new_files: dict[str, VersionFileInfo] = _first_wins(
            self.new.version_file_infos, lambda f: f.name
        )
        old_bundles: dict[str, RecordBundle] = _first_wins(
            self.old.iter_bundles(), lambda b: b.name
        )
        new_bundles: dict[str, RecordBundle] = _first_wins(
            self.new.iter_bundles(), lambda b: b.name
        )

        file_names = [*new_files, *(n for n in old_files if n not in new_files)]
        bundle_names = [*new_bundles, *(n for n in old_bundles if n not in new_bundles)]
        total = len(file_names) + len(bundle_names)
        step = 0

        for name in file_names:
            file_diff = self._diff_file(name, old_files.get(name), new_files.get(name))
            report.version_files.append(file_diff)
            self._count(report, file_diff.change, file_diff.old_size, file_diff.new_size)
            step += 1
            yield ProgressUpdate(PHASE, step, total, name)

        groups: dict[str, GroupDiff] = {}
        for name in bundle_names:
            bundle_diff = self._diff_bundle(name, old_bundles.get(name), new_bundles.get(name))
            group = groups.setdefault(bundle_diff.group, GroupDiff(name=bundle_diff.group))
            group.bundles.append(bundle_diff)
            self._count(report, bundle_diff.change, bundle_diff.old_size, bundle_diff.new_size)
            step += 1
            yield ProgressUpdate(PHASE, step, total, name)

        report.groups = list(groups.values())
        logger.info(
            f"Diff v{report.old_version} -> v{report.new_version}: "
            f"{report.count(ChangeType.ADDED)} added, {report.count(ChangeType.REMOVED)} removed, "
            f"{report.count(ChangeType.MODIFIED)} modified, "
            f"update size {format_bytes(report.update_size)}"
        )
        return report

    @staticmethod
    def _count(report: DiffReport, change: ChangeType, old_size: int, new_size: int) -> None:
        if change != ChangeType.ADDED:
            report.old_total_count += 1
            report.old_total_size += old_size
        if change != ChangeType.REMOVED:
            report.new_total_count += 1
            report.new_total_size += new_size
        if change.is_update:
            report.update_count += 1
            report.update_size += new_size

    @staticmethod
    def _diff_file(name: str, old: VersionFileInfo | None, new: VersionFileInfo | None) -> FileDiff:
        change = classify(old.hash if old else None, new.hash if new else None)
        old_size = old.size if old else 0
        new_size = new.size if new else 0
        return FileDiff(
            name=name,
            change=change,
            old_size=old_size,
            new_size=new_size,
            changed_size=size_delta(change, old_size, new_size),
        )

    @staticmethod
    def _diff_bundle(name: str, old: RecordBundle | None, new: RecordBundle | None) -> BundleDiff:
        change = classify(old.hash if old else None, new.hash if new else None)
        owner = new if new is not None else old
        old_size = old.size if old else 0
        new_size = new.size if new else 0

        assets: tuple[AssetDiff, ...] = ()
        directly_changed = change in (ChangeType.ADDED, ChangeType.REMOVED)
        if change == ChangeType.MODIFIED:
            if old.assets is not None and new.assets is not None:
                assets = diff_assets(old.assets, new.assets)
                directly_changed = any(a.change != ChangeType.SAME for a in assets)
            else:
                # Asset hashes were not collected for one side
                directly_changed = True
        elif change == ChangeType.ADDED:
            assets = diff_assets(None, new.assets)
        elif change == ChangeType.REMOVED:
            assets = diff_assets(old.assets, None)

        return BundleDiff(
            name=name,
            group=owner.group or AUTO_GROUP_LABEL,
            change=change,
            is_raw_file=owner.is_raw_file,
            old_size=old_size,
            new_size=new_size,
            old_hash=old.hash if old else "",
            new_hash=new.hash if new else "",
            changed_size=size_delta(change, old_size, new_size),
            directly_changed=directly_changed,
            assets=assets,
        )
