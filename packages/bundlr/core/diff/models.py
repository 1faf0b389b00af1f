"""Diff result types."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum


class ChangeType(str, Enum):
    """Classification of one item across two snapshots."""

    ADDED = "added"
    REMOVED = "removed"
    MODIFIED = "modified"
    SAME = "same"

    @property
    def is_update(self) -> bool:
        """Whether clients must download the new item."""
        return self in (ChangeType.ADDED, ChangeType.MODIFIED)


@dataclass(frozen=True)
class AssetDiff:
    path: str
    change: ChangeType
    old_size: int = 0
    new_size: int = 0
    changed_size: int = 0


@dataclass(frozen=True)
class FileDiff:
    """Diff of the version file or of one manifest file."""

    name: str
    change: ChangeType
    old_size: int = 0
    new_size: int = 0
    changed_size: int = 0


@dataclass(frozen=True)
class BundleDiff:
    """Diff of one bundle or raw file.

    ``directly_changed`` tells whether the bundle's own assets changed
    (versus only its dependency graph). Without asset hashes on both sides
    a modified bundle always counts as directly changed.
    """

    name: str
    group: str
    change: ChangeType
    is_raw_file: bool = False
    old_size: int = 0
    new_size: int = 0
    old_hash: str = ""
    new_hash: str = ""
    changed_size: int = 0
    directly_changed: bool = False
    assets: tuple[AssetDiff, ...] = ()


@dataclass
class GroupDiff:
    name: str
    bundles: list[BundleDiff] = field(default_factory=list)

    @property
    def changed_size(self) -> int:
        return sum(b.changed_size for b in self.bundles)

    @property
    def has_changes(self) -> bool:
        return any(b.change != ChangeType.SAME for b in self.bundles)


@dataclass
class DiffReport:
    """Full comparison of two build records.

    Totals count version/manifest files plus bundles; ``update_*`` covers
    the added and modified ones (what a client downloads to move from old
    to new).
    """

    old_version: int
    new_version: int
    version_files: list[FileDiff] = field(default_factory=list)
    groups: list[GroupDiff] = field(default_factory=list)
    old_total_count: int = 0
    old_total_size: int = 0
    new_total_count: int = 0
    new_total_size: int = 0
    update_count: int = 0
    update_size: int = 0

    @property
    def bundles(self) -> Iterator[BundleDiff]:
        for group in self.groups:
            yield from group.bundles

    @property
    def bundle_changed_size(self) -> int:
        return sum(group.changed_size for group in self.groups)

    @property
    def changed_size(self) -> int:
        return self.bundle_changed_size + sum(f.changed_size for f in self.version_files)

    def bundle(self, name: str) -> BundleDiff:
        """Look up a bundle diff by name.

        Raises:
            KeyError: If no bundle has that name
        """
        for bundle in self.bundles:
            if bundle.name == name:
                return bundle
        raise KeyError(name)

    def group(self, name: str) -> GroupDiff:
        for group in self.groups:
            if group.name == name:
                return group
        raise KeyError(name)

    def count(self, change: ChangeType) -> int:
        return sum(1 for b in self.bundles if b.change == change)
