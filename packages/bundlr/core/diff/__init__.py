"""Snapshot diff engine for build records."""

from bundlr.core.diff.engine import (
    AUTO_GROUP_LABEL,
    SnapshotDiffEngine,
    classify,
    diff_assets,
    size_delta,
)
from bundlr.core.diff.models import (
    AssetDiff,
    BundleDiff,
    ChangeType,
    DiffReport,
    FileDiff,
    GroupDiff,
)

__all__ = [
    "AUTO_GROUP_LABEL",
    "AssetDiff",
    "BundleDiff",
    "ChangeType",
    "DiffReport",
    "FileDiff",
    "GroupDiff",
    "SnapshotDiffEngine",
    "classify",
    "diff_assets",
    "size_delta",
]
