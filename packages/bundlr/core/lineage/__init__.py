"""Version lineage management and garbage collection."""

from bundlr.core.lineage.manager import (
    AUTO_GROUP_LABEL,
    VersionLineageManager,
    bundles_changed,
    epoch_millis,
)
from bundlr.core.lineage.models import GarbageReport, PublishResult

__all__ = [
    "AUTO_GROUP_LABEL",
    "GarbageReport",
    "PublishResult",
    "VersionLineageManager",
    "bundles_changed",
    "epoch_millis",
]
