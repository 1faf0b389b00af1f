"""Grouping engine: declarative groups to asset assignments."""

from bundlr.core.grouping.engine import GroupingEngine
from bundlr.core.grouping.models import AssetAssignment, GroupingResult
from bundlr.core.grouping.naming import bundle_name_for, is_scene, validate_group

__all__ = [
    "AssetAssignment",
    "GroupingEngine",
    "GroupingResult",
    "bundle_name_for",
    "is_scene",
    "validate_group",
]
