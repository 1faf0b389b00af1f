"""Grouping engine: resolves group selectors into asset assignments."""

from __future__ import annotations

from collections.abc import Iterator
import fnmatch
import logging
import os
from pathlib import Path
import posixpath

from bundlr.core.config.models import BundleMode, GroupConfig, ManifestConfig, ProjectConfig
from bundlr.core.errors import ConfigValidationError
from bundlr.core.fingerprint import compute_file_hash
from bundlr.core.grouping.models import AssetAssignment, GroupingResult
from bundlr.core.grouping.naming import bundle_name_for, validate_group

logger = logging.getLogger(__name__)


class GroupingEngine:
    """Turns the groups of a manifest config into asset assignments.

    Example:
        >>> engine = GroupingEngine(config)
        >>> result = engine.collect(config.get_manifest("base"))
        >>> [a.bundle_name for a in result.bundled]
    """

    def __init__(self, config: ProjectConfig) -> None:
        self.config = config
        self.project_root = Path(config.project_root)

    def collect(self, manifest: ManifestConfig) -> GroupingResult:
        """Collect assignments for every active group of a manifest.

        Invalid groups are skipped and reported in ``validation_errors``.
        """
        result = GroupingResult(manifest_name=manifest.name)

        for group in manifest.groups:
            if not self._is_active(group):
                continue

            try:
                assignments = self.collect_group(group)
            except ConfigValidationError as e:
                full_message = f"{manifest.name}/{group.name}: {e.message}"
                logger.warning(f"Skipping group: {full_message}")
                result.validation_errors.append(full_message)
                continue

            logger.debug(f"Group {manifest.name}/{group.name}: {len(assignments)} assets")

            for assignment in assignments:
                result.group_labels.setdefault(assignment.load_path, group.name)

            if group.is_raw:
                result.raw.extend(assignments)
            else:
                result.bundled.extend(assignments)
                if group.needs_dependency_analysis:
                    result.dependency_candidates.extend(assignments)

        logger.info(
            f"Collected manifest '{manifest.name}': {len(result.bundled)} bundled, "
            f"{len(result.raw)} raw, {len(result.validation_errors)} skipped groups"
        )
        return result

    def collect_group(self, group: GroupConfig) -> list[AssetAssignment]:
        """Resolve one group into assignments.

        Raises:
            ConfigValidationError: If the group is misconfigured
        """
        message = validate_group(group, self.config)
        if message is not None:
            raise ConfigValidationError(group.name, message)

        if group.mode == BundleMode.MATCHED_FOLDER:
            return self._collect_matched_folders(group)

        if group.is_raw and group.is_external_path:
            paths = self._select(group.external_path, group.search_pattern)
            origin = posixpath.normpath(group.external_path.replace("\\", "/"))
            if (self.project_root / group.external_path).is_file():
                origin = origin.rpartition("/")[0]
            return [
                AssetAssignment(
                    source_path=path,
                    bundle_name=self._name(path, group),
                    is_raw=True,
                    external_origin_path=origin,
                    placement_folder=group.placement_folder.replace("\\", "/").strip("/"),
                    group_name=group.name,
                )
                for path in paths
            ]

        return [
            AssetAssignment(
                source_path=path,
                bundle_name=self._name(path, group),
                is_raw=group.is_raw,
                group_name=group.name,
            )
            for path in self._select(group.target, group.filter)
        ]

    def _is_active(self, group: GroupConfig) -> bool:
        if not group.enabled:
            logger.debug(f"Group '{group.name}' is disabled")
            return False
        if group.is_raw and group.platforms and self.config.platform not in group.platforms:
            logger.debug(f"Group '{group.name}' excludes platform '{self.config.platform}'")
            return False
        return True

    def _name(self, path: str, group: GroupConfig, bundle_file_name: str | None = None) -> str:
        content_hash = None
        if group.is_raw:
            content_hash = compute_file_hash(self.project_root / path)
        return bundle_name_for(
            path,
            group.mode,
            group.bundle_file_name if bundle_file_name is None else bundle_file_name,
            hash_only=self.config.hash_only_names,
            content_hash=content_hash,
            scene_extensions=self.config.scene_extensions,
        )

    def _relative(self, path: Path) -> str:
        return Path(os.path.relpath(path, self.project_root)).as_posix()

    def _is_source(self, path: Path) -> bool:
        if path.name.startswith("."):
            return False
        return not any(path.name.endswith(suffix) for suffix in self.config.ignored_suffixes)

    def _iter_files(self, folder: Path, pattern: str = "") -> Iterator[Path]:
        for path in sorted(folder.rglob("*")):
            if not path.is_file() or not self._is_source(path):
                continue
            if pattern and not fnmatch.fnmatch(path.name, pattern):
                continue
            yield path

    def _select(self, target: str, pattern: str) -> list[str]:
        """Resolve a selector: a single file, or every matching file under a folder."""
        path = self.project_root / target
        if path.is_file():
            return [self._relative(path)]
        return [self._relative(p) for p in self._iter_files(path, pattern)]

    def _collect_matched_folders(self, group: GroupConfig) -> list[AssetAssignment]:
        root = self.project_root / group.target
        if not root.is_dir():
            return []

        folders: list[Path] = []
        for matched in sorted(p for p in root.rglob(group.search_pattern) if p.is_dir()):
            folder = matched
            for _ in range(group.parent_folder_depth):
                folder = folder.parent
            # Never ascend to (or above) the selector root
            if folder == root or root not in folder.parents:
                folder = matched
            folders.append(folder)

        assignments: list[AssetAssignment] = []
        seen: set[str] = set()
        for folder in folders:
            folder_name = self._relative(folder)
            for file_path in self._iter_files(folder, group.filter):
                source_path = self._relative(file_path)
                if source_path in seen:
                    continue
                seen.add(source_path)
                assignments.append(
                    AssetAssignment(
                        source_path=source_path,
                        bundle_name=self._name(source_path, group, folder_name),
                        group_name=group.name,
                    )
                )
        return assignments
