"""Grouping data types."""

from __future__ import annotations

from dataclasses import dataclass, field
import posixpath


@dataclass(frozen=True)
class AssetAssignment:
    """One source file assigned to a target bundle.

    Attributes:
        source_path: Project-relative POSIX path of the source file
        bundle_name: Target bundle name (raw files: build file name)
        is_raw: Copied verbatim instead of compiled
        external_origin_path: External folder the file was collected from
        placement_folder: Output sub-folder for external raw files
        group_name: Label of the owning group (None for synthesized bundles)
    """

    source_path: str
    bundle_name: str
    is_raw: bool = False
    external_origin_path: str | None = None
    placement_folder: str | None = None
    group_name: str | None = None

    @property
    def is_external(self) -> bool:
        return self.external_origin_path is not None

    @property
    def load_path(self) -> str:
        """Path recorded for the asset in manifests and build records.

        External raw files drop their external folder prefix and are placed
        under the placement folder instead.
        """
        if not self.is_external:
            return self.source_path
        origin = self.external_origin_path.rstrip("/")
        relative = self.source_path
        if origin and (relative == origin or relative.startswith(origin + "/")):
            relative = relative[len(origin) :].lstrip("/")
        if not relative:
            relative = posixpath.basename(self.source_path)
        return posixpath.join(self.placement_folder or "", relative)

    @property
    def output_path(self) -> str:
        """Raw file destination relative to the platform build root."""
        if self.is_external and self.placement_folder:
            return posixpath.join(self.placement_folder, self.bundle_name)
        return self.bundle_name


@dataclass
class GroupingResult:
    """Assignments collected from one manifest config.

    ``bundled`` holds every compiled-bundle assignment (duplicates included,
    deduplication happens during dependency analysis);
    ``dependency_candidates`` is the subset from groups that handle
    dependencies; ``raw`` goes straight to the output folder.
    """

    manifest_name: str
    bundled: list[AssetAssignment] = field(default_factory=list)
    dependency_candidates: list[AssetAssignment] = field(default_factory=list)
    raw: list[AssetAssignment] = field(default_factory=list)
    validation_errors: list[str] = field(default_factory=list)
    group_labels: dict[str, str] = field(default_factory=dict)

    @property
    def asset_count(self) -> int:
        return len(self.bundled) + len(self.raw)
