"""Auto-grouping of shared dependencies.

A dependency referenced by two or more distinct owning assets, and not
already assigned by a group, is promoted into its own bundle named after
its containing folder. Dependencies with a single owner stay embedded in
that owner's bundle.
"""

from __future__ import annotations

from collections.abc import Generator, Sequence
from dataclasses import dataclass, field
import logging
import threading

from bundlr.core.config.models import BundleMode, ProjectConfig
from bundlr.core.dependencies.resolver import DependencyResolver
from bundlr.core.grouping.models import AssetAssignment
from bundlr.core.grouping.naming import bundle_name_for
from bundlr.core.progress import ProgressCallback, ProgressUpdate, drive_steps

logger = logging.getLogger(__name__)

PHASE = "dependencies"
PROMOTE_PHASE = "auto-grouping"


@dataclass
class AutoGroupResult:
    """Compiled-bundle assignments after deduplication and promotion.

    Attributes:
        assignments: Deduplicated primary assignments followed by promoted ones
        promoted: Synthesized shared-dependency assignments
        reverse_index: Dependency path -> owning source paths
        dropped_duplicates: Later assignments of an already-assigned source path
    """

    assignments: list[AssetAssignment] = field(default_factory=list)
    promoted: list[AssetAssignment] = field(default_factory=list)
    reverse_index: dict[str, list[str]] = field(default_factory=dict)
    dropped_duplicates: list[AssetAssignment] = field(default_factory=list)


class AutoGrouper:
    """Deduplicates assignments and promotes shared dependencies.

    The work is a resumable step sequence (``iter_steps``); ``run`` drives it
    with an optional progress callback and cancellation event. Nothing is
    written to disk in this phase, so cancellation leaves no partial state.
    """

    def __init__(self, resolver: DependencyResolver, config: ProjectConfig) -> None:
        self.resolver = resolver
        self.config = config

    def run(
        self,
        bundled: Sequence[AssetAssignment],
        candidates: Sequence[AssetAssignment],
        progress: ProgressCallback | None = None,
        cancel_token: threading.Event | None = None,
    ) -> AutoGroupResult:
        """Run the full sequence.

        Raises:
            BuildCancelled: If cancel_token is set before the sequence finishes
        """
        return drive_steps(self.iter_steps(bundled, candidates), PHASE, progress, cancel_token)

    def iter_steps(
        self,
        bundled: Sequence[AssetAssignment],
        candidates: Sequence[AssetAssignment],
    ) -> Generator[ProgressUpdate, None, AutoGroupResult]:
        result = AutoGroupResult()

        # Single owner per source path: first assignment wins
        owned: dict[str, AssetAssignment] = {}
        for assignment in bundled:
            if assignment.source_path in owned:
                result.dropped_duplicates.append(assignment)
                continue
            owned[assignment.source_path] = assignment
            result.assignments.append(assignment)

        for duplicate in result.dropped_duplicates:
            logger.debug(
                f"Dropped duplicate assignment {duplicate.source_path} "
                f"(group {duplicate.group_name}), kept {owned[duplicate.source_path].group_name}"
            )

        unique_candidates: list[str] = []
        seen: set[str] = set()
        for candidate in candidates:
            if candidate.source_path not in seen:
                seen.add(candidate.source_path)
                unique_candidates.append(candidate.source_path)

        total = len(unique_candidates)
        for index, owner in enumerate(unique_candidates):
            for dep in self.resolver.closure(owner):
                result.reverse_index.setdefault(dep, []).append(owner)
            yield ProgressUpdate(PHASE, index + 1, total, owner)

        dependencies = sorted(result.reverse_index)
        for index, dep in enumerate(dependencies):
            yield ProgressUpdate(PROMOTE_PHASE, index + 1, len(dependencies), dep)
            owners = result.reverse_index[dep]
            if len(owners) < 2 or dep in owned:
                continue
            promoted = AssetAssignment(
                source_path=dep,
                bundle_name=bundle_name_for(
                    dep,
                    BundleMode.BY_FOLDER,
                    hash_only=self.config.hash_only_names,
                    scene_extensions=self.config.scene_extensions,
                ),
            )
            owned[dep] = promoted
            result.promoted.append(promoted)
            result.assignments.append(promoted)

        logger.info(
            f"Dependency analysis: {total} assets scanned, {len(result.reverse_index)} "
            f"dependencies, {len(result.promoted)} promoted, "
            f"{len(result.dropped_duplicates)} duplicates dropped"
        )
        return result
