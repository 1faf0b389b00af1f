"""Build executor: the automation surface over the packaging core."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
import logging
import threading

from pydantic import ValidationError

from bundlr.core.build.result import (
    OperationResult,
    cancelled_result,
    failure_result,
    success_result,
)
from bundlr.core.config.models import ManifestConfig, ProjectConfig
from bundlr.core.dependencies.autogroup import AutoGrouper
from bundlr.core.dependencies.protocols import DependencyScanner
from bundlr.core.dependencies.resolver import DependencyResolver
from bundlr.core.dependencies.scanners import MappingDependencyScanner, NullDependencyScanner
from bundlr.core.diff.engine import SnapshotDiffEngine
from bundlr.core.errors import (
    BuildCancelled,
    BundlrError,
    DiffOrderError,
    MissingArtifactError,
    PackagingFailure,
    RecordNotFoundError,
)
from bundlr.core.grouping.engine import GroupingEngine
from bundlr.core.history.fs import FSHistoryRepository
from bundlr.core.history.protocols import HistoryRepository
from bundlr.core.lineage.manager import VersionLineageManager
from bundlr.core.packaging.archive import ArchiveBundleCompiler
from bundlr.core.packaging.packager import IncrementalPackager, PackageResult
from bundlr.core.packaging.postprocess import create_post_processor
from bundlr.core.packaging.protocols import BundleCompiler, PostProcessor
from bundlr.core.progress import ProgressCallback
from bundlr.core.utils.logging import get_logger, log_duration

logger = logging.getLogger(__name__)


class BuildExecutor:
    """Runs packaging, publishing, history and diff operations.

    Every public operation returns an ``OperationResult``. Validation
    problems are logged and the offending group skipped; packaging
    failures, missing artifacts and I/O errors fail the whole run;
    cancellation is reported separately from failure.

    Example:
        >>> executor = create_executor(load_project_config("bundlr.yaml"))
        >>> result = executor.package_all()
        >>> result.version
    """

    def __init__(
        self,
        config: ProjectConfig,
        scanner: DependencyScanner | None = None,
        compiler: BundleCompiler | None = None,
        post_processor: PostProcessor | None = None,
        history: HistoryRepository | None = None,
        clock: Callable[[], int] | None = None,
    ) -> None:
        self.config = config
        self.scanner = scanner or NullDependencyScanner()
        self.history = history or FSHistoryRepository(config.history_path)
        self.grouping = GroupingEngine(config)
        self.resolver = DependencyResolver(self.scanner, config.dependencies)
        self.grouper = AutoGrouper(self.resolver, config)
        self.packager = IncrementalPackager(
            config,
            compiler or ArchiveBundleCompiler(config.project_root, self.scanner),
            post_processor or create_post_processor(config.post_process),
        )
        self.lineage = VersionLineageManager(config, self.history, clock)

    # ------------------------------------------------------------------
    # Packaging
    # ------------------------------------------------------------------

    def package_manifest(
        self,
        name: str,
        progress: ProgressCallback | None = None,
        cancel_token: threading.Event | None = None,
    ) -> OperationResult:
        """Package and publish a single manifest."""
        try:
            manifest = self.config.get_manifest(name)
        except KeyError:
            return failure_result(f"Unknown manifest: {name}", "package_manifest")
        full_run = len(self.config.manifests) == 1
        return self._package("package_manifest", [manifest], full_run, progress, cancel_token)

    def package_all(
        self,
        progress: ProgressCallback | None = None,
        cancel_token: threading.Event | None = None,
    ) -> OperationResult:
        """Package and publish every configured manifest."""
        if not self.config.manifests:
            return failure_result("No manifests configured", "package_all")
        return self._package(
            "package_all", self.config.manifests, True, progress, cancel_token
        )

    @log_duration
    def _package(
        self,
        operation: str,
        manifests: Sequence[ManifestConfig],
        full_run: bool,
        progress: ProgressCallback | None,
        cancel_token: threading.Event | None,
    ) -> OperationResult:
        try:
            results, labels, warnings = self._package_manifests(manifests, progress, cancel_token)
            publish = self.lineage.publish(results, full_run=full_run, group_labels=labels)
            garbage = self.lineage.collect_garbage() if publish.changed else None
        except BuildCancelled:
            logger.info(f"{operation} cancelled, nothing was published")
            return cancelled_result(operation)
        except (PackagingFailure, MissingArtifactError) as e:
            logger.error(str(e))
            return failure_result(str(e), operation)
        except OSError as e:
            logger.exception(f"{operation} failed with an I/O error")
            return failure_result(f"I/O error: {e}", operation)

        return success_result(
            operation,
            version=publish.version,
            changed=publish.changed,
            details={
                "manifests": [r.manifest_name for r in results],
                "validation_errors": warnings,
                "new_files": publish.new_files,
                "new_files_size": publish.new_files_size,
                "post_processed": sum(len(r.processed_bundles) for r in results),
                "deleted_files": garbage.deleted if garbage else [],
            },
        )

    def _package_manifests(
        self,
        manifests: Sequence[ManifestConfig],
        progress: ProgressCallback | None,
        cancel_token: threading.Event | None,
    ) -> tuple[list[PackageResult], dict[str, str], list[str]]:
        results: list[PackageResult] = []
        labels: dict[str, str] = {}
        warnings: list[str] = []

        for manifest in manifests:
            log = get_logger(__name__, manifest=manifest.name)
            grouping = self.grouping.collect(manifest)
            warnings.extend(grouping.validation_errors)

            auto = self.grouper.run(
                grouping.bundled,
                grouping.dependency_candidates,
                progress=progress,
                cancel_token=cancel_token,
            )
            previous = self.lineage.published_manifest(manifest.name)
            result = self.packager.package(
                manifest.name,
                auto.assignments,
                grouping.raw,
                previous_manifest=previous,
                options=manifest.compile_options,
            )
            log.info(f"Manifest file {result.version_entry.file_name}")
            results.append(result)
            for path, label in grouping.group_labels.items():
                labels.setdefault(path, label)

        return results, labels, warnings

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    def purge_history(
        self,
        keep_latest: int | None = None,
        versions: Iterable[int] | None = None,
    ) -> OperationResult:
        """Delete stale build records (and their container copies)."""
        if keep_latest is None and versions is None:
            return failure_result("Nothing selected to purge", "purge_history")
        try:
            deleted = self.history.purge(keep_latest=keep_latest, versions=versions)
        except ValueError as e:
            return failure_result(str(e), "purge_history")
        except OSError as e:
            return failure_result(f"I/O error: {e}", "purge_history")
        return success_result(
            "purge_history", details={"deleted": [ref.file_name for ref in deleted]}
        )

    def list_history(self) -> OperationResult:
        """List build records, newest first, with operator comments."""
        comments = self.history.comments()
        records = [
            {
                "version": ref.version,
                "timestamp": ref.timestamp,
                "file_name": ref.file_name,
                "comment": comments.get(ref.file_name, ""),
            }
            for ref in self.history.list_records()
        ]
        container = self.lineage.current_container()
        return success_result(
            "list_history",
            version=container.version_number if container else None,
            details={"records": records},
        )

    def comment_version(self, version: int, comment: str) -> OperationResult:
        """Attach an operator comment to the newest record of a version."""
        ref = next((r for r in self.history.list_records() if r.version == version), None)
        if ref is None:
            return failure_result(str(RecordNotFoundError(version)), "comment_version")
        self.history.set_comment(ref, comment)
        return success_result("comment_version", version=version)

    def set_version(self, version: int) -> OperationResult:
        """Override the current version number."""
        try:
            container = self.lineage.set_version(version)
        except (BundlrError, ValueError, OSError) as e:
            return failure_result(str(e), "set_version")
        return success_result("set_version", version=container.version_number, changed=True)

    def diff_versions(
        self,
        old_version: int,
        new_version: int,
        progress: ProgressCallback | None = None,
        cancel_token: threading.Event | None = None,
    ) -> OperationResult:
        """Diff two recorded versions; the report is in ``details["report"]``."""
        try:
            engine = SnapshotDiffEngine(
                self.history.load_record(old_version), self.history.load_record(new_version)
            )
            report = engine.run(progress=progress, cancel_token=cancel_token)
        except RecordNotFoundError as e:
            return failure_result(str(e), "diff_versions")
        except ValidationError as e:
            logger.warning(f"Unreadable build record: {e}")
            return failure_result(f"Unreadable build record: {e}", "diff_versions")
        except DiffOrderError as e:
            return failure_result(str(e), "diff_versions")
        except BuildCancelled:
            return cancelled_result("diff_versions")
        return success_result("diff_versions", version=new_version, details={"report": report})

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    def collect_garbage(self) -> OperationResult:
        """Delete build files not referenced by the current version."""
        try:
            report = self.lineage.collect_garbage()
        except OSError as e:
            logger.exception("Garbage collection failed")
            return failure_result(f"I/O error: {e}", "collect_garbage")
        return success_result(
            "collect_garbage",
            details={"deleted": report.deleted, "freed_bytes": report.freed_bytes},
        )

    def check_cross_manifest_assets(self) -> OperationResult:
        """Find assets (or their dependencies) packaged by more than one manifest."""
        owners: dict[str, list[str]] = {}

        def add(path: str, manifest_name: str) -> None:
            names = owners.setdefault(path, [])
            if manifest_name not in names:
                names.append(manifest_name)

        for manifest in self.config.manifests:
            grouping = self.grouping.collect(manifest)
            for assignment in grouping.raw:
                add(assignment.source_path, manifest.name)
            for assignment in grouping.bundled:
                add(assignment.source_path, manifest.name)
                for dep in self.resolver.closure(assignment.source_path):
                    add(dep, manifest.name)

        shared = {path: names for path, names in sorted(owners.items()) if len(names) > 1}
        for path, names in shared.items():
            logger.warning(f"Asset {path} is packaged by manifests {', '.join(names)}")
        if not shared:
            logger.info("No asset is shared between manifests")
        return success_result("check_cross_manifest_assets", details={"shared": shared})


def create_executor(
    config: ProjectConfig,
    clock: Callable[[], int] | None = None,
) -> BuildExecutor:
    """Wire the reference scanner, compiler and post-processor from configuration."""
    scanner: DependencyScanner
    if config.dependencies.dependency_map:
        map_path = config.project_root / config.dependencies.dependency_map
        scanner = MappingDependencyScanner.from_file(map_path)
    else:
        scanner = NullDependencyScanner()
    return BuildExecutor(config, scanner=scanner, clock=clock)
