"""Incremental packager: compile, reconcile, post-process, write the manifest."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
import logging
import os
from pathlib import Path
import shutil

from bundlr.core.config.models import CompileOptions, ProjectConfig
from bundlr.core.errors import MissingArtifactError, PackagingFailure
from bundlr.core.fingerprint import compute_file_hash, raw_hash_from_build_name
from bundlr.core.grouping.models import AssetAssignment
from bundlr.core.manifest.models import Bundle, Manifest, VersionEntry
from bundlr.core.packaging.postprocess import NullPostProcessor
from bundlr.core.packaging.protocols import BundleBuild, BundleCompiler, PostProcessor

logger = logging.getLogger(__name__)


@dataclass
class PackageResult:
    """Outcome of packaging one manifest.

    Attributes:
        manifest: The rebuilt manifest
        version_entry: Published file name, hash and size of the manifest file
        processed_bundles: Bundles post-processed this run (freshly placed artifacts)
        reused_bundles: Bundles whose artifact matches the previously published one
        manifest_file_created: False when an identical manifest file already existed
    """

    manifest: Manifest
    version_entry: VersionEntry
    processed_bundles: list[str] = field(default_factory=list)
    reused_bundles: list[str] = field(default_factory=list)
    manifest_file_created: bool = True

    @property
    def manifest_name(self) -> str:
        return self.manifest.manifest_name


class IncrementalPackager:
    """Builds one manifest against the platform build directory.

    Artifacts are content-addressed: a compiled bundle whose hashed file
    already exists is not replaced and not post-processed again. Post-processing
    runs for every artifact placed this run, rather than for every bundle whose
    hash differs from the previous record.

    Example:
        >>> packager = IncrementalPackager(config, ArchiveBundleCompiler(config.project_root))
        >>> result = packager.package("base", assignments, raw_assignments)
        >>> result.version_entry.file_name
    """

    def __init__(
        self,
        config: ProjectConfig,
        compiler: BundleCompiler,
        post_processor: PostProcessor | None = None,
    ) -> None:
        self.config = config
        self.compiler = compiler
        self.post_processor = post_processor or NullPostProcessor()

    @property
    def build_root(self) -> Path:
        return self.config.platform_build_path

    def artifact_file_name(self, bundle_name: str, content_hash: str) -> str:
        """Final artifact file name for a compiled bundle."""
        ext = self.config.artifact_extension
        if self.config.hash_only_names:
            return f"{content_hash}{ext}"
        return f"{bundle_name}_{content_hash}{ext}"

    def package(
        self,
        manifest_name: str,
        bundled: Sequence[AssetAssignment],
        raw: Sequence[AssetAssignment] = (),
        previous_manifest: Manifest | None = None,
        options: CompileOptions | None = None,
    ) -> PackageResult:
        """Package one manifest.

        Args:
            manifest_name: Manifest being built
            bundled: Deduplicated compiled-bundle assignments
            raw: Raw passthrough assignments
            previous_manifest: Currently published manifest with the same name
            options: Compile options (defaults when None)

        Returns:
            PackageResult with the new manifest and its version entry

        Raises:
            PackagingFailure: If the compiler fails or omits a bundle
            MissingArtifactError: If an artifact file is absent after reconciliation
            OSError: On copy/rename/delete failures
        """
        self.build_root.mkdir(parents=True, exist_ok=True)
        previous = previous_manifest.bundle_map() if previous_manifest else {}

        bundles = self._package_raw(raw)
        result_bundles, processed, reused = self._package_compiled(
            manifest_name, bundled, options or CompileOptions(), previous, first_id=len(bundles)
        )
        bundles.extend(result_bundles)

        manifest = Manifest(manifest_name=manifest_name, bundles=bundles)
        entry, created = self._write_manifest_file(manifest)

        logger.info(
            f"Packaged manifest '{manifest_name}': {len(bundles)} bundles, "
            f"{len(processed)} post-processed, {len(reused)} reused, file {entry.file_name}"
        )
        return PackageResult(
            manifest=manifest,
            version_entry=entry,
            processed_bundles=processed,
            reused_bundles=reused,
            manifest_file_created=created,
        )

    def _package_raw(self, raw: Sequence[AssetAssignment]) -> list[Bundle]:
        bundles: list[Bundle] = []
        seen: set[str] = set()
        for assignment in raw:
            if assignment.source_path in seen:
                logger.debug(f"Skipping duplicate raw file {assignment.source_path}")
                continue
            seen.add(assignment.source_path)

            destination = self.build_root / assignment.output_path
            destination.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(self.config.project_root / assignment.source_path, destination)

            bundles.append(
                Bundle(
                    id=len(bundles),
                    name=assignment.load_path if assignment.is_external else assignment.bundle_name,
                    is_raw_file=True,
                    source_paths=[assignment.load_path],
                    size_bytes=destination.stat().st_size,
                    hash=raw_hash_from_build_name(assignment.bundle_name),
                    final_name_with_hash=assignment.output_path,
                )
            )
        return bundles

    def _package_compiled(
        self,
        manifest_name: str,
        bundled: Sequence[AssetAssignment],
        options: CompileOptions,
        previous: dict[str, Bundle],
        first_id: int,
    ) -> tuple[list[Bundle], list[str], list[str]]:
        table: dict[str, list[str]] = {}
        for assignment in bundled:
            table.setdefault(assignment.bundle_name, []).append(assignment.source_path)

        if not table:
            return [], [], []

        builds = [BundleBuild(name, tuple(paths)) for name, paths in table.items()]
        try:
            compiled = self.compiler.compile(self.build_root, builds, options)
        except Exception as e:
            raise PackagingFailure(manifest_name, f"bundle compiler raised: {e}") from e
        if not compiled:
            raise PackagingFailure(manifest_name, "bundle compiler returned no result")

        ids = {name: first_id + index for index, name in enumerate(table)}
        bundles: list[Bundle] = []
        processed: list[str] = []
        reused: list[str] = []

        for name, paths in table.items():
            output = compiled.get(name)
            if output is None:
                raise PackagingFailure(manifest_name, f"compiler reported no result for '{name}'")

            final_name = self.artifact_file_name(name, output.hash)
            placed = self._place(name, output.hash, final_name)
            target = self.build_root / final_name
            if not target.is_file():
                raise MissingArtifactError(manifest_name, final_name)

            dependency_ids: list[int] = []
            for dep_name in output.dependencies:
                if dep_name == name:
                    continue
                if dep_name not in ids:
                    raise PackagingFailure(
                        manifest_name, f"bundle '{name}' depends on unknown bundle '{dep_name}'"
                    )
                dependency_ids.append(ids[dep_name])

            if placed:
                self.post_processor.process(target, name)
                processed.append(name)
            previous_bundle = previous.get(name)
            if previous_bundle is not None and previous_bundle.final_name_with_hash == final_name:
                reused.append(name)

            bundles.append(
                Bundle(
                    id=ids[name],
                    name=name,
                    source_paths=list(paths),
                    size_bytes=target.stat().st_size,
                    hash=compute_file_hash(target),
                    final_name_with_hash=final_name,
                    dependency_ids=sorted(set(dependency_ids)),
                )
            )

        return bundles, processed, reused

    def _place(self, bundle_name: str, content_hash: str, final_name: str) -> bool:
        """Move the compiler's temp output to its hashed name.

        Returns:
            True if the artifact was placed this run, False if it already existed
        """
        temp = self.build_root / f"{bundle_name}_{content_hash}"
        target = self.build_root / final_name
        if target.exists():
            # Same hash already published: the fresh output is redundant
            if temp.exists() and temp != target:
                temp.unlink()
            return False
        if temp.exists():
            os.replace(temp, target)
            return True
        return False

    def _write_manifest_file(self, manifest: Manifest) -> tuple[VersionEntry, bool]:
        name = manifest.manifest_name
        temp = self.build_root / f".{name}.manifest.tmp"
        temp.write_text(manifest.to_json(), encoding="utf-8")

        content_hash = compute_file_hash(temp)
        if self.config.hash_only_names:
            file_name = f"{content_hash}.json"
        else:
            file_name = f"{name}_{content_hash}.json"
        target = self.build_root / file_name

        created = not target.exists()
        if created:
            os.replace(temp, target)
        else:
            temp.unlink()

        entry = VersionEntry(
            manifest_name=name,
            file_name=file_name,
            hash=content_hash,
            size_bytes=target.stat().st_size,
        )
        return entry, created
