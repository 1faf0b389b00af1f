"""Version lineage: change detection, publishing and garbage collection.

One lineage exists per platform build directory. A publish that changes
at least one bundle (or retires a manifest) bumps the version by exactly
one; a run without changes keeps the version and writes nothing.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
import logging
from pathlib import Path
import shutil
import time

from bundlr.core.config.models import ProjectConfig
from bundlr.core.errors import BundlrError
from bundlr.core.fingerprint import compute_file_hash, format_bytes
from bundlr.core.history.protocols import HistoryRepository
from bundlr.core.lineage.models import GarbageReport, PublishResult
from bundlr.core.manifest.io import save_model, try_load_model
from bundlr.core.manifest.models import (
    AUTO_GROUP_LABEL,
    BuildRecord,
    Bundle,
    Manifest,
    RecordAsset,
    RecordBundle,
    RecordManifest,
    VersionContainer,
    VersionFileInfo,
)
from bundlr.core.packaging.packager import PackageResult

logger = logging.getLogger(__name__)


def epoch_millis() -> int:
    return int(time.time() * 1000)


def bundles_changed(old: Manifest | None, new: Manifest) -> bool:
    """Whether any bundle was added, removed or changed hash between two manifests."""
    old_hashes = {b.name: b.hash for b in old.bundles} if old else {}
    new_hashes = {b.name: b.hash for b in new.bundles}
    return old_hashes != new_hashes


class VersionLineageManager:
    """Maintains the version container, history and live artifact set.

    Example:
        >>> lineage = VersionLineageManager(config, FSHistoryRepository(config.history_path))
        >>> publish = lineage.publish(results, full_run=True, group_labels=labels)
        >>> publish.version
    """

    def __init__(
        self,
        config: ProjectConfig,
        history: HistoryRepository,
        clock: Callable[[], int] | None = None,
    ) -> None:
        self.config = config
        self.history = history
        self.clock = clock or epoch_millis

    @property
    def build_root(self) -> Path:
        return self.config.platform_build_path

    def current_container(self) -> VersionContainer | None:
        return try_load_model(self.config.version_file_path, VersionContainer)

    def published_manifest(
        self, name: str, container: VersionContainer | None = None
    ) -> Manifest | None:
        """Load the manifest currently published under name."""
        container = container if container is not None else self.current_container()
        if container is None:
            return None
        entry = container.get_entry(name)
        if entry is None:
            return None
        return try_load_model(self.build_root / entry.file_name, Manifest)

    def has_changes(
        self,
        results: Sequence[PackageResult],
        container: VersionContainer | None = None,
        full_run: bool = True,
    ) -> bool:
        """Compare a run's manifests with the published ones.

        Changed when a bundle was added, removed or changed hash in any
        manifest, or when a published manifest was retired. A full run
        retires every published manifest it did not build; a partial run
        only retires manifests that are no longer configured.
        """
        container = container if container is not None else self.current_container()
        built = {r.manifest_name for r in results}
        configured = set(self.config.manifest_names)

        for result in results:
            published = self.published_manifest(result.manifest_name, container)
            if bundles_changed(published, result.manifest):
                logger.debug(f"Manifest '{result.manifest_name}' has changed bundles")
                return True

        if container is not None:
            for entry in container.entries:
                if entry.manifest_name in built:
                    continue
                if full_run or entry.manifest_name not in configured:
                    logger.debug(f"Published manifest '{entry.manifest_name}' is retired")
                    return True
        return False

    def publish(
        self,
        results: Sequence[PackageResult],
        full_run: bool,
        group_labels: Mapping[str, str] | None = None,
    ) -> PublishResult:
        """Publish a packaging run as a new version when anything changed.

        Args:
            results: Package results of every manifest built this run
            full_run: The run covered every configured manifest (container is replaced)
            group_labels: Source path -> owning group label, for build records

        Returns:
            PublishResult; ``changed`` is False when nothing was written
        """
        previous = self.current_container()
        current_version = previous.version_number if previous else 0

        if not self.has_changes(results, previous, full_run=full_run):
            self._discard_unpublished_manifests(results, previous)
            logger.info(f"Build finished, no file changed (version stays {current_version})")
            return PublishResult(changed=False, version=current_version, container=previous)

        timestamp = self.clock()
        container = self._next_container(previous, results, full_run, timestamp)

        save_model(self.config.version_file_path, container)
        numbered_name = self.config.numbered_version_file_name(container.version_number)
        shutil.copyfile(self.config.version_file_path, self.build_root / numbered_name)
        self.history.save_container(container)
        logger.info(f"Published version {container.version_number}")

        new_files = self._new_files(results, previous, numbered_name)
        new_files_size = sum(
            (self.build_root / name).stat().st_size
            for name in new_files
            if (self.build_root / name).is_file()
        )
        logger.info(f"{len(new_files)} new files, {format_bytes(new_files_size)} in total")
        upload_list_path = self._copy_to_upload(new_files, container.version_number)

        previous_record = self.history.latest_record(current_version) if previous else None
        record = self._build_record(
            container, previous_record, {r.manifest_name for r in results}, group_labels or {}
        )
        self.history.save_record(record)

        return PublishResult(
            changed=True,
            version=container.version_number,
            container=container,
            record=record,
            new_files=new_files,
            new_files_size=new_files_size,
            upload_list_path=upload_list_path,
        )

    def _discard_unpublished_manifests(
        self, results: Sequence[PackageResult], previous: VersionContainer | None
    ) -> None:
        # Bundle hashes are unchanged, so a newly written manifest file is never referenced
        published = {e.file_name for e in previous.entries} if previous else set()
        for result in results:
            file_name = result.version_entry.file_name
            if result.manifest_file_created and file_name not in published:
                (self.build_root / file_name).unlink(missing_ok=True)

    def _next_container(
        self,
        previous: VersionContainer | None,
        results: Sequence[PackageResult],
        full_run: bool,
        timestamp: int,
    ) -> VersionContainer:
        if previous is None or full_run:
            container = VersionContainer(entries=[r.version_entry for r in results])
        else:
            container = previous.model_copy(deep=True)
            configured = set(self.config.manifest_names)
            container.entries = [e for e in container.entries if e.manifest_name in configured]
            for result in results:
                container.upsert(result.version_entry)
        container.version_number = (previous.version_number if previous else 0) + 1
        container.timestamp_epoch = timestamp
        return container

    def _new_files(
        self,
        results: Sequence[PackageResult],
        previous: VersionContainer | None,
        numbered_name: str,
    ) -> list[str]:
        new_files: list[str] = []
        for result in results:
            old_manifest = None
            if previous is not None:
                old_manifest = self.published_manifest(result.manifest_name, previous)
            old_hashes = {b.name: b.hash for b in old_manifest.bundles} if old_manifest else {}
            for bundle in result.manifest.bundles:
                if old_hashes.get(bundle.name) != bundle.hash:
                    new_files.append(bundle.final_name_with_hash)

            old_entry = previous.get_entry(result.manifest_name) if previous else None
            if old_entry is None or old_entry.file_name != result.version_entry.file_name:
                new_files.append(result.version_entry.file_name)

        new_files.append(numbered_name)
        return list(dict.fromkeys(new_files))

    def _copy_to_upload(self, new_files: Sequence[str], version: int) -> Path | None:
        upload_root = self.config.platform_upload_path
        copied: list[str] = []
        for name in new_files:
            source = self.build_root / name
            if not source.is_file():
                logger.warning(f"New file {name} is missing from the build directory")
                continue
            destination = upload_root / name
            destination.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(source, destination)
            copied.append(name)

        if not copied:
            return None
        list_path = upload_root / f"new_files_v{version}.txt"
        list_path.write_text("\n".join(copied), encoding="utf-8")
        logger.info(f"Copied {len(copied)} files to {upload_root}")
        return list_path

    def _build_record(
        self,
        container: VersionContainer,
        previous_record: BuildRecord | None,
        built: set[str],
        group_labels: Mapping[str, str],
    ) -> BuildRecord:
        version_file = self.config.version_file_path
        file_infos = [
            VersionFileInfo(
                name=self.config.version_file_name,
                hash=compute_file_hash(version_file),
                size=version_file.stat().st_size,
            )
        ]

        old_bundles: dict[str, RecordBundle] = {}
        if previous_record is not None:
            for bundle in previous_record.iter_bundles():
                old_bundles.setdefault(bundle.name, bundle)

        configured = set(self.config.manifest_names)
        record_manifests: list[RecordManifest] = []
        for entry in container.entries:
            manifest = try_load_model(self.build_root / entry.file_name, Manifest)
            if manifest is None or entry.manifest_name not in configured:
                logger.warning(f"Manifest '{entry.manifest_name}' left out of the build record")
                continue

            file_infos.append(
                VersionFileInfo(name=entry.manifest_name, hash=entry.hash, size=entry.size_bytes)
            )
            labels = group_labels if entry.manifest_name in built else {}
            bundles = [self._record_bundle(b, old_bundles, labels) for b in manifest.bundles]
            record_manifests.append(RecordManifest(name=entry.manifest_name, bundles=bundles))

        return BuildRecord(
            version_number=container.version_number,
            timestamp=container.timestamp_epoch,
            version_file_infos=file_infos,
            per_manifest=record_manifests,
        )

    def _record_bundle(
        self,
        bundle: Bundle,
        old_bundles: Mapping[str, RecordBundle],
        group_labels: Mapping[str, str],
    ) -> RecordBundle:
        name = bundle.name
        if bundle.is_raw_file and bundle.source_paths:
            name = bundle.source_paths[0]
        old = old_bundles.get(name)
        if old is not None and old.hash == bundle.hash:
            return old

        first_source = bundle.source_paths[0] if bundle.source_paths else ""
        assets = None
        if not bundle.is_raw_file and self.config.record_asset_hashes:
            assets = [self._record_asset(path) for path in bundle.source_paths]

        return RecordBundle(
            group=group_labels.get(first_source, AUTO_GROUP_LABEL),
            name=name,
            size=bundle.size_bytes,
            hash=bundle.hash,
            is_raw_file=bundle.is_raw_file,
            assets=assets,
        )

    def _record_asset(self, path: str) -> RecordAsset:
        full_path = self.config.project_root / path
        if not full_path.is_file():
            return RecordAsset(path=path)
        return RecordAsset(
            path=path, size=full_path.stat().st_size, hash=compute_file_hash(full_path)
        )

    def live_files(self, container: VersionContainer) -> set[str]:
        """Build-root relative paths referenced by the current version."""
        live = {
            self.config.version_file_name,
            self.config.numbered_version_file_name(container.version_number),
        }
        for entry in container.entries:
            manifest = try_load_model(self.build_root / entry.file_name, Manifest)
            if manifest is None:
                continue
            live.add(entry.file_name)
            live.update(b.final_name_with_hash for b in manifest.bundles)
        return live

    def collect_garbage(self) -> GarbageReport:
        """Delete every build file not referenced by the current version.

        The history folder is never swept. Without a current container
        nothing is deleted.
        """
        report = GarbageReport()
        container = self.current_container()
        if container is None:
            logger.info("No published version, skipping garbage collection")
            return report

        live = self.live_files(container)
        history_name = self.config.history_folder_name
        for path in sorted(self.build_root.rglob("*")):
            if not path.is_file():
                continue
            relative = path.relative_to(self.build_root)
            if relative.parts[0] == history_name:
                continue
            if relative.as_posix() in live:
                report.kept += 1
                continue
            report.freed_bytes += path.stat().st_size
            path.unlink()
            report.deleted.append(relative.as_posix())

        self._remove_empty_folders()
        if report.deleted:
            freed = format_bytes(report.freed_bytes)
            logger.info(f"Removed {len(report.deleted)} stale files, freed {freed}")
        else:
            logger.info("Garbage collection found no stale files")
        return report

    def _remove_empty_folders(self) -> None:
        history = self.config.history_path
        folders = sorted((p for p in self.build_root.rglob("*") if p.is_dir()), reverse=True)
        for folder in folders:
            if folder == history or history in folder.parents:
                continue
            if not any(folder.iterdir()):
                folder.rmdir()

    def set_version(self, version: int) -> VersionContainer:
        """Overwrite the current version number (operator override).

        The numbered container copy and the matching history record are
        renamed to the new number.

        Raises:
            BundlrError: If nothing was published yet
            ValueError: If version is negative
        """
        if version < 0:
            raise ValueError(f"version must be >= 0, got {version}")
        container = self.current_container()
        if container is None:
            raise BundlrError("No published version to renumber")

        old_version = container.version_number
        if old_version == version:
            return container

        container.version_number = version
        save_model(self.config.version_file_path, container)

        old_numbered = self.build_root / self.config.numbered_version_file_name(old_version)
        if old_numbered.exists():
            old_numbered.unlink()
        shutil.copyfile(
            self.config.version_file_path,
            self.build_root / self.config.numbered_version_file_name(version),
        )
        self.history.rename_version(old_version, version, container.timestamp_epoch)
        logger.info(f"Changed version {old_version} -> {version}")
        return container
