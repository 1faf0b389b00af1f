"""Tests for the incremental packager."""

from __future__ import annotations

from pathlib import Path

import pytest

from bundlr.core.config.models import ProjectConfig
from bundlr.core.errors import MissingArtifactError, PackagingFailure
from bundlr.core.fingerprint import compute_file_hash
from bundlr.core.grouping.models import AssetAssignment
from bundlr.core.packaging.packager import IncrementalPackager
from bundlr.core.packaging.postprocess import OffsetPostProcessor
from bundlr.core.packaging.protocols import CompiledBundle
from tests.helpers import FakeCompiler

A = AssetAssignment("Assets/UI/A.prefab", "assets_ui_a_prefab", group_name="ui")
B = AssetAssignment("Assets/UI/B.prefab", "assets_ui_b_prefab", group_name="ui")
TEX = AssetAssignment("Assets/Shared/Tex.png", "assets_shared")


def raw_assignment(project_dir: Path) -> AssetAssignment:
    content_hash = compute_file_hash(project_dir / "Assets/Config/items.json")
    return AssetAssignment(
        "Assets/Config/items.json", f"{content_hash}.json", is_raw=True, group_name="cfg"
    )


class OmittingCompiler(FakeCompiler):
    def compile(self, output_dir, builds, options):
        compiled = dict(super().compile(output_dir, builds, options))
        compiled.pop(builds[-1].name)
        return compiled


class RaisingCompiler(FakeCompiler):
    def compile(self, output_dir, builds, options):
        raise RuntimeError("toolchain crashed")


class PhantomCompiler(FakeCompiler):
    """Reports results without writing any file."""

    def compile(self, output_dir, builds, options):
        return {b.name: CompiledBundle(hash="0" * 32) for b in builds}


class TestCompiledBundles:
    """Tests for compiled bundle placement and manifest content."""

    def test_places_hash_named_artifacts(self, config: ProjectConfig, compiler: FakeCompiler):
        packager = IncrementalPackager(config, compiler)
        result = packager.package("base", [A, B, TEX])

        build_root = config.platform_build_path
        assert [b.id for b in result.manifest.bundles] == [0, 1, 2]
        for bundle in result.manifest.bundles:
            assert bundle.final_name_with_hash == f"{bundle.hash}.bundle"
            assert (build_root / bundle.final_name_with_hash).is_file()
            assert bundle.size_bytes == (build_root / bundle.final_name_with_hash).stat().st_size
        assert result.processed_bundles == [
            "assets_ui_a_prefab",
            "assets_ui_b_prefab",
            "assets_shared",
        ]
        # Compiler temp outputs were moved, not copied
        assert not any(p.name.startswith("assets_") for p in build_root.iterdir())

    def test_one_compile_call_per_manifest(self, config: ProjectConfig, compiler: FakeCompiler):
        grouped = AssetAssignment("Assets/UI/B.prefab", "assets_ui_a_prefab")
        IncrementalPackager(config, compiler).package("base", [A, grouped])

        assert len(compiler.calls) == 1
        [build] = compiler.calls[0]
        assert build.source_paths == ("Assets/UI/A.prefab", "Assets/UI/B.prefab")

    def test_named_artifacts(self, make_config, compiler: FakeCompiler):
        config = make_config(hash_only_names=False)
        result = IncrementalPackager(config, compiler).package("base", [A])

        [bundle] = result.manifest.bundles
        assert bundle.final_name_with_hash == f"assets_ui_a_prefab_{bundle.hash}.bundle"
        assert result.version_entry.file_name == f"base_{result.version_entry.hash}.json"

    def test_dependency_ids_exclude_self(self, config: ProjectConfig, project_dir: Path):
        compiler = FakeCompiler(
            project_dir,
            dependencies={
                "assets_ui_a_prefab": ["assets_shared", "assets_ui_a_prefab"],
                "assets_ui_b_prefab": ["assets_shared"],
            },
        )
        result = IncrementalPackager(config, compiler).package("base", [A, B, TEX])

        bundles = result.manifest.bundle_map()
        assert bundles["assets_ui_a_prefab"].dependency_ids == [2]
        assert bundles["assets_ui_b_prefab"].dependency_ids == [2]
        assert bundles["assets_shared"].dependency_ids == []

    def test_unknown_dependency_fails(self, config: ProjectConfig, project_dir: Path):
        compiler = FakeCompiler(project_dir, dependencies={"assets_ui_a_prefab": ["ghost"]})
        with pytest.raises(PackagingFailure, match="ghost"):
            IncrementalPackager(config, compiler).package("base", [A])


class TestIncrementalRebuild:
    """Tests for rebuilding against existing artifacts."""

    def test_unchanged_rebuild_reuses_everything(
        self, config: ProjectConfig, compiler: FakeCompiler
    ):
        packager = IncrementalPackager(config, compiler)
        first = packager.package("base", [A, B])
        second = packager.package("base", [A, B], previous_manifest=first.manifest)

        assert second.processed_bundles == []
        assert second.reused_bundles == ["assets_ui_a_prefab", "assets_ui_b_prefab"]
        assert second.manifest_file_created is False
        assert second.version_entry == first.version_entry

    def test_changed_source_gets_new_artifact(
        self, config: ProjectConfig, compiler: FakeCompiler, project_dir: Path
    ):
        packager = IncrementalPackager(config, compiler)
        first = packager.package("base", [A, B])
        (project_dir / "Assets/UI/A.prefab").write_text("changed")
        second = packager.package("base", [A, B], previous_manifest=first.manifest)

        assert second.processed_bundles == ["assets_ui_a_prefab"]
        assert second.reused_bundles == ["assets_ui_b_prefab"]
        assert second.version_entry.file_name != first.version_entry.file_name

    def test_post_processing_runs_once_per_artifact(
        self, config: ProjectConfig, compiler: FakeCompiler
    ):
        packager = IncrementalPackager(config, compiler, OffsetPostProcessor(8))
        first = packager.package("base", [A])
        path = config.platform_build_path / first.manifest.bundles[0].final_name_with_hash
        size_after_first = path.stat().st_size

        second = packager.package("base", [A], previous_manifest=first.manifest)

        assert path.stat().st_size == size_after_first
        assert path.read_bytes().startswith(bytes(8))
        assert second.manifest.bundles[0].hash == first.manifest.bundles[0].hash == (
            compute_file_hash(path)
        )


class TestRawFiles:
    def test_raw_files_are_copied_and_listed_first(
        self, config: ProjectConfig, compiler: FakeCompiler, project_dir: Path
    ):
        raw = raw_assignment(project_dir)
        result = IncrementalPackager(config, compiler).package("base", [A], [raw, raw])

        raw_bundle, compiled = result.manifest.bundles
        assert raw_bundle.id == 0 and compiled.id == 1
        assert raw_bundle.is_raw_file
        assert raw_bundle.name == raw.bundle_name
        assert raw_bundle.source_paths == ["Assets/Config/items.json"]
        assert raw_bundle.hash == compute_file_hash(project_dir / "Assets/Config/items.json")
        assert (config.platform_build_path / raw.bundle_name).is_file()

    def test_external_raw_file_uses_placement_folder(
        self, config: ProjectConfig, compiler: FakeCompiler, project_dir: Path
    ):
        raw = AssetAssignment(
            "External/data.bin",
            "abc.bin",
            is_raw=True,
            external_origin_path="External",
            placement_folder="Data",
        )
        (project_dir / "External").mkdir()
        (project_dir / "External/data.bin").write_bytes(b"\x00\x01")

        [bundle] = IncrementalPackager(config, compiler).package("base", [], [raw]).manifest.bundles

        assert bundle.name == "Data/data.bin"
        assert bundle.final_name_with_hash == "Data/abc.bin"
        assert (config.platform_build_path / "Data/abc.bin").read_bytes() == b"\x00\x01"


class TestFailures:
    """Tests for compiler and artifact failures."""

    def test_compiler_returning_none(self, config: ProjectConfig, project_dir: Path):
        packager = IncrementalPackager(config, FakeCompiler(project_dir, fail=True))
        with pytest.raises(PackagingFailure, match="no result"):
            packager.package("base", [A])

    def test_compiler_exception(self, config: ProjectConfig, project_dir: Path):
        packager = IncrementalPackager(config, RaisingCompiler(project_dir))
        with pytest.raises(PackagingFailure, match="toolchain crashed"):
            packager.package("base", [A])

    def test_compiler_omitting_a_bundle(self, config: ProjectConfig, project_dir: Path):
        packager = IncrementalPackager(config, OmittingCompiler(project_dir))
        with pytest.raises(PackagingFailure, match="assets_ui_b_prefab"):
            packager.package("base", [A, B])

    def test_missing_artifact(self, config: ProjectConfig, project_dir: Path):
        packager = IncrementalPackager(config, PhantomCompiler(project_dir))
        with pytest.raises(MissingArtifactError):
            packager.package("base", [A])
