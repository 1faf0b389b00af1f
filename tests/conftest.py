"""Shared pytest fixtures for bundlr tests."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from bundlr.core.config.models import ManifestConfig, ProjectConfig
from bundlr.core.dependencies.scanners import MappingDependencyScanner
from tests.helpers import Clock, FakeCompiler, ui_manifest, write_file

# ============================================================================
# Project Fixtures
# ============================================================================


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    """A small asset tree.

    Assets/UI/A.prefab and Assets/UI/B.prefab both reference
    Assets/Shared/Tex.png; Assets/Levels/Main.unity is a scene.
    """
    root = tmp_path / "project"
    for relative in (
        "Assets/UI/A.prefab",
        "Assets/UI/B.prefab",
        "Assets/Shared/Tex.png",
        "Assets/Shared/Only.mat",
        "Assets/Levels/Main.unity",
        "Assets/Config/items.json",
    ):
        write_file(root, relative)
    write_file(root, "Assets/UI/A.prefab.meta", "meta")
    return root


@pytest.fixture
def dependency_map() -> dict[str, list[str]]:
    return {
        "Assets/UI/A.prefab": ["Assets/Shared/Tex.png", "Assets/Shared/Only.mat"],
        "Assets/UI/B.prefab": ["Assets/Shared/Tex.png"],
    }


@pytest.fixture
def scanner(dependency_map: dict[str, list[str]]) -> MappingDependencyScanner:
    return MappingDependencyScanner(dependency_map)


# ============================================================================
# Build Fixtures
# ============================================================================


@pytest.fixture
def clock() -> Clock:
    return Clock()


@pytest.fixture
def compiler(project_dir: Path) -> FakeCompiler:
    return FakeCompiler(project_dir)


@pytest.fixture
def make_config(tmp_path: Path, project_dir: Path) -> Callable[..., ProjectConfig]:
    """Factory for a ProjectConfig rooted in the temp project."""

    def _make(manifests: list[ManifestConfig] | None = None, **overrides) -> ProjectConfig:
        values = {
            "project_root": project_dir,
            "output_root": tmp_path / "build",
            "upload_root": tmp_path / "upload",
            "platform": "android",
            "manifests": manifests if manifests is not None else [ui_manifest()],
        }
        values.update(overrides)
        return ProjectConfig(**values)

    return _make


@pytest.fixture
def config(make_config: Callable[..., ProjectConfig]) -> ProjectConfig:
    return make_config()
