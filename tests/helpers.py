"""Test doubles and builders shared across bundlr tests."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from pathlib import Path

from bundlr.core.config.models import BundleMode, CompileOptions, GroupConfig, ManifestConfig
from bundlr.core.fingerprint import compute_string_hash
from bundlr.core.packaging.protocols import BundleBuild, CompiledBundle


class FakeCompiler:
    """Compiler writing a text artifact per bundle.

    The artifact is the sorted source contents joined by newlines, so the
    hash only changes when a source file changes.
    """

    def __init__(
        self,
        project_root: Path,
        dependencies: Mapping[str, Sequence[str]] | None = None,
        fail: bool = False,
    ) -> None:
        self.project_root = project_root
        self.dependencies = dict(dependencies or {})
        self.fail = fail
        self.calls: list[list[BundleBuild]] = []

    def compile(
        self,
        output_dir: Path,
        builds: Sequence[BundleBuild],
        options: CompileOptions,
    ) -> Mapping[str, CompiledBundle] | None:
        self.calls.append(list(builds))
        if self.fail:
            return None
        output_dir.mkdir(parents=True, exist_ok=True)
        compiled = {}
        for build in builds:
            content = "\n".join(
                f"{p}:{(self.project_root / p).read_text()}" for p in sorted(build.source_paths)
            )
            content_hash = compute_string_hash(content)
            (output_dir / f"{build.name}_{content_hash}").write_text(content)
            compiled[build.name] = CompiledBundle(
                hash=content_hash, dependencies=tuple(self.dependencies.get(build.name, ()))
            )
        return compiled


class Clock:
    """Deterministic epoch-millisecond clock advancing one second per call."""

    def __init__(self, start: int = 1_700_000_000_000) -> None:
        self.now = start

    def __call__(self) -> int:
        self.now += 1000
        return self.now


def write_file(root: Path, relative: str, content: str = "") -> Path:
    """Create a project file; content defaults to the relative path."""
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content or relative)
    return path


def ui_manifest(name: str = "base") -> ManifestConfig:
    """Manifest bundling each UI prefab individually, with dependency analysis."""
    return ManifestConfig(
        name=name,
        groups=[
            GroupConfig(
                name="ui",
                mode=BundleMode.INDIVIDUAL,
                target="Assets/UI",
                filter="*.prefab",
            )
        ],
    )
