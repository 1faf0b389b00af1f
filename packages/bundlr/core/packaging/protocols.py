"""Protocols for the bundle compiler and artifact post-processors."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from bundlr.core.config.models import CompileOptions


@dataclass(frozen=True)
class BundleBuild:
    """One entry of the compiled-bundle table."""

    name: str
    source_paths: tuple[str, ...]


@dataclass(frozen=True)
class CompiledBundle:
    """Compiler output for one bundle.

    Attributes:
        hash: Content hash computed by the compiler
        dependencies: Names of bundles this bundle depends on (may include itself)
    """

    hash: str
    dependencies: tuple[str, ...] = ()


class BundleCompiler(Protocol):
    """
    Protocol for bundle compilers.

    A compiler is invoked once per manifest with the whole bundle table.
    For every bundle it writes an untagged temp file named
    ``{name}_{hash}`` into ``output_dir``.
    """

    def compile(
        self,
        output_dir: Path,
        builds: Sequence[BundleBuild],
        options: CompileOptions,
    ) -> Mapping[str, CompiledBundle] | None:
        """
        Compile every bundle.

        Args:
            output_dir: Platform build directory receiving temp outputs
            builds: Bundle table (name -> source paths)
            options: Compile options of the manifest

        Returns:
            Bundle name -> compiled bundle, or None on failure
        """
        ...


class PostProcessor(Protocol):
    """
    Protocol for artifact post-processors (obfuscation, padding).

    Applied in place, exactly once per freshly placed artifact.
    """

    def process(self, path: Path, bundle_name: str) -> None:
        """Rewrite the artifact at path."""
        ...
