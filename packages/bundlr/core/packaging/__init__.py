"""Incremental packaging of compiled bundles and raw files."""

from bundlr.core.packaging.archive import ArchiveBundleCompiler
from bundlr.core.packaging.packager import IncrementalPackager, PackageResult
from bundlr.core.packaging.postprocess import (
    NullPostProcessor,
    OffsetPostProcessor,
    XorPostProcessor,
    create_post_processor,
)
from bundlr.core.packaging.protocols import (
    BundleBuild,
    BundleCompiler,
    CompiledBundle,
    PostProcessor,
)

__all__ = [
    # Protocols
    "BundleBuild",
    "BundleCompiler",
    "CompiledBundle",
    "PostProcessor",
    # Implementations
    "ArchiveBundleCompiler",
    "IncrementalPackager",
    "NullPostProcessor",
    "OffsetPostProcessor",
    "PackageResult",
    "XorPostProcessor",
    "create_post_processor",
]
