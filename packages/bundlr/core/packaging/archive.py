"""Reference bundle compiler writing deterministic zip archives."""

from __future__ import annotations

from collections import deque
from collections.abc import Mapping, Sequence
import io
import logging
from pathlib import Path
import zipfile

from bundlr.core.config.models import CompileOptions
from bundlr.core.dependencies.protocols import DependencyScanner
from bundlr.core.dependencies.scanners import NullDependencyScanner
from bundlr.core.fingerprint import compute_bytes_hash
from bundlr.core.packaging.protocols import BundleBuild, CompiledBundle

logger = logging.getLogger(__name__)

_FIXED_DATE_TIME = (1980, 1, 1, 0, 0, 0)
_COMPRESSION = {"deflate": zipfile.ZIP_DEFLATED, "store": zipfile.ZIP_STORED}


class ArchiveBundleCompiler:
    """Packs each bundle's source files into a zip archive.

    Archives are byte-for-byte reproducible: entries are sorted and carry a
    fixed timestamp, so unchanged sources always yield the same hash.
    Bundle dependencies are derived from the scanner: a bundle depends on
    every other bundle owning an asset reachable from its sources through
    assets that no bundle owns (those are embedded).
    """

    def __init__(self, project_root: Path, scanner: DependencyScanner | None = None) -> None:
        self.project_root = Path(project_root)
        self.scanner = scanner or NullDependencyScanner()

    def compile(
        self,
        output_dir: Path,
        builds: Sequence[BundleBuild],
        options: CompileOptions,
    ) -> Mapping[str, CompiledBundle] | None:
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)
        compression = _COMPRESSION[options.compression]

        owner = {path: build.name for build in builds for path in build.source_paths}
        compiled: dict[str, CompiledBundle] = {}

        for build in builds:
            try:
                data = self._pack(build, compression)
            except FileNotFoundError as e:
                logger.error(f"Cannot compile bundle '{build.name}': {e}")
                return None

            content_hash = compute_bytes_hash(data)
            (output_dir / f"{build.name}_{content_hash}").write_bytes(data)
            compiled[build.name] = CompiledBundle(
                hash=content_hash,
                dependencies=self._bundle_dependencies(build, owner),
            )
            logger.debug(f"Compiled {build.name} ({len(data)} bytes, {content_hash})")

        return compiled

    def _pack(self, build: BundleBuild, compression: int) -> bytes:
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w", compression=compression) as archive:
            for source_path in sorted(build.source_paths):
                info = zipfile.ZipInfo(source_path, date_time=_FIXED_DATE_TIME)
                info.compress_type = compression
                info.external_attr = 0o644 << 16
                archive.writestr(info, (self.project_root / source_path).read_bytes())
        return buffer.getvalue()

    def _bundle_dependencies(self, build: BundleBuild, owner: Mapping[str, str]) -> tuple[str, ...]:
        found: set[str] = set()
        seen: set[str] = set(build.source_paths)
        queue = deque(build.source_paths)
        while queue:
            current = queue.popleft()
            for dep in self.scanner.get_dependencies(current):
                if dep in seen:
                    continue
                seen.add(dep)
                dep_owner = owner.get(dep)
                if dep_owner is None:
                    queue.append(dep)
                elif dep_owner != build.name:
                    found.add(dep_owner)
        return tuple(sorted(found))
