"""Transitive dependency closure."""

from __future__ import annotations

from collections import deque
import logging

from bundlr.core.config.models import DependencyConfig
from bundlr.core.dependencies.protocols import DependencyScanner

logger = logging.getLogger(__name__)


class DependencyResolver:
    """Computes transitive reference sets on top of a single-level scanner.

    Scanner answers are memoised per path, so each asset is scanned at
    most once per resolver. Cycles are tolerated.
    """

    def __init__(self, scanner: DependencyScanner, config: DependencyConfig | None = None) -> None:
        self.scanner = scanner
        self.config = config or DependencyConfig()
        self._direct: dict[str, frozenset[str]] = {}

    def direct_dependencies(self, path: str) -> frozenset[str]:
        cached = self._direct.get(path)
        if cached is None:
            cached = frozenset(self.scanner.get_dependencies(path))
            self._direct[path] = cached
        return cached

    def is_excluded(self, path: str) -> bool:
        """Whether a dependency may never be split into its own bundle.

        Excluded: configured suffixes (code, binaries, atlases, baked
        lighting, timeline data) and anything under an editor-only folder.
        """
        if any(path.endswith(suffix) for suffix in self.config.excluded_suffixes):
            return True
        marker = self.config.editor_folder_marker.lower()
        return bool(marker) and marker in f"/{path.lower()}"

    def closure(self, path: str) -> list[str]:
        """Return the sorted transitive dependencies of path.

        Self-references and excluded paths are left out of the result;
        traversal still continues through excluded nodes.
        """
        seen: set[str] = {path}
        queue = deque([path])
        while queue:
            current = queue.popleft()
            for dep in self.direct_dependencies(current):
                if dep not in seen:
                    seen.add(dep)
                    queue.append(dep)

        seen.discard(path)
        return sorted(dep for dep in seen if not self.is_excluded(dep))
