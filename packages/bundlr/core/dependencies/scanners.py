"""Reference dependency scanners."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
import logging
from pathlib import Path

from bundlr.core.config.loader import load_config

logger = logging.getLogger(__name__)


class NullDependencyScanner:
    """Scanner for projects without inter-asset references."""

    def get_dependencies(self, path: str) -> set[str]:
        return set()


class MappingDependencyScanner:
    """Scanner backed by an explicit ``{path: [dependency, ...]}`` mapping.

    Example:
        >>> scanner = MappingDependencyScanner({"a.prefab": ["shared/tex.png"]})
        >>> scanner.get_dependencies("a.prefab")
        {'shared/tex.png'}
    """

    def __init__(self, mapping: Mapping[str, Iterable[str]]) -> None:
        self._mapping = {
            _normalize(path): {_normalize(dep) for dep in deps} for path, deps in mapping.items()
        }

    @classmethod
    def from_file(cls, path: str | Path) -> MappingDependencyScanner:
        """Load the mapping from a JSON or YAML file.

        Raises:
            ValueError: If the file does not contain a mapping of lists
        """
        data = load_config(path)
        if not isinstance(data, dict) or not all(isinstance(v, list) for v in data.values()):
            raise ValueError(f"Dependency map must be a mapping of path -> list: {path}")
        logger.debug(f"Loaded dependency map {path} ({len(data)} entries)")
        return cls(data)

    def get_dependencies(self, path: str) -> set[str]:
        return set(self._mapping.get(_normalize(path), ()))


def _normalize(path: str) -> str:
    return path.replace("\\", "/")
