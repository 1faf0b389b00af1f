"""Protocol for dependency scanners."""

from typing import Protocol


class DependencyScanner(Protocol):
    """
    Protocol for asset dependency scanners.

    Implementations report only the direct (single-level) dependencies of
    a project-relative path; bundlr computes transitive closures itself.
    """

    def get_dependencies(self, path: str) -> set[str]:
        """
        Return the direct dependencies of an asset.

        Args:
            path: Project-relative POSIX path

        Returns:
            Project-relative paths referenced by the asset (may include itself)
        """
        ...
