"""Exception hierarchy for bundlr.

Core modules raise these; ``bundlr.core.build.BuildExecutor`` is the only
place that converts them into result objects.
"""

from __future__ import annotations


class BundlrError(Exception):
    """Base class for all bundlr errors."""


class ConfigValidationError(BundlrError):
    """A group or path configuration is invalid."""

    def __init__(self, group_name: str, message: str) -> None:
        self.group_name = group_name
        self.message = message
        super().__init__(f"Group '{group_name}': {message}")


class PackagingFailure(BundlrError):
    """The bundle compiler failed or produced no result for a manifest."""

    def __init__(self, manifest_name: str, message: str = "bundle compilation failed") -> None:
        self.manifest_name = manifest_name
        self.message = message
        super().__init__(f"Manifest '{manifest_name}': {message}")


class MissingArtifactError(BundlrError):
    """An expected artifact file is absent after reconciliation."""

    def __init__(self, manifest_name: str, artifact: str) -> None:
        self.manifest_name = manifest_name
        self.artifact = artifact
        super().__init__(f"Manifest '{manifest_name}': artifact file does not exist: {artifact}")


class BuildCancelled(BundlrError):
    """A cooperative step sequence was aborted by the caller."""

    def __init__(self, phase: str = "build") -> None:
        self.phase = phase
        super().__init__(f"{phase} cancelled")


class DiffOrderError(BundlrError, ValueError):
    """Two build records were passed to the diff engine in reverse order."""


class RecordNotFoundError(BundlrError, KeyError):
    """No build record exists for the requested version."""

    def __init__(self, version: int) -> None:
        self.version = version
        super().__init__(f"No build record for version {version}")

    def __str__(self) -> str:
        return f"No build record for version {self.version}"
