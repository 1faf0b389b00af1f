"""Result type for build operations.

Operations never raise for expected failures; errors are captured in the
result, mirroring the success/error contract of a pipeline stage.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class OperationResult(BaseModel):
    """Result of one build operation.

    Attributes:
        success: Whether the operation completed
        operation: Operation name (e.g. "package_all")
        error: Human-readable error (if success=False)
        cancelled: The caller aborted a cooperative phase
        version: Current version after the operation, when relevant
        changed: Whether the operation produced a new version
        details: Operation-specific payload (reports, counts)

    Example:
        >>> result = executor.package_all()
        >>> if not result.success:
        ...     print(result.error)
    """

    success: bool = Field(description="Whether the operation completed")
    operation: str = Field(description="Operation name")
    error: str | None = Field(default=None, description="Error message (if failure)")
    cancelled: bool = Field(default=False, description="Aborted by the caller")
    version: int | None = Field(default=None, description="Version after the operation")
    changed: bool = Field(default=False, description="A new version was published")
    details: dict[str, Any] = Field(default_factory=dict, description="Operation payload")

    model_config = ConfigDict(frozen=True, extra="forbid", arbitrary_types_allowed=True)


def success_result(
    operation: str,
    version: int | None = None,
    changed: bool = False,
    details: dict[str, Any] | None = None,
) -> OperationResult:
    return OperationResult(
        success=True,
        operation=operation,
        version=version,
        changed=changed,
        details=details or {},
    )


def failure_result(error: str, operation: str) -> OperationResult:
    return OperationResult(success=False, operation=operation, error=error)


def cancelled_result(operation: str, reason: str = "Cancelled by caller") -> OperationResult:
    return OperationResult(success=False, operation=operation, error=reason, cancelled=True)
