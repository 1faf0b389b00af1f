"""Build operations exposed to the CLI and other automation."""

from bundlr.core.build.executor import BuildExecutor, create_executor
from bundlr.core.build.result import (
    OperationResult,
    cancelled_result,
    failure_result,
    success_result,
)

__all__ = [
    "BuildExecutor",
    "OperationResult",
    "cancelled_result",
    "create_executor",
    "failure_result",
    "success_result",
]
