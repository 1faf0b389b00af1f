"""Cooperative step sequences with progress reporting and cancellation.

Long phases (dependency closure, snapshot diffing) are written as
generators yielding ``ProgressUpdate`` values. ``drive_steps`` runs such a
generator to completion, checking a ``threading.Event`` before every step.
"""

from __future__ import annotations

from collections.abc import Callable, Generator
from dataclasses import dataclass
import logging
import threading
from typing import TypeVar

from bundlr.core.errors import BuildCancelled

logger = logging.getLogger(__name__)

T = TypeVar("T")

ProgressCallback = Callable[["ProgressUpdate"], None]


@dataclass(frozen=True)
class ProgressUpdate:
    """One step of a long-running phase.

    Attributes:
        phase: Phase identifier (e.g. "dependencies", "diff")
        current: Number of completed steps
        total: Total number of steps (0 when unknown)
        item: Item processed by this step
    """

    phase: str
    current: int
    total: int
    item: str = ""

    @property
    def fraction(self) -> float:
        """Progress in the range 0..1."""
        if self.total <= 0:
            return 1.0
        return min(1.0, self.current / self.total)


def drive_steps(
    steps: Generator[ProgressUpdate, None, T],
    phase: str,
    progress: ProgressCallback | None = None,
    cancel_token: threading.Event | None = None,
) -> T:
    """Run a step generator to completion and return its result.

    Args:
        steps: Generator yielding progress updates and returning the result
        phase: Phase name used in the cancellation error
        progress: Optional callback invoked after each step
        cancel_token: Optional event; when set, the run stops before the next step

    Returns:
        The generator's return value

    Raises:
        BuildCancelled: If cancel_token was set before the sequence finished
    """
    while True:
        if cancel_token is not None and cancel_token.is_set():
            steps.close()
            logger.info(f"{phase} cancelled by caller")
            raise BuildCancelled(phase)
        try:
            update = next(steps)
        except StopIteration as stop:
            return stop.value
        if progress is not None:
            progress(update)
