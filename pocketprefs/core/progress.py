"""Progress reporting for backup and restore runs."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from loguru import logger


@dataclass(frozen=True)
class ProgressUpdate:
    """Completion fraction in ``[0, 1]`` with an optional status message."""

    fraction: float
    message: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "fraction", min(max(self.fraction, 0.0), 1.0))

    @classmethod
    def from_counts(cls, completed: int, total: int, message: str | None = None) -> ProgressUpdate:
        return cls(completed / total if total > 0 else 0.0, message)


ProgressHandler = Callable[[ProgressUpdate], None]


class ProgressTracker:
    """
    Shared completion counter for one run.

    Every unit of work calls :meth:`advance` exactly once, so the reported
    fraction is strictly increasing. Delivery is fire-and-forget: a failing
    handler is logged and otherwise ignored.
    """

    def __init__(self, total: int, handler: ProgressHandler | None = None) -> None:
        self._total = total
        self._handler = handler
        self._completed = 0

    @property
    def completed(self) -> int:
        return self._completed

    def advance(self, message: str | None = None) -> ProgressUpdate:
        self._completed += 1
        update = ProgressUpdate.from_counts(self._completed, self._total, message)
        if self._handler is not None:
            try:
                self._handler(update)
            except Exception as e:
                logger.warning(f"Progress handler raised: {e}")
        return update
