"""Result objects returned by the backup, restore and import operations."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class OperationResult:
    """
    Outcome of a backup or restore run.

    ``success_count + len(failed_entries) == total_processed`` always holds.
    """

    success_count: int = 0
    failed_entries: list[tuple[str, str]] = field(default_factory=list)  # (name, error)
    total_processed: int = 0

    @property
    def failed_count(self) -> int:
        return len(self.failed_entries)

    @property
    def is_success(self) -> bool:
        return not self.failed_entries

    @classmethod
    def from_outcomes(cls, outcomes: list[tuple[str, str | None]]) -> OperationResult:
        """Build a result from ``(name, error-or-None)`` pairs."""
        failed = [(name, error) for name, error in outcomes if error is not None]
        return cls(
            success_count=len(outcomes) - len(failed),
            failed_entries=failed,
            total_processed=len(outcomes),
        )

    def merge(self, other: OperationResult) -> OperationResult:
        """Combine two partial results into one."""
        return OperationResult(
            success_count=self.success_count + other.success_count,
            failed_entries=self.failed_entries + other.failed_entries,
            total_processed=self.total_processed + other.total_processed,
        )


@dataclass
class MergeResult:
    """Counts from an import merge."""

    added: int = 0
    updated: int = 0
    skipped: int = 0

    @property
    def total(self) -> int:
        return self.added + self.updated + self.skipped
