"""Tests for progress tracking and bounded fan-out."""

from __future__ import annotations

import asyncio
from unittest.mock import MagicMock

import pytest

from pocketprefs.core.concurrency import gather_bounded
from pocketprefs.core.progress import ProgressTracker, ProgressUpdate


class TestProgressUpdate:
    @pytest.mark.parametrize(("raw", "expected"), [(-0.5, 0.0), (0.25, 0.25), (1.7, 1.0)])
    def test_fraction_is_clamped(self, raw: float, expected: float) -> None:
        assert ProgressUpdate(raw).fraction == expected

    def test_from_counts(self) -> None:
        assert ProgressUpdate.from_counts(1, 4, "one").fraction == 0.25
        assert ProgressUpdate.from_counts(0, 0).fraction == 0.0


class TestProgressTracker:
    def test_advance_reports_each_step(self) -> None:
        handler = MagicMock()
        tracker = ProgressTracker(2, handler)

        tracker.advance("first")
        tracker.advance("second")

        assert tracker.completed == 2
        assert [c.args[0] for c in handler.call_args_list] == [
            ProgressUpdate(0.5, "first"),
            ProgressUpdate(1.0, "second"),
        ]

    def test_without_handler(self) -> None:
        assert ProgressTracker(1).advance().fraction == 1.0

    def test_handler_errors_are_swallowed(self) -> None:
        tracker = ProgressTracker(1, MagicMock(side_effect=ValueError("closed")))
        assert tracker.advance("done").fraction == 1.0


class TestGatherBounded:
    def test_respects_limit_and_order(self) -> None:
        in_flight = 0
        peak = 0

        async def worker(i: int) -> int:
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.01)
            in_flight -= 1
            return i * 2

        results = asyncio.run(gather_bounded(range(10), worker, 3))

        assert results == [i * 2 for i in range(10)]
        assert peak == 3

    def test_zero_limit_still_runs(self) -> None:
        async def worker(i: int) -> int:
            return i

        assert asyncio.run(gather_bounded([1, 2], worker, 0)) == [1, 2]

    def test_empty_input(self) -> None:
        async def worker(i: int) -> int:
            return i

        assert asyncio.run(gather_bounded([], worker, 4)) == []
