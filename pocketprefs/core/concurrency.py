"""Bounded fan-out shared by the backup and restore engines."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Iterable, TypeVar

T = TypeVar("T")
R = TypeVar("R")


async def gather_bounded(
    items: Iterable[T],
    worker: Callable[[T], Awaitable[R]],
    limit: int,
) -> list[R]:
    """
    Run ``worker`` over ``items`` with at most ``limit`` in flight.

    Results keep the order of ``items``. Cancelling the caller cancels every
    unit still waiting for a slot; units already running finish their
    current blocking call (threads cannot be interrupted).
    """
    semaphore = asyncio.Semaphore(max(1, limit))

    async def _run(item: T) -> R:
        async with semaphore:
            return await worker(item)

    return list(await asyncio.gather(*(_run(item) for item in items)))
