"""Parallel fan-out for independent tasks.

Runs a batch of thunks concurrently and returns results in submission order.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Generic, Sequence, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

Thunk = Callable[[], Awaitable[T]]


@dataclass
class FanOutState:
    """Tracks the state of one fan-out batch, keyed by submission index."""

    running: set[int] = field(default_factory=set)
    completed: set[int] = field(default_factory=set)
    failed: set[int] = field(default_factory=set)
    completion_order: list[int] = field(default_factory=list)

    @property
    def is_done(self) -> bool:
        return len(self.running) == 0

    def get_status_summary(self) -> str:
        return (
            f"Running: {len(self.running)}, "
            f"Completed: {len(self.completed)}, Failed: {len(self.failed)}"
        )


class ParallelFanOut(Generic[T]):
    """Executes independent thunks concurrently with gather semantics.

    Features:
    - Result order matches submission order, not completion order
    - Concurrency limited by a semaphore
    - Optional callbacks for UI/journal updates
    - The first failure propagates to the caller; no partial results
    """

    def __init__(
        self,
        thunks: Sequence[Thunk[T]],
        max_concurrent: int = 4,
        on_start: Callable[[int], Awaitable[None]] | None = None,
        on_complete: Callable[[int, Any], Awaitable[None]] | None = None,
    ) -> None:
        """Initialize the fan-out.

        Args:
            thunks: Zero-argument async callables, one per unit of work
            max_concurrent: Maximum concurrent executions
            on_start: Callback(index) when a thunk starts
            on_complete: Callback(index, result) when a thunk finishes
        """
        if max_concurrent < 1:
            raise ValueError("max_concurrent must be at least 1")
        self.thunks = list(thunks)
        self.max_concurrent = max_concurrent
        self.on_start = on_start
        self.on_complete = on_complete
        self.state = FanOutState()
        self._semaphore = asyncio.Semaphore(max_concurrent)

    async def _run_one(self, index: int, thunk: Thunk[T]) -> T:
        async with self._semaphore:
            self.state.running.add(index)
            if self.on_start:
                await self.on_start(index)

            try:
                result = await thunk()
            except Exception:
                self.state.running.discard(index)
                self.state.failed.add(index)
                logger.error("Parallel unit %d failed", index)
                raise

            self.state.running.discard(index)
            self.state.completed.add(index)
            self.state.completion_order.append(index)

            if self.on_complete:
                await self.on_complete(index, result)

            return result

    async def execute_all(self) -> list[T]:
        """Run every thunk and join. Results are in submission order."""
        if not self.thunks:
            return []

        logger.info(
            "Starting parallel fan-out: %d units (max %d concurrent)",
            len(self.thunks), self.max_concurrent,
        )

        results = await asyncio.gather(
            *(self._run_one(i, thunk) for i, thunk in enumerate(self.thunks))
        )

        logger.info("Parallel fan-out complete: %s", self.state.get_status_summary())
        return list(results)


async def run_all(thunks: Sequence[Thunk[T]], max_concurrent: int = 4) -> list[T]:
    """Convenience wrapper: run thunks concurrently, results in submission order."""
    return await ParallelFanOut(thunks, max_concurrent=max_concurrent).execute_all()
