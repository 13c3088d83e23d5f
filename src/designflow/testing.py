"""Deterministic clock and id helpers for reproducible process runs."""

from __future__ import annotations

import itertools
import uuid
from datetime import datetime, timedelta, timezone
from typing import Callable

Clock = Callable[[], datetime]
IdFactory = Callable[[], str]

DEFAULT_CLOCK_START = datetime(2025, 1, 1, tzinfo=timezone.utc)


def system_clock() -> datetime:
    """Current UTC time."""
    return datetime.now(timezone.utc)


def random_id() -> str:
    return uuid.uuid4().hex[:12]


class FixedClock:
    """A clock that advances by a fixed step each time it is read.

    Example:
        clock = FixedClock(step=timedelta(seconds=1))
        clock()  # 2025-01-01T00:00:00+00:00
        clock()  # 2025-01-01T00:00:01+00:00
    """

    def __init__(
        self,
        start: datetime = DEFAULT_CLOCK_START,
        step: timedelta = timedelta(seconds=1),
    ) -> None:
        self.start = start
        self.step = step
        self._current = start

    def __call__(self) -> datetime:
        value = self._current
        self._current = self._current + self.step
        return value

    def peek(self) -> datetime:
        return self._current

    def advance(self, delta: timedelta | None = None) -> datetime:
        """Move the clock forward without reading it."""
        self._current = self._current + (delta if delta is not None else self.step)
        return self._current

    def reset(self) -> None:
        self._current = self.start


class SequentialIds:
    """Deterministic id factory: ``prefix-0001``, ``prefix-0002``, ..."""

    def __init__(self, prefix: str = "id", width: int = 4) -> None:
        self.prefix = prefix
        self.width = width
        self._counter = itertools.count(1)

    def __call__(self) -> str:
        return f"{self.prefix}-{next(self._counter):0{self.width}d}"
