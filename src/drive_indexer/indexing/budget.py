"""Clock abstraction and per-tick time budget.

Production code uses SystemClock. Tests inject a controllable clock so
budget exhaustion can be exercised without sleeping.
"""

from __future__ import annotations

import time
from typing import Protocol

# Under the host's hard execution ceiling, with margin for the final flush.
DEFAULT_TIME_BUDGET_SECONDS = 5.5 * 60


class Clock(Protocol):
    """Abstract monotonic clock."""

    def monotonic(self) -> float:
        """Return monotonic time in seconds."""
        ...


class SystemClock:
    """Production clock using time.monotonic()."""

    def monotonic(self) -> float:
        return time.monotonic()


DEFAULT_CLOCK: Clock = SystemClock()


class TimeBudget:
    """Wall-clock allowance for one tick, measured from construction.

    Checks are plain comparisons against the captured start time; nothing
    blocks or waits.
    """

    def __init__(
        self,
        seconds: float = DEFAULT_TIME_BUDGET_SECONDS,
        clock: Clock = DEFAULT_CLOCK,
    ) -> None:
        if seconds <= 0:
            raise ValueError(f"time budget must be positive, got {seconds}")
        self._seconds = seconds
        self._clock = clock
        self._started = clock.monotonic()

    @property
    def seconds(self) -> float:
        return self._seconds

    def elapsed(self) -> float:
        return self._clock.monotonic() - self._started

    def expired(self) -> bool:
        return self.elapsed() > self._seconds
