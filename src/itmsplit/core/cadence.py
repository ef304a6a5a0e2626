from __future__ import annotations

import time
from typing import Callable, Optional

# Nominal tick period
TICK_PERIOD_MS = 1000

# Subtracted from every wait so we wake just before the tick boundary
GUARD_US = 500


def timestamp_ms() -> int:
    """Monotonic time in whole milliseconds."""
    return int(time.monotonic() * 1000)


def remaining(last_tick_ms: int, now_ms: int, period_ms: int = TICK_PERIOD_MS, guard_us: int = GUARD_US) -> int:
    """Microseconds left until the tick boundary following ``last_tick_ms``.

    A non-positive result means the boundary has passed and the caller should
    poll without waiting. Each call is relative to the fixed anchor, so slow
    reads never push later ticks back.
    """
    return ((last_tick_ms + period_ms) - now_ms) * 1000 - guard_us


class CadenceClock:
    """Holds the tick anchor for the current source session."""

    def __init__(
        self,
        period_ms: int = TICK_PERIOD_MS,
        guard_us: int = GUARD_US,
        *,
        clock: Optional[Callable[[], int]] = None,
    ):
        self.period_ms = period_ms
        self.guard_us = guard_us
        self._clock = clock or timestamp_ms
        self.last_tick_ms = self._clock()

    def mark(self) -> int:
        """Re-anchor the cadence at the current time."""
        self.last_tick_ms = self._clock()
        return self.last_tick_ms

    def remaining_us(self) -> int:
        return remaining(self.last_tick_ms, self._clock(), self.period_ms, self.guard_us)
