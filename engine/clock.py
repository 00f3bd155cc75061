"""Clocks used by the timed parts of the engine.

A clock is any zero-argument callable returning the current time in
milliseconds. Real play uses the monotonic system clock; tests and the
RL environment drive time explicitly with ManualClock.
"""

from __future__ import annotations

import time
from typing import Callable

Clock = Callable[[], float]


def monotonic_ms() -> float:
    """Current monotonic time in milliseconds."""
    return time.monotonic() * 1000.0


class ManualClock:
    """A clock that only moves when told to.

    Calling the instance returns the current time, so it can be passed
    anywhere a Clock is expected.
    """

    def __init__(self, start_ms: float = 0.0):
        self._now = float(start_ms)

    def __call__(self) -> float:
        return self._now

    @property
    def now(self) -> float:
        return self._now

    def advance(self, delta_ms: float) -> float:
        """Move the clock forward and return the new time.

        Raises:
            ValueError: If delta_ms is negative.
        """
        if delta_ms < 0:
            raise ValueError(f"Clock cannot move backwards (delta={delta_ms})")
        self._now += delta_ms
        return self._now

    def set(self, now_ms: float) -> None:
        """Jump to an absolute time no earlier than the current one."""
        if now_ms < self._now:
            raise ValueError(f"Clock cannot move backwards ({now_ms} < {self._now})")
        self._now = float(now_ms)
