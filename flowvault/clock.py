"""Scheduling time sources."""

import time


class Clock:
    """Source of the current scheduling time in integer seconds."""

    def now(self) -> int:
        raise NotImplementedError


class SystemClock(Clock):
    """Epoch seconds, anchored once and advanced with the monotonic clock.

    Wall-clock adjustments after construction never move scheduling time
    backwards.
    """

    def __init__(self) -> None:
        self._anchor = int(time.time())
        self._start = time.monotonic()

    def now(self) -> int:
        return self._anchor + int(time.monotonic() - self._start)


class ManualClock(Clock):
    """Clock advanced explicitly, for tests and simulations."""

    def __init__(self, start: int = 0) -> None:
        self._now = start

    def now(self) -> int:
        return self._now

    def set(self, timestamp: int) -> None:
        if timestamp < self._now:
            raise ValueError(f"Clock cannot move backwards ({timestamp} < {self._now})")
        self._now = timestamp

    def advance(self, seconds: int) -> int:
        """Move the clock forward and return the new time."""
        if seconds < 0:
            raise ValueError("Clock cannot move backwards")
        self._now += seconds
        return self._now
