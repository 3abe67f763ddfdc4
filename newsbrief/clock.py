"""Injectable time source.

Every component that needs "now" takes a :data:`Clock` instead of reading
system time directly, so decay and recency maths can be exercised in tests
without real waits.
"""

from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Callable

# Returns the current time as milliseconds since the Unix epoch.
Clock = Callable[[], float]


def wall_clock_ms() -> float:
    """Return the current wall-clock time in epoch milliseconds."""
    return time.time() * 1000


def ms_to_datetime(ms: float) -> datetime:
    """Convert epoch milliseconds to a UTC-aware :class:`datetime`."""
    return datetime.fromtimestamp(ms / 1000, tz=timezone.utc)


class ManualClock:
    """A clock that only moves when told to.

    Useful wherever deterministic time is needed (tests, replays).

    Args:
        start_ms: Initial time in epoch milliseconds.
    """

    def __init__(self, start_ms: float = 0.0) -> None:
        self._now_ms = float(start_ms)

    def __call__(self) -> float:
        return self._now_ms

    def advance(self, ms: float) -> None:
        """Move the clock forward by *ms* milliseconds."""
        self._now_ms += ms

