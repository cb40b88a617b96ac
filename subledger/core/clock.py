"""Injectable time source.

Ledger operations read "now" from a Clock instead of the wall clock so that
tests can step a subscription across its expiry boundary.
"""

import threading
import time
from typing import Optional


class Clock:
    """Unix-seconds time source."""

    def now(self) -> int:
        raise NotImplementedError


class SystemClock(Clock):
    def now(self) -> int:
        return int(time.time())


class FixedClock(Clock):
    """Clock that only moves when told to."""

    def __init__(self, ts: int):
        self._ts = int(ts)
        self._lock = threading.Lock()

    def now(self) -> int:
        with self._lock:
            return self._ts

    def set(self, ts: int) -> None:
        with self._lock:
            self._ts = int(ts)

    def advance(self, seconds: int) -> int:
        with self._lock:
            self._ts += int(seconds)
            return self._ts


_clock: Clock = SystemClock()


def get_clock() -> Clock:
    """Return the process clock (FastAPI dependency)."""
    return _clock


def set_clock(clock: Optional[Clock]) -> Clock:
    """Swap the process clock; None restores the system clock. Returns the previous one."""
    global _clock
    previous = _clock
    _clock = clock or SystemClock()
    return previous


def resolve_now(clock: Optional[Clock] = None, now: Optional[int] = None) -> int:
    """An explicit `now` wins over the clock."""
    if now is not None:
        return int(now)
    return (clock or get_clock()).now()
