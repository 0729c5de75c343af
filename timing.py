# =========  timing.py  =========
"""
Time sources for the playback clock.

Everything that needs "now" asks a clock object instead of calling
time.monotonic() directly, so tests can drive time by hand.
"""

from __future__ import annotations

import threading
import time
from typing import Callable, Protocol, runtime_checkable


@runtime_checkable
class Clock(Protocol):
    def now(self) -> float:
        """Return the current time in seconds."""


class MonotonicClock:
    """Real time, never jumps backwards."""

    def __init__(self, monotonic_fn: Callable[[], float] = time.monotonic):
        self._fn = monotonic_fn

    def now(self) -> float:
        return self._fn()


class SteppedClock:
    """
    Deterministic clock for tests.
    Time moves only when advance() or set() is called.
    """

    def __init__(self, start: float = 0.0) -> None:
        self._current = start
        self._lock = threading.Lock()

    def now(self) -> float:
        with self._lock:
            return self._current

    def advance(self, seconds: float) -> float:
        if seconds < 0.0:
            raise ValueError("seconds must be non-negative")
        with self._lock:
            self._current += seconds
            return self._current

    def set(self, when: float) -> float:
        """Move forward to *when*; earlier values are ignored."""
        with self._lock:
            if when > self._current:
                self._current = when
            return self._current
