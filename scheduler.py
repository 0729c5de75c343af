"""
scheduler.py – single-threaded owner loop for the playback core

Everything that mutates a PlaybackController (ticks, the entering→playing
settle step and queued-advance drains) runs as a callback on this
scheduler, which is pumped by exactly one thread.  Remote commands reach
the owner loop through EventManager instead.

• call_soon / call_later / call_every – owner thread only.
• call_soon_threadsafe – any thread; lands in a queue.Queue inbox that is
  drained at the start of every run_once().  Callers that post actions use
  EventManager, not this.
• run_once()  – run everything that is due right now.
• run_for(s)  – pump in real time for *s* seconds.
• advance(s)  – stepped clocks only: jump time deadline by deadline.
"""

from __future__ import annotations

import collections
import heapq
import itertools
import logging
import queue
import time
from typing import Any, Callable, Deque, List, Optional

from timing import Clock, MonotonicClock

logger = logging.getLogger(__name__)

Callback = Callable[..., Any]


class Handle:
    """A scheduled callback.  cancel() guarantees it never runs again."""

    __slots__ = ("when", "seq", "fn", "args", "interval", "cancelled")

    def __init__(self, when: float, seq: int, fn: Callback, args: tuple,
                 interval: Optional[float] = None) -> None:
        self.when      = when
        self.seq       = seq
        self.fn        = fn
        self.args      = args
        self.interval  = interval
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True

    def __lt__(self, other: "Handle") -> bool:
        return (self.when, self.seq) < (other.when, other.seq)

    def __repr__(self) -> str:
        name = getattr(self.fn, "__qualname__", repr(self.fn))
        state = " cancelled" if self.cancelled else ""
        return f"<Handle {name} at {self.when:.3f}{state}>"


class Scheduler:
    def __init__(self, clock: Clock | None = None,
                 sleep_fn: Callable[[float], None] = time.sleep,
                 poll_interval: float = 0.005) -> None:
        self.clock = clock or MonotonicClock()
        self._sleep = sleep_fn
        self._poll = poll_interval
        self._seq = itertools.count()
        self._timers: List[Handle] = []
        self._ready: Deque[Handle] = collections.deque()
        self._inbox: "queue.Queue[Handle]" = queue.Queue()

    def now(self) -> float:
        return self.clock.now()

    # ── scheduling (owner thread) ─────────────────────────────────────────
    def call_soon(self, fn: Callback, *args) -> Handle:
        h = Handle(self.now(), next(self._seq), fn, args)
        self._ready.append(h)
        return h

    def call_later(self, delay: float, fn: Callback, *args) -> Handle:
        h = Handle(self.now() + max(0.0, delay), next(self._seq), fn, args)
        heapq.heappush(self._timers, h)
        return h

    def call_every(self, interval: float, fn: Callback, *args) -> Handle:
        """First run one *interval* from now, then every *interval*."""
        if interval <= 0.0:
            raise ValueError("interval must be greater than zero")
        h = Handle(self.now() + interval, next(self._seq), fn, args, interval)
        heapq.heappush(self._timers, h)
        return h

    # ── scheduling (any thread) ───────────────────────────────────────────
    def call_soon_threadsafe(self, fn: Callback, *args) -> Handle:
        h = Handle(0.0, 0, fn, args)
        self._inbox.put(h)
        return h

    # ── pumping ───────────────────────────────────────────────────────────
    def run_once(self) -> int:
        """Run every due callback; returns how many ran."""
        self._drain_inbox()
        now = self.now()
        while self._timers and self._timers[0].when <= now:
            h = heapq.heappop(self._timers)
            if h.cancelled:
                continue
            if h.interval is not None:
                # re-arm before running so the callback may cancel itself
                h.when += h.interval
                if h.when <= now:
                    h.when = now + h.interval
                h.seq = next(self._seq)
                heapq.heappush(self._timers, h)
            self._ready.append(h)

        ran = 0
        while self._ready:
            h = self._ready.popleft()
            if h.cancelled:
                continue
            ran += 1
            try:
                h.fn(*h.args)
            except Exception:
                logger.exception("scheduled callback %r failed", h)
        return ran

    def run_for(self, seconds: float) -> None:
        """Pump in real time until *seconds* have passed."""
        deadline = self.now() + seconds
        while True:
            self.run_once()
            now = self.now()
            if now >= deadline:
                return
            wait = deadline - now
            nxt = self._next_deadline()
            if nxt is not None:
                wait = min(wait, max(0.0, nxt - now))
            self._sleep(min(wait, self._poll))

    def advance(self, seconds: float) -> None:
        """
        Step a SteppedClock forward by *seconds*, stopping at every timer
        deadline on the way so repeating ticks fire exactly as in real time.
        """
        step_to = getattr(self.clock, "set", None)
        if step_to is None:
            raise TypeError("advance() needs a clock with set(), e.g. SteppedClock")
        target = self.now() + seconds
        self.run_once()
        while True:
            nxt = self._next_deadline()
            if nxt is None or nxt > target:
                break
            step_to(nxt)
            self.run_once()
        step_to(target)
        self.run_once()

    def scheduled(self) -> int:
        """Number of live (not cancelled) callbacks waiting to run."""
        live = sum(1 for h in self._timers if not h.cancelled)
        live += sum(1 for h in self._ready if not h.cancelled)
        return live + self._inbox.qsize()

    # ── internals ─────────────────────────────────────────────────────────
    def _next_deadline(self) -> Optional[float]:
        while self._timers and self._timers[0].cancelled:
            heapq.heappop(self._timers)
        return self._timers[0].when if self._timers else None

    def _drain_inbox(self) -> None:
        while True:
            try:
                h = self._inbox.get_nowait()
            except queue.Empty:
                return
            self._ready.append(h)
