"""
playback.py

Playback core for the story player: one PlaybackController owns one
PlaybackSession and reconciles three input streams into it:

* the periodic progress tick (Scheduler.call_every),
* gestures (pause / resume / advance / jump) arriving from the viewer,
* programmatic requests (buffering, error, dismiss, cancel).

Every mutation happens on the scheduler's owner thread.  Public methods
act synchronously – after pause() returns, state is PAUSED_BY_HOLD – and
only the tick, the entering→playing settle step and queued-advance drains
are deferred.  Calls outside a legal transition are silent no-ops.
"""

from __future__ import annotations

import contextlib
import enum
import logging
from dataclasses import dataclass
from typing import Callable, Iterator, List, Optional

import config
from scheduler import Handle, Scheduler

logger = logging.getLogger(__name__)


class PlaybackState(enum.Enum):
    IDLE           = "idle"
    ENTERING       = "entering"
    PLAYING        = "playing"
    PAUSED_BY_HOLD = "pausedByHold"
    BUFFERING      = "buffering"
    ERROR          = "error"
    DISMISSING     = "dismissing"


_DISMISSIBLE = frozenset({
    PlaybackState.ENTERING,
    PlaybackState.PLAYING,
    PlaybackState.PAUSED_BY_HOLD,
    PlaybackState.BUFFERING,
})
# navigation is ignored once the session has ended one way or the other
_TERMINAL = frozenset({PlaybackState.ERROR, PlaybackState.DISMISSING})


# ── Data structures ─────────────────────────────────────────────────────────
@dataclass
class PlaybackSession:
    item_count: int
    item_duration: float
    current_index: int = 0
    elapsed_in_item: float = 0.0          # folded time, excludes the live run
    clock_anchor: Optional[float] = None  # start of the live run; PLAYING only
    pending_advances: int = 0
    state: PlaybackState = PlaybackState.IDLE
    progress_within_item: float = 0.0     # last published fraction


@dataclass(frozen=True)
class PlaybackSnapshot:
    """What the renderer sees."""
    state: PlaybackState
    current_index: int
    progress_within_item: float
    item_count: int

    @property
    def overall_progress(self) -> float:
        return self.current_index + self.progress_within_item


Listener = Callable[[PlaybackSnapshot], None]


# ── Controller ──────────────────────────────────────────────────────────────
class PlaybackController:
    """State machine + progress clock + advance coordinator for one session."""

    def __init__(self, item_count: int,
                 item_duration: float = config.DEFAULT_ITEM_DURATION,
                 *, scheduler: Scheduler | None = None,
                 loop: bool = config.LOOP_AT_END) -> None:
        if item_count < 1:
            raise ValueError("item_count must be at least 1")
        if not item_duration > 0.0:
            raise ValueError("item_duration must be greater than zero")

        self._s = PlaybackSession(int(item_count), float(item_duration))
        self._sched = scheduler or Scheduler()
        self._loop = loop
        self._listeners: List[Listener] = []
        self._publish_depth = 0

        self._settle: Optional[Handle] = None
        self._tick: Optional[Handle] = None
        self._drains: List[Handle] = []
        self._nav_epoch = 0          # bumped to orphan drains already queued
        self._retired = False

    # ── observable fields ─────────────────────────────────────────────────
    @property
    def state(self) -> PlaybackState:
        return self._s.state

    @property
    def current_index(self) -> int:
        return self._s.current_index

    @property
    def progress_within_item(self) -> float:
        return self._s.progress_within_item

    @property
    def overall_progress(self) -> float:
        return self._s.current_index + self._s.progress_within_item

    @property
    def item_count(self) -> int:
        return self._s.item_count

    @property
    def item_duration(self) -> float:
        return self._s.item_duration

    @property
    def pending_advances(self) -> int:
        return self._s.pending_advances

    @property
    def elapsed_in_item(self) -> float:
        return self._s.elapsed_in_item

    @property
    def clock_anchor(self) -> Optional[float]:
        return self._s.clock_anchor

    @property
    def scheduler(self) -> Scheduler:
        return self._sched

    def snapshot(self) -> PlaybackSnapshot:
        return PlaybackSnapshot(
            state=self._s.state,
            current_index=self._s.current_index,
            progress_within_item=self._s.progress_within_item,
            item_count=self._s.item_count,
        )

    # ── change notification ───────────────────────────────────────────────
    def add_listener(self, fn: Listener) -> Listener:
        self._listeners.append(fn)
        return fn

    def remove_listener(self, fn: Listener) -> None:
        with contextlib.suppress(ValueError):
            self._listeners.remove(fn)

    @contextlib.contextmanager
    def _publishing(self) -> Iterator[None]:
        """Notify listeners once, when the outermost mutation finishes."""
        before = self.snapshot() if self._publish_depth == 0 else None
        self._publish_depth += 1
        try:
            yield
        finally:
            self._publish_depth -= 1
        if before is None:
            return
        after = self.snapshot()
        if after != before:
            for fn in list(self._listeners):
                try:
                    fn(after)
                except Exception:
                    logger.exception("playback listener %r failed", fn)

    # ── state machine ─────────────────────────────────────────────────────
    def start(self) -> None:
        if self._retired or self._s.state is not PlaybackState.IDLE:
            logger.debug("start() ignored in %s", self._s.state.value)
            return
        with self._publishing():
            self._set_state(PlaybackState.ENTERING)
            self._settle = self._sched.call_later(config.SETTLE_DELAY, self._settled)

    def _settled(self) -> None:
        self._settle = None
        if self._s.state is not PlaybackState.ENTERING:
            return
        with self._publishing():
            self._s.elapsed_in_item = 0.0
            self._s.progress_within_item = 0.0
            self._s.clock_anchor = self._sched.now()
            self._set_state(PlaybackState.PLAYING)
            self._start_ticking()

    def pause(self) -> None:
        if self._s.state is not PlaybackState.PLAYING:
            logger.debug("pause() ignored in %s", self._s.state.value)
            return
        with self._publishing():
            self._fold_elapsed()
            self._stop_ticking()
            self._flush_queued_advances()
            self._set_state(PlaybackState.PAUSED_BY_HOLD)

    def resume(self) -> None:
        if self._s.state is not PlaybackState.PAUSED_BY_HOLD:
            logger.debug("resume() ignored in %s", self._s.state.value)
            return
        with self._publishing():
            self._s.clock_anchor = self._sched.now()
            self._set_state(PlaybackState.PLAYING)
            self._start_ticking()

    def enter_buffering(self) -> None:
        if self._s.state is not PlaybackState.PLAYING:
            return
        with self._publishing():
            # the tick keeps running but sees a non-playing state
            self._fold_elapsed()
            self._flush_queued_advances()
            self._set_state(PlaybackState.BUFFERING)

    def exit_buffering(self) -> None:
        if self._s.state is not PlaybackState.BUFFERING:
            return
        with self._publishing():
            self._s.clock_anchor = self._sched.now()
            self._set_state(PlaybackState.PLAYING)
            self._start_ticking()

    def enter_dismissing(self) -> None:
        if self._s.state not in _DISMISSIBLE:
            return
        with self._publishing():
            self._halt()
            self._set_state(PlaybackState.DISMISSING)

    def enter_error(self) -> None:
        if self._s.state is PlaybackState.ERROR:
            return
        with self._publishing():
            self._halt()
            self._set_state(PlaybackState.ERROR)

    def cancel(self) -> None:
        """Stop everything and retire the controller; build a new one to replay."""
        with self._publishing():
            self._stop_ticking()
            if self._settle is not None:
                self._settle.cancel()
                self._settle = None
            self._drop_queued_advances()
            self._s.clock_anchor = None
            self._retired = True
            self._set_state(PlaybackState.IDLE)

    # ── advance coordinator ───────────────────────────────────────────────
    def advance(self, by: int) -> None:
        """
        Forward steps are queued and drained off the tick's synchronous
        path, so a burst of taps and the clock's own end-of-item trigger
        each move exactly one story.  Backward steps apply immediately.
        """
        if not self._navigable():
            return
        if by > 0:
            with self._publishing():
                self._s.pending_advances += by
                if self._s.state is not PlaybackState.PLAYING:
                    # no tick will pick these up
                    self._hand_off()
        elif by < 0:
            with self._publishing():
                for _ in range(-by):
                    if self._s.current_index == 0:
                        break
                    self.previous_story()

    def jump_to_story(self, index: int) -> None:
        if not self._navigable():
            return
        if not 0 <= index < self._s.item_count:
            logger.debug("jump_to_story(%s) out of range", index)
            return
        with self._publishing():
            self._drop_queued_advances()
            self._s.current_index = index
            self._reset_clock()

    def next_story(self) -> None:
        if not self._navigable():
            return
        with self._publishing():
            if self._s.current_index < self._s.item_count - 1:
                self._s.current_index += 1
                self._reset_clock()
            elif self._loop:
                self._s.current_index = 0
                self._reset_clock()
            else:
                logger.info("last story finished")
                self._halt()
                self._set_state(PlaybackState.DISMISSING)

    def previous_story(self) -> None:
        if not self._navigable() or self._s.current_index == 0:
            return
        with self._publishing():
            self._s.current_index -= 1
            self._reset_clock()

    def _navigable(self) -> bool:
        return not self._retired and self._s.state not in _TERMINAL

    # ── progress clock ────────────────────────────────────────────────────
    def _on_tick(self) -> None:
        s = self._s
        if s.state is not PlaybackState.PLAYING:
            return
        if s.pending_advances > 0:
            self._hand_off()
            return

        total = (self._sched.now() - s.clock_anchor) + s.elapsed_in_item
        fraction = min(total / s.item_duration, 1.0)
        with self._publishing():
            s.progress_within_item = fraction
        if fraction >= 1.0:
            self.advance(1)

    def _start_ticking(self) -> None:
        if self._tick is None:
            self._tick = self._sched.call_every(config.TICK_INTERVAL, self._on_tick)

    def _stop_ticking(self) -> None:
        if self._tick is not None:
            self._tick.cancel()
            self._tick = None

    def _fold_elapsed(self) -> None:
        s = self._s
        if s.clock_anchor is None:
            return
        run = self._sched.now() - s.clock_anchor
        s.elapsed_in_item = min(s.elapsed_in_item + run, s.item_duration)
        s.progress_within_item = s.elapsed_in_item / s.item_duration
        s.clock_anchor = None

    def _reset_clock(self) -> None:
        s = self._s
        s.elapsed_in_item = 0.0
        s.progress_within_item = 0.0
        s.clock_anchor = (self._sched.now()
                          if s.state is PlaybackState.PLAYING else None)

    def _halt(self) -> None:
        self._fold_elapsed()
        self._stop_ticking()
        if self._settle is not None:
            self._settle.cancel()
            self._settle = None
        self._drop_queued_advances()

    # ── queued advances ───────────────────────────────────────────────────
    def _hand_off(self) -> None:
        count, self._s.pending_advances = self._s.pending_advances, 0
        h = self._sched.call_soon(self._drain_advances, count, self._nav_epoch)
        self._drains.append(h)

    def _flush_queued_advances(self) -> None:
        # nothing will tick these through while not playing
        if self._s.pending_advances > 0:
            self._hand_off()

    def _drain_advances(self, count: int, epoch: int) -> None:
        # drains run in FIFO order and cancelled ones are removed eagerly
        if self._drains:
            self._drains.pop(0)
        if epoch != self._nav_epoch or self._retired:
            return
        with self._publishing():
            for _ in range(count):
                if not self._navigable():
                    break
                self.next_story()

    def _drop_queued_advances(self) -> None:
        self._nav_epoch += 1
        for h in self._drains:
            h.cancel()
        self._drains.clear()
        self._s.pending_advances = 0

    def _set_state(self, new: PlaybackState) -> None:
        old, self._s.state = self._s.state, new
        if old is not new:
            logger.info("playback %s → %s (story %d/%d)", old.value, new.value,
                        self._s.current_index + 1, self._s.item_count)
