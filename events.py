#!/usr/bin/env python3
"""
events.py  – central hub

• Translates raw Pygame events to high-level action dicts.
• Exposes a thread-safe queue so *any* external source can inject
  the same actions (web remote, HID, tests, etc.).
• apply_action() hands one action to the PlaybackController; the main
  loop calls it on the owner thread, so gestures and ticks never interleave.
"""

from __future__ import annotations

import logging
import queue
import time
from typing import Optional

from pygame.locals import (
    K_1, K_9, K_ESCAPE, K_LEFT, K_RIGHT, K_SPACE,
    K_f, K_i, K_p, K_q,
    KEYDOWN, KEYUP, MOUSEBUTTONDOWN, MOUSEBUTTONUP, QUIT,
)

import config
from overlays import segment_at

logger = logging.getLogger(__name__)

Action = dict      # alias for readability


class EventManager:
    _fifo: "queue.Queue[Action]" = queue.Queue()      # global, thread-safe
    _press_started: Optional[float] = None

    # ── SDL / keyboard / mouse path ───────────────────────────────────
    @classmethod
    def handle(cls, event, size: tuple[int, int], item_count: int,
               now: float | None = None) -> None:
        """Translate one Pygame event → zero or more actions and enqueue them."""
        for act in cls._translate_pygame(event, size, item_count,
                                         time.monotonic() if now is None else now):
            cls._fifo.put(act)

    # ── external / programmatic path ───────────────────────────────────
    @classmethod
    def post(cls, action: Action) -> None:
        """
        Any thread may call this to inject an already-formed action dict, e.g.:
            EventManager.post({"type": "jump", "to": 2})
        """
        cls._fifo.put(action)

    # ── main-loop consumer ─────────────────────────────────────────────
    @classmethod
    def poll(cls) -> Action | None:
        """Return next queued action or None (non-blocking)."""
        try:
            return cls._fifo.get_nowait()
        except queue.Empty:
            return None

    @classmethod
    def clear(cls) -> None:
        while cls.poll() is not None:
            pass
        cls._press_started = None

    # ── internal translator ───────────────────────────────────────────
    @classmethod
    def _translate_pygame(cls, event, size, item_count, now) -> list[Action]:
        if event.type == QUIT:
            return [{"type": "quit"}]

        if event.type == KEYDOWN:
            if event.key in (K_ESCAPE, K_q):
                return [{"type": "dismiss"}]
            if event.key == K_i:
                return [{"type": "toggle_overlay"}]
            if event.key == K_f:
                return [{"type": "toggle_fullscreen"}]
            if event.key in (K_RIGHT, K_SPACE):
                return [{"type": "advance", "by": 1}]
            if event.key == K_LEFT:
                return [{"type": "advance", "by": -1}]
            if event.key == K_p:
                return [{"type": "pause"}]
            if K_1 <= event.key <= K_9:
                return [{"type": "jump", "to": event.key - K_1}]

        if event.type == KEYUP and event.key == K_p:
            return [{"type": "resume"}]

        if event.type == MOUSEBUTTONDOWN and event.button == 1:
            cls._press_started = now
            return [{"type": "pause"}]

        if event.type == MOUSEBUTTONUP and event.button == 1:
            started, cls._press_started = cls._press_started, None
            acts: list[Action] = [{"type": "resume"}]
            if started is not None and now - started < config.TAP_MAX_SEC:
                acts.append(cls._classify_tap(event.pos, size, item_count))
            return acts

        return []

    @staticmethod
    def _classify_tap(pos, size, item_count) -> Action:
        x, y = pos
        w, _ = size
        if y < config.PROGRESS_BAND_PX:
            return {"type": "jump", "to": segment_at(x, w, item_count)}
        if x < w * config.LEFT_ZONE_FRACTION:
            return {"type": "advance", "by": -1}
        return {"type": "advance", "by": 1}


# ── dispatch onto the controller ───────────────────────────────────────
def apply_action(controller, action: Action) -> bool:
    """
    Apply one action to *controller*.  Returns False when the action is
    not a playback action (quit, overlay, fullscreen …) so the caller can
    handle it.
    """
    t = action.get("type")
    if t == "advance":
        controller.advance(int(action.get("by", 1)))
    elif t == "jump":
        try:
            controller.jump_to_story(int(action["to"]))
        except (KeyError, TypeError, ValueError):
            logger.warning("ignoring malformed jump action %r", action)
    elif t == "pause":
        controller.pause()
    elif t == "resume":
        controller.resume()
    elif t == "dismiss":
        controller.enter_dismissing()
    elif t == "buffering":
        controller.enter_buffering()
    elif t == "buffered":
        controller.exit_buffering()
    elif t == "error":
        controller.enter_error()
    else:
        return False
    return True
