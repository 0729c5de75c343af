#!/usr/bin/env python3
"""
app.py – pygame story viewer

Shows a folder of images as stories driven by a PlaybackController.  The
pygame loop is the controller's owner thread: each frame it translates
input, drains EventManager (which the web remote also feeds), pumps the
scheduler so ticks and deferred steps run, then draws.
"""
from __future__ import annotations

import logging
from typing import Optional

import pygame

import config
from events           import EventManager, apply_action
from overlays         import draw_overlay, draw_progress
from playback         import PlaybackController, PlaybackSnapshot, PlaybackState
from renderer         import draw_card, render_frame
from scheduler        import Scheduler
from story_loader     import StoryFolder

logger = logging.getLogger(__name__)

_DONE = (PlaybackState.DISMISSING, PlaybackState.ERROR)


# ── main application ───────────────────────────────────────────────────────
class StoryViewer:
    def __init__(self, root: str | None = None,
                 item_duration: float = config.DEFAULT_ITEM_DURATION,
                 loop: bool = config.LOOP_AT_END):
        # window ----------------------------------------------------------
        pygame.init()
        self.screen = self._set_mode()
        pygame.display.set_caption("stories")
        self.clock = pygame.time.Clock()

        # core state ------------------------------------------------------
        self.folder    = StoryFolder.load(root)
        self.scheduler = Scheduler()
        self.player    = PlaybackController(
            max(1, len(self.folder)), item_duration,
            scheduler=self.scheduler, loop=loop,
        )
        self.snapshot: PlaybackSnapshot = self.player.snapshot()
        self.player.add_listener(self._on_change)
        self.force_overlay = False
        self.close_at: Optional[float] = None

    def _set_mode(self) -> pygame.Surface:
        return pygame.display.set_mode(
            (0, 0) if config.FULLSCREEN else config.WINDOWED_SIZE,
            pygame.FULLSCREEN if config.FULLSCREEN else 0,
        )

    def _on_change(self, snap: PlaybackSnapshot) -> None:
        if snap.state is not self.snapshot.state or \
           snap.current_index != self.snapshot.current_index:
            logger.debug("now %s on story %d", snap.state.value, snap.current_index)
        self.snapshot = snap

    # ── actions the controller does not own ------------------------------
    def _handle_local(self, act: dict) -> bool:
        t = act.get("type")
        if t == "quit":
            return False
        if t == "toggle_overlay":
            self.force_overlay ^= True
        elif t == "toggle_fullscreen":
            config.FULLSCREEN ^= True
            self.screen = self._set_mode()
        else:
            logger.warning("unknown action %r", act)
        return True

    # ── drawing -------------------------------------------------------------
    def _draw(self) -> None:
        snap = self.snapshot
        if not self.folder.frames:
            draw_card(self.screen, ["No stories found in", self.folder.root])
            return
        render_frame(self.screen, self.folder.frames[snap.current_index])
        draw_progress(self.screen, snap.overall_progress, snap.item_count)
        if self.force_overlay or config.SHOW_OVERLAYS:
            draw_overlay(self.screen, snap, self.folder.files,
                         self.player.item_duration)

    # ── main loop ---------------------------------------------------------
    def run(self) -> PlaybackState:
        if not self.folder.files:
            # media failed to load – the caller decides what happens next
            self.player.enter_error()
        else:
            self.player.start()

        running = True
        while running:
            size = self.screen.get_size()
            for e in pygame.event.get():
                EventManager.handle(e, size, self.player.item_count)

            while (act := EventManager.poll()):
                if not apply_action(self.player, act) and not self._handle_local(act):
                    running = False

            self.scheduler.run_once()

            self._draw()
            pygame.display.flip()

            if self.player.state in _DONE:
                if self.close_at is None:
                    linger = 1.5 if self.player.state is PlaybackState.ERROR else 0.0
                    self.close_at = self.scheduler.now() + linger
                if self.scheduler.now() >= self.close_at:
                    running = False
            self.clock.tick(config.FPS)

        final = self.player.state
        self.player.cancel()
        pygame.quit()
        logger.info("viewer closed in state %s", final.value)
        return final


if __name__ == "__main__":
    StoryViewer().run()
