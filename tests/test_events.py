from __future__ import annotations

import threading

import pygame
import pytest

from events import EventManager, apply_action
from playback import PlaybackState

SIZE = (540, 960)


def _drain():
    out = []
    while (act := EventManager.poll()) is not None:
        out.append(act)
    return out


def _key(key, kind=pygame.KEYDOWN):
    return pygame.event.Event(kind, key=key, mod=0, unicode="", scancode=0)


def _mouse(kind, pos):
    return pygame.event.Event(kind, button=1, pos=pos)


@pytest.mark.parametrize("key, expected", [
    (pygame.K_RIGHT, {"type": "advance", "by": 1}),
    (pygame.K_SPACE, {"type": "advance", "by": 1}),
    (pygame.K_LEFT, {"type": "advance", "by": -1}),
    (pygame.K_p, {"type": "pause"}),
    (pygame.K_ESCAPE, {"type": "dismiss"}),
    (pygame.K_i, {"type": "toggle_overlay"}),
    (pygame.K_1, {"type": "jump", "to": 0}),
    (pygame.K_3, {"type": "jump", "to": 2}),
])
def test_keys_translate_to_actions(key, expected):
    EventManager.handle(_key(key), SIZE, 4)
    assert _drain() == [expected]


def test_releasing_p_resumes():
    EventManager.handle(_key(pygame.K_p, pygame.KEYUP), SIZE, 4)
    assert _drain() == [{"type": "resume"}]


def test_window_close_quits():
    EventManager.handle(pygame.event.Event(pygame.QUIT), SIZE, 4)
    assert _drain() == [{"type": "quit"}]


def test_unmapped_events_are_dropped():
    EventManager.handle(_key(pygame.K_z), SIZE, 4)
    assert _drain() == []


def test_hold_pauses_then_resumes_without_navigating():
    EventManager.handle(_mouse(pygame.MOUSEBUTTONDOWN, (400, 500)), SIZE, 4, now=10.0)
    EventManager.handle(_mouse(pygame.MOUSEBUTTONUP, (400, 500)), SIZE, 4, now=11.0)
    assert _drain() == [{"type": "pause"}, {"type": "resume"}]


@pytest.mark.parametrize("pos, tap", [
    ((50, 500), {"type": "advance", "by": -1}),
    ((400, 500), {"type": "advance", "by": 1}),
    ((530, 20), {"type": "jump", "to": 3}),
    ((14, 20), {"type": "jump", "to": 0}),
])
def test_short_press_is_a_tap(pos, tap):
    EventManager.handle(_mouse(pygame.MOUSEBUTTONDOWN, pos), SIZE, 4, now=10.0)
    EventManager.handle(_mouse(pygame.MOUSEBUTTONUP, pos), SIZE, 4, now=10.1)
    assert _drain() == [{"type": "pause"}, {"type": "resume"}, tap]


def test_post_is_safe_from_other_threads():
    threads = [threading.Thread(target=EventManager.post, args=({"type": "pause"},))
               for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert len(_drain()) == 8


def test_apply_action_drives_controller(playing, scheduler):
    assert apply_action(playing, {"type": "pause"})
    assert playing.state is PlaybackState.PAUSED_BY_HOLD
    assert apply_action(playing, {"type": "resume"})
    assert apply_action(playing, {"type": "jump", "to": 2})
    assert playing.current_index == 2
    assert apply_action(playing, {"type": "advance", "by": -1})
    assert playing.current_index == 1
    assert apply_action(playing, {"type": "advance", "by": 1})
    scheduler.advance(0.02)
    assert playing.current_index == 2

    assert apply_action(playing, {"type": "buffering"})
    assert playing.state is PlaybackState.BUFFERING
    assert apply_action(playing, {"type": "buffered"})
    assert playing.state is PlaybackState.PLAYING

    assert apply_action(playing, {"type": "dismiss"})
    assert playing.state is PlaybackState.DISMISSING


def test_apply_action_leaves_viewer_actions_alone(playing):
    for t in ("quit", "toggle_overlay", "toggle_fullscreen"):
        assert apply_action(playing, {"type": t}) is False
    assert playing.state is PlaybackState.PLAYING


def test_malformed_jump_is_ignored(playing):
    assert apply_action(playing, {"type": "jump"})
    assert apply_action(playing, {"type": "jump", "to": "x"})
    assert playing.current_index == 0


def test_error_action(make_controller):
    ctl = make_controller()
    apply_action(ctl, {"type": "error"})
    assert ctl.state is PlaybackState.ERROR
