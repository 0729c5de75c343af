"""Shared fixtures: a stepped clock so playback timing is deterministic."""

import os

os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
os.environ.setdefault("PYGAME_HIDE_SUPPORT_PROMPT", "1")

import pytest

from events import EventManager
from playback import PlaybackController
from scheduler import Scheduler
from timing import SteppedClock


@pytest.fixture
def clock():
    return SteppedClock(start=100.0)


@pytest.fixture
def scheduler(clock):
    return Scheduler(clock)


@pytest.fixture
def make_controller(scheduler):
    def _make(item_count=4, item_duration=1.0, **kw):
        return PlaybackController(item_count, item_duration, scheduler=scheduler, **kw)
    return _make


@pytest.fixture
def playing(make_controller, scheduler):
    """A 4 × 1 s controller that has settled into PLAYING."""
    ctl = make_controller()
    ctl.start()
    scheduler.advance(0.15)
    return ctl


@pytest.fixture(autouse=True)
def _empty_event_queue():
    EventManager.clear()
    yield
    EventManager.clear()
