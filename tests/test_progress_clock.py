"""Tick-driven progress: fraction, freezing, and end-of-item advancement."""

from __future__ import annotations

import pytest

from playback import PlaybackState


def test_progress_tracks_elapsed_time(playing, scheduler):
    scheduler.advance(0.45)      # 0.5 s after the anchor
    assert playing.progress_within_item == pytest.approx(0.5, abs=0.02)
    assert playing.overall_progress == pytest.approx(0.5, abs=0.02)


def test_overall_progress_adds_index(playing, scheduler):
    playing.jump_to_story(2)
    scheduler.advance(0.25)
    assert playing.current_index == 2
    assert playing.overall_progress == pytest.approx(2.25, abs=0.02)


def test_pause_freezes_progress(playing, scheduler):
    scheduler.advance(0.3)
    playing.pause()
    frozen = playing.snapshot()

    scheduler.advance(0.5)
    assert playing.current_index == frozen.current_index
    assert playing.progress_within_item == frozen.progress_within_item


def test_resume_keeps_accumulated_time(playing, scheduler):
    scheduler.advance(0.35)                    # ~0.4 into the item
    playing.pause()
    paused_at = playing.progress_within_item
    assert playing.elapsed_in_item == pytest.approx(0.4, abs=0.02)

    scheduler.advance(5.0)
    playing.resume()
    scheduler.advance(0.2)
    assert playing.current_index == 0
    assert playing.progress_within_item == pytest.approx(paused_at + 0.2, abs=0.02)


def test_buffering_freezes_progress_but_tick_keeps_running(playing, scheduler):
    scheduler.advance(0.2)
    playing.enter_buffering()
    frozen = playing.progress_within_item

    scheduler.advance(3.0)
    assert playing.progress_within_item == frozen
    assert playing.current_index == 0
    assert scheduler.scheduled() == 1          # the tick

    playing.exit_buffering()
    scheduler.advance(0.1)
    assert playing.progress_within_item == pytest.approx(frozen + 0.1, abs=0.02)


def test_auto_advance_after_item_duration(playing, scheduler):
    scheduler.advance(1.1)
    assert playing.current_index >= 1


def test_end_of_item_advances_exactly_once(playing, scheduler):
    scheduler.advance(1.15)                    # ~0.2 into the second item
    assert playing.current_index == 1
    assert playing.state is PlaybackState.PLAYING
    assert 0.0 < playing.progress_within_item < 0.5
    assert playing.pending_advances == 0


def test_progress_never_exceeds_one(playing, scheduler):
    seen = []
    playing.add_listener(lambda s: seen.append(s.progress_within_item))
    scheduler.advance(2.5)
    assert seen
    assert all(0.0 <= p <= 1.0 for p in seen)
    assert 0.0 <= playing.elapsed_in_item <= playing.item_duration


def test_last_item_ends_in_dismissing(playing, scheduler):
    playing.jump_to_story(3)
    scheduler.advance(1.1)
    assert playing.state is PlaybackState.DISMISSING
    assert playing.current_index == 3
    assert playing.clock_anchor is None
    assert scheduler.scheduled() == 0

    scheduler.advance(1.0)                     # further ticks are ignored
    assert playing.current_index == 3


def test_whole_reel_plays_through(playing, scheduler):
    scheduler.advance(4.5)
    assert playing.state is PlaybackState.DISMISSING
    assert playing.current_index == 3


def test_loop_wraps_to_first_story(make_controller, scheduler):
    ctl = make_controller(item_count=2, loop=True)
    ctl.start()
    scheduler.advance(2.3)
    assert ctl.state is PlaybackState.PLAYING
    assert ctl.current_index == 0
    assert ctl.progress_within_item < 0.5
