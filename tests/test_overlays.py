from __future__ import annotations

import pygame
import pytest

import config
from overlays import _fmt_hms, draw_overlay, draw_progress, overlay_lines, segment_at, segment_fill
from playback import PlaybackSnapshot, PlaybackState


@pytest.mark.parametrize("overall, index, fill", [
    (0.0, 0, 0.0),
    (0.4, 0, 0.4),
    (0.4, 1, 0.0),
    (2.25, 0, 1.0),
    (2.25, 1, 1.0),
    (2.25, 2, 0.25),
    (2.25, 3, 0.0),
])
def test_segment_fill(overall, index, fill):
    assert segment_fill(overall, index) == pytest.approx(fill)


@pytest.mark.parametrize("x, idx", [(0, 0), (12, 0), (150, 1), (300, 2), (539, 3), (900, 3)])
def test_segment_at(x, idx):
    assert segment_at(x, 540, 4) == idx


def test_segment_at_single_item():
    assert segment_at(400, 540, 1) == 0


def test_fmt_hms():
    assert _fmt_hms(3725.9) == "01:02:05"
    assert _fmt_hms(-3) == "00:00:00"


def test_overlay_lines_describe_snapshot():
    snap = PlaybackSnapshot(PlaybackState.PAUSED_BY_HOLD, 1, 0.5, 3)
    lines = overlay_lines(snap, ["/s/a.png", "/s/b.png", "/s/c.png"], 10.0)
    assert lines[0].endswith("pausedByHold")
    assert "2/3" in lines[1] and "b.png" in lines[1]
    assert "50.0%" in lines[2]
    assert lines[3].endswith("00:00:05")
    assert lines[4].endswith("1.50")


def test_draw_progress_fills_completed_segments():
    surf = pygame.Surface((540, 100))
    surf.fill((0, 0, 0))
    draw_progress(surf, 1.5, 4)

    y = 12 + 1
    assert surf.get_at((20, y))[:3] == (255, 255, 255)        # segment 0 full
    assert surf.get_at((12 + 130 + 30, y))[:3] == (255, 255, 255)  # half of 1
    assert surf.get_at((12 + 130 + 120, y))[:3] != (255, 255, 255)
    assert surf.get_at((12 + 3 * 130 + 60, y))[:3] != (255, 255, 255)


def test_draw_overlay_draws_when_asked(monkeypatch):
    monkeypatch.setattr(config, "SHOW_OVERLAYS", False)
    pygame.font.init()
    surf = pygame.Surface((540, 960))
    surf.fill((255, 255, 255))
    snap = PlaybackSnapshot(PlaybackState.PLAYING, 0, 0.5, 2)

    draw_overlay(surf, snap, ["/s/a.png", "/s/b.png"], 1.0)

    # translucent panel backdrop darkens the white surface
    x, y = 12, config.PROGRESS_BAND_PX + 12
    assert surf.get_at((x, y))[:3] != (255, 255, 255)
    assert surf.get_at((530, 950))[:3] == (255, 255, 255)
