"""
overlays.py

Pygame overlay renderer for the story player: the segmented progress bar
across the top and the optional diagnostic panel.
"""

from __future__ import annotations

import os

import pygame

import config

# ── colours ────────────────────────────────────────────────────────────────
WHITE  = (255, 255, 255)
TRACK  = (255, 255, 255, 90)
YEL    = (200, 200, 50)
BG     = (0, 0, 0, 180)


# ── helpers ────────────────────────────────────────────────────────────────
def _fmt_hms(sec: float) -> str:
    sec = int(max(0, sec))
    m, s = divmod(sec, 60)
    h, m = divmod(m, 60)
    return f"{h:02d}:{m:02d}:{s:02d}"


def segment_fill(overall: float, index: int) -> float:
    """How full segment *index* is, given overall progress."""
    return min(max(overall - index, 0.0), 1.0)


def _segment_width(width: int, count: int) -> float:
    usable = width - 2 * config.BAR_MARGIN_PX - (count - 1) * config.BAR_GAP_PX
    return max(1.0, usable / count)


def segment_at(x: float, width: int, count: int) -> int:
    """Map an x coordinate on the progress bar to a segment index."""
    if count <= 1:
        return 0
    seg_w = _segment_width(width, count)
    idx = int((x - config.BAR_MARGIN_PX) // (seg_w + config.BAR_GAP_PX))
    return min(max(idx, 0), count - 1)


# ── progress bar ───────────────────────────────────────────────────────────
def draw_progress(surface: pygame.Surface, overall: float, count: int) -> None:
    sw = surface.get_width()
    seg_w = _segment_width(sw, count)
    y = config.BAR_MARGIN_PX
    h = config.BAR_HEIGHT_PX

    track = pygame.Surface((int(seg_w), h), pygame.SRCALPHA)
    track.fill(TRACK)
    for i in range(count):
        x = config.BAR_MARGIN_PX + i * (seg_w + config.BAR_GAP_PX)
        surface.blit(track, (int(x), y))
        fill = int(seg_w * segment_fill(overall, i))
        if fill:
            pygame.draw.rect(surface, WHITE, (int(x), y, fill, h))


# ── diagnostic panel ───────────────────────────────────────────────────────
def overlay_lines(snapshot, files: list[str], item_duration: float) -> list[str]:
    idx = snapshot.current_index
    name = os.path.basename(files[idx]) if idx < len(files) else "-"
    left = (1.0 - snapshot.progress_within_item) * item_duration
    return [
        f"State     {snapshot.state.value}",
        f"Story     {idx + 1}/{snapshot.item_count}  {name}",
        f"Progress  {snapshot.progress_within_item * 100:5.1f}%",
        f"   rem    {_fmt_hms(left)}",
        f"Overall   {snapshot.overall_progress:.2f}",
    ]


def draw_overlay(surface: pygame.Surface, snapshot, files: list[str],
                 item_duration: float) -> None:
    pt = max(12, surface.get_height() // 60)
    font = pygame.font.SysFont("monospace", pt)

    lines = overlay_lines(snapshot, files, item_duration)
    widest = max(font.size(t)[0] for t in lines)
    pbg = pygame.Surface(
        (widest + 20, len(lines) * (font.get_linesize() + 2) + 10),
        pygame.SRCALPHA,
    )
    pbg.fill(BG)
    y = 5
    for t in lines:
        pbg.blit(font.render(t, True, YEL), (10, y))
        y += font.get_linesize() + 2
    surface.blit(pbg, (10, config.PROGRESS_BAND_PX + 10))
