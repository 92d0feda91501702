"""
overlays.py

Pygame drawing for the webinar player: the waiting and ended cards, the
live badge, the chat column and the optional diagnostics panel.
"""

from __future__ import annotations

import textwrap
import time
from typing import Sequence

import pygame

import config
import schedule as sched_mod
import timing
from comments import ScriptedComment

# ── colours ────────────────────────────────────────────────────────────────
WHITE = (255, 255, 255)
GREY  = (170, 170, 170)
BLACK = (0, 0, 0)
BG    = (0, 0, 0, 180)

pygame.font.init()


# ── helpers ────────────────────────────────────────────────────────────────
def _compute_font_sizes(h: int) -> tuple[int, int, int]:
    return max(12, h // 50), max(18, h // 30), max(32, h // 9)


def _fonts(h: int):
    tiny, small, large = _compute_font_sizes(h)
    return (
        pygame.font.SysFont("sans", tiny),
        pygame.font.SysFont("sans", small, bold=True),
        pygame.font.SysFont("monospace", large, bold=True),
    )


def _boxed(font: pygame.font.Font, text: str, fg, bg, pad: int) -> pygame.Surface:
    txt = font.render(text, True, fg)
    box = pygame.Surface((txt.get_width() + 2 * pad, txt.get_height() + pad), pygame.SRCALPHA)
    pygame.draw.rect(box, bg, box.get_rect(), border_radius=box.get_height() // 2)
    box.blit(txt, (pad, pad // 2))
    return box


def _centred(surface: pygame.Surface, items: Sequence[pygame.Surface], gap: int) -> None:
    sw, sh = surface.get_size()
    total = sum(i.get_height() for i in items) + gap * (len(items) - 1)
    y = (sh - total) // 2
    for item in items:
        surface.blit(item, ((sw - item.get_width()) // 2, y))
        y += item.get_height() + gap


# ── phase cards ────────────────────────────────────────────────────────────
def draw_waiting(surface: pygame.Surface, state: timing.ClockState,
                 schedule: sched_mod.ScheduleConfig) -> None:
    FT, FS, FL = _fonts(surface.get_height())
    pad = FS.get_height() // 2
    fg = BLACK if config.COUNTDOWN_COLOR == (255, 215, 0) else WHITE
    _centred(surface, [
        _boxed(FS, config.SOON_BADGE_TEXT, fg, config.COUNTDOWN_COLOR, pad),
        FS.render(config.COUNTDOWN_TEXT, True, WHITE),
        FL.render(state.countdown, True, config.COUNTDOWN_COLOR),
        FT.render(sched_mod.describe(schedule), True, WHITE),
    ], pad)


def draw_ended(surface: pygame.Surface, state: timing.ClockState,
               schedule: sched_mod.ScheduleConfig) -> None:
    FT, FS, FL = _fonts(surface.get_height())
    pad = FS.get_height() // 2
    items = [_boxed(FS, config.ENDED_BADGE_TEXT, WHITE, config.LIVE_COLOR, pad)]
    if state.next_start is not None:
        items += [
            FS.render(config.NEXT_WEBINAR_TEXT, True, WHITE),
            FL.render(state.countdown, True, config.COUNTDOWN_COLOR),
            FT.render(sched_mod.format_session(state.next_start, schedule), True, WHITE),
        ]
    _centred(surface, items, pad)


def draw_error(surface: pygame.Surface, message: str) -> None:
    _, FS, _ = _fonts(surface.get_height())
    _centred(surface, [FS.render(message, True, config.LIVE_COLOR)], 0)


# ── live decorations ───────────────────────────────────────────────────────
def draw_live_badge(surface: pygame.Surface, viewers: int, muted: bool) -> None:
    FT, FS, _ = _fonts(surface.get_height())
    pad = FS.get_height() // 2
    badge = _boxed(FS, f"● {config.LIVE_BADGE_TEXT}", WHITE, config.LIVE_COLOR, pad)
    surface.blit(badge, (10, 10))
    watch = _boxed(FT, f"{viewers} watching" + ("  · muted" if muted else ""), WHITE, BG, pad)
    surface.blit(watch, (20 + badge.get_width(), 10 + (badge.get_height() - watch.get_height()) // 2))


def draw_chat(surface: pygame.Surface, area: pygame.Rect,
              comments: Sequence[ScriptedComment]) -> None:
    """Newest comments at the bottom of *area*, older ones scroll off the top."""
    FT, _, _ = _fonts(surface.get_height())
    bold = pygame.font.SysFont("sans", FT.get_height() - 2, bold=True)
    panel = pygame.Surface(area.size, pygame.SRCALPHA)
    panel.fill((20, 20, 30, 230))

    wrap = max(10, area.width // max(1, FT.size("m")[0]))
    line_h = FT.get_linesize()
    y = area.height - 8
    for c in reversed(comments[-config.CHAT_LINES:]):
        lines = textwrap.wrap(c.text, wrap) or [""]
        y -= line_h * len(lines) + bold.get_linesize() + 6
        if y < 0:
            break
        panel.blit(bold.render(c.byline, True, config.COUNTDOWN_COLOR), (8, y))
        ly = y + bold.get_linesize()
        for ln in lines:
            panel.blit(FT.render(ln, True, WHITE), (8, ly))
            ly += line_h
    surface.blit(panel, area.topleft)


def draw_diagnostics(surface: pygame.Surface, state: timing.ClockState,
                     position: float, comments_shown: int) -> None:
    FT, _, _ = _fonts(surface.get_height())
    lines = [
        f"{time.strftime('%H:%M:%S')}  phase {state.phase}",
        f"elapsed   {timing.format_countdown(state.elapsed_seconds)}",
        f"remaining {timing.format_countdown(state.remaining_seconds)}",
        f"player    {position:8.1f}s  drift {position - state.elapsed_seconds:+.1f}s",
        f"comments  {comments_shown}",
    ]
    widest = max(FT.size(t)[0] for t in lines)
    pbg = pygame.Surface((widest + 20, len(lines) * (FT.get_linesize() + 2) + 10), pygame.SRCALPHA)
    pbg.fill(BG)
    y = 5
    for t in lines:
        pbg.blit(FT.render(t, True, GREY), (10, y))
        y += FT.get_linesize() + 2
    surface.blit(pbg, (10, surface.get_height() - pbg.get_height() - 10))
