from __future__ import annotations

import logging
import os

import pygame

import config

logger = logging.getLogger(__name__)

_background: pygame.Surface | None = None
_background_src = ""


def render_frame(screen: pygame.Surface, frame, sar: float, area: pygame.Rect | None = None):
    """
    Scale and letter-/pillar-box a raw RGB frame into *area* (whole screen
    by default).
    """
    area = area or screen.get_rect()
    surf = pygame.image.frombuffer(frame, frame.shape[1::-1], "RGB")
    vw, vh = surf.get_size()
    scale = min(area.width / (vw * sar), area.height / vh)
    surf = pygame.transform.smoothscale(surf, (int(vw * scale * sar), int(vh * scale)))
    screen.fill((0, 0, 0), area)
    screen.blit(surf, surf.get_rect(center=area.center))


def render_background(screen: pygame.Surface, image_path: str = "") -> None:
    """Fill with the brand colour, or cover with *image_path* darkened by 40 %."""
    global _background, _background_src
    screen.fill(config.BACKGROUND_COLOR)
    if not image_path:
        return

    if image_path != _background_src:
        _background_src = image_path
        _background = None
        if os.path.isfile(image_path):
            try:
                _background = pygame.image.load(image_path).convert()
            except pygame.error as exc:
                logger.warning("background %s unusable: %s", image_path, exc)
    if _background is None:
        return

    sw, sh = screen.get_size()
    bw, bh = _background.get_size()
    scale = max(sw / bw, sh / bh)
    cover = pygame.transform.smoothscale(_background, (int(bw * scale) + 1, int(bh * scale) + 1))
    screen.blit(cover, cover.get_rect(center=(sw // 2, sh // 2)))

    shade = pygame.Surface((sw, sh), pygame.SRCALPHA)
    shade.fill((0, 0, 0, 102))
    screen.blit(shade, (0, 0))
