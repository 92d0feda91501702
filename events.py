#!/usr/bin/env python3
"""
events.py  – central hub

• Translates raw Pygame events to high-level action dicts.
• Exposes a thread-safe queue so the web remote (or anything else) can
  inject the same actions, e.g. a viewer comment.
"""

from __future__ import annotations
import queue
from pygame.locals import *

Action = dict      # alias for readability

_KEYMAP = {
    K_ESCAPE: "quit",
    K_q:      "quit",
    K_i:      "toggle_overlay",
    K_f:      "toggle_fullscreen",
    K_m:      "toggle_mute",
}


class EventManager:
    _fifo: "queue.Queue[Action]" = queue.Queue()      # global, thread-safe

    # ── SDL / keyboard path ────────────────────────────────────────────
    @classmethod
    def handle(cls, event) -> None:
        """Translate one Pygame event → action and enqueue it."""
        act = cls._translate_pygame(event)
        if act:
            cls._fifo.put(act)

    # ── external / programmatic path ───────────────────────────────────
    @classmethod
    def post(cls, action: Action) -> None:
        """
        Any thread may call this to inject an already-formed action dict, e.g.:
            EventManager.post({"type": "post_comment", "author": "Ana", "text": "Hi"})
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
    def drain(cls) -> list[Action]:
        out = []
        while (act := cls.poll()) is not None:
            out.append(act)
        return out

    # ── internal translator ───────────────────────────────────────────
    @staticmethod
    def _translate_pygame(event) -> Action | None:
        if event.type == QUIT:
            return {"type": "quit"}
        if event.type == KEYDOWN and event.key in _KEYMAP:
            return {"type": _KEYMAP[event.key]}
        return None
