"""
comments.py

Scripted chat for the replay plus the comments viewers post while it is
live.  Visibility is always derived from the elapsed time; nothing here
tracks what has already been shown.
"""

from __future__ import annotations

import json
import logging
import os
import threading
from dataclasses import dataclass
from typing import List, Optional

import config
import timing
from schedule import ConfigError

logger = logging.getLogger(__name__)


class CommentsError(ConfigError):
    """Raised for a scripted-chat file that cannot be read."""


@dataclass(frozen=True)
class ScriptedComment:
    id: int
    timestamp_seconds: int
    author: str
    text: str
    location: str = ""

    @property
    def byline(self) -> str:
        return f"{self.author} – {self.location}" if self.location else self.author

    def to_dict(self) -> dict:
        return {
            "id":                self.id,
            "timestamp_seconds": self.timestamp_seconds,
            "author":            self.author,
            "location":          self.location,
            "text":              self.text,
        }


def _sorted(comments: List[ScriptedComment]) -> List[ScriptedComment]:
    return sorted(comments, key=lambda c: (c.timestamp_seconds, c.id))


def load_comments(path: str | None = None) -> List[ScriptedComment]:
    """
    Read a JSON list of ``{id, timestamp, author, text, location}``
    objects.  ``name``/``message`` are accepted for author/text.
    A missing file means no scripted chat.
    """
    path = path or config.COMMENTS_FILE
    if not os.path.isfile(path):
        logger.info("no %s – scripted chat disabled", path)
        return []

    with open(path, "r", encoding="utf-8") as f:
        try:
            raw = json.load(f)
        except json.JSONDecodeError as exc:
            raise CommentsError(f"{path}: {exc}") from exc
    if not isinstance(raw, list):
        raise CommentsError(f"{path}: expected a JSON list")

    out: List[ScriptedComment] = []
    for n, item in enumerate(raw):
        try:
            out.append(ScriptedComment(
                id=int(item.get("id", n + 1)),
                timestamp_seconds=int(item.get("timestamp", item.get("timestamp_seconds"))),
                author=str(item.get("author", item.get("name", ""))),
                text=str(item.get("text", item.get("message", ""))),
                location=str(item.get("location", "")),
            ))
        except (AttributeError, TypeError, ValueError):
            raise CommentsError(f"{path}: bad comment at index {n}: {item!r}") from None

    logger.info("loaded %d scripted comments from %s", len(out), path)
    return _sorted(out)


class CommentBoard:
    """Scripted comments plus viewer comments; safe to post from any thread."""

    def __init__(self, scripted: Optional[List[ScriptedComment]] = None) -> None:
        self._scripted = _sorted(list(scripted or []))
        self._live: List[ScriptedComment] = []
        self._lock = threading.Lock()
        self._next_id = max((c.id for c in self._scripted), default=0) + 1

    def post(self, author: str, text: str, timestamp: int, location: str = "") -> ScriptedComment:
        """Record a viewer comment at *timestamp* seconds into the session."""
        text = text.strip()
        if not text:
            raise ValueError("empty comment")
        with self._lock:
            c = ScriptedComment(
                id=self._next_id,
                timestamp_seconds=max(0, int(timestamp)),
                author=author.strip() or "Guest",
                text=text,
                location=location.strip(),
            )
            self._next_id += 1
            self._live.append(c)
        logger.info("comment %d from %s at %ss", c.id, c.author, c.timestamp_seconds)
        return c

    def clear_live(self) -> None:
        with self._lock:
            self._live.clear()

    def visible(self, elapsed: float) -> List[ScriptedComment]:
        with self._lock:
            merged = _sorted(self._scripted + self._live)
        return timing.visible_comments(merged, elapsed)

    def __len__(self) -> int:
        with self._lock:
            return len(self._scripted) + len(self._live)
