"""Simulated viewer count shown on the live badge."""

from __future__ import annotations

import random

import config


class ViewerCount:
    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng or random.Random()
        self.count = config.VIEWERS_BASE + self._rng.randrange(config.VIEWERS_SPREAD)

    def jitter(self) -> int:
        lo, hi = config.VIEWERS_STEP
        self.count = max(config.VIEWERS_FLOOR, self.count + self._rng.randint(lo, hi))
        return self.count
