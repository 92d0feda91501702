"""
ticker.py

Periodic work driven from the main loop, and the publisher that turns a
schedule plus the wall clock into `ClockState` updates.

The main loop calls `Ticker.poll()` once per frame.  A task that is
overdue (the window was dragged, the machine slept) runs once and is
rescheduled from the poll time; missed runs are not replayed, because
every run recomputes from scratch anyway.
"""

from __future__ import annotations

import datetime
import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

import timing
from schedule import ScheduleConfig, evaluate

logger = logging.getLogger(__name__)

Observer = Callable[[timing.ClockState, Optional[timing.ClockState]], None]


@dataclass
class Periodic:
    name: str
    interval: float
    callback: Callable[[], None]
    due: float = 0.0


class Ticker:
    def __init__(self, monotonic: Callable[[], float] = time.monotonic) -> None:
        self._monotonic = monotonic
        self._tasks: Dict[str, Periodic] = {}

    def every(self, interval: float, callback: Callable[[], None], *,
              name: str | None = None, immediate: bool = True) -> Periodic:
        if interval <= 0:
            raise ValueError(f"interval must be positive: {interval}")
        now = self._monotonic()
        task = Periodic(
            name=name or getattr(callback, "__name__", repr(callback)),
            interval=interval,
            callback=callback,
            due=now if immediate else now + interval,
        )
        self._tasks[task.name] = task
        return task

    def cancel(self, name: str) -> None:
        self._tasks.pop(name, None)

    def stop(self) -> None:
        self._tasks.clear()

    def poll(self) -> int:
        """Run every task that is due; return how many ran."""
        now = self._monotonic()
        ran = 0
        for task in list(self._tasks.values()):
            if now < task.due:
                continue
            task.callback()
            task.due = now + task.interval
            ran += 1
        return ran


class ClockPublisher:
    """Recomputes the clock state and hands it to observers."""

    def __init__(self, schedule: ScheduleConfig,
                 now: Callable[[], datetime.datetime] = timing.wall_clock) -> None:
        self.schedule = schedule
        self._now = now
        self._observers: List[Observer] = []
        self.state: Optional[timing.ClockState] = None

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        self._observers.append(observer)

        def _unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)
        return _unsubscribe

    def refresh(self) -> timing.ClockState:
        prev = self.state
        self.state = evaluate(self._now(), self.schedule)
        if prev is None or prev.phase != self.state.phase:
            logger.info("webinar phase %s → %s",
                        prev.phase if prev else "-", self.state.phase)
        for obs in list(self._observers):
            obs(self.state, prev)
        return self.state
