# =========  timing.py  =========
"""
Deterministic wall-clock helpers for the simulated-live webinar.

Every viewer derives the same state from the same inputs: the current
instant plus a schedule.  Nothing here performs I/O or keeps state, so
the functions can be driven with synthetic *now* values.

All arithmetic runs on UTC instants.  Two aware datetimes sharing the
same ``ZoneInfo`` compare and subtract by wall time in Python, which is
wrong across a DST change; ``_utc()`` sidesteps that.
"""

from __future__ import annotations

import bisect
import datetime
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional, Sequence, TypeVar

import config

if TYPE_CHECKING:                       # avoid circular import at runtime
    from schedule import ScheduleConfig

UTC = datetime.timezone.utc

WAITING = "waiting"
LIVE    = "live"
ENDED   = "ended"

_SECOND = datetime.timedelta(seconds=1)
_DAY    = datetime.timedelta(days=1)

C = TypeVar("C")


def wall_clock() -> datetime.datetime:
    """Current instant as an aware UTC datetime."""
    return datetime.datetime.now(UTC)


def _utc(dt: datetime.datetime) -> datetime.datetime:
    return dt.astimezone(UTC)


def _whole_seconds(later: datetime.datetime, earlier: datetime.datetime) -> int:
    """floor(later - earlier) in seconds."""
    return (_utc(later) - _utc(earlier)) // _SECOND


def _same_time_on(now: datetime.datetime, start: datetime.datetime) -> datetime.datetime:
    """*start*'s local time-of-day on the calendar date of *now* (start's zone)."""
    tz = start.tzinfo or UTC
    day = now.astimezone(tz).date()
    return datetime.datetime.combine(day, start.time(), tzinfo=tz)


def _plus_one_day(start: datetime.datetime) -> datetime.datetime:
    # aware + timedelta is wall-clock arithmetic, so 18:50 stays 18:50
    # across a DST change
    return start + _DAY


# ── state ──────────────────────────────────────────────────────────────────
@dataclass(frozen=True)
class ClockState:
    phase: str
    elapsed_seconds: int = 0
    countdown_seconds: int = 0
    remaining_seconds: int = 0
    session_start: Optional[datetime.datetime] = None
    next_start: Optional[datetime.datetime] = None

    @property
    def is_live(self) -> bool:
        return self.phase == LIVE

    @property
    def countdown(self) -> str:
        return format_countdown(self.countdown_seconds)

    def to_dict(self) -> dict:
        return {
            "phase":             self.phase,
            "elapsed_seconds":   self.elapsed_seconds,
            "countdown_seconds": self.countdown_seconds,
            "remaining_seconds": self.remaining_seconds,
            "countdown":         self.countdown,
            "session_start":     self.session_start.isoformat() if self.session_start else None,
            "next_start":        self.next_start.isoformat() if self.next_start else None,
        }


# ── schedule → instants ────────────────────────────────────────────────────
def resolve_today_start(now: datetime.datetime, schedule: "ScheduleConfig") -> datetime.datetime:
    """
    Today's scheduled start: the calendar date of *now* in the schedule's
    zone, at ``start_hour:start_minute:00.000``.

    Hour and minute are trusted; the configuration layer range-checks them.
    """
    tz = schedule.tz
    day = now.astimezone(tz).date()
    return datetime.datetime.combine(
        day, datetime.time(schedule.start_hour, schedule.start_minute), tzinfo=tz
    )


def classify(
    now: datetime.datetime,
    today_start: datetime.datetime,
    duration_seconds: int,
    next_start: Optional[datetime.datetime] = None,
) -> ClockState:
    """
    Map *now* onto the live window ``[today_start, today_start + duration)``.

    *next_start* is the following occurrence once the window has closed;
    it defaults to the same local time one calendar day later.  If that
    instant is already behind *now* (a client asleep for more than a day)
    the start is re-resolved on today's date and the sample classified
    again, so the countdown is never negative.
    """
    today_end = _utc(today_start) + datetime.timedelta(seconds=max(0, duration_seconds))
    now_utc = _utc(now)

    if now_utc < _utc(today_start):
        return ClockState(
            phase=WAITING,
            countdown_seconds=_whole_seconds(today_start, now),
            session_start=today_start,
            next_start=today_start,
        )

    if now_utc < today_end:
        return ClockState(
            phase=LIVE,
            elapsed_seconds=_whole_seconds(now, today_start),
            remaining_seconds=(today_end - now_utc) // _SECOND,
            session_start=today_start,
            next_start=next_start or _plus_one_day(today_start),
        )

    if next_start is None:
        following = _plus_one_day(today_start)
        if _utc(following) <= now_utc:
            return classify(now, _same_time_on(now, today_start), duration_seconds)
    else:
        following = next_start

    return ClockState(
        phase=ENDED,
        countdown_seconds=max(0, _whole_seconds(following, now)),
        session_start=today_start,
        next_start=following,
    )


# ── presentation ───────────────────────────────────────────────────────────
def format_countdown(seconds: int) -> str:
    """``HH:MM:SS``; hours keep growing past 99 for weekly schedules."""
    if seconds < 0:
        raise ValueError(f"negative countdown: {seconds}")
    seconds = int(seconds)
    m, s = divmod(seconds, 60)
    h, m = divmod(m, 60)
    return f"{h:02d}:{m:02d}:{s:02d}"


# ── drift correction ───────────────────────────────────────────────────────
def needs_resync(position: float, elapsed: float,
                 tolerance: float = config.DRIFT_TOLERANCE_SEC) -> bool:
    return abs(position - elapsed) > tolerance


def seek_target(position: float, state: ClockState,
                tolerance: float = config.DRIFT_TOLERANCE_SEC) -> Optional[float]:
    """Offset the player should jump to, or None to leave it alone."""
    if not state.is_live:
        return None
    if not needs_resync(position, state.elapsed_seconds, tolerance):
        return None
    return float(state.elapsed_seconds)


# ── scripted chat ──────────────────────────────────────────────────────────
def visible_comments(comments: Sequence[C], elapsed: float) -> list[C]:
    """
    Prefix of *comments* (sorted by ``timestamp_seconds``) whose timestamp
    is <= *elapsed*.  Recompute on every tick rather than appending, so a
    jump in the clock in either direction still yields the right set.
    """
    stamps = [c.timestamp_seconds for c in comments]
    return list(comments[: bisect.bisect_right(stamps, elapsed)])
