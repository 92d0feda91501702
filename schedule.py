"""
schedule.py

Webinar schedule: the persisted configuration and its recurrence rules.

* Reads ``webinar.json`` (falling back to `config` defaults for missing
  fields) and validates it once, here, so the clock never has to.
* Probes the recording's length with PyAV when no duration is stored.
* Resolves "which session applies right now" for daily, weekly, monthly
  and one-off schedules and hands the result to `timing.classify()`.
"""

from __future__ import annotations

import datetime
import json
import logging
import os
from dataclasses import dataclass, field, replace
from typing import Any, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import av  # PyAV – thin FFmpeg bindings

import config
import timing

logger = logging.getLogger(__name__)

RECURRENCES = ("daily", "weekly", "monthly", "once")

# 0 = Sunday, matching the stored day_of_week
WEEKDAYS = ("Sunday", "Monday", "Tuesday", "Wednesday",
            "Thursday", "Friday", "Saturday")

# Far enough back/forward to reach the neighbouring session of a weekly or
# monthly rule (a monthly rule on the 31st can skip a month).  One-off
# sessions are resolved from once_date directly.
_SEARCH_DAYS = 62


class ConfigError(ValueError):
    """Raised for a configuration file that cannot be used."""


class ScheduleError(ConfigError):
    """Raised for a webinar configuration that cannot be scheduled."""


# ── Duration probe ──────────────────────────────────────────────────────────
def probe_duration(src: str) -> int:
    """Return the recording's length in whole seconds. Zero on error."""
    try:
        with av.open(src) as container:
            stream = next(
                (s for s in container.streams if s.type == "video"),
                container.streams[0],
            )
            if stream.duration:
                dur = stream.duration * stream.time_base
            elif container.duration:
                dur = container.duration / av.time_base
            else:
                dur = 0.0
            return max(0, int(dur))
    except (av.error.FFmpegError, OSError, IndexError) as exc:
        logger.warning("could not probe %s: %s", src, exc)
        return 0


# ── Data structures ─────────────────────────────────────────────────────────
@dataclass(frozen=True)
class ScheduleConfig:
    start_hour: int = config.START_HOUR
    start_minute: int = config.START_MINUTE
    duration_seconds: int = config.VIDEO_DURATION
    timezone: str = config.TIMEZONE
    recurrence: str = config.RECURRENCE
    day_of_week: Optional[int] = None
    day_of_month: Optional[int] = None
    once_date: Optional[datetime.date] = None
    video: str = config.VIDEO_PATH
    title: str = ""
    extra: dict = field(default_factory=dict, compare=False)

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    # ------------------------------------------------------------ loading
    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ScheduleConfig":
        """Build and validate a schedule from its stored form."""
        known = {
            "start_hour", "start_minute", "duration_seconds", "timezone",
            "recurrence", "day_of_week", "day_of_month", "once_date",
            "video", "title",
        }
        kw: dict[str, Any] = {k: v for k, v in data.items() if k in known}
        extra = {k: v for k, v in data.items() if k not in known}

        once = kw.get("once_date")
        if isinstance(once, str):
            try:
                kw["once_date"] = datetime.date.fromisoformat(once)
            except ValueError:
                raise ScheduleError(f"once_date is not YYYY-MM-DD: {once!r}") from None

        sched = cls(extra=extra, **kw)
        sched.validate()

        if not sched.duration_seconds:
            probed = probe_duration(sched.video)
            logger.info("duration of %s probed as %ss", sched.video, probed)
            sched = cls(extra=extra, **{**kw, "duration_seconds": probed})
        return sched

    def validate(self) -> None:
        if not _is_int(self.start_hour) or not 0 <= self.start_hour <= 23:
            raise ScheduleError(f"start_hour out of range: {self.start_hour!r}")
        if not _is_int(self.start_minute) or not 0 <= self.start_minute <= 59:
            raise ScheduleError(f"start_minute out of range: {self.start_minute!r}")
        if not _is_int(self.duration_seconds) or self.duration_seconds < 0:
            raise ScheduleError(f"duration_seconds must be >= 0: {self.duration_seconds!r}")
        try:
            self.tz
        except (ZoneInfoNotFoundError, ValueError, TypeError):
            raise ScheduleError(f"unknown timezone: {self.timezone!r}") from None

        if self.recurrence not in RECURRENCES:
            raise ScheduleError(f"unknown recurrence: {self.recurrence!r}")
        if self.recurrence == "weekly":
            if not _is_int(self.day_of_week) or not 0 <= self.day_of_week <= 6:
                raise ScheduleError("weekly schedule needs day_of_week 0..6")
        if self.recurrence == "monthly":
            if not _is_int(self.day_of_month) or not 1 <= self.day_of_month <= 31:
                raise ScheduleError("monthly schedule needs day_of_month 1..31")
        if self.recurrence == "once" and self.once_date is None:
            raise ScheduleError("one-off schedule needs once_date")


def _is_int(v: Any) -> bool:
    return isinstance(v, int) and not isinstance(v, bool)


def load_schedule(path: str | None = None) -> ScheduleConfig:
    """
    Read the webinar configuration from *path* (default
    ``config.WEBINAR_FILE``).  A missing file gives the config defaults.
    """
    path = path or config.WEBINAR_FILE
    if not os.path.isfile(path):
        logger.info("no %s – using built-in schedule defaults", path)
        return ScheduleConfig.from_dict({})

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as exc:
        raise ScheduleError(f"{path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ScheduleError(f"{path}: expected a JSON object")
    return ScheduleConfig.from_dict(data)


# ── Recurrence ──────────────────────────────────────────────────────────────
def session_start_on(day: datetime.date, schedule: ScheduleConfig) -> Optional[datetime.datetime]:
    """The session instant on *day*, or None if the rule skips that date."""
    rec = schedule.recurrence
    if rec == "weekly" and (day.weekday() + 1) % 7 != schedule.day_of_week:
        return None
    if rec == "monthly" and day.day != schedule.day_of_month:
        return None
    if rec == "once" and day != schedule.once_date:
        return None
    return datetime.datetime.combine(
        day, datetime.time(schedule.start_hour, schedule.start_minute), tzinfo=schedule.tz
    )


def previous_session(now: datetime.datetime, schedule: ScheduleConfig) -> Optional[datetime.datetime]:
    """Latest session start at or before *now*."""
    if schedule.recurrence == "once":
        start = session_start_on(schedule.once_date, schedule)
        return start if start.astimezone(timing.UTC) <= now.astimezone(timing.UTC) else None
    today = now.astimezone(schedule.tz).date()
    now_utc = now.astimezone(timing.UTC)
    for back in range(_SEARCH_DAYS + 1):
        start = session_start_on(today - datetime.timedelta(days=back), schedule)
        if start is not None and start.astimezone(timing.UTC) <= now_utc:
            return start
    return None


def next_session(now: datetime.datetime, schedule: ScheduleConfig) -> Optional[datetime.datetime]:
    """Earliest session start strictly after *now*."""
    if schedule.recurrence == "once":
        start = session_start_on(schedule.once_date, schedule)
        return start if start.astimezone(timing.UTC) > now.astimezone(timing.UTC) else None
    today = now.astimezone(schedule.tz).date()
    now_utc = now.astimezone(timing.UTC)
    for ahead in range(_SEARCH_DAYS + 1):
        start = session_start_on(today + datetime.timedelta(days=ahead), schedule)
        if start is not None and start.astimezone(timing.UTC) > now_utc:
            return start
    return None


def evaluate(now: datetime.datetime, schedule: ScheduleConfig) -> timing.ClockState:
    """What a viewer should see at *now* under *schedule*."""
    dur = schedule.duration_seconds
    now_utc = now.astimezone(timing.UTC)

    if schedule.recurrence == "daily":
        today_start = timing.resolve_today_start(now, schedule)
        if now_utc < today_start.astimezone(timing.UTC):
            # a session that started yesterday may still be running past midnight
            yesterday = session_start_on(today_start.date() - datetime.timedelta(days=1), schedule)
            if now_utc < yesterday.astimezone(timing.UTC) + datetime.timedelta(seconds=dur):
                return timing.classify(now, yesterday, dur, next_start=today_start)
        return timing.classify(now, today_start, dur)

    if schedule.recurrence == "once":
        start = session_start_on(schedule.once_date, schedule)
        state = timing.classify(now, start, dur, next_start=start)
        if state.phase == timing.WAITING:
            return state
        # there is no following session, live or after
        return replace(state, countdown_seconds=0, next_start=None)

    prev = previous_session(now, schedule)
    nxt = next_session(now, schedule)

    if prev is not None:
        prev_end = prev.astimezone(timing.UTC) + datetime.timedelta(seconds=dur)
        today = now.astimezone(schedule.tz).date()
        if now_utc < prev_end or prev.date() == today:
            if nxt is None:
                state = timing.classify(now, prev, dur, next_start=prev)
                return replace(state, countdown_seconds=0, next_start=None)
            return timing.classify(now, prev, dur, next_start=nxt)

    if nxt is None:
        return timing.ClockState(phase=timing.ENDED, session_start=prev)
    return timing.classify(now, nxt, dur)


# ── Presentation ────────────────────────────────────────────────────────────
def describe(schedule: ScheduleConfig) -> str:
    at = f"{schedule.start_hour:02d}:{schedule.start_minute:02d}"
    rec = schedule.recurrence
    if rec == "weekly":
        return f"Every {WEEKDAYS[schedule.day_of_week]} at {at}"
    if rec == "monthly":
        return f"Monthly on day {schedule.day_of_month} at {at}"
    if rec == "once":
        return f"On {schedule.once_date.isoformat()} at {at}"
    return f"Every day at {at}"


def format_session(start: datetime.datetime, schedule: ScheduleConfig) -> str:
    local = start.astimezone(schedule.tz)
    return f"{local.date().isoformat()} at {local:%H:%M}"
