"""
Contract tests for schedule.py: configuration validation and recurrence.

2026-10-18 is a Sunday; 2026-10-20 a Tuesday.
"""

import datetime
import json
from zoneinfo import ZoneInfo

import pytest

import schedule
import timing
from schedule import ScheduleConfig, ScheduleError
from timing import ENDED, LIVE, WAITING

SP = ZoneInfo("America/Sao_Paulo")


def at(y, mo, d, h, mi, s=0, tz=SP):
    return datetime.datetime(y, mo, d, h, mi, s, tzinfo=tz)


# ============================================================================
# Configuration
# ============================================================================

class TestScheduleConfig:
    def test_defaults(self):
        sched = ScheduleConfig.from_dict({})
        assert (sched.start_hour, sched.start_minute) == (18, 50)
        assert sched.duration_seconds == 3600
        assert sched.recurrence == "daily"
        assert sched.tz == SP

    def test_once_date_parsed(self):
        sched = ScheduleConfig.from_dict({"recurrence": "once", "once_date": "2026-11-03"})
        assert sched.once_date == datetime.date(2026, 11, 3)

    def test_unknown_keys_kept_aside(self):
        sched = ScheduleConfig.from_dict({"slug": "launch", "start_hour": 20})
        assert sched.start_hour == 20
        assert sched.extra == {"slug": "launch"}

    @pytest.mark.parametrize("data", [
        {"start_hour": 24},
        {"start_hour": -1},
        {"start_hour": True},
        {"start_hour": "18"},
        {"start_minute": 60},
        {"duration_seconds": -5},
        {"timezone": "Mars/Olympus_Mons"},
        {"timezone": ""},
        {"recurrence": "hourly"},
        {"recurrence": "weekly"},
        {"recurrence": "weekly", "day_of_week": 7},
        {"recurrence": "monthly", "day_of_month": 0},
        {"recurrence": "monthly", "day_of_month": 32},
        {"recurrence": "once"},
        {"recurrence": "once", "once_date": "03/11/2026"},
    ])
    def test_rejects_invalid(self, data):
        with pytest.raises(ScheduleError):
            ScheduleConfig.from_dict(data)

    def test_schedule_error_is_value_error(self):
        assert issubclass(ScheduleError, schedule.ConfigError)
        assert issubclass(ScheduleError, ValueError)

    def test_zero_duration_probes_video(self, tmp_path):
        # an unreadable recording probes as 0: a zero-width window, not a crash
        sched = ScheduleConfig.from_dict({
            "duration_seconds": 0,
            "video": str(tmp_path / "missing.mp4"),
        })
        assert sched.duration_seconds == 0
        assert schedule.evaluate(at(2026, 10, 18, 18, 50), sched).phase == ENDED


class TestLoadSchedule:
    def test_missing_file_gives_defaults(self, tmp_path):
        sched = schedule.load_schedule(str(tmp_path / "webinar.json"))
        assert sched == ScheduleConfig.from_dict({})

    def test_reads_json(self, tmp_path):
        path = tmp_path / "webinar.json"
        path.write_text(json.dumps({
            "title": "Launch",
            "start_hour": 20,
            "start_minute": 0,
            "duration_seconds": 5400,
            "timezone": "Europe/Lisbon",
            "recurrence": "weekly",
            "day_of_week": 2,
        }))
        sched = schedule.load_schedule(str(path))
        assert sched.title == "Launch"
        assert sched.tz == ZoneInfo("Europe/Lisbon")
        assert sched.day_of_week == 2

    def test_malformed_json(self, tmp_path):
        path = tmp_path / "webinar.json"
        path.write_text("{not json")
        with pytest.raises(ScheduleError):
            schedule.load_schedule(str(path))

    def test_non_object_json(self, tmp_path):
        path = tmp_path / "webinar.json"
        path.write_text("[1, 2]")
        with pytest.raises(ScheduleError):
            schedule.load_schedule(str(path))


# ============================================================================
# Daily recurrence
# ============================================================================

class TestDaily:
    def test_waiting_one_second_before(self, daily):
        state = schedule.evaluate(at(2026, 10, 18, 18, 49, 59), daily)
        assert state.phase == WAITING
        assert state.countdown_seconds == 1

    def test_live_ten_minutes_in(self, daily):
        state = schedule.evaluate(at(2026, 10, 18, 19, 0), daily)
        assert state.phase == LIVE
        assert state.elapsed_seconds == 600

    def test_ended_counts_down_to_tomorrow(self, daily):
        state = schedule.evaluate(at(2026, 10, 18, 19, 50), daily)
        assert state.phase == ENDED
        assert state.countdown_seconds == 23 * 3600
        assert state.next_start == at(2026, 10, 19, 18, 50)

    def test_waiting_after_midnight(self, daily):
        state = schedule.evaluate(at(2026, 10, 19, 0, 10), daily)
        assert state.phase == WAITING
        assert state.countdown_seconds == 18 * 3600 + 40 * 60

    def test_viewer_zone_does_not_matter(self, daily):
        local = at(2026, 10, 18, 19, 0)
        tokyo = local.astimezone(ZoneInfo("Asia/Tokyo"))
        utc = local.astimezone(timing.UTC)
        states = {schedule.evaluate(t, daily).elapsed_seconds for t in (local, tokyo, utc)}
        assert states == {600}

    def test_matches_resolve_and_classify(self, daily):
        base = at(2026, 10, 18, 0, 0)
        for minutes in range(0, 24 * 60, 17):
            now = base + datetime.timedelta(minutes=minutes)
            expected = timing.classify(now, timing.resolve_today_start(now, daily), 3600)
            assert schedule.evaluate(now, daily) == expected


class TestOvernightSession:
    @pytest.fixture
    def late(self):
        return ScheduleConfig(start_hour=23, start_minute=0, duration_seconds=3 * 3600,
                              timezone="America/Sao_Paulo")

    def test_live_before_midnight(self, late):
        state = schedule.evaluate(at(2026, 10, 18, 23, 30), late)
        assert state.phase == LIVE
        assert state.elapsed_seconds == 1800

    def test_still_live_after_midnight(self, late):
        state = schedule.evaluate(at(2026, 10, 19, 1, 30), late)
        assert state.phase == LIVE
        assert state.elapsed_seconds == 9000
        assert state.session_start == at(2026, 10, 18, 23, 0)

    def test_waiting_once_overnight_session_is_over(self, late):
        state = schedule.evaluate(at(2026, 10, 19, 2, 0), late)
        assert state.phase == WAITING
        assert state.countdown_seconds == 21 * 3600


# ============================================================================
# Other recurrences
# ============================================================================

class TestWeekly:
    @pytest.fixture
    def tuesdays(self):
        return ScheduleConfig(start_hour=20, start_minute=0, duration_seconds=5400,
                              timezone="America/Sao_Paulo", recurrence="weekly",
                              day_of_week=2)

    def test_session_only_on_configured_weekday(self, tuesdays):
        assert schedule.session_start_on(datetime.date(2026, 10, 20), tuesdays) == at(2026, 10, 20, 20, 0)
        assert schedule.session_start_on(datetime.date(2026, 10, 21), tuesdays) is None

    def test_waiting_days_ahead(self, tuesdays):
        state = schedule.evaluate(at(2026, 10, 18, 12, 0), tuesdays)
        assert state.phase == WAITING
        assert state.next_start == at(2026, 10, 20, 20, 0)
        assert state.countdown_seconds == 2 * 86400 + 8 * 3600

    def test_live(self, tuesdays):
        state = schedule.evaluate(at(2026, 10, 20, 20, 30), tuesdays)
        assert state.phase == LIVE
        assert state.elapsed_seconds == 1800

    def test_ended_same_evening_counts_to_next_week(self, tuesdays):
        state = schedule.evaluate(at(2026, 10, 20, 22, 0), tuesdays)
        assert state.phase == ENDED
        assert state.next_start == at(2026, 10, 27, 20, 0)
        assert state.countdown_seconds == 7 * 86400 - 2 * 3600

    def test_waiting_next_day(self, tuesdays):
        state = schedule.evaluate(at(2026, 10, 21, 9, 0), tuesdays)
        assert state.phase == WAITING
        assert state.countdown_seconds == 6 * 86400 + 11 * 3600


class TestMonthly:
    @pytest.fixture
    def last_day(self):
        return ScheduleConfig(start_hour=19, start_minute=0, duration_seconds=3600,
                              timezone="America/Sao_Paulo", recurrence="monthly",
                              day_of_month=31)

    def test_next_in_same_month(self, last_day):
        state = schedule.evaluate(at(2026, 10, 18, 12, 0), last_day)
        assert state.phase == WAITING
        assert state.next_start == at(2026, 10, 31, 19, 0)

    def test_skips_short_month(self, last_day):
        assert schedule.next_session(at(2026, 11, 5, 12, 0), last_day) == at(2026, 12, 31, 19, 0)
        assert schedule.previous_session(at(2026, 11, 5, 12, 0), last_day) == at(2026, 10, 31, 19, 0)

    def test_ended_points_past_short_month(self, last_day):
        state = schedule.evaluate(at(2026, 10, 31, 20, 30), last_day)
        assert state.phase == ENDED
        assert state.next_start == at(2026, 12, 31, 19, 0)


class TestOnce:
    @pytest.fixture
    def launch(self):
        return ScheduleConfig(start_hour=18, start_minute=0, duration_seconds=3600,
                              timezone="America/Sao_Paulo", recurrence="once",
                              once_date=datetime.date(2026, 10, 20))

    def test_waiting_before(self, launch):
        state = schedule.evaluate(at(2026, 10, 19, 18, 0), launch)
        assert state.phase == WAITING
        assert state.countdown_seconds == 86400

    def test_live(self, launch):
        state = schedule.evaluate(at(2026, 10, 20, 18, 0, 5), launch)
        assert state.phase == LIVE
        assert state.elapsed_seconds == 5

    def test_live_has_no_next_session(self, launch):
        state = schedule.evaluate(at(2026, 10, 20, 18, 30), launch)
        assert state.phase == LIVE
        assert state.elapsed_seconds == 1800
        assert state.remaining_seconds == 1800
        assert state.next_start is None
        assert state.to_dict()["next_start"] is None

    def test_waiting_months_ahead(self):
        far = ScheduleConfig(start_hour=18, start_minute=0, duration_seconds=3600,
                             timezone="America/Sao_Paulo", recurrence="once",
                             once_date=datetime.date(2027, 1, 20))
        now = at(2026, 10, 18, 12, 0)
        state = schedule.evaluate(now, far)
        assert state.phase == WAITING
        assert state.next_start == at(2027, 1, 20, 18, 0)
        assert state.countdown_seconds == 94 * 86400 + 6 * 3600
        assert schedule.next_session(now, far) == at(2027, 1, 20, 18, 0)
        assert schedule.previous_session(now, far) is None

    def test_ended_has_no_next_session(self, launch):
        for now in (at(2026, 10, 20, 19, 0), at(2026, 10, 21, 9, 0), at(2027, 6, 1, 9, 0)):
            state = schedule.evaluate(now, launch)
            assert state.phase == ENDED
            assert state.next_start is None
            assert state.countdown == "00:00:00"


class TestDescribe:
    def test_texts(self, daily):
        assert schedule.describe(daily) == "Every day at 18:50"
        assert schedule.describe(ScheduleConfig(recurrence="weekly", day_of_week=2,
                                                start_hour=20, start_minute=0)) == "Every Tuesday at 20:00"
        assert schedule.describe(ScheduleConfig(recurrence="monthly", day_of_month=5,
                                                start_hour=19, start_minute=0)) == "Monthly on day 5 at 19:00"
        assert schedule.describe(ScheduleConfig(recurrence="once", start_hour=18, start_minute=0,
                                                once_date=datetime.date(2026, 11, 3))) == "On 2026-11-03 at 18:00"

    def test_format_session_in_schedule_zone(self, daily):
        start = datetime.datetime(2026, 10, 19, 21, 50, tzinfo=timing.UTC)
        assert schedule.format_session(start, daily) == "2026-10-19 at 18:50"
