from __future__ import annotations

from datetime import datetime, timedelta

from tracker import timetracking
from tracker.models import TimeEntry

from .fakes import NOW


def _entry(when, minutes):
    return TimeEntry(id=str(when), task_id="1", user_id="1", date=when, duration=minutes)


def test_totals_today_and_this_week():
    entries = [
        _entry(NOW.replace(hour=8), 30),
        _entry(NOW - timedelta(days=1), 60),
        _entry(NOW - timedelta(days=6, hours=23), 15),
        _entry(NOW - timedelta(days=8), 120),
    ]
    assert timetracking.total_time_today(entries, NOW) == 30
    assert timetracking.total_time_this_week(entries, NOW) == 105


def test_format_minutes():
    assert timetracking.format_minutes(45) == "45m"
    assert timetracking.format_minutes(60) == "1h 0m"
    assert timetracking.format_minutes(125) == "2h 5m"


def test_work_timer_minimum_one_minute():
    timer = timetracking.WorkTimer(task_id="1", user_id="1", started_at=NOW)
    assert timer.elapsed_minutes(NOW + timedelta(seconds=59)) == 0
    assert timer.stop(NOW + timedelta(seconds=20)) == 1
    assert timer.stop(NOW + timedelta(minutes=42, seconds=50)) == 42


def test_timer_persists_and_logs_time(data, storage):
    assert timetracking.get_active_timer(storage) is None
    timetracking.start_timer(storage, task_id="4", user_id="2", description="Query tuning", now=NOW)

    running = timetracking.get_active_timer(storage)
    assert running.task_id == "4"
    assert running.started_at == NOW

    entry = timetracking.stop_timer(storage, data, now=NOW + timedelta(minutes=25))
    assert entry.duration == 25
    assert entry.description == "Query tuning"
    assert data.get_task_by_id("4").time_logged == 25
    assert timetracking.get_active_timer(storage) is None
    assert timetracking.stop_timer(storage, data) is None


def test_unreadable_timer_is_ignored():
    assert timetracking.get_active_timer({timetracking.ACTIVE_TIMER_KEY: "[]"}) is None
