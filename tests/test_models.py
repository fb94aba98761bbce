from __future__ import annotations

from datetime import datetime, timezone

import pytest

from tracker.models import Priority, Task, TaskStatus, TimeEntry, User, Role, parse_datetime


def test_task_from_stored_json_rehydrates_dates():
    raw = {
        "id": "1",
        "title": "Fix login button styling",
        "description": "",
        "priority": "High",
        "status": "Open",
        "assignee": "1",
        "createdDate": "2025-10-15",
        "dueDate": None,
        "timeLogged": 120,
        "createdBy": "1",
        "lastUpdated": "2025-10-16T09:30:00",
    }
    task = Task.from_dict(raw)
    assert task.created_date == datetime(2025, 10, 15)
    assert task.last_updated == datetime(2025, 10, 16, 9, 30)
    assert task.due_date is None
    assert task.priority is Priority.HIGH
    assert task.status is TaskStatus.OPEN

    stored = task.to_dict()
    assert stored["createdDate"] == "2025-10-15T00:00:00"
    assert stored["dueDate"] is None
    assert stored["timeLogged"] == 120


def test_parse_datetime_handles_utc_suffix():
    parsed = parse_datetime("2025-10-15T10:00:00.000Z")
    expected = datetime(2025, 10, 15, 10, 0, tzinfo=timezone.utc).astimezone().replace(tzinfo=None)
    assert parsed == expected
    assert parsed.tzinfo is None
    assert parse_datetime("") is None


def test_unknown_enum_value_is_rejected():
    with pytest.raises(ValueError):
        Task.from_dict({"id": "1", "priority": "Urgent", "createdDate": "2025-10-15"})


def test_time_entry_uses_camel_case_keys():
    entry = TimeEntry(id="e1", task_id="t1", user_id="1", date=datetime(2025, 10, 18), duration=30)
    stored = entry.to_dict()
    assert stored["taskId"] == "t1"
    assert stored["userId"] == "1"
    assert TimeEntry.from_dict(stored) == entry


def test_user_to_dict():
    user = User(id="2", name="Manager", email="manager@example.com", role=Role.MANAGER)
    assert user.to_dict()["role"] == "Manager"


def test_priority_weight_orders_high_first():
    assert Priority.HIGH.weight > Priority.MEDIUM.weight > Priority.LOW.weight
