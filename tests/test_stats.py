from __future__ import annotations

from datetime import datetime, timedelta

from tracker import stats
from tracker.data import sample_tasks
from tracker.models import Priority, Task, TaskStatus

from .fakes import NOW


def _task(task_id, status="Open", priority="Medium", assignee="1", created=None, updated=None, due=None, title=None):
    created = created or datetime(2025, 10, 1)
    return Task(
        id=task_id,
        title=title or f"Task {task_id}",
        description="",
        priority=Priority(priority),
        status=TaskStatus(status),
        assignee=assignee,
        created_date=created,
        created_by="2",
        last_updated=updated or created,
        due_date=due,
    )


def test_dashboard_stats_for_everyone():
    s = stats.dashboard_stats(sample_tasks())
    assert s.total_tasks == 4
    assert (s.open_tasks, s.in_progress_tasks, s.pending_approval_tasks, s.closed_tasks) == (2, 1, 0, 1)
    assert s.total_time_logged == 540
    assert s.tasks_by_priority == {"Low": 1, "Medium": 2, "High": 1}


def test_dashboard_stats_scoped_to_assignee():
    s = stats.dashboard_stats(sample_tasks(), user_id="3")
    assert s.total_tasks == 1
    assert s.closed_tasks == 1
    assert s.total_time_logged == 180
    assert s.to_dict()["tasksByPriority"] == {"Low": 1, "Medium": 0, "High": 0}


def test_dashboard_stats_empty():
    s = stats.dashboard_stats([])
    assert s.total_tasks == 0
    assert s.total_time_logged == 0


def test_trend_window_shape():
    points = stats.trend_data([], now=NOW)
    assert len(points) == 30
    assert points[0].date == "2025-09-23"
    assert points[-1].date == "2025-10-22"
    assert all(p.concurrent_tasks == 0 for p in points)


def test_trend_counts_active_tasks_from_creation_day():
    tasks = [
        _task("a", status="Open", created=datetime(2025, 10, 20, 15, 0)),
        _task("b", status="In Progress", created=datetime(2025, 10, 21, 23, 59)),
        _task("c", status="Closed", created=datetime(2025, 10, 1)),
    ]
    by_day = {p.date: p.concurrent_tasks for p in stats.trend_data(tasks, now=NOW)}
    assert by_day["2025-10-19"] == 0
    assert by_day["2025-10-20"] == 1
    assert by_day["2025-10-21"] == 2
    assert by_day["2025-10-22"] == 2


def test_trend_pending_tasks_count_once_last_updated():
    pending = _task(
        "p",
        status="Pending Approval",
        created=datetime(2025, 10, 10),
        updated=datetime(2025, 10, 18, 9, 0),
    )
    by_day = {p.date: p.concurrent_tasks for p in stats.trend_data([pending], now=NOW)}
    assert by_day["2025-10-17"] == 0
    assert by_day["2025-10-18"] == 1
    assert by_day["2025-10-22"] == 1


def test_trend_filters_by_assignee_and_custom_window():
    tasks = [_task("a", assignee="1"), _task("b", assignee="3")]
    points = stats.trend_data(tasks, user_id="3", days=7, now=NOW)
    assert len(points) == 7
    assert points[-1].concurrent_tasks == 1
    assert points[-1].to_dict() == {"date": "2025-10-22", "concurrentTasks": 1}


def test_filter_tasks():
    tasks = sample_tasks()
    assert [t.id for t in stats.filter_tasks(tasks, "open")] == ["1", "4"]
    assert [t.id for t in stats.filter_tasks(tasks, "in-progress")] == ["2"]
    assert stats.filter_tasks(tasks, "pending") == []
    assert [t.id for t in stats.filter_tasks(tasks, "closed")] == ["3"]
    assert [t.id for t in stats.filter_tasks(tasks, "high-priority")] == ["1"]
    assert len(stats.filter_tasks(tasks, "all")) == 4
    assert len(stats.filter_tasks(tasks, "whatever")) == 4


def test_sort_tasks():
    tasks = [
        _task("a", priority="Low", title="beta", created=datetime(2025, 10, 1), due=datetime(2025, 10, 30)),
        _task("b", priority="High", title="Alpha", created=datetime(2025, 10, 3)),
        _task("c", priority="Medium", title="gamma", created=datetime(2025, 10, 2), due=datetime(2025, 10, 25)),
    ]
    assert [t.id for t in stats.sort_tasks(tasks, "priority")] == ["b", "c", "a"]
    assert [t.id for t in stats.sort_tasks(tasks, "dueDate")] == ["b", "c", "a"]
    assert [t.id for t in stats.sort_tasks(tasks, "title")] == ["b", "a", "c"]
    assert [t.id for t in stats.sort_tasks(tasks, "created")] == ["b", "c", "a"]


def test_overdue_and_card_permissions():
    late = _task("a", due=NOW - timedelta(days=1))
    closed_late = _task("b", status="Closed", due=NOW - timedelta(days=1))
    pending = _task("c", status="Pending Approval")

    assert stats.is_overdue(late, NOW)
    assert not stats.is_overdue(closed_late, NOW)
    assert not stats.is_overdue(_task("d"), NOW)

    assert stats.can_edit(late) and stats.can_delete(late)
    assert not stats.can_edit(closed_late) and not stats.can_delete(closed_late)
    assert stats.can_approve(pending) and stats.can_reopen(pending)
    assert not stats.can_approve(late)
