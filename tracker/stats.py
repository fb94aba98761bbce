"""Dashboard aggregation over in-memory task lists.

Pure functions: nothing here touches storage. Dates are naive local datetimes;
pass ``now`` to pin the clock.
"""

from __future__ import annotations

from datetime import datetime, time, timedelta
from typing import Callable, Dict, Iterable, List, Optional

from .models import DashboardStats, Priority, Task, TaskStatus, TrendPoint

ACTIVE_STATUSES = (TaskStatus.OPEN, TaskStatus.IN_PROGRESS)

TASK_FILTERS: Dict[str, Callable[[Task], bool]] = {
    "open": lambda t: t.status == TaskStatus.OPEN,
    "in-progress": lambda t: t.status == TaskStatus.IN_PROGRESS,
    "pending": lambda t: t.status == TaskStatus.PENDING_APPROVAL,
    "closed": lambda t: t.status == TaskStatus.CLOSED,
    "high-priority": lambda t: t.priority == Priority.HIGH,
}

SORT_KEYS = ("created", "priority", "dueDate", "title")


def _assigned(tasks: Iterable[Task], user_id: Optional[str]) -> List[Task]:
    if not user_id:
        return list(tasks)
    return [t for t in tasks if t.assignee == user_id]


def dashboard_stats(tasks: Iterable[Task], user_id: Optional[str] = None) -> DashboardStats:
    """Counts by status and priority plus total logged minutes.

    With ``user_id`` only tasks assigned to that user are counted.
    """
    scoped = _assigned(tasks, user_id)
    stats = DashboardStats(total_tasks=len(scoped))
    for t in scoped:
        if t.status == TaskStatus.OPEN:
            stats.open_tasks += 1
        elif t.status == TaskStatus.IN_PROGRESS:
            stats.in_progress_tasks += 1
        elif t.status == TaskStatus.PENDING_APPROVAL:
            stats.pending_approval_tasks += 1
        elif t.status == TaskStatus.CLOSED:
            stats.closed_tasks += 1
        stats.tasks_by_priority[t.priority.value] += 1
        stats.total_time_logged += t.time_logged
    return stats


def _counts_on(task: Task, day_end: datetime) -> bool:
    if task.created_date > day_end:
        return False
    if task.status in ACTIVE_STATUSES:
        return True
    return task.status == TaskStatus.PENDING_APPROVAL and task.last_updated <= day_end


def trend_data(
    tasks: Iterable[Task],
    user_id: Optional[str] = None,
    *,
    days: int = 30,
    now: Optional[datetime] = None,
) -> List[TrendPoint]:
    """Concurrent active tasks per day over the ``days`` days ending today.

    A task counts on day D when it existed by the end of D and is Open or In
    Progress, or is Pending Approval and was last updated by the end of D.
    The task's current status is used for every day of the window.
    """
    now = now or datetime.now()
    scoped = _assigned(tasks, user_id)
    today = now.date()

    points: List[TrendPoint] = []
    for offset in range(days - 1, -1, -1):
        day = today - timedelta(days=offset)
        day_end = datetime.combine(day, time.max)
        count = sum(1 for t in scoped if _counts_on(t, day_end))
        points.append(TrendPoint(date=day.isoformat(), concurrent_tasks=count))
    return points


def filter_tasks(tasks: Iterable[Task], key: str = "all") -> List[Task]:
    """Dashboard quick filters; unknown keys (and ``all``) return everything."""
    predicate = TASK_FILTERS.get(key)
    if predicate is None:
        return list(tasks)
    return [t for t in tasks if predicate(t)]


def sort_tasks(tasks: Iterable[Task], key: str = "created") -> List[Task]:
    if key == "priority":
        return sorted(tasks, key=lambda t: t.priority.weight, reverse=True)
    if key == "dueDate":
        # Tasks without a due date sort first.
        return sorted(tasks, key=lambda t: t.due_date or datetime.min)
    if key == "title":
        return sorted(tasks, key=lambda t: t.title.casefold())
    return sorted(tasks, key=lambda t: t.created_date, reverse=True)


def is_overdue(task: Task, now: Optional[datetime] = None) -> bool:
    now = now or datetime.now()
    return (
        task.due_date is not None
        and task.due_date < now
        and task.status != TaskStatus.CLOSED
    )


def can_edit(task: Task) -> bool:
    return task.status != TaskStatus.CLOSED


def can_delete(task: Task) -> bool:
    return task.status != TaskStatus.CLOSED


def can_approve(task: Task) -> bool:
    return task.status == TaskStatus.PENDING_APPROVAL


def can_reopen(task: Task) -> bool:
    return task.status == TaskStatus.PENDING_APPROVAL
