"""Task and time-entry data access.

``TrackerData`` keeps both lists in memory and writes the affected JSON blob(s)
back to the key-value store after every mutation. Storage failures are logged
and never raised: a failed load yields an empty list, a failed save keeps the
in-memory change.
"""

from __future__ import annotations

import json
import logging
import uuid
from collections.abc import MutableMapping
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from . import stats
from .config import get_config
from .models import (
    DashboardStats,
    DateLike,
    Priority,
    Role,
    Task,
    TaskStateError,
    TaskStatus,
    TimeEntry,
    TrendPoint,
    User,
    parse_datetime,
)
from .storage import LocalStorage

logger = logging.getLogger(__name__)

TASKS_STORAGE_KEY = "fealtyx_tasks"
TIME_ENTRIES_STORAGE_KEY = "fealtyx_time_entries"

UPDATABLE_FIELDS = {
    "title",
    "description",
    "priority",
    "status",
    "assignee",
    "due_date",
    "created_by",
    "time_logged",
}


def _new_id() -> str:
    return str(uuid.uuid4())


def sample_tasks() -> List[Task]:
    return [
        Task(
            id="1",
            title="Fix login button styling",
            description="The login button needs better styling and hover effects",
            priority=Priority.HIGH,
            status=TaskStatus.OPEN,
            assignee="1",
            created_date=datetime(2025, 10, 15),
            due_date=datetime(2025, 10, 20),
            time_logged=120,
            created_by="1",
            last_updated=datetime(2025, 10, 15),
        ),
        Task(
            id="2",
            title="Implement user dashboard",
            description="Create a comprehensive dashboard for users to view their tasks",
            priority=Priority.MEDIUM,
            status=TaskStatus.IN_PROGRESS,
            assignee="1",
            created_date=datetime(2025, 10, 12),
            due_date=datetime(2025, 10, 25),
            time_logged=240,
            created_by="2",
            last_updated=datetime(2025, 10, 18),
        ),
        Task(
            id="3",
            title="Add data validation",
            description="Implement proper validation for all form inputs",
            priority=Priority.LOW,
            status=TaskStatus.CLOSED,
            assignee="3",
            created_date=datetime(2025, 10, 10),
            due_date=datetime(2025, 10, 22),
            time_logged=180,
            created_by="2",
            last_updated=datetime(2025, 10, 20),
        ),
        Task(
            id="4",
            title="Optimize database queries",
            description="Review and optimize slow database queries for better performance",
            priority=Priority.MEDIUM,
            status=TaskStatus.OPEN,
            assignee="2",
            created_date=datetime(2025, 10, 15),
            due_date=datetime(2025, 10, 28),
            time_logged=0,
            created_by="1",
            last_updated=datetime(2025, 10, 15),
        ),
    ]


def sample_time_entries() -> List[TimeEntry]:
    return [
        TimeEntry(
            id="1",
            task_id="1",
            user_id="1",
            date=datetime(2025, 10, 15),
            duration=120,
            description="Worked on button styling and hover effects",
        ),
        TimeEntry(
            id="2",
            task_id="2",
            user_id="1",
            date=datetime(2025, 10, 18),
            duration=240,
            description="Implemented dashboard layout and components",
        ),
        TimeEntry(
            id="3",
            task_id="3",
            user_id="3",
            date=datetime(2025, 10, 20),
            duration=180,
            description="Added validation for all forms",
        ),
    ]


class TrackerData:
    def __init__(
        self,
        storage: MutableMapping,
        *,
        seed_sample_data: bool = True,
        trend_days: int = 30,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.storage = storage
        self.seed_sample_data = seed_sample_data
        self.trend_days = trend_days
        self._clock = clock
        self._tasks: List[Task] = []
        self._time_entries: List[TimeEntry] = []

    # ---- storage helpers ----

    def _save(self, key: str, items: List[Any]) -> None:
        try:
            self.storage[key] = json.dumps([item.to_dict() for item in items])
        except (SQLAlchemyError, OSError) as exc:
            logger.error("failed to save %s: %s", key, exc)

    def _save_tasks(self) -> None:
        self._save(TASKS_STORAGE_KEY, self._tasks)

    def _save_time_entries(self) -> None:
        self._save(TIME_ENTRIES_STORAGE_KEY, self._time_entries)

    def _load(self, key: str, factory: Callable[[Dict[str, Any]], Any]) -> List[Any]:
        try:
            raw = self.storage.get(key)
            if not raw:
                return []
            return [factory(item) for item in json.loads(raw)]
        except (SQLAlchemyError, OSError, ValueError, KeyError, TypeError) as exc:
            logger.error("failed to load %s: %s", key, exc)
            return []

    # ---- lifecycle ----

    def initialize_data(self) -> None:
        """Load both lists; install the sample data on a first run."""
        self._tasks = self._load(TASKS_STORAGE_KEY, Task.from_dict)
        self._time_entries = self._load(TIME_ENTRIES_STORAGE_KEY, TimeEntry.from_dict)

        if not self._tasks and self.seed_sample_data:
            if self._time_entries:
                logger.warning(
                    "no stored tasks; replacing %d stored time entries with sample data",
                    len(self._time_entries),
                )
            self._tasks = sample_tasks()
            self._time_entries = sample_time_entries()
            self._save_tasks()
            self._save_time_entries()
            logger.info("installed sample data tasks=%d entries=%d", len(self._tasks), len(self._time_entries))
        else:
            logger.info("loaded tasks=%d entries=%d", len(self._tasks), len(self._time_entries))

    # ---- tasks ----

    def get_tasks(self) -> List[Task]:
        return list(self._tasks)

    def get_task_by_id(self, task_id: str) -> Optional[Task]:
        return next((t for t in self._tasks if t.id == task_id), None)

    def get_tasks_by_assignee(self, assignee_id: str) -> List[Task]:
        return [t for t in self._tasks if t.assignee == assignee_id]

    def create_task(
        self,
        *,
        title: str,
        description: str,
        priority,
        assignee: str,
        created_by: str,
        status=TaskStatus.OPEN,
        due_date: Optional[DateLike] = None,
    ) -> Task:
        now = self._clock()
        task = Task(
            id=_new_id(),
            title=title.strip(),
            description=description.strip(),
            priority=Priority(priority),
            status=TaskStatus(status),
            assignee=assignee,
            created_date=now,
            due_date=parse_datetime(due_date),
            time_logged=0,
            created_by=created_by,
            last_updated=now,
        )
        self._tasks.append(task)
        self._save_tasks()
        logger.info("task created id=%s assignee=%s priority=%s", task.id, task.assignee, task.priority.value)
        return task

    def update_task(self, task_id: str, **updates: Any) -> Optional[Task]:
        unknown = set(updates) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update task fields: {', '.join(sorted(unknown))}")

        task = self.get_task_by_id(task_id)
        if task is None:
            return None

        # Validate everything before touching the task.
        if "priority" in updates:
            updates["priority"] = Priority(updates["priority"])
        if "status" in updates:
            updates["status"] = TaskStatus(updates["status"])
        if "due_date" in updates:
            updates["due_date"] = parse_datetime(updates["due_date"])
        if "time_logged" in updates:
            updates["time_logged"] = int(updates["time_logged"])

        for name, value in updates.items():
            setattr(task, name, value)
        task.last_updated = self._clock()

        self._save_tasks()
        logger.info("task updated id=%s fields=%s", task_id, ",".join(sorted(updates)) or "-")
        return task

    def delete_task(self, task_id: str) -> bool:
        """Remove a task together with every time entry logged against it."""
        task = self.get_task_by_id(task_id)
        if task is None:
            return False

        self._tasks.remove(task)
        before = len(self._time_entries)
        self._time_entries = [e for e in self._time_entries if e.task_id != task_id]

        self._save_tasks()
        self._save_time_entries()
        logger.info("task deleted id=%s entries_removed=%d", task_id, before - len(self._time_entries))
        return True

    # ---- workflow ----

    def _transition(self, task_id: str, allowed, target: TaskStatus) -> Optional[Task]:
        task = self.get_task_by_id(task_id)
        if task is None:
            return None
        if task.status not in allowed:
            raise TaskStateError(
                f"Task {task_id} is {task.status.value}; cannot move to {target.value}"
            )
        return self.update_task(task_id, status=target)

    def submit_for_approval(self, task_id: str, by: User) -> Optional[Task]:
        """Developer-side close: the task waits for a manager's approval."""
        logger.debug("submit for approval id=%s by=%s", task_id, by.id)
        return self._transition(
            task_id, stats.ACTIVE_STATUSES, TaskStatus.PENDING_APPROVAL
        )

    def approve_task(self, task_id: str, by: User) -> Optional[Task]:
        if by.role != Role.MANAGER:
            raise PermissionError("Only managers can approve tasks")
        return self._transition(task_id, (TaskStatus.PENDING_APPROVAL,), TaskStatus.CLOSED)

    def reopen_task(self, task_id: str, by: User) -> Optional[Task]:
        if by.role != Role.MANAGER:
            raise PermissionError("Only managers can reopen tasks")
        return self._transition(task_id, (TaskStatus.PENDING_APPROVAL,), TaskStatus.OPEN)

    # ---- time entries ----

    def get_time_entries_by_task(self, task_id: str) -> List[TimeEntry]:
        return [e for e in self._time_entries if e.task_id == task_id]

    def get_time_entries_by_user(self, user_id: str) -> List[TimeEntry]:
        return [e for e in self._time_entries if e.user_id == user_id]

    def get_all_time_entries(self) -> List[TimeEntry]:
        return list(self._time_entries)

    def add_time_entry(
        self,
        *,
        task_id: str,
        user_id: str,
        duration: int,
        description: str = "",
        date: Optional[DateLike] = None,
    ) -> TimeEntry:
        duration = int(duration)
        if duration <= 0:
            raise ValueError("duration must be a positive number of minutes")

        now = self._clock()
        entry = TimeEntry(
            id=_new_id(),
            task_id=task_id,
            user_id=user_id,
            date=parse_datetime(date) or now,
            duration=duration,
            description=description,
        )
        self._time_entries.append(entry)

        task = self.get_task_by_id(task_id)
        if task is not None:
            task.time_logged += duration
            task.last_updated = now
        else:
            logger.warning("time entry %s logged against unknown task %s", entry.id, task_id)

        self._save_time_entries()
        self._save_tasks()
        logger.info("time logged task=%s user=%s minutes=%d", task_id, user_id, duration)
        return entry

    # ---- aggregates ----

    def get_dashboard_stats(self, user_id: Optional[str] = None) -> DashboardStats:
        return stats.dashboard_stats(self._tasks, user_id)

    def get_trend_data(self, user_id: Optional[str] = None) -> List[TrendPoint]:
        return stats.trend_data(self._tasks, user_id, days=self.trend_days, now=self._clock())


_data: Optional[TrackerData] = None


def get_data() -> TrackerData:
    """Process-wide ``TrackerData`` bound to the configured store (cached, initialized)."""
    global _data
    if _data is None:
        config = get_config()
        _data = TrackerData(
            LocalStorage(config.database_url),
            seed_sample_data=config.seed_sample_data,
            trend_days=config.trend_days,
        )
        _data.initialize_data()
    return _data


def reset_data() -> None:
    global _data
    _data = None
