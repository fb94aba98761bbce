"""Domain models for tasks, time entries, users and dashboard aggregates.

Persisted JSON keeps camelCase field names (``createdDate``, ``timeLogged`` ...)
so stored blobs stay readable by the web front end that shares the format.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Optional, Union


class Role(str, Enum):
    DEVELOPER = "Developer"
    MANAGER = "Manager"


class Priority(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"

    @property
    def weight(self) -> int:
        return _PRIORITY_WEIGHTS[self]


_PRIORITY_WEIGHTS = {Priority.HIGH: 3, Priority.MEDIUM: 2, Priority.LOW: 1}


class TaskStatus(str, Enum):
    OPEN = "Open"
    IN_PROGRESS = "In Progress"
    PENDING_APPROVAL = "Pending Approval"
    CLOSED = "Closed"


class TaskStateError(RuntimeError):
    """Raised when a workflow action does not apply to the task's current status."""


DateLike = Union[datetime, date, str]


def parse_datetime(value: Optional[DateLike]) -> Optional[datetime]:
    """Rehydrate a stored date value into a naive local datetime.

    Accepts datetimes, dates and ISO-8601 strings (date-only, naive, ``Z`` or
    offset suffixed). Aware values are converted to local time. Empty values
    give ``None``.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime(value.year, value.month, value.day)
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        dt = datetime.fromisoformat(text)
    if dt.tzinfo is not None:
        dt = dt.astimezone().replace(tzinfo=None)
    return dt


def _iso(dt: Optional[datetime]) -> Optional[str]:
    return dt.isoformat() if dt else None


@dataclass(frozen=True)
class User:
    id: str
    name: str
    email: str
    role: Role

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "email": self.email, "role": self.role.value}

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "User":
        return cls(
            id=str(raw["id"]),
            name=raw["name"],
            email=raw["email"],
            role=Role(raw["role"]),
        )


@dataclass
class Task:
    id: str
    title: str
    description: str
    priority: Priority
    status: TaskStatus
    assignee: str
    created_date: datetime
    created_by: str
    last_updated: datetime
    due_date: Optional[datetime] = None
    time_logged: int = 0  # minutes

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "priority": self.priority.value,
            "status": self.status.value,
            "assignee": self.assignee,
            "createdDate": _iso(self.created_date),
            "dueDate": _iso(self.due_date),
            "timeLogged": self.time_logged,
            "createdBy": self.created_by,
            "lastUpdated": _iso(self.last_updated),
        }

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "Task":
        return cls(
            id=str(raw["id"]),
            title=raw.get("title", ""),
            description=raw.get("description", ""),
            priority=Priority(raw.get("priority", Priority.MEDIUM.value)),
            status=TaskStatus(raw.get("status", TaskStatus.OPEN.value)),
            assignee=str(raw.get("assignee", "")),
            created_date=parse_datetime(raw["createdDate"]),
            due_date=parse_datetime(raw.get("dueDate")),
            time_logged=int(raw.get("timeLogged") or 0),
            created_by=str(raw.get("createdBy", "")),
            last_updated=parse_datetime(raw.get("lastUpdated") or raw["createdDate"]),
        )


@dataclass
class TimeEntry:
    id: str
    task_id: str
    user_id: str
    date: datetime
    duration: int  # minutes
    description: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "taskId": self.task_id,
            "userId": self.user_id,
            "date": _iso(self.date),
            "duration": self.duration,
            "description": self.description,
        }

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "TimeEntry":
        return cls(
            id=str(raw["id"]),
            task_id=str(raw["taskId"]),
            user_id=str(raw["userId"]),
            date=parse_datetime(raw["date"]),
            duration=int(raw.get("duration") or 0),
            description=raw.get("description", ""),
        )


@dataclass
class DashboardStats:
    total_tasks: int = 0
    open_tasks: int = 0
    in_progress_tasks: int = 0
    pending_approval_tasks: int = 0
    closed_tasks: int = 0
    total_time_logged: int = 0  # minutes
    tasks_by_priority: Dict[str, int] = field(
        default_factory=lambda: {p.value: 0 for p in Priority}
    )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalTasks": self.total_tasks,
            "openTasks": self.open_tasks,
            "inProgressTasks": self.in_progress_tasks,
            "pendingApprovalTasks": self.pending_approval_tasks,
            "closedTasks": self.closed_tasks,
            "totalTimeLogged": self.total_time_logged,
            "tasksByPriority": dict(self.tasks_by_priority),
        }


@dataclass(frozen=True)
class TrendPoint:
    date: str  # YYYY-MM-DD
    concurrent_tasks: int

    def to_dict(self) -> Dict[str, Any]:
        return {"date": self.date, "concurrentTasks": self.concurrent_tasks}
