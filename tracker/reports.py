"""Report breakdowns (pandas).

Every function returns a DataFrame ready for charting or tabular display.
Hours are derived from logged minutes and rounded half-up.
"""

from __future__ import annotations

from datetime import datetime, time, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Iterable, List, Optional, Union

import pandas as pd

from .auth import get_user_by_id
from .models import DashboardStats, Task, TimeEntry

STATUS_COLORS = {
    "Open": "#3b82f6",
    "In Progress": "#8b5cf6",
    "Pending Approval": "#f59e0b",
    "Closed": "#10b981",
}
DEFAULT_STATUS_COLOR = "#6b7280"

TASK_COLUMNS = [
    "id", "title", "description", "priority", "status", "assignee",
    "created_date", "due_date", "time_logged", "created_by", "last_updated",
]
ENTRY_COLUMNS = ["id", "task_id", "user_id", "date", "duration", "description"]


def round_half_up(value: float, digits: int = 0) -> Union[int, float]:
    quant = Decimal(1).scaleb(-digits)
    rounded = Decimal(str(value)).quantize(quant, rounding=ROUND_HALF_UP)
    return int(rounded) if digits == 0 else float(rounded)


def minutes_to_hours(minutes: float, digits: int = 1) -> Union[int, float]:
    return round_half_up(minutes / 60, digits)


def tasks_to_df(tasks: Iterable[Task]) -> pd.DataFrame:
    rows = [
        {
            "id": t.id,
            "title": t.title,
            "description": t.description,
            "priority": t.priority.value,
            "status": t.status.value,
            "assignee": t.assignee,
            "created_date": t.created_date,
            "due_date": t.due_date,
            "time_logged": t.time_logged,
            "created_by": t.created_by,
            "last_updated": t.last_updated,
        }
        for t in tasks
    ]
    df = pd.DataFrame(rows, columns=TASK_COLUMNS)
    for col in ("created_date", "due_date", "last_updated"):
        df[col] = pd.to_datetime(df[col], errors="coerce")
    return df


def time_entries_to_df(entries: Iterable[TimeEntry]) -> pd.DataFrame:
    rows = [
        {
            "id": e.id,
            "task_id": e.task_id,
            "user_id": e.user_id,
            "date": e.date,
            "duration": e.duration,
            "description": e.description,
        }
        for e in entries
    ]
    df = pd.DataFrame(rows, columns=ENTRY_COLUMNS)
    df["date"] = pd.to_datetime(df["date"], errors="coerce")
    df["duration"] = pd.to_numeric(df["duration"]).fillna(0).astype(int)
    return df


def weekly_time_data(
    entries: Iterable[TimeEntry], *, weeks: int = 4, now: Optional[datetime] = None
) -> pd.DataFrame:
    """Logged hours per Monday-started week, oldest week first."""
    now = now or datetime.now()
    df = time_entries_to_df(entries)
    this_monday = now.date() - timedelta(days=now.weekday())

    rows = []
    for back in range(weeks - 1, -1, -1):
        start_day = this_monday - timedelta(weeks=back)
        start = datetime.combine(start_day, time.min)
        end = datetime.combine(start_day + timedelta(days=6), time.max)
        mask = (df["date"] >= start) & (df["date"] <= end)
        minutes = int(df.loc[mask, "duration"].sum())
        rows.append(
            {
                "week": start.strftime("%b %d"),
                "total_time": minutes_to_hours(minutes, 0),
                "entries": int(mask.sum()),
            }
        )
    return pd.DataFrame(rows, columns=["week", "total_time", "entries"])


def daily_time_data(entries: Iterable[TimeEntry], *, now: Optional[datetime] = None) -> pd.DataFrame:
    """Logged hours for each day from one week ago through today (inclusive)."""
    now = now or datetime.now()
    df = time_entries_to_df(entries)
    entry_days = df["date"].dt.date

    rows = []
    first = now.date() - timedelta(weeks=1)
    for offset in range(8):
        day = first + timedelta(days=offset)
        mask = entry_days == day
        minutes = int(df.loc[mask, "duration"].sum())
        rows.append(
            {
                "day": day.strftime("%b %d"),
                "hours": minutes_to_hours(minutes, 1),
                "entries": int(mask.sum()),
            }
        )
    return pd.DataFrame(rows, columns=["day", "hours", "entries"])


def task_status_data(tasks: Iterable[Task]) -> pd.DataFrame:
    df = tasks_to_df(tasks)
    if df.empty:
        return pd.DataFrame(columns=["status", "count", "color"])
    counts = df.groupby("status", sort=False).size().reset_index(name="count")
    counts["count"] = counts["count"].astype(int)
    counts["color"] = counts["status"].map(STATUS_COLORS).fillna(DEFAULT_STATUS_COLOR)
    return counts[["status", "count", "color"]]


def _titles(tasks: Iterable[Task]) -> Dict[str, str]:
    return {t.id: t.title for t in tasks}


def top_tasks_by_time(
    entries: Iterable[TimeEntry], tasks: Iterable[Task], *, limit: int = 5
) -> pd.DataFrame:
    """Tasks with the most hours logged through time entries, highest first."""
    df = time_entries_to_df(entries)
    if df.empty:
        return pd.DataFrame(columns=["task_id", "task_title", "hours"])
    titles = _titles(tasks)
    per_task = df.groupby("task_id", sort=False)["duration"].sum().reset_index()
    per_task["task_title"] = per_task["task_id"].map(lambda tid: titles.get(tid, "Unknown Task"))
    per_task["hours"] = per_task["duration"].map(lambda m: minutes_to_hours(m, 1))
    per_task = per_task.sort_values("hours", ascending=False, kind="mergesort")
    return per_task[["task_id", "task_title", "hours"]].head(limit).reset_index(drop=True)


def recent_time_entries(
    entries: Iterable[TimeEntry], tasks: Iterable[Task], *, limit: int = 10
) -> pd.DataFrame:
    titles = _titles(tasks)
    rows: List[Dict[str, Any]] = []
    for e in list(entries)[:limit]:
        user = get_user_by_id(e.user_id)
        rows.append(
            {
                "date": e.date,
                "task_title": titles.get(e.task_id, "Unknown Task"),
                "user": user.name if user else "Unknown",
                "hours": minutes_to_hours(e.duration, 1),
                "description": e.description,
            }
        )
    return pd.DataFrame(rows, columns=["date", "task_title", "user", "hours", "description"])


def report_summary(stats: DashboardStats) -> Dict[str, Any]:
    avg = 0.0
    if stats.total_tasks > 0:
        avg = minutes_to_hours(stats.total_time_logged / stats.total_tasks, 1)
    return {
        "total_tasks": stats.total_tasks,
        "closed_tasks": stats.closed_tasks,
        "total_hours": minutes_to_hours(stats.total_time_logged, 0),
        "avg_hours_per_task": avg,
    }
