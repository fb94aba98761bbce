from __future__ import annotations

import json
import logging
from collections.abc import MutableMapping
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable, Optional

from .data import TrackerData
from .models import TimeEntry, parse_datetime

logger = logging.getLogger(__name__)

ACTIVE_TIMER_KEY = "fealtyx_active_timer"


def total_time_today(entries: Iterable[TimeEntry], now: Optional[datetime] = None) -> int:
    """Minutes logged on today's calendar date."""
    today = (now or datetime.now()).date()
    return sum(e.duration for e in entries if e.date.date() == today)


def total_time_this_week(entries: Iterable[TimeEntry], now: Optional[datetime] = None) -> int:
    """Minutes logged during the last seven days (rolling, not calendar week)."""
    since = (now or datetime.now()) - timedelta(days=7)
    return sum(e.duration for e in entries if e.date >= since)


def format_minutes(minutes: int) -> str:
    hours, mins = divmod(int(minutes), 60)
    return f"{hours}h {mins}m" if hours > 0 else f"{mins}m"


@dataclass
class WorkTimer:
    task_id: str
    user_id: str
    started_at: datetime
    description: str = ""

    def elapsed_minutes(self, now: Optional[datetime] = None) -> int:
        seconds = ((now or datetime.now()) - self.started_at).total_seconds()
        return max(0, int(seconds // 60))

    def stop(self, now: Optional[datetime] = None) -> int:
        """Whole minutes worked; a stopped timer always logs at least one."""
        return self.elapsed_minutes(now) or 1

    def to_dict(self):
        return {
            "taskId": self.task_id,
            "userId": self.user_id,
            "startedAt": self.started_at.isoformat(),
            "description": self.description,
        }

    @classmethod
    def from_dict(cls, raw) -> "WorkTimer":
        return cls(
            task_id=str(raw["taskId"]),
            user_id=str(raw["userId"]),
            started_at=parse_datetime(raw["startedAt"]),
            description=raw.get("description", ""),
        )


def get_active_timer(session: MutableMapping) -> Optional[WorkTimer]:
    raw = session.get(ACTIVE_TIMER_KEY)
    if not raw:
        return None
    try:
        return WorkTimer.from_dict(json.loads(raw))
    except (ValueError, KeyError, TypeError) as exc:
        logger.warning("discarding unreadable timer: %s", exc)
        return None


def start_timer(
    session: MutableMapping,
    *,
    task_id: str,
    user_id: str,
    description: str = "",
    now: Optional[datetime] = None,
) -> WorkTimer:
    """Start (or restart) the single running timer."""
    timer = WorkTimer(
        task_id=task_id,
        user_id=user_id,
        started_at=now or datetime.now(),
        description=description,
    )
    session[ACTIVE_TIMER_KEY] = json.dumps(timer.to_dict())
    logger.info("timer started task=%s user=%s", task_id, user_id)
    return timer


def stop_timer(
    session: MutableMapping, data: TrackerData, *, now: Optional[datetime] = None
) -> Optional[TimeEntry]:
    """Stop the running timer and log its time. ``None`` when no timer runs."""
    timer = get_active_timer(session)
    if timer is None:
        return None
    minutes = timer.stop(now)
    entry = data.add_time_entry(
        task_id=timer.task_id,
        user_id=timer.user_id,
        duration=minutes,
        description=timer.description or "Time tracked",
        date=now,
    )
    del session[ACTIVE_TIMER_KEY]
    return entry
