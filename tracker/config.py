from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


def _repo_root() -> Path:
    return Path(__file__).resolve().parents[1]


@dataclass(frozen=True)
class TrackerConfig:
    """Runtime configuration for the tracker.

    Storage:
    - TRACKER_DATABASE_URL: key-value store URL (preferred)
    - DATABASE_URL: shared DB URL
    - If neither is set, defaults to local SQLite at data/tracker.db

    Data:
    - TRACKER_SEED_SAMPLE_DATA: install sample tasks on first run (default: true)
    - TRACKER_TREND_DAYS: length of the concurrent-task trend window (default: 30)

    Logging:
    - TRACKER_LOG_LEVEL (default: INFO)
    - TRACKER_LOG_DIR: when set, full logs also go to <dir>/tracker.log
    """

    database_url: str
    seed_sample_data: bool = True
    trend_days: int = 30
    log_level: str = "INFO"
    log_dir: Optional[str] = None

    @classmethod
    def from_env(cls) -> "TrackerConfig":
        db_url = (
            os.environ.get("TRACKER_DATABASE_URL")
            or os.environ.get("DATABASE_URL")
            or ""
        ).strip()

        if not db_url:
            data_dir = _repo_root() / "data"
            data_dir.mkdir(parents=True, exist_ok=True)
            db_url = f"sqlite:///{(data_dir / 'tracker.db').as_posix()}"

        log_dir = (os.environ.get("TRACKER_LOG_DIR") or "").strip() or None

        return cls(
            database_url=db_url,
            seed_sample_data=_env_bool("TRACKER_SEED_SAMPLE_DATA", True),
            trend_days=max(1, _env_int("TRACKER_TREND_DAYS", 30)),
            log_level=(os.environ.get("TRACKER_LOG_LEVEL") or "INFO").strip().upper(),
            log_dir=log_dir,
        )


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None:
        return int(default)
    try:
        return int(str(raw).strip())
    except ValueError:
        return int(default)


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    raw = raw.strip().lower()
    if raw in {"1", "true", "yes", "y", "on"}:
        return True
    if raw in {"0", "false", "no", "n", "off"}:
        return False
    return default


_config: Optional[TrackerConfig] = None


def get_config() -> TrackerConfig:
    """Get the tracker configuration (cached)."""
    global _config
    if _config is None:
        _config = TrackerConfig.from_env()
    return _config


def reset_config() -> None:
    """Drop the cached configuration so the next call re-reads the environment."""
    global _config
    _config = None
