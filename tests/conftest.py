from __future__ import annotations

import logging
from pathlib import Path

import pytest

from tracker.data import TrackerData
from tracker.storage import LocalStorage
from tracker.storage.db import dispose_engines

from .fakes import FakeClock


@pytest.fixture
def db_url(tmp_path: Path) -> str:
    url = f"sqlite:///{(tmp_path / 'tracker.db').as_posix()}"
    yield url
    dispose_engines()


@pytest.fixture
def storage(db_url: str) -> LocalStorage:
    return LocalStorage(db_url)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def data(storage: LocalStorage, clock: FakeClock) -> TrackerData:
    d = TrackerData(storage, clock=clock)
    d.initialize_data()
    return d


@pytest.fixture
def empty_data(storage: LocalStorage, clock: FakeClock) -> TrackerData:
    d = TrackerData(storage, seed_sample_data=False, clock=clock)
    d.initialize_data()
    return d


@pytest.fixture
def cli_env(db_url: str, monkeypatch):
    from tracker import config, data as data_module

    monkeypatch.setenv("TRACKER_DATABASE_URL", db_url)
    monkeypatch.setenv("TRACKER_LOG_LEVEL", "WARNING")
    monkeypatch.delenv("TRACKER_LOG_DIR", raising=False)
    config.reset_config()
    data_module.reset_data()
    yield db_url
    config.reset_config()
    data_module.reset_data()
    # The CLI binds a console handler to the runner's temporary stderr.
    logging.getLogger().handlers.clear()
