# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from dodue.core.events import EventChannel
from dodue.core.scope import TaskScope
from dodue.core.state import AppState
from dodue.preferences.preferences_store import PreferencesStore
from dodue.tasks.task_store import TaskStore

from .fakes import FakePreferences, FakeTaskRepo


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and the bootstrap helpers.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="dodue-test",
        log_level="DEBUG",
        data_dir=tmp_path,
        tasks_db_path=tmp_path / "tasks.sqlite3",
        preferences_path=tmp_path / "user_preferences.json",
        seed_tasks=False,
        event_queue_size=0,
    )


@pytest.fixture()
def task_store(settings: SimpleNamespace) -> TaskStore:
    return TaskStore(settings.tasks_db_path, seed=False)


@pytest.fixture()
def preferences_store(settings: SimpleNamespace) -> PreferencesStore:
    return PreferencesStore(settings.preferences_path)


@pytest.fixture()
def state(settings: SimpleNamespace, task_store: TaskStore, preferences_store: PreferencesStore) -> AppState:
    """
    AppState wired with the real SQLite/JSON stores.

    Their live-query behaviour is part of what we want to test end to end.
    """
    return AppState(
        settings=settings,
        task_store=task_store,
        preferences=preferences_store,
        events=EventChannel(),
        app_scope=TaskScope("application"),
    )


@pytest.fixture()
def fake_repo() -> FakeTaskRepo:
    return FakeTaskRepo()


@pytest.fixture()
def fake_prefs() -> FakePreferences:
    return FakePreferences()
