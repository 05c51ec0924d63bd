# src/dodue/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires concrete stores, the event channel and the application scope into AppState,
- persists the task list screen state (search text) as JSON between runs.
"""

from __future__ import annotations

import contextlib
import json
import logging
import os
from pathlib import Path
from typing import Any

from ..config import get_settings
from ..core.events import EventChannel
from ..core.scope import TaskScope
from ..core.state import AppState
from ..preferences.preferences_store import PreferencesStore
from ..tasks.task_store import TaskStore

logger = logging.getLogger(__name__)

VIEW_STATE_FILE = "view_state.json"


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.tasks_db_path.parent.mkdir(parents=True, exist_ok=True)
    settings.preferences_path.parent.mkdir(parents=True, exist_ok=True)


def create_initial_state(*, settings=None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    return AppState(
        settings=settings,
        task_store=TaskStore(settings.tasks_db_path, seed=settings.seed_tasks),
        preferences=PreferencesStore(settings.preferences_path),
        events=EventChannel(maxsize=settings.event_queue_size),
        app_scope=TaskScope("application"),
    )


def _view_state_path(state: AppState) -> Path:
    return Path(getattr(state.settings, "data_dir", ".local/dodue")) / VIEW_STATE_FILE


def load_view_state(state: AppState) -> dict[str, Any]:
    path = _view_state_path(state)
    if not path.exists():
        return {}
    try:
        data = json.loads(path.read_text("utf-8"))
        if not isinstance(data, dict):
            return {}
        logger.info("Loaded view state from %s", path)
        return data
    except (OSError, ValueError):
        logger.exception("Failed to load view state from %s", path)
        return {}


def save_view_state(state: AppState, snapshot: dict[str, Any]) -> None:
    path = _view_state_path(state)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix(".tmp")
        tmp.write_text(json.dumps(snapshot, ensure_ascii=False, indent=2), "utf-8")
        os.replace(tmp, path)
        with contextlib.suppress(OSError):
            os.chmod(path, 0o600)
        logger.info("Saved view state to %s", path)
    except OSError:
        logger.exception("Failed to save view state to %s", path)
