# src/dodue/core/state.py

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from .commands import TaskCommands
from .events import EventChannel
from .ports import PreferencesRepo, TaskRepo
from .saved_state import FilterState
from .scope import TaskScope
from .task_list import TaskListEngine


@dataclass
class AppState:
    """Application-lifetime objects. Outlives any view built on top of it."""

    settings: object

    task_store: TaskRepo
    preferences: PreferencesRepo
    events: EventChannel
    app_scope: TaskScope

    def open_task_list(self, snapshot: Mapping[str, Any] | None = None) -> TaskListSession:
        """Build the per-view objects of the task list screen (restorable from snapshot)."""
        scope = TaskScope("task-list-view")
        filter_state = FilterState(snapshot)
        return TaskListSession(
            filter_state=filter_state,
            engine=TaskListEngine(self.task_store, self.preferences, filter_state),
            commands=TaskCommands(
                self.task_store,
                self.preferences,
                self.events,
                scope=scope,
                app_scope=self.app_scope,
            ),
            scope=scope,
        )


@dataclass
class TaskListSession:
    filter_state: FilterState
    engine: TaskListEngine
    commands: TaskCommands
    scope: TaskScope

    def close(self) -> dict[str, Any]:
        """Tear the view down; returns the state snapshot to restore it later."""
        self.scope.cancel()
        return self.filter_state.snapshot()
