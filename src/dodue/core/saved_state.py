# src/dodue/core/saved_state.py

"""
Restorable screen state.

Each holder is built from a plain key-value snapshot and can hand one back
(snapshot()), so a presentation layer can persist it across a process restart
and pass it into the constructor again. Nothing here is global.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Mapping
from typing import Any

from ..tasks.task_models import Task, TaskDraft
from .live import LiveValue

KEY_SEARCH_QUERY = "search_query"
KEY_TASK_NAME = "task_name"
KEY_TASK_PRIORITY = "task_priority"


class FilterState:
    """Live search text of the task list screen."""

    def __init__(self, snapshot: Mapping[str, Any] | None = None) -> None:
        initial = (snapshot or {}).get(KEY_SEARCH_QUERY, "")
        self._query: LiveValue[str] = LiveValue(str(initial or ""))

    @property
    def query(self) -> str:
        return self._query.value

    def set_query(self, text: str) -> None:
        self._query.set(text)

    def observe_query(self) -> AsyncIterator[str]:
        return self._query.observe()

    def snapshot(self) -> dict[str, Any]:
        return {KEY_SEARCH_QUERY: self._query.value}


class EditorState:
    """
    Draft of the add/edit screen.

    Snapshot values win over the edited task's fields, which win over the
    empty defaults.
    """

    def __init__(self, task: Task | None = None, snapshot: Mapping[str, Any] | None = None) -> None:
        snap = snapshot or {}
        self.task = task

        name = snap.get(KEY_TASK_NAME)
        if name is None:
            name = task.name if task is not None else ""
        self.name = str(name)

        priority = snap.get(KEY_TASK_PRIORITY)
        if priority is None:
            priority = task.priority if task is not None else False
        self.priority = bool(priority)

    def to_draft(self) -> TaskDraft:
        return TaskDraft(name=self.name, priority=bool(self.priority), task=self.task)

    def snapshot(self) -> dict[str, Any]:
        return {KEY_TASK_NAME: self.name, KEY_TASK_PRIORITY: bool(self.priority)}
