# src/dodue/tasks/task_models.py

from __future__ import annotations

import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any


class SortOrder(StrEnum):
    """How the task list is ordered (priority always sorts first)."""

    BY_NAME = "by_name"
    BY_DATE = "by_date"

    @classmethod
    def from_stored(cls, raw: str | None) -> SortOrder:
        if not raw:
            return cls.BY_DATE
        try:
            return cls(raw)
        except ValueError:
            return cls.BY_DATE


@dataclass(slots=True, frozen=True)
class Task:
    name: str
    completed: bool = False
    priority: bool = False
    created_at: float = field(default_factory=time.time)
    # 0 = not yet assigned by the store
    id: int = 0

    @property
    def created_display(self) -> str:
        return datetime.fromtimestamp(self.created_at).strftime("%Y-%m-%d %H:%M:%S")


@dataclass(slots=True, frozen=True)
class FilterPreferences:
    sort_order: SortOrder = SortOrder.BY_DATE
    hide_completed: bool = False


DEFAULT_PREFERENCES = FilterPreferences()


def task_sort_key(sort_order: SortOrder) -> Callable[[Task], tuple[Any, ...]]:
    """Priority first, then name or creation time; id breaks ties."""
    if SortOrder(sort_order) is SortOrder.BY_NAME:
        return lambda t: (not t.priority, t.name, t.id)
    return lambda t: (not t.priority, t.created_at, t.id)


def task_matches(task: Task, search_text: str, hide_completed: bool) -> bool:
    if hide_completed and task.completed:
        return False
    return not search_text or search_text.casefold() in task.name.casefold()


def select_tasks(
    tasks: Iterable[Task],
    search_text: str,
    sort_order: SortOrder,
    hide_completed: bool,
) -> list[Task]:
    """In-memory equivalent of TaskStore.query_tasks."""
    picked = [t for t in tasks if task_matches(t, search_text, hide_completed)]
    picked.sort(key=task_sort_key(sort_order))
    return picked


@dataclass(slots=True, frozen=True)
class TaskDraft:
    """
    What the add/edit screen wants to save.

    task is the task being edited, or None when creating a new one.
    """

    name: str
    priority: bool = False
    task: Task | None = None
