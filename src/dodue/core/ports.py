# src/dodue/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The core depends on Protocols instead of concrete implementations.
This keeps the SQLite/JSON stores swappable and makes testing easier.
"""

from collections.abc import AsyncIterator
from typing import Protocol

from ..tasks.task_models import FilterPreferences, SortOrder, Task


class TaskRepo(Protocol):
    async def insert(self, task: Task) -> int:
        """Insert; a task with an existing id replaces that row."""
        ...

    async def update(self, task: Task) -> None: ...
    async def delete(self, task: Task) -> None: ...
    async def delete_completed(self) -> int: ...

    def live_query(
            self,
            search_text: str,
            sort_order: SortOrder,
            hide_completed: bool,
    ) -> AsyncIterator[list[Task]]:
        """Initial result, then a new result after every underlying write."""
        ...


class PreferencesRepo(Protocol):
    def live_values(self) -> AsyncIterator[FilterPreferences]:
        """
        Live preferences.

        Emits the default snapshot when nothing was ever written and recovers
        to the default (instead of failing) on read errors.
        """
        ...

    async def update_sort_order(self, sort_order: SortOrder) -> None: ...
    async def update_hide_completed(self, hide_completed: bool) -> None: ...
