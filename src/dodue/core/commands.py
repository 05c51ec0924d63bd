# src/dodue/core/commands.py

"""
Task commands.

User intents that mutate the task/preference stores and report back through
one-shot events. Each handler launches its work on a TaskScope and returns the
asyncio.Task immediately, so the caller never blocks on store I/O but may
await the outcome (store write failures surface there, unretried).

Scopes:
- scope: tied to the issuing view; cancelled when the view goes away
- app_scope: outlives views; used for work that must finish even if the view
  is torn down right after issuing it: a write followed by its event (save,
  swipe delete) and bulk delete after the confirm prompt

Writes issued on the view scope are still committed and announced to live
queries when the view goes away mid-write (the stores shield them).
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import replace

from ..tasks.task_models import SortOrder, Task, TaskDraft
from .events import (
    EventChannel,
    NavigateToAddScreen,
    NavigateToBulkDeleteConfirmation,
    NavigateToEditScreen,
    ShowSaveConfirmation,
    ShowUndoDeleteMessage,
    ShowValidationMessage,
)
from .ports import PreferencesRepo, TaskRepo
from .scope import TaskScope

logger = logging.getLogger(__name__)

MSG_NAME_EMPTY = "Name cannot be empty!"
MSG_TASK_ADDED = "Task Added!"
MSG_TASK_UPDATED = "Task Updated!"


class TaskCommands:
    def __init__(
        self,
        task_repo: TaskRepo,
        preferences: PreferencesRepo,
        events: EventChannel,
        scope: TaskScope,
        app_scope: TaskScope,
    ) -> None:
        self._tasks = task_repo
        self._preferences = preferences
        self._events = events
        self._scope = scope
        self._app_scope = app_scope

    # ---- editing ----

    def save_task(self, draft: TaskDraft) -> asyncio.Task[None]:
        return self._app_scope.launch(self._save_task(draft), name="save-task")

    async def _save_task(self, draft: TaskDraft) -> None:
        if not draft.name or not draft.name.strip():
            await self._events.send(ShowValidationMessage(MSG_NAME_EMPTY))
            return

        if draft.task is not None:
            await self._tasks.update(replace(draft.task, name=draft.name, priority=draft.priority))
            logger.info("Task updated id=%s", draft.task.id)
            await self._events.send(ShowSaveConfirmation(MSG_TASK_UPDATED))
        else:
            task_id = await self._tasks.insert(
                Task(name=draft.name, priority=draft.priority, created_at=time.time())
            )
            logger.info("Task added id=%s", task_id)
            await self._events.send(ShowSaveConfirmation(MSG_TASK_ADDED))

    # ---- list actions ----

    def toggle_complete(self, task: Task, checked: bool) -> asyncio.Task[None]:
        return self._scope.launch(
            self._tasks.update(replace(task, completed=bool(checked))),
            name="toggle-complete",
        )

    def swipe_delete(self, task: Task) -> asyncio.Task[None]:
        return self._app_scope.launch(self._swipe_delete(task), name="swipe-delete")

    async def _swipe_delete(self, task: Task) -> None:
        await self._tasks.delete(task)
        await self._events.send(ShowUndoDeleteMessage(task))

    def undo_delete(self, task: Task) -> asyncio.Task[int]:
        # Same id and fields: the store upserts, so a repeated undo is harmless.
        return self._scope.launch(self._tasks.insert(task), name="undo-delete")

    def confirm_bulk_delete(self) -> asyncio.Task[int]:
        return self._app_scope.launch(self._tasks.delete_completed(), name="delete-completed")

    # ---- preferences ----

    def update_sort_order(self, sort_order: SortOrder) -> asyncio.Task[None]:
        return self._scope.launch(
            self._preferences.update_sort_order(sort_order), name="update-sort-order"
        )

    def update_hide_completed(self, hide_completed: bool) -> asyncio.Task[None]:
        return self._scope.launch(
            self._preferences.update_hide_completed(hide_completed), name="update-hide-completed"
        )

    # ---- navigation ----

    def select_task(self, task: Task) -> asyncio.Task[None]:
        return self._scope.launch(self._events.send(NavigateToEditScreen(task)), name="select-task")

    def request_add_task(self) -> asyncio.Task[None]:
        return self._scope.launch(self._events.send(NavigateToAddScreen()), name="request-add")

    def request_bulk_delete(self) -> asyncio.Task[None]:
        return self._scope.launch(
            self._events.send(NavigateToBulkDeleteConfirmation()), name="request-bulk-delete"
        )
