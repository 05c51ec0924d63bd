# src/dodue/connectors/console_connector.py

from __future__ import annotations

import asyncio
import logging
from datetime import datetime

from ..cli.commands import ConsoleContext, registry as command_registry
from ..core.events import (
    NavigateToAddScreen,
    NavigateToBulkDeleteConfirmation,
    NavigateToEditScreen,
    ShowSaveConfirmation,
    ShowUndoDeleteMessage,
    ShowValidationMessage,
    TaskEvent,
)
from ..core.state import AppState, TaskListSession

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}", flush=True)


def render_event(ctx: ConsoleContext, event: TaskEvent) -> str:
    """Apply an event to the console view and return what to print."""
    if isinstance(event, ShowValidationMessage):
        return f"[!] {event.text}"
    if isinstance(event, ShowSaveConfirmation):
        return event.text
    if isinstance(event, ShowUndoDeleteMessage):
        ctx.last_deleted = event.task
        return f"Task deleted: {event.task.name}. Use /undo to restore it."
    if isinstance(event, NavigateToAddScreen):
        return "New task: type /add [!]name."
    if isinstance(event, NavigateToEditScreen):
        flag = "!" if event.task.priority else ""
        return f"Edit task {event.task.id}: /edit {event.task.id} {flag}{event.task.name}"
    if isinstance(event, NavigateToBulkDeleteConfirmation):
        ctx.confirm_bulk_delete = True
        return "Delete all completed tasks? Type /yes to confirm."
    return f"(unhandled event {type(event).__name__})"


async def _watch_tasks(ctx: ConsoleContext) -> None:
    async for tasks in ctx.session.engine.observe_tasks():
        ctx.tasks = tasks


async def _watch_events(ctx: ConsoleContext) -> None:
    async for event in ctx.state.events.consume():
        _print_ts(render_event(ctx, event))


async def run_console_loop(state: AppState, session: TaskListSession) -> None:
    logger.info("Console connector started.")
    _print_ts("[CONSOLE] Use /help for commands. Use /exit to quit.\n")

    ctx = ConsoleContext(state=state, session=session)
    watchers = [
        session.scope.launch(_watch_tasks(ctx), name="console-tasks"),
        session.scope.launch(_watch_events(ctx), name="console-events"),
    ]

    try:
        while True:
            try:
                user_input = (await asyncio.to_thread(input, ">>> ")).strip()
            except EOFError:
                logger.info("Console EOF received, exiting.")
                break
            except KeyboardInterrupt:
                logger.info("Console KeyboardInterrupt, exiting.")
                print()
                break

            if not user_input:
                continue

            if user_input.lower() in ("/exit", "/quit"):
                logger.info("Console exit command received.")
                break

            try:
                reply = await command_registry.handle(ctx, user_input)
            except Exception:
                logger.exception("Command handler crashed.")
                reply = "Internal error while handling a command."

            if reply is not None:
                _print_ts(reply)
    finally:
        for w in watchers:
            w.cancel()
        await asyncio.gather(*watchers, return_exceptions=True)

    logger.info("Console connector finished.")
