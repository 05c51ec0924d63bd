# src/dodue/cli/commands.py

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from ..core.saved_state import EditorState
from ..core.state import AppState, TaskListSession
from ..tasks.task_models import SortOrder, Task

logger = logging.getLogger(__name__)


@dataclass
class ConsoleContext:
    """What the console view knows besides the core: last list snapshot and pending prompts."""

    state: AppState
    session: TaskListSession
    tasks: list[Task] = field(default_factory=list)
    last_deleted: Task | None = None
    confirm_bulk_delete: bool = False


CommandHandler = Callable[[ConsoleContext, list[str]], Awaitable[str | None]]


class CommandRegistry:
    """Simple slash-command registry used by the console connector (/help, /add, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    async def handle(self, ctx: ConsoleContext, line: str) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string, or None if there is nothing to print.
        """
        if not line.startswith("/"):
            return "Commands start with '/'. Use /help to list available commands."

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        return await handler(ctx, args)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


def format_task(task: Task) -> str:
    mark = "x" if task.completed else " "
    flag = "!" if task.priority else " "
    return f"{task.id:>4}. [{mark}] {flag} {task.name}  ({task.created_display})"


def _parse_name(args: list[str]) -> tuple[str, bool]:
    """'!Buy milk' -> ('Buy milk', True)."""
    text = " ".join(args)
    if text.startswith("!"):
        return text[1:].strip(), True
    return text, False


def _find_task(ctx: ConsoleContext, raw_id: str | None) -> Task | None:
    if raw_id is None:
        return None
    try:
        task_id = int(raw_id)
    except ValueError:
        return None
    for t in ctx.tasks:
        if t.id == task_id:
            return t
    return None


async def cmd_help(ctx: ConsoleContext, args: list[str]) -> str | None:
    return registry.build_help()


async def cmd_list(ctx: ConsoleContext, args: list[str]) -> str | None:
    query = ctx.session.filter_state.query
    header = f"Tasks (search: {query!r}):" if query else "Tasks:"
    if not ctx.tasks:
        return f"{header}\n  (nothing to show)"
    return "\n".join([header, *(format_task(t) for t in ctx.tasks)])


async def cmd_add(ctx: ConsoleContext, args: list[str]) -> str | None:
    """/add [!]name  ('!' marks the task as priority)"""
    editor = EditorState()
    editor.name, editor.priority = _parse_name(args)
    await ctx.session.commands.save_task(editor.to_draft())
    return None


async def cmd_edit(ctx: ConsoleContext, args: list[str]) -> str | None:
    """/edit <id> [!]name"""
    task = _find_task(ctx, args[0] if args else None)
    if task is None:
        return "Usage: /edit <id> [!]new name (id of a visible task)."
    editor = EditorState(task)
    editor.name, editor.priority = _parse_name(args[1:])
    await ctx.session.commands.save_task(editor.to_draft())
    return None


async def cmd_open(ctx: ConsoleContext, args: list[str]) -> str | None:
    task = _find_task(ctx, args[0] if args else None)
    if task is None:
        return "Usage: /open <id>."
    await ctx.session.commands.select_task(task)
    return None


async def cmd_new(ctx: ConsoleContext, args: list[str]) -> str | None:
    await ctx.session.commands.request_add_task()
    return None


def _toggle(checked: bool) -> CommandHandler:
    async def handler(ctx: ConsoleContext, args: list[str]) -> str | None:
        task = _find_task(ctx, args[0] if args else None)
        if task is None:
            return "Usage: /done <id> or /undone <id>."
        await ctx.session.commands.toggle_complete(task, checked)
        return None

    return handler


async def cmd_del(ctx: ConsoleContext, args: list[str]) -> str | None:
    task = _find_task(ctx, args[0] if args else None)
    if task is None:
        return "Usage: /del <id>."
    await ctx.session.commands.swipe_delete(task)
    return None


async def cmd_undo(ctx: ConsoleContext, args: list[str]) -> str | None:
    task = ctx.last_deleted
    if task is None:
        return "Nothing to undo."
    ctx.last_deleted = None
    await ctx.session.commands.undo_delete(task)
    return f"Restored: {task.name}"


async def cmd_search(ctx: ConsoleContext, args: list[str]) -> str | None:
    text = " ".join(args)
    ctx.session.filter_state.set_query(text)
    return f"Search: {text!r}" if text else "Search cleared."


async def cmd_sort(ctx: ConsoleContext, args: list[str]) -> str | None:
    arg = args[0].lower() if args else ""
    if arg == "name":
        order = SortOrder.BY_NAME
    elif arg in ("date", "created"):
        order = SortOrder.BY_DATE
    else:
        return "Usage: /sort name | /sort date."
    await ctx.session.commands.update_sort_order(order)
    return f"Sorting {order.value}."


async def cmd_hide(ctx: ConsoleContext, args: list[str]) -> str | None:
    arg = args[0].lower() if args else ""
    if arg in ("on", "1", "true", "yes"):
        flag = True
    elif arg in ("off", "0", "false", "no"):
        flag = False
    else:
        return "Usage: /hide on | /hide off."
    await ctx.session.commands.update_hide_completed(flag)
    return "Completed tasks hidden." if flag else "Completed tasks shown."


async def cmd_clear(ctx: ConsoleContext, args: list[str]) -> str | None:
    await ctx.session.commands.request_bulk_delete()
    return None


async def cmd_yes(ctx: ConsoleContext, args: list[str]) -> str | None:
    if not ctx.confirm_bulk_delete:
        return "Nothing to confirm."
    ctx.confirm_bulk_delete = False
    n = await ctx.session.commands.confirm_bulk_delete()
    return f"Deleted {n} completed task(s)."


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("list", cmd_list, help_text="Show the current task list.", aliases=["ls"])
registry.register("add", cmd_add, help_text="Add a task: /add [!]name ('!' = priority).")
registry.register("new", cmd_new, help_text="Open the add-task prompt.")
registry.register("open", cmd_open, help_text="Open a task for editing: /open <id>.")
registry.register("edit", cmd_edit, help_text="Rename a task: /edit <id> [!]name.")
registry.register("done", _toggle(True), help_text="Mark a task completed: /done <id>.")
registry.register("undone", _toggle(False), help_text="Mark a task not completed: /undone <id>.")
registry.register("del", cmd_del, help_text="Delete a task: /del <id>.", aliases=["rm"])
registry.register("undo", cmd_undo, help_text="Restore the last deleted task.")
registry.register("search", cmd_search, help_text="Filter by name: /search [text].")
registry.register("sort", cmd_sort, help_text="Sort order: /sort name | /sort date.")
registry.register("hide", cmd_hide, help_text="Hide completed tasks: /hide on | /hide off.")
registry.register("clear", cmd_clear, help_text="Delete all completed tasks (asks first).")
registry.register("yes", cmd_yes, help_text="Confirm the pending prompt.")
