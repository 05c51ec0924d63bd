# src/dodue/tasks/task_store.py

from __future__ import annotations

import asyncio
import contextlib
import logging
import sqlite3
import time
from collections.abc import AsyncIterator, Callable
from pathlib import Path
from typing import Any, TypeVar

from ..core.live import Signal
from .task_models import SortOrder, Task

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Bump when the table layout changes incompatibly; older files are rebuilt empty.
SCHEMA_VERSION = 1

SEED_TASKS: tuple[Task, ...] = (
    Task(name="Wash the dishes"),
    Task(name="Do the Laundry", completed=True),
    Task(name="Buy Groceries", priority=True),
    Task(name="Repair Bike"),
    Task(name="Call Grandma", completed=True),
)

_ORDER_BY = {
    SortOrder.BY_NAME: "priority DESC, name ASC, id ASC",
    SortOrder.BY_DATE: "priority DESC, created_at ASC, id ASC",
}


def _casefold(text: str | None) -> str | None:
    # SQLite LIKE folds ASCII only; match with Python case folding instead.
    return None if text is None else text.casefold()


class TaskStore:
    """
    SQLite task store with live queries.

    Schema policy:
    - the layout version lives in PRAGMA user_version
    - on a version mismatch the table is dropped and recreated empty
    - a freshly created table is seeded with a few sample tasks (seed=True)

    Threading:
    - each blocking method opens its own SQLite connection, so the async API
      can run them through asyncio.to_thread
    - change notification (Signal) is bumped on the event loop once each write
      finishes, even when the awaiting caller was cancelled meanwhile
    """

    def __init__(self, db_path: str | Path = "tasks.sqlite3", *, seed: bool = True) -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._changes = Signal()
        self._ensure_schema(seed=seed)
        try:
            total = self.count_tasks()
        except sqlite3.Error:
            total = -1
        logger.info("TaskStore ready db=%s total=%s", self._db_path, total)

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        self._configure_conn(conn)
        return conn

    @staticmethod
    def _configure_conn(conn: sqlite3.Connection) -> None:
        with contextlib.suppress(sqlite3.Error):
            conn.execute("PRAGMA journal_mode=WAL")
        conn.create_function("casefold", 1, _casefold, deterministic=True)

    def _ensure_schema(self, *, seed: bool) -> None:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute("PRAGMA user_version")
            (version,) = cur.fetchone()
            if int(version) == SCHEMA_VERSION:
                return

            if int(version) != 0:
                logger.warning(
                    "TaskStore schema version %s != %s; rebuilding empty table",
                    version,
                    SCHEMA_VERSION,
                )
            cur.execute("DROP TABLE IF EXISTS tasks")
            cur.execute(
                """
                CREATE TABLE tasks (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL,
                    completed INTEGER NOT NULL DEFAULT 0,
                    priority INTEGER NOT NULL DEFAULT 0,
                    created_at REAL NOT NULL
                )
                """
            )
            cur.execute(f"PRAGMA user_version = {SCHEMA_VERSION}")

            if seed:
                now = time.time()
                # Distinct timestamps keep the by-date order of the samples stable.
                for i, task in enumerate(SEED_TASKS):
                    cur.execute(
                        "INSERT INTO tasks(name, completed, priority, created_at) VALUES (?, ?, ?, ?)",
                        (task.name, int(task.completed), int(task.priority), now + i * 0.001),
                    )
                logger.info("TaskStore seeded %d sample tasks", len(SEED_TASKS))

            conn.commit()
        finally:
            conn.close()

    @staticmethod
    def _row_to_task(row: sqlite3.Row) -> Task:
        return Task(
            id=int(row["id"]),
            name=str(row["name"] or ""),
            completed=bool(row["completed"]),
            priority=bool(row["priority"]),
            created_at=float(row["created_at"] or 0.0),
        )

    @staticmethod
    def _check_name(task: Task) -> None:
        if not task.name or not task.name.strip():
            raise ValueError("task name is required")

    # ---- blocking API (one connection per call) ----

    def count_tasks(self) -> int:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute("SELECT COUNT(*) FROM tasks")
            (n,) = cur.fetchone()
            return int(n)
        finally:
            conn.close()

    def get_task(self, task_id: int) -> Task | None:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute("SELECT * FROM tasks WHERE id = ?", (int(task_id),))
            row = cur.fetchone()
            return self._row_to_task(row) if row else None
        finally:
            conn.close()

    def query_tasks(
        self,
        search_text: str = "",
        sort_order: SortOrder = SortOrder.BY_DATE,
        hide_completed: bool = False,
    ) -> list[Task]:
        """
        Filtered, ordered snapshot of the table.

        - search_text: case-insensitive substring of name ("" matches all)
        - hide_completed: True keeps only incomplete tasks, False keeps all
        - ordering: priority first, then name or creation time
        """
        order_by = _ORDER_BY[SortOrder(sort_order)]
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute(
                f"""
                SELECT *
                FROM tasks
                WHERE (:hide = 0 OR completed = 0)
                  AND (:needle = '' OR instr(casefold(name), :needle) > 0)
                ORDER BY {order_by}
                """,
                {"hide": int(bool(hide_completed)), "needle": (search_text or "").casefold()},
            )
            return [self._row_to_task(r) for r in cur.fetchall()]
        finally:
            conn.close()

    def _insert(self, task: Task) -> int:
        self._check_name(task)
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            if task.id:
                # Upsert keeps the identity (undo of a delete).
                cur.execute(
                    """
                    INSERT OR REPLACE INTO tasks(id, name, completed, priority, created_at)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (int(task.id), task.name, int(task.completed), int(task.priority), float(task.created_at)),
                )
            else:
                cur.execute(
                    "INSERT INTO tasks(name, completed, priority, created_at) VALUES (?, ?, ?, ?)",
                    (task.name, int(task.completed), int(task.priority), float(task.created_at)),
                )
            conn.commit()
            rowid = task.id or cur.lastrowid
            if not rowid:
                raise RuntimeError("SQLite did not return lastrowid for tasks insert")
            logger.debug("Task inserted id=%s priority=%s", rowid, task.priority)
            return int(rowid)
        finally:
            conn.close()

    def _update(self, task: Task) -> None:
        self._check_name(task)
        conn = self._get_conn()
        try:
            conn.execute(
                "UPDATE tasks SET name = ?, completed = ?, priority = ?, created_at = ? WHERE id = ?",
                (task.name, int(task.completed), int(task.priority), float(task.created_at), int(task.id)),
            )
            conn.commit()
        finally:
            conn.close()

    def _delete(self, task_id: int) -> None:
        conn = self._get_conn()
        try:
            conn.execute("DELETE FROM tasks WHERE id = ?", (int(task_id),))
            conn.commit()
        finally:
            conn.close()

    def _delete_completed(self) -> int:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute("DELETE FROM tasks WHERE completed = 1")
            conn.commit()
            return int(cur.rowcount)
        finally:
            conn.close()

    # ---- async API (used by the core) ----

    async def _write(self, fn: Callable[..., T], *args: Any) -> T:
        """
        Run a blocking write in a worker thread and notify live queries once it lands.

        The thread cannot be stopped once started, so the write is shielded:
        cancelling the caller still leaves the commit and the notification in place.
        """
        fut = asyncio.ensure_future(asyncio.to_thread(fn, *args))
        fut.add_done_callback(self._on_write_done)
        return await asyncio.shield(fut)

    def _on_write_done(self, fut: asyncio.Future[Any]) -> None:
        self._changes.bump()
        if not fut.cancelled() and fut.exception() is not None:
            logger.debug("Task store write failed: %r", fut.exception())

    async def insert(self, task: Task) -> int:
        return await self._write(self._insert, task)

    async def update(self, task: Task) -> None:
        await self._write(self._update, task)
        logger.debug("Task updated id=%s completed=%s", task.id, task.completed)

    async def delete(self, task: Task) -> None:
        # Deleting an absent id is a no-op.
        await self._write(self._delete, task.id)
        logger.debug("Task deleted id=%s", task.id)

    async def delete_completed(self) -> int:
        n = await self._write(self._delete_completed)
        logger.info("Deleted %d completed tasks", n)
        return n

    async def live_query(
        self,
        search_text: str,
        sort_order: SortOrder,
        hide_completed: bool,
    ) -> AsyncIterator[list[Task]]:
        """Initial snapshot, then a fresh snapshot after every write (conflated)."""
        async for _ in self._changes.changes():
            yield await asyncio.to_thread(self.query_tasks, search_text, sort_order, hide_completed)
