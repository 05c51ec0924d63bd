# tests/test_task_store.py

from __future__ import annotations

import asyncio
import sqlite3
import time
from dataclasses import replace
from pathlib import Path

import pytest

from dodue.tasks.task_models import SortOrder, Task, select_tasks
from dodue.tasks.task_store import SEED_TASKS, TaskStore

from .fakes import names, next_matching


def _add(store: TaskStore, name: str, *, completed: bool = False, priority: bool = False, at: float) -> int:
    return store._insert(Task(name=name, completed=completed, priority=priority, created_at=at))


def test_fresh_store_is_seeded_once(tmp_path: Path) -> None:
    db = tmp_path / "tasks.sqlite3"
    store = TaskStore(db)
    assert store.count_tasks() == len(SEED_TASKS)

    # Reopening an up-to-date file does not seed again.
    again = TaskStore(db)
    assert again.count_tasks() == len(SEED_TASKS)
    assert names(again.query_tasks()) == ["Buy Groceries", "Wash the dishes", "Do the Laundry", "Repair Bike", "Call Grandma"]


def test_incompatible_schema_is_rebuilt_empty(tmp_path: Path) -> None:
    db = tmp_path / "tasks.sqlite3"
    store = TaskStore(db, seed=False)
    _add(store, "old", at=1.0)

    conn = sqlite3.connect(str(db))
    conn.execute("PRAGMA user_version = 99")
    conn.commit()
    conn.close()

    rebuilt = TaskStore(db, seed=False)
    assert rebuilt.count_tasks() == 0


def test_sort_orders_put_priority_first(task_store: TaskStore) -> None:
    _add(task_store, "b", at=1.0)
    _add(task_store, "a", at=2.0)
    _add(task_store, "z", priority=True, at=3.0)
    _add(task_store, "c", priority=True, at=4.0)

    assert names(task_store.query_tasks(sort_order=SortOrder.BY_NAME)) == ["c", "z", "a", "b"]
    assert names(task_store.query_tasks(sort_order=SortOrder.BY_DATE)) == ["z", "c", "b", "a"]


def test_hide_completed_only_removes_completed(task_store: TaskStore) -> None:
    _add(task_store, "open", at=1.0)
    _add(task_store, "done", completed=True, at=2.0)

    assert names(task_store.query_tasks(hide_completed=False)) == ["open", "done"]
    assert names(task_store.query_tasks(hide_completed=True)) == ["open"]


def test_search_is_case_insensitive_substring(task_store: TaskStore) -> None:
    _add(task_store, "Buy milk", at=1.0)
    _add(task_store, "Fix bike", priority=True, at=2.0)

    assert names(task_store.query_tasks("bi")) == ["Fix bike"]
    assert names(task_store.query_tasks("BUY")) == ["Buy milk"]
    assert names(task_store.query_tasks("")) == ["Fix bike", "Buy milk"]


def test_search_wildcards_are_literal(task_store: TaskStore) -> None:
    _add(task_store, "100% done", at=1.0)
    _add(task_store, "100 things", at=2.0)
    _add(task_store, "snake_case", at=3.0)
    _add(task_store, "snakeXcase", at=4.0)

    assert names(task_store.query_tasks("0%")) == ["100% done"]
    assert names(task_store.query_tasks("e_c")) == ["snake_case"]


def test_sql_order_matches_in_memory_selection(task_store: TaskStore) -> None:
    rows = [
        ("Laundry", False, False, 5.0),
        ("apples", True, False, 1.0),
        ("Bike", False, True, 3.0),
        ("bread", True, True, 2.0),
        ("Zoo", False, False, 4.0),
    ]
    for name, completed, priority, at in rows:
        _add(task_store, name, completed=completed, priority=priority, at=at)

    everything = task_store.query_tasks()
    for order in SortOrder:
        for hide in (False, True):
            for text in ("", "b", "e"):
                assert task_store.query_tasks(text, order, hide) == select_tasks(everything, text, order, hide)


@pytest.mark.asyncio
async def test_update_changes_fields_and_keeps_identity(task_store: TaskStore) -> None:
    task_id = await task_store.insert(Task(name="Call mom", created_at=10.0))
    task = task_store.get_task(task_id)
    assert task is not None

    await task_store.update(Task(name=task.name, completed=True, priority=task.priority, created_at=task.created_at, id=task.id))

    updated = task_store.get_task(task_id)
    assert updated == Task(name="Call mom", completed=True, priority=False, created_at=10.0, id=task_id)


@pytest.mark.asyncio
async def test_delete_then_reinsert_restores_identical_task(task_store: TaskStore) -> None:
    task_id = await task_store.insert(Task(name="Repair bike", priority=True, created_at=42.0))
    before = task_store.query_tasks()
    task = task_store.get_task(task_id)
    assert task is not None

    await task_store.delete(task)
    assert task_store.get_task(task_id) is None

    assert await task_store.insert(task) == task_id
    # Undo twice: upsert, not a constraint failure.
    assert await task_store.insert(task) == task_id
    assert task_store.query_tasks() == before


@pytest.mark.asyncio
async def test_delete_of_absent_task_is_noop(task_store: TaskStore) -> None:
    await task_store.delete(Task(name="ghost", id=12345))
    assert task_store.count_tasks() == 0


@pytest.mark.asyncio
async def test_delete_completed_keeps_incomplete(task_store: TaskStore) -> None:
    await task_store.insert(Task(name="done 1", completed=True))
    await task_store.insert(Task(name="done 2", completed=True))
    await task_store.insert(Task(name="still open"))

    assert await task_store.delete_completed() == 2
    assert names(task_store.query_tasks()) == ["still open"]


@pytest.mark.asyncio
async def test_blank_name_is_rejected(task_store: TaskStore) -> None:
    with pytest.raises(ValueError):
        await task_store.insert(Task(name="   "))
    assert task_store.count_tasks() == 0


@pytest.mark.asyncio
async def test_live_query_emits_after_each_write(task_store: TaskStore) -> None:
    it = task_store.live_query("", SortOrder.BY_DATE, False)
    try:
        assert await asyncio.wait_for(anext(it), 2.0) == []

        await task_store.insert(Task(name="first", created_at=1.0))
        assert names(await asyncio.wait_for(anext(it), 2.0)) == ["first"]

        await task_store.insert(Task(name="second", created_at=2.0))
        assert names(await asyncio.wait_for(anext(it), 2.0)) == ["first", "second"]
    finally:
        await it.aclose()


def test_search_folds_non_ascii_case_like_in_memory_selection(task_store: TaskStore) -> None:
    _add(task_store, "Äpfel kaufen", at=1.0)
    _add(task_store, "Straße fegen", at=2.0)
    _add(task_store, "Milch", at=3.0)

    assert names(task_store.query_tasks("ä")) == ["Äpfel kaufen"]
    assert names(task_store.query_tasks("STRASSE")) == ["Straße fegen"]

    everything = task_store.query_tasks()
    for text in ("ä", "Ä", "strasse", "milch", "x"):
        assert task_store.query_tasks(text) == select_tasks(everything, text, SortOrder.BY_DATE, False)


@pytest.mark.asyncio
async def test_cancelled_writer_still_commits_and_notifies(
    task_store: TaskStore, monkeypatch: pytest.MonkeyPatch
) -> None:
    task = task_store.get_task(_add(task_store, "Call bank", at=1.0))
    assert task is not None
    commit = task_store._update

    def slow_update(t: Task) -> None:
        time.sleep(0.1)
        commit(t)

    monkeypatch.setattr(task_store, "_update", slow_update)

    it = task_store.live_query("", SortOrder.BY_DATE, False)
    try:
        assert names(await asyncio.wait_for(anext(it), 2.0)) == ["Call bank"]

        writer = asyncio.create_task(task_store.update(replace(task, completed=True)))
        await asyncio.sleep(0.02)
        writer.cancel()
        with pytest.raises(asyncio.CancelledError):
            await writer

        latest = await next_matching(it, lambda tasks: bool(tasks) and tasks[0].completed)
        assert latest == [replace(task, completed=True)]
    finally:
        await it.aclose()
