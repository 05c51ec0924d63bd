# src/dodue/core/task_list.py

"""
Live task list.

TaskListEngine combines two live inputs:
- the search text (FilterState)
- the filter preferences (PreferencesRepo)
into one live, ordered list of tasks.

Every new (search_text, preferences) pair issues a new live query on the
TaskRepo. Only the most recently issued query may reach the subscriber
(switch-latest): the previous query task is cancelled and a per-subscription
generation counter is bumped, so anything the old query already queued is
dropped when it is read.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from ..tasks.task_models import FilterPreferences, Task
from .ports import PreferencesRepo, TaskRepo
from .saved_state import FilterState

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Generation tag for failures that end the stream whatever query is current.
_TERMINAL = -1


@dataclass(slots=True, frozen=True)
class QueryInputs:
    search_text: str
    preferences: FilterPreferences


@dataclass(slots=True, frozen=True)
class _Result:
    generation: int
    tasks: list[Task] | None = None
    error: BaseException | None = None


class _Pipeline:
    """State of one observe_tasks() subscription. Lives on a single event loop."""

    def __init__(self, task_repo: TaskRepo, out: asyncio.Queue[_Result]) -> None:
        self._repo = task_repo
        self._out = out
        self.generation = 0
        self._query: asyncio.Task[None] | None = None
        self._search_text: str | None = None
        self._preferences: FilterPreferences | None = None

    def on_search_text(self, text: str) -> None:
        self._search_text = text
        self._maybe_issue()

    def on_preferences(self, preferences: FilterPreferences) -> None:
        self._preferences = preferences
        self._maybe_issue()

    def _maybe_issue(self) -> None:
        # Combine only once both inputs have produced a value.
        if self._search_text is None or self._preferences is None:
            return
        self.issue(QueryInputs(self._search_text, self._preferences))

    def issue(self, inputs: QueryInputs) -> None:
        if self._query is not None:
            self._query.cancel()
        self.generation += 1
        logger.debug(
            "Task query gen=%d search=%r sort=%s hide_completed=%s",
            self.generation,
            inputs.search_text,
            inputs.preferences.sort_order.value,
            inputs.preferences.hide_completed,
        )
        self._query = asyncio.create_task(
            self._run_query(self.generation, inputs),
            name=f"task-query-{self.generation}",
        )

    async def _run_query(self, generation: int, inputs: QueryInputs) -> None:
        prefs = inputs.preferences
        try:
            async for tasks in self._repo.live_query(
                inputs.search_text, prefs.sort_order, prefs.hide_completed
            ):
                self._out.put_nowait(_Result(generation, tasks=tasks))
        except Exception as exc:
            self._out.put_nowait(_Result(generation, error=exc))

    def pending_tasks(self) -> list[asyncio.Task[None]]:
        return [self._query] if self._query is not None else []

    def cancel(self) -> None:
        if self._query is not None:
            self._query.cancel()


async def _pump(
    source: AsyncIterator[T],
    handler: Callable[[T], None],
    out: asyncio.Queue[_Result],
    label: str,
) -> None:
    try:
        async for value in source:
            handler(value)
        # Inputs are infinite; an ended source is a broken contract.
        raise RuntimeError(f"{label} stream ended")
    except Exception as exc:
        out.put_nowait(_Result(_TERMINAL, error=exc))


class TaskListEngine:
    def __init__(
        self,
        task_repo: TaskRepo,
        preferences: PreferencesRepo,
        filter_state: FilterState,
    ) -> None:
        self._tasks = task_repo
        self._preferences = preferences
        self._filter = filter_state

    async def observe_tasks(self) -> AsyncIterator[list[Task]]:
        """
        Live ordered task list for the current search text and preferences.

        Infinite. Every call starts from the current inputs. A Task Store
        failure of the current query ends the iteration with that exception;
        failures of abandoned queries are ignored.
        """
        out: asyncio.Queue[_Result] = asyncio.Queue()
        pipeline = _Pipeline(self._tasks, out)
        pumps: list[asyncio.Task[Any]] = [
            asyncio.create_task(
                _pump(self._filter.observe_query(), pipeline.on_search_text, out, "search text"),
                name="task-list-search",
            ),
            asyncio.create_task(
                _pump(self._preferences.live_values(), pipeline.on_preferences, out, "preferences"),
                name="task-list-preferences",
            ),
        ]

        try:
            while True:
                result = await out.get()
                if result.generation not in (_TERMINAL, pipeline.generation):
                    logger.debug(
                        "Dropping result of abandoned query gen=%d (current=%d)",
                        result.generation,
                        pipeline.generation,
                    )
                    continue
                if result.error is not None:
                    logger.error("Task list pipeline failed: %r", result.error)
                    raise result.error
                yield list(result.tasks or [])
        finally:
            pipeline.cancel()
            for pump in pumps:
                pump.cancel()
            await asyncio.gather(*pumps, *pipeline.pending_tasks(), return_exceptions=True)
