# src/dodue/core/scope.py

from __future__ import annotations

import asyncio
import logging
from collections.abc import Coroutine
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class TaskScope:
    """
    Supervisor for fire-and-forget asyncio tasks.

    - launch() never blocks the caller and returns the asyncio.Task, so the
      caller may await the outcome (failures propagate through it)
    - one failing task does not affect its siblings; failures are logged
    - cancel() tears the scope down (a destroyed view);
      close() waits for pending work first (application shutdown)
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._tasks: set[asyncio.Task[Any]] = set()
        self._closed = False

    @property
    def active(self) -> int:
        return len(self._tasks)

    def launch(self, coro: Coroutine[Any, Any, T], *, name: str | None = None) -> asyncio.Task[T]:
        if self._closed:
            coro.close()
            raise RuntimeError(f"scope {self.name!r} is closed")
        task = asyncio.get_running_loop().create_task(coro, name=name)
        # Keep a strong reference until done.
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(
                "Task %s failed in scope %s",
                task.get_name(),
                self.name,
                exc_info=(type(exc), exc, exc.__traceback__),
            )

    def cancel(self) -> None:
        self._closed = True
        for task in list(self._tasks):
            task.cancel()
        logger.debug("Scope %s cancelled", self.name)

    async def close(self, timeout: float | None = None) -> None:
        """Stop accepting work, wait for running tasks, cancel whatever outlives timeout."""
        self._closed = True
        pending = list(self._tasks)
        if not pending:
            return
        done, still_running = await asyncio.wait(pending, timeout=timeout)
        for task in still_running:
            task.cancel()
        if still_running:
            await asyncio.gather(*still_running, return_exceptions=True)
            logger.warning("Scope %s cancelled %d task(s) on close", self.name, len(still_running))
        logger.debug("Scope %s closed (%d finished)", self.name, len(done))
