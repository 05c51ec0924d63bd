# src/dodue/core/events.py

"""
One-shot UI events and the channel that delivers them.

Events are directives for the presentation layer ("show this message",
"navigate there"). They must be acted on exactly once: a view that is torn
down and rebuilt must not see an event it already handled, and events sent
while no view is listening must wait for the next one.

EventChannel is therefore a FIFO queue, not a broadcast of the latest value:
- many producers call send()
- one consumer at a time iterates consume(); attaching a new consumer
  detaches the previous one without it taking another event
- every event is removed from the queue at the moment it is yielded
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import AsyncIterator
from dataclasses import dataclass

from ..tasks.task_models import Task
from .live import Signal

logger = logging.getLogger(__name__)


class TaskEvent:
    """Base class of all UI-directed events."""

    __slots__ = ()


@dataclass(slots=True, frozen=True)
class ShowValidationMessage(TaskEvent):
    text: str


@dataclass(slots=True, frozen=True)
class ShowUndoDeleteMessage(TaskEvent):
    task: Task


@dataclass(slots=True, frozen=True)
class NavigateToAddScreen(TaskEvent):
    pass


@dataclass(slots=True, frozen=True)
class NavigateToEditScreen(TaskEvent):
    task: Task


@dataclass(slots=True, frozen=True)
class NavigateToBulkDeleteConfirmation(TaskEvent):
    pass


@dataclass(slots=True, frozen=True)
class ShowSaveConfirmation(TaskEvent):
    text: str


class ChannelFull(Exception):
    """send_nowait() on a bounded channel that has no free slot."""


class EventChannel:
    def __init__(self, maxsize: int = 0) -> None:
        self._maxsize = max(0, int(maxsize))
        self._pending: deque[TaskEvent] = deque()
        # Bumped on send, on take and on consumer attach.
        self._signal = Signal()
        self._consumer_token = 0

    @property
    def pending(self) -> int:
        return len(self._pending)

    def _full(self) -> bool:
        return self._maxsize > 0 and len(self._pending) >= self._maxsize

    def send_nowait(self, event: TaskEvent) -> None:
        if self._full():
            raise ChannelFull(f"event channel full (maxsize={self._maxsize})")
        self._pending.append(event)
        self._signal.bump()
        logger.debug("Event queued %s pending=%d", type(event).__name__, len(self._pending))

    async def send(self, event: TaskEvent) -> None:
        """Enqueue; suspends only while a bounded channel is full."""
        while self._full():
            await self._signal.wait_changed(self._signal.version)
        self.send_nowait(event)

    async def _take(self, token: int) -> TaskEvent | None:
        """Next event for the consumer holding token, or None once it was replaced."""
        while True:
            if token != self._consumer_token:
                return None
            if self._pending:
                event = self._pending.popleft()
                self._signal.bump()
                return event
            await self._signal.wait_changed(self._signal.version)

    def consume(self) -> AsyncIterator[TaskEvent]:
        """
        Attach as the single consumer and return an iterator of events in send order.

        Attaching happens on this call, not on the first iteration step. The
        iterator suspends while the queue is empty and ends (without taking an
        event) as soon as another consumer attaches.
        """
        self._consumer_token += 1
        token = self._consumer_token
        # Wake a previous consumer so it notices it was replaced.
        self._signal.bump()
        logger.debug("Event consumer attached token=%d pending=%d", token, len(self._pending))
        return self._iterate(token)

    async def _iterate(self, token: int) -> AsyncIterator[TaskEvent]:
        while True:
            event = await self._take(token)
            if event is None:
                logger.debug("Event consumer detached token=%d", token)
                return
            yield event
