# src/dodue/core/live.py

"""
Small asyncio primitives for "live" data.

- Signal: a version counter that wakes every waiter when bumped.
- LiveValue: a conflated observable value built on Signal.

Both are single-loop, single-owner objects: bump()/set() are plain synchronous
calls made from the event loop thread, so no locking is involved. Observers
that fall behind only ever see the newest value, never a backlog.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from typing import Generic, TypeVar

T = TypeVar("T")


class Signal:
    def __init__(self) -> None:
        self._version = 0
        self._changed = asyncio.Event()

    @property
    def version(self) -> int:
        return self._version

    def bump(self) -> None:
        self._version += 1
        # Swap before setting: waiters hold the old event, new waiters get a fresh one.
        changed, self._changed = self._changed, asyncio.Event()
        changed.set()

    async def wait_changed(self, since: int) -> int:
        """Suspend until version != since; return the new version."""
        while self._version == since:
            await self._changed.wait()
        return self._version

    async def changes(self) -> AsyncIterator[int]:
        """Yield the current version immediately, then once per (conflated) change."""
        seen = self._version
        yield seen
        while True:
            seen = await self.wait_changed(seen)
            yield seen


class LiveValue(Generic[T]):
    def __init__(self, initial: T) -> None:
        self._value = initial
        self._signal = Signal()

    @property
    def value(self) -> T:
        return self._value

    def set(self, value: T) -> None:
        if value == self._value:
            return
        self._value = value
        self._signal.bump()

    async def observe(self) -> AsyncIterator[T]:
        async for _ in self._signal.changes():
            yield self._value
