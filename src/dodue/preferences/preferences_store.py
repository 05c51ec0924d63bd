# src/dodue/preferences/preferences_store.py

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
import os
from collections.abc import AsyncIterator
from pathlib import Path
from typing import Any

from ..core.live import Signal
from ..tasks.task_models import DEFAULT_PREFERENCES, FilterPreferences, SortOrder

logger = logging.getLogger(__name__)

KEY_SORT_ORDER = "sort_order"
KEY_HIDE_COMPLETED = "hide_completed"


class PreferencesStore:
    """
    Key-value preferences persisted as a small JSON file.

    - live_values() never terminates on read errors: it logs and falls back to
      the default snapshot, then keeps observing
    - writes are read-modify-write, serialized by an asyncio.Lock and
      committed atomically (tmp file + os.replace)
    """

    def __init__(self, path: str | Path = "user_preferences.json") -> None:
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._changes = Signal()
        self._write_lock = asyncio.Lock()
        logger.info("PreferencesStore ready path=%s", self._path)

    # ---- blocking helpers ----

    def _read_raw(self) -> dict[str, Any]:
        if not self._path.exists():
            return {}
        data = json.loads(self._path.read_text("utf-8"))
        return data if isinstance(data, dict) else {}

    def _write_key(self, key: str, value: Any) -> None:
        try:
            data = self._read_raw()
        except (OSError, ValueError):
            logger.warning("Preferences file unreadable; rewriting %s from scratch", self._path)
            data = {}
        data[key] = value

        tmp = self._path.with_suffix(".tmp")
        tmp.write_text(json.dumps(data, ensure_ascii=False, indent=2), "utf-8")
        os.replace(tmp, self._path)

    @staticmethod
    def _to_preferences(data: dict[str, Any]) -> FilterPreferences:
        raw_sort = data.get(KEY_SORT_ORDER)
        return FilterPreferences(
            sort_order=SortOrder.from_stored(raw_sort if isinstance(raw_sort, str) else None),
            hide_completed=bool(data.get(KEY_HIDE_COMPLETED, False)),
        )

    def read(self) -> FilterPreferences:
        """Current preferences; default snapshot on any read failure."""
        try:
            return self._to_preferences(self._read_raw())
        except (OSError, ValueError):
            logger.exception("Error reading preferences from %s; using defaults", self._path)
            return DEFAULT_PREFERENCES

    # ---- async API ----

    async def live_values(self) -> AsyncIterator[FilterPreferences]:
        """Current preferences, then every distinct change after a write."""
        last: FilterPreferences | None = None
        async for _ in self._changes.changes():
            prefs = await asyncio.to_thread(self.read)
            if prefs == last:
                continue
            last = prefs
            yield prefs

    async def update_sort_order(self, sort_order: SortOrder) -> None:
        await self._update(KEY_SORT_ORDER, SortOrder(sort_order).value)

    async def update_hide_completed(self, hide_completed: bool) -> None:
        await self._update(KEY_HIDE_COMPLETED, bool(hide_completed))

    async def _update(self, key: str, value: Any) -> None:
        # Shielded: a cancelled caller must not skip the notification of a write
        # that the worker thread still completes.
        write = asyncio.ensure_future(self._locked_write(key, value))
        write.add_done_callback(self._on_write_done)
        await asyncio.shield(write)
        logger.debug("Preference %s=%s", key, value)

    async def _locked_write(self, key: str, value: Any) -> None:
        async with self._write_lock:
            try:
                await asyncio.to_thread(self._write_key, key, value)
            finally:
                with contextlib.suppress(OSError):
                    self._path.with_suffix(".tmp").unlink(missing_ok=True)

    def _on_write_done(self, write: asyncio.Future[None]) -> None:
        self._changes.bump()
        if not write.cancelled() and write.exception() is not None:
            logger.warning("Preferences write to %s failed: %r", self._path, write.exception())
