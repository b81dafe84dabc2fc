from __future__ import annotations

import asyncio
import datetime
import logging
import typing as t

from courier.core.provider import TimestampProvider
from courier.model import SyncResult, SyncState
from courier.storage.offline import OfflineStore

from .errors import LocalStorageError

logger = logging.getLogger(__name__)


class SyncScheduler(object):
    """
    Registry of in-flight runs, one per key, plus the last-synced throttle.

    A run registered under a key is shared: later callers for the same key
    await the same task instead of starting another. The entry is dropped as
    soon as the run settles, whichever way it settles.
    """

    def __init__(
        self,
        store: OfflineStore,
        *,
        component: str,
        min_interval: datetime.timedelta,
        utcnow: TimestampProvider = lambda: datetime.datetime.now(datetime.UTC),
    ):
        self.store = store
        self.component = component
        self.min_interval = min_interval
        self.utcnow = utcnow
        self._ongoing: dict[str, asyncio.Task[SyncResult]] = {}
        self._states: dict[str, SyncState] = {}

    def state(self, key: str | int) -> SyncState:
        return self._states.get(str(key), SyncState.Idle)

    def set_state(self, key: str | int, state: SyncState) -> None:
        self._states[str(key)] = state

    def get_ongoing(self, key: str | int) -> t.Awaitable[SyncResult] | None:
        task = self._ongoing.get(str(key))
        if task is None or task.done():
            return None
        return asyncio.shield(task)

    def is_syncing(self, key: str | int) -> bool:
        task = self._ongoing.get(str(key))
        return task is not None and not task.done()

    def add_ongoing(self, key: str | int, run: t.Coroutine[t.Any, t.Any, SyncResult]) -> t.Awaitable[SyncResult]:
        key = str(key)
        task = asyncio.ensure_future(run)
        self._ongoing[key] = task
        self.set_state(key, SyncState.Running)

        def settle(done: asyncio.Task[SyncResult]) -> None:
            if self._ongoing.get(key) is done:
                del self._ongoing[key]
            failed = done.cancelled() or done.exception() is not None
            self.set_state(key, SyncState.Failed if failed else SyncState.Success)

        task.add_done_callback(settle)
        # a cancelled caller must not cancel the run other callers are sharing
        return asyncio.shield(task)

    async def wait_for_sync(self, key: str | int) -> SyncResult | None:
        """Wait for the in-flight run under `key`, if any; None when there is none or it failed."""
        ongoing = self.get_ongoing(key)
        if ongoing is None:
            return None
        try:
            return await ongoing
        except Exception:
            logger.debug(f"ongoing sync for {key} failed while being waited on", exc_info=True)
            return None

    async def get_sync_time(self, key: str | int) -> datetime.datetime | None:
        return await self.store.get_sync_time(self.component, key)

    async def set_sync_time(self, key: str | int) -> None:
        await self.store.set_sync_time(self.component, key, self.utcnow())

    async def is_sync_needed(self, key: str | int) -> bool:
        try:
            last = await self.get_sync_time(key)
        except LocalStorageError:
            logger.warning(f"could not read last sync time for {key}", exc_info=True)
            return True
        if last is None:
            return True
        return self.utcnow() - last >= self.min_interval
