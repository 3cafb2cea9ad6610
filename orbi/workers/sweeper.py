"""Retention sweeper: deletes message bodies older than the retention window."""

from __future__ import annotations

import asyncio
from datetime import timedelta
from enum import Enum
from typing import Optional

from orbi.config import Settings, get_settings
from orbi.infra.logging_config import get_logger
from orbi.services.message_store import MessageStore

logger = get_logger("sweeper")


class SweeperState(str, Enum):
    IDLE = "idle"
    SWEEPING = "sweeping"


class RetentionSweeper:
    """Runs purge_bodies_older_than on a fixed interval. One sweep at a time."""

    def __init__(
        self,
        store: MessageStore,
        retention: timedelta,
        interval: timedelta,
    ) -> None:
        self._store = store
        self._retention = retention
        self._interval = interval
        self._lock = asyncio.Lock()
        self._task: Optional[asyncio.Task] = None
        self.state = SweeperState.IDLE

    @classmethod
    def from_settings(
        cls, store: MessageStore, settings: Optional[Settings] = None
    ) -> "RetentionSweeper":
        settings = settings or get_settings()
        return cls(store, settings.message_retention, settings.cleanup_interval)

    async def sweep_once(self) -> Optional[int]:
        """Run one sweep. Returns the purged count, or None when the sweep failed."""
        async with self._lock:
            self.state = SweeperState.SWEEPING
            try:
                deleted = await asyncio.to_thread(
                    self._store.purge_bodies_older_than, self._retention
                )
            except Exception as e:
                logger.error("Retention sweep failed: %s", e)
                return None
            finally:
                self.state = SweeperState.IDLE
        if deleted:
            logger.info("Retention sweep removed %d old message bodies", deleted)
        return deleted

    async def run(self) -> None:
        interval = self._interval.total_seconds()
        while True:
            await asyncio.sleep(interval)
            await self.sweep_once()

    def start(self) -> None:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.run())

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()
