"""Periodic polling of account usage."""
from __future__ import annotations

import logging
from typing import Optional

from hookmap.domain.entities import UsageEntity
from hookmap.domain.errors import PersistenceError
from hookmap.scheduling import ScheduledTask, Scheduler

logger = logging.getLogger(__name__)


class UsageMonitor:
    """Keeps the latest ``{used, limit}`` pair fresh; one request in flight at a time."""

    def __init__(self, backend, scheduler: Scheduler, interval_ms: int = 30000,
                 default_limit: int = 100) -> None:
        self._backend = backend
        self._scheduler = scheduler
        self._interval_seconds = interval_ms / 1000.0
        self._default_limit = default_limit
        self.usage: UsageEntity = {"used": 0, "limit": default_limit}
        self.loading = False
        self.error: Optional[str] = None
        self._in_flight = False
        self._running = False
        self._task: Optional[ScheduledTask] = None

    @property
    def over_limit(self) -> bool:
        return self.usage["used"] >= self.usage["limit"]

    async def refresh(self) -> UsageEntity:
        if self._in_flight:
            return self.usage
        self._in_flight = True
        self.loading = True
        self.error = None
        try:
            fetched = await self._backend.get_usage()
            used = fetched.get("used")
            limit = fetched.get("limit")
            self.usage = {
                "used": used if used is not None else 0,
                "limit": limit if limit is not None else self._default_limit,
            }
        except (PersistenceError, AttributeError, TypeError) as e:
            # a malformed body counts as a failed refresh
            logger.info(f"Usage refresh failed: {e}")
            self.error = str(e)
        finally:
            self._in_flight = False
            self.loading = False
        return self.usage

    def start(self) -> None:
        """Refresh now, then every interval until ``stop``."""
        if self._running:
            return
        self._running = True
        self._task = self._scheduler.call_later(0, self._tick)

    def stop(self) -> None:
        self._running = False
        if self._task is not None:
            self._task.cancel()
            self._task = None

    async def _tick(self) -> None:
        try:
            await self.refresh()
        finally:
            if self._running:
                self._task = self._scheduler.call_later(self._interval_seconds, self._tick)
