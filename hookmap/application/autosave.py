"""Debounced autosave timer."""
from __future__ import annotations

from typing import Any, Awaitable, Callable, Optional

from hookmap.scheduling import ScheduledTask, Scheduler


class AutosaveDebouncer:
    """Single-slot debounce: scheduling again supersedes the pending timer."""

    def __init__(self, scheduler: Scheduler, delay_ms: int,
                 action: Callable[[], Awaitable[Any]]) -> None:
        self._scheduler = scheduler
        self._delay_seconds = delay_ms / 1000.0
        self._action = action
        self._task: Optional[ScheduledTask] = None

    @property
    def pending(self) -> bool:
        return self._task is not None and self._task.pending

    def schedule(self) -> None:
        self.cancel()
        self._task = self._scheduler.call_later(self._delay_seconds, self._fire)

    def cancel(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None

    async def _fire(self) -> None:
        self._task = None
        await self._action()
