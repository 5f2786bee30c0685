"""Cancellable one-shot scheduled tasks.

``AsyncioScheduler`` runs callbacks on the event loop; ``ManualScheduler``
keeps a virtual clock that only moves when ``advance`` is awaited, which makes
debounce and polling timing testable without real delays.
"""
from __future__ import annotations

import asyncio
import inspect
import logging
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, List, Optional, Union

logger = logging.getLogger(__name__)

Callback = Callable[[], Union[Awaitable[Any], Any]]


class ScheduledTask(ABC):
    """Handle returned by a scheduler; fires at most once."""

    def __init__(self) -> None:
        self.cancelled = False
        self.fired = False

    @property
    def pending(self) -> bool:
        return not self.cancelled and not self.fired

    @abstractmethod
    def cancel(self) -> None:
        """Prevent the callback from firing if it has not fired yet."""
        pass


class Scheduler(ABC):
    @abstractmethod
    def call_later(self, delay_seconds: float, callback: Callback) -> ScheduledTask:
        """Run ``callback`` once after ``delay_seconds``; coroutines are awaited."""
        pass


def _log_task_failure(task: "asyncio.Future[Any]") -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error(f"Scheduled callback failed: {exc!r}")


class AsyncioTask(ScheduledTask):
    def __init__(self, loop: asyncio.AbstractEventLoop, delay_seconds: float, callback: Callback) -> None:
        super().__init__()
        self._callback = callback
        self._future: Optional[asyncio.Future] = None
        self._handle = loop.call_later(delay_seconds, self._run)

    def _run(self) -> None:
        if self.cancelled:
            return
        self.fired = True
        result = self._callback()
        if inspect.isawaitable(result):
            self._future = asyncio.ensure_future(result)
            self._future.add_done_callback(_log_task_failure)

    def cancel(self) -> None:
        # a callback that already started keeps running; only the timer is dropped
        if self.fired:
            return
        self.cancelled = True
        self._handle.cancel()


class AsyncioScheduler(Scheduler):
    """Schedules on the running event loop (must be called from async context)."""

    def call_later(self, delay_seconds: float, callback: Callback) -> ScheduledTask:
        loop = asyncio.get_running_loop()
        return AsyncioTask(loop, delay_seconds, callback)


class ManualTask(ScheduledTask):
    def __init__(self, due: float, seq: int, callback: Callback) -> None:
        super().__init__()
        self.due = due
        self.seq = seq
        self.callback = callback

    def cancel(self) -> None:
        if not self.fired:
            self.cancelled = True


class ManualScheduler(Scheduler):
    """Virtual-clock scheduler driven explicitly by ``advance``."""

    def __init__(self) -> None:
        self.now = 0.0
        self._seq = 0
        self._tasks: List[ManualTask] = []

    def call_later(self, delay_seconds: float, callback: Callback) -> ScheduledTask:
        self._seq += 1
        task = ManualTask(self.now + max(delay_seconds, 0.0), self._seq, callback)
        self._tasks.append(task)
        return task

    @property
    def pending(self) -> List[ManualTask]:
        return [t for t in self._tasks if t.pending]

    def _next_due(self, until: float) -> Optional[ManualTask]:
        due = [t for t in self.pending if t.due <= until]
        if not due:
            return None
        return min(due, key=lambda t: (t.due, t.seq))

    async def advance(self, seconds: float) -> int:
        """Move the clock forward, firing (and awaiting) every task that comes due.

        Returns the number of callbacks fired.
        """
        target = self.now + seconds
        fired = 0
        while True:
            task = self._next_due(target)
            if task is None:
                break
            self.now = task.due
            task.fired = True
            fired += 1
            result = task.callback()
            if inspect.isawaitable(result):
                await result
        self.now = target
        self._tasks = [t for t in self._tasks if t.pending]
        return fired
