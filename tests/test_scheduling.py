"""Tests for scheduled tasks and the autosave debouncer."""
from __future__ import annotations

import asyncio

from conftest import run
from hookmap.application.autosave import AutosaveDebouncer
from hookmap.scheduling import AsyncioScheduler, ManualScheduler


class TestManualScheduler:
    """Test the virtual clock."""

    def test_fires_when_due(self):
        scheduler = ManualScheduler()
        calls = []
        scheduler.call_later(2.0, lambda: calls.append("x"))

        assert run(scheduler.advance(1.9)) == 0
        assert calls == []
        assert run(scheduler.advance(0.1)) == 1
        assert calls == ["x"]

    def test_awaits_coroutine_callbacks(self):
        scheduler = ManualScheduler()
        calls = []

        async def callback():
            calls.append(scheduler.now)

        scheduler.call_later(1.0, callback)
        run(scheduler.advance(5))

        assert calls == [1.0]
        assert scheduler.now == 5

    def test_cancelled_task_never_fires(self):
        scheduler = ManualScheduler()
        calls = []
        task = scheduler.call_later(1.0, lambda: calls.append("x"))
        task.cancel()

        assert run(scheduler.advance(2)) == 0
        assert task.cancelled and not task.pending
        assert scheduler.pending == []

    def test_tasks_scheduled_by_callbacks_fire_in_same_advance(self):
        scheduler = ManualScheduler()
        calls = []

        def first():
            calls.append("first")
            scheduler.call_later(1.0, lambda: calls.append("second"))

        scheduler.call_later(1.0, first)
        assert run(scheduler.advance(3)) == 2
        assert calls == ["first", "second"]


class TestAsyncioScheduler:
    """Test the event-loop backed scheduler."""

    def test_runs_coroutine_after_delay(self):
        calls = []

        async def main():
            scheduler = AsyncioScheduler()

            async def callback():
                calls.append("fired")

            task = scheduler.call_later(0.01, callback)
            assert task.pending
            await asyncio.sleep(0.05)
            return task

        task = run(main())
        assert calls == ["fired"]
        assert task.fired

    def test_cancel(self):
        calls = []

        async def main():
            scheduler = AsyncioScheduler()
            task = scheduler.call_later(0.01, lambda: calls.append("fired"))
            task.cancel()
            await asyncio.sleep(0.05)

        run(main())
        assert calls == []


class TestAutosaveDebouncer:
    """Test the single-slot debounce."""

    def _debouncer(self):
        scheduler = ManualScheduler()
        calls = []

        async def action():
            calls.append(scheduler.now)

        return scheduler, AutosaveDebouncer(scheduler, 2000, action), calls

    def test_fires_once_after_delay(self):
        scheduler, debouncer, calls = self._debouncer()
        debouncer.schedule()

        assert debouncer.pending
        run(scheduler.advance(2))
        assert calls == [2.0]
        assert not debouncer.pending

    def test_rescheduling_supersedes(self):
        """Test scheduling again restarts the delay."""
        scheduler, debouncer, calls = self._debouncer()
        debouncer.schedule()
        run(scheduler.advance(1.5))
        debouncer.schedule()
        run(scheduler.advance(1.5))

        assert calls == []
        run(scheduler.advance(0.5))
        assert calls == [3.5]

    def test_cancel(self):
        scheduler, debouncer, calls = self._debouncer()
        debouncer.schedule()
        debouncer.cancel()
        run(scheduler.advance(10))

        assert calls == []
        assert not debouncer.pending
