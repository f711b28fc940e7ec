"""Clock and deferred-task scheduling.

The sync orchestrator never sleeps or reads wall-clock time directly; it goes
through a ``Clock`` and a ``Scheduler`` so tests can drive time by hand.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Protocol

from bookmarksync.services.datetime_service import now_millis

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)


class Clock(Protocol):
    def now_ms(self) -> int:
        """Current time in epoch milliseconds."""
        ...


class ScheduledTask(Protocol):
    def cancel(self) -> bool:
        """Cancel the task if it has not started. Returns True if cancelled."""
        ...


class Scheduler(Protocol):
    def call_later(self, delay: float, func: Callable[[], Awaitable[None]]) -> ScheduledTask:
        """Run ``func`` after ``delay`` seconds."""
        ...


class SystemClock:
    def now_ms(self) -> int:
        return now_millis()


class _AsyncioScheduledTask:
    def __init__(self) -> None:
        self.handle: asyncio.TimerHandle | None = None
        self.started = False
        self.cancelled = False

    def cancel(self) -> bool:
        if self.started or self.cancelled:
            return False
        self.cancelled = True
        if self.handle is not None:
            self.handle.cancel()
        return True


class AsyncioScheduler:
    """Scheduler running tasks on the current asyncio event loop."""

    def __init__(self) -> None:
        self._pending: set[_AsyncioScheduledTask] = set()
        self._running: set[asyncio.Task[None]] = set()

    def call_later(self, delay: float, func: Callable[[], Awaitable[None]]) -> ScheduledTask:
        loop = asyncio.get_running_loop()
        scheduled = _AsyncioScheduledTask()

        def _start() -> None:
            self._pending.discard(scheduled)
            if scheduled.cancelled:
                return
            scheduled.started = True
            task = loop.create_task(self._run(func))
            self._running.add(task)
            task.add_done_callback(self._running.discard)

        if delay <= 0:
            # zero-delay tasks count as running for aclose
            _start()
            return scheduled
        scheduled.handle = loop.call_later(delay, _start)
        self._pending.add(scheduled)
        return scheduled

    async def _run(self, func: Callable[[], Awaitable[None]]) -> None:
        try:
            await func()
        except Exception:
            logger.exception("Scheduled task failed")

    async def aclose(self) -> None:
        """Cancel tasks that have not started and wait for running ones."""
        for scheduled in list(self._pending):
            scheduled.cancel()
        self._pending.clear()
        if self._running:
            await asyncio.gather(*self._running, return_exceptions=True)
