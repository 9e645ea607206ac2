"""
Scheduler — fixed-cadence background ticking on the event loop.

Both periodic drivers of the core (the task worker and the reflection engine)
are the same shape: call something every N seconds, forever, without letting
one bad tick take the loop down. This module is that shape.

A PeriodicTask runs as an asyncio background task. Each tick awaits the
callback (sync or async), logs and counts failures, then sleeps for the
interval. Ticks never overlap: the next sleep only starts after the current
tick has returned.
"""

from __future__ import annotations

import asyncio
import time
from typing import Any, Awaitable, Callable, Optional, Union

import structlog

logger = structlog.get_logger(__name__)

TickCallback = Callable[[], Union[Any, Awaitable[Any]]]


class PeriodicTask:
    """Drive ``callback`` every ``interval`` seconds until stopped."""

    def __init__(
        self,
        name: str,
        interval: float,
        callback: TickCallback,
        *,
        run_immediately: bool = False,
    ):
        self._name = name
        self._interval = max(0.0, float(interval))
        self._callback = callback
        self._run_immediately = run_immediately
        self._running = False
        self._task: Optional[asyncio.Task] = None
        self._tick_count = 0
        self._failure_count = 0
        self._last_error: Optional[str] = None
        self._last_tick_time: Optional[float] = None

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def start(self) -> None:
        if self._running:
            logger.warning("scheduler.already_running", name=self._name)
            return
        self._running = True
        self._task = asyncio.create_task(self._loop(), name=f"periodic-{self._name}")
        logger.info("scheduler.started", name=self._name, interval=self._interval)

    async def stop(self) -> None:
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("scheduler.stopped", name=self._name, total_ticks=self._tick_count)

    # -------------------------------------------------------------------------
    # Loop
    # -------------------------------------------------------------------------

    async def tick(self) -> None:
        """Run the callback once, isolating the loop from its failures."""
        self._tick_count += 1
        self._last_tick_time = time.time()
        try:
            result = self._callback()
            if asyncio.iscoroutine(result) or asyncio.isfuture(result):
                await result
            self._last_error = None
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self._failure_count += 1
            self._last_error = str(e)
            logger.error(
                "scheduler.tick_failed",
                name=self._name,
                error=str(e),
                failures=self._failure_count,
                exc_info=True,
            )

    async def _loop(self) -> None:
        if not self._run_immediately:
            await asyncio.sleep(self._interval)
        while self._running:
            await self.tick()
            await asyncio.sleep(self._interval)

    # -------------------------------------------------------------------------
    # Introspection
    # -------------------------------------------------------------------------

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def interval(self) -> float:
        return self._interval

    def status(self) -> dict[str, Any]:
        return {
            "name": self._name,
            "running": self._running,
            "interval": self._interval,
            "tick_count": self._tick_count,
            "failure_count": self._failure_count,
            "last_error": self._last_error,
            "last_tick_time": self._last_tick_time,
        }
