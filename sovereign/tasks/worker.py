"""
Task Worker — the scheduler-driven driver of the task engine.

Each tick makes a non-blocking attempt: if the engine is idle and something is
queued, one processing coroutine is spawned in the background and the tick
returns immediately. The engine's current-task marker keeps a second tick from
starting another task while the first is still in flight.
"""

from __future__ import annotations

import asyncio
from typing import Optional

import structlog

from sovereign.config import TaskConfig
from sovereign.scheduler import PeriodicTask
from sovereign.tasks.engine import Task, TaskEngine

logger = structlog.get_logger(__name__)


class TaskWorker:
    def __init__(self, engine: TaskEngine, config: Optional[TaskConfig] = None):
        self._engine = engine
        self._config = config or TaskConfig()
        self._inflight: Optional[asyncio.Task] = None
        self._ticker = PeriodicTask(
            "task-worker",
            self._config.worker_interval,
            self._on_tick,
            run_immediately=True,
        )

    async def start(self) -> None:
        await self._ticker.start()

    async def stop(self) -> None:
        """Stop ticking. A task still in flight is interrupted and ends cancelled."""
        await self._ticker.stop()
        if self._inflight is not None and not self._inflight.done():
            self._inflight.cancel()
            try:
                await self._inflight
            except asyncio.CancelledError:
                pass
        self._inflight = None

    def _on_tick(self) -> None:
        self.tick()

    def tick(self) -> Optional[asyncio.Task]:
        """Spawn one processing step if the engine is free. Never waits on it."""
        if self._engine.is_busy:
            return None
        if self._inflight is not None and not self._inflight.done():
            return None
        if not self._engine.queued_ids():
            return None
        self._inflight = asyncio.create_task(self._engine.process_next(), name="task-worker-step")
        return self._inflight

    async def drain(self) -> list[Task]:
        """Process everything currently queued, in order. Used by one-shot callers."""
        processed: list[Task] = []
        if self._inflight is not None and not self._inflight.done():
            await self._inflight
        while self._engine.queued_ids():
            task = await self._engine.process_next()
            if task is None:
                break
            processed.append(task)
        return processed

    @property
    def is_running(self) -> bool:
        return self._ticker.is_running

    def status(self) -> dict:
        return self._ticker.status()
