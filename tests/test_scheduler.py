"""Tests for sovereign.scheduler — the PeriodicTask driver."""

from __future__ import annotations

import asyncio

import pytest

from sovereign.scheduler import PeriodicTask


async def _wait_for(predicate, attempts: int = 200) -> None:
    for _ in range(attempts):
        if predicate():
            return
        await asyncio.sleep(0.01)


class TestPeriodicTask:
    @pytest.mark.asyncio
    async def test_ticks_until_stopped(self) -> None:
        calls = []
        ticker = PeriodicTask("t", 0.01, lambda: calls.append(1), run_immediately=True)
        await ticker.start()
        await _wait_for(lambda: len(calls) >= 3)
        await ticker.stop()
        count = len(calls)
        await asyncio.sleep(0.05)
        assert count >= 3
        assert len(calls) == count
        assert not ticker.is_running

    @pytest.mark.asyncio
    async def test_async_callback_awaited(self) -> None:
        calls = []

        async def callback():
            await asyncio.sleep(0)
            calls.append(1)

        ticker = PeriodicTask("t", 0.01, callback)
        await ticker.tick()
        assert calls == [1]
        assert ticker.status()["tick_count"] == 1

    @pytest.mark.asyncio
    async def test_survives_failing_tick(self) -> None:
        calls = []

        def callback():
            calls.append(1)
            if len(calls) == 1:
                raise RuntimeError("first tick fails")

        ticker = PeriodicTask("t", 0.01, callback, run_immediately=True)
        await ticker.start()
        await _wait_for(lambda: len(calls) >= 3)
        await ticker.stop()

        status = ticker.status()
        assert len(calls) >= 3
        assert status["failure_count"] == 1
        assert status["last_error"] is None

    @pytest.mark.asyncio
    async def test_failure_recorded(self) -> None:
        def callback():
            raise ValueError("bad tick")

        ticker = PeriodicTask("t", 1.0, callback)
        await ticker.tick()
        status = ticker.status()
        assert status["failure_count"] == 1
        assert status["last_error"] == "bad tick"
        assert status["last_tick_time"] is not None

    @pytest.mark.asyncio
    async def test_waits_one_interval_by_default(self) -> None:
        calls = []
        ticker = PeriodicTask("t", 10.0, lambda: calls.append(1))
        await ticker.start()
        await asyncio.sleep(0.02)
        await ticker.stop()
        assert calls == []

    @pytest.mark.asyncio
    async def test_double_start_is_ignored(self) -> None:
        ticker = PeriodicTask("t", 10.0, lambda: None)
        await ticker.start()
        await ticker.start()
        assert ticker.is_running
        await ticker.stop()

    def test_negative_interval_clamped(self) -> None:
        assert PeriodicTask("t", -5, lambda: None).interval == 0.0
