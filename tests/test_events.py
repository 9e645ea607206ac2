"""Tests for sovereign.events — event naming and the synchronous bus."""

from __future__ import annotations

import asyncio

import pytest

from sovereign.events import (
    CommandReceivedEvent,
    EventBus,
    ReflectionCreatedEvent,
    SovereignEvent,
    TaskFinalizedEvent,
)


class HTTPSCheckEvent(SovereignEvent):
    target: str = ""


# ---------------------------------------------------------------------------
# Event types
# ---------------------------------------------------------------------------


class TestEventTypes:
    def test_derived_from_class_name(self) -> None:
        assert CommandReceivedEvent(input="ping").event_type == "command.received"
        assert TaskFinalizedEvent(task_id="t", status="completed").event_type == "task.finalized"
        assert ReflectionCreatedEvent(reflection_id="r", health="ok").event_type == (
            "reflection.created"
        )

    def test_acronyms_stay_together(self) -> None:
        assert HTTPSCheckEvent().event_type == "https.check"

    def test_explicit_type_wins(self) -> None:
        assert HTTPSCheckEvent(event_type="custom").event_type == "custom"


# ---------------------------------------------------------------------------
# Bus
# ---------------------------------------------------------------------------


class TestEventBus:
    def test_wildcard_matching(self) -> None:
        bus = EventBus()
        commands, everything, tasks = [], [], []
        bus.subscribe("command.*", commands.append)
        bus.subscribe("*", everything.append)
        bus.subscribe("task.finalized", tasks.append)

        bus.emit(CommandReceivedEvent(input="ping"))
        bus.emit(TaskFinalizedEvent(task_id="t", status="failed"))

        assert len(commands) == 1
        assert len(everything) == 2
        assert len(tasks) == 1
        assert bus.emitted_count == 2

    def test_handlers_run_in_subscription_order(self) -> None:
        bus = EventBus()
        order: list[int] = []
        bus.subscribe("*", lambda e: order.append(1))
        bus.subscribe("*", lambda e: order.append(2))
        bus.emit(CommandReceivedEvent(input="x"))
        assert order == [1, 2]

    def test_unsubscribe(self) -> None:
        bus = EventBus()
        seen = []
        sub_id = bus.subscribe("*", seen.append)
        assert bus.subscription_count == 1
        assert bus.unsubscribe(sub_id)
        assert not bus.unsubscribe(sub_id)
        bus.emit(CommandReceivedEvent(input="x"))
        assert seen == []

    def test_handler_error_is_isolated(self) -> None:
        bus = EventBus()
        seen = []

        def broken(event):
            raise ValueError("nope")

        bus.subscribe("*", broken)
        bus.subscribe("*", seen.append)
        bus.emit(CommandReceivedEvent(input="x"))
        assert len(seen) == 1

    @pytest.mark.asyncio
    async def test_coroutine_handler_scheduled(self) -> None:
        bus = EventBus()
        seen = []

        async def handler(event):
            await asyncio.sleep(0)
            seen.append(event.event_type)

        bus.subscribe("*", handler)
        bus.emit(CommandReceivedEvent(input="x"))
        await bus.drain()
        assert seen == ["command.received"]

    @pytest.mark.asyncio
    async def test_failing_coroutine_handler_logged(self) -> None:
        bus = EventBus()

        async def handler(event):
            raise RuntimeError("late failure")

        bus.subscribe("*", handler)
        bus.emit(CommandReceivedEvent(input="x"))
        await bus.drain()
        assert bus.emitted_count == 1

    def test_coroutine_handler_without_loop_is_skipped(self) -> None:
        bus = EventBus()
        ran = []

        async def handler(event):
            ran.append(event)

        bus.subscribe("*", handler)
        bus.emit(CommandReceivedEvent(input="x"))
        assert ran == []
