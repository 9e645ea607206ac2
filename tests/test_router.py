"""Tests for sovereign.router — audit before execution, session history, events."""

from __future__ import annotations

import pytest

from sovereign.config import RouterConfig, SovereignConfig
from sovereign.core import AutonomyCore


# ---------------------------------------------------------------------------
# Guardian verdicts
# ---------------------------------------------------------------------------


class TestRouterVerdicts:
    @pytest.mark.asyncio
    async def test_blocked_command_never_executes(self, core: AutonomyCore) -> None:
        entry = await core.handle("rm -rf /")
        assert entry.result.status == "blocked"
        assert entry.result.message == "Destructive command detected by Guardian policies."
        assert entry.result.audit_trail == [entry.result.message]
        assert core.kernel.command_count == 0
        assert core.stm.snapshot().commands == []

    @pytest.mark.asyncio
    async def test_allowed_command_runs(self, core: AutonomyCore) -> None:
        entry = await core.handle("ping")
        assert entry.result.status == "ok"
        assert entry.result.message == "pong"
        assert entry.result.intent.operation_id == "ping"
        assert entry.result.audit_trail == []
        assert entry.result.followups == ["state.snapshot", "log.tail"]
        assert core.kernel.command_count == 1

    @pytest.mark.asyncio
    async def test_flag_reason_travels_with_result(self, core: AutonomyCore) -> None:
        entry = await core.handle("task.new purge stale caches")
        assert entry.result.status == "ok"
        assert entry.result.audit_trail == [
            "Potential system write detected. Confirmation required."
        ]
        assert len(core.tasks.list_tasks()) == 1

    @pytest.mark.asyncio
    async def test_unresolved_text_is_flagged_then_fails(self, core: AutonomyCore) -> None:
        entry = await core.handle("brew some coffee")
        assert entry.result.status == "error"
        assert entry.result.message == "Unknown command: brew"
        assert entry.result.audit_trail == ["Intent validation required before execution."]

    @pytest.mark.asyncio
    async def test_command_intent_is_classified(self, core: AutonomyCore) -> None:
        await core.handle("ping")
        signal = core.intents.recent(1)[0]
        assert signal.source == "command"
        assert signal.meta == {"command_id": "ping"}

    @pytest.mark.asyncio
    async def test_every_verdict_audited(self, core: AutonomyCore) -> None:
        await core.handle("ping")
        await core.handle("shutdown everything")
        decisions = [e.audit.decision for e in core.guardian.audit_trail()]
        assert decisions == ["block", "allow"]


# ---------------------------------------------------------------------------
# Session history
# ---------------------------------------------------------------------------


class TestRouterHistory:
    @pytest.mark.asyncio
    async def test_newest_first(self, core: AutonomyCore) -> None:
        await core.handle("ping")
        await core.handle("help")
        assert [e.command for e in core.router.history()] == ["help", "ping"]
        assert len(core.router.history(1)) == 1

    @pytest.mark.asyncio
    async def test_bounded(self) -> None:
        config = SovereignConfig()
        config.router = RouterConfig(max_session_entries=2)
        core = AutonomyCore(config)
        for _ in range(4):
            await core.handle("ping")
        assert len(core.router.history()) == 2

    @pytest.mark.asyncio
    async def test_clear(self, core: AutonomyCore) -> None:
        await core.handle("ping")
        core.router.clear()
        assert core.router.history() == []


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------


class TestRouterEvents:
    @pytest.mark.asyncio
    async def test_lifecycle_events_in_order(self, core: AutonomyCore) -> None:
        seen: list[str] = []
        core.events.subscribe("command.*", lambda e: seen.append(e.event_type))
        await core.handle("ping")
        assert seen == ["command.received", "command.audited", "command.result"]

    @pytest.mark.asyncio
    async def test_blocked_command_still_reports_result(self, core: AutonomyCore) -> None:
        results = []
        core.events.subscribe("command.result", results.append)
        await core.handle("drop table users")
        assert results[0].entry.result.status == "blocked"

    @pytest.mark.asyncio
    async def test_failing_observer_does_not_break_routing(self, core: AutonomyCore) -> None:
        def explode(event):
            raise RuntimeError("observer bug")

        core.events.subscribe("*", explode)
        entry = await core.handle("ping")
        assert entry.result.status == "ok"
