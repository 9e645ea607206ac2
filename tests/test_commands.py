"""Tests for sovereign.commands — registry, executor and built-in commands."""

from __future__ import annotations

import pytest

from sovereign.commands.executor import CommandExecutor, parse_input
from sovereign.commands.registry import (
    CommandArgs,
    CommandContext,
    CommandDefinition,
    CommandError,
    CommandOk,
    CommandRegistry,
)
from sovereign.core import AutonomyCore
from sovereign.kernel import Kernel
from sovereign.memory.stm import ShortTermMemory


def _ctx(kernel: Kernel) -> CommandContext:
    return CommandContext(session_id=kernel.session_id, get_kernel_state=kernel.get_state)


def _executor(kernel: Kernel, stm: ShortTermMemory, *definitions: CommandDefinition) -> CommandExecutor:
    registry = CommandRegistry()
    for definition in definitions:
        registry.register(definition)
    return CommandExecutor(registry, kernel, stm)


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------


class TestResultTypes:
    def test_status_is_fixed(self) -> None:
        assert CommandOk().status == "ok"
        assert CommandError(message="x").status == "error"

    def test_status_cannot_be_passed(self) -> None:
        with pytest.raises(TypeError):
            CommandOk(status="error")  # type: ignore[call-arg]


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class TestCommandRegistry:
    def test_register_and_get(self) -> None:
        registry = CommandRegistry()
        definition = CommandDefinition(id="echo", handler=lambda a, c: CommandOk())
        registry.register(definition)
        assert registry.get("echo") is definition
        assert registry.get("missing") is None
        assert "echo" in registry

    def test_collision_raises(self) -> None:
        registry = CommandRegistry()
        registry.register(CommandDefinition(id="echo", handler=lambda a, c: CommandOk()))
        with pytest.raises(ValueError, match="already registered"):
            registry.register(CommandDefinition(id="echo", handler=lambda a, c: CommandOk()))

    def test_allow_override(self) -> None:
        registry = CommandRegistry()
        registry.register(CommandDefinition(id="echo", handler=lambda a, c: CommandOk()))
        replacement = CommandDefinition(id="echo", handler=lambda a, c: CommandError())
        registry.register(replacement, allow_override=True)
        assert registry.get("echo") is replacement

    def test_as_operations(self) -> None:
        registry = CommandRegistry()
        registry.register(
            CommandDefinition(id="log.tail", description="Tail", handler=lambda a, c: CommandOk())
        )
        (operation,) = registry.as_operations()
        assert operation.id == "log.tail"
        assert operation.name == "log tail"
        assert operation.description == "Tail"


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


class TestParseInput:
    def test_id_and_args(self) -> None:
        command_id, args = parse_input("  task.new   write   docs ")
        assert command_id == "task.new"
        assert args.raw_args == "write   docs"
        assert args.args == ["write", "docs"]

    def test_empty(self) -> None:
        command_id, args = parse_input("   ")
        assert command_id == ""
        assert args == CommandArgs()


# ---------------------------------------------------------------------------
# Executor
# ---------------------------------------------------------------------------


class TestCommandExecutor:
    @pytest.mark.asyncio
    async def test_empty_input_has_no_side_effects(self, kernel: Kernel, stm: ShortTermMemory) -> None:
        result = await _executor(kernel, stm).execute("   ", _ctx(kernel))
        assert isinstance(result, CommandError)
        assert result.message == "No command provided"
        assert kernel.command_count == 0
        assert kernel.log_size == 0
        assert stm.snapshot().commands == []

    @pytest.mark.asyncio
    async def test_unknown_command(self, kernel: Kernel, stm: ShortTermMemory) -> None:
        result = await _executor(kernel, stm).execute("unknown.command", _ctx(kernel))
        assert result.status == "error"
        assert result.message == "Unknown command: unknown.command"
        assert "help" in result.followups
        assert kernel.command_count == 1
        assert stm.snapshot().commands[0].command == "unknown.command"

    @pytest.mark.asyncio
    async def test_sync_handler_receives_args(self, kernel: Kernel, stm: ShortTermMemory) -> None:
        seen: list[CommandArgs] = []

        def handler(args: CommandArgs, ctx: CommandContext) -> CommandOk:
            seen.append(args)
            return CommandOk(message="done", payload={"session": ctx.session_id})

        executor = _executor(kernel, stm, CommandDefinition(id="echo", handler=handler))
        result = await executor.execute("echo a b", _ctx(kernel))
        assert result.status == "ok"
        assert result.payload == {"session": kernel.session_id}
        assert seen[0].args == ["a", "b"]

    @pytest.mark.asyncio
    async def test_async_handler_is_awaited(self, kernel: Kernel, stm: ShortTermMemory) -> None:
        async def handler(args, ctx):
            return CommandOk(message="async")

        executor = _executor(kernel, stm, CommandDefinition(id="slow", handler=handler))
        result = await executor.execute("slow", _ctx(kernel))
        assert result.message == "async"

    @pytest.mark.asyncio
    async def test_handler_fault_becomes_error(self, kernel: Kernel, stm: ShortTermMemory) -> None:
        def handler(args, ctx):
            raise RuntimeError("handler exploded")

        executor = _executor(kernel, stm, CommandDefinition(id="bad", handler=handler))
        result = await executor.execute("bad", _ctx(kernel))
        assert result.status == "error"
        assert result.message == "handler exploded"
        assert stm.snapshot().last_kernel_error.message == "handler exploded"
        log = kernel.get_state().log
        assert any(e.source == "command.bad" and e.level == "error" for e in log)
        assert kernel.command_count == 1

    @pytest.mark.asyncio
    async def test_summary_log_line(self, kernel: Kernel, stm: ShortTermMemory) -> None:
        executor = _executor(
            kernel, stm, CommandDefinition(id="noop", handler=lambda a, c: CommandOk())
        )
        await executor.execute("noop", _ctx(kernel))
        entry = kernel.get_state().log[-1]
        assert entry.source == "kernel"
        assert entry.message == "noop -> ok"
        assert entry.level == "info"
        assert stm.snapshot().commands[0].status == "ok"


# ---------------------------------------------------------------------------
# Built-in commands
# ---------------------------------------------------------------------------


class TestBuiltinCommands:
    @pytest.mark.asyncio
    async def test_help_lists_every_command(self, core: AutonomyCore) -> None:
        result = await core.execute("help")
        assert result.status == "ok"
        assert sorted(c["id"] for c in result.payload) == core.registry.ids()

    @pytest.mark.asyncio
    async def test_expected_commands_registered(self, core: AutonomyCore) -> None:
        for command_id in (
            "help", "ping", "state.snapshot", "log.tail", "task.new", "task.list",
            "task.inspect", "task.cancel", "task.metrics", "goal.new", "goal.list",
            "goal.inspect", "goal.attach", "goal.complete", "goal.fail", "goal.cancel",
            "goal.sync", "intent.recent", "guardrail.violations", "memory.stm",
            "reflection.run", "reflection.recent", "autonomy.status", "bridge.status",
            "bridge.dispatch", "ui.theme.toggle",
        ):
            assert command_id in core.registry

    @pytest.mark.asyncio
    async def test_ping(self, core: AutonomyCore) -> None:
        result = await core.execute("ping")
        assert result.message == "pong"
        assert result.payload["session_id"] == core.kernel.session_id
        assert result.followups == ["state.snapshot", "log.tail"]

    @pytest.mark.asyncio
    async def test_log_tail_bounds(self, core: AutonomyCore) -> None:
        for i in range(150):
            core.kernel.log_info("test", str(i))
        assert len((await core.execute("log.tail")).payload) == 20
        assert len((await core.execute("log.tail 5")).payload) == 5
        assert len((await core.execute("log.tail 500")).payload) == 100
        assert len((await core.execute("log.tail nonsense")).payload) == 20

    @pytest.mark.asyncio
    async def test_task_lifecycle(self, core: AutonomyCore) -> None:
        created = await core.execute("task.new summarize the queue")
        task_id = created.payload.id
        assert created.message == f"Task created ({task_id})"

        listed = await core.execute("task.list")
        assert [t.id for t in listed.payload] == [task_id]

        inspected = await core.execute(f"task.inspect {task_id}")
        assert inspected.payload.status == "queued"

        cancelled = await core.execute(f"task.cancel {task_id}")
        assert cancelled.status == "ok"
        again = await core.execute(f"task.cancel {task_id}")
        assert again.status == "error"

    @pytest.mark.asyncio
    async def test_missing_arguments_are_validation_errors(self, core: AutonomyCore) -> None:
        for text in (
            "task.new", "task.inspect", "task.cancel", "goal.new", "goal.inspect",
            "goal.attach g", "goal.complete", "goal.fail g", "goal.cancel", "goal.sync",
            "bridge.dispatch",
        ):
            result = await core.execute(text)
            assert result.status == "error", text

    @pytest.mark.asyncio
    async def test_destructive_task_records_violation(self, core: AutonomyCore) -> None:
        await core.execute("task.new wipe everything")
        violation = core.violations.recent(1)[0]
        assert violation.rule == "destructive-task"
        assert violation.severity == "high"

    @pytest.mark.asyncio
    async def test_goal_commands(self, core: AutonomyCore) -> None:
        created = await core.execute("goal.new Analyze recent activity | look for spikes")
        goal = created.payload
        assert goal.description == "look for spikes"
        assert goal.status == "active"

        listed = await core.execute("goal.list active")
        assert [g.id for g in listed.payload] == [goal.id]
        assert (await core.execute("goal.list bogus")).status == "error"

        completed = await core.execute(f"goal.complete {goal.id} all quiet")
        assert completed.payload.result_summary == "all quiet"

    @pytest.mark.asyncio
    async def test_goal_attach_requires_known_task(self, core: AutonomyCore) -> None:
        goal = (await core.execute("goal.new Write a poem")).payload
        missing = await core.execute(f"goal.attach {goal.id} task-ghost")
        assert missing.status == "error"
        task = (await core.execute("task.new draft")).payload
        attached = await core.execute(f"goal.attach {goal.id} {task.id}")
        assert attached.payload.tasks == [task.id]

    @pytest.mark.asyncio
    async def test_introspection_commands(self, core: AutonomyCore) -> None:
        await core.execute("task.new wipe the disk")
        violations = await core.execute("guardrail.violations")
        assert violations.payload["summary"]["high"] >= 1

        stm = await core.execute("memory.stm")
        assert stm.payload.commands[0].command == "guardrail.violations"

        reflection = await core.execute("reflection.run")
        assert reflection.payload.health in ("warning", "error")
        recent = await core.execute("reflection.recent")
        assert recent.payload[0].id == reflection.payload.id

        status = await core.execute("autonomy.status")
        assert status.payload.session_id == core.kernel.session_id

        intents = await core.execute("intent.recent 3")
        assert len(intents.payload) <= 3

    @pytest.mark.asyncio
    async def test_bridge_commands(self, core: AutonomyCore) -> None:
        assert (await core.execute("bridge.status")).payload.status == "idle"
        dispatched = await core.execute("bridge.dispatch ping the cluster")
        assert dispatched.status == "ok"
        assert dispatched.message == "pong"
        assert (await core.execute("bridge.status")).payload.status == "connected"

    @pytest.mark.asyncio
    async def test_theme_toggle(self, core: AutonomyCore) -> None:
        assert core.theme == "dark"
        await core.execute("ui.theme.toggle")
        assert core.theme == "light"
