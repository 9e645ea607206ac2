"""
Built-in Commands — the core's native command set.

These are the commands every session starts with: diagnostics (help, ping,
state.snapshot, log.tail), task and goal control, read-only views of the
intent, guardrail, memory and reflection subsystems, and the dispatch bridge.

Each handler takes the composition root as its first argument and is bound
to it at registration time, so nothing here reaches for a global. Missing or
malformed arguments come back as a CommandError rather than an exception.
"""

from __future__ import annotations

from functools import partial
from typing import TYPE_CHECKING, Any, Callable, Optional

from sovereign.commands.registry import (
    CommandArgs,
    CommandContext,
    CommandDefinition,
    CommandError,
    CommandHandlerResult,
    CommandOk,
    CommandRegistry,
)
from sovereign.goals.planner import GOAL_STATUSES

if TYPE_CHECKING:
    from sovereign.core import AutonomyCore

DEFAULT_LOG_TAIL = 20
MAX_LOG_TAIL = 100


def _parse_count(args: CommandArgs, default: int, maximum: int) -> int:
    """First argument as a positive count, else the default. Capped at maximum."""
    if not args.args:
        return default
    try:
        count = int(args.args[0])
    except ValueError:
        return default
    return min(count, maximum) if count > 0 else default


def _rest_after_first(args: CommandArgs) -> str:
    parts = args.raw_args.split(maxsplit=1)
    return parts[1].strip() if len(parts) > 1 else ""


# ---------------------------------------------------------------------------
# Diagnostics
# ---------------------------------------------------------------------------

def _help(core: AutonomyCore, args: CommandArgs, ctx: CommandContext) -> CommandHandlerResult:
    commands = [
        {"id": d.id, "description": d.description, "usage": d.usage}
        for d in core.registry.list_commands()
    ]
    return CommandOk(message="Available commands", payload=commands)


def _ping(core: AutonomyCore, args: CommandArgs, ctx: CommandContext) -> CommandHandlerResult:
    return CommandOk(
        message="pong",
        payload={
            "uptime_ms": round(core.kernel.uptime_seconds * 1000),
            "session_id": ctx.session_id,
            "command_count": core.kernel.command_count,
        },
        followups=["state.snapshot", "log.tail"],
    )


def _state_snapshot(core: AutonomyCore, args: CommandArgs, ctx: CommandContext) -> CommandHandlerResult:
    return CommandOk(message="Kernel snapshot", payload=ctx.get_kernel_state())


def _log_tail(core: AutonomyCore, args: CommandArgs, ctx: CommandContext) -> CommandHandlerResult:
    count = _parse_count(args, DEFAULT_LOG_TAIL, MAX_LOG_TAIL)
    entries = ctx.get_kernel_state().log[-count:]
    return CommandOk(message=f"Showing last {len(entries)} log entries", payload=entries)


def _theme_toggle(core: AutonomyCore, args: CommandArgs, ctx: CommandContext) -> CommandHandlerResult:
    ctx.toggle_theme()
    core.kernel.log_info("ui.theme", "Theme toggled")
    return CommandOk(message="Theme toggled", payload={"command_count": core.kernel.command_count})


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------

def _task_new(core: AutonomyCore, args: CommandArgs, ctx: CommandContext) -> CommandHandlerResult:
    description = args.raw_args.strip()
    if not description:
        return CommandError(message="Description is required")
    task = core.tasks.create_task(description)
    return CommandOk(message=f"Task created ({task.id})", payload=task)


def _task_list(core: AutonomyCore, args: CommandArgs, ctx: CommandContext) -> CommandHandlerResult:
    return CommandOk(message="Current tasks", payload=core.tasks.list_tasks())


def _task_inspect(core: AutonomyCore, args: CommandArgs, ctx: CommandContext) -> CommandHandlerResult:
    if not args.args:
        return CommandError(message="Task id required")
    task_id = args.args[0]
    task = core.tasks.inspect_task(task_id)
    if task is None:
        return CommandError(message=f"Task not found: {task_id}")
    return CommandOk(message=f"Task {task_id}", payload=task)


def _task_cancel(core: AutonomyCore, args: CommandArgs, ctx: CommandContext) -> CommandHandlerResult:
    if not args.args:
        return CommandError(message="Task id required")
    task_id = args.args[0]
    if core.tasks.cancel_task(task_id):
        return CommandOk(message=f"Task {task_id} cancelled")
    return CommandError(message=f"Unable to cancel task {task_id}")


def _task_metrics(core: AutonomyCore, args: CommandArgs, ctx: CommandContext) -> CommandHandlerResult:
    return CommandOk(message="Task metrics", payload=core.tasks.task_metrics())


# ---------------------------------------------------------------------------
# Goals
# ---------------------------------------------------------------------------

def _goal_new(core: AutonomyCore, args: CommandArgs, ctx: CommandContext) -> CommandHandlerResult:
    title, _, description = args.raw_args.partition("|")
    title = title.strip()
    if not title:
        return CommandError(message="Goal title is required")
    goal = core.goals.create_goal(title, description.strip() or None)
    return CommandOk(message=f"Goal created ({goal.id})", payload=goal)


def _goal_list(core: AutonomyCore, args: CommandArgs, ctx: CommandContext) -> CommandHandlerResult:
    status: Optional[str] = args.args[0] if args.args else None
    if status is not None and status not in GOAL_STATUSES:
        return CommandError(
            message=f"Unknown goal status: {status}",
            followups=[f"goal.list {s}" for s in GOAL_STATUSES],
        )
    return CommandOk(message="Current goals", payload=core.goals.list_goals(status))


def _goal_inspect(core: AutonomyCore, args: CommandArgs, ctx: CommandContext) -> CommandHandlerResult:
    if not args.args:
        return CommandError(message="Goal id required")
    goal = core.goals.get_goal(args.args[0])
    if goal is None:
        return CommandError(message=f"Goal not found: {args.args[0]}")
    return CommandOk(message=f"Goal {goal.id}", payload=goal)


def _goal_attach(core: AutonomyCore, args: CommandArgs, ctx: CommandContext) -> CommandHandlerResult:
    if len(args.args) < 2:
        return CommandError(message="Usage: goal.attach <goal_id> <task_id>")
    goal_id, task_id = args.args[0], args.args[1]
    if core.tasks.inspect_task(task_id) is None:
        return CommandError(message=f"Task not found: {task_id}")
    goal = core.goals.attach_task(goal_id, task_id)
    if goal is None:
        return CommandError(message=f"Goal not found: {goal_id}")
    return CommandOk(message=f"Task {task_id} attached to goal {goal_id}", payload=goal)


def _goal_complete(core: AutonomyCore, args: CommandArgs, ctx: CommandContext) -> CommandHandlerResult:
    if not args.args:
        return CommandError(message="Goal id required")
    goal = core.goals.complete_goal(args.args[0], _rest_after_first(args) or None)
    if goal is None:
        return CommandError(message=f"Goal not found: {args.args[0]}")
    return CommandOk(message=f"Goal {goal.id} completed", payload=goal)


def _goal_fail(core: AutonomyCore, args: CommandArgs, ctx: CommandContext) -> CommandHandlerResult:
    reason = _rest_after_first(args)
    if not args.args or not reason:
        return CommandError(message="Usage: goal.fail <goal_id> <reason>")
    goal = core.goals.fail_goal(args.args[0], reason)
    if goal is None:
        return CommandError(message=f"Goal not found: {args.args[0]}")
    return CommandOk(message=f"Goal {goal.id} failed", payload=goal)


def _goal_cancel(core: AutonomyCore, args: CommandArgs, ctx: CommandContext) -> CommandHandlerResult:
    if not args.args:
        return CommandError(message="Goal id required")
    goal = core.goals.cancel_goal(args.args[0], _rest_after_first(args) or None)
    if goal is None:
        return CommandError(message=f"Goal not found: {args.args[0]}")
    return CommandOk(message=f"Goal {goal.id} cancelled", payload=goal)


def _goal_sync(core: AutonomyCore, args: CommandArgs, ctx: CommandContext) -> CommandHandlerResult:
    if not args.args:
        return CommandError(message="Goal id required")
    goal = core.goals.sync_goal_tasks(args.args[0])
    if goal is None:
        return CommandError(message=f"Goal not found: {args.args[0]}")
    return CommandOk(message=f"Goal {goal.id} is {goal.status}", payload=goal)


# ---------------------------------------------------------------------------
# Introspection
# ---------------------------------------------------------------------------

def _intent_recent(core: AutonomyCore, args: CommandArgs, ctx: CommandContext) -> CommandHandlerResult:
    intents = core.intents.recent(_parse_count(args, 10, 100))
    return CommandOk(message=f"Showing {len(intents)} recent intents", payload=intents)


def _guardrail_violations(core: AutonomyCore, args: CommandArgs, ctx: CommandContext) -> CommandHandlerResult:
    history = core.violations
    return CommandOk(
        message=f"{len(history)} guardrail violations on record",
        payload={"summary": history.summary(), "violations": history.recent()},
    )


def _memory_stm(core: AutonomyCore, args: CommandArgs, ctx: CommandContext) -> CommandHandlerResult:
    return CommandOk(message="STM snapshot", payload=core.stm.snapshot())


def _reflection_run(core: AutonomyCore, args: CommandArgs, ctx: CommandContext) -> CommandHandlerResult:
    reflection = core.reflection.run_tick()
    return CommandOk(message=f"Reflection created ({reflection.health})", payload=reflection)


def _reflection_recent(core: AutonomyCore, args: CommandArgs, ctx: CommandContext) -> CommandHandlerResult:
    reflections = core.reflection.recent(_parse_count(args, 5, 20))
    return CommandOk(message=f"Showing {len(reflections)} reflections", payload=reflections)


def _autonomy_status(core: AutonomyCore, args: CommandArgs, ctx: CommandContext) -> CommandHandlerResult:
    return CommandOk(message="Autonomy status", payload=core.status_report())


# ---------------------------------------------------------------------------
# Bridge
# ---------------------------------------------------------------------------

def _bridge_status(core: AutonomyCore, args: CommandArgs, ctx: CommandContext) -> CommandHandlerResult:
    return CommandOk(message="Bridge status", payload=core.bridge.status())


async def _bridge_dispatch(core: AutonomyCore, args: CommandArgs, ctx: CommandContext) -> CommandHandlerResult:
    text = args.raw_args.strip()
    if not text:
        return CommandError(message="Nothing to dispatch")
    intent = core.resolver.resolve(text)
    result = await core.bridge.invoke(intent, text)
    if result.status != "ok":
        return CommandError(message=result.message, payload=result.model_dump())
    return CommandOk(message=result.message, payload=result.model_dump())


BUILTIN_COMMANDS: list[tuple[str, str, str, Callable[..., Any]]] = [
    ("help", "List available commands", "help", _help),
    ("ping", "Return kernel status and uptime", "ping", _ping),
    ("state.snapshot", "Dump current autonomy kernel state", "state.snapshot", _state_snapshot),
    ("log.tail", "Return the latest log entries", "log.tail [n]", _log_tail),
    ("ui.theme.toggle", "Toggle the UI theme", "ui.theme.toggle", _theme_toggle),
    ("task.new", "Create a new autonomy task", "task.new <description>", _task_new),
    ("task.list", "List current autonomy tasks", "task.list", _task_list),
    ("task.inspect", "Inspect a specific task by id", "task.inspect <task_id>", _task_inspect),
    ("task.cancel", "Cancel a queued or running task", "task.cancel <task_id>", _task_cancel),
    ("task.metrics", "Show queue depth, running and last completed task", "task.metrics", _task_metrics),
    ("goal.new", "Create a goal", "goal.new <title> [| description]", _goal_new),
    ("goal.list", "List goals", "goal.list [status]", _goal_list),
    ("goal.inspect", "Inspect a goal by id", "goal.inspect <goal_id>", _goal_inspect),
    ("goal.attach", "Attach a task to a goal", "goal.attach <goal_id> <task_id>", _goal_attach),
    ("goal.complete", "Mark a goal completed", "goal.complete <goal_id> [summary]", _goal_complete),
    ("goal.fail", "Mark a goal failed", "goal.fail <goal_id> <reason>", _goal_fail),
    ("goal.cancel", "Cancel a goal and its unfinished tasks", "goal.cancel <goal_id> [reason]", _goal_cancel),
    ("goal.sync", "Re-derive goal status from its tasks", "goal.sync <goal_id>", _goal_sync),
    ("intent.recent", "Show recent intent signals", "intent.recent [n]", _intent_recent),
    ("guardrail.violations", "Show recorded guardrail violations", "guardrail.violations", _guardrail_violations),
    ("memory.stm", "Inspect short-term memory cache", "memory.stm", _memory_stm),
    ("reflection.run", "Run a reflection now", "reflection.run", _reflection_run),
    ("reflection.recent", "Show recent reflections", "reflection.recent [n]", _reflection_recent),
    ("autonomy.status", "Summarize the whole autonomy core", "autonomy.status", _autonomy_status),
    ("bridge.status", "Show dispatch bridge status", "bridge.status", _bridge_status),
    ("bridge.dispatch", "Send a command across the dispatch bridge", "bridge.dispatch <text>", _bridge_dispatch),
]


def register_builtin_commands(registry: CommandRegistry, core: AutonomyCore) -> None:
    """Register every built-in command, bound to ``core``."""
    for command_id, description, usage, handler in BUILTIN_COMMANDS:
        registry.register(
            CommandDefinition(
                id=command_id,
                description=description,
                usage=usage,
                handler=partial(handler, core),
            )
        )
