"""
Autonomy Core — the composition root.

This module builds every subsystem exactly once, hands each one the
collaborators it needs, and exposes the handful of entry points a front end
uses. Nothing in the package holds module-level state: two AutonomyCore
instances in the same process share nothing.

Wiring order (bottom to top):
    1. Event bus and kernel
    2. Violation history and guardrails
    3. Short-term memory and intent classification
    4. Task engine, its worker, and the goal planner
    5. Command registry, built-ins, executor and intent resolver
    6. Reflection, Guardian, dispatch bridge
    7. Command router
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

import structlog

from sovereign.bridge import BridgeStatus, DispatchBridge
from sovereign.commands.builtin import register_builtin_commands
from sovereign.commands.executor import CommandExecutor
from sovereign.commands.registry import CommandContext, CommandHandlerResult, CommandRegistry
from sovereign.config import SovereignConfig
from sovereign.events import EventBus
from sovereign.goals.planner import GoalPlanner
from sovereign.guardian import Guardian
from sovereign.harness.guardrails import GuardrailEngine
from sovereign.intent.engine import IntentEngine
from sovereign.intent.resolver import IntentResolver
from sovereign.kernel import Kernel
from sovereign.memory.stm import ShortTermMemory
from sovereign.memory.violations import ViolationHistory
from sovereign.models import SessionEntry
from sovereign.reflection import Reflection, ReflectionEngine
from sovereign.router import CommandRouter
from sovereign.tasks.engine import TaskEngine, TaskMetrics, TaskRunner
from sovereign.tasks.worker import TaskWorker

logger = structlog.get_logger(__name__)


@dataclass
class AutonomyStatus:
    """One-glance summary of the whole core."""
    session_id: str
    uptime_seconds: float
    command_count: int
    log_size: int
    tasks: TaskMetrics
    goal_counts: dict[str, int]
    intent_count: int
    violations: dict[str, int]
    last_reflection: Optional[Reflection]
    worker_running: bool
    reflection_running: bool
    bridge: BridgeStatus


class AutonomyCore:
    def __init__(
        self,
        config: Optional[SovereignConfig] = None,
        *,
        task_runner: Optional[TaskRunner] = None,
    ):
        self.config = config or SovereignConfig()
        self._theme = "dark"

        self.events = EventBus()
        self.kernel = Kernel(self.config.kernel)
        self.violations = ViolationHistory(self.config.guardrails.max_violations)
        self.guardrails = GuardrailEngine(self.kernel, self.violations, self.config.guardrails)
        self.stm = ShortTermMemory(self.config.memory)
        self.intents = IntentEngine(self.kernel, self.guardrails, self.config.intent)
        self.tasks = TaskEngine(
            self.kernel,
            self.intents,
            self.guardrails,
            self.stm,
            self.config.tasks,
            runner=task_runner,
            events=self.events,
        )
        self.worker = TaskWorker(self.tasks, self.config.tasks)
        self.goals = GoalPlanner(self.kernel, self.guardrails, self.tasks)

        self.registry = CommandRegistry()
        register_builtin_commands(self.registry, self)
        self.executor = CommandExecutor(self.registry, self.kernel, self.stm)
        self.resolver = IntentResolver(self.registry.as_operations())

        self.reflection = ReflectionEngine(
            self.kernel,
            self.intents,
            self.stm,
            self.tasks,
            self.violations,
            self.config.reflection,
            events=self.events,
        )
        self.guardian = Guardian(self.config.router)
        self.bridge = DispatchBridge(self.kernel)
        self.router = CommandRouter(
            self.executor,
            self.resolver,
            self.guardian,
            self.intents,
            self.events,
            self.make_context,
            self.config.router,
        )

        logger.info(
            "autonomy_core.initialized",
            session_id=self.kernel.session_id,
            commands=len(self.registry),
        )

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def start(self) -> None:
        await self.worker.start()
        await self.reflection.start()
        self.kernel.log_info("autonomy.core", "Autonomy core started")

    async def stop(self) -> None:
        await self.worker.stop()
        await self.reflection.stop()
        self.kernel.log_info("autonomy.core", "Autonomy core stopped")

    async def __aenter__(self) -> AutonomyCore:
        await self.start()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.stop()

    # -------------------------------------------------------------------------
    # Entry points
    # -------------------------------------------------------------------------

    def toggle_theme(self) -> None:
        self._theme = "light" if self._theme == "dark" else "dark"

    @property
    def theme(self) -> str:
        return self._theme

    def make_context(self) -> CommandContext:
        return CommandContext(
            session_id=self.kernel.session_id,
            get_kernel_state=self.kernel.get_state,
            toggle_theme=self.toggle_theme,
        )

    async def execute(self, text: str) -> CommandHandlerResult:
        """Run a command straight through the executor, skipping the Guardian."""
        return await self.executor.execute(text, self.make_context())

    async def handle(self, raw: str) -> SessionEntry:
        """Run a command through the router: audit first, then execute."""
        return await self.router.handle(raw)

    def status_report(self) -> AutonomyStatus:
        goal_counts: dict[str, int] = {}
        for goal in self.goals.list_goals():
            goal_counts[goal.status] = goal_counts.get(goal.status, 0) + 1
        recent = self.reflection.recent(1)
        return AutonomyStatus(
            session_id=self.kernel.session_id,
            uptime_seconds=self.kernel.uptime_seconds,
            command_count=self.kernel.command_count,
            log_size=self.kernel.log_size,
            tasks=self.tasks.task_metrics(),
            goal_counts=goal_counts,
            intent_count=len(self.intents),
            violations=self.violations.summary(),
            last_reflection=recent[0] if recent else None,
            worker_running=self.worker.is_running,
            reflection_running=self.reflection.is_running,
            bridge=self.bridge.status(),
        )
