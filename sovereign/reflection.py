"""
Reflection Engine — the core's periodic look at itself.

Every few minutes (and whenever asked) the engine reads the already-bounded
views the other subsystems keep and condenses them into one Reflection:

1. LOG SUMMARY: errors in the recent kernel log, else warnings, else stable
2. NOTES: last kernel error, the task picture, the latest intent, violations
3. SUGGESTED ACTIONS: what an operator might do next
4. HEALTH: ok, warning or error

Reflections are kept newest-first in a bounded history. Nothing here can fail
on its own account: the engine only reads snapshots and writes one log line.
"""

from __future__ import annotations

import re
import time
import uuid
from collections import deque
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal, Optional

import structlog

from sovereign.config import ReflectionConfig
from sovereign.events import EventBus, ReflectionCreatedEvent
from sovereign.scheduler import PeriodicTask

if TYPE_CHECKING:
    from sovereign.intent.engine import IntentEngine
    from sovereign.kernel import Kernel, LogEntry
    from sovereign.memory.stm import ShortTermMemory
    from sovereign.memory.violations import ViolationHistory
    from sovereign.tasks.engine import TaskEngine

logger = structlog.get_logger(__name__)

ReflectionHealth = Literal["ok", "warning", "error"]

_WARNING_NOTE_RE = re.compile(r"warning", re.IGNORECASE)


@dataclass
class Reflection:
    id: str
    health: ReflectionHealth
    notes: list[str] = field(default_factory=list)
    suggested_actions: list[str] = field(default_factory=list)
    created_at: float = field(default_factory=time.time)


def summarize_logs(entries: list[LogEntry]) -> str:
    errors = [entry for entry in entries if entry.level == "error"]
    if errors:
        sources = list(dict.fromkeys(entry.source for entry in errors))[:3]
        return f"Recent errors: {', '.join(sources)}"
    warnings = [entry for entry in entries if entry.level == "warn"]
    if warnings:
        return f"Warnings observed: {len(warnings)}"
    return "Kernel logs stable"


def classify_health(notes: list[str], violation_count: int, has_error: bool) -> ReflectionHealth:
    if has_error or violation_count > 2:
        return "error"
    if violation_count > 0:
        return "warning"
    if any(_WARNING_NOTE_RE.search(note) for note in notes):
        return "warning"
    return "ok"


class ReflectionEngine:
    def __init__(
        self,
        kernel: Kernel,
        intents: IntentEngine,
        stm: ShortTermMemory,
        tasks: TaskEngine,
        violations: ViolationHistory,
        config: Optional[ReflectionConfig] = None,
        events: Optional[EventBus] = None,
    ):
        self._kernel = kernel
        self._intents = intents
        self._stm = stm
        self._tasks = tasks
        self._violations = violations
        self._config = config or ReflectionConfig()
        self._events = events
        self._reflections: deque[Reflection] = deque(maxlen=self._config.max_reflections)
        self._ticker = PeriodicTask("reflection", self._config.interval, self.run_tick)

    def run_tick(self) -> Reflection:
        intents = self._intents.recent(5)
        memory = self._stm.snapshot()
        tasks = self._tasks.list_tasks()[:5]
        violation_count = len(self._violations)

        notes = [summarize_logs(self._kernel.recent_entries(self._config.log_window))]
        if memory.last_kernel_error is not None:
            notes.append(f"Last error: {memory.last_kernel_error.message}")
        running = next((task for task in tasks if task.status == "running"), None)
        if not tasks:
            notes.append("No tasks in queue.")
        elif running is not None:
            notes.append(f"Active task: {running.payload.description}")
        if intents:
            notes.append(f"Recent intent: {intents[0].kind} ({intents[0].text[:60]})")
        if violation_count:
            notes.append(f"Guardrail violations: {violation_count}")

        suggested: list[str] = []
        if violation_count:
            suggested.append("Review guardrail violations")
        if running is None:
            suggested.append("Consider scheduling a health check task")
        if memory.last_kernel_error is None and not violation_count:
            suggested.append("Maintain steady state and monitor intents")

        reflection = Reflection(
            id=f"reflection-{uuid.uuid4().hex[:12]}",
            health=classify_health(notes, violation_count, memory.last_kernel_error is not None),
            notes=notes,
            suggested_actions=suggested,
        )
        self._reflections.appendleft(reflection)
        self._kernel.log_info(
            "autonomy.reflection",
            f"Reflection created ({reflection.health})",
            {"reflection": reflection},
        )
        if self._events is not None:
            self._events.emit(
                ReflectionCreatedEvent(reflection_id=reflection.id, health=reflection.health)
            )
        return reflection

    def recent(self, limit: int = 5) -> list[Reflection]:
        return list(self._reflections)[: max(0, limit)]

    async def start(self) -> None:
        await self._ticker.start()

    async def stop(self) -> None:
        await self._ticker.stop()

    @property
    def is_running(self) -> bool:
        return self._ticker.is_running

    def __len__(self) -> int:
        return len(self._reflections)
