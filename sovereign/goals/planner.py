"""
Goal Planner — higher-level objectives that own tasks.

A goal is a title plus an optional description. When a goal is created the
planner runs its text past a small ordered template table; the first template
that matches spawns one concrete task and the goal becomes active. Goals
without a matching template stay pending until a task is attached by hand.

Goal status only loosely follows the tasks it owns. sync_goal_tasks() will
demote an active goal whose tasks have all finished back to pending, but it
never completes a goal: completion, failure and cancellation are explicit
decisions made by whoever drives the planner.

Task references on a goal are weak: they are ids, and a missing task is
simply skipped when the goal is synced.
"""

from __future__ import annotations

import re
import time
import uuid
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal, Optional

import structlog

from sovereign.tasks.engine import ACTIVE_STATUSES

if TYPE_CHECKING:
    from sovereign.harness.guardrails import GuardrailEngine
    from sovereign.intent.engine import IntentSignal
    from sovereign.kernel import Kernel
    from sovereign.tasks.engine import TaskEngine

logger = structlog.get_logger(__name__)

GoalStatus = Literal["pending", "active", "completed", "failed", "cancelled"]
GOAL_STATUSES: tuple[str, ...] = ("pending", "active", "completed", "failed", "cancelled")

# Ordered: only the first matching template spawns a task.
GOAL_TEMPLATES: list[tuple[re.Pattern[str], str]] = [
    (
        re.compile(r"(analy[sz]e|review).*(log|activity)"),
        "Analyze recent autonomy logs for anomalies",
    ),
    (
        re.compile(r"(snapshot|capture).*(state|status)"),
        "Capture current kernel and task state snapshot",
    ),
    (
        re.compile(r"(stabilize|steady|idle)"),
        "Ensure system reaches a stable idle state",
    ),
]


def match_template(title: str, description: Optional[str] = None) -> Optional[str]:
    """Task description for the first template the goal text matches."""
    text = f"{title} {description or ''}".lower()
    for pattern, task_description in GOAL_TEMPLATES:
        if pattern.search(text):
            return task_description
    return None


@dataclass
class Goal:
    id: str
    title: str
    description: Optional[str] = None
    status: GoalStatus = "pending"
    intent: Optional[IntentSignal] = None
    tasks: list[str] = field(default_factory=list)
    result_summary: Optional[str] = None
    created_at: float = field(default_factory=time.time)
    updated_at: float = field(default_factory=time.time)

    def touch(self) -> None:
        self.updated_at = time.time()


class GoalPlanner:
    """Creates goals, derives tasks from them, and tracks their status."""

    def __init__(self, kernel: Kernel, guardrails: GuardrailEngine, tasks: TaskEngine):
        self._kernel = kernel
        self._guardrails = guardrails
        self._tasks = tasks
        self._goals: dict[str, Goal] = {}

    def create_goal(
        self,
        title: str,
        description: Optional[str] = None,
        intent: Optional[IntentSignal] = None,
    ) -> Goal:
        goal = Goal(
            id=f"goal-{uuid.uuid4().hex[:12]}",
            title=title,
            description=description,
            intent=intent,
        )
        self._goals[goal.id] = goal
        self._guardrails.handle_violation(self._guardrails.check_goal(goal))
        self._kernel.log_info("goals.planner", f"Goal created ({goal.id})", {"goal": goal})

        task_description = match_template(title, description)
        if task_description is not None:
            task = self._tasks.create_task(task_description, {"goal_id": goal.id})
            goal.tasks.append(task.id)
            goal.status = "active"
            goal.touch()
            self._kernel.log_info(
                "goals.planner",
                f"Auto-task created for goal {goal.id}",
                {"task_id": task.id},
            )
        return goal

    def attach_task(self, goal_id: str, task_id: str) -> Optional[Goal]:
        goal = self._goals.get(goal_id)
        if goal is None:
            return None
        if task_id not in goal.tasks:
            goal.tasks.append(task_id)
            if goal.status == "pending":
                goal.status = "active"
            goal.touch()
            self._kernel.log_info("goals.planner", f"Task {task_id} attached to goal {goal_id}")
        return goal

    def complete_goal(self, goal_id: str, summary: Optional[str] = None) -> Optional[Goal]:
        goal = self._goals.get(goal_id)
        if goal is None:
            return None
        goal.status = "completed"
        goal.result_summary = summary
        goal.touch()
        self._kernel.log_info(
            "goals.planner", f"Goal {goal_id} completed", {"result_summary": summary}
        )
        return goal

    def fail_goal(self, goal_id: str, reason: str) -> Optional[Goal]:
        goal = self._goals.get(goal_id)
        if goal is None:
            return None
        goal.status = "failed"
        goal.result_summary = reason
        goal.touch()
        self._kernel.log_warn("goals.planner", f"Goal {goal_id} failed", {"reason": reason})
        return goal

    def cancel_goal(self, goal_id: str, reason: Optional[str] = None) -> Optional[Goal]:
        """Cancel the goal and every task of it that has not finished yet."""
        goal = self._goals.get(goal_id)
        if goal is None:
            return None
        cancelled: list[str] = []
        for task_id in goal.tasks:
            task = self._tasks.inspect_task(task_id)
            if task is not None and task.status in ACTIVE_STATUSES:
                if self._tasks.cancel_task(task_id):
                    cancelled.append(task_id)
        goal.status = "cancelled"
        goal.result_summary = reason
        goal.touch()
        self._kernel.log_info(
            "goals.planner",
            f"Goal {goal_id} cancelled",
            {"reason": reason, "cancelled_tasks": cancelled},
        )
        return goal

    def list_goals(self, status: Optional[str] = None) -> list[Goal]:
        """Newest first, optionally filtered by status."""
        goals = list(reversed(self._goals.values()))
        if status:
            goals = [goal for goal in goals if goal.status == status]
        return goals

    def get_goal(self, goal_id: str) -> Optional[Goal]:
        return self._goals.get(goal_id)

    def sync_goal_tasks(self, goal_id: str) -> Optional[Goal]:
        """Demote an active goal with no queued or running task back to pending."""
        goal = self._goals.get(goal_id)
        if goal is None:
            return None
        resolved = [self._tasks.inspect_task(task_id) for task_id in goal.tasks]
        has_active = any(task is not None and task.status in ACTIVE_STATUSES for task in resolved)
        if not has_active and goal.status == "active":
            goal.status = "pending"
            logger.debug("goal_planner.demoted", goal_id=goal_id)
        goal.touch()
        return goal

    def __len__(self) -> int:
        return len(self._goals)
