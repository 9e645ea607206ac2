"""
Guardrails — the advisory policy layer of the autonomy core.

Every time the core creates something that could act on the world (an intent,
a goal, a task) it asks the guardrails whether the text looks destructive or
risky. The answer is either nothing, or a severity-tagged violation record.

Guardrails never block. They record and surface: violations go into a bounded
history and a warning lands in the kernel log, where the reflection engine
picks them up and degrades reported health. Blocking is a separate decision
made by the Guardian at the router layer, based on the raw command text.

The policy set is a small ordered rule table per subject. Rules are evaluated
in order and the first match wins, so the table order is part of the policy.
"""

from __future__ import annotations

import re
import time
import uuid
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Literal, Optional

import structlog

from sovereign.config import GuardrailConfig
from sovereign.memory.violations import ViolationHistory

if TYPE_CHECKING:
    from sovereign.goals.planner import Goal
    from sovereign.intent.engine import IntentSignal
    from sovereign.kernel import Kernel
    from sovereign.tasks.engine import Task

logger = structlog.get_logger(__name__)

Severity = Literal["low", "medium", "high"]

# Checked as lowercased substrings.
DESTRUCTIVE_KEYWORDS: tuple[str, ...] = (
    "delete repository",
    "wipe",
    "destroy",
    "format",
    "rm -rf",
    "drop database",
    "erase",
)

_SOVEREIGN_SCOPE_RE = re.compile(r"(sovereign|system|kernel|infrastructure)")


def is_destructive(text: str) -> bool:
    lowered = text.lower()
    return any(keyword in lowered for keyword in DESTRUCTIVE_KEYWORDS)


@dataclass(frozen=True)
class GuardrailViolation:
    """A single advisory policy hit."""
    id: str
    created_at: float
    severity: Severity
    rule: str
    context: str


@dataclass(frozen=True)
class GuardrailRule:
    """
    One row of a policy table.

    ``matches`` decides whether the rule fires for a subject; ``context``
    extracts the excerpt stored on the violation.
    """
    rule: str
    severity: Severity
    matches: Callable[[object], bool]
    context: Callable[[object], str]


def _goal_text(goal: Goal) -> str:
    return f"{goal.title} {goal.description or ''}".lower()


def build_violation(severity: Severity, rule: str, context: str) -> GuardrailViolation:
    return GuardrailViolation(
        id=f"violation-{uuid.uuid4().hex[:12]}",
        created_at=time.time(),
        severity=severity,
        rule=rule,
        context=context,
    )


class GuardrailEngine:
    """
    Pure evaluators plus one side-effecting sink.

    check_intent / check_goal / check_task only read their subject and return
    a violation or None. handle_violation is the single place where a
    violation is recorded and logged.
    """

    def __init__(
        self,
        kernel: Kernel,
        history: ViolationHistory,
        config: Optional[GuardrailConfig] = None,
    ):
        self._kernel = kernel
        self._history = history
        self._config = config or GuardrailConfig()

        max_len = self._config.max_task_description_length
        excerpt = self._config.oversized_context_chars

        self._intent_rules: list[GuardrailRule] = [
            GuardrailRule(
                rule="destructive-intent",
                severity="high",
                matches=lambda intent: is_destructive(intent.text),
                context=lambda intent: intent.text,
            ),
        ]
        self._goal_rules: list[GuardrailRule] = [
            GuardrailRule(
                rule="destructive-goal",
                severity="high",
                matches=lambda goal: is_destructive(_goal_text(goal)),
                context=lambda goal: goal.title,
            ),
            GuardrailRule(
                rule="missing-description",
                severity="medium",
                matches=lambda goal: (
                    _SOVEREIGN_SCOPE_RE.search(_goal_text(goal)) is not None
                    and not goal.description
                ),
                context=lambda goal: goal.title,
            ),
        ]
        self._task_rules: list[GuardrailRule] = [
            GuardrailRule(
                rule="task-too-large",
                severity="medium",
                matches=lambda task: len(task.payload.description) > max_len,
                context=lambda task: task.payload.description[:excerpt],
            ),
            GuardrailRule(
                rule="destructive-task",
                severity="high",
                matches=lambda task: is_destructive(task.payload.description),
                context=lambda task: task.payload.description,
            ),
        ]

        logger.info(
            "guardrails.initialized",
            destructive_keywords=len(DESTRUCTIVE_KEYWORDS),
            max_task_description_length=max_len,
        )

    @staticmethod
    def _evaluate(rules: list[GuardrailRule], subject: object) -> Optional[GuardrailViolation]:
        for rule in rules:
            if rule.matches(subject):
                return build_violation(rule.severity, rule.rule, rule.context(subject))
        return None

    def check_intent(self, intent: IntentSignal) -> Optional[GuardrailViolation]:
        return self._evaluate(self._intent_rules, intent)

    def check_goal(self, goal: Goal) -> Optional[GuardrailViolation]:
        return self._evaluate(self._goal_rules, goal)

    def check_task(self, task: Task) -> Optional[GuardrailViolation]:
        return self._evaluate(self._task_rules, task)

    def handle_violation(self, violation: Optional[GuardrailViolation]) -> None:
        """Record and surface a violation. A None verdict is a no-op."""
        if violation is None:
            return
        self._history.record(violation)
        self._kernel.log_warn(
            "sovereign.guardrails",
            f"{violation.rule} ({violation.severity})",
            {"violation": violation},
        )

    @property
    def history(self) -> ViolationHistory:
        return self._history
