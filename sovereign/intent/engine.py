"""
Intent Engine — heuristic tagging of free text.

Every command the router sees and every task the queue accepts is turned into
an IntentSignal: a coarse kind (diagnostic, build, research, ...) plus a
confidence number. This is keyword matching, not language understanding, and
the confidence is a deliberately conservative length-based placeholder.

Signals are kept in a bounded newest-first history for the reflection engine,
and each one is run past the guardrails as it is recorded.
"""

from __future__ import annotations

import re
import time
import uuid
from collections import deque
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Literal, Optional

import structlog

from sovereign.config import IntentConfig

if TYPE_CHECKING:
    from sovereign.harness.guardrails import GuardrailEngine
    from sovereign.kernel import Kernel
    from sovereign.tasks.engine import Task

logger = structlog.get_logger(__name__)

IntentKind = Literal["diagnostic", "build", "research", "sync", "maintenance", "sovereign"]
IntentSource = Literal["command", "task", "system"]

DEFAULT_INTENT_KIND: IntentKind = "research"

# Ordered: the first pattern that matches decides the kind.
INTENT_RULES: list[tuple[re.Pattern[str], IntentKind]] = [
    (re.compile(r"(diagnostic|status|health|check)"), "diagnostic"),
    (re.compile(r"(build|compile|bundle)"), "build"),
    (re.compile(r"(research|investigate|explore|analy[sz]e)"), "research"),
    (re.compile(r"(sync|align|reconcile)"), "sync"),
    (re.compile(r"(maintain|cleanup|upgrade|patch)"), "maintenance"),
    (re.compile(r"(sovereign|guardrail|safety|policy)"), "sovereign"),
]


def detect_intent_kind(text: str) -> IntentKind:
    lowered = text.lower()
    for pattern, kind in INTENT_RULES:
        if pattern.search(lowered):
            return kind
    return DEFAULT_INTENT_KIND


def score_confidence(text: str) -> float:
    """Length-based placeholder. Not calibrated against anything."""
    length = len(text.strip())
    if length > 160:
        return 0.62
    if length > 80:
        return 0.55
    return 0.48


@dataclass
class IntentSignal:
    id: str
    kind: IntentKind
    confidence: float
    source: IntentSource
    text: str
    created_at: float = field(default_factory=time.time)
    meta: dict[str, Any] = field(default_factory=dict)


def _intent_id() -> str:
    return f"intent-{uuid.uuid4().hex[:12]}"


class IntentEngine:
    """Classifies text into IntentSignals and keeps a bounded history."""

    def __init__(
        self,
        kernel: Kernel,
        guardrails: GuardrailEngine,
        config: Optional[IntentConfig] = None,
    ):
        self._kernel = kernel
        self._guardrails = guardrails
        self._config = config or IntentConfig()
        self._intents: deque[IntentSignal] = deque(maxlen=self._config.max_intents)
        logger.info("intent_engine.initialized", max_intents=self._config.max_intents)

    def _record(self, intent: IntentSignal) -> IntentSignal:
        self._intents.appendleft(intent)
        self._kernel.log_info("intent.engine", f"Intent recorded ({intent.kind})", {"intent": intent})
        self._guardrails.handle_violation(self._guardrails.check_intent(intent))
        return intent

    def analyze_command(self, command_id: str, text: str) -> IntentSignal:
        """Classify a command. The id takes part in the kind, not the confidence."""
        return self._record(
            IntentSignal(
                id=_intent_id(),
                kind=detect_intent_kind(f"{command_id} {text}"),
                confidence=score_confidence(text),
                source="command",
                text=text,
                meta={"command_id": command_id},
            )
        )

    def analyze_task(self, task: Task) -> IntentSignal:
        description = task.payload.description
        return self._record(
            IntentSignal(
                id=_intent_id(),
                kind=detect_intent_kind(description),
                confidence=score_confidence(description),
                source="task",
                text=description,
                meta={"task_id": task.id},
            )
        )

    def analyze_system(self, text: str, meta: Optional[dict[str, Any]] = None) -> IntentSignal:
        return self._record(
            IntentSignal(
                id=_intent_id(),
                kind=detect_intent_kind(text),
                confidence=score_confidence(text),
                source="system",
                text=text,
                meta=dict(meta or {}),
            )
        )

    def recent(self, limit: int = 20) -> list[IntentSignal]:
        """Newest first."""
        return list(self._intents)[: max(0, limit)]

    def __len__(self) -> int:
        return len(self._intents)
