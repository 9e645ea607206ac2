"""Bounded, newest-first record of guardrail violations."""

from __future__ import annotations

from collections import deque
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from sovereign.harness.guardrails import GuardrailViolation

logger = structlog.get_logger(__name__)

SEVERITIES = ("low", "medium", "high")


class ViolationHistory:
    """
    Append-only violation history with a fixed cap.

    New violations go to the front; once the cap is reached the oldest
    violation falls off the back.
    """

    def __init__(self, max_violations: int = 20):
        self._max = max(1, int(max_violations))
        self._violations: deque[GuardrailViolation] = deque(maxlen=self._max)
        logger.info("violation_history.initialized", max_violations=self._max)

    def record(self, violation: GuardrailViolation) -> None:
        self._violations.appendleft(violation)

    def recent(self, limit: int | None = None) -> list[GuardrailViolation]:
        """Newest first. ``None`` returns the whole bounded history."""
        items = list(self._violations)
        if limit is None:
            return items
        return items[: max(0, limit)]

    def summary(self) -> dict[str, int]:
        """Count of violations per severity."""
        counts = {severity: 0 for severity in SEVERITIES}
        for violation in self._violations:
            counts[violation.severity] = counts.get(violation.severity, 0) + 1
        return counts

    @property
    def capacity(self) -> int:
        return self._max

    def __len__(self) -> int:
        return len(self._violations)
