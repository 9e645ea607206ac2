"""
Guardian — the router's allow / flag / block gate.

Where the guardrails are advisory and look at what the core creates, the
Guardian looks at raw command text before anything runs, and its verdict is
binding:

- BLOCK: the text carries a destructive signature; the command never reaches
  the executor
- FLAG: the command runs, but the reason travels with the result
- ALLOW: nothing to report

Every verdict is kept in a bounded, newest-first audit trail.
"""

from __future__ import annotations

import re
from collections import deque
from typing import Optional

import structlog

from sovereign.config import RouterConfig
from sovereign.models import CommandIntent, GuardianAudit, GuardianAuditEntry

logger = structlog.get_logger(__name__)

DESTRUCTIVE_SIGNATURES: tuple[re.Pattern[str], ...] = (
    re.compile(r"rm -rf", re.IGNORECASE),
    re.compile(r"shutdown", re.IGNORECASE),
    re.compile(r"drop\s+table", re.IGNORECASE),
    re.compile(r"format\s+drive", re.IGNORECASE),
)

SYSTEM_WRITE_KEYWORDS: tuple[str, ...] = ("delete", "remove", "overwrite", "reset", "purge")


class GuardianPolicies:
    """Pure policy evaluation. Checks run in order; the first hit decides."""

    def evaluate(self, command: str, intent: Optional[CommandIntent] = None) -> GuardianAudit:
        if self.is_destructive(command):
            return GuardianAudit(
                decision="block", reason="Destructive command detected by Guardian policies."
            )
        if intent is None or not intent.operation_id:
            return GuardianAudit(
                decision="flag", reason="Intent validation required before execution."
            )
        if self.requires_confirmation(command, intent):
            return GuardianAudit(
                decision="flag", reason="Potential system write detected. Confirmation required."
            )
        return GuardianAudit(decision="allow", reason="Guardian policies satisfied.")

    @staticmethod
    def is_destructive(command: str) -> bool:
        return any(pattern.search(command) for pattern in DESTRUCTIVE_SIGNATURES)

    @staticmethod
    def requires_confirmation(command: str, intent: CommandIntent) -> bool:
        normalized = f"{intent.operation_id} {command}".lower()
        return any(keyword in normalized for keyword in SYSTEM_WRITE_KEYWORDS)


class GuardianAuditor:
    def __init__(self, max_entries: int = 50):
        self._entries: deque[GuardianAuditEntry] = deque(maxlen=max_entries)

    def record(
        self, command: str, audit: GuardianAudit, intent: Optional[CommandIntent] = None
    ) -> GuardianAudit:
        self._entries.appendleft(GuardianAuditEntry(command=command, audit=audit, intent=intent))
        return audit

    def recent(self, limit: int = 10) -> list[GuardianAuditEntry]:
        return list(self._entries)[: max(0, limit)]

    def __len__(self) -> int:
        return len(self._entries)


class Guardian:
    """Policies plus the auditor that remembers their verdicts."""

    def __init__(
        self,
        config: Optional[RouterConfig] = None,
        policies: Optional[GuardianPolicies] = None,
    ):
        self._config = config or RouterConfig()
        self._policies = policies or GuardianPolicies()
        self._auditor = GuardianAuditor(self._config.max_audit_entries)

    def audit_command(self, command: str, intent: Optional[CommandIntent] = None) -> GuardianAudit:
        audit = self._policies.evaluate(command, intent)
        if audit.decision != "allow":
            logger.info(
                "guardian.verdict",
                decision=audit.decision,
                reason=audit.reason,
                command=command[:80],
            )
        return self._auditor.record(command, audit, intent)

    def audit_trail(self, limit: int = 10) -> list[GuardianAuditEntry]:
        return self._auditor.recent(limit)
