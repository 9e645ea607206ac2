"""
Wire Models — the shapes that cross the core's outer boundary.

These Pydantic models are the contract between the autonomy core and the
collaborators around it: the operation catalog it resolves intents against,
the Guardian's audit verdicts, and the results the command router hands back
to whatever front end submitted the command.

Internal state (tasks, goals, log entries) stays in dataclasses owned by each
subsystem. Only what leaves the core is modelled here.
"""

from __future__ import annotations

import time
import uuid
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field


class OperationInput(BaseModel):
    name: str
    type: str = "string"
    required: bool = False


class Operation(BaseModel):
    """One entry in the operation catalog."""

    id: str
    name: str
    description: str = ""
    inputs: list[OperationInput] = Field(default_factory=list)


class CommandIntent(BaseModel):
    """A command resolved against the operation catalog."""

    operation_id: Optional[str] = None
    summary: str = ""
    confidence: float = 0.0
    source: Literal["rule", "heuristic"] = "rule"
    arguments: dict[str, Any] = Field(default_factory=dict)


class GuardianAudit(BaseModel):
    """Verdict of the Guardian on a raw command."""

    decision: Literal["allow", "flag", "block"]
    reason: str


class GuardianAuditEntry(BaseModel):
    command: str
    timestamp: float = Field(default_factory=time.time)
    audit: GuardianAudit
    intent: Optional[CommandIntent] = None


class CommandResult(BaseModel):
    """What the router returns for one submitted command."""

    status: Literal["ok", "error", "blocked"]
    message: str = ""
    intent: Optional[CommandIntent] = None
    data: Any = None
    followups: list[str] = Field(default_factory=list)
    audit_trail: list[str] = Field(default_factory=list)


class SessionEntry(BaseModel):
    id: str = Field(default_factory=lambda: f"entry-{uuid.uuid4().hex[:12]}")
    command: str
    result: CommandResult
    created_at: float = Field(default_factory=time.time)
