"""
Command Router — the front door of the autonomy core.

Every raw command a front end submits goes through handle():

1. ANNOUNCE: emit command.received
2. CLASSIFY: record an IntentSignal for the command
3. RESOLVE: map the text onto the operation catalog
4. AUDIT: ask the Guardian, emit command.audited
5. EXECUTE: unless blocked, run it through the command executor; a flag
   reason is appended to the result's audit trail
6. RECORD: keep a bounded session entry, emit command.result

A blocked command never reaches the executor, so it does not move the
command counter or short-term memory.
"""

from __future__ import annotations

from collections import deque
from typing import TYPE_CHECKING, Callable, Optional

import structlog

from sovereign.commands.executor import parse_input
from sovereign.config import RouterConfig
from sovereign.events import CommandAuditedEvent, CommandReceivedEvent, CommandResultEvent
from sovereign.models import CommandResult, SessionEntry

if TYPE_CHECKING:
    from sovereign.commands.executor import CommandExecutor
    from sovereign.commands.registry import CommandContext
    from sovereign.events import EventBus
    from sovereign.guardian import Guardian
    from sovereign.intent.engine import IntentEngine
    from sovereign.intent.resolver import IntentResolver

logger = structlog.get_logger(__name__)


class CommandRouter:
    def __init__(
        self,
        executor: CommandExecutor,
        resolver: IntentResolver,
        guardian: Guardian,
        intents: IntentEngine,
        events: EventBus,
        context_factory: Callable[[], CommandContext],
        config: Optional[RouterConfig] = None,
    ):
        self._executor = executor
        self._resolver = resolver
        self._guardian = guardian
        self._intents = intents
        self._events = events
        self._context_factory = context_factory
        self._config = config or RouterConfig()
        self._history: deque[SessionEntry] = deque(maxlen=self._config.max_session_entries)

    async def handle(self, raw: str) -> SessionEntry:
        self._events.emit(CommandReceivedEvent(input=raw))

        command_id, args = parse_input(raw)
        if command_id:
            self._intents.analyze_command(command_id, args.raw_args)

        intent = self._resolver.resolve(raw)
        audit = self._guardian.audit_command(raw, intent)
        self._events.emit(CommandAuditedEvent(command=raw, audit=audit))

        if audit.decision == "block":
            result = CommandResult(
                status="blocked",
                message=audit.reason,
                intent=intent,
                audit_trail=[audit.reason],
            )
        else:
            outcome = await self._executor.execute(raw, self._context_factory())
            result = CommandResult(
                status=outcome.status,
                message=outcome.message,
                intent=intent,
                data=outcome.payload,
                followups=list(outcome.followups),
            )
            if audit.decision == "flag":
                result.audit_trail.append(audit.reason)

        entry = SessionEntry(command=raw, result=result)
        self._history.appendleft(entry)
        self._events.emit(CommandResultEvent(entry=entry))
        logger.debug("router.handled", command_id=command_id, status=result.status)
        return entry

    def history(self, limit: Optional[int] = None) -> list[SessionEntry]:
        """Newest first."""
        entries = list(self._history)
        return entries if limit is None else entries[: max(0, limit)]

    def clear(self) -> None:
        self._history.clear()
