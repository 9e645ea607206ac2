"""
Event Bus — fire-and-forget notifications out of the core.

Typed events are Pydantic models. emit() fans an event out, synchronously and
in subscription order, to every handler whose fnmatch-style pattern matches
the event type. Nothing is acknowledged and nothing is queued: by the time
emit() returns, every synchronous handler has run.

Handler failures are logged and swallowed so that an observer can never break
the component that emitted. Coroutine handlers are scheduled on the running
loop; without a running loop they are closed and skipped.
"""

from __future__ import annotations

import asyncio
import fnmatch as _fnmatch_mod
import re
import uuid
from typing import Any, Callable, Coroutine

import structlog
from pydantic import BaseModel

from sovereign.models import GuardianAudit, SessionEntry

logger = structlog.get_logger(__name__)

EventHandler = Callable[["SovereignEvent"], Any] | Callable[["SovereignEvent"], Coroutine[Any, Any, Any]]

# "HTTPSRequest" → ["HTTPS", "Request"], "CommandReceived" → ["Command", "Received"]
_CAMEL_SPLIT_RE = re.compile(r"[A-Z]+(?=[A-Z][a-z]|\d|\b)|[A-Z][a-z]*")


class SovereignEvent(BaseModel):
    """Base class for all events the core emits."""

    event_type: str = ""

    def model_post_init(self, __context: Any) -> None:
        if not self.event_type:
            name = type(self).__name__.removesuffix("Event")
            parts = _CAMEL_SPLIT_RE.findall(name)
            self.event_type = ".".join(p.lower() for p in parts) if parts else name.lower()


class _Subscription:
    __slots__ = ("sub_id", "pattern", "handler", "_compiled")

    def __init__(self, sub_id: str, pattern: str, handler: EventHandler) -> None:
        self.sub_id = sub_id
        self.pattern = pattern
        self.handler = handler
        self._compiled: re.Pattern[str] = re.compile(_fnmatch_mod.translate(pattern))

    def matches(self, event_type: str) -> bool:
        return self._compiled.match(event_type) is not None


class EventBus:
    """Synchronous typed event bus with wildcard subscriptions.

    Pattern matching uses fnmatch-style wildcards:
      "command.*"  matches "command.received", "command.audited", "command.result"
      "*"          matches everything
    """

    def __init__(self) -> None:
        self._subscriptions: dict[str, _Subscription] = {}
        self._pending: set[asyncio.Task] = set()
        self._emitted = 0

    def subscribe(self, pattern: str, handler: EventHandler) -> str:
        """Returns a subscription ID that can be passed to unsubscribe()."""
        sub_id = uuid.uuid4().hex[:12]
        self._subscriptions[sub_id] = _Subscription(sub_id, pattern, handler)
        logger.debug("event_bus.subscribed", pattern=pattern, sub_id=sub_id)
        return sub_id

    def unsubscribe(self, subscription_id: str) -> bool:
        removed = self._subscriptions.pop(subscription_id, None)
        if removed:
            logger.debug("event_bus.unsubscribed", sub_id=subscription_id)
        return removed is not None

    def emit(self, event: SovereignEvent) -> None:
        self._emitted += 1
        for sub in list(self._subscriptions.values()):
            if sub.matches(event.event_type):
                self._invoke_handler(sub, event)

    def _invoke_handler(self, sub: _Subscription, event: SovereignEvent) -> None:
        try:
            result = sub.handler(event)
        except Exception:
            logger.error(
                "event_bus.handler_error",
                pattern=sub.pattern,
                event_type=event.event_type,
                exc_info=True,
            )
            return
        if asyncio.iscoroutine(result):
            try:
                task = asyncio.get_running_loop().create_task(self._await_handler(sub, event, result))
            except RuntimeError:
                result.close()
                logger.warning("event_bus.no_running_loop", event_type=event.event_type)
                return
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)

    @staticmethod
    async def _await_handler(sub: _Subscription, event: SovereignEvent, coro: Coroutine) -> None:
        try:
            await coro
        except Exception:
            logger.error(
                "event_bus.handler_error",
                pattern=sub.pattern,
                event_type=event.event_type,
                exc_info=True,
            )

    async def drain(self) -> None:
        """Wait for scheduled coroutine handlers to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    @property
    def subscription_count(self) -> int:
        return len(self._subscriptions)

    @property
    def emitted_count(self) -> int:
        return self._emitted


# ---------------------------------------------------------------------------
# Event Definitions
# ---------------------------------------------------------------------------

class CommandReceivedEvent(SovereignEvent):
    """Emitted when raw input reaches the router."""

    input: str


class CommandAuditedEvent(SovereignEvent):
    """Emitted after the Guardian has judged a command."""

    command: str
    audit: GuardianAudit


class CommandResultEvent(SovereignEvent):
    """Emitted once a command has a recorded session entry."""

    entry: SessionEntry


class TaskFinalizedEvent(SovereignEvent):
    """Emitted when a task reaches a terminal status."""

    task_id: str
    status: str


class ReflectionCreatedEvent(SovereignEvent):
    reflection_id: str
    health: str
