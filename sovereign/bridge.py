"""
Dispatch Bridge — the core's one outbound seam.

Commands that hand work to something outside the process go through here.
The bridge keeps a tiny status record (idle / connected / error, the last
message, when it changed) and turns an invocation into a CommandResult. The
only built-in handler answers "ping"; every other operation is echoed back as
a noop, which is where a real transport would plug in.
"""

from __future__ import annotations

import asyncio
import copy
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Literal, Optional

import structlog

from sovereign.models import CommandIntent, CommandResult

if TYPE_CHECKING:
    from sovereign.kernel import Kernel

logger = structlog.get_logger(__name__)

BridgeState = Literal["idle", "connected", "error"]


def _stamp() -> str:
    return time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())


@dataclass
class BridgeStatus:
    status: BridgeState = "idle"
    last_message: Optional[str] = None
    last_updated: float = field(default_factory=time.time)


class DispatchBridge:
    def __init__(self, kernel: Kernel):
        self._kernel = kernel
        self._status = BridgeStatus()
        self._dispatched = 0

    def status(self) -> BridgeStatus:
        return copy.copy(self._status)

    def _mark(self, state: BridgeState, message: str) -> None:
        self._status.status = state
        self._status.last_message = message
        self._status.last_updated = time.time()

    def dispatch(self, payload: Any = None) -> None:
        self._dispatched += 1
        self._mark("connected", f"Dispatched payload at {_stamp()}")
        self._kernel.log_info("bridge.dispatch", "Dispatching payload", {"payload": payload})

    def receive(self, payload: Any = None) -> None:
        self._mark("connected", f"Received payload at {_stamp()}")
        self._kernel.log_info("bridge.dispatch", "Receiving payload", {"payload": payload})

    async def invoke(self, intent: CommandIntent, command: str) -> CommandResult:
        """Hand a resolved intent across the bridge and wait for its answer."""
        invocation = {
            "command": command,
            "operation_id": intent.operation_id,
            "args": dict(intent.arguments),
        }
        self.dispatch(invocation)
        await asyncio.sleep(0)

        if intent.operation_id == "ping":
            result = CommandResult(
                status="ok",
                message="pong",
                intent=intent,
                data={"timestamp": time.time(), "source": "DispatchBridge", "command": command},
            )
        else:
            result = CommandResult(
                status="ok",
                message=(
                    f"No registered handler for {intent.operation_id}; returning noop response."
                ),
                intent=intent,
                data=invocation,
            )
        self.receive({"status": result.status, "message": result.message})
        logger.debug("bridge.invoked", operation_id=intent.operation_id)
        return result

    @property
    def dispatched_count(self) -> int:
        return self._dispatched
