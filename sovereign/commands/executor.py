"""
Command Executor — parse, look up, run, and account for one command.

Execution flow:
1. PARSE the input: the id is everything up to the first whitespace run,
   the rest is the raw argument string
2. LOOKUP the id in the registry (unknown ids become an error result)
3. INVOKE the handler, awaiting it if it is a coroutine; any exception it
   raises is caught, logged, remembered as the last kernel error, and turned
   into an error result
4. ACCOUNT for the run: duration, counters, the kernel summary line, and the
   short-term memory record

Only an empty input skips step 4. The executor never touches task or goal
state itself; handlers do that.
"""

from __future__ import annotations

import inspect
import time
from typing import TYPE_CHECKING

import structlog

from sovereign.commands.registry import (
    CommandArgs,
    CommandContext,
    CommandError,
    CommandHandlerResult,
    CommandRegistry,
)

if TYPE_CHECKING:
    from sovereign.kernel import Kernel
    from sovereign.memory.stm import ShortTermMemory

logger = structlog.get_logger(__name__)


def parse_input(text: str) -> tuple[str, CommandArgs]:
    parts = text.strip().split(maxsplit=1)
    if not parts:
        return "", CommandArgs()
    raw_args = parts[1].strip() if len(parts) > 1 else ""
    return parts[0], CommandArgs(raw_args=raw_args, args=raw_args.split())


class CommandExecutor:
    def __init__(self, registry: CommandRegistry, kernel: Kernel, stm: ShortTermMemory):
        self._registry = registry
        self._kernel = kernel
        self._stm = stm
        logger.info("executor.initialized", commands=len(registry))

    async def execute(self, text: str, ctx: CommandContext) -> CommandHandlerResult:
        started = time.perf_counter()
        command_id, args = parse_input(text)
        if not command_id:
            return CommandError(message="No command provided")

        definition = self._registry.get(command_id)
        if definition is None:
            result: CommandHandlerResult = CommandError(
                message=f"Unknown command: {command_id}",
                followups=["help"],
            )
        else:
            try:
                result = definition.handler(args, ctx)
                if inspect.isawaitable(result):
                    result = await result
            except Exception as e:
                message = str(e) or "Command failed"
                self._kernel.log_error(f"command.{command_id}", message, {"error": repr(e)})
                self._stm.record_kernel_error(message, {"command": command_id})
                logger.error(
                    "executor.handler_failed",
                    command=command_id,
                    error=message,
                    exc_info=True,
                )
                result = CommandError(message=message)

        duration_ms = (time.perf_counter() - started) * 1000
        self._kernel.record_command_execution(command_id, result.status, duration_ms)
        summary = f"{command_id} -> {result.status}"
        if result.status == "error":
            self._kernel.log_error("kernel", summary, {"duration_ms": duration_ms})
        else:
            self._kernel.log_info("kernel", summary, {"duration_ms": duration_ms})
        self._stm.record_command(command_id, result.status)
        return result
