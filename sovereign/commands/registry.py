"""
Command Registry — the catalog of everything the core can be told to do.

A command is an id, a one-line description, and a handler. Handlers receive
the parsed arguments plus a small context object and return either a
CommandOk or a CommandError; they may be plain functions or coroutines.

The registry doubles as the operation catalog the intent resolver matches
free text against, via as_operations().
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Literal, Optional, Union

import structlog

from sovereign.models import Operation

if TYPE_CHECKING:
    from sovereign.kernel import KernelState

logger = structlog.get_logger(__name__)


@dataclass
class CommandArgs:
    raw_args: str = ""                              # everything after the first whitespace run
    args: list[str] = field(default_factory=list)   # raw_args split on whitespace


def _noop() -> None:
    return None


@dataclass
class CommandContext:
    """What a handler may know about the session that invoked it."""
    session_id: str
    get_kernel_state: Callable[[], KernelState]
    toggle_theme: Callable[[], None] = _noop


@dataclass
class CommandOk:
    message: str = ""
    payload: Any = None
    followups: list[str] = field(default_factory=list)
    status: Literal["ok"] = field(default="ok", init=False)


@dataclass
class CommandError:
    message: str = ""
    payload: Any = None
    followups: list[str] = field(default_factory=list)
    status: Literal["error"] = field(default="error", init=False)


CommandHandlerResult = Union[CommandOk, CommandError]
CommandHandler = Callable[
    [CommandArgs, CommandContext],
    Union[CommandHandlerResult, Awaitable[CommandHandlerResult]],
]


@dataclass
class CommandDefinition:
    id: str
    handler: CommandHandler
    description: str = ""
    usage: str = ""


class CommandRegistry:
    """Command ids to definitions. Registration happens once, at startup."""

    def __init__(self):
        self._commands: dict[str, CommandDefinition] = {}

    def register(self, definition: CommandDefinition, *, allow_override: bool = False) -> None:
        if definition.id in self._commands and not allow_override:
            logger.warning("command_registry.name_collision", id=definition.id)
            raise ValueError(
                f"Command '{definition.id}' is already registered. "
                "Use allow_override=True for an explicit replacement."
            )
        self._commands[definition.id] = definition
        logger.debug("command_registry.registered", id=definition.id)

    def get(self, command_id: str) -> Optional[CommandDefinition]:
        return self._commands.get(command_id)

    def list_commands(self) -> list[CommandDefinition]:
        """Sorted by id."""
        return sorted(self._commands.values(), key=lambda d: d.id)

    def ids(self) -> list[str]:
        return sorted(self._commands)

    def as_operations(self) -> list[Operation]:
        """The registry as an operation catalog for the intent resolver."""
        return [
            Operation(id=d.id, name=d.id.replace(".", " "), description=d.description)
            for d in self.list_commands()
        ]

    def __contains__(self, command_id: object) -> bool:
        return command_id in self._commands

    def __len__(self) -> int:
        return len(self._commands)
