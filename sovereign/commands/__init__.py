"""Commands — the registry, the executor, and the built-in command set."""
from sovereign.commands.executor import CommandExecutor
from sovereign.commands.registry import (
    CommandArgs,
    CommandContext,
    CommandDefinition,
    CommandError,
    CommandOk,
    CommandRegistry,
)

__all__ = [
    "CommandExecutor",
    "CommandArgs",
    "CommandContext",
    "CommandDefinition",
    "CommandError",
    "CommandOk",
    "CommandRegistry",
]
