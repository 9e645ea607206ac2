"""CLI application — the ``sovereign`` command group.

Global flags live on the group and are handed to subcommands through
``ctx.obj``. Logging is configured here, once, before any subcommand builds
an autonomy core: ``--verbose`` lowers the threshold so the core's own
structlog stream becomes visible on stderr.
"""

from __future__ import annotations

import asyncio
import functools
import logging
from typing import Any

import click

from sovereign.main import configure_logging


def async_cmd(func):
    """Run an async Click command body on a fresh event loop."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        return asyncio.run(func(*args, **kwargs))

    return wrapper


@click.group(invoke_without_command=True)
@click.option("--json", "json_output", is_flag=True, help="Print results as JSON")
@click.option("--verbose", "-v", is_flag=True, help="Show intents, suggestions and core logs")
@click.option("--no-color", is_flag=True, help="Disable ANSI colors")
@click.pass_context
def cli(ctx: click.Context, json_output: bool, verbose: bool, no_color: bool) -> None:
    """Sovereign - in-process autonomy core."""
    configure_logging(logging.INFO if verbose else logging.WARNING)

    ctx.ensure_object(dict)
    ctx.obj.update(json=json_output, verbose=verbose, no_color=no_color)

    if ctx.invoked_subcommand is None:
        from sovereign.cli.repl import run_repl

        run_repl(ctx.obj)


# ---------------------------------------------------------------------------
# Subcommands
# ---------------------------------------------------------------------------

def _register_subcommands() -> None:
    from sovereign.cli.commands import exec_cmd, status_cmd
    from sovereign.cli.repl import repl_cmd

    for command in (exec_cmd, status_cmd, repl_cmd):
        cli.add_command(command)


_register_subcommands()
