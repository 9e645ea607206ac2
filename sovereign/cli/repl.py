"""REPL — an interactive session against a live autonomy core.

The worker and the reflection engine run in the background while the
prompt waits, so queued tasks complete between commands.
"""

from __future__ import annotations

import asyncio
from typing import Any

import click

from sovereign.cli.formatters import console_for, render_entry, to_json
from sovereign.core import AutonomyCore

EXIT_WORDS = frozenset({"exit", "quit", ":q"})


async def _repl_loop(ctx_obj: dict[str, Any]) -> None:
    console = console_for(ctx_obj)
    async with AutonomyCore() as core:
        console.print(f"[bold]Sovereign[/bold] session {core.kernel.session_id}. Type 'help' or 'exit'.")
        while True:
            try:
                line = await asyncio.to_thread(input, "sovereign> ")
            except EOFError:
                break
            line = line.strip()
            if not line:
                continue
            if line in EXIT_WORDS:
                break
            entry = await core.handle(line)
            if ctx_obj.get("json"):
                click.echo(to_json(entry))
            else:
                render_entry(console, entry, verbose=ctx_obj.get("verbose", False))


def run_repl(ctx_obj: dict[str, Any] | None = None) -> None:
    """Launch the interactive REPL."""
    from sovereign.main import configure_logging

    configure_logging()

    try:
        asyncio.run(_repl_loop(ctx_obj or {}))
    except KeyboardInterrupt:
        pass


@click.command("repl")
@click.pass_context
def repl_cmd(ctx: click.Context) -> None:
    """Start an interactive session."""
    run_repl(ctx.obj)
