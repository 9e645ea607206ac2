"""One-shot commands — exec and status."""

from __future__ import annotations

import click

from sovereign.cli.app import async_cmd
from sovereign.cli.formatters import console_for, render_entry, status_table, to_json
from sovereign.core import AutonomyCore


@click.command("exec")
@click.argument("command", nargs=-1, required=True)
@click.option("--drain", is_flag=True, help="Run queued tasks to completion before exiting")
@click.pass_context
@async_cmd
async def exec_cmd(ctx: click.Context, command: tuple[str, ...], drain: bool) -> None:
    """Route one COMMAND through the Guardian and the executor."""
    opts = ctx.obj or {}
    core = AutonomyCore()
    entry = await core.handle(" ".join(command))
    if drain:
        await core.worker.drain()

    if opts.get("json"):
        click.echo(to_json(entry))
    else:
        console = console_for(opts)
        render_entry(console, entry, verbose=opts.get("verbose", False))

    if entry.result.status != "ok":
        ctx.exit(1)


@click.command("status")
@click.pass_context
@async_cmd
async def status_cmd(ctx: click.Context) -> None:
    """Run one worker pass and one reflection, then show the autonomy status."""
    opts = ctx.obj or {}
    core = AutonomyCore()
    await core.worker.drain()
    core.reflection.run_tick()
    report = core.status_report()

    if opts.get("json"):
        click.echo(to_json(report))
        return

    console = console_for(opts)
    console.print(status_table(report))
    if report.last_reflection is not None:
        for note in report.last_reflection.notes:
            console.print(f"  [dim]-[/dim] {note}")
        if opts.get("verbose"):
            for action in report.last_reflection.suggested_actions:
                console.print(f"  [cyan]>[/cyan] {action}")
