"""CLI formatters — status tones, session rendering, the status report table.

Every status the core reports (command results, Guardian decisions, task and
goal states, reflection health, bridge state) is drawn with one of four
tones, so a glance at the left margin tells whether something needs looking at.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from pydantic_core import to_jsonable_python
from rich.console import Console
from rich.pretty import Pretty
from rich.table import Table
from rich.text import Text

if TYPE_CHECKING:
    from sovereign.core import AutonomyStatus
    from sovereign.models import SessionEntry


# tone -> (glyph, style)
_TONES: dict[str, tuple[str, str]] = {
    "good": ("> ", "green"),
    "quiet": ("- ", "dim"),
    "attention": ("! ", "yellow"),
    "bad": ("x ", "red"),
}

STATUS_TONES: dict[str, str] = {
    # command results and Guardian decisions
    "ok": "good",
    "allow": "good",
    "flag": "attention",
    "block": "bad",
    "blocked": "bad",
    # tasks and goals
    "queued": "quiet",
    "pending": "quiet",
    "running": "good",
    "active": "good",
    "completed": "good",
    "cancelled": "quiet",
    "failed": "bad",
    # reflection health
    "warning": "attention",
    "error": "bad",
    # bridge and worker
    "idle": "quiet",
    "connected": "good",
}


def console_for(opts: dict[str, Any]) -> Console:
    """Console honoring the group's ``--no-color`` flag."""
    plain = bool(opts.get("no_color"))
    return Console(no_color=plain, highlight=not plain)


def status_indicator(status: str) -> Text:
    """Two-character margin marker for a status, colored by its tone."""
    tone = STATUS_TONES.get(status)
    if tone is None:
        return Text("? ", style="dim")
    glyph, style = _TONES[tone]
    return Text(glyph, style=style)


def status_label(status: str) -> Text:
    """The status word prefixed by its indicator, for table cells."""
    label = status_indicator(status)
    label.append(status)
    return label


def format_uptime(seconds: float) -> str:
    """Short uptime string: milliseconds for a fresh core, days for a long one."""
    if seconds < 1:
        return f"{seconds * 1000:.0f}ms"
    if seconds < 60:
        return f"{seconds:.0f}s"
    if seconds < 3600:
        return f"{int(seconds // 60)}m{int(seconds % 60):02d}s"
    if seconds < 86400:
        return f"{int(seconds // 3600)}h {int(seconds % 3600 // 60):02d}m"
    return f"{int(seconds // 86400)}d {int(seconds % 86400 // 3600):02d}h"


def field_table(title: str, rows: list[tuple[str, Any]]) -> Table:
    """Two-column Field/Value table. Text cells keep their styling."""
    table = Table(title=title, show_header=True, header_style="bold")
    table.add_column("Field", style="bold")
    table.add_column("Value")
    for name, value in rows:
        table.add_row(name, value if isinstance(value, Text) else str(value))
    return table


def to_json(value: Any) -> str:
    """Serialize models, dataclasses and plain values alike."""
    return json.dumps(to_jsonable_python(value, fallback=str), indent=2)


def render_entry(console: Console, entry: SessionEntry, verbose: bool = False) -> None:
    """Print one routed command result."""
    result = entry.result
    line = status_indicator(result.status)
    line.append(result.message or result.status)
    console.print(line)
    for reason in result.audit_trail:
        console.print(f"  [yellow]audit:[/yellow] {reason}")
    if result.followups:
        console.print(f"  [dim]try: {', '.join(result.followups)}[/dim]")
    if result.data is not None:
        console.print(Pretty(to_jsonable_python(result.data, fallback=str), expand_all=verbose))
    if verbose and result.intent is not None:
        intent = result.intent
        console.print(
            f"  [dim]intent: {intent.operation_id or '-'} "
            f"({intent.source}, {intent.confidence:.2f})[/dim]"
        )


def status_table(status: AutonomyStatus) -> Table:
    """Render the autonomy status report."""
    reflection = status.last_reflection
    running = status.tasks.running.payload.description if status.tasks.running else "-"
    rows: list[tuple[str, Any]] = [
        ("Session", status.session_id),
        ("Uptime", format_uptime(status.uptime_seconds)),
        ("Commands", status.command_count),
        ("Log entries", status.log_size),
        ("Queued tasks", status.tasks.queued_count),
        ("Running task", running),
        ("Goals", ", ".join(f"{k}={v}" for k, v in sorted(status.goal_counts.items())) or "-"),
        ("Intents", status.intent_count),
        ("Violations", ", ".join(f"{k}={v}" for k, v in status.violations.items())),
        ("Health", status_label(reflection.health) if reflection else "-"),
        ("Worker", status_label("running" if status.worker_running else "idle")),
        ("Bridge", status_label(status.bridge.status)),
    ]
    return field_table("Sovereign Autonomy Status", rows)
