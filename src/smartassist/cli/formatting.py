"""Rich formatting helpers for the SmartAssist CLI.

Provides functions that format SmartAssist data structures for terminal display.
Rich auto-detects TTY and degrades gracefully when piped (no ANSI codes).
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from rich.console import Console
from rich.markup import escape
from rich.table import Table

if TYPE_CHECKING:
    from smartassist.dispatcher import DirectiveMatch
    from smartassist.models.trigger import AuditLogEntry, DispatchResult, ExecutionResult
    from smartassist.triggers.protocols import Trigger

_OUTCOME_STYLES = {
    "executed": "green",
    "failed": "yellow",
    "error": "red",
    "invalid": "yellow",
    "denied": "red",
    "rate_limited": "magenta",
}


def get_console() -> Console:
    """Create a Rich Console that auto-detects TTY for graceful pipe degradation."""
    return Console(stderr=False)


def _status(success: bool) -> str:
    return "[green]ok[/green]" if success else "[red]failed[/red]"


def format_triggers(
    triggers: list[Trigger], enabled: Mapping[str, bool], console: Console
) -> None:
    """Table of registered triggers with their enabled state."""
    if not triggers:
        console.print("[dim]No triggers registered.[/dim]")
        return

    table = Table(show_header=True, header_style="bold", box=None, pad_edge=False)
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Enabled")
    table.add_column("Pattern", style="dim")

    for trigger in triggers:
        definition = trigger.definition
        is_on = enabled.get(definition.id, True)
        table.add_row(
            definition.id,
            escape(definition.name),
            "[green]yes[/green]" if is_on else "[red]no[/red]",
            escape(definition.command_pattern),
        )

    console.print(table)


def format_settings(trigger_id: str, values: Mapping[str, Any], console: Console) -> None:
    console.print(f"[bold]{escape(trigger_id)}[/bold]")
    for key, value in values.items():
        shown = value if not isinstance(value, str) or len(value) <= 60 else value[:57] + "..."
        console.print(f"  {escape(key)}: {escape(repr(shown))}", highlight=False)


def format_logs(entries: list[AuditLogEntry], console: Console) -> None:
    """Audit entries, newest first."""
    if not entries:
        console.print("[dim]No trigger executions logged.[/dim]")
        return

    table = Table(show_header=True, header_style="bold", box=None, pad_edge=False)
    table.add_column("Time", style="dim")
    table.add_column("Trigger", style="cyan")
    table.add_column("User", justify="right")
    table.add_column("Outcome")
    table.add_column("Message")

    for entry in entries:
        style = _OUTCOME_STYLES.get(entry.outcome, "white")
        table.add_row(
            entry.timestamp.strftime("%Y-%m-%d %H:%M:%S"),
            entry.trigger_id,
            str(entry.user_id) if entry.user_id else "guest",
            f"[{style}]{entry.outcome}[/{style}]",
            escape(entry.message),
        )

    console.print(table)


def format_result(trigger_id: str, result: ExecutionResult, console: Console) -> None:
    console.print(
        f"{_status(result.success)} [cyan]{escape(trigger_id)}[/cyan]: "
        f"{escape(result.message)}"
    )
    if result.data:
        console.print(f"  data: {escape(json.dumps(result.data, default=str))}", highlight=False)


def format_dispatch(results: list[DispatchResult], clean_text: str, console: Console) -> None:
    """Per-directive results followed by the display text."""
    if not results:
        console.print("[dim]No directives found.[/dim]")
    for result in results:
        console.print(
            f"{_status(result.success)} [cyan]{escape(result.trigger_id)}[/cyan]: "
            f"{escape(result.message)}"
        )
        if result.data:
            console.print(f"  data: {escape(json.dumps(result.data, default=str))}", highlight=False)
    console.print()
    console.print(f"[bold]Display text:[/bold] {escape(clean_text)}")


def format_directives(directives: list[DirectiveMatch], clean_text: str, console: Console) -> None:
    """Directives that would run, without running them."""
    if not directives:
        console.print("[dim]No directives found.[/dim]")
    for directive in directives:
        params = ", ".join(f"{k}={v!r}" for k, v in directive.params.items())
        console.print(
            f"[yellow]{directive.start:>4}[/yellow] "
            f"[cyan]{escape(directive.trigger.definition.id)}[/cyan] {escape(params)}",
            highlight=False,
        )
    console.print()
    console.print(f"[bold]Display text:[/bold] {escape(clean_text)}")


def format_error(message: str, console: Console) -> None:
    """Display an error message."""
    console.print(f"[red]Error:[/red] {message}", highlight=False)
