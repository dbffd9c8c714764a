"""smartassist enable / disable -- switch a trigger on or off."""

from __future__ import annotations

import click


def _toggle(ctx: click.Context, trigger_id: str, enabled: bool) -> None:
    from smartassist.cli import _assistant_session

    with _assistant_session(ctx) as (assistant, console):
        assistant.set_enabled(trigger_id, enabled)
        state = "[green]enabled[/green]" if enabled else "[red]disabled[/red]"
        console.print(f"Trigger [cyan]{trigger_id}[/cyan] {state}")


@click.command()
@click.argument("trigger_id")
@click.pass_context
def enable(ctx: click.Context, trigger_id: str) -> None:
    """Enable TRIGGER_ID."""
    _toggle(ctx, trigger_id, True)


@click.command()
@click.argument("trigger_id")
@click.pass_context
def disable(ctx: click.Context, trigger_id: str) -> None:
    """Disable TRIGGER_ID. Its directives are then skipped without running."""
    _toggle(ctx, trigger_id, False)
