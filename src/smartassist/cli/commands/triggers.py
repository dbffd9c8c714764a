"""smartassist triggers -- list registered triggers."""

from __future__ import annotations

import click

from smartassist.cli.formatting import format_triggers


@click.command()
@click.pass_context
def triggers(ctx: click.Context) -> None:
    """List registered triggers, their enabled state, and directive patterns."""
    from smartassist.cli import _assistant_session

    with _assistant_session(ctx) as (assistant, console):
        registered = assistant.registry.get_all()
        enabled = {
            t.definition.id: assistant.settings.is_enabled(t.definition)
            for t in registered
        }
        format_triggers(registered, enabled, console)
