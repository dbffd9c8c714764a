"""smartassist settings -- show or change one trigger's settings."""

from __future__ import annotations

import click

from smartassist.cli.formatting import format_settings


@click.command()
@click.argument("trigger_id")
@click.argument("assignments", nargs=-1)
@click.pass_context
def settings(ctx: click.Context, trigger_id: str, assignments: tuple[str, ...]) -> None:
    """Show TRIGGER_ID's settings, or update them with KEY=VALUE pairs.

    Unknown keys are rejected; values are sanitized by key name before
    they are stored.
    """
    from smartassist.cli import _assistant_session, parse_key_values
    from smartassist.settings import sanitize_settings

    changes = parse_key_values(assignments)
    with _assistant_session(ctx) as (assistant, console):
        definition = assistant.get_trigger(trigger_id).definition
        if changes:
            known = set(definition.defaults())
            unknown = sorted(set(changes) - known)
            if unknown:
                raise click.BadParameter(
                    f"unknown setting(s) for {trigger_id}: {', '.join(unknown)}"
                )
            assistant.settings.update(trigger_id, **sanitize_settings(changes))
        format_settings(trigger_id, assistant.settings.resolve(definition), console)
