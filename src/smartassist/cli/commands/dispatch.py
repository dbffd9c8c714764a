"""smartassist dispatch -- run the directives in a piece of text."""

from __future__ import annotations

import click

from smartassist.cli.formatting import format_directives, format_dispatch


@click.command()
@click.argument("text")
@click.option("--user-id", default=0, type=int, help="Acting user id (0 = guest).")
@click.option("--session", "session_id", default="cli", help="Session id for rate limiting.")
@click.option(
    "--capability",
    "capabilities",
    multiple=True,
    help="Capability granted to the actor (repeatable), e.g. edit_posts.",
)
@click.option("--dry-run", is_flag=True, help="List the directives found without executing them.")
@click.pass_context
def dispatch(
    ctx: click.Context,
    text: str,
    user_id: int,
    session_id: str,
    capabilities: tuple[str, ...],
    dry_run: bool,
) -> None:
    """Parse TEXT as model output: execute its directives and print the display text."""
    from smartassist.cli import _assistant_session
    from smartassist.models.trigger import ExecutionContext

    with _assistant_session(ctx) as (assistant, console):
        dispatcher = assistant.dispatcher
        clean = dispatcher.strip_commands(text)
        if dry_run:
            format_directives(dispatcher.find_directives(text), clean, console)
            return

        context = ExecutionContext(
            user_id=user_id,
            session_id=session_id,
            capabilities=frozenset(capabilities),
        )
        results = dispatcher.parse_and_execute(text, context)
        format_dispatch(results, clean, console)
