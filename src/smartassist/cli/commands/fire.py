"""smartassist fire -- run one trigger directly, as the admin test action."""

from __future__ import annotations

import click

from smartassist.cli.formatting import format_result


@click.command()
@click.argument("trigger_id")
@click.argument("params", nargs=-1)
@click.option("--user-id", default=0, type=int, help="Acting user id (0 = guest).")
@click.option("--session", "session_id", default=None, help="Session id (default: test_<time>).")
@click.option(
    "--capability",
    "capabilities",
    multiple=True,
    help="Capability granted to the actor (repeatable), e.g. edit_posts.",
)
@click.pass_context
def fire(
    ctx: click.Context,
    trigger_id: str,
    params: tuple[str, ...],
    user_id: int,
    session_id: str | None,
    capabilities: tuple[str, ...],
) -> None:
    """Execute TRIGGER_ID with KEY=VALUE params through the safety wrapper.

    The run is audited like any other.
    """
    from smartassist.cli import _assistant_session, parse_key_values
    from smartassist.models.trigger import ExecutionContext
    from smartassist.assistant import fire_session_id

    values = parse_key_values(params)
    context = ExecutionContext(
        user_id=user_id,
        session_id=session_id or fire_session_id(),
        user_message="Test message",
        capabilities=frozenset(capabilities),
    )
    with _assistant_session(ctx) as (assistant, console):
        result = assistant.fire(trigger_id, values, context)
        format_result(trigger_id, result, console)
