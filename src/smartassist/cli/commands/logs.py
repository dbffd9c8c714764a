"""smartassist logs -- show recent trigger executions."""

from __future__ import annotations

import click

from smartassist.cli.formatting import format_error, format_logs, get_console


@click.command()
@click.option("-n", "--limit", default=20, type=int, help="Maximum number of entries to show.")
@click.option("--clear", is_flag=True, help="Delete the audit log instead of showing it.")
@click.pass_context
def logs(ctx: click.Context, limit: int, clear: bool) -> None:
    """Show the audit log, most recent first."""
    from smartassist.cli import _get_assistant

    console = get_console()
    try:
        assistant = _get_assistant(ctx)
        try:
            if clear:
                assistant.audit_log.clear()
                console.print("Audit log cleared.")
            else:
                format_logs(assistant.audit_log.recent(limit), console)
        finally:
            assistant.close()
    except SystemExit:
        raise
    except Exception as e:
        format_error(str(e), console)
        raise SystemExit(1) from None
