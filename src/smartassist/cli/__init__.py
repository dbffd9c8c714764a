"""SmartAssist CLI -- admin interface for triggers and the audit log.

This module is NEVER imported from smartassist/__init__.py.
It is only loaded via the ``smartassist`` entry point defined in pyproject.toml.

The built-in triggers run against the in-memory collaborators from
``smartassist.demo``; settings, rate-limit counters, and the audit log are
persisted in the database given by ``--db``.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING

try:
    import click
except ImportError:
    raise ImportError(
        "CLI dependencies not installed. Install with: pip install smart-assistant[cli]"
    ) from None

from smartassist.cli.formatting import format_error, get_console

if TYPE_CHECKING:
    from collections.abc import Iterator

    from rich.console import Console

    from smartassist.assistant import Assistant


@click.group()
@click.option(
    "--db",
    default=".smartassist.db",
    envvar="SMARTASSIST_DB",
    help="Path to the SmartAssist database.",
)
@click.option("-v", "--verbose", is_flag=True, help="Debug logging and error detail in results.")
@click.pass_context
def cli(ctx: click.Context, db: str, verbose: bool) -> None:
    """SmartAssist: directive triggers for LLM chat replies."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG)
    ctx.ensure_object(dict)
    ctx.obj["db_path"] = db
    ctx.obj["verbose"] = verbose


def _get_assistant(ctx: click.Context) -> Assistant:
    """Open an Assistant from Click context, wired to the demo collaborators."""
    from smartassist.assistant import Assistant
    from smartassist.demo import RecordingMailer, sample_content, sample_shop
    from smartassist.models.config import AssistantConfig

    config = AssistantConfig.from_env(
        db_path=ctx.obj["db_path"],
        verbose=ctx.obj["verbose"],
    )
    return Assistant.open(
        config,
        content=sample_content(),
        mailer=RecordingMailer(),
        shop=sample_shop(),
        admin_email="admin@example.com",
    )


@contextmanager
def _assistant_session(ctx: click.Context) -> Iterator[tuple[Assistant, Console]]:
    """Context manager that opens an Assistant, yields (assistant, console), and closes it.

    Exceptions are formatted as CLI errors and exit with status 1.
    """
    console = get_console()
    try:
        assistant = _get_assistant(ctx)
        try:
            yield assistant, console
        finally:
            assistant.close()
    except SystemExit:
        raise
    except Exception as e:
        format_error(str(e), console)
        raise SystemExit(1) from None


def parse_key_values(pairs: tuple[str, ...]) -> dict[str, str]:
    """``("a=1", "b=x=y")`` -> ``{"a": "1", "b": "x=y"}``."""
    values: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"expected KEY=VALUE, got {pair!r}")
        values[key.strip()] = value
    return values


# Register subcommands after cli group is defined
from smartassist.cli.commands.dispatch import dispatch  # noqa: E402
from smartassist.cli.commands.fire import fire  # noqa: E402
from smartassist.cli.commands.logs import logs  # noqa: E402
from smartassist.cli.commands.settings import settings  # noqa: E402
from smartassist.cli.commands.toggle import disable, enable  # noqa: E402
from smartassist.cli.commands.triggers import triggers  # noqa: E402

cli.add_command(triggers)
cli.add_command(enable)
cli.add_command(disable)
cli.add_command(settings)
cli.add_command(logs)
cli.add_command(fire)
cli.add_command(dispatch)
