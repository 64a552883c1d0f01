"""Voicelog CLI: main entry point and shared utilities."""

from __future__ import annotations

import logging
import sys

import click
from rich.console import Console
from rich.markup import escape

console = Console()


def setup_logging(verbose: bool) -> None:
    """Configure logging based on verbosity."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def mood_style(mood: float | None) -> str:
    """Rich style for a mood value (1 = very negative, 10 = very positive)."""
    if not mood:
        return "dim"
    if mood >= 7:
        return "green"
    if mood >= 4:
        return "yellow"
    return "red"


def fail(error: Exception) -> None:
    """Print an error and exit non-zero."""
    console.print(f"[red]Error:[/red] {escape(str(error))}")
    sys.exit(1)


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(ctx: click.Context, verbose: bool) -> None:
    """Voicelog: spoken journal entries with mood tracking."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    setup_logging(verbose)


def cli():
    """Entrypoint that loads .env before running the CLI."""
    from dotenv import load_dotenv

    load_dotenv()
    main()


# Import subcommand modules to register commands
from voicelog.cli.info_commands import info  # noqa: E402
from voicelog.cli.journal_commands import entries, ingest, init_db, mood, transcribe  # noqa: E402

main.add_command(init_db)
main.add_command(ingest)
main.add_command(transcribe)
main.add_command(entries)
main.add_command(mood)
main.add_command(info)
