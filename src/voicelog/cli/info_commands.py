"""Info command: voicelog info."""

from __future__ import annotations

import platform
import sys

import click
from rich import box
from rich.table import Table

from voicelog.cli.main import console


def _get_version() -> str:
    """Get the voicelog package version from metadata."""
    from importlib.metadata import PackageNotFoundError, version

    try:
        return version("voicelog")
    except PackageNotFoundError:
        return "unknown"


def _get_python_version() -> str:
    """Get the Python version (first line only)."""
    return sys.version.split("\n")[0]


def _get_platform_info() -> str:
    """Get platform system and machine architecture."""
    return f"{platform.system()} {platform.machine()}"


def _show_system_info() -> None:
    table = Table(box=box.ROUNDED, show_header=False, padding=(0, 2))
    table.add_column("Key", style="bold")
    table.add_column("Value")

    table.add_row("Version", _get_version())
    table.add_row("Python", _get_python_version())
    table.add_row("Platform", _get_platform_info())

    console.print(table)


def _show_config_info() -> None:
    """Display resolved settings with secrets redacted."""
    from voicelog.config import get_settings
    from voicelog.core.config import redact_api_key

    settings = get_settings()

    table = Table(
        title="Configuration",
        box=box.ROUNDED,
        show_header=False,
        padding=(0, 2),
    )
    table.add_column("Key", style="bold")
    table.add_column("Value")

    table.add_row("Storage", str(settings.storage_dir))
    table.add_row("Database", settings.db_url)
    table.add_row("ASR model", settings.asr_model)
    table.add_row("Analysis", f"{settings.analysis_model} ({settings.analysis_provider})")
    table.add_row(
        "Pricing",
        f"${settings.price_input_per_mtok}/M in, ${settings.price_output_per_mtok}/M out",
    )
    table.add_row(
        "Retry",
        f"{settings.transcription_attempts} attempts, {settings.backoff_seconds}s linear backoff",
    )
    table.add_row("API key", redact_api_key(settings.openai_api_key or None) or "[red]not set[/red]")
    table.add_row("Project", settings.openai_project_id or "[red]not set[/red]")
    table.add_row("Event log", str(settings.log_dir) if settings.log_dir else "[dim]off[/dim]")

    console.print(table)


@click.command()
def info():
    """Show version, platform and resolved configuration."""
    console.print("[bold]voicelog[/bold]")
    _show_system_info()
    console.print()
    _show_config_info()
