"""Journal commands: voicelog init-db, ingest, transcribe, entries, mood."""

from __future__ import annotations

import asyncio
import json
import mimetypes
from pathlib import Path

import click
from rich import box
from rich.table import Table

from voicelog.cli.main import console, fail, mood_style
from voicelog.core.errors import VoicelogError


def _settings():
    from voicelog.config import get_settings

    return get_settings()


def _datastore():
    from voicelog.datastore import Datastore

    settings = _settings()
    settings.ensure_storage_dir()
    datastore = Datastore.from_url(settings.db_url)
    datastore.init_schema()
    return datastore


def _guess_mime(path: Path, mime: str | None) -> str | None:
    if mime:
        return mime
    guessed, _ = mimetypes.guess_type(path.name)
    return guessed


@click.command("init-db")
def init_db():
    """Create the journal database schema."""
    settings = _settings()
    datastore = _datastore()
    datastore.dispose()
    console.print(f"[green]Database ready:[/green] {settings.db_url}")


@click.command()
@click.argument("audio", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--mime", default=None, help="MIME type of the audio (guessed from the name if omitted)")
@click.option("--user", "user_id", default=None, help="Owner recorded on the entry")
@click.pass_context
def ingest(ctx: click.Context, audio: Path, mime: str | None, user_id: str | None):
    """Transcribe, analyze and store one audio file.

    AUDIO is copied into the uploads directory first; the copy is removed
    once processing finishes, the original is left untouched.
    """
    from voicelog.app import build_app
    from voicelog.core.logging import Verbosity
    from voicelog.uploads import stage_upload

    settings = _settings()
    verbosity = Verbosity.DEBUG if ctx.obj.get("verbose") else Verbosity.VERBOSE

    try:
        app = build_app(settings, verbosity=verbosity)
    except VoicelogError as e:
        fail(e)
        return

    mime_type = _guess_mime(audio, mime)
    try:
        upload = stage_upload(audio, settings.uploads_dir, mime_type=mime_type)
        with console.status(f"Processing {audio.name}..."):
            entry = asyncio.run(app.ingest(upload, mime_type, audio.name, user_id))
    except (VoicelogError, OSError) as e:
        fail(e)
        return
    finally:
        app.close()

    table = Table(box=box.ROUNDED, show_header=False, padding=(0, 2))
    table.add_column("Key", style="bold")
    table.add_column("Value", max_width=80)
    table.add_row("Entry", entry.id)
    table.add_row("Mood", f"[{mood_style(entry.mood)}]{entry.mood}[/]")
    table.add_row("Summary", entry.summary or "")
    table.add_row("Advice", entry.advice or "")
    table.add_row("Elapsed", f"{entry.ms_elapsed} ms")
    table.add_row("Tokens", f"{entry.tokens_input} in / {entry.tokens_output} out")
    table.add_row("Cost (est.)", f"${entry.cost_estimate_usd}")
    console.print(table)


@click.command()
@click.argument("audio", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--mime", default=None, help="MIME type of the audio (guessed from the name if omitted)")
@click.option("--output-dir", type=click.Path(file_okay=False, path_type=Path), default=None,
              help="Report directory (default: <storage>/output)")
def transcribe(audio: Path, mime: str | None, output_dir: Path | None):
    """Transcribe and analyze AUDIO into a dated JSON report, without storing it."""
    from voicelog.app import build_app

    settings = _settings()
    try:
        app = build_app(settings)
    except VoicelogError as e:
        fail(e)
        return

    try:
        with console.status(f"Transcribing {audio.name}..."):
            report_path = asyncio.run(
                app.transcribe_report(audio, output_dir or settings.output_dir, _guess_mime(audio, mime))
            )
    except VoicelogError as e:
        fail(e)
        return
    finally:
        app.close()

    report = json.loads(report_path.read_text())
    console.print("\n[bold]--- Transcript ---[/bold]")
    console.print(report["text"], markup=False)
    console.print("\n[bold]--- Mood Analysis ---[/bold]")
    console.print(f"Mood: {report['analysis']['mood']}")
    console.print(f"Summary: {report['analysis']['summary']}", markup=False)
    console.print(f"Advice: {report['analysis']['advice']}", markup=False)
    console.print(f"\n[green]Saved:[/green] {report_path} ({report['ms']} ms)")


@click.command()
@click.option("--limit", "-n", default=20, show_default=True, help="Number of entries (max 100)")
@click.option("--json", "as_json", is_flag=True, default=False, help="Print JSON instead of a table")
def entries(limit: int, as_json: bool):
    """List recent journal entries, newest first."""
    datastore = _datastore()
    try:
        rows = asyncio.run(datastore.list_entries(limit))
    except VoicelogError as e:
        fail(e)
        return
    finally:
        datastore.dispose()

    if as_json:
        click.echo(json.dumps([row.to_dict() for row in rows], indent=2))
        return

    if not rows:
        console.print("[dim]No entries found.[/dim]")
        return

    table = Table(title=f"Recent entries ({len(rows)})", box=box.ROUNDED)
    table.add_column("Created", no_wrap=True)
    table.add_column("Mood", justify="right")
    table.add_column("Summary", max_width=60)
    table.add_column("ID", style="dim", no_wrap=True)
    for row in rows:
        table.add_row(
            row.created_at.strftime("%Y-%m-%d %H:%M"),
            f"[{mood_style(row.mood)}]{row.mood if row.mood is not None else '-'}[/]",
            row.summary or "",
            row.id[:8],
        )
    console.print(table)


@click.command()
@click.option("--days", "-d", default=30, show_default=True, help="Window size in days (clamped to 1-90)")
@click.option("--user", "user_id", default=None, help="Only entries of this user")
@click.option("--json", "as_json", is_flag=True, default=False, help="Print JSON instead of a table")
def mood(days: int, user_id: str | None, as_json: bool):
    """Show the average mood per day, one row per calendar day."""
    from voicelog.aggregation import MoodAggregator

    datastore = _datastore()
    try:
        points = asyncio.run(MoodAggregator(datastore).daily_mood(days, user_id))
    except VoicelogError as e:
        fail(e)
        return
    finally:
        datastore.dispose()

    if as_json:
        click.echo(json.dumps([point.to_dict() for point in points], indent=2))
        return

    table = Table(title=f"Daily mood ({len(points)} days)", box=box.ROUNDED)
    table.add_column("Day", no_wrap=True)
    table.add_column("Avg", justify="right")
    table.add_column("", no_wrap=True)
    for point in points:
        style = mood_style(point.avg_mood)
        bar = "#" * round(point.avg_mood)
        table.add_row(point.day.isoformat(), f"[{style}]{point.avg_mood:.2f}[/]", f"[{style}]{bar}[/]")
    console.print(table)
