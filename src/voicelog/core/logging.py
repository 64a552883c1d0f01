"""Structured event logging and verbosity levels for ingestion runs."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import IntEnum
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.markup import escape


class Verbosity(IntEnum):
    """Verbosity levels for console output."""

    DEFAULT = 0   # Nothing on the console
    VERBOSE = 1   # + one line per ingestion outcome
    DEBUG = 2     # + per-attempt transcription details


@dataclass
class StageLog:
    """Per-stage counters across ingestions."""

    name: str
    calls: int = 0
    failures: int = 0
    time_seconds: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "calls": self.calls,
            "failures": self.failures,
            "time_seconds": self.time_seconds,
        }


@dataclass
class IngestionStats:
    """Aggregate statistics for every ingestion handled by one logger.

    Serializable to dict::

        {
            "stages": {"transcription": {"calls": 3, "failures": 1, ...}, ...},
            "ingested": 2,
            "failed": 1,
            "retries": 1,
            "tokens_in": 240,
            "tokens_out": 60,
            "total_cost_estimate": 0.0003,
        }
    """

    run_id: str = ""
    stages: dict[str, StageLog] = field(default_factory=dict)
    ingested: int = 0
    failed: int = 0
    retries: int = 0
    tokens_in: int = 0
    tokens_out: int = 0
    total_cost_estimate: Decimal = Decimal("0")

    def get_or_create_stage(self, name: str) -> StageLog:
        """Get existing stage log or create a new one."""
        if name not in self.stages:
            self.stages[name] = StageLog(name=name)
        return self.stages[name]

    def to_dict(self) -> dict[str, Any]:
        return {
            "run_id": self.run_id,
            "stages": {name: stage.to_dict() for name, stage in self.stages.items()},
            "ingested": self.ingested,
            "failed": self.failed,
            "retries": self.retries,
            "tokens_in": self.tokens_in,
            "tokens_out": self.tokens_out,
            "total_cost_estimate": float(self.total_cost_estimate),
        }


class IngestionLogger:
    """Structured logger for ingestion runs.

    Writes JSONL events to ``log_dir/<run_id>.jsonl`` when a log directory
    is given, keeps running statistics, and optionally echoes to the
    console via Rich based on verbosity level. Every event carries the
    ``ingest_id`` of the ingestion it belongs to, so interleaved
    concurrent runs can be told apart.

    Event writes are synchronous and happen on the calling thread, which is
    the event loop during ingestion. Each event is a single short append of
    one complete line followed by a flush, so concurrent ingestions sharing
    the handle never interleave within a line. Use ``log_dir=None`` where
    even that small amount of blocking I/O is unacceptable.
    """

    def __init__(
        self,
        verbosity: Verbosity = Verbosity.DEFAULT,
        log_dir: Path | None = None,
        console: Console | None = None,
    ):
        self.verbosity = verbosity
        self.stats = IngestionStats(
            run_id=datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ"),
        )
        self._console = console
        self._log_file = None
        self._log_path: Path | None = None

        if log_dir is not None:
            log_dir.mkdir(parents=True, exist_ok=True)
            self._log_path = log_dir / f"{self.stats.run_id}.jsonl"
            self._log_file = open(self._log_path, "a")

    @property
    def log_path(self) -> Path | None:
        return self._log_path

    def _write_event(self, event: dict[str, Any]) -> None:
        """Write a JSON event to the JSONL log file."""
        if self._log_file is not None:
            event["timestamp"] = datetime.now(timezone.utc).isoformat()
            self._log_file.write(json.dumps(event, default=str) + "\n")
            self._log_file.flush()

    def _console_print(self, message: str, min_verbosity: Verbosity) -> None:
        """Print to console if verbosity is high enough."""
        if self.verbosity >= min_verbosity:
            if self._console is None:
                self._console = Console(stderr=True)
            self._console.print(message)

    # -- Ingestion lifecycle --

    def ingest_start(self, ingest_id: str, filename_hint: str) -> None:
        self._write_event({
            "event": "ingest_start",
            "ingest_id": ingest_id,
            "filename_hint": filename_hint,
        })

    def transcribe_attempt(
        self,
        ingest_id: str,
        attempt: int,
        max_attempts: int,
        error: BaseException | None = None,
        retrying: bool = False,
    ) -> None:
        """Log one transcription attempt; ``error`` is None on success."""
        stage = self.stats.get_or_create_stage("transcription")
        stage.calls += 1
        if error is not None:
            stage.failures += 1
        if retrying:
            self.stats.retries += 1

        self._write_event({
            "event": "transcribe_attempt",
            "ingest_id": ingest_id,
            "attempt": attempt,
            "max_attempts": max_attempts,
            "ok": error is None,
            "error": str(error) if error is not None else None,
            "retrying": retrying,
        })

        if error is not None:
            self._console_print(
                f"    [yellow]attempt {attempt}/{max_attempts} failed:[/yellow] {escape(str(error))}",
                Verbosity.DEBUG,
            )

    def analysis_finish(self, ingest_id: str, model: str, elapsed: float, ok: bool) -> None:
        stage = self.stats.get_or_create_stage("analysis")
        stage.calls += 1
        stage.time_seconds += elapsed
        if not ok:
            stage.failures += 1

        self._write_event({
            "event": "analysis_finish",
            "ingest_id": ingest_id,
            "model": model,
            "duration_seconds": round(elapsed, 3),
            "ok": ok,
        })

    def entry_persisted(
        self,
        ingest_id: str,
        entry_id: str,
        ms_elapsed: int,
        tokens_in: int,
        tokens_out: int,
        cost_usd: Decimal,
    ) -> None:
        self.stats.ingested += 1
        self.stats.tokens_in += tokens_in
        self.stats.tokens_out += tokens_out
        self.stats.total_cost_estimate += cost_usd

        self._write_event({
            "event": "entry_persisted",
            "ingest_id": ingest_id,
            "entry_id": entry_id,
            "ms_elapsed": ms_elapsed,
            "tokens_in": tokens_in,
            "tokens_out": tokens_out,
            "cost_estimate_usd": float(cost_usd),
        })

        self._console_print(
            f"  [green]+[/green] {entry_id} ({ms_elapsed} ms, ${cost_usd})",
            Verbosity.VERBOSE,
        )

    def ingest_failed(self, ingest_id: str, stage: str, error: BaseException) -> None:
        self.stats.failed += 1

        self._write_event({
            "event": "ingest_failed",
            "ingest_id": ingest_id,
            "stage": stage,
            "error": str(error),
        })

        self._console_print(
            f"  [red]x[/red] {ingest_id} failed at {stage}: {escape(str(error))}",
            Verbosity.VERBOSE,
        )

    def close(self) -> None:
        """Close the log file if open."""
        if self._log_file is not None:
            self._log_file.close()
            self._log_file = None
