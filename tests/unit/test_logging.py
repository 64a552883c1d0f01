"""Unit tests for ingestion event logging."""

from __future__ import annotations

import json
from decimal import Decimal
from io import StringIO

from rich.console import Console

from voicelog.core.errors import TranscriptionError
from voicelog.core.logging import IngestionLogger, IngestionStats, StageLog, Verbosity

from tests.helpers.fakes import unavailable


def read_events(path):
    return [json.loads(line) for line in path.read_text().splitlines()]


class TestStageLog:
    def test_defaults(self):
        stage = StageLog(name="transcription")
        assert stage.calls == 0
        assert stage.failures == 0
        assert stage.time_seconds == 0.0

    def test_to_dict(self):
        stage = StageLog(name="analysis", calls=2, failures=1, time_seconds=0.5)
        assert stage.to_dict() == {"name": "analysis", "calls": 2, "failures": 1, "time_seconds": 0.5}


class TestIngestionStats:
    def test_get_or_create_stage(self):
        stats = IngestionStats()
        stage = stats.get_or_create_stage("analysis")
        assert stats.get_or_create_stage("analysis") is stage

    def test_to_dict(self):
        stats = IngestionStats(run_id="r1", ingested=2, total_cost_estimate=Decimal("0.0003"))
        data = stats.to_dict()
        assert data["run_id"] == "r1"
        assert data["ingested"] == 2
        assert data["total_cost_estimate"] == 0.0003


class TestIngestionLogger:
    def test_no_log_dir_writes_nothing(self, tmp_path):
        logger = IngestionLogger()
        logger.ingest_start("abc", "audio.mp4")
        assert logger.log_path is None
        logger.close()

    def test_jsonl_events(self, tmp_path):
        logger = IngestionLogger(log_dir=tmp_path / "logs")
        logger.ingest_start("abc", "audio.mp4")
        logger.transcribe_attempt("abc", 1, 3, unavailable(), retrying=True)
        logger.transcribe_attempt("abc", 2, 3)
        logger.analysis_finish("abc", "gpt-4o-mini", 0.25, ok=True)
        logger.entry_persisted("abc", "entry-1", 1200, 100, 20, Decimal("0.0001"))
        logger.close()

        events = read_events(logger.log_path)

        assert [e["event"] for e in events] == [
            "ingest_start",
            "transcribe_attempt",
            "transcribe_attempt",
            "analysis_finish",
            "entry_persisted",
        ]
        assert all(e["ingest_id"] == "abc" for e in events)
        assert all("timestamp" in e for e in events)
        assert events[1]["ok"] is False
        assert events[1]["retrying"] is True
        assert "503" in events[1]["error"]
        assert events[2]["ok"] is True
        assert events[4]["cost_estimate_usd"] == 0.0001

    def test_stats(self):
        logger = IngestionLogger()
        logger.transcribe_attempt("a", 1, 3, unavailable(), retrying=True)
        logger.transcribe_attempt("a", 2, 3)
        logger.analysis_finish("a", "m", 0.5, ok=True)
        logger.entry_persisted("a", "e1", 900, 10, 5, Decimal("0.0001"))
        logger.ingest_failed("b", "transcription", TranscriptionError("gave up"))

        stats = logger.stats
        assert stats.retries == 1
        assert stats.stages["transcription"].calls == 2
        assert stats.stages["transcription"].failures == 1
        assert stats.stages["analysis"].time_seconds == 0.5
        assert stats.ingested == 1
        assert stats.failed == 1
        assert stats.tokens_in == 10
        assert stats.total_cost_estimate == Decimal("0.0001")

    def test_console_respects_verbosity(self):
        quiet_out = StringIO()
        quiet = IngestionLogger(verbosity=Verbosity.DEFAULT, console=Console(file=quiet_out))
        quiet.entry_persisted("a", "e1", 900, 10, 5, Decimal("0.0001"))
        assert quiet_out.getvalue() == ""

        loud_out = StringIO()
        loud = IngestionLogger(verbosity=Verbosity.VERBOSE, console=Console(file=loud_out))
        loud.entry_persisted("a", "e1", 900, 10, 5, Decimal("0.0001"))
        loud.transcribe_attempt("a", 1, 3, unavailable(), retrying=True)
        output = loud_out.getvalue()
        assert "e1" in output
        assert "attempt 1/3" not in output

    def test_debug_shows_attempts(self):
        out = StringIO()
        logger = IngestionLogger(verbosity=Verbosity.DEBUG, console=Console(file=out))
        logger.transcribe_attempt("a", 1, 3, unavailable(), retrying=True)
        assert "attempt 1/3 failed" in out.getvalue()
