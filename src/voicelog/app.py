"""Application wiring: the operations exposed to callers.

``build_app`` is the composition root. It constructs the datastore, the
remote clients and the orchestrator explicitly and hands them to a
``JournalApp``; nothing is created lazily behind a global.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any
from uuid import uuid4

from voicelog.aggregation import MoodAggregator
from voicelog.config import Settings
from voicelog.core.config import AnalysisConfig, TranscriptionConfig, check_credentials
from voicelog.core.errors import InputError, atomic_write
from voicelog.core.logging import IngestionLogger, Verbosity
from voicelog.core.models import DailyMoodPoint, EntrySummary, JournalEntry
from voicelog.cost import Pricing
from voicelog.datastore import Datastore
from voicelog.ingest import IngestionOrchestrator, filename_hint
from voicelog.uploads import AudioUpload

logger = logging.getLogger(__name__)


@dataclass
class JournalApp:
    """The three operations surfaced upward, plus the one-shot report."""

    datastore: Datastore
    orchestrator: IngestionOrchestrator
    aggregator: MoodAggregator

    async def ingest(
        self,
        upload: AudioUpload | None,
        mime_hint: str | None = None,
        original_name_hint: str | None = None,
        user_id: str | None = None,
    ) -> JournalEntry:
        return await self.orchestrator.ingest(upload, mime_hint, original_name_hint, user_id)

    async def daily_mood(self, days: int, tenant_filter: str | None = None) -> list[DailyMoodPoint]:
        return await self.aggregator.daily_mood(days, tenant_filter)

    async def list_entries(self, limit: int | None = 20) -> list[EntrySummary]:
        return await self.datastore.list_entries(limit)

    async def transcribe_report(
        self,
        audio: Path,
        output_dir: Path,
        mime_hint: str | None = None,
    ) -> Path:
        """Transcribe and analyze ``audio`` without persisting anything.

        Writes ``{file, text, analysis, ms, created_at}`` to
        ``output_dir/<YYYY-MM-DD>.json`` and returns that path. The input
        file is left in place.
        """
        if not audio.is_file():
            raise InputError(f"Input file missing or not found: {audio}")

        started = time.monotonic()
        report_id = uuid4().hex[:12]
        hint = filename_hint(mime_hint, audio.name)
        transcript = await self.orchestrator.transcribe(report_id, lambda: open(audio, "rb"), hint)
        analysis = await self.orchestrator.analyze(report_id, transcript)

        now = datetime.now(timezone.utc)
        result: dict[str, Any] = {
            "file": str(audio.resolve()),
            "text": transcript.text,
            "analysis": {
                "mood": analysis.mood,
                "summary": analysis.summary,
                "advice": analysis.advice,
            },
            "ms": int((time.monotonic() - started) * 1000),
            "created_at": now.isoformat(),
        }

        output_dir.mkdir(parents=True, exist_ok=True)
        output_path = output_dir / f"{now.date().isoformat()}.json"
        atomic_write(output_path, json.dumps(result, indent=2, ensure_ascii=False))
        logger.info("Saved transcription report %s (%d ms)", output_path, result["ms"])
        return output_path

    def close(self) -> None:
        self.orchestrator.events.close()
        self.datastore.dispose()


def build_app(
    settings: Settings,
    *,
    verbosity: Verbosity = Verbosity.DEFAULT,
    transcriber=None,
    analyzer=None,
    require_credentials: bool = True,
) -> JournalApp:
    """Construct a JournalApp from settings.

    Args:
        settings: Resolved application settings.
        verbosity: Console verbosity for ingestion events.
        transcriber: Override the OpenAI transcription client.
        analyzer: Override the analysis client.
        require_credentials: Validate OpenAI credentials up front.
    """
    from voicelog.clients import LLMAnalysisClient, OpenAITranscriptionClient

    if require_credentials and transcriber is None:
        check_credentials(settings.openai_api_key, settings.openai_project_id)

    settings.ensure_storage_dir()
    datastore = Datastore.from_url(settings.db_url)
    datastore.init_schema()

    if transcriber is None:
        transcriber = OpenAITranscriptionClient(TranscriptionConfig.from_settings(settings))
    if analyzer is None:
        analyzer = LLMAnalysisClient(AnalysisConfig.from_settings(settings))

    orchestrator = IngestionOrchestrator(
        transcriber,
        analyzer,
        datastore,
        Pricing.of(settings.price_input_per_mtok, settings.price_output_per_mtok),
        max_attempts=settings.transcription_attempts,
        backoff_seconds=settings.backoff_seconds,
        project_id=settings.openai_project_id or None,
        events=IngestionLogger(verbosity=verbosity, log_dir=settings.log_dir),
    )
    return JournalApp(
        datastore=datastore,
        orchestrator=orchestrator,
        aggregator=MoodAggregator(datastore),
    )
