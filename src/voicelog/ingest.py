"""Ingestion pipeline: one audio upload in, one persisted journal entry out.

Steps run strictly in order: transcribe (with retry) -> analyze (once) ->
estimate cost -> persist (once). The staged audio is released exactly once
on every exit path, including cancellation. Nothing is written unless every
earlier step succeeded.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import TYPE_CHECKING, Any
from uuid import uuid4

from voicelog.analysis import build_analysis_prompt, parse_analysis, serialize_analysis
from voicelog.clients.base import AnalysisClient, TranscriptionClient
from voicelog.core.errors import (
    AnalysisError,
    IngestionError,
    InputError,
    StorageError,
    TranscriptionError,
)
from voicelog.core.logging import IngestionLogger
from voicelog.core.models import Analysis, JournalEntry, Transcript
from voicelog.cost import Pricing, estimate_cost
from voicelog.retry import SourceFactory, transcribe_with_retry
from voicelog.uploads import AudioUpload

if TYPE_CHECKING:
    from voicelog.datastore import Datastore

logger = logging.getLogger(__name__)

# Substring of the MIME type -> filename the transcription service understands
MIME_FILENAME_HINTS: tuple[tuple[tuple[str, ...], str], ...] = (
    (("mp4", "aac"), "audio.mp4"),
    (("webm",), "audio.webm"),
    (("ogg", "opus"), "audio.ogg"),
    (("mpeg", "mp3"), "audio.mp3"),
    (("wav",), "audio.wav"),
)
DEFAULT_FILENAME_HINT = "audio.mp3"


def filename_hint(mime_type: str | None, original_name: str | None = None) -> str:
    """Filename telling the transcription service the container format.

    The MIME type wins when present; otherwise the original upload name is
    used, then ``audio.mp3``. Stored files are never renamed.
    """
    if mime_type:
        lowered = mime_type.lower()
        for needles, hint in MIME_FILENAME_HINTS:
            if any(needle in lowered for needle in needles):
                return hint
        return DEFAULT_FILENAME_HINT
    if original_name:
        return Path(original_name).name
    return DEFAULT_FILENAME_HINT


class IngestionOrchestrator:
    """Drives one upload through the pipeline and owns retry and cleanup."""

    def __init__(
        self,
        transcriber: TranscriptionClient,
        analyzer: AnalysisClient,
        datastore: Datastore,
        pricing: Pricing,
        *,
        max_attempts: int = 3,
        backoff_seconds: float = 1.0,
        project_id: str | None = None,
        events: IngestionLogger | None = None,
        sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.transcriber = transcriber
        self.analyzer = analyzer
        self.datastore = datastore
        self.pricing = pricing
        self.max_attempts = max_attempts
        self.backoff_seconds = backoff_seconds
        self.project_id = project_id
        self.events = events if events is not None else IngestionLogger()
        self._sleep = sleep
        self._clock = clock

    async def ingest(
        self,
        upload: AudioUpload | None,
        mime_hint: str | None = None,
        original_name_hint: str | None = None,
        user_id: str | None = None,
    ) -> JournalEntry:
        """Transcribe, analyze, price and persist one upload.

        Args:
            upload: The staged audio; released on every exit path.
            mime_hint: MIME type reported by the uploader.
            original_name_hint: Client-side filename, used when no MIME type.
            user_id: Optional owner recorded on the entry.

        Returns:
            The persisted JournalEntry.

        Raises:
            InputError, TranscriptionError, AnalysisError (including
            AnalysisParseError), StorageError.
        """
        if upload is None:
            raise InputError("No audio file supplied")

        ingest_id = uuid4().hex[:12]
        started = self._clock()
        try:
            if not upload.exists():
                raise InputError(f"Audio file missing or empty: {upload.path}")

            hint = filename_hint(
                mime_hint or upload.mime_type,
                original_name_hint or upload.original_name,
            )
            self.events.ingest_start(ingest_id, hint)

            transcript = await self.transcribe(ingest_id, upload.open, hint)
            analysis = await self.analyze(ingest_id, transcript)

            cost = estimate_cost(transcript.text, serialize_analysis(analysis), self.pricing)
            ms_elapsed = int((self._clock() - started) * 1000)

            entry = await self._persist({
                "user_id": user_id,
                "audio_path": str(upload.path),
                "transcript": transcript.text,
                "mood": analysis.mood,
                "summary": analysis.summary,
                "advice": analysis.advice,
                "model_asr": transcript.model or self.transcriber.model,
                "model_analysis": self.analyzer.model,
                "ms_elapsed": ms_elapsed,
                "project_id": self.project_id,
                "tokens_input": cost.tokens_in,
                "tokens_output": cost.tokens_out,
                "duration_seconds": None,
                "cost_estimate_usd": cost.cost_usd,
            })
        except IngestionError as exc:
            self.events.ingest_failed(ingest_id, exc.stage, exc)
            logger.error("Ingestion %s failed: %s", ingest_id, exc)
            raise
        except asyncio.CancelledError:
            logger.info("Ingestion %s cancelled", ingest_id)
            raise
        finally:
            upload.release()

        self.events.entry_persisted(
            ingest_id,
            entry.id,
            ms_elapsed,
            cost.tokens_in,
            cost.tokens_out,
            cost.cost_usd,
        )
        logger.info("Ingestion %s stored entry %s in %d ms", ingest_id, entry.id, ms_elapsed)
        return entry

    async def transcribe(self, ingest_id: str, source_factory: SourceFactory, hint: str) -> Transcript:
        """Run the retrying transcription; any final failure becomes TranscriptionError."""
        attempts = 0

        def record(attempt: int, error: BaseException | None, retrying: bool) -> None:
            nonlocal attempts
            attempts = attempt
            self.events.transcribe_attempt(ingest_id, attempt, self.max_attempts, error, retrying)

        try:
            return await transcribe_with_retry(
                self.transcriber,
                source_factory,
                hint,
                max_attempts=self.max_attempts,
                backoff_seconds=self.backoff_seconds,
                sleep=self._sleep,
                on_attempt=record,
            )
        except Exception as exc:
            raise TranscriptionError(
                f"transcription failed after {attempts} attempt(s)", cause=exc
            ) from exc

    async def analyze(self, ingest_id: str, transcript: Transcript) -> Analysis:
        """One analysis call, parsed strictly. Never retried."""
        prompt = build_analysis_prompt(transcript.text)
        started = self._clock()
        try:
            raw = await self.analyzer.complete(prompt)
            analysis = parse_analysis(raw)
        except AnalysisError:
            self.events.analysis_finish(ingest_id, self.analyzer.model, self._clock() - started, ok=False)
            raise
        except Exception as exc:
            self.events.analysis_finish(ingest_id, self.analyzer.model, self._clock() - started, ok=False)
            raise AnalysisError("analysis call failed", cause=exc) from exc

        self.events.analysis_finish(ingest_id, self.analyzer.model, self._clock() - started, ok=True)
        return analysis

    async def _persist(self, fields: dict[str, Any]) -> JournalEntry:
        try:
            return await self.datastore.insert_entry(fields)
        except IngestionError:
            raise
        except Exception as exc:
            raise StorageError("could not persist journal entry", cause=exc) from exc
