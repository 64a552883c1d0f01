"""Tests for the ingestion orchestrator."""

from __future__ import annotations

import asyncio
import json
from decimal import Decimal

import pytest

from voicelog.core.errors import (
    AnalysisError,
    AnalysisParseError,
    InputError,
    StorageError,
    TranscriptionError,
    TransportError,
    TransportErrorKind,
)
from voicelog.ingest import DEFAULT_FILENAME_HINT, filename_hint

from tests.helpers.fakes import FakeAnalyzer, FakeTranscriber, RecordingDatastore, unavailable


def run(coro):
    return asyncio.run(coro)


class TestFilenameHint:
    @pytest.mark.parametrize("mime, expected", [
        ("audio/mp4", "audio.mp4"),
        ("audio/aac", "audio.mp4"),
        ("audio/x-m4a; codecs=mp4a", "audio.mp4"),
        ("audio/webm;codecs=opus", "audio.webm"),
        ("audio/ogg", "audio.ogg"),
        ("audio/opus", "audio.ogg"),
        ("audio/mpeg", "audio.mp3"),
        ("audio/mp3", "audio.mp3"),
        ("audio/wav", "audio.wav"),
        ("audio/x-wav", "audio.wav"),
        ("AUDIO/WEBM", "audio.webm"),
    ])
    def test_mime_table(self, mime, expected):
        assert filename_hint(mime) == expected

    def test_unknown_mime_falls_back(self):
        assert filename_hint("application/octet-stream") == DEFAULT_FILENAME_HINT

    def test_mime_wins_over_original_name(self):
        assert filename_hint("audio/webm", "voice memo.m4a") == "audio.webm"

    def test_original_name_when_no_mime(self):
        assert filename_hint(None, "/phone/voice memo.m4a") == "voice memo.m4a"

    def test_default_when_nothing_known(self):
        assert filename_hint(None) == "audio.mp3"
        assert filename_hint("", "") == "audio.mp3"


class TestIngestSuccess:
    def test_happy_path(self, make_orchestrator, upload):
        transcriber = FakeTranscriber(outcomes=["Today was a good day. I went for a walk."])
        analyzer = FakeAnalyzer()
        datastore = RecordingDatastore()
        orchestrator = make_orchestrator(transcriber, analyzer, datastore, project_id="proj_123")

        entry = run(orchestrator.ingest(upload, "audio/mp4", "note.m4a", user_id="u1"))

        assert entry.mood == 7
        assert entry.summary == "Productive day with a good walk."
        assert entry.advice == "Keep the walk in the morning."
        assert entry.transcript == "Today was a good day. I went for a walk."
        assert entry.model_asr == "fake-asr"
        assert entry.model_analysis == "fake-llm"
        assert entry.user_id == "u1"
        assert entry.project_id == "proj_123"
        assert entry.audio_path == str(upload.path)
        assert entry.ms_elapsed >= 0
        assert entry.tokens_input == 10  # 40 chars
        assert entry.tokens_output > 0
        assert isinstance(entry.cost_estimate_usd, Decimal)
        assert entry.duration_seconds is None

    def test_writes_exactly_once_and_releases_once(self, make_orchestrator, upload):
        datastore = RecordingDatastore()
        orchestrator = make_orchestrator(datastore=datastore)

        run(orchestrator.ingest(upload, "audio/mp4"))

        assert len(datastore.inserted) == 1
        assert upload.release_count == 1
        assert not upload.path.exists()

    def test_transcript_embedded_in_single_analysis_prompt(self, make_orchestrator, upload):
        analyzer = FakeAnalyzer()
        orchestrator = make_orchestrator(
            transcriber=FakeTranscriber(outcomes=["Long meeting, tired."]),
            analyzer=analyzer,
        )

        run(orchestrator.ingest(upload, "audio/mp4"))

        assert len(analyzer.prompts) == 1
        assert '"""Long meeting, tired."""' in analyzer.prompts[0]

    def test_hint_from_mime(self, make_orchestrator, upload):
        transcriber = FakeTranscriber()
        run(make_orchestrator(transcriber=transcriber).ingest(upload, "audio/webm"))
        assert transcriber.calls[0]["filename_hint"] == "audio.webm"

    def test_hint_from_upload_metadata(self, make_orchestrator, audio_file):
        from voicelog.uploads import AudioUpload

        transcriber = FakeTranscriber()
        bare = AudioUpload(path=audio_file, original_name="evening.wav")

        run(make_orchestrator(transcriber=transcriber).ingest(bare))

        assert transcriber.calls[0]["filename_hint"] == "evening.wav"

    def test_retries_transient_transcription_failures(self, make_orchestrator, upload, sleeps):
        transcriber = FakeTranscriber(outcomes=[unavailable(), unavailable(), "finally"])
        datastore = RecordingDatastore()
        orchestrator = make_orchestrator(transcriber=transcriber, datastore=datastore)

        entry = run(orchestrator.ingest(upload, "audio/mp4"))

        assert entry.transcript == "finally"
        assert len(transcriber.calls) == 3
        assert all(call["bytes"] == transcriber.calls[0]["bytes"] for call in transcriber.calls)
        assert sleeps == [1.0, 2.0]
        assert len(datastore.inserted) == 1
        assert orchestrator.events.stats.retries == 2


class TestIngestFailures:
    def test_no_upload(self, make_orchestrator):
        datastore = RecordingDatastore()
        with pytest.raises(InputError):
            run(make_orchestrator(datastore=datastore).ingest(None))
        assert datastore.inserted == []

    def test_empty_file(self, make_orchestrator, upload):
        upload.path.write_bytes(b"")
        datastore = RecordingDatastore()
        transcriber = FakeTranscriber()

        with pytest.raises(InputError):
            run(make_orchestrator(transcriber=transcriber, datastore=datastore).ingest(upload))

        assert transcriber.calls == []
        assert datastore.inserted == []
        assert upload.release_count == 1

    def test_missing_file(self, make_orchestrator, upload):
        upload.path.unlink()
        with pytest.raises(InputError):
            run(make_orchestrator().ingest(upload))
        assert upload.release_count == 1

    def test_transcription_exhausted(self, make_orchestrator, upload):
        transcriber = FakeTranscriber(outcomes=[unavailable()])
        analyzer = FakeAnalyzer()
        datastore = RecordingDatastore()
        orchestrator = make_orchestrator(transcriber, analyzer, datastore)

        with pytest.raises(TranscriptionError) as exc_info:
            run(orchestrator.ingest(upload, "audio/mp4"))

        assert isinstance(exc_info.value.cause, TransportError)
        assert "3 attempt" in str(exc_info.value)
        assert len(transcriber.calls) == 3
        assert analyzer.prompts == []
        assert datastore.inserted == []
        assert upload.release_count == 1

    def test_transcription_fatal(self, make_orchestrator, upload, sleeps):
        fatal = TransportError(TransportErrorKind.AUTH, "invalid key", status=401)
        transcriber = FakeTranscriber(outcomes=[fatal])

        with pytest.raises(TranscriptionError) as exc_info:
            run(make_orchestrator(transcriber=transcriber).ingest(upload, "audio/mp4"))

        assert exc_info.value.cause is fatal
        assert len(transcriber.calls) == 1
        assert sleeps == []
        assert upload.release_count == 1

    def test_analysis_transport_failure_not_retried(self, make_orchestrator, upload):
        analyzer = FakeAnalyzer(reply=unavailable())
        datastore = RecordingDatastore()

        with pytest.raises(AnalysisError) as exc_info:
            run(make_orchestrator(analyzer=analyzer, datastore=datastore).ingest(upload, "audio/mp4"))

        assert not isinstance(exc_info.value, AnalysisParseError)
        assert len(analyzer.prompts) == 1
        assert datastore.inserted == []
        assert upload.release_count == 1

    def test_malformed_analysis(self, make_orchestrator, upload):
        analyzer = FakeAnalyzer(reply="I think the mood is about a seven.")
        datastore = RecordingDatastore()

        with pytest.raises(AnalysisParseError):
            run(make_orchestrator(analyzer=analyzer, datastore=datastore).ingest(upload, "audio/mp4"))

        assert datastore.inserted == []
        assert upload.release_count == 1

    def test_out_of_range_mood_never_stored(self, make_orchestrator, upload):
        analyzer = FakeAnalyzer(reply='{"mood": 12, "summary": "s", "advice": "a"}')
        datastore = RecordingDatastore()

        with pytest.raises(AnalysisParseError):
            run(make_orchestrator(analyzer=analyzer, datastore=datastore).ingest(upload, "audio/mp4"))

        assert datastore.inserted == []

    def test_storage_failure_wrapped(self, make_orchestrator, upload):
        datastore = RecordingDatastore(error=RuntimeError("disk full"))

        with pytest.raises(StorageError) as exc_info:
            run(make_orchestrator(datastore=datastore).ingest(upload, "audio/mp4"))

        assert "disk full" in str(exc_info.value)
        assert upload.release_count == 1

    def test_storage_error_passes_through(self, make_orchestrator, upload):
        original = StorageError("insert_entry failed")
        datastore = RecordingDatastore(error=original)

        with pytest.raises(StorageError) as exc_info:
            run(make_orchestrator(datastore=datastore).ingest(upload, "audio/mp4"))

        assert exc_info.value is original

    def test_failure_counted_once(self, make_orchestrator, upload):
        orchestrator = make_orchestrator(analyzer=FakeAnalyzer(reply="not json"))

        with pytest.raises(AnalysisParseError):
            run(orchestrator.ingest(upload, "audio/mp4"))

        stats = orchestrator.events.stats
        assert stats.failed == 1
        assert stats.ingested == 0
        assert stats.stages["analysis"].failures == 1


class TestCancellation:
    def test_cancel_during_transcription_releases_upload(self, make_orchestrator, upload):
        datastore = RecordingDatastore()

        class HangingTranscriber:
            model = "hang"

            def __init__(self):
                self.started = None

            async def transcribe(self, source, filename_hint):
                self.started.set()
                await asyncio.sleep(3600)

        transcriber = HangingTranscriber()

        async def scenario():
            transcriber.started = asyncio.Event()
            task = asyncio.create_task(
                make_orchestrator(transcriber=transcriber, datastore=datastore).ingest(upload, "audio/mp4")
            )
            await transcriber.started.wait()
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task

        run(scenario())

        assert datastore.inserted == []
        assert upload.release_count == 1
        assert not upload.path.exists()

    def test_cancel_during_backoff_stops_retrying(self, make_orchestrator, upload):
        transcriber = FakeTranscriber(outcomes=[unavailable(), "never"])
        datastore = RecordingDatastore()

        async def scenario():
            orchestrator = make_orchestrator(transcriber=transcriber, datastore=datastore)
            orchestrator._sleep = asyncio.sleep
            orchestrator.backoff_seconds = 60
            task = asyncio.create_task(orchestrator.ingest(upload, "audio/mp4"))
            while not transcriber.calls:
                await asyncio.sleep(0)
            await asyncio.sleep(0)
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task

        run(scenario())

        assert len(transcriber.calls) == 1
        assert datastore.inserted == []
        assert upload.release_count == 1


def test_concurrent_ingestions_share_one_event_log(make_orchestrator, tmp_path):
    from voicelog.core.logging import IngestionLogger
    from voicelog.uploads import AudioUpload

    uploads = []
    for name in ("a.webm", "b.webm"):
        path = tmp_path / name
        path.write_bytes(b"audio bytes")
        uploads.append(AudioUpload(path=path, mime_type="audio/webm"))
    events = IngestionLogger(log_dir=tmp_path / "logs")
    datastore = RecordingDatastore()
    orchestrator = make_orchestrator(
        transcriber=FakeTranscriber(outcomes=[unavailable(), "ok"]),
        datastore=datastore,
        events=events,
    )

    async def scenario():
        return await asyncio.gather(*(orchestrator.ingest(upload) for upload in uploads))

    run(scenario())
    events.close()

    lines = events.log_path.read_text().splitlines()
    records = [json.loads(line) for line in lines]
    assert len({r["ingest_id"] for r in records}) == 2
    assert sum(r["event"] == "entry_persisted" for r in records) == 2
    assert len(datastore.inserted) == 2
    assert all(upload.release_count == 1 for upload in uploads)
