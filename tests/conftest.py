"""Shared test fixtures for Voicelog."""

from __future__ import annotations

from pathlib import Path

import pytest

from voicelog.config import reset_settings
from voicelog.cost import Pricing
from voicelog.datastore import Datastore
from voicelog.ingest import IngestionOrchestrator
from voicelog.uploads import AudioUpload

from tests.helpers.fakes import FakeAnalyzer, FakeTranscriber, RecordingDatastore


@pytest.fixture
def audio_file(tmp_path) -> Path:
    """A small non-empty file standing in for recorded audio."""
    path = tmp_path / "uploads" / "1700000000000-note.m4a"
    path.parent.mkdir()
    path.write_bytes(b"\x00\x00\x00\x18ftypM4A fake audio payload")
    return path


@pytest.fixture
def upload(audio_file) -> AudioUpload:
    return AudioUpload(path=audio_file, mime_type="audio/mp4", original_name="note.m4a")


@pytest.fixture
def sleeps():
    """Recorded backoff delays; pass ``record_sleep`` as the sleep function."""
    return []


@pytest.fixture
def record_sleep(sleeps):
    async def _sleep(seconds):
        sleeps.append(seconds)

    return _sleep


@pytest.fixture
def make_orchestrator(record_sleep):
    """Factory building an orchestrator around fake collaborators."""

    def _make(transcriber=None, analyzer=None, datastore=None, **kwargs):
        return IngestionOrchestrator(
            transcriber if transcriber is not None else FakeTranscriber(),
            analyzer if analyzer is not None else FakeAnalyzer(),
            datastore if datastore is not None else RecordingDatastore(),
            Pricing.of("0.60", "2.40"),
            sleep=record_sleep,
            **kwargs,
        )

    return _make


@pytest.fixture
def datastore(tmp_path):
    """SQLite-backed datastore in a temporary directory."""
    store = Datastore.from_url(f"sqlite:///{tmp_path / 'journal.db'}")
    store.init_schema()
    yield store
    store.dispose()


@pytest.fixture
def clean_settings(monkeypatch, tmp_path):
    """Point settings at a temp storage dir and clear credentials."""
    for name in (
        "OPENAI_API_KEY",
        "OPENAI_PROJECT_ID",
        "VOICELOG_OPENAI_API_KEY",
        "VOICELOG_OPENAI_PROJECT_ID",
        "VOICELOG_DATABASE_URL",
        "VOICELOG_LOG_DIR",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("VOICELOG_STORAGE_DIR", str(tmp_path / "storage"))
    monkeypatch.chdir(tmp_path)
    reset_settings()
    yield tmp_path / "storage"
    reset_settings()
