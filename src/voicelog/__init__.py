"""Voicelog - spoken journal entries turned into mood records.

Usage:
    from voicelog import build_app, get_settings, stage_upload

    settings = get_settings()
    app = build_app(settings)
    upload = stage_upload(Path("note.m4a"), settings.uploads_dir, mime_type="audio/mp4")
    entry = await app.ingest(upload, "audio/mp4", "note.m4a")
    series = await app.daily_mood(30)
    recent = await app.list_entries(20)
"""

from voicelog.aggregation import MoodAggregator
from voicelog.app import JournalApp, build_app
from voicelog.config import Settings, get_settings
from voicelog.core.models import DailyMoodPoint, EntrySummary, JournalEntry
from voicelog.cost import Pricing, estimate_cost
from voicelog.datastore import Datastore
from voicelog.ingest import IngestionOrchestrator
from voicelog.retry import transcribe_with_retry
from voicelog.uploads import AudioUpload, stage_upload

__all__ = [
    "AudioUpload",
    "DailyMoodPoint",
    "Datastore",
    "EntrySummary",
    "IngestionOrchestrator",
    "JournalApp",
    "JournalEntry",
    "MoodAggregator",
    "Pricing",
    "Settings",
    "build_app",
    "estimate_cost",
    "get_settings",
    "stage_upload",
    "transcribe_with_retry",
]

__version__ = "0.1.0"
