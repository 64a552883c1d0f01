"""Core data models for Voicelog."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any


@dataclass(frozen=True)
class Transcript:
    """Text recognized from one audio upload."""

    text: str
    model: str | None = None


@dataclass(frozen=True)
class Analysis:
    """Structured mood assessment of a transcript."""

    mood: int  # 1..10
    summary: str
    advice: str
    raw: dict[str, Any] = field(default_factory=dict, compare=False)


@dataclass(frozen=True)
class CostEstimate:
    """Heuristic token counts and price for one ingestion."""

    tokens_in: int
    tokens_out: int
    cost_usd: Decimal


@dataclass(frozen=True)
class JournalEntry:
    """One persisted journal record. Immutable once created."""

    id: str
    created_at: datetime
    user_id: str | None = None
    mood: int | None = None
    summary: str | None = None
    advice: str | None = None
    transcript: str | None = None
    audio_path: str | None = None
    model_asr: str | None = None
    model_analysis: str | None = None
    ms_elapsed: int | None = None
    project_id: str | None = None
    tokens_input: int | None = None
    tokens_output: int | None = None
    duration_seconds: int | None = None
    cost_estimate_usd: Decimal | None = None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["created_at"] = self.created_at.isoformat()
        if self.cost_estimate_usd is not None:
            data["cost_estimate_usd"] = float(self.cost_estimate_usd)
        return data


@dataclass(frozen=True)
class EntrySummary:
    """Row shape returned by entry listings (newest first)."""

    id: str
    created_at: datetime
    mood: int | None
    summary: str | None
    advice: str | None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "created_at": self.created_at.isoformat(),
            "mood": self.mood,
            "summary": self.summary,
            "advice": self.advice,
        }


@dataclass(frozen=True)
class DailyMoodPoint:
    """Average mood for one calendar day. Derived, never persisted."""

    day: date
    avg_mood: float

    def to_dict(self) -> dict[str, Any]:
        return {"day": self.day.isoformat(), "avg_mood": self.avg_mood}


# Fields a caller may supply when inserting; id and created_at are assigned by the store
ENTRY_FIELDS: tuple[str, ...] = (
    "user_id",
    "mood",
    "summary",
    "advice",
    "transcript",
    "audio_path",
    "model_asr",
    "model_analysis",
    "ms_elapsed",
    "project_id",
    "tokens_input",
    "tokens_output",
    "duration_seconds",
    "cost_estimate_usd",
)
