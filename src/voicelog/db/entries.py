"""Database models for Voicelog.

One table, ``journal_entries``: each row is a complete ingestion result or
a manually created record. Rows are written once and never updated.
"""

from datetime import datetime, timezone
from decimal import Decimal
from uuid import uuid4

from sqlalchemy import DateTime, Index, Integer, Numeric, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def _utcnow() -> datetime:
    """Naive UTC timestamp with microsecond resolution."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class JournalBase(DeclarativeBase):
    """Base class for journal models."""


class JournalEntryRow(JournalBase):
    """A persisted journal entry."""

    __tablename__ = "journal_entries"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_utcnow)
    user_id: Mapped[str | None] = mapped_column(String(64), nullable=True)

    mood: Mapped[int | None] = mapped_column(Integer, nullable=True)
    summary: Mapped[str | None] = mapped_column(Text, nullable=True)
    advice: Mapped[str | None] = mapped_column(Text, nullable=True)
    transcript: Mapped[str | None] = mapped_column(Text, nullable=True)
    audio_path: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Processing audit
    model_asr: Mapped[str | None] = mapped_column(Text, nullable=True)
    model_analysis: Mapped[str | None] = mapped_column(Text, nullable=True)
    ms_elapsed: Mapped[int | None] = mapped_column(Integer, nullable=True)
    project_id: Mapped[str | None] = mapped_column(Text, nullable=True)
    tokens_input: Mapped[int | None] = mapped_column(Integer, nullable=True)
    tokens_output: Mapped[int | None] = mapped_column(Integer, nullable=True)
    duration_seconds: Mapped[int | None] = mapped_column(Integer, nullable=True)
    cost_estimate_usd: Mapped[Decimal | None] = mapped_column(Numeric(10, 4), nullable=True)

    __table_args__ = (
        Index("idx_journal_entries_created_at", "created_at"),
        Index("idx_journal_entries_user_created", "user_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<JournalEntryRow id={self.id}>"
