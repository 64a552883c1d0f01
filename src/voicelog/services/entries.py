"""Journal entry persistence and queries."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any
from uuid import uuid4

from sqlalchemy import select
from sqlalchemy.orm import Session

from voicelog.core.errors import ValidationError
from voicelog.core.models import ENTRY_FIELDS, EntrySummary, JournalEntry
from voicelog.db.entries import JournalEntryRow

DEFAULT_LIST_LIMIT = 20
MAX_LIST_LIMIT = 100

_NON_NEGATIVE = ("ms_elapsed", "tokens_input", "tokens_output", "duration_seconds", "cost_estimate_usd")


def validate_entry_fields(fields: dict[str, Any]) -> None:
    """Reject unknown columns and negative counters.

    ``mood`` is deliberately not range-checked here; analysis output is
    validated where it is parsed.
    """
    unknown = sorted(set(fields) - set(ENTRY_FIELDS))
    if unknown:
        raise ValidationError(f"Unknown entry fields: {', '.join(unknown)}")
    for name in _NON_NEGATIVE:
        value = fields.get(name)
        if value is not None and value < 0:
            raise ValidationError(f"{name} must be non-negative, got {value}")


def insert_entry(
    session: Session,
    fields: dict[str, Any],
    created_at: datetime | None = None,
) -> JournalEntryRow:
    """Insert one complete journal entry.

    Args:
        session: Database session.
        fields: Column values (everything except id and created_at).
        created_at: Override the store-assigned timestamp (imports, tests).

    Returns:
        The flushed row, with id and created_at populated.
    """
    validate_entry_fields(fields)

    values = dict(fields)
    if values.get("cost_estimate_usd") is not None:
        values["cost_estimate_usd"] = Decimal(str(values["cost_estimate_usd"]))

    row = JournalEntryRow(id=str(uuid4()), **values)
    if created_at is not None:
        row.created_at = created_at

    session.add(row)
    session.flush()
    return row


def get_entry(session: Session, entry_id: str) -> JournalEntryRow | None:
    """Get an entry by ID, or None if not found."""
    return session.get(JournalEntryRow, entry_id)


def clamp_limit(limit: int | None) -> int:
    """Clamp a listing limit into [1, MAX_LIST_LIMIT]."""
    if limit is None:
        return DEFAULT_LIST_LIMIT
    return max(1, min(MAX_LIST_LIMIT, limit))


def list_entries(session: Session, limit: int | None = DEFAULT_LIST_LIMIT) -> list[JournalEntryRow]:
    """Most recent entries, newest first."""
    stmt = (
        select(JournalEntryRow)
        .order_by(JournalEntryRow.created_at.desc(), JournalEntryRow.id.desc())
        .limit(clamp_limit(limit))
    )
    return list(session.scalars(stmt))


def mood_samples(
    session: Session,
    start: datetime,
    end: datetime,
    user_id: str | None = None,
) -> list[tuple[datetime, int | None]]:
    """(created_at, mood) pairs for entries created in ``[start, end)``.

    Args:
        session: Database session.
        start: Inclusive lower bound (naive UTC).
        end: Exclusive upper bound (naive UTC).
        user_id: Optional tenant filter.

    Returns:
        Pairs ordered by created_at.
    """
    stmt = select(JournalEntryRow.created_at, JournalEntryRow.mood).where(
        JournalEntryRow.created_at >= start,
        JournalEntryRow.created_at < end,
    )
    if user_id is not None:
        stmt = stmt.where(JournalEntryRow.user_id == user_id)
    stmt = stmt.order_by(JournalEntryRow.created_at)
    return [(created_at, mood) for created_at, mood in session.execute(stmt)]


def to_entry(row: JournalEntryRow) -> JournalEntry:
    """Detach a row into an immutable JournalEntry."""
    return JournalEntry(id=row.id, created_at=row.created_at, **{
        name: getattr(row, name) for name in ENTRY_FIELDS
    })


def to_summary(row: JournalEntryRow) -> EntrySummary:
    return EntrySummary(
        id=row.id,
        created_at=row.created_at,
        mood=row.mood,
        summary=row.summary,
        advice=row.advice,
    )
