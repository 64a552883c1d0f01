"""Async facade over the journal database.

Each operation is one short session run in a worker thread, so callers on
the event loop suspend instead of blocking. The connection pool belongs to
the SQLAlchemy engine passed in at construction.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from datetime import datetime
from typing import Any, TypeVar

from sqlalchemy import Engine
from sqlalchemy.exc import SQLAlchemyError

from voicelog.core.errors import StorageError
from voicelog.core.models import DailyMoodPoint, EntrySummary, JournalEntry
from voicelog.db.engine import create_db_engine, create_session_factory, init_database, session_scope
from voicelog.services import entries

T = TypeVar("T")


class Datastore:
    """Persists and reads journal entries."""

    def __init__(self, engine: Engine) -> None:
        self.engine = engine
        self._sessions = create_session_factory(engine)

    @classmethod
    def from_url(cls, url: str) -> Datastore:
        return cls(create_db_engine(url))

    def init_schema(self) -> None:
        """Create tables if missing (synchronous; call at startup)."""
        init_database(self.engine)

    def dispose(self) -> None:
        self.engine.dispose()

    async def _run(self, operation: str, fn: Callable[..., T], *args: Any) -> T:
        try:
            return await asyncio.to_thread(fn, *args)
        except SQLAlchemyError as exc:
            raise StorageError(f"{operation} failed", cause=exc) from exc

    # -- Writes --

    async def insert_entry(
        self,
        fields: dict[str, Any],
        created_at: datetime | None = None,
    ) -> JournalEntry:
        """Insert one complete entry as a single statement."""
        return await self._run("insert_entry", self._insert_entry, fields, created_at)

    def _insert_entry(self, fields: dict[str, Any], created_at: datetime | None) -> JournalEntry:
        with session_scope(self._sessions) as session:
            row = entries.insert_entry(session, fields, created_at=created_at)
            return entries.to_entry(row)

    # -- Reads --

    async def get_entry(self, entry_id: str) -> JournalEntry | None:
        return await self._run("get_entry", self._get_entry, entry_id)

    def _get_entry(self, entry_id: str) -> JournalEntry | None:
        with session_scope(self._sessions) as session:
            row = entries.get_entry(session, entry_id)
            return entries.to_entry(row) if row is not None else None

    async def list_entries(self, limit: int | None = entries.DEFAULT_LIST_LIMIT) -> list[EntrySummary]:
        """Newest entries first; ``limit`` is clamped to [1, 100]."""
        return await self._run("list_entries", self._list_entries, limit)

    def _list_entries(self, limit: int | None) -> list[EntrySummary]:
        with session_scope(self._sessions) as session:
            return [entries.to_summary(row) for row in entries.list_entries(session, limit)]

    async def mood_samples(
        self,
        start: datetime,
        end: datetime,
        tenant_filter: str | None = None,
    ) -> list[tuple[datetime, int | None]]:
        """(created_at, mood) for entries in ``[start, end)``."""
        return await self._run("mood_samples", self._mood_samples, start, end, tenant_filter)

    def _mood_samples(
        self,
        start: datetime,
        end: datetime,
        tenant_filter: str | None,
    ) -> list[tuple[datetime, int | None]]:
        with session_scope(self._sessions) as session:
            return entries.mood_samples(session, start, end, user_id=tenant_filter)

    async def get_daily_mood(self, days: int, tenant_filter: str | None = None) -> list[DailyMoodPoint]:
        """Gap-filled daily series for the last ``days`` days (clamped to [1, 90])."""
        from voicelog.aggregation import MoodAggregator

        return await MoodAggregator(self).daily_mood(days, tenant_filter)
