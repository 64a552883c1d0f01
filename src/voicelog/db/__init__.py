"""Database models and engine helpers for Voicelog."""

from voicelog.db.engine import (
    create_db_engine,
    create_session_factory,
    init_database,
    session_scope,
)
from voicelog.db.entries import JournalBase, JournalEntryRow

__all__ = [
    "JournalBase",
    "JournalEntryRow",
    "create_db_engine",
    "create_session_factory",
    "init_database",
    "session_scope",
]
