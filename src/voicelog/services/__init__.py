"""Service layer for Voicelog operations.

- entries: journal entry inserts, listings and mood samples
"""

from voicelog.services import entries

__all__ = [
    "entries",
]
