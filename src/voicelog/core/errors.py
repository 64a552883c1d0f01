"""Voicelog error types and utilities."""

from __future__ import annotations

import os
import tempfile
from enum import Enum
from pathlib import Path


def atomic_write(path: Path, content: str) -> None:
    """Write content to a file atomically using temp file + rename.

    Writes to a temporary file in the same directory, fsyncs it,
    then atomically replaces the target path.
    """
    fd, tmp = tempfile.mkstemp(dir=path.parent, suffix=".tmp")
    try:
        # fdopen owns the descriptor from here and closes it exactly once
        with os.fdopen(fd, "wb") as fh:
            fh.write(content.encode())
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(tmp, str(path))
    except BaseException:
        try:
            os.unlink(tmp)
        except OSError:
            pass
        raise


class VoicelogError(Exception):
    """Base exception for Voicelog."""

    pass


class ConfigError(VoicelogError):
    """Missing or inconsistent configuration."""

    pass


class TransportErrorKind(str, Enum):
    """Closed set of failure categories reported by remote collaborators."""

    CONNECTION = "connection"
    TIMEOUT = "timeout"
    DNS = "dns"
    UNAVAILABLE = "unavailable"
    RATE_LIMITED = "rate_limited"
    SERVER = "server"
    BAD_REQUEST = "bad_request"
    AUTH = "auth"
    UNKNOWN = "unknown"


class TransportError(VoicelogError):
    """A remote service call failed.

    Raised by the transcription and analysis clients. ``kind`` is the
    category used for retry decisions; ``status`` is the HTTP status
    when the service answered at all.
    """

    def __init__(
        self,
        kind: TransportErrorKind,
        message: str = "",
        status: int | None = None,
    ) -> None:
        self.kind = kind
        self.status = status
        self.message = message
        super().__init__(message or kind.value)

    def __str__(self) -> str:
        label = f"{self.kind.value}/{self.status}" if self.status else self.kind.value
        return f"[{label}] {self.message}" if self.message else label


class IngestionError(VoicelogError):
    """An ingestion run was aborted.

    Attributes:
        stage: Pipeline stage that failed ("input", "transcription",
            "analysis", "storage").
        cause: The underlying exception, if any.
    """

    stage = "ingest"

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        self.cause = cause
        super().__init__(message)

    def __str__(self) -> str:
        base = super().__str__()
        if self.cause is not None:
            return f"{self.stage}: {base} ({self.cause})"
        return f"{self.stage}: {base}"


class InputError(IngestionError):
    """No usable audio resource was supplied."""

    stage = "input"


class TranscriptionError(IngestionError):
    """Speech-to-text failed, either fatally or after exhausting retries."""

    stage = "transcription"


class AnalysisError(IngestionError):
    """The single analysis call failed."""

    stage = "analysis"


class AnalysisParseError(AnalysisError):
    """The analysis step returned malformed or incomplete structured output."""


class StorageError(IngestionError):
    """Persisting or reading journal entries failed."""

    stage = "storage"


class ValidationError(IngestionError):
    """A value failed a domain check outside of analysis parsing."""

    stage = "validation"
