"""Collaborator interfaces and SDK error translation."""

from __future__ import annotations

import socket
from typing import BinaryIO, Protocol

from voicelog.core.errors import TransportError, TransportErrorKind
from voicelog.core.models import Transcript


class TranscriptionClient(Protocol):
    """Speech-to-text service."""

    model: str

    async def transcribe(self, source: BinaryIO, filename_hint: str) -> Transcript:
        """Recognize speech in ``source``.

        ``source`` is consumed by the call; ``filename_hint`` only tells the
        service the container format. Raises TransportError on failure.
        """
        ...


class AnalysisClient(Protocol):
    """Language-model completion service returning raw text."""

    model: str

    async def complete(self, prompt: str) -> str:
        """Return the raw content string for ``prompt``. Raises TransportError."""
        ...


def kind_for_status(status: int) -> TransportErrorKind:
    """Map an HTTP status code to a transport error category."""
    if status == 408:
        return TransportErrorKind.TIMEOUT
    if status == 429:
        return TransportErrorKind.RATE_LIMITED
    if status == 503:
        return TransportErrorKind.UNAVAILABLE
    if status >= 500:
        return TransportErrorKind.SERVER
    if status in (401, 403):
        return TransportErrorKind.AUTH
    if 400 <= status < 500:
        return TransportErrorKind.BAD_REQUEST
    return TransportErrorKind.UNKNOWN


def _caused_by_dns(exc: BaseException) -> bool:
    seen = exc
    while seen is not None:
        if isinstance(seen, socket.gaierror):
            return True
        seen = seen.__cause__ or seen.__context__
    return False


def translate_openai_error(exc: Exception) -> TransportError:
    """Convert an ``openai`` SDK exception into a TransportError."""
    import openai

    if isinstance(exc, openai.APITimeoutError):
        return TransportError(TransportErrorKind.TIMEOUT, str(exc))
    if isinstance(exc, openai.APIConnectionError):
        kind = TransportErrorKind.DNS if _caused_by_dns(exc) else TransportErrorKind.CONNECTION
        return TransportError(kind, str(exc))
    if isinstance(exc, openai.APIStatusError):
        return TransportError(kind_for_status(exc.status_code), exc.message, status=exc.status_code)
    return TransportError(TransportErrorKind.UNKNOWN, str(exc))


def translate_anthropic_error(exc: Exception) -> TransportError:
    """Convert an ``anthropic`` SDK exception into a TransportError."""
    import anthropic

    if isinstance(exc, anthropic.APITimeoutError):
        return TransportError(TransportErrorKind.TIMEOUT, str(exc))
    if isinstance(exc, anthropic.APIConnectionError):
        kind = TransportErrorKind.DNS if _caused_by_dns(exc) else TransportErrorKind.CONNECTION
        return TransportError(kind, str(exc))
    if isinstance(exc, anthropic.APIStatusError):
        return TransportError(kind_for_status(exc.status_code), exc.message, status=exc.status_code)
    return TransportError(TransportErrorKind.UNKNOWN, str(exc))
