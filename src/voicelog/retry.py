"""Retry wrapper for transcription calls.

The transport consumes its input stream, so every attempt obtains a fresh
stream from a zero-argument source factory. Backoff is linear
(``backoff_seconds * attempt``) with no jitter.
"""

from __future__ import annotations

import asyncio
import logging
import socket
from collections.abc import Awaitable, Callable
from typing import BinaryIO

from voicelog.clients.base import TranscriptionClient
from voicelog.core.errors import TransportError, TransportErrorKind
from voicelog.core.models import Transcript

logger = logging.getLogger(__name__)

RETRYABLE_KINDS = frozenset({
    TransportErrorKind.CONNECTION,
    TransportErrorKind.TIMEOUT,
    TransportErrorKind.DNS,
    TransportErrorKind.UNAVAILABLE,
    TransportErrorKind.RATE_LIMITED,
})
RETRYABLE_STATUSES = frozenset({408, 429, 500, 502, 503, 504})

SourceFactory = Callable[[], BinaryIO]
AttemptCallback = Callable[[int, "BaseException | None", bool], None]


def classify(exc: BaseException) -> TransportErrorKind:
    """Category of a failure, from its type only."""
    if isinstance(exc, TransportError):
        return exc.kind
    if isinstance(exc, socket.gaierror):
        return TransportErrorKind.DNS
    if isinstance(exc, TimeoutError):
        return TransportErrorKind.TIMEOUT
    if isinstance(exc, ConnectionError):
        return TransportErrorKind.CONNECTION
    return TransportErrorKind.UNKNOWN


def is_retryable(exc: BaseException) -> bool:
    """True for transient transport failures worth another attempt."""
    if isinstance(exc, TransportError) and exc.status in RETRYABLE_STATUSES:
        return True
    return classify(exc) in RETRYABLE_KINDS


async def transcribe_with_retry(
    client: TranscriptionClient,
    source_factory: SourceFactory,
    filename_hint: str,
    max_attempts: int = 3,
    backoff_seconds: float = 1.0,
    sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
    on_attempt: AttemptCallback | None = None,
) -> Transcript:
    """Transcribe with linear backoff on transient failures.

    Args:
        client: Transcription service.
        source_factory: Returns a fresh, independently readable stream of
            the audio bytes on every call.
        filename_hint: Container-format hint passed to the service.
        max_attempts: Total attempts including the first.
        backoff_seconds: Base delay; attempt ``n`` waits ``n * backoff_seconds``.
        sleep: Awaitable delay function (injectable for tests).
        on_attempt: Called as ``(attempt, error_or_None, retrying)`` after
            every attempt.

    Returns:
        The first successful Transcript.

    Raises:
        The last observed error, unchanged, once attempts are exhausted or
        on the first non-retryable failure.
    """
    if max_attempts < 1:
        raise ValueError(f"max_attempts must be >= 1, got {max_attempts}")

    attempt = 0
    while True:
        attempt += 1
        # Cancellation checkpoint: a pending cancel is delivered here, never mid-call
        await asyncio.sleep(0)

        try:
            with source_factory() as source:
                transcript = await client.transcribe(source, filename_hint)
        except Exception as exc:
            retrying = attempt < max_attempts and is_retryable(exc)
            logger.warning(
                "Attempt %d/%d failed (%s): %s",
                attempt,
                max_attempts,
                classify(exc).value,
                exc,
            )
            if on_attempt is not None:
                on_attempt(attempt, exc, retrying)
            if not retrying:
                raise
            await sleep(backoff_seconds * attempt)
            continue

        if on_attempt is not None:
            on_attempt(attempt, None, False)
        return transcript
