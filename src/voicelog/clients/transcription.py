"""OpenAI speech-to-text client."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, BinaryIO

from voicelog.clients.base import translate_openai_error
from voicelog.core.config import TranscriptionConfig
from voicelog.core.models import Transcript

if TYPE_CHECKING:
    from openai import AsyncOpenAI

logger = logging.getLogger(__name__)


class OpenAITranscriptionClient:
    """Async client for the OpenAI audio transcription endpoint.

    SDK-level retries are disabled; retry policy lives in
    ``voicelog.retry`` so that each attempt gets a fresh audio stream.
    """

    def __init__(self, config: TranscriptionConfig, client: AsyncOpenAI | None = None) -> None:
        self.config = config
        self.model = config.model
        self._client = client if client is not None else self._create_client()

    def _create_client(self) -> AsyncOpenAI:
        import openai

        kwargs: dict = {"timeout": self.config.timeout, "max_retries": 0}
        api_key = self.config.resolve_api_key()
        if api_key:
            kwargs["api_key"] = api_key
        if self.config.project:
            kwargs["project"] = self.config.project
        if self.config.base_url:
            kwargs["base_url"] = self.config.base_url
        return openai.AsyncOpenAI(**kwargs)

    async def transcribe(self, source: BinaryIO, filename_hint: str) -> Transcript:
        import openai

        logger.debug("ASR request: model=%s, filename=%s", self.model, filename_hint)
        try:
            response = await self._client.audio.transcriptions.create(
                model=self.model,
                file=(filename_hint, source),
            )
        except openai.OpenAIError as exc:
            raise translate_openai_error(exc) from exc

        text = response.text or ""
        logger.debug("ASR response: text_len=%d", len(text))
        return Transcript(text=text, model=self.model)
