"""Structured-completion client wrapping both Anthropic and OpenAI SDKs."""

from __future__ import annotations

import logging

from voicelog.clients.base import translate_anthropic_error, translate_openai_error
from voicelog.core.config import AnalysisConfig

logger = logging.getLogger(__name__)


class LLMAnalysisClient:
    """Async LLM client that dispatches to Anthropic or OpenAI SDKs.

    Supports three providers:
    - "openai": Uses the openai SDK with JSON-object response format
    - "openai-compatible": Uses the openai SDK with a custom base_url
    - "anthropic": Uses the anthropic SDK

    Every call is single-shot: SDK retries are disabled and failures are
    raised as TransportError for the caller to handle.
    """

    def __init__(self, config: AnalysisConfig, client: object | None = None) -> None:
        self.config = config
        self.model = config.model
        self._client = client if client is not None else self._create_client()

    def _create_client(self):
        """Create the underlying async SDK client based on provider."""
        api_key = self.config.resolve_api_key()

        if self.config.provider == "anthropic":
            import anthropic

            kwargs: dict = {"timeout": self.config.timeout, "max_retries": 0}
            if api_key:
                kwargs["api_key"] = api_key
            if self.config.base_url:
                kwargs["base_url"] = self.config.base_url
            return anthropic.AsyncAnthropic(**kwargs)

        elif self.config.provider in ("openai", "openai-compatible"):
            import openai

            kwargs = {"timeout": self.config.timeout, "max_retries": 0}
            if api_key:
                kwargs["api_key"] = api_key
            if self.config.project and self.config.provider == "openai":
                kwargs["project"] = self.config.project
            if self.config.base_url:
                kwargs["base_url"] = self.config.base_url
            elif self.config.provider == "openai-compatible":
                raise ValueError(
                    "openai-compatible provider requires base_url to be set"
                )
            return openai.AsyncOpenAI(**kwargs)

        else:
            raise ValueError(
                f"Unknown LLM provider: {self.config.provider!r}. "
                f"Supported: 'openai', 'openai-compatible', 'anthropic'"
            )

    async def complete(self, prompt: str) -> str:
        """Send one completion request and return the raw content string."""
        messages = [{"role": "user", "content": prompt}]
        logger.debug("LLM request: provider=%s, model=%s", self.config.provider, self.model)

        if self.config.provider == "anthropic":
            return await self._complete_anthropic(messages)
        return await self._complete_openai(messages)

    async def _complete_anthropic(self, messages: list[dict]) -> str:
        import anthropic

        try:
            response = await self._client.messages.create(
                model=self.model,
                max_tokens=self.config.max_tokens,
                temperature=self.config.temperature,
                messages=messages,
            )
        except anthropic.AnthropicError as exc:
            raise translate_anthropic_error(exc) from exc

        logger.debug(
            "LLM response: tokens=%d+%d",
            getattr(response.usage, "input_tokens", 0),
            getattr(response.usage, "output_tokens", 0),
        )
        return response.content[0].text if response.content else ""

    async def _complete_openai(self, messages: list[dict]) -> str:
        import openai

        try:
            response = await self._client.chat.completions.create(
                model=self.model,
                max_tokens=self.config.max_tokens,
                temperature=self.config.temperature,
                messages=messages,
                response_format={"type": "json_object"},
            )
        except openai.OpenAIError as exc:
            raise translate_openai_error(exc) from exc

        usage = response.usage
        logger.debug(
            "LLM response: tokens=%d+%d",
            usage.prompt_tokens if usage else 0,
            usage.completion_tokens if usage else 0,
        )
        return response.choices[0].message.content or ""
