"""Client configuration built from settings, with per-provider API key lookup."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import TYPE_CHECKING

from voicelog.core.errors import ConfigError

if TYPE_CHECKING:
    from voicelog.config import Settings


def redact_api_key(key: str | None) -> str | None:
    """Redact an API key, showing only the first 4 and last 4 characters.

    Returns None if the key is None, or the redacted string otherwise.
    Short keys (8 chars or fewer) are fully redacted as '****'.
    """
    if key is None:
        return None
    if len(key) <= 8:
        return "****"
    return f"{key[:4]}...{key[-4:]}"


def check_credentials(api_key: str | None, project_id: str | None) -> None:
    """Fail fast on missing or mismatched OpenAI credentials.

    Project-scoped keys (``sk-proj-``) must be paired with a ``proj_`` id.
    """
    if not api_key:
        raise ConfigError("Missing OpenAI API key (set OPENAI_API_KEY)")
    if not project_id:
        raise ConfigError("Missing OpenAI project id (set OPENAI_PROJECT_ID, format: proj_...)")
    if api_key.startswith("sk-proj-") and not project_id.startswith("proj_"):
        raise ConfigError("Project key detected but OPENAI_PROJECT_ID looks invalid")


@dataclass
class TranscriptionConfig:
    """Configuration for the speech-to-text service (OpenAI audio API)."""

    model: str = "gpt-4o-mini-transcribe"
    api_key: str | None = None
    project: str | None = None
    base_url: str | None = None
    timeout: float = 90.0

    @classmethod
    def from_settings(cls, settings: Settings) -> TranscriptionConfig:
        return cls(
            model=settings.asr_model,
            api_key=settings.openai_api_key or None,
            project=settings.openai_project_id or None,
            timeout=settings.request_timeout,
        )

    def resolve_api_key(self) -> str | None:
        """Resolve the API key: explicit > OPENAI_API_KEY."""
        return self.api_key or os.environ.get("OPENAI_API_KEY")


@dataclass
class AnalysisConfig:
    """Configuration for the structured analysis LLM.

    Supports three providers:
    - "openai": OpenAI GPT models (default)
    - "anthropic": Anthropic Claude models
    - "openai-compatible": Any OpenAI-compatible API (Ollama, vLLM, etc.)

    API keys fall back to OPENAI_API_KEY or ANTHROPIC_API_KEY per provider.
    """

    provider: str = "openai"
    model: str = "gpt-4o-mini"
    temperature: float = 0.3
    max_tokens: int = 512
    base_url: str | None = None
    api_key: str | None = None
    project: str | None = None
    timeout: float = 90.0

    @classmethod
    def from_settings(cls, settings: Settings) -> AnalysisConfig:
        # The OpenAI key is only meaningful for OpenAI-style providers
        api_key = None
        if settings.analysis_provider != "anthropic":
            api_key = settings.openai_api_key or None
        return cls(
            provider=settings.analysis_provider,
            model=settings.analysis_model,
            base_url=settings.analysis_base_url,
            api_key=api_key,
            project=settings.openai_project_id or None,
            timeout=settings.request_timeout,
        )

    def resolve_api_key(self) -> str | None:
        """Resolve the API key: explicit > env var per provider."""
        if self.api_key:
            return self.api_key
        if self.provider == "anthropic":
            return os.environ.get("ANTHROPIC_API_KEY")
        # openai and openai-compatible both use OPENAI_API_KEY
        return os.environ.get("OPENAI_API_KEY")
