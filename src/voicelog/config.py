"""Configuration settings for Voicelog.

Storage layout under ``storage_dir``:
- voicelog.db: journal entries (unless ``database_url`` points elsewhere)
- uploads/: staged audio files awaiting ingestion
- output/: one-shot transcription reports
"""

from __future__ import annotations

from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="VOICELOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Storage directory (default: .voicelog in current directory)
    storage_dir: Path = Field(default=Path(".voicelog"))
    database_url: str = ""

    # OpenAI credentials; the unprefixed names are what the SDK itself reads
    openai_api_key: str = Field(
        default="",
        validation_alias=AliasChoices("VOICELOG_OPENAI_API_KEY", "OPENAI_API_KEY"),
    )
    openai_project_id: str = Field(
        default="",
        validation_alias=AliasChoices("VOICELOG_OPENAI_PROJECT_ID", "OPENAI_PROJECT_ID"),
    )

    # Models
    asr_model: str = "gpt-4o-mini-transcribe"
    analysis_provider: str = "openai"
    analysis_model: str = "gpt-4o-mini"
    analysis_base_url: str | None = None

    # USD per million tokens, used for cost estimates only
    price_input_per_mtok: float = 0.60
    price_output_per_mtok: float = 2.40

    # Transcription retry policy
    transcription_attempts: int = Field(default=3, ge=1)
    backoff_seconds: float = Field(default=1.0, ge=0.0)
    request_timeout: float = 90.0

    # Structured JSONL event log directory (disabled when unset)
    log_dir: Path | None = None

    @property
    def db_path(self) -> Path:
        """Path to the default SQLite database."""
        return self.storage_dir / "voicelog.db"

    @property
    def db_url(self) -> str:
        """SQLAlchemy URL for the journal database."""
        return self.database_url or f"sqlite:///{self.db_path}"

    @property
    def uploads_dir(self) -> Path:
        """Directory where audio files are staged before ingestion."""
        return self.storage_dir / "uploads"

    @property
    def output_dir(self) -> Path:
        """Directory for one-shot transcription reports."""
        return self.storage_dir / "output"

    def ensure_storage_dir(self) -> None:
        """Create storage directories if they don't exist."""
        self.storage_dir.mkdir(parents=True, exist_ok=True)
        self.uploads_dir.mkdir(parents=True, exist_ok=True)


_settings: Settings | None = None


def get_settings() -> Settings:
    """Get cached settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Reset settings cache (useful for testing)."""
    global _settings
    _settings = None
