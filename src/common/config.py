"""Configuration management for the caption overlay pipeline."""

from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from common.schemas import CacheBackend, TranslatorType


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        # Find .env file relative to project root
        # This file is in src/common/, so go up 2 levels to project root
        env_file=str(Path(__file__).parent.parent.parent / ".env"),
        case_sensitive=False,
        extra="ignore",
    )

    # Logging
    log_level: str = Field(default="INFO")
    log_dir: str = Field(default="./logs")
    log_to_file: bool = Field(default=True)
    third_party_log_level: str = Field(default="WARNING")

    # Caption Track Source
    caption_preferred_language: str = Field(
        default="en", description="Language code of the caption track to prefer"
    )
    caption_watch_url_template: str = Field(
        default="https://www.youtube.com/watch?v={video_id}",
        description="Page used to discover caption tracks for a video",
    )
    caption_fetch_timeout: float = Field(default=15.0)  # Seconds

    # Segment Merging
    merge_max_gap_ms: int = Field(default=8000)
    merge_max_group_duration_ms: int = Field(default=15000)
    merge_max_text_length: int = Field(default=150)

    # Batch Scheduling
    translation_batch_size: int = Field(default=5)
    translation_batch_interval_ms: int = Field(
        default=2000
    )  # Pause between batches to respect upstream rate limits
    translation_max_retries: int = Field(
        default=30
    )  # Retries after the initial attempt, per batch
    translation_retry_base_delay_ms: int = Field(
        default=3000
    )  # Linear backoff: base * (attempt + 1)

    # Translation Prompt
    translation_source_language: str = Field(default="English")
    translation_target_language: str = Field(default="Simplified Chinese")

    # Translator Backend (OpenAI-compatible chat completions)
    translator_type: TranslatorType = Field(default=TranslatorType.OPENAI)
    translator_api_key: Optional[str] = Field(default=None)
    translator_base_url: Optional[str] = Field(
        default=None
    )  # None means the official OpenAI endpoint
    translator_model: Optional[str] = Field(
        default=None
    )  # None picks the backend default model
    translator_temperature: float = Field(default=0.3)
    translator_max_tokens: int = Field(default=4096)
    translator_timeout: float = Field(default=60.0)

    # Cache Storage
    cache_backend: CacheBackend = Field(default=CacheBackend.FILE)
    cache_key_prefix: str = Field(default="yt-subtitles-")
    cache_storage_path: str = Field(default="./storage/caption_cache")
    redis_url: str = Field(default="redis://localhost:6379")

    # Playback Display
    playback_max_subtitles: int = Field(default=5)
    playback_original_label: str = Field(default="Original | ")
    playback_pending_label: str = Field(default="Translating...")

    @field_validator(
        "translation_batch_size",
        "merge_max_text_length",
        "playback_max_subtitles",
    )
    @classmethod
    def validate_positive(cls, v: int) -> int:
        """
        Ensure count-like settings are at least 1.

        Args:
            v: Configured value

        Returns:
            The value unchanged

        Raises:
            ValueError: If the value is less than 1
        """
        if v < 1:
            raise ValueError(f"must be at least 1, got {v}")
        return v

    @field_validator(
        "translation_max_retries",
        "translation_batch_interval_ms",
        "translation_retry_base_delay_ms",
        "merge_max_gap_ms",
        "merge_max_group_duration_ms",
    )
    @classmethod
    def validate_non_negative(cls, v: int) -> int:
        """Ensure delay and retry settings are not negative."""
        if v < 0:
            raise ValueError(f"must not be negative, got {v}")
        return v


# Global settings instance
settings = Settings()
