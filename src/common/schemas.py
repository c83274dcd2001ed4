"""Shared Pydantic schemas for the caption overlay pipeline."""

from datetime import datetime
from enum import Enum
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field

from common.utils import DateTimeUtils, MathUtils


class TranslatorType(str, Enum):
    """Supported translation backends (all speak the chat completions API)."""

    OPENAI = "openai"
    DOUBAO = "doubao"
    QWEN = "qwen"
    DEEPSEEK = "deepseek"
    MOCK = "mock"


class CacheBackend(str, Enum):
    """Where per-video translation caches are persisted."""

    FILE = "file"
    REDIS = "redis"


class EventType(str, Enum):
    """Types of events emitted by a video session."""

    PROGRESS_UPDATED = "progress.updated"
    BATCH_COMPLETED = "batch.completed"
    BATCH_FAILED = "batch.failed"
    CACHE_HIT = "cache.hit"
    PIPELINE_COMPLETED = "pipeline.completed"
    PIPELINE_FAILED = "pipeline.failed"
    TRACK_FETCH_FAILED = "track.fetch_failed"
    SUBTITLES_RENDERED = "subtitles.rendered"


class TranslationRecord(BaseModel):
    """Corrected transcription and translation for one subtitle text."""

    model_config = ConfigDict(populate_by_name=True)

    corrected_text: str = Field(
        ..., alias="correctedText", description="Corrected source-language text"
    )
    translation: str = Field(..., description="Target-language translation")

    def to_storage(self) -> Dict[str, str]:
        """Serialize in the persisted camelCase form."""
        return self.model_dump(by_alias=True)


class ProcessingStatus(BaseModel):
    """Progress of the translation pipeline for one session."""

    total: int = Field(default=0, ge=0)
    processed: int = Field(default=0, ge=0)
    is_processing: bool = Field(default=False)

    @property
    def percent(self) -> int:
        """Rounded completion percentage."""
        return round(MathUtils.calculate_percentage(self.processed, self.total))


class RenderLine(BaseModel):
    """One render-ready caption: corrected text above its translation."""

    start_ms: int
    end_ms: int
    original_text: str
    primary_text: str
    secondary_text: str
    is_translated: bool = False


class PipelineEvent(BaseModel):
    """Event emitted by a session to its subscribers."""

    event_type: EventType = Field(..., description="Type of event")
    video_id: str = Field(..., description="Video the event belongs to")
    timestamp: datetime = Field(
        default_factory=DateTimeUtils.get_current_utc_datetime,
        description="When the event was emitted",
    )
    payload: Dict[str, Any] = Field(
        default_factory=dict, description="Event-specific data"
    )
