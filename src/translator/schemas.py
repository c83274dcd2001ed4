"""Data structures for batch translation processing."""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from common.schemas import TranslationRecord


class TranslatedItem(BaseModel):
    """One object of a translation response, matched to its input by position."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    # Echoed for the model's benefit only; results are matched by position
    start_time: Optional[Any] = Field(default=None, alias="startTime")
    end_time: Optional[Any] = Field(default=None, alias="endTime")
    corrected_text: str = Field(..., alias="correctedText")
    translation: str

    def to_record(self) -> TranslationRecord:
        """Convert to the cached record, dropping embedded line breaks."""
        return TranslationRecord(
            corrected_text=" ".join(self.corrected_text.split()),
            translation=" ".join(self.translation.split()),
        )


class PipelineResult:
    """Outcome of one BatchScheduler run."""

    def __init__(
        self,
        completed: bool,
        total_batches: int = 0,
        completed_batches: int = 0,
        from_cache: bool = False,
        persisted: bool = False,
        error: Optional[Exception] = None,
    ):
        self.completed = completed
        self.total_batches = total_batches
        self.completed_batches = completed_batches
        self.from_cache = from_cache
        self.persisted = persisted
        self.error = error

    def __repr__(self) -> str:
        return (
            f"PipelineResult(completed={self.completed}, "
            f"batches={self.completed_batches}/{self.total_batches}, "
            f"from_cache={self.from_cache}, persisted={self.persisted}, "
            f"error={self.error!r})"
        )
