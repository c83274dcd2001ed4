"""Error handling utilities for the translation pipeline."""

import json
import logging
from typing import Optional

from pydantic import ValidationError

from common.caption_track import CaptionTrackError
from common.event_publisher import EventPublisher
from common.gpt_utils import GPTJSONParsingError
from common.schemas import EventType
from common.subtitle_parser import TranslationCountMismatchError
from translator.translation_service import TranslatorUnavailableError

logger = logging.getLogger(__name__)

ERROR_TRACK_FETCH = "track_fetch"
ERROR_TRANSLATOR_UNAVAILABLE = "translator_unavailable"
ERROR_EXTRACTION = "extraction"
ERROR_TRANSLATION = "translation"


def classify_pipeline_error(error: Exception) -> str:
    """
    Map an exception to its category in the pipeline error taxonomy.

    Args:
        error: Exception that stopped the pipeline

    Returns:
        One of the ERROR_* category names
    """
    if isinstance(error, CaptionTrackError):
        return ERROR_TRACK_FETCH
    if isinstance(error, TranslatorUnavailableError):
        return ERROR_TRANSLATOR_UNAVAILABLE
    if isinstance(
        error,
        (
            GPTJSONParsingError,
            TranslationCountMismatchError,
            ValidationError,
            json.JSONDecodeError,
        ),
    ):
        return ERROR_EXTRACTION
    return ERROR_TRANSLATION


async def handle_pipeline_error(
    publisher: EventPublisher,
    video_id: str,
    error: Exception,
    batch_label: Optional[str] = None,
) -> str:
    """
    Log a pipeline-stopping error and publish PIPELINE_FAILED.

    Args:
        publisher: Session event publisher
        video_id: Video being processed
        error: Exception that stopped the pipeline
        batch_label: Position of the failing batch, e.g. '3/12'

    Returns:
        The error category
    """
    category = classify_pipeline_error(error)
    where = f" in batch {batch_label}" if batch_label else ""

    if category == ERROR_TRANSLATOR_UNAVAILABLE:
        logger.error(f"❌ Translator unavailable{where}: {error}")
    elif category == ERROR_EXTRACTION:
        logger.error(f"❌ Could not extract translations{where}: {error}")
    else:
        logger.error(
            f"❌ Translation failed{where}: {error}",
            exc_info=(type(error), error, error.__traceback__),
        )

    await publisher.publish(
        EventType.PIPELINE_FAILED,
        video_id,
        category=category,
        error_message=str(error),
        batch=batch_label,
    )
    return category
