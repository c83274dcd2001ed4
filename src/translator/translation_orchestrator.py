"""Serial batch translation of merged subtitles."""

import asyncio
import logging
from typing import Callable, List, Optional, Tuple

from common.config import Settings, settings
from common.event_publisher import EventPublisher
from common.gpt_utils import extract_translation_items
from common.retry_utils import retry_with_linear_backoff
from common.schemas import EventType, ProcessingStatus, TranslationRecord
from common.subtitle_parser import MergedSubtitle, SubtitleBatch, chunk_subtitles
from translator.error_handler import handle_pipeline_error
from translator.prompt_builder import TranslationRequestBuilder
from translator.schemas import PipelineResult, TranslatedItem
from translator.translation_cache import TranslationCache
from translator.translation_service import Translator, TranslatorUnavailableError

logger = logging.getLogger(__name__)


class BatchScheduler:
    """
    Drives merged subtitles through the translator one batch at a time.

    Batches run strictly serially so that only one translator call is in
    flight and batch i's records are in the cache before batch i+1 starts.
    A batch's records are committed together, and only on its success. If a
    batch exhausts its retries the run stops and nothing is persisted.
    """

    def __init__(
        self,
        video_id: str,
        cache: TranslationCache,
        translator: Translator,
        publisher: EventPublisher,
        app_settings: Optional[Settings] = None,
        request_builder: Optional[TranslationRequestBuilder] = None,
        is_active: Optional[Callable[[], bool]] = None,
    ):
        self.video_id = video_id
        self.cache = cache
        self.translator = translator
        self.publisher = publisher
        self.settings = app_settings or settings
        self.request_builder = request_builder or TranslationRequestBuilder(
            self.settings
        )
        self._is_active = is_active or (lambda: True)
        self.status = ProcessingStatus()

    async def _publish_status(self) -> None:
        await self.publisher.publish(
            EventType.PROGRESS_UPDATED,
            self.video_id,
            total=self.status.total,
            processed=self.status.processed,
            is_processing=self.status.is_processing,
            percent=self.status.percent,
        )

    async def process_batch(
        self, batch: SubtitleBatch
    ) -> List[Tuple[str, TranslationRecord]]:
        """
        Submit one batch once: prompt, translate, extract, validate.

        Args:
            batch: Batch to translate

        Returns:
            (original text, record) pairs in batch order

        Raises:
            TranslatorUnavailableError: If the translator returned no response
            GPTJSONParsingError: If the response holds no parseable JSON
            TranslationCountMismatchError: If the response has the wrong item count
            ValidationError: If a response item lacks correctedText or translation
        """
        prompt = self.request_builder.build(batch)
        logger.info(f"🔄 Translating batch {batch.label} ({len(batch)} subtitles)")

        try:
            response = await self.translator.translate(prompt)
        finally:
            await self.translator.cleanup()

        if response is None:
            raise TranslatorUnavailableError(
                f"Translator returned no response for batch {batch.label}"
            )

        items = extract_translation_items(
            response, len(batch), batch_index=batch.index, total_batches=batch.total
        )
        records = [TranslatedItem.model_validate(item).to_record() for item in items]

        # Matched by position: the response does not echo the original text
        return [(subtitle.text, record) for subtitle, record in zip(batch.items, records)]

    async def run(self, subtitles: List[MergedSubtitle]) -> PipelineResult:
        """
        Translate all subtitles of the video, unless a stored cache exists.

        Args:
            subtitles: Merged subtitles in playback order

        Returns:
            PipelineResult describing how far the run got
        """
        if await self.cache.load_for_video():
            logger.info(f"Using cached subtitles for video {self.video_id}")
            await self.publisher.publish(
                EventType.CACHE_HIT, self.video_id, entries=len(self.cache)
            )
            return PipelineResult(completed=True, from_cache=True)

        if not subtitles:
            logger.info(f"No subtitles to translate for video {self.video_id}")
            return PipelineResult(completed=True)

        batches = chunk_subtitles(subtitles, self.settings.translation_batch_size)
        self.status = ProcessingStatus(
            total=len(subtitles), processed=0, is_processing=True
        )
        await self._publish_status()

        submit = retry_with_linear_backoff(
            max_retries=self.settings.translation_max_retries,
            base_delay=self.settings.translation_retry_base_delay_ms / 1000,
            should_continue=self._is_active,
        )(self.process_batch)
        interval = self.settings.translation_batch_interval_ms / 1000
        completed_batches = 0

        logger.info(f"🚀 Processing {len(batches)} batches for video {self.video_id}")

        try:
            for batch in batches:
                if not self._is_active():
                    logger.info(
                        f"Session for video {self.video_id} closed, stopping before batch {batch.label}"
                    )
                    return PipelineResult(
                        completed=False,
                        total_batches=len(batches),
                        completed_batches=completed_batches,
                    )

                try:
                    entries = await submit(batch)
                except Exception as e:
                    if not self._is_active():
                        logger.info(
                            f"Session for video {self.video_id} closed, discarding batch {batch.label}"
                        )
                        return PipelineResult(
                            completed=False,
                            total_batches=len(batches),
                            completed_batches=completed_batches,
                            error=e,
                        )

                    await self.publisher.publish(
                        EventType.BATCH_FAILED,
                        self.video_id,
                        batch_index=batch.index,
                        total_batches=batch.total,
                        error_message=str(e),
                    )
                    await handle_pipeline_error(
                        self.publisher, self.video_id, e, batch_label=batch.label
                    )
                    return PipelineResult(
                        completed=False,
                        total_batches=len(batches),
                        completed_batches=completed_batches,
                        error=e,
                    )

                if not self._is_active():
                    logger.info(
                        f"Session for video {self.video_id} closed, discarding batch {batch.label}"
                    )
                    return PipelineResult(
                        completed=False,
                        total_batches=len(batches),
                        completed_batches=completed_batches,
                    )

                self.cache.set_many(entries)
                self.status.processed += len(batch)
                completed_batches += 1

                logger.info(f"✅ Completed batch {batch.label}")
                await self.publisher.publish(
                    EventType.BATCH_COMPLETED,
                    self.video_id,
                    batch_index=batch.index,
                    total_batches=batch.total,
                    items=len(batch),
                )
                await self._publish_status()

                if batch.index < batch.total - 1:
                    await asyncio.sleep(interval)

            if not self._is_active():
                logger.info(
                    f"Session for video {self.video_id} closed, not persisting translations"
                )
                return PipelineResult(
                    completed=False,
                    total_batches=len(batches),
                    completed_batches=completed_batches,
                )

            persisted = await self.cache.persist_for_video()
            await self.publisher.publish(
                EventType.PIPELINE_COMPLETED,
                self.video_id,
                entries=len(self.cache),
                persisted=persisted,
            )
            logger.info(
                f"✅ Translated {self.status.processed} subtitles in {len(batches)} batches "
                f"for video {self.video_id}"
            )
            return PipelineResult(
                completed=True,
                total_batches=len(batches),
                completed_batches=completed_batches,
                persisted=persisted,
            )
        finally:
            self.status.is_processing = False
            if self._is_active():
                await self._publish_status()
