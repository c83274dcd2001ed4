"""Per-video session: owns the state and lifecycle of one video."""

import logging
from typing import Callable, List, Optional

from common.cache_store import CacheStore
from common.caption_track import CaptionTrackClient, CaptionTrackError
from common.config import Settings, settings
from common.event_publisher import EventPublisher
from common.schemas import EventType, ProcessingStatus, RenderLine
from common.subtitle_parser import MergedSubtitle, merge_cues
from overlay.playback_sync import PlaybackSync
from translator.schemas import PipelineResult
from translator.translation_cache import TranslationCache
from translator.translation_orchestrator import BatchScheduler
from translator.translation_service import Translator

logger = logging.getLogger(__name__)


class VideoSession:
    """
    Everything tied to one video: cache, subtitles, progress, subscriptions.

    Closing the session marks it inactive. A translator call already in
    flight is allowed to finish, but its results are discarded.
    """

    def __init__(
        self,
        video_id: str,
        translator: Translator,
        cache_store: CacheStore,
        publisher: Optional[EventPublisher] = None,
        app_settings: Optional[Settings] = None,
        track_client: Optional[CaptionTrackClient] = None,
    ):
        self.video_id = video_id
        self.settings = app_settings or settings
        self.translator = translator
        self.publisher = publisher or EventPublisher()
        self.track_client = track_client or CaptionTrackClient(self.settings)
        self.cache = TranslationCache(
            video_id, cache_store, key_prefix=self.settings.cache_key_prefix
        )
        self.playback = PlaybackSync(self.settings)
        self.scheduler = BatchScheduler(
            video_id,
            self.cache,
            translator,
            self.publisher,
            app_settings=self.settings,
            is_active=lambda: self.is_active,
        )
        self.subtitles: List[MergedSubtitle] = []
        self._unsubscribers: List[Callable[[], None]] = []
        self._closed = False

    @property
    def is_active(self) -> bool:
        return not self._closed

    @property
    def status(self) -> ProcessingStatus:
        return self.scheduler.status

    def subscribe(self, handler, event_type: Optional[EventType] = None) -> None:
        """Subscribe a handler for the lifetime of this session."""
        self._unsubscribers.append(self.publisher.subscribe(handler, event_type))

    async def start(self, track_url: Optional[str] = None) -> Optional[PipelineResult]:
        """
        Load the captions, merge them, and translate whatever is not cached.

        Args:
            track_url: Explicit caption track URL; discovered when None

        Returns:
            Pipeline result, or None if the captions could not be loaded
            or the session was closed meanwhile
        """
        logger.info(f"📥 Loading captions for video {self.video_id}")
        try:
            cues = await self.track_client.load_cues(self.video_id, track_url)
        except CaptionTrackError as e:
            logger.error(f"❌ Could not load captions for video {self.video_id}: {e}")
            if self.is_active:
                await self.publisher.publish(
                    EventType.TRACK_FETCH_FAILED,
                    self.video_id,
                    error_message=str(e),
                )
            return None

        if not self.is_active:
            return None

        self.subtitles = merge_cues(
            cues,
            max_gap_ms=self.settings.merge_max_gap_ms,
            max_group_duration_ms=self.settings.merge_max_group_duration_ms,
            max_text_length=self.settings.merge_max_text_length,
        )
        logger.info(
            f"Merged {len(cues)} cues into {len(self.subtitles)} subtitles "
            f"for video {self.video_id}"
        )

        return await self.scheduler.run(self.subtitles)

    async def on_time_update(self, seconds: float) -> List[RenderLine]:
        """
        Resolve and publish the lines for a playback position.

        Returns:
            Render lines; empty once the session is closed
        """
        if not self.is_active:
            return []

        lines = self.playback.resolve_seconds(seconds, self.subtitles, self.cache)
        await self.publisher.publish(
            EventType.SUBTITLES_RENDERED,
            self.video_id,
            time_ms=round(seconds * 1000),
            lines=[line.model_dump() for line in lines],
        )
        return lines

    async def close(self) -> None:
        """Deactivate the session and release what it holds."""
        if self._closed:
            return

        self._closed = True
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()

        self.subtitles = []
        self.cache.clear()
        await self.translator.cleanup()
        logger.info(f"🔌 Closed session for video {self.video_id}")
