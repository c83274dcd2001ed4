"""Keeps exactly one live video session."""

import logging
from typing import Optional

from common.cache_store import CacheStore
from common.config import Settings, settings
from common.event_publisher import EventPublisher
from common.utils import URLUtils
from overlay.session import VideoSession
from translator.translation_service import Translator

logger = logging.getLogger(__name__)


class SessionManager:
    """Switches between videos, closing the previous session before opening the next."""

    def __init__(
        self,
        translator: Translator,
        cache_store: CacheStore,
        publisher: Optional[EventPublisher] = None,
        app_settings: Optional[Settings] = None,
    ):
        self.translator = translator
        self.cache_store = cache_store
        self.publisher = publisher or EventPublisher()
        self.settings = app_settings or settings
        self.current: Optional[VideoSession] = None

    async def switch_video(self, video: str) -> Optional[VideoSession]:
        """
        Make the given video the live session.

        Args:
            video: Watch URL, short link, or bare video id

        Returns:
            The live session, or None if no video id could be extracted.
            The session is created but not started.
        """
        video_id = URLUtils.extract_video_id(video)
        if not video_id:
            logger.warning(f"⚠️  No video id in {video!r}")
            return None

        if self.current is not None and self.current.video_id == video_id:
            return self.current

        if self.current is not None:
            logger.info(
                f"🔄 Switching from video {self.current.video_id} to {video_id}"
            )
            await self.current.close()
            self.current = None

        self.current = VideoSession(
            video_id,
            self.translator,
            self.cache_store,
            publisher=self.publisher,
            app_settings=self.settings,
        )
        return self.current

    async def close(self) -> None:
        """Close the live session, if any."""
        if self.current is not None:
            await self.current.close()
            self.current = None
