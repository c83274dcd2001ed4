"""Log-based progress renderer."""

import logging
from typing import Callable, Optional

from common.event_publisher import EventPublisher
from common.schemas import EventType, PipelineEvent

logger = logging.getLogger(__name__)


class ProgressReporter:
    """Logs translation progress as PROGRESS_UPDATED events arrive."""

    def __init__(self):
        self.last_percent: Optional[int] = None
        self._unsubscribe: Optional[Callable[[], None]] = None

    def attach(self, publisher: EventPublisher) -> None:
        self._unsubscribe = publisher.subscribe(
            self.handle_event, EventType.PROGRESS_UPDATED
        )

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def handle_event(self, event: PipelineEvent) -> None:
        payload = event.payload
        percent = payload.get("percent", 0)
        processed = payload.get("processed", 0)
        total = payload.get("total", 0)

        if payload.get("is_processing"):
            if percent != self.last_percent:
                logger.info(
                    f"🔄 Translating video {event.video_id}: {processed}/{total} ({percent}%)"
                )
        else:
            logger.info(
                f"📊 Translation of video {event.video_id} stopped at {processed}/{total} ({percent}%)"
            )
        self.last_percent = percent
