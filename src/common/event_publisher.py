"""In-process event publisher connecting a session to its renderers."""

import inspect
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

from common.schemas import EventType, PipelineEvent

logger = logging.getLogger(__name__)

EventHandler = Callable[[PipelineEvent], Union[None, Awaitable[None]]]


class EventPublisher:
    """
    Publishes pipeline events to subscribed handlers.

    Handlers may be plain functions or coroutines and subscribe either to one
    event type or to all events. A failing handler is logged and does not
    stop delivery to the others or affect the publisher.
    """

    def __init__(self):
        self._handlers: Dict[Optional[EventType], List[EventHandler]] = {}

    def subscribe(
        self, handler: EventHandler, event_type: Optional[EventType] = None
    ) -> Callable[[], None]:
        """
        Register a handler.

        Args:
            handler: Callable receiving each PipelineEvent
            event_type: Only deliver this type; None delivers every event

        Returns:
            Function that removes the subscription
        """
        self._handlers.setdefault(event_type, []).append(handler)

        def unsubscribe() -> None:
            self.unsubscribe(handler, event_type)

        return unsubscribe

    def unsubscribe(
        self, handler: EventHandler, event_type: Optional[EventType] = None
    ) -> None:
        """Remove a handler; unknown handlers are ignored."""
        handlers = self._handlers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)

    def clear(self) -> None:
        """Drop every subscription."""
        self._handlers.clear()

    @property
    def subscriber_count(self) -> int:
        return sum(len(handlers) for handlers in self._handlers.values())

    async def publish_event(self, event: PipelineEvent) -> bool:
        """
        Deliver an event to its subscribers.

        Args:
            event: Event to deliver

        Returns:
            True if every handler succeeded, False otherwise
        """
        handlers = list(self._handlers.get(event.event_type, [])) + list(
            self._handlers.get(None, [])
        )

        delivered = True
        for handler in handlers:
            try:
                result = handler(event)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                delivered = False
                logger.error(
                    f"❌ Event handler failed for {event.event_type.value}: {e}",
                    exc_info=True,
                )

        logger.debug(
            f"Published {event.event_type.value} for video {event.video_id} "
            f"to {len(handlers)} handler(s)"
        )
        return delivered

    async def publish(
        self, event_type: EventType, video_id: str, **payload: Any
    ) -> bool:
        """Build and publish an event in one call."""
        return await self.publish_event(
            PipelineEvent(event_type=event_type, video_id=video_id, payload=payload)
        )
