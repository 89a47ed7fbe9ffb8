"""EventBus implementation for session update signals."""

import asyncio
from datetime import datetime, timezone
from typing import Awaitable, Callable, Protocol

from ..logging_config import get_logger
from ..models import SessionEvent, Topic

logger = get_logger(__name__)


TopicHandler = Callable[[SessionEvent], Awaitable[None]]


class IEventBus(Protocol):
    """In-memory pub/sub carrying session updates to front ends."""

    def subscribe(self, topic: Topic, handler: TopicHandler) -> None:
        """Subscribe a handler to a topic."""
        ...

    def unsubscribe(self, topic: Topic, handler: TopicHandler) -> None:
        """Remove a handler from a topic."""
        ...

    async def publish(self, topic: Topic, payload: dict) -> SessionEvent:
        """Publish an event: calls subscriber callbacks concurrently."""
        ...


class EventBus:
    """In-memory pub/sub event bus."""

    def __init__(self):
        self._subscribers: dict[Topic, list[TopicHandler]] = {
            topic: [] for topic in Topic
        }

    def subscribe(self, topic: Topic, handler: TopicHandler) -> None:
        """Subscribe a handler to a topic."""
        self._subscribers[topic].append(handler)

    def unsubscribe(self, topic: Topic, handler: TopicHandler) -> None:
        """Remove a handler from a topic."""
        if handler in self._subscribers[topic]:
            self._subscribers[topic].remove(handler)

    async def publish(self, topic: Topic, payload: dict) -> SessionEvent:
        """Publish an event: calls subscriber callbacks concurrently."""
        event = SessionEvent(
            topic=topic,
            payload=payload,
            timestamp=datetime.now(timezone.utc),
        )

        handlers = list(self._subscribers.get(topic, []))
        if handlers:
            results = await asyncio.gather(
                *[handler(event) for handler in handlers],
                return_exceptions=True,
            )

            # A failing subscriber must not break the publisher
            for i, result in enumerate(results):
                if isinstance(result, Exception):
                    logger.error("Error in %s handler %s: %s", topic.value, i, result)

        return event
