"""Event publisher implementations."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Sequence
from typing import Any

import structlog

from domainkit.domain.models.base import DomainEvent
from domainkit.domain.ports.services import EventPublisher


logger = structlog.get_logger(__name__)

EventHandler = Callable[[DomainEvent], Awaitable[None]]


class InMemoryEventPublisher(EventPublisher):
    """In-memory event publisher for development/testing.

    Handlers subscribed to an event name are awaited in subscription order;
    a handler exception propagates to the caller of ``publish``.
    """

    def __init__(self) -> None:
        self._events: list[DomainEvent] = []
        self._handlers: dict[str, list[EventHandler]] = {}

    async def publish(self, event: DomainEvent) -> None:
        self._events.append(event)
        logger.info("event_published", event_type=event.name, event_id=event.event_id)

        for handler in self._handlers.get(event.name, []):
            await handler(event)

    async def publish_batch(self, events: Sequence[DomainEvent]) -> None:
        for event in events:
            await self.publish(event)

    def subscribe(self, event_type: str, handler: EventHandler) -> None:
        self._handlers.setdefault(event_type, []).append(handler)

    @property
    def published_events(self) -> list[DomainEvent]:
        return list(self._events)

    def clear(self) -> None:
        self._events.clear()


class KafkaEventPublisher(EventPublisher):
    """Kafka implementation of EventPublisher.

    ``producer`` is an already started aiokafka-style producer exposing
    ``send``, ``send_and_wait`` and ``flush`` coroutines.
    """

    def __init__(self, producer: Any, topic_prefix: str = "domainkit") -> None:
        self._producer = producer
        self._topic_prefix = topic_prefix

    def topic_for(self, event: DomainEvent) -> str:
        return f"{self._topic_prefix}.{event.name}"

    async def publish(self, event: DomainEvent) -> None:
        topic = self.topic_for(event)
        await self._producer.send_and_wait(
            topic, value=_encode(event), key=event.event_id.encode("utf-8")
        )
        logger.info("kafka_event_published", topic=topic, event_id=event.event_id)

    async def publish_batch(self, events: Sequence[DomainEvent]) -> None:
        for event in events:
            await self._producer.send(
                self.topic_for(event),
                value=_encode(event),
                key=event.event_id.encode("utf-8"),
            )

        await self._producer.flush()
        logger.info("kafka_batch_published", event_count=len(events))


def _encode(event: DomainEvent) -> bytes:
    return event.model_dump_json().encode("utf-8")
