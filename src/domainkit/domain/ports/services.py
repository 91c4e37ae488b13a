"""Service port interfaces (hexagonal architecture)."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence

from domainkit.domain.models.base import DomainEvent


class EventPublisher(ABC):
    """Port for delivering domain events to whatever handles them."""

    @abstractmethod
    async def publish(self, event: DomainEvent) -> None:
        """Publish one event. Raises on delivery failure."""

    @abstractmethod
    async def publish_batch(self, events: Sequence[DomainEvent]) -> None:
        """Publish several events, preserving their order."""
