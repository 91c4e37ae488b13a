"""Unit of work scope owning one event collector and its dispatch."""

from __future__ import annotations

from contextlib import ExitStack
from types import TracebackType
from typing import Any, TypeVar

import structlog

from domainkit.config import Settings
from domainkit.domain.correlation import correlation_scope, get_correlation_id
from domainkit.domain.models.aggregate import AggregateRoot
from domainkit.domain.models.base import ensure_argument
from domainkit.domain.ports.services import EventPublisher
from domainkit.domain.services.event_collector import EventCollector
from domainkit.domain.services.immutable_update import track_immutable_update
from domainkit.infrastructure.messaging.event_dispatcher import (
    DomainEventDispatcher,
    DomainEventDispatchResult,
)
from domainkit.infrastructure.persistence.in_memory import InMemoryAggregateRepository


logger = structlog.get_logger(__name__)

TAggregate = TypeVar("TAggregate", bound="AggregateRoot[Any]")


class DomainEventUnitOfWork:
    """Async context manager for one logical unit of work.

    Each instance owns a fresh EventCollector. Leaving the block normally
    dispatches everything collected; leaving it with an exception dispatches
    nothing, drops the collector's references and lets the exception
    propagate. The block runs under a correlation scope, inherited from the
    caller when one is active.

        async with DomainEventUnitOfWork(publisher) as uow:
            orders = uow.repository(store)
            order = await orders.get_by_id(7)
            await orders.update_immutable(order.ship())
    """

    def __init__(
        self,
        publisher: EventPublisher,
        settings: Settings | None = None,
        correlation_id: str | None = None,
    ) -> None:
        ensure_argument(publisher, "publisher", EventPublisher)
        self.collector = EventCollector()
        self.dispatcher = DomainEventDispatcher(publisher, self.collector, settings)
        self.result: DomainEventDispatchResult | None = None
        self.correlation_id = correlation_id
        self._stack = ExitStack()

    def repository(
        self, store: dict[Any, TAggregate] | None = None
    ) -> InMemoryAggregateRepository[TAggregate, Any]:
        """In-memory repository reporting to this unit of work's collector."""
        return InMemoryAggregateRepository(self.collector, store)

    def track(self, aggregate: AggregateRoot[Any]) -> None:
        self.collector.track_aggregate(aggregate)

    def track_update(self, modified: TAggregate, original: AggregateRoot[Any]) -> TAggregate:
        return track_immutable_update(modified, original, self.collector)

    async def __aenter__(self) -> DomainEventUnitOfWork:
        self.correlation_id = self._stack.enter_context(
            correlation_scope(self.correlation_id or get_correlation_id() or None)
        )
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        try:
            if exc_type is None:
                self.result = await self.dispatcher.dispatch()
            else:
                logger.warning(
                    "unit_of_work_aborted",
                    error=str(exc),
                    tracked_aggregates=self.collector.tracked_aggregate_count,
                )
                self.collector.discard()
        finally:
            self._stack.close()
