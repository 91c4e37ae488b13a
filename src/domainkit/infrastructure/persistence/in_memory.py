"""In-memory aggregate repository for development and testing."""

from __future__ import annotations

from typing import Any, Generic, TypeVar

import structlog

from domainkit.domain.models.aggregate import AggregateRoot
from domainkit.domain.models.base import ensure_argument
from domainkit.domain.ports.repositories import (
    AggregateAlreadyExistsError,
    AggregateNotFoundError,
    AggregateRepository,
)
from domainkit.domain.services.event_collector import EventCollector
from domainkit.domain.services.immutable_update import track_immutable_update


logger = structlog.get_logger(__name__)

TAggregate = TypeVar("TAggregate", bound="AggregateRoot[Any]")
TKey = TypeVar("TKey")


class InMemoryAggregateRepository(
    AggregateRepository[TAggregate, TKey], Generic[TAggregate, TKey]
):
    """Dict-backed repository bound to one unit of work's collector.

    ``store`` may be shared between repositories of successive units of work
    to stand in for a database; by default each repository gets its own.
    """

    def __init__(
        self, collector: EventCollector, store: dict[TKey, TAggregate] | None = None
    ) -> None:
        ensure_argument(collector, "collector", EventCollector)
        self._collector = collector
        self._store: dict[TKey, TAggregate] = {} if store is None else store

    async def add(self, aggregate: TAggregate) -> TAggregate:
        ensure_argument(aggregate, "aggregate", AggregateRoot)
        if aggregate.id in self._store:
            raise AggregateAlreadyExistsError(
                f"{type(aggregate).__name__} {aggregate.id} already exists"
            )
        self._store[aggregate.id] = aggregate
        self._collector.track_aggregate(aggregate)
        logger.debug(
            "aggregate_added",
            aggregate_type=type(aggregate).__name__,
            aggregate_id=str(aggregate.id),
        )
        return aggregate

    async def get_by_id(self, aggregate_id: TKey) -> TAggregate | None:
        return self._store.get(aggregate_id)

    async def update_immutable(self, modified: TAggregate) -> TAggregate:
        ensure_argument(modified, "modified", AggregateRoot)
        original = self._store.get(modified.id)
        if original is None:
            raise AggregateNotFoundError(
                f"{type(modified).__name__} {modified.id} not found"
            )
        if original is modified:
            self._collector.track_aggregate(modified)
        else:
            track_immutable_update(modified, original, self._collector)
        self._store[modified.id] = modified
        logger.debug(
            "aggregate_updated",
            aggregate_type=type(modified).__name__,
            aggregate_id=str(modified.id),
            version=modified.version,
        )
        return modified

    async def remove(self, aggregate_id: TKey) -> bool:
        aggregate = self._store.pop(aggregate_id, None)
        if aggregate is None:
            return False
        if aggregate.has_domain_events:
            self._collector.track_aggregate(aggregate)
        logger.debug(
            "aggregate_removed",
            aggregate_type=type(aggregate).__name__,
            aggregate_id=str(aggregate_id),
        )
        return True

    def __len__(self) -> int:
        return len(self._store)
