"""Per-unit-of-work registry of aggregates with events awaiting dispatch."""

from __future__ import annotations

from typing import Any

import structlog

from domainkit.domain.models.aggregate import AggregateRoot
from domainkit.domain.models.base import DomainEvent, ensure_argument


logger = structlog.get_logger(__name__)


class EventCollector:
    """Tracks aggregate instances whose pending events must be dispatched.

    Instances are keyed by object identity, not by ``id``: two instances of
    the same logical entity may both carry distinct pending events within one
    unit of work. Tracking order is kept so dispatch follows it.

    A collector lives for one unit of work and is not thread-safe; callers
    that fan out must serialize access to it.
    """

    def __init__(self) -> None:
        self._tracked: dict[int, AggregateRoot[Any]] = {}

    def track_aggregate(self, aggregate: AggregateRoot[Any]) -> None:
        """Register an aggregate instance. Registering it again is a no-op."""
        ensure_argument(aggregate, "aggregate", AggregateRoot)
        key = id(aggregate)
        if key in self._tracked:
            return
        self._tracked[key] = aggregate
        logger.debug(
            "aggregate_tracked",
            aggregate_type=type(aggregate).__name__,
            aggregate_id=str(aggregate.id),
            pending_events=len(aggregate.domain_events),
        )

    def is_tracked(self, aggregate: AggregateRoot[Any]) -> bool:
        return self._tracked.get(id(aggregate)) is aggregate

    @property
    def tracked_aggregates(self) -> tuple[AggregateRoot[Any], ...]:
        """Tracked instances, in the order they were first tracked."""
        return tuple(self._tracked.values())

    @property
    def tracked_aggregate_count(self) -> int:
        return len(self._tracked)

    @property
    def total_event_count(self) -> int:
        return len(self.collect_events())

    def collect_events(self) -> tuple[DomainEvent, ...]:
        """All pending events, aggregate by aggregate, without draining them.

        An event held by more than one tracked instance is listed once.
        """
        seen: set[tuple[type, str]] = set()
        events: list[DomainEvent] = []
        for aggregate in self._tracked.values():
            for event in aggregate.domain_events:
                key = (type(event), event.event_id)
                if key not in seen:
                    seen.add(key)
                    events.append(event)
        return tuple(events)

    def clear_collected_events(self) -> None:
        """Clear every tracked aggregate's events, then forget the aggregates.

        Call only once every tracked event has been delivered.
        """
        for aggregate in self._tracked.values():
            aggregate.clear_domain_events()
        count = len(self._tracked)
        self._tracked.clear()
        if count:
            logger.debug("collected_events_cleared", aggregate_count=count)

    def untrack_drained(self) -> int:
        """Stop tracking aggregates with no pending events. Returns how many."""
        drained = [key for key, a in self._tracked.items() if not a.has_domain_events]
        for key in drained:
            del self._tracked[key]
        if drained:
            logger.debug(
                "drained_aggregates_untracked",
                aggregate_count=len(drained),
                still_tracked=len(self._tracked),
            )
        return len(drained)

    def discard(self) -> None:
        """Forget tracked aggregates without touching their pending events."""
        if self._tracked:
            logger.info(
                "event_collector_discarded",
                aggregate_count=len(self._tracked),
                pending_events=self.total_event_count,
            )
        self._tracked.clear()

    def __len__(self) -> int:
        return len(self._tracked)

    def __contains__(self, aggregate: object) -> bool:
        return isinstance(aggregate, AggregateRoot) and self.is_tracked(aggregate)
