"""Coordination of copy-on-write aggregate updates.

A domain operation on an aggregate returns a new instance. Events raised by
earlier operations still live on the old instance, so every such update has
to both carry those events over and register the new instance for dispatch.
``track_immutable_update`` does the two together.
"""

from __future__ import annotations

from typing import Any, TypeVar

import structlog

from domainkit.domain.models.aggregate import AggregateRoot
from domainkit.domain.models.base import ensure_argument
from domainkit.domain.services.event_collector import EventCollector


logger = structlog.get_logger(__name__)

TAggregate = TypeVar("TAggregate", bound=AggregateRoot[Any])


def with_preserved_events(modified: TAggregate, original: AggregateRoot[Any]) -> TAggregate:
    """Copy ``original``'s pending events onto ``modified`` and return it."""
    ensure_argument(modified, "modified", AggregateRoot)
    ensure_argument(original, "original", AggregateRoot)
    modified.copy_events_from(original)
    return modified


def track_immutable_update(
    modified: TAggregate,
    original: AggregateRoot[Any],
    collector: EventCollector,
) -> TAggregate:
    """Preserve ``original``'s events on ``modified`` and track ``modified``.

    All arguments are validated before anything is mutated. Returns
    ``modified`` itself.
    """
    ensure_argument(modified, "modified", AggregateRoot)
    ensure_argument(original, "original", AggregateRoot)
    ensure_argument(collector, "collector", EventCollector)

    modified.copy_events_from(original)
    collector.track_aggregate(modified)

    logger.debug(
        "immutable_update_tracked",
        aggregate_type=type(modified).__name__,
        aggregate_id=str(modified.id),
        version=modified.version,
        pending_events=len(modified.domain_events),
    )
    return modified
