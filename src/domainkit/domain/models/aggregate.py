"""Aggregate roots: entities that record the domain events they raise."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Generic, TypeVar

from pydantic import Field, PrivateAttr

from domainkit.domain.models.base import (
    DomainEvent,
    ensure_argument,
    Entity,
    InvalidArgumentError,
    TId,
    utc_now,
)


TAggregate = TypeVar("TAggregate", bound="AggregateRoot[Any]")


class AggregateRoot(Entity[TId], Generic[TId]):
    """Base class for aggregate roots that emit domain events.

    Business state is frozen; the pending-event buffer is a private attribute
    kept outside the model fields, so it never takes part in equality,
    hashing or serialization. The buffer is owned by a single instance:
    copies start empty, and events move between instances only through
    :meth:`copy_events_from`.
    """

    version: int = Field(default=0, ge=0)

    _domain_events: list[DomainEvent] = PrivateAttr(default_factory=list)

    @property
    def domain_events(self) -> tuple[DomainEvent, ...]:
        """Pending events in the order they were raised."""
        return tuple(self._domain_events)

    @property
    def has_domain_events(self) -> bool:
        return bool(self._domain_events)

    def _raise_event(self, event: DomainEvent) -> None:
        """Record a domain event. For use by the aggregate's own operations."""
        ensure_argument(event, "event", DomainEvent)
        self._domain_events.append(event)

    def remove_domain_event(self, event: DomainEvent) -> bool:
        """Drop a pending event. Returns False if it was not pending."""
        ensure_argument(event, "event", DomainEvent)
        if event not in self._domain_events:
            return False
        self._domain_events.remove(event)
        return True

    def clear_domain_events(self) -> None:
        """Discard all pending events."""
        self._domain_events.clear()

    def copy_events_from(self, source: AggregateRoot[Any]) -> None:
        """Carry ``source``'s pending events onto this instance.

        The source's events causally precede anything raised on this
        instance, so they are placed first, in their original order. Events
        already pending here are not added twice. ``source`` is left as is.
        """
        ensure_argument(source, "source", AggregateRoot)
        if source is self:
            return
        carried = [e for e in source._domain_events if e not in self._domain_events]
        self._domain_events[:0] = carried

    def evolve(self: TAggregate, **changes: Any) -> TAggregate:
        """Build the next version of this aggregate with ``changes`` applied.

        The new instance is validated, has ``version + 1`` and an empty event
        buffer.
        """
        unknown = set(changes) - set(type(self).model_fields)
        if unknown:
            raise InvalidArgumentError(
                "changes",
                f"{type(self).__name__} has no fields {sorted(unknown)}",
            )
        data = {**dict(self), "version": self.version + 1, **changes}
        return type(self).model_validate(data)

    def __copy__(self: TAggregate) -> TAggregate:
        copied = super().__copy__()
        copied._domain_events = []
        return copied

    def __deepcopy__(self: TAggregate, memo: dict[int, Any] | None = None) -> TAggregate:
        copied = super().__deepcopy__(memo)
        copied._domain_events = []
        return copied


class AuditableAggregateRoot(AggregateRoot[TId], Generic[TId]):
    """Aggregate root recording who created and last modified it, and when."""

    created_at_utc: datetime = Field(default_factory=utc_now)
    created_by: str | None = None
    modified_at_utc: datetime | None = None
    modified_by: str | None = None

    def mark_modified(
        self: TAggregate, modified_by: str | None = None, **changes: Any
    ) -> TAggregate:
        """Evolve with ``changes`` and stamp the modification."""
        return self.evolve(modified_at_utc=utc_now(), modified_by=modified_by, **changes)


class SoftDeletableAggregateRoot(AuditableAggregateRoot[TId], Generic[TId]):
    """Auditable aggregate root that is flagged as deleted instead of removed."""

    is_deleted: bool = False
    deleted_at_utc: datetime | None = None
    deleted_by: str | None = None

    def delete(self: TAggregate, deleted_by: str | None = None) -> TAggregate:
        """Return the deleted version of this aggregate."""
        if self.is_deleted:
            return self
        return self.evolve(is_deleted=True, deleted_at_utc=utc_now(), deleted_by=deleted_by)

    def restore(self: TAggregate) -> TAggregate:
        """Return the restored version of this aggregate."""
        if not self.is_deleted:
            return self
        return self.evolve(is_deleted=False, deleted_at_utc=None, deleted_by=None)
