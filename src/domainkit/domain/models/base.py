"""Base domain model classes: identity, value objects and domain events."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, ClassVar, Generic, Protocol, runtime_checkable, TypeVar

from pydantic import BaseModel, Field

from domainkit.domain.clock import get_clock
from domainkit.domain.correlation import get_correlation_id


TId = TypeVar("TId")
TId_co = TypeVar("TId_co", covariant=True)
TAggregateId = TypeVar("TAggregateId")


def generate_id() -> str:
    """Generate a unique identifier."""
    return str(uuid.uuid4())


def utc_now() -> datetime:
    """Get current UTC timestamp from the active clock."""
    return get_clock().now()


def current_correlation_id() -> str:
    """Correlation ID of the enclosing scope, or a fresh one."""
    return get_correlation_id() or generate_id()


def ensure_argument(
    value: Any, name: str, expected: type | tuple[type, ...] | None = None
) -> None:
    """Raise InvalidArgumentError if ``value`` is None or of the wrong kind."""
    if value is None:
        raise InvalidArgumentError(name, f"{name} must not be None")
    if expected is not None and not isinstance(value, expected):
        raise InvalidArgumentError(
            name,
            f"{name} must be an instance of {_type_names(expected)}, "
            f"got {type(value).__name__}",
        )


def _type_names(expected: type | tuple[type, ...]) -> str:
    if isinstance(expected, tuple):
        return " or ".join(t.__name__ for t in expected)
    return expected.__name__


@runtime_checkable
class HasId(Protocol[TId_co]):
    """Anything exposing an identifier, independent of the entity hierarchy."""

    @property
    def id(self) -> TId_co: ...


class ValueObject(BaseModel):
    """Base class for value objects (immutable)."""

    model_config = {"frozen": True}


class DomainEvent(BaseModel):
    """An immutable record of something that already happened.

    ``event_id`` and ``occurred_at_utc`` are fixed at construction. Two events
    are equal iff they are of the same class and every field is equal, so
    events built independently never compare equal (distinct ids).

    Subclasses name themselves through a default ``event_type`` and may set
    ``dispatchable = False`` for events that stay inside the domain.
    """

    event_id: str = Field(default_factory=generate_id)
    event_type: str = ""
    occurred_at_utc: datetime = Field(default_factory=utc_now)

    dispatchable: ClassVar[bool] = True

    model_config = {"frozen": True}

    @property
    def name(self) -> str:
        """Routing name: ``event_type`` or the class name when unset."""
        return self.event_type or type(self).__name__


class RichDomainEvent(DomainEvent, Generic[TAggregateId]):
    """Domain event carrying correlation, causation and versioning metadata."""

    correlation_id: str = Field(default_factory=current_correlation_id)
    causation_id: str | None = None
    aggregate_id: TAggregateId
    aggregate_version: int = 0
    event_version: int = 1


def causation_from(cause: DomainEvent) -> dict[str, str]:
    """Field values chaining a follow-up event to ``cause``.

    Usage: ``OrderShipped(aggregate_id=7, **causation_from(placed))``.
    """
    ensure_argument(cause, "cause", DomainEvent)
    correlation_id = (
        cause.correlation_id
        if isinstance(cause, RichDomainEvent)
        else current_correlation_id()
    )
    return {"causation_id": cause.event_id, "correlation_id": correlation_id}


class Entity(BaseModel, Generic[TId]):
    """Base class for domain entities.

    Entities are frozen: the identifier never changes, and a change of state
    is expressed by building a new instance. Equality and hashing use only
    the concrete class and ``id``.
    """

    id: TId

    model_config = {"frozen": True}

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Entity):
            return NotImplemented
        return type(self) is type(other) and self.id == other.id

    def __hash__(self) -> int:
        return hash((type(self), self.id))


class DomainModelError(Exception):
    """Base class for errors raised by domain model contracts."""


class InvalidArgumentError(DomainModelError, ValueError):
    """Raised when a required argument is missing or of the wrong kind."""

    def __init__(self, argument: str, message: str) -> None:
        super().__init__(message)
        self.argument = argument
