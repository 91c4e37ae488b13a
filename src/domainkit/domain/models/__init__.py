"""Domain models package."""

from domainkit.domain.models.aggregate import (
    AggregateRoot,
    AuditableAggregateRoot,
    SoftDeletableAggregateRoot,
)
from domainkit.domain.models.base import (
    causation_from,
    current_correlation_id,
    DomainEvent,
    DomainModelError,
    ensure_argument,
    Entity,
    generate_id,
    HasId,
    InvalidArgumentError,
    RichDomainEvent,
    utc_now,
    ValueObject,
)


__all__ = [
    "AggregateRoot",
    "AuditableAggregateRoot",
    "DomainEvent",
    "DomainModelError",
    "Entity",
    "HasId",
    "InvalidArgumentError",
    "RichDomainEvent",
    "SoftDeletableAggregateRoot",
    "ValueObject",
    "causation_from",
    "current_correlation_id",
    "ensure_argument",
    "generate_id",
    "utc_now",
]
