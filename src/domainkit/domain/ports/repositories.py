"""Repository port interfaces (hexagonal architecture)."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Generic, TypeVar

from domainkit.domain.models.aggregate import AggregateRoot
from domainkit.domain.models.base import DomainModelError


TAggregate = TypeVar("TAggregate", bound="AggregateRoot[Any]")
TKey = TypeVar("TKey")


class AggregateRepository(ABC, Generic[TAggregate, TKey]):
    """Port for aggregate persistence within one unit of work."""

    @abstractmethod
    async def add(self, aggregate: TAggregate) -> TAggregate:
        """Persist a new aggregate."""

    @abstractmethod
    async def get_by_id(self, aggregate_id: TKey) -> TAggregate | None:
        """Retrieve the current instance of an aggregate."""

    @abstractmethod
    async def update_immutable(self, modified: TAggregate) -> TAggregate:
        """Replace the stored instance with its copy-on-write successor.

        Pending events of the replaced instance are carried onto ``modified``.
        """

    @abstractmethod
    async def remove(self, aggregate_id: TKey) -> bool:
        """Delete an aggregate. Returns False if it did not exist."""


class AggregateNotFoundError(DomainModelError):
    """Raised when an aggregate to update is not stored."""


class AggregateAlreadyExistsError(DomainModelError):
    """Raised when adding an aggregate whose id is already stored."""
