"""Unit tests for DomainEventUnitOfWork."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from domainkit.config import Settings
from domainkit.domain.correlation import correlation_scope, get_correlation_id
from domainkit.domain.models import InvalidArgumentError
from domainkit.domain.ports.services import EventPublisher
from domainkit.infrastructure.messaging.event_dispatcher import DomainEventDispatchError
from domainkit.infrastructure.messaging.event_publisher import InMemoryEventPublisher
from domainkit.infrastructure.persistence.unit_of_work import DomainEventUnitOfWork
from order_domain import Order, OrderPlaced


class TestDomainEventUnitOfWork:
    def test_requires_publisher(self, settings: Settings) -> None:
        with pytest.raises(InvalidArgumentError):
            DomainEventUnitOfWork(None, settings)  # type: ignore[arg-type]

    @pytest.mark.asyncio
    async def test_dispatches_on_clean_exit(
        self, event_publisher: InMemoryEventPublisher, settings: Settings
    ) -> None:
        async with DomainEventUnitOfWork(event_publisher, settings) as uow:
            orders = uow.repository()
            order = Order.place(1, "a")
            await orders.add(order)
            await orders.update_immutable(order.ship())

        assert [e.name for e in event_publisher.published_events] == [
            "order.placed", "order.shipped",
        ]
        assert uow.result is not None
        assert uow.result.success_count == 2
        assert len(uow.collector) == 0

    @pytest.mark.asyncio
    async def test_exception_skips_dispatch(
        self, event_publisher: InMemoryEventPublisher, settings: Settings
    ) -> None:
        order = Order.place(1, "a")
        with pytest.raises(RuntimeError, match="abort"):
            async with DomainEventUnitOfWork(event_publisher, settings) as uow:
                uow.track(order)
                raise RuntimeError("abort")

        assert event_publisher.published_events == []
        assert uow.result is None
        assert len(uow.collector) == 0
        assert len(order.domain_events) == 1

    @pytest.mark.asyncio
    async def test_track_update(
        self, event_publisher: InMemoryEventPublisher, settings: Settings
    ) -> None:
        order = Order.place(1, "a")
        async with DomainEventUnitOfWork(event_publisher, settings) as uow:
            shipped = uow.track_update(order.ship(), order)
            assert uow.collector.tracked_aggregates == (shipped,)
        assert len(event_publisher.published_events) == 2

    @pytest.mark.asyncio
    async def test_fail_fast_error_propagates(self, fail_fast_settings: Settings) -> None:
        publisher = AsyncMock(spec=EventPublisher)
        publisher.publish.side_effect = RuntimeError("down")
        order = Order.place(1, "a")

        with pytest.raises(DomainEventDispatchError):
            async with DomainEventUnitOfWork(publisher, fail_fast_settings) as uow:
                uow.track(order)

        assert len(order.domain_events) == 1

    @pytest.mark.asyncio
    async def test_correlation_scope(
        self, event_publisher: InMemoryEventPublisher, settings: Settings
    ) -> None:
        async with DomainEventUnitOfWork(event_publisher, settings, correlation_id="req-1") as uow:
            assert get_correlation_id() == "req-1"
            uow.track(Order.place(1, "a"))
        assert get_correlation_id() == ""

        event = event_publisher.published_events[0]
        assert isinstance(event, OrderPlaced)
        assert event.correlation_id == "req-1"

    @pytest.mark.asyncio
    async def test_inherits_active_correlation(
        self, event_publisher: InMemoryEventPublisher, settings: Settings
    ) -> None:
        with correlation_scope("outer"):
            async with DomainEventUnitOfWork(event_publisher, settings) as uow:
                assert uow.correlation_id == "outer"

    @pytest.mark.asyncio
    async def test_generates_correlation(
        self, event_publisher: InMemoryEventPublisher, settings: Settings
    ) -> None:
        async with DomainEventUnitOfWork(event_publisher, settings) as uow:
            assert uow.correlation_id
            assert get_correlation_id() == uow.correlation_id
