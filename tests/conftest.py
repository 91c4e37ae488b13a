"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import Iterator
from datetime import datetime, timezone

import pytest

from domainkit.config import DispatchSettings, Environment, ObservabilitySettings, Settings
from domainkit.domain.clock import FixedClock, use_clock
from domainkit.domain.services.event_collector import EventCollector
from domainkit.infrastructure.messaging.event_dispatcher import DomainEventDispatcher
from domainkit.infrastructure.messaging.event_publisher import InMemoryEventPublisher
from order_domain import Order


T0 = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        environment=Environment.TESTING,
        debug=True,
        dispatch=DispatchSettings(),
        observability=ObservabilitySettings(tracing_enabled=False),
    )


@pytest.fixture
def fail_fast_settings() -> Settings:
    return Settings(
        environment=Environment.TESTING,
        dispatch=DispatchSettings(stop_on_first_error=True),
        observability=ObservabilitySettings(tracing_enabled=False),
    )


@pytest.fixture
def fixed_clock() -> Iterator[FixedClock]:
    clock = FixedClock(T0)
    with use_clock(clock):
        yield clock


@pytest.fixture
def collector() -> EventCollector:
    return EventCollector()


@pytest.fixture
def event_publisher() -> InMemoryEventPublisher:
    return InMemoryEventPublisher()


@pytest.fixture
def dispatcher(
    event_publisher: InMemoryEventPublisher,
    collector: EventCollector,
    settings: Settings,
) -> DomainEventDispatcher:
    return DomainEventDispatcher(event_publisher, collector, settings)


@pytest.fixture
def placed_order() -> Order:
    return Order.place(7, "alice")
