"""Unit tests for base domain models."""

from __future__ import annotations

from datetime import timedelta

import pytest
from pydantic import ValidationError

from domainkit.domain.clock import FixedClock
from domainkit.domain.correlation import correlation_scope
from domainkit.domain.models.base import (
    causation_from,
    DomainEvent,
    ensure_argument,
    Entity,
    generate_id,
    HasId,
    InvalidArgumentError,
    RichDomainEvent,
    utc_now,
    ValueObject,
)
from order_domain import Order, OrderNoteAdded, OrderPlaced


class TestGenerateId:
    def test_returns_string(self) -> None:
        assert isinstance(generate_id(), str)

    def test_unique(self) -> None:
        ids = {generate_id() for _ in range(100)}
        assert len(ids) == 100


class TestUtcNow:
    def test_returns_aware_datetime(self) -> None:
        now = utc_now()
        assert now.tzinfo is not None

    def test_reads_active_clock(self, fixed_clock: FixedClock) -> None:
        assert utc_now() == fixed_clock.now()
        fixed_clock.advance(timedelta(seconds=5))
        assert utc_now() == fixed_clock.now()


class TestEnsureArgument:
    def test_none_rejected(self) -> None:
        with pytest.raises(InvalidArgumentError) as exc_info:
            ensure_argument(None, "thing")
        assert exc_info.value.argument == "thing"

    def test_wrong_type_rejected(self) -> None:
        with pytest.raises(InvalidArgumentError, match="DomainEvent"):
            ensure_argument("not-an-event", "event", DomainEvent)

    def test_is_value_error(self) -> None:
        with pytest.raises(ValueError):
            ensure_argument(None, "thing")

    def test_accepts_valid_value(self) -> None:
        ensure_argument(DomainEvent(), "event", DomainEvent)


class TestValueObject:
    def test_immutable(self) -> None:
        class Price(ValueObject):
            amount: float
            currency: str

        p = Price(amount=9.99, currency="USD")
        assert p.amount == 9.99
        with pytest.raises(ValidationError):
            p.amount = 1.0  # type: ignore[misc]


class TestEntity:
    def test_equal_by_id(self) -> None:
        assert Order(id=1, customer="a") == Order(id=1, customer="b")

    def test_different_ids_not_equal(self) -> None:
        assert Order(id=1, customer="a") != Order(id=2, customer="a")

    def test_different_types_not_equal(self) -> None:
        class Customer(Entity[int]):
            name: str = ""

        assert Order(id=1, customer="a") != Customer(id=1)

    def test_hash_follows_identity(self) -> None:
        orders = {Order(id=1, customer="a"), Order(id=1, customer="b")}
        assert len(orders) == 1

    def test_id_is_immutable(self) -> None:
        order = Order(id=1, customer="a")
        with pytest.raises(ValidationError):
            order.id = 2  # type: ignore[misc]

    def test_has_id_protocol(self) -> None:
        class Row:
            def __init__(self) -> None:
                self.id = 3

        assert isinstance(Order(id=1, customer="a"), HasId)
        assert isinstance(Row(), HasId)
        assert not isinstance(object(), HasId)


class TestDomainEvent:
    def test_defaults(self) -> None:
        event = DomainEvent()
        assert event.event_id
        assert event.occurred_at_utc.tzinfo is not None

    def test_occurred_at_from_clock(self, fixed_clock: FixedClock) -> None:
        assert DomainEvent().occurred_at_utc == fixed_clock.now()

    def test_identical_fields_are_equal(self, fixed_clock: FixedClock) -> None:
        first = OrderNoteAdded(note="hi", event_id="e-1")
        second = OrderNoteAdded(note="hi", event_id="e-1")
        assert first == second

    def test_independent_events_not_equal(self, fixed_clock: FixedClock) -> None:
        assert OrderNoteAdded(note="hi") != OrderNoteAdded(note="hi")

    def test_frozen(self) -> None:
        event = DomainEvent()
        with pytest.raises(ValidationError):
            event.event_id = "other"  # type: ignore[misc]

    def test_name_defaults_to_class_name(self) -> None:
        assert DomainEvent().name == "DomainEvent"
        assert OrderNoteAdded(note="x").name == "order.note_added"

    def test_dispatchable_flag(self) -> None:
        assert DomainEvent.dispatchable is True
        assert OrderNoteAdded.dispatchable is False


class TestRichDomainEvent:
    def test_defaults(self) -> None:
        event = OrderPlaced(aggregate_id=7, customer="alice")
        assert event.correlation_id
        assert event.causation_id is None
        assert event.aggregate_version == 0
        assert event.event_version == 1

    def test_aggregate_id_type_is_validated(self) -> None:
        with pytest.raises(ValidationError):
            OrderPlaced(aggregate_id="not-a-number", customer="alice")

    def test_correlation_from_scope(self) -> None:
        with correlation_scope("corr-1"):
            event = OrderPlaced(aggregate_id=7, customer="alice")
        assert event.correlation_id == "corr-1"

    def test_untyped_aggregate_id(self) -> None:
        event = RichDomainEvent(aggregate_id="order-7", aggregate_version=3)
        assert event.aggregate_id == "order-7"
        assert event.aggregate_version == 3


class TestCausationFrom:
    def test_chains_rich_event(self) -> None:
        placed = OrderPlaced(aggregate_id=7, customer="alice", correlation_id="c-1")
        fields = causation_from(placed)
        assert fields == {"causation_id": placed.event_id, "correlation_id": "c-1"}

    def test_plain_event_uses_current_correlation(self) -> None:
        cause = DomainEvent()
        with correlation_scope("c-2"):
            fields = causation_from(cause)
        assert fields["correlation_id"] == "c-2"
        assert fields["causation_id"] == cause.event_id

    def test_none_rejected(self) -> None:
        with pytest.raises(InvalidArgumentError):
            causation_from(None)  # type: ignore[arg-type]
