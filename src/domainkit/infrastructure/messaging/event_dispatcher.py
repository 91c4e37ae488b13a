"""Dispatch of collected domain events through an EventPublisher."""

from __future__ import annotations

import time
from collections.abc import Iterable, Iterator

import structlog
from pydantic import Field

from domainkit.config import get_settings, Settings
from domainkit.domain.models.base import (
    DomainEvent,
    DomainModelError,
    ensure_argument,
    ValueObject,
)
from domainkit.domain.ports.services import EventPublisher
from domainkit.domain.services.event_collector import EventCollector
from domainkit.infrastructure.observability.metrics import (
    DISPATCH_DURATION,
    DISPATCH_RUNS,
    DOMAIN_EVENTS_DISPATCHED,
)
from domainkit.infrastructure.observability.tracing import get_tracer


logger = structlog.get_logger(__name__)
tracer = get_tracer(__name__)

FAIL_FAST = "fail_fast"
CONTINUATION = "continuation"

_EventKey = tuple[type, str]


def _key(event: DomainEvent) -> _EventKey:
    return (type(event), event.event_id)


class DomainEventDispatchFailure(ValueObject):
    """One event the publisher failed to deliver."""

    event: DomainEvent
    error: Exception

    model_config = {"frozen": True, "arbitrary_types_allowed": True}


class DomainEventDispatchResult(ValueObject):
    """Outcome of one dispatch run."""

    success_count: int = 0
    skipped_count: int = 0
    failures: tuple[DomainEventDispatchFailure, ...] = Field(default_factory=tuple)

    @property
    def is_success(self) -> bool:
        return not self.failures

    @property
    def total_attempted(self) -> int:
        """Events handed to the publisher; skipped events are not attempts."""
        return self.success_count + len(self.failures)

    @property
    def total_processed(self) -> int:
        return self.success_count + self.skipped_count + len(self.failures)

    def raise_for_failures(self) -> None:
        """Raise the aggregated dispatch error if any event failed."""
        if self.failures:
            raise DomainEventDispatchFailedError.from_failures(self.failures)


class DomainEventDispatcher:
    """Delivers the events pending on a collector's tracked aggregates.

    Events go out aggregate by aggregate in tracking order, and in raise order
    within an aggregate. Events that handlers raise during a run go out in a
    later round of the same run. After a successful run the events handled
    are removed from the aggregates, and aggregates with nothing left pending
    are no longer tracked.
    """

    def __init__(
        self,
        publisher: EventPublisher,
        collector: EventCollector,
        settings: Settings | None = None,
    ) -> None:
        ensure_argument(publisher, "publisher", EventPublisher)
        ensure_argument(collector, "collector", EventCollector)
        self._publisher = publisher
        self._collector = collector
        self._settings = settings or get_settings()

    @property
    def collector(self) -> EventCollector:
        return self._collector

    async def dispatch(self) -> DomainEventDispatchResult:
        """Dispatch using the configured error mode."""
        dispatch_settings = self._settings.dispatch
        if not dispatch_settings.enabled:
            logger.debug(
                "domain_event_dispatch_disabled",
                pending_events=self._collector.total_event_count,
            )
            return DomainEventDispatchResult()
        if dispatch_settings.stop_on_first_error:
            return await self.dispatch_collected_events()
        return await self.dispatch_collected_events_with_continuation()

    async def dispatch_collected_events(self) -> DomainEventDispatchResult:
        """Publish every pending event, stopping at the first failure.

        Events raised by handlers while the run is in progress are picked up
        and published in the same run. On failure, events already delivered
        or skipped are removed from every aggregate holding them; the failed
        event and everything after it stay pending, and the collector keeps
        tracking, so the run can be retried.
        """
        started = time.perf_counter()
        success = skipped = 0
        seen: set[_EventKey] = set()
        done: set[_EventKey] = set()

        with tracer.start_as_current_span("domain_events.dispatch") as span:
            span.set_attribute("domain_events.mode", FAIL_FAST)
            for event in self._rounds(seen):
                if not self._should_publish(event):
                    skipped += 1
                    done.add(_key(event))
                    self._count(event, "skipped")
                    continue
                try:
                    await self._publisher.publish(event)
                except Exception as exc:
                    self._count(event, "failure")
                    self._remove_handled(done)
                    self._observe(FAIL_FAST, "failure", started)
                    logger.error(
                        "domain_event_dispatch_failed",
                        event_type=event.name,
                        event_id=event.event_id,
                        delivered=success,
                        error=str(exc),
                    )
                    raise DomainEventDispatchError(
                        f"Failed to dispatch domain event {event.name} ({event.event_id})",
                        event,
                    ) from exc
                done.add(_key(event))
                success += 1
                self._count(event, "success")

            span.set_attribute("domain_events.published", success)
            self._finish(seen)

        self._observe(FAIL_FAST, "success", started)
        logger.info("domain_events_dispatched", published=success, skipped=skipped)
        return DomainEventDispatchResult(success_count=success, skipped_count=skipped)

    async def dispatch_collected_events_with_continuation(self) -> DomainEventDispatchResult:
        """Publish every pending event, recording failures instead of stopping.

        Events raised by handlers during the run are published in the same
        run. Every event the run handled is cleared afterwards, whether or
        not it failed.
        """
        started = time.perf_counter()
        success = skipped = 0
        failures: list[DomainEventDispatchFailure] = []
        seen: set[_EventKey] = set()

        with tracer.start_as_current_span("domain_events.dispatch") as span:
            span.set_attribute("domain_events.mode", CONTINUATION)
            for event in self._rounds(seen):
                if not self._should_publish(event):
                    skipped += 1
                    self._count(event, "skipped")
                    continue
                try:
                    await self._publisher.publish(event)
                except Exception as exc:
                    self._count(event, "failure")
                    failures.append(DomainEventDispatchFailure(event=event, error=exc))
                    logger.warning(
                        "domain_event_dispatch_failed",
                        event_type=event.name,
                        event_id=event.event_id,
                        error=str(exc),
                    )
                    continue
                success += 1
                self._count(event, "success")

            span.set_attribute("domain_events.published", success)
            span.set_attribute("domain_events.failed", len(failures))
            self._finish(seen)

        self._observe(CONTINUATION, "failure" if failures else "success", started)
        logger.info(
            "domain_events_dispatched",
            published=success,
            skipped=skipped,
            failed=len(failures),
        )
        return DomainEventDispatchResult(
            success_count=success, skipped_count=skipped, failures=tuple(failures)
        )

    def _rounds(self, seen: set[_EventKey]) -> Iterator[DomainEvent]:
        """Yield pending events not yet seen, re-reading the collector per round.

        Each round reads the collector after the previous round's events were
        handled, so events raised by handlers come out in the next round. An
        event held by several tracked instances is yielded once. Events still
        unseen after ``max_rounds`` stay pending.
        """
        max_rounds = self._settings.dispatch.max_rounds
        for _ in range(max_rounds):
            batch = [e for e in self._collector.collect_events() if _key(e) not in seen]
            if not batch:
                return
            for event in batch:
                seen.add(_key(event))
                yield event
        left = [e for e in self._collector.collect_events() if _key(e) not in seen]
        if left:
            logger.warning(
                "domain_event_dispatch_rounds_exhausted",
                max_rounds=max_rounds,
                pending_events=len(left),
            )

    def _remove_handled(self, handled: set[_EventKey]) -> None:
        for aggregate in self._collector.tracked_aggregates:
            for event in aggregate.domain_events:
                if _key(event) in handled:
                    aggregate.remove_domain_event(event)

    def _should_publish(self, event: DomainEvent) -> bool:
        return type(event).dispatchable or not self._settings.dispatch.require_dispatchable

    def _finish(self, handled: set[_EventKey]) -> None:
        if self._settings.dispatch.clear_events_after_dispatch:
            self._remove_handled(handled)
            self._collector.untrack_drained()

    def _count(self, event: DomainEvent, result: str) -> None:
        if self._settings.observability.metrics_enabled:
            DOMAIN_EVENTS_DISPATCHED.labels(event_type=event.name, result=result).inc()

    def _observe(self, mode: str, result: str, started: float) -> None:
        if self._settings.observability.metrics_enabled:
            DISPATCH_RUNS.labels(mode=mode, result=result).inc()
            DISPATCH_DURATION.labels(mode=mode).observe(time.perf_counter() - started)


class DomainEventDispatchError(DomainModelError):
    """Raised when the publisher fails to deliver a domain event."""

    def __init__(self, message: str, event: DomainEvent) -> None:
        super().__init__(message)
        self.event = event


class DomainEventDispatchFailedError(DomainModelError):
    """Several domain events failed to dispatch."""

    code = "domain_events.aggregate_dispatch_failed"

    def __init__(self, message: str, failures: Iterable[DomainEventDispatchFailure]) -> None:
        super().__init__(message)
        self.failures = tuple(failures)

    @classmethod
    def from_failures(cls, failures: Iterable[DomainEventDispatchFailure]) -> Exception:
        """Combine failures into one error.

        A single failure yields its own error unchanged.
        """
        ensure_argument(failures, "failures")
        failures = tuple(failures)
        if not failures:
            return cls("No errors occurred while dispatching domain events", failures)
        if len(failures) == 1:
            return failures[0].error
        details = "; ".join(
            f"{f.event.name} ({f.event.event_id}): {f.error}" for f in failures
        )
        return cls(f"{len(failures)} domain event dispatches failed: {details}", failures)
