"""Prometheus metrics for domain event dispatch."""

from __future__ import annotations

from prometheus_client import Counter, Histogram, Info


LIB_INFO = Info("domainkit", "Domain event library info")
LIB_INFO.info({"version": "0.1.0"})

DOMAIN_EVENTS_DISPATCHED = Counter(
    "domainkit_domain_events_dispatched_total",
    "Domain events handled by the dispatcher",
    ["event_type", "result"],  # result: success, failure, skipped
)

DISPATCH_RUNS = Counter(
    "domainkit_dispatch_runs_total",
    "Dispatch runs over a unit of work's collected events",
    ["mode", "result"],  # mode: fail_fast, continuation
)

DISPATCH_DURATION = Histogram(
    "domainkit_dispatch_duration_seconds",
    "Time taken to dispatch a unit of work's collected events",
    ["mode"],
    buckets=[0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0],
)
