"""Unit tests for correlation ID scoping."""

from __future__ import annotations

import structlog

from domainkit.domain.correlation import correlation_scope, get_correlation_id


class TestCorrelationScope:
    def test_empty_outside_scope(self) -> None:
        assert get_correlation_id() == ""

    def test_explicit_id(self) -> None:
        with correlation_scope("abc") as correlation_id:
            assert correlation_id == "abc"
            assert get_correlation_id() == "abc"
        assert get_correlation_id() == ""

    def test_generates_id(self) -> None:
        with correlation_scope() as correlation_id:
            assert correlation_id
            assert get_correlation_id() == correlation_id

    def test_binds_structlog_context(self) -> None:
        with correlation_scope("abc"):
            assert structlog.contextvars.get_contextvars()["correlation_id"] == "abc"
        assert "correlation_id" not in structlog.contextvars.get_contextvars()
