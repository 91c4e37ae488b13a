"""Correlation ID context shared by events raised in one logical operation."""

from __future__ import annotations

import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar

import structlog


correlation_id_ctx: ContextVar[str] = ContextVar("correlation_id", default="")


def get_correlation_id() -> str:
    """Get the current correlation ID ("" outside a correlation scope)."""
    return correlation_id_ctx.get()


@contextmanager
def correlation_scope(correlation_id: str | None = None) -> Iterator[str]:
    """Run the enclosed block under a correlation ID.

    The ID is also bound into structlog's context variables so every log
    line emitted inside the block carries it.
    """
    correlation_id = correlation_id or str(uuid.uuid4())
    token = correlation_id_ctx.set(correlation_id)
    try:
        with structlog.contextvars.bound_contextvars(correlation_id=correlation_id):
            yield correlation_id
    finally:
        correlation_id_ctx.reset(token)
