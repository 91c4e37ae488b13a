"""Injectable UTC clock used for every domain timestamp."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timedelta, timezone


class Clock(ABC):
    """Source of the current UTC time."""

    @abstractmethod
    def now(self) -> datetime:
        """Return the current timezone-aware UTC timestamp."""


class SystemClock(Clock):
    """Wall-clock time."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock(Clock):
    """Clock frozen at a given instant until moved explicitly.

    Naive datetimes are interpreted as UTC.
    """

    def __init__(self, instant: datetime) -> None:
        self._instant = _as_utc(instant)

    def now(self) -> datetime:
        return self._instant

    def set(self, instant: datetime) -> None:
        self._instant = _as_utc(instant)

    def advance(self, delta: timedelta) -> datetime:
        self._instant = self._instant + delta
        return self._instant


def _as_utc(instant: datetime) -> datetime:
    if instant.tzinfo is None:
        return instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(timezone.utc)


_system_clock = SystemClock()
clock_ctx: ContextVar[Clock] = ContextVar("clock", default=_system_clock)


def get_clock() -> Clock:
    """Get the clock active in the current context."""
    return clock_ctx.get()


@contextmanager
def use_clock(clock: Clock) -> Iterator[Clock]:
    """Make ``clock`` the time source for the enclosed block."""
    token = clock_ctx.set(clock)
    try:
        yield clock
    finally:
        clock_ctx.reset(token)
