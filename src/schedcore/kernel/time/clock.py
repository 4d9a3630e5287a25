"""Kernel time – Clock protocol + implementations."""
from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Protocol


class Clock(Protocol):
    """Port: source of the current UTC instant for scheduler ticks."""

    def now(self) -> datetime: ...


class SystemClock:
    """Production clock that delegates to ``datetime.now(UTC)``."""

    def now(self) -> datetime:
        return datetime.now(UTC)


class ManualClock:
    """Test clock that only moves when told to.

    Naive datetimes are pinned to UTC so every reading is timezone-aware.
    """

    def __init__(self, start: datetime) -> None:
        self._now = start if start.tzinfo is not None else start.replace(tzinfo=UTC)

    def now(self) -> datetime:
        return self._now

    def set(self, value: datetime) -> None:
        self._now = value if value.tzinfo is not None else value.replace(tzinfo=UTC)

    def advance(self, **kwargs: int | float) -> datetime:
        """Advance by the given ``timedelta`` kwargs and return the new instant."""
        self._now += timedelta(**kwargs)
        return self._now


def utc_now() -> datetime:
    """Shorthand for ``datetime.now(UTC)``."""
    return datetime.now(UTC)


__all__ = ["Clock", "ManualClock", "SystemClock", "utc_now"]
