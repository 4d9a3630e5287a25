"""Scheduling – keyed mutex used by the scheduler to prevent overlaps."""
from __future__ import annotations

import threading
from datetime import datetime, timedelta
from typing import Protocol, runtime_checkable

from schedcore.kernel.time import Clock, SystemClock


@runtime_checkable
class Mutex(Protocol):
    """Port: non-blocking named lock with an expiry."""

    def try_get_lock(self, key: str, timeout_minutes: int) -> bool: ...
    def release(self, key: str) -> None: ...


class InMemoryMutex:
    """Process-local :class:`Mutex`.

    A lock whose timeout has elapsed counts as free, so a crashed holder
    cannot block its key forever.
    """

    def __init__(self, clock: Clock | None = None) -> None:
        self._clock = clock or SystemClock()
        self._lock = threading.Lock()
        self._held: dict[str, datetime] = {}

    def try_get_lock(self, key: str, timeout_minutes: int) -> bool:
        now = self._clock.now()
        with self._lock:
            expires_at = self._held.get(key)
            if expires_at is not None and expires_at > now:
                return False
            self._held[key] = now + timedelta(minutes=timeout_minutes)
            return True

    def release(self, key: str) -> None:
        with self._lock:
            self._held.pop(key, None)

    def is_locked(self, key: str) -> bool:
        now = self._clock.now()
        with self._lock:
            expires_at = self._held.get(key)
            return expires_at is not None and expires_at > now


__all__ = ["InMemoryMutex", "Mutex"]
