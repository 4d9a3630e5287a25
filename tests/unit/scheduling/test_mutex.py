"""Unit tests for the in-memory keyed mutex."""
from __future__ import annotations

from datetime import UTC, datetime

from schedcore.kernel.time import ManualClock
from schedcore.scheduling import InMemoryMutex, Mutex


def _mutex() -> tuple[InMemoryMutex, ManualClock]:
    clock = ManualClock(datetime(2024, 6, 3, 12, 0, tzinfo=UTC))
    return InMemoryMutex(clock), clock


class TestInMemoryMutex:
    def test_is_mutex(self) -> None:
        assert isinstance(InMemoryMutex(), Mutex)

    def test_second_acquire_fails_until_release(self) -> None:
        mutex, _ = _mutex()
        assert mutex.try_get_lock("k", 10) is True
        assert mutex.try_get_lock("k", 10) is False
        mutex.release("k")
        assert mutex.try_get_lock("k", 10) is True

    def test_keys_are_independent(self) -> None:
        mutex, _ = _mutex()
        assert mutex.try_get_lock("a", 10)
        assert mutex.try_get_lock("b", 10)

    def test_lock_expires_after_timeout(self) -> None:
        mutex, clock = _mutex()
        mutex.try_get_lock("k", 5)
        clock.advance(minutes=4)
        assert mutex.is_locked("k")
        clock.advance(minutes=1)
        assert not mutex.is_locked("k")
        assert mutex.try_get_lock("k", 5)

    def test_release_unknown_key_is_noop(self) -> None:
        mutex, _ = _mutex()
        mutex.release("ghost")
