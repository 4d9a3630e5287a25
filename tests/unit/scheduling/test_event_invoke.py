"""Unit tests for the ScheduledEvent execution pipeline and lifecycle."""
from __future__ import annotations

import asyncio
from typing import Any

import pytest

from schedcore.kernel.errors import ConfigurationError, ResolutionError
from schedcore.scheduling import (
    CancellationToken,
    InvocableRegistry,
    ScheduledEvent,
)
from schedcore.scheduling.errors import InvalidInvocableError
from schedcore.scheduling.invocable import accepts_cancellation


class RecordingInvocable:
    calls: list[str] = []

    async def invoke(self) -> None:
        RecordingInvocable.calls.append("invoked")


class GreetingInvocable:
    def __init__(self, name: str, log: list[str]) -> None:
        self._name = name
        self._log = log

    async def invoke(self) -> None:
        self._log.append(f"hello {self._name}")


class CancellableWork:
    cancellation_token: CancellationToken | None = None
    seen: list[CancellationToken | None] = []

    async def invoke(self) -> None:
        CancellableWork.seen.append(self.cancellation_token)


class AnnotatedCancellable:
    cancellation_token: CancellationToken | None
    seen: list[CancellationToken | None] = []

    async def invoke(self) -> None:
        AnnotatedCancellable.seen.append(self.cancellation_token)


class FailingInvocable:
    closed: list[bool] = []

    async def invoke(self) -> None:
        raise RuntimeError("work failed")

    def close(self) -> None:
        FailingInvocable.closed.append(True)


class NotInvocable:
    def run(self) -> None: ...


@pytest.fixture(autouse=True)
def _reset_class_logs() -> None:
    RecordingInvocable.calls = []
    CancellableWork.seen = []
    AnnotatedCancellable.seen = []
    FailingInvocable.closed = []


class _Unscheduler:
    def __init__(self) -> None:
        self.requests: list[str] = []

    def __call__(self, unique_id: str) -> bool:
        self.requests.append(unique_id)
        return True


# ---------------------------------------------------------------------------
# Inline actions
# ---------------------------------------------------------------------------


class TestInlineActions:
    def test_sync_action_runs(self) -> None:
        calls: list[int] = []
        event = ScheduledEvent.with_action(lambda: calls.append(1))
        asyncio.run(event.invoke())
        assert calls == [1]
        assert event.has_run_at_least_once is True

    def test_async_action_is_awaited(self) -> None:
        calls: list[int] = []

        async def action() -> None:
            await asyncio.sleep(0)
            calls.append(1)

        asyncio.run(ScheduledEvent.with_action(action).invoke())
        assert calls == [1]

    def test_action_failure_propagates_and_keeps_lifecycle(self) -> None:
        unschedule = _Unscheduler()

        def action() -> None:
            raise ValueError("boom")

        event = ScheduledEvent.with_action(action, unschedule=unschedule)
        event.every_minute().once()
        with pytest.raises(ValueError, match="boom"):
            asyncio.run(event.invoke())
        assert event.has_run_at_least_once is False
        assert unschedule.requests == []

    def test_needs_exactly_one_target(self) -> None:
        with pytest.raises(ConfigurationError):
            ScheduledEvent()
        with pytest.raises(ConfigurationError):
            ScheduledEvent(action=lambda: None, invocable_type=RecordingInvocable)


# ---------------------------------------------------------------------------
# Predicate gate
# ---------------------------------------------------------------------------


class TestWhenPredicate:
    def test_false_predicate_skips_target_but_marks_run(self) -> None:
        calls: list[int] = []

        async def never() -> bool:
            return False

        event = ScheduledEvent.with_action(lambda: calls.append(1))
        event.every_minute().when(never)
        asyncio.run(event.invoke())
        assert calls == []
        assert event.has_run_at_least_once is True

    def test_true_predicate_runs_target(self) -> None:
        calls: list[int] = []

        async def always() -> bool:
            return True

        event = ScheduledEvent.with_action(lambda: calls.append(1))
        event.every_minute().when(always)
        asyncio.run(event.invoke())
        assert calls == [1]

    def test_sync_predicate_supported(self) -> None:
        calls: list[int] = []
        event = ScheduledEvent.with_action(lambda: calls.append(1))
        event.every_minute().when(lambda: False)
        asyncio.run(event.invoke())
        assert calls == []

    def test_false_predicate_counts_as_the_once_run(self) -> None:
        unschedule = _Unscheduler()
        event = ScheduledEvent.with_action(lambda: None, unschedule=unschedule)
        event.every_minute().once().when(lambda: False)
        asyncio.run(event.invoke())
        assert unschedule.requests == [event.overlapping_unique_identifier()]

    def test_predicate_error_propagates(self) -> None:
        async def broken() -> bool:
            raise LookupError("gate down")

        event = ScheduledEvent.with_action(lambda: None)
        event.every_minute().when(broken)
        with pytest.raises(LookupError):
            asyncio.run(event.invoke())
        assert event.has_run_at_least_once is False


# ---------------------------------------------------------------------------
# Once lifecycle
# ---------------------------------------------------------------------------


class TestOnce:
    def test_once_requests_unschedule_exactly_once(self) -> None:
        unschedule = _Unscheduler()
        event = ScheduledEvent.with_action(lambda: None, unschedule=unschedule)
        event.every_minute().once().assign_unique_identifier("one-shot")

        async def _run() -> None:
            for _ in range(5):
                await event.invoke()

        asyncio.run(_run())
        assert unschedule.requests == ["one-shot"]

    def test_failed_first_run_retries_then_unschedules(self) -> None:
        unschedule = _Unscheduler()
        attempts: list[int] = []

        def flaky() -> None:
            attempts.append(1)
            if len(attempts) == 1:
                raise RuntimeError("first try fails")

        event = ScheduledEvent.with_action(flaky, unschedule=unschedule)
        event.every_minute().once()

        async def _run() -> None:
            with pytest.raises(RuntimeError):
                await event.invoke()
            assert unschedule.requests == []
            await event.invoke()

        asyncio.run(_run())
        assert len(unschedule.requests) == 1

    def test_identifier_frozen_after_first_run(self) -> None:
        event = ScheduledEvent.with_action(lambda: None)
        event.every_minute().assign_unique_identifier("before")
        asyncio.run(event.invoke())
        with pytest.raises(ConfigurationError):
            event.prevent_overlapping("after")
        assert event.overlapping_unique_identifier() == "before"

    def test_without_once_never_unschedules(self) -> None:
        unschedule = _Unscheduler()
        event = ScheduledEvent.with_action(lambda: None, unschedule=unschedule)
        event.every_minute()
        asyncio.run(event.invoke())
        assert unschedule.requests == []
        assert event.has_run_at_least_once is True


# ---------------------------------------------------------------------------
# Resolved invocables
# ---------------------------------------------------------------------------


class TestResolvedInvocables:
    def test_registered_type_is_resolved_and_invoked(self) -> None:
        registry = InvocableRegistry().register(RecordingInvocable)
        event = ScheduledEvent.with_invocable_type(RecordingInvocable, registry)
        asyncio.run(event.invoke())
        assert RecordingInvocable.calls == ["invoked"]
        assert event.invocable_type() is RecordingInvocable

    def test_unregistered_type_raises_resolution_error(self) -> None:
        event = ScheduledEvent.with_invocable_type(RecordingInvocable, InvocableRegistry())
        with pytest.raises(ResolutionError):
            asyncio.run(event.invoke())
        assert event.has_run_at_least_once is False

    def test_params_are_passed_to_constructor(self) -> None:
        log: list[str] = []
        event = ScheduledEvent.with_invocable_and_params(
            GreetingInvocable, ("world", log), InvocableRegistry()
        )
        asyncio.run(event.invoke())
        assert log == ["hello world"]

    def test_cancellation_token_is_injected(self) -> None:
        registry = InvocableRegistry().register(CancellableWork)
        token = CancellationToken()
        event = ScheduledEvent.with_invocable_type(CancellableWork, registry)
        asyncio.run(event.invoke(token))
        assert CancellableWork.seen == [token]

    def test_token_injected_when_attribute_only_annotated(self) -> None:
        registry = InvocableRegistry().register(AnnotatedCancellable)
        token = CancellationToken()
        event = ScheduledEvent.with_invocable_type(AnnotatedCancellable, registry)
        asyncio.run(event.invoke(token))
        assert AnnotatedCancellable.seen == [token]

    def test_cancellation_awareness_detection(self) -> None:
        assert accepts_cancellation(CancellableWork())
        assert accepts_cancellation(AnnotatedCancellable())
        assert not accepts_cancellation(RecordingInvocable())

    def test_scope_released_when_invocation_fails(self) -> None:
        registry = InvocableRegistry().register(FailingInvocable)
        event = ScheduledEvent.with_invocable_type(FailingInvocable, registry)
        with pytest.raises(RuntimeError, match="work failed"):
            asyncio.run(event.invoke())
        assert FailingInvocable.closed == [True]

    def test_non_invocable_type_rejected_at_configuration(self) -> None:
        with pytest.raises(InvalidInvocableError):
            ScheduledEvent.with_invocable_type(NotInvocable, InvocableRegistry())
        with pytest.raises(InvalidInvocableError):
            ScheduledEvent.with_invocable_and_params(NotInvocable, (1,), InvocableRegistry())

    def test_invocable_requires_scope_factory(self) -> None:
        with pytest.raises(ConfigurationError):
            ScheduledEvent(invocable_type=RecordingInvocable)

    def test_predicate_false_skips_resolution(self) -> None:
        resolved: list[Any] = []

        def factory() -> RecordingInvocable:
            resolved.append(True)
            return RecordingInvocable()

        registry = InvocableRegistry().register(RecordingInvocable, factory)
        event = ScheduledEvent.with_invocable_type(RecordingInvocable, registry)
        event.every_minute().when(lambda: False)
        asyncio.run(event.invoke())
        assert resolved == []
        assert event.has_run_at_least_once is True


# ---------------------------------------------------------------------------
# Cancellation token
# ---------------------------------------------------------------------------


class TestCancellationToken:
    def test_fresh_token_does_not_raise(self) -> None:
        token = CancellationToken()
        assert token.is_cancellation_requested is False
        token.raise_if_cancellation_requested()

    def test_cancelled_token_raises(self) -> None:
        from schedcore.kernel.errors import OperationCancelledError

        token = CancellationToken()
        token.cancel()
        with pytest.raises(OperationCancelledError):
            token.raise_if_cancellation_requested()
