"""Scheduling – Scheduler: the in-process driver that polls schedule entries."""
from __future__ import annotations

import asyncio
import threading
from datetime import datetime, timedelta
from typing import Any, Awaitable, Callable

from schedcore.config import SchedulerSettings
from schedcore.kernel.time import Clock, SystemClock
from schedcore.observability.logging import get_logger
from schedcore.scheduling.event import ScheduledEvent, ScheduleInterval
from schedcore.scheduling.invocable import Action, CancellationToken
from schedcore.scheduling.mutex import InMemoryMutex, Mutex
from schedcore.scheduling.resolution import InvocableRegistry, ScopeFactory

logger = get_logger(__name__)

_ONE_SECOND = timedelta(seconds=1)
_MAX_CATCH_UP_TICKS = 60
_MIN_SLEEP_SECONDS = 0.001

ErrorHandler = Callable[[BaseException, ScheduledEvent], Awaitable[None] | None]


class Scheduler:
    """Registry of :class:`ScheduledEvent` entries plus the tick that runs them.

    Each tick (:meth:`run_at`) evaluates every registered entry and runs the
    due ones concurrently. Cron-based entries are only evaluated at second 0
    of a minute so a once-per-second tick fires them once per matching minute.

    Usage::

        scheduler = Scheduler(scope_factory=registry)
        scheduler.schedule(flush_metrics).every_ten_seconds()
        scheduler.schedule_invocable(SendReport).daily_at(9, 0).weekday()

        await scheduler.start()
        ...
        await scheduler.stop()
    """

    def __init__(
        self,
        scope_factory: ScopeFactory | None = None,
        *,
        mutex: Mutex | None = None,
        clock: Clock | None = None,
        settings: SchedulerSettings | None = None,
    ) -> None:
        self._scope_factory: ScopeFactory = scope_factory or InvocableRegistry()
        self._clock = clock or SystemClock()
        self._mutex = mutex or InMemoryMutex(self._clock)
        self._settings = settings or SchedulerSettings()
        self._events: list[ScheduledEvent] = []
        self._events_lock = threading.Lock()
        self._error_handler: ErrorHandler | None = None
        self._cancellation_token = CancellationToken()
        self._is_first_tick = True
        self._running_count = 0
        self._loop_task: asyncio.Task[None] | None = None
        self._tick_tasks: set[asyncio.Task[None]] = set()

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def schedule(self, action: Action) -> ScheduleInterval:
        """Schedule an inline sync or async callable."""
        event = ScheduledEvent.with_action(
            action, unschedule=self.try_unschedule, zone=self._settings.default_timezone
        )
        return self._register(event)

    def schedule_invocable(self, invocable_type: type) -> ScheduleInterval:
        """Schedule a type resolved from the scope factory on every run."""
        event = ScheduledEvent.with_invocable_type(
            invocable_type,
            self._scope_factory,
            unschedule=self.try_unschedule,
            zone=self._settings.default_timezone,
        )
        return self._register(event)

    def schedule_with_params(self, invocable_type: type, *params: Any) -> ScheduleInterval:
        """Schedule a type constructed with *params* on every run."""
        event = ScheduledEvent.with_invocable_and_params(
            invocable_type,
            params,
            self._scope_factory,
            unschedule=self.try_unschedule,
            zone=self._settings.default_timezone,
        )
        return self._register(event)

    def try_unschedule(self, unique_id: str) -> bool:
        """Remove the first entry whose identifier is *unique_id*.

        Idempotent; an in-flight invocation of the entry is left to finish.
        Identifiers are read at call time, so ids assigned after scheduling
        are honoured.
        """
        with self._events_lock:
            for index, event in enumerate(self._events):
                if event.overlapping_unique_identifier() == unique_id:
                    del self._events[index]
                    break
            else:
                return False
        logger.info("scheduler.unscheduled", event_id=unique_id)
        return True

    def list_events(self) -> list[ScheduledEvent]:
        with self._events_lock:
            return list(self._events)

    def on_error(self, handler: ErrorHandler) -> Scheduler:
        """Install a callback receiving every exception raised by an entry."""
        self._error_handler = handler
        return self

    def cancel_all_cancellable_tasks(self) -> None:
        """Signal cancellation to every running cancellable invocable."""
        self._cancellation_token.cancel()

    # ------------------------------------------------------------------
    # Ticking
    # ------------------------------------------------------------------

    async def run_scheduler(self) -> None:
        """Run one tick at the clock's current instant."""
        await self.run_at(self._clock.now())

    async def run_at(self, utc_now: datetime) -> None:
        """Run one tick at *utc_now*."""
        events = self.list_events()
        started: set[int] = set()

        if self._is_first_tick:
            self._is_first_tick = False
            at_start = [e for e in events if e.should_run_once_at_start()]
            started = {id(e) for e in at_start}
            await self._invoke_all(at_start)

        is_first_second_of_minute = utc_now.second == 0
        due = [
            e
            for e in events
            if id(e) not in started
            and (is_first_second_of_minute or not e.is_scheduled_cron_based_task())
            and e.is_due(utc_now)
        ]
        await self._invoke_all(due)

    @property
    def is_running(self) -> bool:
        return self._running_count > 0

    @property
    def is_started(self) -> bool:
        return self._loop_task is not None and not self._loop_task.done()

    async def start(self) -> None:
        """Start polling the clock every ``tick_interval_seconds``.

        Every whole second that elapsed since the previous poll gets its own
        tick task, so second 0 is never skipped while earlier jobs still run.
        """
        if self.is_started:
            return
        if self._cancellation_token.is_cancellation_requested:
            self._cancellation_token = CancellationToken()
        self._loop_task = asyncio.create_task(self._run_loop(), name="schedcore-scheduler")
        logger.info("scheduler.started", tick_interval_seconds=self._settings.tick_interval_seconds)

    async def stop(self) -> None:
        """Stop polling, cancel cooperative work and in-flight ticks, then wait for them."""
        self.cancel_all_cancellable_tasks()
        task, self._loop_task = self._loop_task, None
        if task is None:
            return
        task.cancel()
        in_flight = list(self._tick_tasks)
        for tick in in_flight:
            tick.cancel()
        await asyncio.gather(task, *in_flight, return_exceptions=True)
        logger.info("scheduler.stopped")

    async def _run_loop(self) -> None:
        interval = self._settings.tick_interval_seconds
        last_tick: datetime | None = None
        while not self._cancellation_token.is_cancellation_requested:
            now = self._clock.now()
            for instant in self._pending_ticks(last_tick, now.replace(microsecond=0)):
                self._spawn_tick(instant)
                last_tick = instant
            delay = interval - now.timestamp() % interval
            await asyncio.sleep(max(delay, _MIN_SLEEP_SECONDS))

    def _pending_ticks(self, last_tick: datetime | None, now: datetime) -> list[datetime]:
        """Whole seconds not yet ticked, oldest first, ending at *now*."""
        if last_tick is None:
            return [now]
        missed = int((now - last_tick) / _ONE_SECOND)
        if missed <= 0:
            return []
        if missed > _MAX_CATCH_UP_TICKS:
            logger.warning("scheduler.ticks_dropped", count=missed - _MAX_CATCH_UP_TICKS)
            missed = _MAX_CATCH_UP_TICKS
        return [now - _ONE_SECOND * offset for offset in range(missed - 1, -1, -1)]

    def _spawn_tick(self, instant: datetime) -> None:
        task = asyncio.create_task(self.run_at(instant), name=f"schedcore-tick-{instant:%H:%M:%S}")
        self._tick_tasks.add(task)
        task.add_done_callback(self._collect_tick)

    def _collect_tick(self, task: asyncio.Task[None]) -> None:
        self._tick_tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("scheduler.tick_failed", task=task.get_name(), exc_info=exc)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _register(self, event: ScheduledEvent) -> ScheduledEvent:
        with self._events_lock:
            self._events.append(event)
        return event

    async def _invoke_all(self, events: list[ScheduledEvent]) -> None:
        if events:
            await asyncio.gather(*(self._invoke_event(e) for e in events))

    async def _invoke_event(self, event: ScheduledEvent) -> None:
        key = event.overlapping_unique_identifier()
        if event.should_prevent_overlapping():
            if not self._mutex.try_get_lock(key, self._settings.overlap_lock_timeout_minutes):
                logger.debug("scheduler.overlap_skipped", event_id=key)
                return
            try:
                await self._invoke_isolated(event)
            finally:
                self._mutex.release(key)
        else:
            await self._invoke_isolated(event)

    async def _invoke_isolated(self, event: ScheduledEvent) -> None:
        self._running_count += 1
        try:
            await event.invoke(self._cancellation_token)
        except Exception as exc:
            logger.exception("scheduler.event_failed", event_id=event.overlapping_unique_identifier())
            await self._handle_error(exc, event)
        finally:
            self._running_count -= 1

    async def _handle_error(self, exc: Exception, event: ScheduledEvent) -> None:
        if self._error_handler is None:
            return
        result = self._error_handler(exc, event)
        if result is not None:
            await result


__all__ = ["ErrorHandler", "Scheduler"]
