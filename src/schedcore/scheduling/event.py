"""Scheduling – ScheduledEvent: one schedule entry and its fluent configuration.

A :class:`ScheduledEvent` answers two questions for the driver that polls it:
whether it is due at a given UTC instant (:meth:`ScheduledEvent.is_due`), and
how to run its work for that occurrence (:meth:`ScheduledEvent.invoke`).

Configuration is exposed through two narrower views so callers only see the
builder surface while setting a schedule up::

    scheduler.schedule_invocable(SendReport) \\
        .daily_at(9, 30) \\
        .weekday() \\
        .zoned("America/New_York") \\
        .prevent_overlapping("reports")
"""
from __future__ import annotations

import inspect
import uuid
from datetime import datetime, timedelta, tzinfo
from typing import Any, Awaitable, Callable, Protocol, Sequence

from schedcore.kernel.errors import ConfigurationError
from schedcore.observability.logging import get_logger
from schedcore.scheduling.cron import (
    FRIDAY,
    MONDAY,
    SATURDAY,
    SUNDAY,
    THURSDAY,
    TUESDAY,
    WEDNESDAY,
    CronExpression,
)
from schedcore.scheduling.errors import InvalidIntervalError, InvalidInvocableError
from schedcore.scheduling.invocable import (
    Action,
    ActionOrAsyncFunc,
    CancellationToken,
    accepts_cancellation,
    is_invocable_type,
)
from schedcore.scheduling.resolution import ScopeFactory
from schedcore.scheduling.zoned import ZonedTime

logger = get_logger(__name__)

Predicate = Callable[[], Awaitable[bool] | bool]
UnscheduleCallback = Callable[[str], object]

_ONE_MINUTE_AS_SECONDS = 60


class ScheduledEventConfiguration(Protocol):
    """Refinements available once a frequency has been chosen."""

    def monday(self) -> ScheduledEventConfiguration: ...
    def tuesday(self) -> ScheduledEventConfiguration: ...
    def wednesday(self) -> ScheduledEventConfiguration: ...
    def thursday(self) -> ScheduledEventConfiguration: ...
    def friday(self) -> ScheduledEventConfiguration: ...
    def saturday(self) -> ScheduledEventConfiguration: ...
    def sunday(self) -> ScheduledEventConfiguration: ...
    def weekday(self) -> ScheduledEventConfiguration: ...
    def weekend(self) -> ScheduledEventConfiguration: ...
    def zoned(self, zone: tzinfo | str) -> ScheduledEventConfiguration: ...
    def when(self, predicate: Predicate) -> ScheduledEventConfiguration: ...
    def prevent_overlapping(self, unique_identifier: str) -> ScheduledEventConfiguration: ...
    def assign_unique_identifier(self, unique_identifier: str) -> ScheduledEventConfiguration: ...
    def run_once_at_start(self) -> ScheduledEventConfiguration: ...
    def once(self) -> ScheduledEventConfiguration: ...


class ScheduleInterval(Protocol):
    """Frequency selection, the first step after scheduling a target."""

    def daily(self) -> ScheduledEventConfiguration: ...
    def daily_at_hour(self, hour: int) -> ScheduledEventConfiguration: ...
    def daily_at(self, hour: int, minute: int) -> ScheduledEventConfiguration: ...
    def hourly(self) -> ScheduledEventConfiguration: ...
    def hourly_at(self, minute: int) -> ScheduledEventConfiguration: ...
    def every_minute(self) -> ScheduledEventConfiguration: ...
    def every_five_minutes(self) -> ScheduledEventConfiguration: ...
    def every_ten_minutes(self) -> ScheduledEventConfiguration: ...
    def every_fifteen_minutes(self) -> ScheduledEventConfiguration: ...
    def every_thirty_minutes(self) -> ScheduledEventConfiguration: ...
    def weekly(self) -> ScheduledEventConfiguration: ...
    def monthly(self) -> ScheduledEventConfiguration: ...
    def cron(self, expression: str) -> ScheduledEventConfiguration: ...
    def every_second(self) -> ScheduledEventConfiguration: ...
    def every_five_seconds(self) -> ScheduledEventConfiguration: ...
    def every_ten_seconds(self) -> ScheduledEventConfiguration: ...
    def every_fifteen_seconds(self) -> ScheduledEventConfiguration: ...
    def every_thirty_seconds(self) -> ScheduledEventConfiguration: ...
    def every_seconds(self, seconds: int) -> ScheduledEventConfiguration: ...
    def every_interval(self, interval: timedelta) -> ScheduledEventConfiguration: ...


class ScheduledEvent:
    """A single schedule entry: recurrence, target, gate and lifecycle flags.

    Build instances with :meth:`with_action`, :meth:`with_invocable_type` or
    :meth:`with_invocable_and_params`; the driver passes its own
    ``try_unschedule`` as *unschedule* so ``once()`` entries can retire
    themselves.

    The entry does no locking of its own. A driver honouring
    :meth:`should_prevent_overlapping` must serialise invocations sharing
    :meth:`overlapping_unique_identifier`.
    """

    def __init__(
        self,
        *,
        action: Action | None = None,
        invocable_type: type | None = None,
        params: Sequence[Any] = (),
        scope_factory: ScopeFactory | None = None,
        unschedule: UnscheduleCallback | None = None,
        zone: tzinfo | str | None = None,
    ) -> None:
        if (action is None) == (invocable_type is None):
            raise ConfigurationError("ScheduledEvent needs exactly one of 'action' or 'invocable_type'")
        if invocable_type is not None:
            if not is_invocable_type(invocable_type):
                raise InvalidInvocableError(invocable_type)
            if scope_factory is None:
                raise ConfigurationError(
                    f"A scope factory is required to resolve {invocable_type.__qualname__}"
                )
        self._scheduled_action = ActionOrAsyncFunc(action) if action is not None else None
        self._invocable_type = invocable_type
        self._constructor_params: tuple[Any, ...] = tuple(params)
        self._scope_factory = scope_factory
        self._unschedule = unschedule

        self._expression: CronExpression | None = None
        self._interval: timedelta | None = None
        self._is_scheduled_from_interval = False
        self._zoned_time = ZonedTime(zone) if zone is not None else ZonedTime.as_utc()
        self._when_predicate: Predicate | None = None
        self._prevent_overlapping = False
        self._event_unique_id = str(uuid.uuid4())
        self._run_once_at_start = False
        self._run_once = False
        self._was_previously_run = False
        self._unschedule_requested = False
        self._execution_started = False

    # ------------------------------------------------------------------
    # Factories
    # ------------------------------------------------------------------

    @classmethod
    def with_action(
        cls,
        action: Action,
        *,
        unschedule: UnscheduleCallback | None = None,
        zone: tzinfo | str | None = None,
    ) -> ScheduledEvent:
        """Entry that runs *action* (sync, or returning an awaitable) inline."""
        return cls(action=action, unschedule=unschedule, zone=zone)

    @classmethod
    def with_invocable_type(
        cls,
        invocable_type: type,
        scope_factory: ScopeFactory,
        *,
        unschedule: UnscheduleCallback | None = None,
        zone: tzinfo | str | None = None,
    ) -> ScheduledEvent:
        """Entry that resolves *invocable_type* from *scope_factory* on every run."""
        return cls.with_invocable_and_params(
            invocable_type, (), scope_factory, unschedule=unschedule, zone=zone
        )

    @classmethod
    def with_invocable_and_params(
        cls,
        invocable_type: type,
        params: Sequence[Any],
        scope_factory: ScopeFactory,
        *,
        unschedule: UnscheduleCallback | None = None,
        zone: tzinfo | str | None = None,
    ) -> ScheduledEvent:
        """Like :meth:`with_invocable_type`, constructing the target with *params*."""
        return cls(
            invocable_type=invocable_type,
            params=params,
            scope_factory=scope_factory,
            unschedule=unschedule,
            zone=zone,
        )

    # ------------------------------------------------------------------
    # Runtime surface (driver only)
    # ------------------------------------------------------------------

    def is_due(self, utc_now: datetime) -> bool:
        """Return whether the entry's recurrence matches *utc_now*."""
        if self._expression is None:
            return False
        zoned_now = self._zoned_time.convert(utc_now)
        if self._is_scheduled_from_interval:
            return self._is_seconds_due(zoned_now) and self._expression.is_weekday_due(zoned_now)
        return self._expression.is_due(zoned_now)

    async def invoke(self, cancellation_token: CancellationToken | None = None) -> None:
        """Run the entry once.

        A false predicate skips the target but still counts as a run. Errors
        from the predicate, resolution or the target propagate and leave the
        lifecycle untouched, so a failed ``once()`` entry stays scheduled.
        """
        self._execution_started = True
        if await self._when_predicate_fails():
            logger.debug("scheduled_event.skipped", event_id=self._event_unique_id, reason="predicate")
        elif self._scheduled_action is not None:
            await self._scheduled_action.invoke()
        elif self._invocable_type is not None and self._scope_factory is not None:
            await self._invoke_resolved(self._invocable_type, self._scope_factory, cancellation_token)

        self._mark_as_executed_once()
        self._unschedule_if_warranted()

    def should_prevent_overlapping(self) -> bool:
        return self._prevent_overlapping

    def overlapping_unique_identifier(self) -> str:
        return self._event_unique_id

    def is_scheduled_cron_based_task(self) -> bool:
        return not self._is_scheduled_from_interval

    def should_run_once_at_start(self) -> bool:
        return self._run_once_at_start

    def invocable_type(self) -> type | None:
        return self._invocable_type

    @property
    def has_run_at_least_once(self) -> bool:
        return self._was_previously_run

    @property
    def zone(self) -> tzinfo:
        return self._zoned_time.zone

    def __repr__(self) -> str:
        target = self._invocable_type.__qualname__ if self._invocable_type else self._scheduled_action
        rule = f"every {self._interval}" if self._is_scheduled_from_interval else str(self._expression)
        return f"ScheduledEvent(id={self._event_unique_id!r}, target={target}, rule={rule!r})"

    # ------------------------------------------------------------------
    # ScheduleInterval
    # ------------------------------------------------------------------

    def daily(self) -> ScheduledEventConfiguration:
        return self._use_cron("00 00 * * *")

    def daily_at_hour(self, hour: int) -> ScheduledEventConfiguration:
        return self._use_cron(f"00 {hour} * * *")

    def daily_at(self, hour: int, minute: int) -> ScheduledEventConfiguration:
        return self._use_cron(f"{minute} {hour} * * *")

    def hourly(self) -> ScheduledEventConfiguration:
        return self._use_cron("00 * * * *")

    def hourly_at(self, minute: int) -> ScheduledEventConfiguration:
        return self._use_cron(f"{minute} * * * *")

    def every_minute(self) -> ScheduledEventConfiguration:
        return self._use_cron("* * * * *")

    def every_five_minutes(self) -> ScheduledEventConfiguration:
        return self._use_cron("*/5 * * * *")

    def every_ten_minutes(self) -> ScheduledEventConfiguration:
        return self._use_cron("*/10 * * * *")

    def every_fifteen_minutes(self) -> ScheduledEventConfiguration:
        return self._use_cron("*/15 * * * *")

    def every_thirty_minutes(self) -> ScheduledEventConfiguration:
        return self._use_cron("*/30 * * * *")

    def weekly(self) -> ScheduledEventConfiguration:
        return self._use_cron("00 00 * * 1")

    def monthly(self) -> ScheduledEventConfiguration:
        return self._use_cron("00 00 1 * *")

    def cron(self, expression: str) -> ScheduledEventConfiguration:
        return self._use_cron(expression)

    def every_second(self) -> ScheduledEventConfiguration:
        return self.every_interval(timedelta(seconds=1))

    def every_five_seconds(self) -> ScheduledEventConfiguration:
        return self.every_interval(timedelta(seconds=5))

    def every_ten_seconds(self) -> ScheduledEventConfiguration:
        return self.every_interval(timedelta(seconds=10))

    def every_fifteen_seconds(self) -> ScheduledEventConfiguration:
        return self.every_interval(timedelta(seconds=15))

    def every_thirty_seconds(self) -> ScheduledEventConfiguration:
        return self.every_interval(timedelta(seconds=30))

    def every_seconds(self, seconds: int) -> ScheduledEventConfiguration:
        return self.every_interval(timedelta(seconds=seconds))

    def every_interval(self, interval: timedelta) -> ScheduledEventConfiguration:
        """Repeat every *interval* within each minute (whole seconds, 0-59).

        Periods that do not divide 60 still fire at second 0 of every minute.
        A zero period fires only at second 0.
        """
        seconds = interval.total_seconds()
        if seconds != int(seconds) or not 0 <= seconds < _ONE_MINUTE_AS_SECONDS:
            raise InvalidIntervalError(
                f"Interval must be a whole number of seconds between 0 and 59, got {interval}",
                detail={"seconds": seconds},
            )
        self._interval = interval
        self._is_scheduled_from_interval = True
        self._expression = CronExpression("* * * * *")
        return self

    # ------------------------------------------------------------------
    # ScheduledEventConfiguration
    # ------------------------------------------------------------------

    def monday(self) -> ScheduledEventConfiguration:
        return self._append_weekday(MONDAY)

    def tuesday(self) -> ScheduledEventConfiguration:
        return self._append_weekday(TUESDAY)

    def wednesday(self) -> ScheduledEventConfiguration:
        return self._append_weekday(WEDNESDAY)

    def thursday(self) -> ScheduledEventConfiguration:
        return self._append_weekday(THURSDAY)

    def friday(self) -> ScheduledEventConfiguration:
        return self._append_weekday(FRIDAY)

    def saturday(self) -> ScheduledEventConfiguration:
        return self._append_weekday(SATURDAY)

    def sunday(self) -> ScheduledEventConfiguration:
        return self._append_weekday(SUNDAY)

    def weekday(self) -> ScheduledEventConfiguration:
        return self.monday().tuesday().wednesday().thursday().friday()

    def weekend(self) -> ScheduledEventConfiguration:
        return self.saturday().sunday()

    def zoned(self, zone: tzinfo | str) -> ScheduledEventConfiguration:
        self._zoned_time = ZonedTime(zone)
        return self

    def when(self, predicate: Predicate) -> ScheduledEventConfiguration:
        self._when_predicate = predicate
        return self

    def prevent_overlapping(self, unique_identifier: str) -> ScheduledEventConfiguration:
        self.assign_unique_identifier(unique_identifier)
        self._prevent_overlapping = True
        return self

    def assign_unique_identifier(self, unique_identifier: str) -> ScheduledEventConfiguration:
        if not unique_identifier:
            raise ConfigurationError("unique identifier must not be empty")
        if self._execution_started:
            raise ConfigurationError(
                f"Cannot change identifier of {self._event_unique_id!r} after it has started running"
            )
        self._event_unique_id = unique_identifier
        return self

    def run_once_at_start(self) -> ScheduledEventConfiguration:
        self._run_once_at_start = True
        return self

    def once(self) -> ScheduledEventConfiguration:
        self._run_once = True
        return self

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _use_cron(self, expression: str) -> ScheduledEventConfiguration:
        self._expression = CronExpression(expression)
        self._interval = None
        self._is_scheduled_from_interval = False
        return self

    def _append_weekday(self, weekday: int) -> ScheduledEventConfiguration:
        if self._expression is None:
            raise ConfigurationError("Choose a frequency before restricting weekdays")
        self._expression.append_weekday(weekday)
        return self

    def _is_seconds_due(self, zoned_now: datetime) -> bool:
        if self._interval is None:
            return False
        seconds = int(self._interval.total_seconds())
        if zoned_now.second == 0:
            return True
        return seconds != 0 and zoned_now.second % seconds == 0

    async def _when_predicate_fails(self) -> bool:
        if self._when_predicate is None:
            return False
        result = self._when_predicate()
        if inspect.isawaitable(result):
            result = await result
        return not result

    async def _invoke_resolved(
        self,
        invocable_type: type,
        scope_factory: ScopeFactory,
        cancellation_token: CancellationToken | None,
    ) -> None:
        async with scope_factory.create_scope() as scope:
            invocable = scope.resolve(invocable_type, self._constructor_params)
            if accepts_cancellation(invocable):
                invocable.cancellation_token = cancellation_token
            await invocable.invoke()

    def _mark_as_executed_once(self) -> None:
        self._was_previously_run = True

    def _unschedule_if_warranted(self) -> None:
        if not (self._run_once and self._was_previously_run) or self._unschedule_requested:
            return
        self._unschedule_requested = True
        if self._unschedule is not None:
            self._unschedule(self._event_unique_id)
        logger.info("scheduled_event.unscheduled", event_id=self._event_unique_id, reason="once")


__all__ = [
    "Predicate",
    "ScheduleInterval",
    "ScheduledEvent",
    "ScheduledEventConfiguration",
    "UnscheduleCallback",
]
