"""Scheduling – cron/interval schedule entries and the in-process driver."""
from schedcore.scheduling.cron import CronExpression
from schedcore.scheduling.errors import (
    InvalidIntervalError,
    InvalidInvocableError,
    InvalidTimeZoneError,
    MalformedCronExpressionError,
)
from schedcore.scheduling.event import (
    ScheduledEvent,
    ScheduledEventConfiguration,
    ScheduleInterval,
)
from schedcore.scheduling.invocable import (
    ActionOrAsyncFunc,
    CancellableInvocable,
    CancellationToken,
    Invocable,
)
from schedcore.scheduling.mutex import InMemoryMutex, Mutex
from schedcore.scheduling.resolution import InvocableRegistry, ResolutionScope, ScopeFactory
from schedcore.scheduling.scheduler import Scheduler
from schedcore.scheduling.zoned import ZonedTime

__all__ = [
    "ActionOrAsyncFunc",
    "CancellableInvocable",
    "CancellationToken",
    "CronExpression",
    "InMemoryMutex",
    "InvalidIntervalError",
    "InvalidInvocableError",
    "InvalidTimeZoneError",
    "Invocable",
    "InvocableRegistry",
    "MalformedCronExpressionError",
    "Mutex",
    "ResolutionScope",
    "ScheduleInterval",
    "ScheduledEvent",
    "ScheduledEventConfiguration",
    "Scheduler",
    "ScopeFactory",
    "ZonedTime",
]
