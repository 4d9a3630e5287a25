"""Scheduling – five-field cron expressions backed by :mod:`croniter`.

Fields are ``minute hour day-of-month month weekday``; weekdays are numbered
0 (Sunday) to 6 (Saturday), with 7 accepted as an alias for Sunday. Day of
month and weekday must both match when both are restricted.

Weekdays appended through the fluent builder are folded into the weekday
field text, so ``"00 00 * * *"`` plus Monday and Friday is matched as
``"00 00 * * 1,5"``.
"""
from __future__ import annotations

from datetime import datetime

from croniter import croniter

from schedcore.scheduling.errors import MalformedCronExpressionError

_FIELD_COUNT = 5
_ANY_WEEKDAY = "*"

SUNDAY, MONDAY, TUESDAY, WEDNESDAY, THURSDAY, FRIDAY, SATURDAY = range(7)


class CronExpression:
    """Validated five-field cron expression.

    Validation happens eagerly, so an invalid string fails at configuration
    time with :class:`MalformedCronExpressionError` rather than on a tick.

    Example::

        expr = CronExpression("*/5 9-17 * * 1-5")
        expr.is_due(datetime(2024, 6, 3, 9, 15))  # True (a Monday)
    """

    def __init__(self, expression: str) -> None:
        fields = expression.split()
        if len(fields) != _FIELD_COUNT:
            raise MalformedCronExpressionError(
                expression, f"expected {_FIELD_COUNT} fields, got {len(fields)}"
            )
        if not croniter.is_valid(" ".join(fields)):
            raise MalformedCronExpressionError(expression, "rejected by croniter")
        self._expression = expression
        self._fields = fields
        self._appended_weekdays: set[int] = set()

    def __str__(self) -> str:
        return " ".join([*self._fields[:4], self._weekday_text()])

    def __repr__(self) -> str:
        return f"CronExpression({str(self)!r})"

    def append_weekday(self, weekday: int) -> CronExpression:
        """Allow *weekday* (0 = Sunday) in addition to any already-selected days.

        The first append on a ``*`` weekday field turns it into an explicit
        set; appends always accumulate.
        """
        if not SUNDAY <= weekday <= 7:
            raise MalformedCronExpressionError(str(self), f"weekday {weekday} outside 0-7")
        self._appended_weekdays.add(weekday % 7)
        return self

    def is_due(self, when: datetime) -> bool:
        """Return whether *when* falls in a minute selected by the expression.

        *when* is read as wall-clock time; seconds and any tzinfo are ignored.
        """
        return croniter.match(str(self), _wall_clock_minute(when), day_or=False)

    def is_weekday_due(self, when: datetime) -> bool:
        return croniter.match(f"* * * * {self._weekday_text()}", _wall_clock_minute(when))

    def _weekday_text(self) -> str:
        text = self._fields[4]
        if not self._appended_weekdays:
            return text
        days = ",".join(str(d) for d in sorted(self._appended_weekdays))
        if text == _ANY_WEEKDAY:
            return days
        return f"{text},{days}"


def _wall_clock_minute(when: datetime) -> datetime:
    return when.replace(second=0, microsecond=0, tzinfo=None)


def cron_weekday(when: datetime) -> int:
    """Return the cron weekday number (0 = Sunday) of *when*."""
    return (when.weekday() + 1) % 7


__all__ = [
    "FRIDAY",
    "MONDAY",
    "SATURDAY",
    "SUNDAY",
    "THURSDAY",
    "TUESDAY",
    "WEDNESDAY",
    "CronExpression",
    "cron_weekday",
]
