"""Scheduling – configuration-time error types."""
from __future__ import annotations

from typing import Any

from schedcore.kernel.errors import ConfigurationError


class MalformedCronExpressionError(ConfigurationError):
    """A cron string does not parse into valid five-field syntax."""

    default_code = "malformed_cron_expression"

    def __init__(self, expression: str, reason: str, **kwargs: Any) -> None:
        super().__init__(f"Malformed cron expression {expression!r}: {reason}", **kwargs)
        self.expression = expression
        self.reason = reason


class InvalidInvocableError(ConfigurationError):
    """A type scheduled for resolution does not implement ``invoke()``."""

    default_code = "invalid_invocable"

    def __init__(self, invocable_type: Any, **kwargs: Any) -> None:
        name = getattr(invocable_type, "__qualname__", repr(invocable_type))
        super().__init__(
            f"{name} must be a class defining an 'invoke' method to be scheduled",
            **kwargs,
        )
        self.invocable_type = invocable_type


class InvalidIntervalError(ConfigurationError):
    """A sub-minute interval is not a whole number of seconds in 0..59."""

    default_code = "invalid_interval"


class InvalidTimeZoneError(ConfigurationError):
    """A time zone name could not be found in the zone database."""

    default_code = "invalid_time_zone"


__all__ = [
    "InvalidIntervalError",
    "InvalidInvocableError",
    "InvalidTimeZoneError",
    "MalformedCronExpressionError",
]
