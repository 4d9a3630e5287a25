"""Config settings – Settings base class and SchedulerSettings."""
from __future__ import annotations

import dataclasses
from typing import ClassVar
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from schedcore.config.validation import InvalidSettingValueError


@dataclasses.dataclass
class Settings:
    """Base class for 12-factor settings."""

    _prefix: ClassVar[str] = ""

    def __post_init__(self) -> None:
        self._validate()

    def _validate(self) -> None:
        """Override to add cross-field validation."""


@dataclasses.dataclass
class SchedulerSettings(Settings):
    """Tunables for :class:`~schedcore.scheduling.scheduler.Scheduler`.

    Read from ``SCHEDCORE_*`` environment variables by
    :class:`~schedcore.config.settings.loaders.EnvSettingsLoader`.
    """

    _prefix: ClassVar[str] = "SCHEDCORE"

    tick_interval_seconds: float = 1.0
    overlap_lock_timeout_minutes: int = 1440
    default_timezone: str = "UTC"

    def _validate(self) -> None:
        if self.tick_interval_seconds <= 0:
            raise InvalidSettingValueError(
                "tick_interval_seconds", self.tick_interval_seconds, "must be positive"
            )
        if self.overlap_lock_timeout_minutes <= 0:
            raise InvalidSettingValueError(
                "overlap_lock_timeout_minutes", self.overlap_lock_timeout_minutes, "must be positive"
            )
        try:
            ZoneInfo(self.default_timezone)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise InvalidSettingValueError(
                "default_timezone", self.default_timezone, "unknown time zone"
            ) from exc


__all__ = ["SchedulerSettings", "Settings"]
