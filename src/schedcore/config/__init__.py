"""Config – 12-factor scheduler settings and loaders."""

from schedcore.config.settings import (
    DotenvSettingsLoader,
    EnvSettingsLoader,
    SchedulerSettings,
    Settings,
    SettingsLoader,
)
from schedcore.config.validation import (
    ConfigError,
    InvalidSettingValueError,
    MissingRequiredSettingError,
)

__all__ = [
    "ConfigError",
    "DotenvSettingsLoader",
    "EnvSettingsLoader",
    "InvalidSettingValueError",
    "MissingRequiredSettingError",
    "SchedulerSettings",
    "Settings",
    "SettingsLoader",
]
