"""Config settings – 12-factor env-based configuration."""
from schedcore.config.settings.base import SchedulerSettings, Settings
from schedcore.config.settings.loaders import DotenvSettingsLoader, EnvSettingsLoader, SettingsLoader

__all__ = ["DotenvSettingsLoader", "EnvSettingsLoader", "SchedulerSettings", "Settings", "SettingsLoader"]
