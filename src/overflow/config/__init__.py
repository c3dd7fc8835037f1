"""Configuration – 12-factor env-based settings."""
from overflow.config.errors import ConfigError, InvalidSettingValueError, MissingRequiredSettingError
from overflow.config.loaders import EnvSettingsLoader, SettingsLoader
from overflow.config.settings import OverflowSettings, Settings

__all__ = [
    "ConfigError",
    "EnvSettingsLoader",
    "InvalidSettingValueError",
    "MissingRequiredSettingError",
    "OverflowSettings",
    "Settings",
    "SettingsLoader",
]
