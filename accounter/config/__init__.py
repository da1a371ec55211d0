"""Configuration package."""

from accounter.config.settings import (
    AppSettings,
    RunConfig,
    Settings,
    StorageSettings,
    get_settings,
)

__all__ = [
    "AppSettings",
    "RunConfig",
    "Settings",
    "StorageSettings",
    "get_settings",
]
