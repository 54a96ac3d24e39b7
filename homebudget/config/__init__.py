"""Configuration package."""

from homebudget.config.settings import (
    AppSettings,
    PredictionSettings,
    Settings,
    StorageSettings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "PredictionSettings",
    "Settings",
    "StorageSettings",
    "get_settings",
    "validate_all_settings",
]
