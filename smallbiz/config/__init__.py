"""Configuration package."""

from smallbiz.config.settings import (
    AppSettings,
    LicenseSettings,
    Settings,
    StorageSettings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "LicenseSettings",
    "Settings",
    "StorageSettings",
    "get_settings",
    "validate_all_settings",
]
