"""Configuration package."""

from bookd.config.settings import (
    AppSettings,
    BackupSettings,
    GoogleMapsSettings,
    MileageSettings,
    Settings,
    TaxSettings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "BackupSettings",
    "GoogleMapsSettings",
    "MileageSettings",
    "Settings",
    "TaxSettings",
    "get_settings",
    "validate_all_settings",
]
