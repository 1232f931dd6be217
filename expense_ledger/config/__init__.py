"""Configuration package."""

from expense_ledger.config.settings import (
    ApiSettings,
    AppSettings,
    ClientSettings,
    Settings,
    StorageSettings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "ApiSettings",
    "AppSettings",
    "ClientSettings",
    "Settings",
    "StorageSettings",
    "get_settings",
    "validate_all_settings",
]
