"""Configuration package."""

from home_budget.config.settings import (
    DEFAULT_USER_ID,
    ApiSettings,
    AppSettings,
    Settings,
    StorageSettings,
    get_settings,
    resolve_page_size,
    validate_all_settings,
)

__all__ = [
    "DEFAULT_USER_ID",
    "ApiSettings",
    "AppSettings",
    "Settings",
    "StorageSettings",
    "get_settings",
    "resolve_page_size",
    "validate_all_settings",
]
