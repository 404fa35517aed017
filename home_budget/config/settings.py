"""
Configuration Management for Home Budget Sync

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here and read once at
startup. There is no hot-reload; call get_settings.cache_clear() in tests.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_USER_ID = "11111111-1111-1111-1111-111111111111"


class ApiSettings(BaseSettings):
    """Remote budget API configuration."""

    model_config = SettingsConfigDict(
        env_prefix="BUDGET_API_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    base_url: str = Field(
        default="http://localhost:3000/api",
        description="Absolute URL of the budget API"
    )
    dev_proxy_url: str = Field(
        default="http://localhost:5173/api",
        description="Dev server proxy used instead of base_url when enabled"
    )
    use_dev_proxy: bool = Field(
        default=False,
        description="Send requests to the dev proxy instead of base_url"
    )
    timeout_seconds: float = Field(
        default=15.0,
        gt=0,
        le=300,
        description="Per-request timeout; the call is aborted after this"
    )
    user_id: str = Field(
        default=DEFAULT_USER_ID,
        description="Value of the x-user-id header"
    )
    retry_attempts: int = Field(
        default=1,
        ge=1,
        le=10,
        description="Attempts for idempotent GETs on network failure (1 = no retry)"
    )
    retry_max_wait_seconds: float = Field(
        default=10.0,
        ge=0,
        description="Upper bound of the exponential wait between retries"
    )

    @field_validator('base_url')
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @property
    def effective_base_url(self) -> str:
        """The base path requests are sent to."""
        if self.use_dev_proxy:
            return self.dev_proxy_url.rstrip("/")
        return self.base_url


class StorageSettings(BaseSettings):
    """Local persisted key/value storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="BUDGET_STORAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    path: Path = Field(
        default=Path.home() / ".home_budget" / "store.json",
        description="JSON file holding persisted client state"
    )


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    app_name: str = Field(
        default="Home Budget",
        description="Application display name"
    )
    app_version: str = Field(
        default="1.0",
        description="Application version shown to users"
    )
    dev_mode: bool = Field(
        default=False,
        description="Enable development mode (console log output)"
    )
    log_level: str = Field(
        default="info",
        description="Minimum log level"
    )

    # Budget defaults
    default_tithe_percentage: float = Field(
        default=10.0,
        ge=0.0,
        le=100.0,
        description="Share of income set aside as tithe, in percent"
    )
    default_currency: str = Field(
        default="ILS",
        min_length=3,
        max_length=3,
        description="ISO currency code"
    )

    # List behaviour
    page_size: int = Field(
        default=15,
        ge=1,
        le=100,
        description="Records requested per page"
    )
    undo_grace_seconds: float = Field(
        default=3.0,
        ge=0.0,
        description="How long a delete can be undone"
    )
    activity_feed_size: int = Field(
        default=50,
        ge=1,
        description="Notifications kept in the in-memory activity feed"
    )

    # Validation thresholds
    future_date_tolerance_days: int = Field(
        default=7,
        ge=0,
        description="How many days in the future a record date can be before warning"
    )

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.strip().lower()
        if level not in {"debug", "info", "warning", "error", "critical"}:
            raise ValueError(f"Unknown log level: {v}")
        return level

    @property
    def tithe_rate(self) -> float:
        """Tithe percentage as a fraction."""
        return self.default_tithe_percentage / 100.0


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def api(self) -> ApiSettings:
        return ApiSettings()

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, object]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, plus
    {setting_name}_error entries for failures. Useful for startup checks.
    """
    results: dict[str, object] = {}
    settings = get_settings()

    for name in ("api", "storage", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results


def resolve_page_size(page_size: Optional[int] = None) -> int:
    """Explicit page size, or the configured default."""
    if page_size is not None:
        return page_size
    return get_settings().app.page_size
