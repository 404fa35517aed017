"""Tests for configuration."""

import pytest
from pydantic import ValidationError

from home_budget.config import (
    ApiSettings,
    AppSettings,
    get_settings,
    resolve_page_size,
    validate_all_settings,
)


class TestSettings:
    """Tests for environment-driven settings."""

    def test_defaults(self):
        """Out of the box: 15 per page, 3s undo, 10% tithe."""
        app = get_settings().app
        assert app.page_size == 15
        assert app.undo_grace_seconds == 3.0
        assert app.tithe_rate == 0.1

    def test_api_env_prefix(self, monkeypatch):
        """API settings read BUDGET_API_* variables."""
        monkeypatch.setenv("BUDGET_API_BASE_URL", "https://budget.example/api/")
        monkeypatch.setenv("BUDGET_API_RETRY_ATTEMPTS", "3")
        api = get_settings().api
        assert api.base_url == "https://budget.example/api"
        assert api.retry_attempts == 3

    def test_page_size_from_env(self, monkeypatch):
        """An explicit page size wins over the configured one."""
        monkeypatch.setenv("PAGE_SIZE", "25")
        assert resolve_page_size() == 25
        assert resolve_page_size(5) == 5

    def test_log_level_normalized(self):
        """Log levels are lower-cased and checked."""
        assert AppSettings(log_level=" DEBUG ").log_level == "debug"
        with pytest.raises(ValidationError):
            AppSettings(log_level="loud")

    def test_timeout_bounds(self):
        """Timeouts must be positive."""
        with pytest.raises(ValidationError):
            ApiSettings(timeout_seconds=0)

    def test_validate_all_settings(self, monkeypatch):
        """Broken sections are reported, not raised."""
        assert validate_all_settings() == {"api": True, "storage": True, "app": True}

        monkeypatch.setenv("PAGE_SIZE", "0")
        results = validate_all_settings()
        assert results["app"] is False
        assert "app_error" in results
