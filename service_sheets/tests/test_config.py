"""
Unit tests for service configuration.
"""

import pytest
from pydantic import ValidationError as SettingsValidationError

from shared.config import DEFAULT_CACHE_TTL_SECONDS, get_config


class TestServiceConfig:
    """Test cases for ServiceConfig."""

    def test_defaults(self, monkeypatch):
        """Test the documented defaults."""
        monkeypatch.delenv("SHEETS_CACHE_TTL_SECONDS", raising=False)
        monkeypatch.delenv("SHEETS_PORT", raising=False)

        config = get_config("sheets")

        assert config.service_name == "sheets"
        assert config.cache_ttl_seconds == DEFAULT_CACHE_TTL_SECONDS == 420
        assert config.port == 3001

    def test_environment_overrides(self, monkeypatch):
        """Test that SHEETS_-prefixed variables are read."""
        monkeypatch.setenv("SHEETS_CACHE_TTL_SECONDS", "30")
        monkeypatch.setenv("SHEETS_USE_WHITELIST", "true")
        monkeypatch.setenv("SHEETS_WHITELIST_ORIGIN", "https://a.example,https://b.example")

        config = get_config("sheets")

        assert config.cache_ttl_seconds == 30
        assert config.use_whitelist is True
        assert config.whitelist_origins == ["https://a.example", "https://b.example"]

    def test_ttl_must_be_positive(self):
        """Test that a non-positive TTL is rejected."""
        with pytest.raises(SettingsValidationError):
            get_config("sheets", cache_ttl_seconds=0)

    def test_google_scopes(self):
        """Test that the service mode becomes an OAuth scope."""
        config = get_config("sheets", google_service_mode="spreadsheets")

        assert config.google_scopes == ["https://www.googleapis.com/auth/spreadsheets"]

    def test_empty_whitelist(self):
        """Test that an unset whitelist parses to no origins."""
        assert get_config("sheets", whitelist_origin="").whitelist_origins == []
