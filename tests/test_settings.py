"""Tests for environment-driven configuration."""

import pytest
from pydantic import ValidationError

from expense_ledger.config import (
    ApiSettings,
    AppSettings,
    ClientSettings,
    StorageSettings,
    get_settings,
    validate_all_settings,
)


class TestDefaults:
    """The service runs with no environment at all."""

    def test_storage_defaults(self):
        """Test the storage defaults."""
        settings = StorageSettings()
        assert settings.backend == "sqlite"
        assert settings.database_path == "expenses.db"

    def test_api_defaults(self):
        """Test the HTTP defaults."""
        settings = ApiSettings()
        assert settings.port == 3000
        assert settings.cors_origins_list == ["http://localhost:5173"]

    def test_client_defaults(self):
        """Test the client retry defaults."""
        settings = ClientSettings()
        assert settings.base_url == "http://localhost:3000"
        assert settings.max_retries == 3
        assert settings.backoff_base_seconds == 2.0

    def test_app_defaults(self):
        """Test the default log level."""
        assert AppSettings().log_level == "INFO"


class TestEnvironmentOverrides:
    """Environment variables override defaults."""

    def test_prefixed_variables(self, monkeypatch):
        """Test that each section reads its own prefix."""
        monkeypatch.setenv("LEDGER_STORAGE_BACKEND", "memory")
        monkeypatch.setenv("LEDGER_API_PORT", "8080")
        monkeypatch.setenv("LEDGER_CLIENT_MAX_RETRIES", "5")
        settings = get_settings()
        assert settings.storage.backend == "memory"
        assert settings.api.port == 8080
        assert settings.client.max_retries == 5

    def test_cors_origins_list(self, monkeypatch):
        """Test that origins are split and trimmed."""
        monkeypatch.setenv("LEDGER_API_CORS_ORIGINS", " https://a.example.com ,, https://b.example.com ")
        assert ApiSettings().cors_origins_list == ["https://a.example.com", "https://b.example.com"]

    def test_base_url_trailing_slash(self):
        """Test that a trailing slash is removed from the base URL."""
        assert ClientSettings(base_url="https://ledger.example.com/").base_url == "https://ledger.example.com"

    def test_log_level_normalized(self, monkeypatch):
        """Test that the log level is upper-cased."""
        monkeypatch.setenv("LOG_LEVEL", "debug")
        assert AppSettings().log_level == "DEBUG"


class TestValidation:
    """Invalid values are refused."""

    def test_unknown_backend(self):
        """Test that an unknown backend is rejected."""
        with pytest.raises(ValidationError):
            StorageSettings(backend="postgres")

    def test_unknown_log_level(self):
        """Test that an unknown log level is rejected."""
        with pytest.raises(ValidationError):
            AppSettings(log_level="LOUD")

    def test_port_range(self):
        """Test that the port must be in range."""
        with pytest.raises(ValidationError):
            ApiSettings(port=0)

    def test_validate_all_settings(self):
        """Test that every section loads with defaults."""
        results = validate_all_settings()
        assert results == {"storage": True, "api": True, "client": True, "app": True}

    def test_validate_all_settings_reports_errors(self, monkeypatch):
        """Test that a broken section is reported with its error."""
        monkeypatch.setenv("LEDGER_CLIENT_MAX_RETRIES", "-1")
        results = validate_all_settings()
        assert results["client"] is False
        assert "client_error" in results
        assert results["storage"] is True


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
