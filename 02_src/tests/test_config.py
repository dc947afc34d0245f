"""Tests for configuration."""

from pathlib import Path

import pytest

from transcript_replay.config import (
    DEFAULT_COMPATIBILITY_DATE,
    DEFAULT_LOG_PATH,
    DEFAULT_SOURCE_API_VERSION,
    DEFAULT_TARGET_API_URL,
    PROJECT_ROOT,
    Settings,
    resolve_log_path,
)
from transcript_replay.exceptions import ConfigurationError


class TestSettingsFromEnv:
    """Tests for Settings.from_env()."""

    def test_defaults_when_env_empty(self):
        """Test that optional values fall back to defaults."""
        settings = Settings.from_env({})

        assert settings.source_api_version == DEFAULT_SOURCE_API_VERSION
        assert settings.target_api_url == DEFAULT_TARGET_API_URL
        assert settings.target_compatibility_date == DEFAULT_COMPATIBILITY_DATE
        assert settings.target_api_key is None

    def test_reads_values(self):
        """Test that environment variables are picked up."""
        settings = Settings.from_env(
            {
                "SALESFORCE_CLIENT_ID": "id",
                "SALESFORCE_CLIENT_SECRET": "secret",
                "SALESFORCE_OAUTH_URL": "https://login.test/token",
                "SALESFORCE_API_VERSION": "v60.0",
                "SIERRA_API_URL": "https://target.test/",
                "SIERRA_API_KEY": "key",
                "SIERRA_API_TOKEN": "token",
            }
        )

        assert settings.source_client_id == "id"
        assert settings.source_api_version == "v60.0"
        assert settings.target_api_url == "https://target.test"
        assert settings.missing_source() == []
        assert settings.missing_target() == []

    def test_reads_process_environment(self, monkeypatch):
        """Test that os.environ is used when no mapping is given."""
        monkeypatch.setenv("SIERRA_API_KEY", "from-env")
        assert Settings.from_env().target_api_key == "from-env"


class TestSettingsValidation:
    """Tests for required-setting checks."""

    def test_require_target_lists_all_missing(self):
        """Test that every missing target variable is named."""
        with pytest.raises(ConfigurationError) as exc_info:
            Settings().require_target()

        assert exc_info.value.missing == ["SIERRA_API_KEY", "SIERRA_API_TOKEN"]
        assert "SIERRA_API_KEY" in str(exc_info.value)

    def test_require_source_lists_all_missing(self):
        """Test that every missing source variable is named."""
        with pytest.raises(ConfigurationError) as exc_info:
            Settings(source_client_id="id").require_source()

        assert exc_info.value.missing == ["SALESFORCE_CLIENT_SECRET", "SALESFORCE_OAUTH_URL"]

    def test_require_passes_when_configured(self, settings):
        """Test that complete settings validate."""
        settings.require_source()
        settings.require_target()


class TestResolveLogPath:
    """Tests for resolve_log_path()."""

    def test_default(self):
        assert resolve_log_path(None) == DEFAULT_LOG_PATH

    def test_relative_is_anchored_at_project_root(self):
        assert resolve_log_path("logs/x.log") == PROJECT_ROOT / "logs/x.log"

    def test_absolute_kept(self, tmp_path):
        target = tmp_path / "x.log"
        assert resolve_log_path(str(target)) == Path(target)
