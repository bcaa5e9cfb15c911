"""Unit tests for configuration module."""

import os

import pytest

from stratus.config import Config, get_config, reset_config
from stratus.config_file import save_config_file


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove STRATUS_ variables other than the config dir."""
    for key in list(os.environ.keys()):
        if key.startswith("STRATUS_") and key != "STRATUS_CONFIG_DIR":
            monkeypatch.delenv(key, raising=False)


class TestConfig:
    """Test Config dataclass."""

    def test_config_defaults(self) -> None:
        """Test that Config has sensible defaults."""
        config = Config()

        assert config.load_timeout == 30.0
        assert config.max_search_results == 500
        assert config.show_all is True
        assert config.hidden_subscriptions == []
        assert config.log_level == "INFO"
        assert config.log_file is None
        assert config.enable_credential_scrubbing is True

    def test_config_from_env_empty(self, clean_env: None) -> None:
        """Test Config.from_env() with no environment variables."""
        config = Config.from_env()

        assert config.load_timeout == 30.0
        assert config.max_search_results == 500
        assert config.show_all is True
        assert config.log_level == "INFO"

    def test_config_from_env_with_values(
        self, clean_env: None, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test Config.from_env() with environment variables set."""
        monkeypatch.setenv("STRATUS_LOAD_TIMEOUT", "12.5")
        monkeypatch.setenv("STRATUS_MAX_SEARCH_RESULTS", "50")
        monkeypatch.setenv("STRATUS_LOG_LEVEL", "debug")
        monkeypatch.setenv("STRATUS_SHOW_ALL", "FALSE")
        monkeypatch.setenv("STRATUS_HIDDEN_SUBSCRIPTIONS", "sub-1, sub-2,,")
        monkeypatch.setenv("STRATUS_LOG_FILE", "/tmp/stratus.log")
        monkeypatch.setenv("STRATUS_ENABLE_CREDENTIAL_SCRUBBING", "false")

        config = Config.from_env()

        assert config.load_timeout == 12.5
        assert config.max_search_results == 50
        assert config.log_level == "DEBUG"  # Uppercased
        assert config.show_all is False
        assert config.hidden_subscriptions == ["sub-1", "sub-2"]
        assert config.log_file == "/tmp/stratus.log"
        assert config.enable_credential_scrubbing is False

    def test_config_file_layered_under_env(
        self, clean_env: None, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test the preferences file supplies defaults and env vars win."""
        save_config_file(
            {"explorer": {"show_all": False, "hidden_subscriptions": ["sub-9"]}}
        )

        config = Config.from_env()
        assert config.show_all is False
        assert config.hidden_subscriptions == ["sub-9"]

        monkeypatch.setenv("STRATUS_SHOW_ALL", "true")
        config = Config.from_env()
        assert config.show_all is True
        assert config.hidden_subscriptions == ["sub-9"]

    def test_malformed_explorer_section(self, clean_env: None) -> None:
        """Test a non-object explorer section is ignored."""
        save_config_file({"explorer": "oops"})

        config = Config.from_env()

        assert config.show_all is True
        assert config.hidden_subscriptions == []


class TestHiddenSubscriptions:
    """Test hidden subscription helpers."""

    def test_is_hidden_case_insensitive(self) -> None:
        """Test subscription IDs compare case-insensitively."""
        config = Config(hidden_subscriptions=["ABC-123"])
        assert config.is_subscription_hidden("abc-123") is True
        assert config.is_subscription_hidden("other") is False

    def test_toggle(self) -> None:
        """Test toggling hides then unhides."""
        config = Config()

        assert config.toggle_subscription_hidden("sub-1") is True
        assert config.hidden_subscriptions == ["sub-1"]

        assert config.toggle_subscription_hidden("SUB-1") is False
        assert config.hidden_subscriptions == []


class TestGetConfig:
    """Test get_config function."""

    def setup_method(self) -> None:
        """Reset config before each test."""
        reset_config()

    def test_get_config_returns_config(self) -> None:
        """Test that get_config returns a Config instance."""
        config = get_config()
        assert isinstance(config, Config)

    def test_get_config_returns_same_instance(self) -> None:
        """Test that get_config returns the same instance (singleton)."""
        config1 = get_config()
        config2 = get_config()
        assert config1 is config2

    def test_get_config_loads_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that get_config loads from environment."""
        reset_config()
        monkeypatch.setenv("STRATUS_MAX_SEARCH_RESULTS", "90")

        config = get_config()

        assert config.max_search_results == 90


class TestResetConfig:
    """Test reset_config function."""

    def test_reset_config_clears_singleton(self) -> None:
        """Test that reset_config clears the singleton instance."""
        config1 = get_config()
        reset_config()
        config2 = get_config()

        # Should be different instances after reset
        assert config1 is not config2
