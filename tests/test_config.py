"""Tests for configuration repository module."""

import os
from unittest.mock import patch

import pytest

from multi_llm_panel.config import (
    AppConfig,
    get_config,
    is_config_initialized,
    load_config_from_env,
    reset_config,
    set_config,
)


@pytest.fixture(autouse=True)
def reset_config_state():
    """Reset configuration state before each test."""
    reset_config()
    yield
    reset_config()


class TestAppConfig:
    """Tests for AppConfig dataclass."""

    def test_appconfig_defaults(self):
        """Test that AppConfig has correct default values."""
        config = AppConfig()
        assert config.openai_api_key is None
        assert config.cohere_api_key is None
        assert config.max_tokens == 1000
        assert config.temperature == 0.7
        assert config.request_timeout_seconds == 60.0
        assert config.initial_session_count == 2
        assert config.credentials_path is None

    def test_api_keys_skips_blank_values(self):
        """Only non-empty keys are reported, keyed by provider id."""
        config = AppConfig(openai_api_key="sk-1", grok_api_key="  ", google_api_key="g")
        assert config.api_keys() == {"openai": "sk-1", "google": "g"}

    def test_appconfig_validation_defaults(self):
        """Default configuration has no issues."""
        assert AppConfig().validate() == []

    def test_appconfig_validation_invalid_values(self):
        """Test validation catches out-of-range values."""
        config = AppConfig(
            max_tokens=0,
            temperature=3.0,
            request_timeout_seconds=-1,
            initial_session_count=9,
        )
        issues = config.validate()
        assert any("LLM_MAX_TOKENS" in issue for issue in issues)
        assert any("LLM_TEMPERATURE" in issue for issue in issues)
        assert any("LLM_REQUEST_TIMEOUT_SECONDS" in issue for issue in issues)
        assert any("MULTI_LLM_PANEL_INITIAL_SESSIONS" in issue for issue in issues)


class TestConfigRepository:
    """Tests for configuration repository functions."""

    def test_is_config_initialized_before_set(self):
        """Test that configuration is not initialized before set_config()."""
        assert not is_config_initialized()

    def test_set_config_stores_instance(self):
        """Test that set_config() stores the configuration instance."""
        config = AppConfig(openai_api_key="test-key")
        set_config(config)
        retrieved = get_config()
        assert retrieved is config
        assert retrieved.openai_api_key == "test-key"

    def test_set_config_twice_raises_error(self):
        """Test that calling set_config() twice raises RuntimeError."""
        set_config(AppConfig())
        with pytest.raises(RuntimeError, match="Configuration already set"):
            set_config(AppConfig())

    def test_get_config_before_init_raises_error(self):
        """Test that get_config() raises RuntimeError before initialization."""
        with pytest.raises(RuntimeError, match="Configuration not initialized"):
            get_config()

    def test_reset_config_allows_reinit(self):
        """Test that reset_config() allows setting a new configuration."""
        set_config(AppConfig(openai_api_key="key1"))
        reset_config()
        assert not is_config_initialized()
        set_config(AppConfig(openai_api_key="key2"))
        assert get_config().openai_api_key == "key2"


class TestLoadConfigFromEnv:
    """Tests for load_config_from_env() function."""

    def test_load_config_from_env_defaults(self):
        """Test loading configuration with no environment variables set."""
        with patch.dict(os.environ, {}, clear=True):
            config = load_config_from_env()
            assert config.api_keys() == {}
            assert config.max_tokens == 1000
            assert config.temperature == 0.7
            assert config.request_timeout_seconds == 60.0
            assert config.initial_session_count == 2

    def test_load_config_from_env_with_keys(self):
        """Each provider reads its own environment variable."""
        env = {
            "OPENAI_API_KEY": "o",
            "ANTHROPIC_API_KEY": "a",
            "GOOGLE_API_KEY": "g",
            "XAI_API_KEY": "x",
            "MISTRAL_API_KEY": "m",
            "COHERE_API_KEY": "c",
        }
        with patch.dict(os.environ, env, clear=True):
            config = load_config_from_env()
            assert config.api_keys() == {
                "openai": "o",
                "anthropic": "a",
                "google": "g",
                "grok": "x",
                "mistral": "m",
                "cohere": "c",
            }

    def test_load_config_from_env_with_custom_values(self):
        """Test loading generation, network and session settings."""
        env = {
            "LLM_MAX_TOKENS": "256",
            "LLM_TEMPERATURE": "0.2",
            "LLM_REQUEST_TIMEOUT_SECONDS": "0",
            "MULTI_LLM_PANEL_INITIAL_SESSIONS": "4",
            "MULTI_LLM_PANEL_CREDENTIALS_FILE": "/tmp/creds.json",
        }
        with patch.dict(os.environ, env, clear=True):
            config = load_config_from_env()
            assert config.max_tokens == 256
            assert config.temperature == 0.2
            assert config.request_timeout_seconds == 0
            assert config.initial_session_count == 4
            assert config.credentials_path == "/tmp/creds.json"

    def test_load_config_from_env_invalid_numbers(self, caplog):
        """Invalid numeric values fall back to defaults with a warning."""
        env = {"LLM_MAX_TOKENS": "lots", "LLM_TEMPERATURE": "warm"}
        with patch.dict(os.environ, env, clear=True):
            with caplog.at_level("WARNING"):
                config = load_config_from_env()
        assert config.max_tokens == 1000
        assert config.temperature == 0.7
        assert any("LLM_MAX_TOKENS" in record.message for record in caplog.records)

    def test_load_config_from_env_logs_validation_issues(self, caplog):
        """Out-of-range values are reported as warnings."""
        with patch.dict(os.environ, {"MULTI_LLM_PANEL_INITIAL_SESSIONS": "0"}, clear=True):
            with caplog.at_level("WARNING"):
                load_config_from_env()
        assert any(
            "MULTI_LLM_PANEL_INITIAL_SESSIONS" in record.message for record in caplog.records
        )
