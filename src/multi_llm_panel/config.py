"""Application configuration repository.

Centralizes access to configuration values loaded from environment variables.
Provides a clean interface for all application layers.

This module implements the Repository pattern for configuration management,
decoupling business logic from environment variable access.
"""

import logging
import os
from dataclasses import dataclass
from typing import Dict, Optional

logger = logging.getLogger(__name__)

# Environment variable holding the API key of each provider
API_KEY_ENV_VARS = {
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
    "google": "GOOGLE_API_KEY",
    "grok": "XAI_API_KEY",
    "mistral": "MISTRAL_API_KEY",
    "cohere": "COHERE_API_KEY",
}


@dataclass
class AppConfig:
    """Application configuration container.

    This dataclass holds all configuration values used throughout the application.
    Values are typically loaded from environment variables during initialization.
    """

    # API Keys (read-only fallback; keys saved in the credential store win)
    openai_api_key: Optional[str] = None
    anthropic_api_key: Optional[str] = None
    google_api_key: Optional[str] = None
    grok_api_key: Optional[str] = None
    mistral_api_key: Optional[str] = None
    cohere_api_key: Optional[str] = None

    # Generation settings shared by every provider
    max_tokens: int = 1000
    temperature: float = 0.7

    # Network settings (0 disables the deadline)
    request_timeout_seconds: float = 60.0

    # Session settings
    initial_session_count: int = 2

    # Credential persistence
    credentials_path: Optional[str] = None

    def api_keys(self) -> Dict[str, str]:
        """Return the non-empty API keys keyed by provider id."""
        keys = {
            "openai": self.openai_api_key,
            "anthropic": self.anthropic_api_key,
            "google": self.google_api_key,
            "grok": self.grok_api_key,
            "mistral": self.mistral_api_key,
            "cohere": self.cohere_api_key,
        }
        return {provider_id: key for provider_id, key in keys.items() if key and key.strip()}

    def validate(self) -> list[str]:
        """Validate configuration and return list of warnings.

        Returns:
            list[str]: List of warning messages for invalid configuration.
        """
        issues = []

        if self.max_tokens <= 0:
            issues.append(f"Invalid LLM_MAX_TOKENS: {self.max_tokens}")

        if not 0 <= self.temperature <= 2:
            issues.append(f"Invalid LLM_TEMPERATURE: {self.temperature}")

        if self.request_timeout_seconds < 0:
            issues.append(f"Invalid LLM_REQUEST_TIMEOUT_SECONDS: {self.request_timeout_seconds}")

        if not 1 <= self.initial_session_count <= 8:
            issues.append(
                f"Invalid MULTI_LLM_PANEL_INITIAL_SESSIONS: {self.initial_session_count}"
            )

        return issues


# Global configuration instance (set once at startup)
_config: Optional[AppConfig] = None


def load_config_from_env() -> AppConfig:
    """Load configuration from environment variables.

    This should be called once during application initialization
    (typically from init_runtime()).

    Returns:
        AppConfig: Configuration instance populated from environment variables.
    """

    def _get_env_float(key: str, default: float) -> float:
        """Safely parse float from environment variable with fallback."""
        val_str = os.getenv(key)
        if val_str is None:
            return default
        try:
            return float(val_str)
        except (ValueError, TypeError):
            logger.warning(f"Invalid value for {key}: '{val_str}'. Using default value: {default}.")
            return default

    def _get_env_int(key: str, default: int) -> int:
        """Safely parse int from environment variable with fallback."""
        val_str = os.getenv(key)
        if val_str is None:
            return default
        try:
            return int(val_str)
        except (ValueError, TypeError):
            logger.warning(f"Invalid value for {key}: '{val_str}'. Using default value: {default}.")
            return default

    config = AppConfig(
        openai_api_key=os.getenv(API_KEY_ENV_VARS["openai"]),
        anthropic_api_key=os.getenv(API_KEY_ENV_VARS["anthropic"]),
        google_api_key=os.getenv(API_KEY_ENV_VARS["google"]),
        grok_api_key=os.getenv(API_KEY_ENV_VARS["grok"]),
        mistral_api_key=os.getenv(API_KEY_ENV_VARS["mistral"]),
        cohere_api_key=os.getenv(API_KEY_ENV_VARS["cohere"]),
        max_tokens=_get_env_int("LLM_MAX_TOKENS", 1000),
        temperature=_get_env_float("LLM_TEMPERATURE", 0.7),
        request_timeout_seconds=_get_env_float("LLM_REQUEST_TIMEOUT_SECONDS", 60.0),
        initial_session_count=_get_env_int("MULTI_LLM_PANEL_INITIAL_SESSIONS", 2),
        credentials_path=os.getenv("MULTI_LLM_PANEL_CREDENTIALS_FILE"),
    )

    # Log validation issues
    issues = config.validate()
    for issue in issues:
        logger.warning(issue)

    configured = config.api_keys()
    missing = [
        env for provider_id, env in API_KEY_ENV_VARS.items() if provider_id not in configured
    ]
    if missing:
        logger.debug("API keys not set in environment: %s", ", ".join(missing))

    return config


def set_config(config: AppConfig) -> None:
    """Set the global configuration instance.

    This should only be called once during application initialization.

    Args:
        config: AppConfig instance to use globally.

    Raises:
        RuntimeError: If configuration has already been set.
    """
    global _config
    if _config is not None:
        raise RuntimeError("Configuration already set. Call reset_config() first.")
    _config = config
    logger.debug("Configuration initialized")


def get_config() -> AppConfig:
    """Get the global configuration instance.

    Returns:
        AppConfig: The global configuration instance.

    Raises:
        RuntimeError: If configuration has not been initialized.
                     Call init_runtime() first.
    """
    if _config is None:
        raise RuntimeError(
            "Configuration not initialized. Call init_runtime() at application startup."
        )
    return _config


def reset_config() -> None:
    """Reset configuration state.

    This function is intended for testing purposes only.
    It allows tests to reset the configuration between test cases.
    """
    global _config
    _config = None


def is_config_initialized() -> bool:
    """Check if configuration has been initialized.

    Returns:
        bool: True if configuration is initialized, False otherwise.
    """
    return _config is not None
