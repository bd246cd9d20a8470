"""Process start-up for multi-llm-panel

init_runtime() reads .env, publishes the configuration and, when asked,
sets the log level. The CLI calls it before any panel is built.
"""

import logging
import threading
from typing import Optional

from dotenv import load_dotenv

from .config import load_config_from_env, reset_config, set_config

logger = logging.getLogger(__name__)
_initialized = False
_init_lock = threading.Lock()

# These log every request URL at INFO; Google URLs carry the API key
_NOISY_HTTP_LOGGERS = ("httpx", "httpcore", "openai")


def init_runtime(log_level: Optional[str] = None) -> None:
    """Load .env and the configuration once per process.

    Later calls return immediately, whatever log_level they pass. If loading
    fails the configuration is reset so a retry starts clean.

    Args:
        log_level: Level name for logging.basicConfig, or None to leave
                   logging untouched.

    Raises:
        ValueError: log_level is not a logging level name.
    """
    global _initialized

    if _initialized:
        return

    with _init_lock:
        if _initialized:
            return

        try:
            load_dotenv()
            set_config(load_config_from_env())

            if log_level:
                numeric_level = getattr(logging, log_level.upper(), None)
                if not isinstance(numeric_level, int):
                    raise ValueError(f"Invalid log level: {log_level}")
                logging.basicConfig(level=numeric_level)

            for name in _NOISY_HTTP_LOGGERS:
                logging.getLogger(name).setLevel(logging.WARNING)

            _initialized = True
            logger.debug("Runtime ready")
        except Exception:
            reset_config()
            raise


def is_initialized() -> bool:
    return _initialized


def reset_runtime() -> None:
    """Forget a previous init_runtime() call. Used by tests."""
    global _initialized
    _initialized = False
