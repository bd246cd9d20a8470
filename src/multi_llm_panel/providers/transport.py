"""HTTP transport shared by all provider adapters

Adapters never open connections on their own: they issue requests through an
injected httpx.AsyncClient. Tests pass a client built on httpx.MockTransport.
"""

import logging
from typing import Optional

import httpx

from ..config import get_config, is_config_initialized

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 60.0


def _resolve_timeout(timeout_seconds: Optional[float]) -> Optional[float]:
    if timeout_seconds is None:
        if is_config_initialized():
            timeout_seconds = get_config().request_timeout_seconds
        else:
            timeout_seconds = DEFAULT_TIMEOUT_SECONDS
    # 0 disables the deadline
    return timeout_seconds if timeout_seconds > 0 else None


def create_http_client(
    transport: Optional[httpx.AsyncBaseTransport] = None,
    timeout_seconds: Optional[float] = None,
) -> httpx.AsyncClient:
    """Create the async HTTP client used by provider adapters

    Args:
        transport: Optional transport override (e.g. httpx.MockTransport in tests)
        timeout_seconds: Request deadline; defaults to config.request_timeout_seconds.
                         0 disables the deadline.

    Returns:
        httpx.AsyncClient
    """
    timeout = _resolve_timeout(timeout_seconds)
    logger.debug("Creating HTTP client (timeout=%s)", timeout)
    return httpx.AsyncClient(transport=transport, timeout=httpx.Timeout(timeout))
