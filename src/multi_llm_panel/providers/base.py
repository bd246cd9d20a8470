"""Base classes for LLM provider adapters

This module defines the abstract interface that all provider adapters must implement.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence

import httpx

from ..config import get_config, is_config_initialized
from ..errors import ProviderError, TransportFailureError, classify_failure
from ..models import Message
from .transport import create_http_client

logger = logging.getLogger(__name__)

DEFAULT_MAX_TOKENS = 1000
DEFAULT_TEMPERATURE = 0.7


class ProviderAdapter(ABC):
    """Abstract base class for provider adapters

    An adapter translates the uniform message history into one provider's wire
    protocol, issues a single request and classifies failures. Adapters hold no
    credentials; the key is passed on every call.
    """

    provider_id: str = ""
    display_name: str = ""
    supports_probe = True

    def __init__(
        self,
        http_client: Optional[httpx.AsyncClient] = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
    ):
        """
        Args:
            http_client: Shared HTTP client (created lazily when omitted)
            max_tokens: Response token limit (defaults to configuration)
            temperature: Sampling temperature (defaults to configuration)
        """
        self._http_client = http_client
        config = get_config() if is_config_initialized() else None
        if max_tokens is None:
            max_tokens = config.max_tokens if config else DEFAULT_MAX_TOKENS
        if temperature is None:
            temperature = config.temperature if config else DEFAULT_TEMPERATURE
        self.max_tokens = max_tokens
        self.temperature = temperature

    @property
    def http_client(self) -> httpx.AsyncClient:
        """Lazily created HTTP client"""
        if self._http_client is None:
            self._http_client = create_http_client()
        return self._http_client

    @staticmethod
    @abstractmethod
    def format_history(history: Sequence[Message]) -> List[Dict[str, Any]]:
        """Convert history to provider-specific message list

        Args:
            history: Sequence of Message. MUST NOT be mutated.

        Returns:
            Provider-specific history format
        """
        pass

    @abstractmethod
    async def invoke(
        self, history: Sequence[Message], model: str, system_prompt: str, credential: str
    ) -> str:
        """Send the conversation to the provider and return the assistant text

        Args:
            history: Full conversation including the newest user message
            model: Model id from the provider catalog
            system_prompt: System prompt (empty string for none)
            credential: API key for the provider

        Returns:
            str: Assistant reply

        Raises:
            AuthFailureError: The provider rejected the credential
            ProviderError: Any other non-success response or malformed envelope
            TransportFailureError: No response was obtained
        """
        pass

    @abstractmethod
    def extract_text(self, payload: Any) -> str:
        """Extract assistant text from a successful response envelope

        Raises:
            ProviderError: If the expected shape is absent
        """
        pass

    @abstractmethod
    async def probe(self, credential: str) -> None:
        """Issue a minimal request that only checks the credential

        Returns normally when the credential is accepted and raises a ChatError otherwise.
        """
        pass

    def unexpected_response(self, reason: str) -> ProviderError:
        logger.warning("%s returned an unexpected response: %s", self.display_name, reason)
        return ProviderError(self.provider_id, f"Unexpected response format ({reason})")

    def extract_error_message(self, payload: Any) -> Optional[str]:
        """Pull the provider's error message out of an error body

        Handles both {"error": {"message": ...}} and {"message": ...} envelopes.
        """
        if not isinstance(payload, dict):
            return None
        error = payload.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str) and error:
            return error
        if payload.get("message"):
            return str(payload["message"])
        return None

    async def request_json(
        self,
        method: str,
        url: str,
        *,
        headers: Optional[Dict[str, str]] = None,
        params: Optional[Dict[str, str]] = None,
        payload: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Issue one JSON request and return the decoded success body

        Raises:
            TransportFailureError: Network failure or timeout
            AuthFailureError / ProviderError: Non-success response
        """
        try:
            response = await self.http_client.request(
                method, url, headers=headers, params=params, json=payload
            )
        except httpx.RequestError as e:
            logger.warning("%s request failed: %s", self.display_name, type(e).__name__)
            raise TransportFailureError(self.provider_id, str(e) or type(e).__name__) from e

        if not response.is_success:
            try:
                body = response.json()
            except ValueError:
                body = None
            message = self.extract_error_message(body) or f"{self.display_name} API error"
            logger.warning(
                "%s returned HTTP %s: %s", self.display_name, response.status_code, message
            )
            raise classify_failure(self.provider_id, response.status_code, message)

        try:
            return response.json()
        except ValueError as e:
            raise self.unexpected_response("body is not valid JSON") from e
