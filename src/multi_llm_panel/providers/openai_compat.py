"""OpenAI-compatible chat completions provider

Serves OpenAI itself and every provider that speaks the same
/chat/completions protocol (xAI Grok, Mistral). The openai SDK issues the
requests over the adapter's injected httpx client.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

import httpx
import openai

from ..errors import ChatError, TransportFailureError, classify_failure
from ..models import Message, Role
from .base import ProviderAdapter

logger = logging.getLogger(__name__)

OPENAI_BASE_URL = "https://api.openai.com/v1"
GROK_BASE_URL = "https://api.x.ai/v1"
MISTRAL_BASE_URL = "https://api.mistral.ai/v1"


def _status_error_message(error: openai.APIStatusError, fallback: str) -> str:
    """Return the provider's own message from an APIStatusError

    The SDK stores the unwrapped "error" object (OpenAI, xAI) or the whole body
    (Mistral) in error.body.
    """
    body = error.body
    if isinstance(body, dict):
        if body.get("message"):
            return str(body["message"])
        detail = body.get("detail")
        if isinstance(detail, str) and detail:
            return detail
    if isinstance(body, str) and body:
        return body
    return fallback


class OpenAICompatibleAdapter(ProviderAdapter):
    """Chat completions adapter (Bearer auth, system prompt as leading message)

    The openai client is stateless apart from its configuration, so a new
    client is built per call with that call's credential on top of the shared
    HTTP client.
    """

    def __init__(
        self,
        provider_id: str,
        display_name: str,
        base_url: str,
        http_client: Optional[httpx.AsyncClient] = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
    ):
        super().__init__(http_client, max_tokens=max_tokens, temperature=temperature)
        self.provider_id = provider_id
        self.display_name = display_name
        self.base_url = base_url

    def _client(self, credential: str) -> openai.AsyncOpenAI:
        return openai.AsyncOpenAI(
            api_key=credential,
            base_url=self.base_url,
            http_client=self.http_client,
            timeout=self.http_client.timeout,
            max_retries=0,
        )

    @staticmethod
    def format_history(history: Sequence[Message]) -> List[Dict[str, Any]]:
        """Convert history to chat completions format"""
        formatted = []
        for entry in history:
            role = "assistant" if entry.role == Role.ASSISTANT else "user"
            formatted.append({"role": role, "content": entry.content})
        return formatted

    def build_messages(self, history: Sequence[Message], system_prompt: str) -> List[Dict]:
        messages = []
        if system_prompt and system_prompt.strip():
            messages.append({"role": "system", "content": system_prompt})
        messages.extend(self.format_history(history))
        return messages

    async def invoke(
        self, history: Sequence[Message], model: str, system_prompt: str, credential: str
    ) -> str:
        """Call the chat completions endpoint and return the reply text"""
        client = self._client(credential)
        messages = self.build_messages(history, system_prompt)
        logger.debug("%s request: model=%s, messages=%d", self.display_name, model, len(messages))

        try:
            completion = await client.chat.completions.create(
                model=model,
                messages=messages,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
            )
        except openai.APIStatusError as e:
            raise self._classify_status_error(e) from e
        except openai.APIConnectionError as e:
            # Also covers APITimeoutError
            logger.warning("%s request failed: %s", self.display_name, type(e).__name__)
            raise TransportFailureError(self.provider_id, str(e)) from e

        return self.extract_text(completion)

    def extract_text(self, payload: Any) -> str:
        """Extract text from choices[0].message.content"""
        try:
            content = payload.choices[0].message.content
        except (AttributeError, IndexError, TypeError) as e:
            raise self.unexpected_response("missing choices[0].message.content") from e

        # Handle both string and list content parts
        if isinstance(content, list):
            content = "".join(
                part.text if hasattr(part, "text") else str(part) for part in content
            )
        if not isinstance(content, str) or not content:
            raise self.unexpected_response("empty message content")
        return content

    async def probe(self, credential: str) -> None:
        """List models, which needs nothing but a valid key"""
        client = self._client(credential)
        try:
            await client.models.list()
        except openai.APIStatusError as e:
            raise self._classify_status_error(e) from e
        except openai.APIConnectionError as e:
            raise TransportFailureError(self.provider_id, str(e)) from e

    def _classify_status_error(self, error: openai.APIStatusError) -> ChatError:
        message = _status_error_message(error, f"{self.display_name} API error")
        logger.warning(
            "%s returned HTTP %s: %s", self.display_name, error.status_code, message
        )
        return classify_failure(self.provider_id, error.status_code, message)
