"""Anthropic Messages API provider"""

import logging
from typing import Any, Dict, List, Sequence

from ..models import Message, Role
from .base import ProviderAdapter

logger = logging.getLogger(__name__)

ANTHROPIC_MESSAGES_URL = "https://api.anthropic.com/v1/messages"
ANTHROPIC_VERSION = "2023-06-01"

# Cheapest model used for the 1-token credential probe (no listing endpoint)
PROBE_MODEL = "claude-3-haiku-20240307"


class AnthropicAdapter(ProviderAdapter):
    """Anthropic adapter (x-api-key header, system prompt as top-level field)"""

    provider_id = "anthropic"
    display_name = "Anthropic"

    @staticmethod
    def format_history(history: Sequence[Message]) -> List[Dict[str, Any]]:
        """Convert history to Messages API format"""
        return [
            {
                "role": "assistant" if entry.role == Role.ASSISTANT else "user",
                "content": entry.content,
            }
            for entry in history
        ]

    @staticmethod
    def _headers(credential: str) -> Dict[str, str]:
        return {
            "x-api-key": credential,
            "anthropic-version": ANTHROPIC_VERSION,
            "Content-Type": "application/json",
        }

    async def invoke(
        self, history: Sequence[Message], model: str, system_prompt: str, credential: str
    ) -> str:
        payload = {
            "model": model,
            "max_tokens": self.max_tokens,
            "messages": self.format_history(history),
        }
        if system_prompt and system_prompt.strip():
            payload["system"] = system_prompt

        logger.debug("Anthropic request: model=%s, messages=%d", model, len(history))
        data = await self.request_json(
            "POST", ANTHROPIC_MESSAGES_URL, headers=self._headers(credential), payload=payload
        )
        return self.extract_text(data)

    def extract_text(self, payload: Any) -> str:
        """Extract the first text block of content[]"""
        blocks = payload.get("content") if isinstance(payload, dict) else None
        if not isinstance(blocks, list):
            raise self.unexpected_response("missing content blocks")

        for block in blocks:
            if isinstance(block, dict) and block.get("type") == "text" and block.get("text"):
                return block["text"]
        raise self.unexpected_response("no text block in content")

    async def probe(self, credential: str) -> None:
        """Send a 1-token completion"""
        payload = {
            "model": PROBE_MODEL,
            "max_tokens": 1,
            "messages": [{"role": "user", "content": "Hi"}],
        }
        await self.request_json(
            "POST", ANTHROPIC_MESSAGES_URL, headers=self._headers(credential), payload=payload
        )
