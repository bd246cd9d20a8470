"""Cohere chat provider

Cohere's v1 chat endpoint keeps the newest user turn in its own "message"
field and the earlier turns in "chat_history".
"""

import logging
from typing import Any, Dict, List, Sequence

from ..models import Message, Role
from .base import ProviderAdapter

logger = logging.getLogger(__name__)

COHERE_API_BASE = "https://api.cohere.ai/v1"

ROLE_NAMES = {Role.USER: "USER", Role.ASSISTANT: "CHATBOT"}


class CohereAdapter(ProviderAdapter):
    """Cohere adapter (Bearer auth, preamble, USER/CHATBOT roles, split history)"""

    provider_id = "cohere"
    display_name = "Cohere"

    @staticmethod
    def format_history(history: Sequence[Message]) -> List[Dict[str, Any]]:
        """Convert prior turns (all but the newest message) to chat_history format"""
        return [
            {"role": ROLE_NAMES[entry.role], "message": entry.content} for entry in history[:-1]
        ]

    @staticmethod
    def _headers(credential: str) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {credential}",
            "Content-Type": "application/json",
        }

    async def invoke(
        self, history: Sequence[Message], model: str, system_prompt: str, credential: str
    ) -> str:
        if not history:
            raise ValueError("history must contain the current user message")

        payload = {
            "model": model,
            "message": history[-1].content,
            "chat_history": self.format_history(history),
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
        }
        if system_prompt and system_prompt.strip():
            payload["preamble"] = system_prompt

        logger.debug("Cohere request: model=%s, prior turns=%d", model, len(history) - 1)
        data = await self.request_json(
            "POST", f"{COHERE_API_BASE}/chat", headers=self._headers(credential), payload=payload
        )
        return self.extract_text(data)

    def extract_text(self, payload: Any) -> str:
        text = payload.get("text") if isinstance(payload, dict) else None
        if not isinstance(text, str) or not text:
            raise self.unexpected_response("missing text")
        return text

    async def probe(self, credential: str) -> None:
        await self.request_json(
            "GET", f"{COHERE_API_BASE}/models", headers=self._headers(credential)
        )
