"""Google Gemini generateContent provider

The Gemini REST protocol authenticates with a key in the request URL and has
no role for system prompts in this request shape, so the prompt is sent as a
priming exchange: a user turn carrying the prompt followed by a synthetic
model acknowledgment.
"""

import logging
from typing import Any, Dict, List, Sequence

from ..models import Message, Role
from .base import ProviderAdapter

logger = logging.getLogger(__name__)

GOOGLE_API_BASE = "https://generativelanguage.googleapis.com/v1beta"
PRIMING_ACKNOWLEDGMENT = "I understand."


def normalize_model_name(model: str) -> str:
    """Strip the optional "models/" prefix"""
    return model[len("models/"):] if model.startswith("models/") else model


class GoogleAdapter(ProviderAdapter):
    """Google Gemini adapter (key in URL, priming exchange, user/model roles)"""

    provider_id = "google"
    display_name = "Google"

    @staticmethod
    def format_history(history: Sequence[Message]) -> List[Dict[str, Any]]:
        """Convert history to Gemini contents format"""
        return [
            {
                "role": "model" if entry.role == Role.ASSISTANT else "user",
                "parts": [{"text": entry.content}],
            }
            for entry in history
        ]

    @staticmethod
    def priming_exchange(system_prompt: str) -> List[Dict[str, Any]]:
        if not system_prompt or not system_prompt.strip():
            return []
        return [
            {"role": "user", "parts": [{"text": system_prompt}]},
            {"role": "model", "parts": [{"text": PRIMING_ACKNOWLEDGMENT}]},
        ]

    async def invoke(
        self, history: Sequence[Message], model: str, system_prompt: str, credential: str
    ) -> str:
        url = f"{GOOGLE_API_BASE}/models/{normalize_model_name(model)}:generateContent"
        payload = {
            "contents": self.priming_exchange(system_prompt) + self.format_history(history),
            "generationConfig": {
                "maxOutputTokens": self.max_tokens,
                "temperature": self.temperature,
            },
        }

        logger.debug("Google request: model=%s, contents=%d", model, len(payload["contents"]))
        data = await self.request_json(
            "POST",
            url,
            headers={"Content-Type": "application/json"},
            params={"key": credential},
            payload=payload,
        )
        return self.extract_text(data)

    def extract_text(self, payload: Any) -> str:
        """Extract text from candidates[0].content.parts"""
        try:
            parts = payload["candidates"][0]["content"]["parts"]
        except (KeyError, IndexError, TypeError) as e:
            # A prompt blocked by safety filters comes back without candidates
            feedback = payload.get("promptFeedback") if isinstance(payload, dict) else None
            if isinstance(feedback, dict) and feedback.get("blockReason"):
                raise self.unexpected_response(
                    f"prompt blocked: {feedback['blockReason']}"
                ) from e
            raise self.unexpected_response("missing candidates[0].content.parts") from e

        if not isinstance(parts, list):
            raise self.unexpected_response("candidate parts is not a list")
        text = "".join(part.get("text", "") for part in parts if isinstance(part, dict))
        if not text:
            raise self.unexpected_response("empty candidate text")
        return text

    async def probe(self, credential: str) -> None:
        """List models with the key in the URL"""
        await self.request_json("GET", f"{GOOGLE_API_BASE}/models", params={"key": credential})
