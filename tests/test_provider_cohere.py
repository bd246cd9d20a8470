"""Tests for CohereAdapter"""

import json

import httpx
import pytest

from multi_llm_panel.errors import AuthFailureError, ProviderError
from multi_llm_panel.models import Message
from multi_llm_panel.providers.cohere import CohereAdapter

HISTORY = (Message.user("Hello"), Message.assistant("Hi!"), Message.user("Tell a joke"))


def test_format_history_excludes_newest_message():
    assert CohereAdapter.format_history(HISTORY) == [
        {"role": "USER", "message": "Hello"},
        {"role": "CHATBOT", "message": "Hi!"},
    ]


class TestInvoke:
    @pytest.mark.asyncio
    async def test_request_shape_and_reply(self, mock_http_client):
        captured = {}

        def handler(request):
            captured["url"] = str(request.url)
            captured["auth"] = request.headers.get("authorization")
            captured["body"] = json.loads(request.content)
            return httpx.Response(200, json={"text": "Why did the chicken..."})

        adapter = CohereAdapter(mock_http_client(handler))
        reply = await adapter.invoke(HISTORY, "command", "You are funny.", "co-key")

        assert reply == "Why did the chicken..."
        assert captured["url"] == "https://api.cohere.ai/v1/chat"
        assert captured["auth"] == "Bearer co-key"
        body = captured["body"]
        assert body["message"] == "Tell a joke"
        assert body["preamble"] == "You are funny."
        assert body["chat_history"] == [
            {"role": "USER", "message": "Hello"},
            {"role": "CHATBOT", "message": "Hi!"},
        ]

    @pytest.mark.asyncio
    async def test_first_message_has_empty_chat_history(self, mock_http_client):
        bodies = []

        def handler(request):
            bodies.append(json.loads(request.content))
            return httpx.Response(200, json={"text": "ok"})

        adapter = CohereAdapter(mock_http_client(handler))
        await adapter.invoke((Message.user("Hi"),), "command-light", "", "co-key")
        assert bodies[0]["chat_history"] == []
        assert "preamble" not in bodies[0]

    @pytest.mark.asyncio
    async def test_invalid_token(self, mock_http_client):
        def handler(request):
            return httpx.Response(401, json={"message": "invalid api token"})

        with pytest.raises(AuthFailureError) as exc_info:
            await CohereAdapter(mock_http_client(handler)).invoke(HISTORY, "command", "", "x")
        assert exc_info.value.detail == "invalid api token"

    @pytest.mark.asyncio
    async def test_missing_text(self, mock_http_client):
        def handler(request):
            return httpx.Response(200, json={"generation_id": "g"})

        with pytest.raises(ProviderError, match="Unexpected response format"):
            await CohereAdapter(mock_http_client(handler)).invoke(HISTORY, "command", "", "x")


@pytest.mark.asyncio
async def test_probe_lists_models(mock_http_client):
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(200, json={"models": []})

    await CohereAdapter(mock_http_client(handler)).probe("co-key")
    assert requests[0].method == "GET"
    assert str(requests[0].url) == "https://api.cohere.ai/v1/models"
    assert requests[0].headers["authorization"] == "Bearer co-key"
