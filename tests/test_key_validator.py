"""Tests for KeyValidator"""

import httpx
import pytest

from multi_llm_panel.errors import AuthFailureError, ProviderError, TransportFailureError
from multi_llm_panel.key_validator import KeyStatus, KeyValidator
from multi_llm_panel.providers.registry import create_default_registry


class TestKeyValidator:
    @pytest.mark.asyncio
    async def test_valid(self, fake_registry):
        validator = KeyValidator(fake_registry)
        assert await validator.test("alpha", " key ") == KeyStatus.VALID
        assert fake_registry.adapter_for("alpha").probe_calls == ["key"]

    @pytest.mark.asyncio
    async def test_blank_credential_is_invalid_without_request(self, fake_registry):
        validator = KeyValidator(fake_registry)
        assert await validator.test("alpha", "   ") == KeyStatus.INVALID
        assert fake_registry.adapter_for("alpha").probe_calls == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [AuthFailureError("alpha", "bad key", 401), ProviderError("alpha", "Forbidden", 429)],
    )
    async def test_rejected(self, fake_registry, error):
        fake_registry.adapter_for("alpha").probe_error = error
        assert await KeyValidator(fake_registry).test("alpha", "key") == KeyStatus.INVALID

    @pytest.mark.asyncio
    async def test_transport_failure_is_error(self, fake_registry):
        fake_registry.adapter_for("alpha").probe_error = TransportFailureError("alpha", "DNS")
        assert await KeyValidator(fake_registry).test("alpha", "key") == KeyStatus.ERROR

    @pytest.mark.asyncio
    async def test_unknown_provider_is_error(self, fake_registry):
        assert await KeyValidator(fake_registry).test("llama", "key") == KeyStatus.ERROR

    @pytest.mark.asyncio
    async def test_adapter_without_probe_is_error(self, fake_registry):
        fake_registry.adapter_for("beta").supports_probe = False
        assert await KeyValidator(fake_registry).test("beta", "key") == KeyStatus.ERROR
        assert fake_registry.adapter_for("beta").probe_calls == []

    @pytest.mark.asyncio
    async def test_idempotent(self, fake_registry):
        validator = KeyValidator(fake_registry)
        first = await validator.test("alpha", "key")
        second = await validator.test("alpha", "key")
        assert first == second == KeyStatus.VALID

    @pytest.mark.asyncio
    async def test_google_probe_over_http(self, mock_http_client):
        def handler(request):
            if request.url.params.get("key") == "good":
                return httpx.Response(200, json={"models": []})
            return httpx.Response(
                400, json={"error": {"message": "API key not valid. Please pass a valid API key."}}
            )

        validator = KeyValidator(create_default_registry(mock_http_client(handler)))
        assert await validator.test("google", "good") == KeyStatus.VALID
        assert await validator.test("google", "bad") == KeyStatus.INVALID
