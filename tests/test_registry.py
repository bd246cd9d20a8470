"""Tests for the provider catalog and registry"""

import pytest

from multi_llm_panel.errors import UnsupportedProviderError
from multi_llm_panel.providers import (
    AnthropicAdapter,
    CohereAdapter,
    GoogleAdapter,
    OpenAICompatibleAdapter,
    ProviderDescriptor,
    ProviderRegistry,
    create_default_registry,
)


class TestDefaultRegistry:
    def test_catalog_order(self):
        registry = create_default_registry()
        assert registry.provider_ids == (
            "openai",
            "anthropic",
            "google",
            "grok",
            "mistral",
            "cohere",
        )

    def test_default_models(self):
        registry = create_default_registry()
        assert registry.get("openai").default_model == "gpt-4"
        assert registry.get("anthropic").default_model == "claude-3-opus-20240229"
        assert registry.get("google").default_model == "gemini-pro"
        assert registry.get("grok").default_model == "grok-2-latest"
        assert registry.get("mistral").default_model == "mistral-large-latest"
        assert registry.get("cohere").default_model == "command"

    def test_adapters_by_protocol(self):
        registry = create_default_registry()
        assert isinstance(registry.adapter_for("openai"), OpenAICompatibleAdapter)
        assert isinstance(registry.adapter_for("grok"), OpenAICompatibleAdapter)
        assert isinstance(registry.adapter_for("mistral"), OpenAICompatibleAdapter)
        assert isinstance(registry.adapter_for("anthropic"), AnthropicAdapter)
        assert isinstance(registry.adapter_for("google"), GoogleAdapter)
        assert isinstance(registry.adapter_for("cohere"), CohereAdapter)
        assert registry.adapter_for("grok").provider_id == "grok"
        assert registry.display_name("grok") == "Grok (xAI)"

    def test_shared_http_client(self, mock_http_client):
        client = mock_http_client(lambda request: None)
        registry = create_default_registry(client)
        assert all(descriptor.adapter.http_client is client for descriptor in registry)


class TestProviderRegistry:
    def test_unknown_provider(self, fake_registry):
        with pytest.raises(UnsupportedProviderError):
            fake_registry.get("llama")
        assert "llama" not in fake_registry
        assert fake_registry.display_name("llama") == "llama"

    def test_has_model(self, fake_registry):
        assert fake_registry.has_model("alpha", "a2")
        assert not fake_registry.has_model("alpha", "b1")
        assert not fake_registry.has_model("llama", "a1")

    def test_register_new_provider(self, fake_registry):
        adapter = fake_registry.adapter_for("alpha")
        fake_registry.register(ProviderDescriptor("gamma", "Gamma", ("g1",), adapter))
        assert fake_registry.provider_ids[-1] == "gamma"
        assert len(fake_registry) == 3

    def test_descriptor_requires_models(self, fake_registry):
        with pytest.raises(ValueError):
            ProviderDescriptor("empty", "Empty", (), fake_registry.adapter_for("alpha"))

    def test_empty_registry(self):
        assert len(ProviderRegistry()) == 0
