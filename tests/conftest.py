import httpx
import pytest

from multi_llm_panel.providers.base import ProviderAdapter
from multi_llm_panel.providers.registry import ProviderDescriptor, ProviderRegistry
from multi_llm_panel.providers.transport import create_http_client


def pytest_configure(config):
    """Initialize runtime before test collection (pytest plugin hook)."""
    from multi_llm_panel.runtime import init_runtime, is_initialized

    if not is_initialized():
        init_runtime()


@pytest.fixture(autouse=True)
def ensure_config_initialized():
    """Ensure configuration is initialized before each test."""
    from multi_llm_panel.config import (
        is_config_initialized,
        load_config_from_env,
        set_config,
    )

    # If config was reset by a previous test, reinitialize it
    if not is_config_initialized():
        config = load_config_from_env()
        set_config(config)

    yield


class FakeAdapter(ProviderAdapter):
    """Scriptable in-process adapter

    Set `error` to make invoke raise, or `gate` (an asyncio.Event) to hold
    invoke until the test releases it.
    """

    def __init__(self, provider_id, display_name=None, reply="ok"):
        super().__init__(max_tokens=100, temperature=0.0)
        self.provider_id = provider_id
        self.display_name = display_name or provider_id.title()
        self.reply = reply
        self.error = None
        self.gate = None
        self.calls = []
        self.probe_error = None
        self.probe_calls = []

    @staticmethod
    def format_history(history):
        return [{"role": entry.role.value, "content": entry.content} for entry in history]

    async def invoke(self, history, model, system_prompt, credential):
        self.calls.append(
            {
                "history": tuple(history),
                "model": model,
                "system_prompt": system_prompt,
                "credential": credential,
            }
        )
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return self.extract_text({"text": self.reply})

    def extract_text(self, payload):
        return payload["text"]

    async def probe(self, credential):
        self.probe_calls.append(credential)
        if self.probe_error is not None:
            raise self.probe_error


@pytest.fixture
def fake_registry():
    """Registry with two scripted providers: alpha (a1, a2) and beta (b1)"""
    return ProviderRegistry(
        [
            ProviderDescriptor("alpha", "Alpha", ("a1", "a2"), FakeAdapter("alpha", "Alpha")),
            ProviderDescriptor("beta", "Beta", ("b1",), FakeAdapter("beta", "Beta")),
        ]
    )


@pytest.fixture
def mock_http_client():
    """Factory building an httpx.AsyncClient on top of a MockTransport handler"""

    def _build(handler):
        return create_http_client(transport=httpx.MockTransport(handler))

    return _build
