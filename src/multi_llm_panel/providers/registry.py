"""Provider catalog and adapter registry

Maps provider ids to descriptors (display name, model catalog, adapter).
Adding a provider means registering a descriptor; nothing else dispatches on
provider ids.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterator, Optional, Tuple

import httpx

from ..errors import UnsupportedProviderError
from .anthropic import AnthropicAdapter
from .base import ProviderAdapter
from .cohere import CohereAdapter
from .google import GoogleAdapter
from .openai_compat import (
    GROK_BASE_URL,
    MISTRAL_BASE_URL,
    OPENAI_BASE_URL,
    OpenAICompatibleAdapter,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProviderDescriptor:
    """Static catalog entry of one provider"""

    provider_id: str
    display_name: str
    models: Tuple[str, ...]
    adapter: ProviderAdapter

    def __post_init__(self):
        if not self.models:
            raise ValueError(f"Provider '{self.provider_id}' must offer at least one model")

    @property
    def default_model(self) -> str:
        return self.models[0]


class ProviderRegistry:
    """Ordered collection of provider descriptors

    Iteration order is registration order, which is the catalog order used
    when new sessions pick a provider.
    """

    def __init__(self, descriptors=()):
        self._descriptors: Dict[str, ProviderDescriptor] = {}
        for descriptor in descriptors:
            self.register(descriptor)

    def register(self, descriptor: ProviderDescriptor) -> None:
        """Register (or replace) a provider"""
        if descriptor.provider_id in self._descriptors:
            logger.debug("Replacing provider '%s'", descriptor.provider_id)
        self._descriptors[descriptor.provider_id] = descriptor

    def get(self, provider_id: str) -> ProviderDescriptor:
        """Return the descriptor of a provider

        Raises:
            UnsupportedProviderError: If no provider is registered under this id
        """
        try:
            return self._descriptors[provider_id]
        except KeyError:
            raise UnsupportedProviderError(provider_id) from None

    def adapter_for(self, provider_id: str) -> ProviderAdapter:
        return self.get(provider_id).adapter

    def display_name(self, provider_id: str) -> str:
        """Display name, falling back to the raw id for unknown providers"""
        descriptor = self._descriptors.get(provider_id)
        return descriptor.display_name if descriptor else provider_id

    def has_model(self, provider_id: str, model_id: str) -> bool:
        descriptor = self._descriptors.get(provider_id)
        return descriptor is not None and model_id in descriptor.models

    @property
    def provider_ids(self) -> Tuple[str, ...]:
        return tuple(self._descriptors)

    def __contains__(self, provider_id) -> bool:
        return provider_id in self._descriptors

    def __iter__(self) -> Iterator[ProviderDescriptor]:
        return iter(tuple(self._descriptors.values()))

    def __len__(self) -> int:
        return len(self._descriptors)


def create_default_registry(http_client: Optional[httpx.AsyncClient] = None) -> ProviderRegistry:
    """Build the registry of all supported providers in catalog order

    Args:
        http_client: HTTP client shared by every adapter (created lazily per
                     adapter when omitted)

    Returns:
        ProviderRegistry
    """
    return ProviderRegistry(
        [
            ProviderDescriptor(
                "openai",
                "OpenAI",
                ("gpt-4", "gpt-4-turbo", "gpt-3.5-turbo"),
                OpenAICompatibleAdapter("openai", "OpenAI", OPENAI_BASE_URL, http_client),
            ),
            ProviderDescriptor(
                "anthropic",
                "Anthropic",
                (
                    "claude-3-opus-20240229",
                    "claude-3-sonnet-20240229",
                    "claude-3-haiku-20240307",
                ),
                AnthropicAdapter(http_client),
            ),
            ProviderDescriptor(
                "google",
                "Google",
                ("gemini-pro", "gemini-1.5-pro", "gemini-1.5-flash"),
                GoogleAdapter(http_client),
            ),
            ProviderDescriptor(
                "grok",
                "Grok (xAI)",
                ("grok-2-latest", "grok-beta"),
                OpenAICompatibleAdapter("grok", "Grok (xAI)", GROK_BASE_URL, http_client),
            ),
            ProviderDescriptor(
                "mistral",
                "Mistral",
                ("mistral-large-latest", "mistral-medium-latest", "mistral-small-latest"),
                OpenAICompatibleAdapter("mistral", "Mistral", MISTRAL_BASE_URL, http_client),
            ),
            ProviderDescriptor(
                "cohere",
                "Cohere",
                ("command", "command-light"),
                CohereAdapter(http_client),
            ),
        ]
    )
