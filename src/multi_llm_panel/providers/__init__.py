"""LLM provider adapters

This package contains one adapter per wire protocol following a common interface,
plus the registry that binds provider ids to adapters and model catalogs.
"""

from .anthropic import AnthropicAdapter
from .base import ProviderAdapter
from .cohere import CohereAdapter
from .google import GoogleAdapter
from .openai_compat import OpenAICompatibleAdapter
from .registry import ProviderDescriptor, ProviderRegistry, create_default_registry
from .transport import create_http_client

__all__ = [
    "ProviderAdapter",
    "OpenAICompatibleAdapter",
    "AnthropicAdapter",
    "GoogleAdapter",
    "CohereAdapter",
    "ProviderDescriptor",
    "ProviderRegistry",
    "create_default_registry",
    "create_http_client",
]
