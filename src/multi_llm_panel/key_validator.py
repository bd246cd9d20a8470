"""Credential probing, independent of chat traffic"""

import logging
from enum import Enum

from .errors import ChatError, TransportFailureError, UnsupportedProviderError
from .providers.registry import ProviderRegistry

logger = logging.getLogger(__name__)


class KeyStatus(str, Enum):
    """Outcome of a credential test"""

    VALID = "valid"
    INVALID = "invalid"
    ERROR = "error"


class KeyValidator:
    """Tests API keys with one minimal request per provider

    Results are presentation state only; sessions are never touched.
    """

    def __init__(self, registry: ProviderRegistry):
        self.registry = registry

    async def test(self, provider_id: str, credential: str) -> KeyStatus:
        """Probe a credential

        Args:
            provider_id: Provider to test against
            credential: Secret to test

        Returns:
            KeyStatus.VALID if accepted, INVALID if the provider answered with a
            non-success response, ERROR if the probe could not be performed
        """
        if not credential or not credential.strip():
            return KeyStatus.INVALID

        try:
            adapter = self.registry.adapter_for(provider_id)
        except UnsupportedProviderError:
            logger.warning("Cannot test key for unknown provider '%s'", provider_id)
            return KeyStatus.ERROR

        if not adapter.supports_probe:
            logger.info("%s has no probe endpoint; key cannot be tested", adapter.display_name)
            return KeyStatus.ERROR

        try:
            await adapter.probe(credential.strip())
        except TransportFailureError as e:
            logger.warning("Key test for %s could not reach the provider: %s", provider_id, e)
            return KeyStatus.ERROR
        except ChatError as e:
            logger.info("Key test for %s rejected: %s", provider_id, e)
            return KeyStatus.INVALID
        except Exception:
            logger.exception("Key test for %s failed unexpectedly", provider_id)
            return KeyStatus.ERROR

        logger.info("Key test for %s succeeded", provider_id)
        return KeyStatus.VALID
