"""ChatPanel - the surface a front end talks to

Bundles the session store, orchestrator, broadcast dispatcher, credential
store and key validator behind one object, and wires them from configuration.
"""

import logging
from typing import Callable, Dict, List, Mapping, Optional, Tuple

import httpx

from .broadcast import BroadcastDispatcher, SendMode
from .config import AppConfig, get_config
from .credentials import CredentialStore, JsonFileKeyValueStore, KeyValueStore
from .key_validator import KeyStatus, KeyValidator
from .models import Message, Session
from .orchestrator import ChatOrchestrator
from .providers.registry import ProviderDescriptor, ProviderRegistry, create_default_registry
from .session_store import SessionStore

logger = logging.getLogger(__name__)


class ChatPanel:
    """Multi-session chat panel

    Attributes:
        registry: Provider catalog
        store: Session store
        credentials: Credential store
        orchestrator: Per-session send logic
        dispatcher: Broadcast fan-out
        validator: Credential tester
        key_statuses: Latest test result per provider id
    """

    def __init__(
        self,
        registry: ProviderRegistry,
        store: SessionStore,
        credentials: CredentialStore,
    ):
        self.registry = registry
        self.store = store
        self.credentials = credentials
        self.orchestrator = ChatOrchestrator(store, registry, credentials)
        self.dispatcher = BroadcastDispatcher(self.orchestrator)
        self.validator = KeyValidator(registry)
        self.key_statuses: Dict[str, KeyStatus] = {}

    # Catalog

    @property
    def providers(self) -> Tuple[ProviderDescriptor, ...]:
        return tuple(self.registry)

    # Sessions

    @property
    def sessions(self) -> Tuple[Session, ...]:
        return self.store.sessions

    def get_session(self, session_id: int) -> Session:
        return self.store.get(session_id)

    def subscribe(self, listener: Callable[[Tuple[Session, ...]], None]) -> Callable[[], None]:
        return self.store.subscribe(listener)

    def create_session(self) -> Optional[Session]:
        return self.store.create()

    def remove_session(self, session_id: int) -> bool:
        return self.store.remove(session_id)

    def update_session(self, session_id: int, **fields) -> Session:
        return self.store.update(session_id, **fields)

    def clear_session(self, session_id: int) -> Session:
        return self.store.clear(session_id)

    # Messaging

    @property
    def send_mode(self) -> SendMode:
        return self.dispatcher.mode

    def set_send_mode(self, mode) -> SendMode:
        return self.dispatcher.set_mode(mode)

    async def send_message(self, session_id: int, text: str) -> Optional[Message]:
        return await self.orchestrator.send_message(session_id, text)

    async def broadcast_message(self, text: str) -> Dict[int, Optional[Message]]:
        return await self.dispatcher.dispatch(text)

    # Credentials

    def save_credentials(self, credentials: Mapping[str, str]) -> List[int]:
        """Persist keys; stale test results for those providers are dropped

        Returns:
            list[int]: Ids of sessions whose invalid-credential flag was cleared
        """
        for provider_id in credentials:
            self.key_statuses.pop(provider_id, None)
        return self.orchestrator.save_credentials(credentials)

    async def test_credential(
        self, provider_id: str, credential: Optional[str] = None
    ) -> KeyStatus:
        """Test a key (the stored one when credential is omitted) and record the result"""
        if credential is None:
            credential = self.credentials.get(provider_id)
        status = await self.validator.test(provider_id, credential)
        self.key_statuses[provider_id] = status
        return status


def create_panel(
    config: Optional[AppConfig] = None,
    kv_store: Optional[KeyValueStore] = None,
    http_client: Optional[httpx.AsyncClient] = None,
    registry: Optional[ProviderRegistry] = None,
) -> ChatPanel:
    """Build a ChatPanel from configuration

    Args:
        config: Configuration (defaults to the global configuration)
        kv_store: Credential persistence (defaults to the JSON credentials file)
        http_client: HTTP client shared by the default adapters
        registry: Provider registry (defaults to every supported provider)

    Returns:
        ChatPanel
    """
    if config is None:
        config = get_config()
    if kv_store is None:
        kv_store = JsonFileKeyValueStore(config.credentials_path)
    if registry is None:
        registry = create_default_registry(http_client)

    env_keys = config.api_keys()
    if env_keys:
        logger.info("Using API keys from environment for %s", ", ".join(sorted(env_keys)))
    credentials = CredentialStore(kv_store, fallback=env_keys)

    store = SessionStore(registry, initial_count=config.initial_session_count)
    return ChatPanel(registry, store, credentials)
