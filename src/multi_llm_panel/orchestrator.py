"""ChatOrchestrator - coordinates a single send for one session

This module ties the session store, the provider registry and the credential
store together. Every failure of a provider call ends up as an assistant-role
message in the session's own log; apart from cancellation, nothing raised by an
adapter escapes send_message.
"""

import asyncio
import logging
from typing import List, Mapping, Optional

from .credentials import CredentialStore
from .errors import (
    AuthFailureError,
    ChatError,
    MissingCredentialError,
    ProviderError,
    TransportFailureError,
)
from .models import Message
from .providers.registry import ProviderRegistry
from .session_store import SessionStore

logger = logging.getLogger(__name__)


class ChatOrchestrator:
    """Business logic for sending messages

    Attributes:
        store: Session store holding all sessions
        registry: Provider registry used to find adapters
        credentials: Credential store read on every send
    """

    def __init__(
        self,
        store: SessionStore,
        registry: ProviderRegistry,
        credentials: CredentialStore,
    ):
        self.store = store
        self.registry = registry
        self.credentials = credentials

    def _failure_message(self, error: ChatError) -> Message:
        display_name = self.registry.display_name(error.provider_id)
        return Message.failure(error.describe(display_name), error.kind)

    async def send_message(self, session_id: int, text: str) -> Optional[Message]:
        """Send a user message to the session's provider

        The user message and exactly one reply (assistant text or failure
        explanation) are appended to the session log.

        Args:
            session_id: Target session
            text: Message text; blank text is ignored

        Returns:
            The appended reply, or None when nothing was sent

        Raises:
            SessionNotFoundError: If session_id does not exist
        """
        if not text or not text.strip():
            return None

        session = self.store.get(session_id)
        if session.is_loading:
            logger.warning("Session %d already has a request in flight; send rejected", session_id)
            return None

        user_message = Message.user(text)
        provider_id = session.provider_id

        credential = self.credentials.get(provider_id)
        if not credential:
            error = MissingCredentialError(provider_id)
            logger.info("Session %d: no API key configured for %s", session_id, provider_id)
            reply = self._failure_message(error)
            self.store.append_exchange(session_id, user_message, reply)
            return reply

        session = self.store.begin_request(session_id, user_message)
        logger.info("Session %d: sending to %s/%s", session_id, provider_id, session.model_id)

        try:
            adapter = self.registry.adapter_for(provider_id)
            text_reply = await adapter.invoke(
                session.messages, session.model_id, session.system_prompt, credential
            )
        except ChatError as e:
            logger.warning("Session %d: %s failure: %s", session_id, e.kind.value, e)
            reply = self._failure_message(e)
            # Only an auth failure sets the sticky flag; other failures leave it alone
            credential_invalid = True if isinstance(e, AuthFailureError) else None
        except asyncio.CancelledError:
            # Keep the user/reply pairing and release the session before propagating
            if session_id in self.store:
                error = TransportFailureError(provider_id, "request cancelled")
                self.store.complete_request(session_id, self._failure_message(error))
            raise
        except Exception as e:
            logger.exception("Session %d: unexpected error from %s", session_id, provider_id)
            reply = self._failure_message(ProviderError(provider_id, str(e) or type(e).__name__))
            credential_invalid = None
        else:
            logger.info("Session %d: received reply from %s", session_id, provider_id)
            reply = Message.assistant(text_reply)
            credential_invalid = False

        if session_id not in self.store:
            logger.info("Session %d was removed while waiting; dropping reply", session_id)
            return None

        # The flag describes the current provider's key; a reply from a provider
        # the session has since moved away from says nothing about it
        if self.store.get(session_id).provider_id != provider_id:
            credential_invalid = None

        self.store.complete_request(session_id, reply, credential_invalid=credential_invalid)
        return reply

    def save_credentials(self, credentials: Mapping[str, str]) -> List[int]:
        """Persist API keys and clear invalid-credential flags they fix

        Args:
            credentials: provider id → secret

        Returns:
            list[int]: Ids of sessions whose invalid-credential flag was cleared
        """
        configured = self.credentials.save(credentials)
        return self.store.clear_credential_flags(configured)
