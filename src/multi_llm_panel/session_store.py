"""Session store - owner of the collection of chat sessions

All mutations are synchronous and replace whole Session values, so on a
single event loop every operation is one atomic step: nothing here awaits.
"""

import itertools
import logging
from dataclasses import replace
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from .errors import SessionNotFoundError, UnsupportedProviderError
from .models import Message, Session
from .providers.registry import ProviderRegistry

logger = logging.getLogger(__name__)

MIN_SESSIONS = 1
MAX_SESSIONS = 8

# Fields a caller may change through update()
UPDATABLE_FIELDS = frozenset({"provider_id", "model_id", "system_prompt", "is_credential_invalid"})

Listener = Callable[[Tuple[Session, ...]], None]


class SessionStore:
    """Ordered collection of sessions bounded to [1, 8]

    Attributes:
        registry: Provider catalog used for default assignment and validation
        max_sessions: Upper bound on the number of sessions
    """

    def __init__(
        self,
        registry: ProviderRegistry,
        initial_count: int = 2,
        max_sessions: int = MAX_SESSIONS,
    ):
        if len(registry) == 0:
            raise ValueError("At least one provider must be registered")
        if not MIN_SESSIONS <= max_sessions <= MAX_SESSIONS:
            raise ValueError(f"max_sessions must be within [{MIN_SESSIONS}, {MAX_SESSIONS}]")

        self.registry = registry
        self.max_sessions = max_sessions
        self._sessions: Dict[int, Session] = {}
        self._ids = itertools.count(1)
        self._listeners: List[Listener] = []

        initial_count = max(MIN_SESSIONS, min(initial_count, max_sessions))
        for _ in range(initial_count):
            self.create()

    # Read access

    @property
    def sessions(self) -> Tuple[Session, ...]:
        return tuple(self._sessions.values())

    @property
    def ids(self) -> Tuple[int, ...]:
        return tuple(self._sessions)

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id) -> bool:
        return session_id in self._sessions

    def get(self, session_id: int) -> Session:
        """Return a session

        Raises:
            SessionNotFoundError: If no session has this id
        """
        try:
            return self._sessions[session_id]
        except KeyError:
            raise SessionNotFoundError(session_id) from None

    # Observer

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener called with all sessions after every mutation

        Returns:
            Callable that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        snapshot = self.sessions
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Session listener %r failed", listener)

    def _put(self, session: Session) -> Session:
        self._sessions[session.id] = session
        self._notify()
        return session

    # Collection operations

    def _pick_provider(self) -> str:
        """First catalog provider not used by any session, else the first provider"""
        in_use = {session.provider_id for session in self._sessions.values()}
        for provider_id in self.registry.provider_ids:
            if provider_id not in in_use:
                return provider_id
        return self.registry.provider_ids[0]

    def create(self) -> Optional[Session]:
        """Create a session on the first unused provider

        Returns:
            The new session, or None when the store is full
        """
        if len(self._sessions) >= self.max_sessions:
            logger.debug("Session limit (%d) reached, not creating", self.max_sessions)
            return None

        provider_id = self._pick_provider()
        session = Session(
            id=next(self._ids),
            provider_id=provider_id,
            model_id=self.registry.get(provider_id).default_model,
        )
        logger.info("Created session %d (%s/%s)", session.id, provider_id, session.model_id)
        return self._put(session)

    def remove(self, session_id: int) -> bool:
        """Delete a session unless it is the last one

        Returns:
            bool: True if the session was removed
        """
        self.get(session_id)
        if len(self._sessions) <= MIN_SESSIONS:
            logger.debug("Refusing to remove the last session %d", session_id)
            return False

        del self._sessions[session_id]
        logger.info("Removed session %d", session_id)
        self._notify()
        return True

    def update(self, session_id: int, **fields) -> Session:
        """Merge fields into a session

        Changing provider_id resets model_id to the new provider's default
        (a model_id given in the same call is kept if it belongs to the new
        provider) and clears is_credential_invalid.

        Raises:
            ValueError: Unknown field or a model outside the provider's catalog
            UnsupportedProviderError: Unknown provider
        """
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update session fields: {', '.join(sorted(unknown))}")

        session = self.get(session_id)
        changes = dict(fields)

        provider_id = changes.get("provider_id", session.provider_id)
        if provider_id not in self.registry:
            raise UnsupportedProviderError(provider_id)

        if provider_id != session.provider_id:
            requested_model = changes.get("model_id")
            if not self.registry.has_model(provider_id, requested_model):
                changes["model_id"] = self.registry.get(provider_id).default_model
            changes["is_credential_invalid"] = False

        model_id = changes.get("model_id", session.model_id)
        if not self.registry.has_model(provider_id, model_id):
            raise ValueError(f"Model '{model_id}' is not offered by provider '{provider_id}'")

        if "system_prompt" in changes and changes["system_prompt"] is None:
            changes["system_prompt"] = ""

        return self._put(replace(session, **changes))

    def clear(self, session_id: int) -> Session:
        """Empty the message log of one session

        While a request is in flight the pending user message is kept, so the
        reply still lands next to the message it answers.
        """
        session = self.get(session_id)
        kept = session.messages[-1:] if session.is_loading else ()
        return self._put(replace(session, messages=kept))

    # Request lifecycle (used by the orchestrator)

    def begin_request(self, session_id: int, user_message: Message) -> Session:
        """Append the outgoing user message and mark the session loading"""
        session = self.get(session_id)
        return self._put(
            replace(session, messages=session.messages + (user_message,), is_loading=True)
        )

    def complete_request(
        self, session_id: int, reply: Message, credential_invalid: Optional[bool] = None
    ) -> Session:
        """Append the reply and clear loading

        Args:
            credential_invalid: New value of is_credential_invalid, or None to keep it
        """
        session = self.get(session_id)
        changes = {"messages": session.messages + (reply,), "is_loading": False}
        if credential_invalid is not None:
            changes["is_credential_invalid"] = credential_invalid
        return self._put(replace(session, **changes))

    def append_exchange(self, session_id: int, user_message: Message, reply: Message) -> Session:
        """Append a user message and its reply in one step"""
        session = self.get(session_id)
        return self._put(replace(session, messages=session.messages + (user_message, reply)))

    def clear_credential_flags(self, provider_ids: Iterable[str]) -> List[int]:
        """Clear is_credential_invalid for sessions on the given providers

        Returns:
            list[int]: Ids of sessions whose flag was cleared
        """
        targets = set(provider_ids)
        cleared = []
        for session in self.sessions:
            if session.provider_id in targets and session.is_credential_invalid:
                self._sessions[session.id] = replace(session, is_credential_invalid=False)
                cleared.append(session.id)
        if cleared:
            logger.info("Cleared invalid-credential flag on sessions %s", cleared)
            self._notify()
        return cleared
