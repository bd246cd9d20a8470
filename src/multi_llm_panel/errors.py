"""Failure taxonomy for provider calls

Every failure that can happen while sending a message is represented by a
ChatError subclass tagged with an ErrorKind. The orchestrator turns these into
assistant-role messages, so the kind drives both the user-facing explanation
and the sticky invalid-credential flag of a session.
"""

from enum import Enum
from typing import Optional

# Status codes that always mean the credential was rejected
AUTH_STATUS_CODES = frozenset({401, 403})

# Case-insensitive markers in provider error messages that indicate a credential problem.
# Google answers an invalid key with HTTP 400 "API key not valid", for example.
AUTH_MESSAGE_MARKERS = ("api key", "api_key", "apikey", "authentication", "unauthorized")


class ErrorKind(str, Enum):
    """Classification attached to every chat failure"""

    MISSING_CREDENTIAL = "missing_credential"
    AUTH_FAILURE = "auth_failure"
    PROVIDER_ERROR = "provider_error"
    TRANSPORT_FAILURE = "transport_failure"
    UNSUPPORTED_PROVIDER = "unsupported_provider"


class ChatError(Exception):
    """Base class for classified chat failures

    Attributes:
        kind: ErrorKind of this failure
        provider_id: Provider the failure belongs to
        detail: Human-readable detail (the provider's own message when available)
        status_code: HTTP status code if a response was received
    """

    kind = ErrorKind.PROVIDER_ERROR

    def __init__(self, provider_id: str, detail: str = "", status_code: Optional[int] = None):
        super().__init__(detail or self.kind.value)
        self.provider_id = provider_id
        self.detail = detail
        self.status_code = status_code

    def describe(self, display_name: str) -> str:
        """Return the explanation shown to the user in the session log"""
        return f"[System: {display_name} API error - {self.detail}]"


class MissingCredentialError(ChatError):
    """No API key is configured for the provider (detected before any network call)"""

    kind = ErrorKind.MISSING_CREDENTIAL

    def describe(self, display_name: str) -> str:
        return (
            f"[System: API key for {display_name} is not configured. "
            f"Save a key for {display_name} to use this session.]"
        )


class AuthFailureError(ChatError):
    """The provider rejected the API key"""

    kind = ErrorKind.AUTH_FAILURE

    def describe(self, display_name: str) -> str:
        return f"[System: {display_name} rejected the API key - {self.detail}]"


class ProviderError(ChatError):
    """Any other non-success response; detail is the provider's message verbatim"""

    kind = ErrorKind.PROVIDER_ERROR


class TransportFailureError(ChatError):
    """Network-level failure; no response was obtained"""

    kind = ErrorKind.TRANSPORT_FAILURE

    def describe(self, display_name: str) -> str:
        return f"[System: Could not reach {display_name} - {self.detail}]"


class UnsupportedProviderError(ChatError):
    """No adapter is registered for the requested provider"""

    kind = ErrorKind.UNSUPPORTED_PROVIDER

    def __init__(self, provider_id: str, detail: str = ""):
        super().__init__(provider_id, detail or f"Unsupported provider: {provider_id}")

    def describe(self, display_name: str) -> str:
        return f"[System: Provider '{self.provider_id}' is not supported]"


class SessionNotFoundError(KeyError):
    """Raised when a session id does not exist in the session store"""

    def __init__(self, session_id):
        super().__init__(session_id)
        self.session_id = session_id

    def __str__(self):
        return f"Session not found: {self.session_id}"


def is_auth_failure(status_code: Optional[int], message: Optional[str]) -> bool:
    """Check whether a status code / error message pair indicates a credential problem"""
    if status_code in AUTH_STATUS_CODES:
        return True
    if not message:
        return False
    lowered = message.lower()
    return any(marker in lowered for marker in AUTH_MESSAGE_MARKERS)


def classify_failure(provider_id: str, status_code: Optional[int], message: str) -> ChatError:
    """Classify a non-success provider response

    Args:
        provider_id: Provider that produced the response
        status_code: HTTP status code of the response
        message: Error message extracted from the response body

    Returns:
        ChatError: AuthFailureError for credential problems, ProviderError otherwise
    """
    if is_auth_failure(status_code, message):
        return AuthFailureError(provider_id, message, status_code=status_code)
    return ProviderError(provider_id, message, status_code=status_code)
