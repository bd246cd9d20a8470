"""Data model for chat sessions

Messages and sessions are immutable values. The session store replaces a
session as a whole on every mutation, so a snapshot handed to a listener or
to an adapter never changes underneath it.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Tuple

from .errors import ErrorKind


class Role(str, Enum):
    """Author of a message"""

    USER = "user"
    ASSISTANT = "assistant"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Message:
    """One entry of a session log

    Attributes:
        role: USER or ASSISTANT
        content: Message text
        timestamp: Creation time (UTC)
        error_kind: Set when the message explains a classified failure
    """

    role: Role
    content: str
    timestamp: datetime = field(default_factory=_utcnow)
    error_kind: Optional[ErrorKind] = None

    @classmethod
    def user(cls, content: str) -> "Message":
        return cls(role=Role.USER, content=content)

    @classmethod
    def assistant(cls, content: str) -> "Message":
        return cls(role=Role.ASSISTANT, content=content)

    @classmethod
    def failure(cls, content: str, error_kind: ErrorKind) -> "Message":
        """Assistant-role message carrying a failure explanation"""
        return cls(role=Role.ASSISTANT, content=content, error_kind=error_kind)

    @property
    def is_error(self) -> bool:
        return self.error_kind is not None


@dataclass(frozen=True)
class Session:
    """One chat thread bound to a provider/model pair"""

    id: int
    provider_id: str
    model_id: str
    messages: Tuple[Message, ...] = ()
    system_prompt: str = ""
    is_loading: bool = False
    is_credential_invalid: bool = False

    @property
    def last_message(self) -> Optional[Message]:
        return self.messages[-1] if self.messages else None
