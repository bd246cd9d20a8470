"""Tests for Message/Session values and the shared HTTP transport"""

import dataclasses

import pytest

from multi_llm_panel.errors import ErrorKind
from multi_llm_panel.models import Message, Role, Session
from multi_llm_panel.providers.transport import create_http_client


class TestMessage:
    def test_constructors(self):
        assert Message.user("hi").role == Role.USER
        assert Message.assistant("hello").role == Role.ASSISTANT
        assert not Message.assistant("hello").is_error

    def test_failure_is_assistant_role(self):
        message = Message.failure("[System: ...]", ErrorKind.TRANSPORT_FAILURE)
        assert message.role == Role.ASSISTANT
        assert message.is_error
        assert message.timestamp.tzinfo is not None

    def test_immutable(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            Message.user("hi").content = "changed"


def test_session_last_message():
    session = Session(id=1, provider_id="openai", model_id="gpt-4")
    assert session.last_message is None
    reply = Message.assistant("b")
    assert dataclasses.replace(session, messages=(Message.user("a"), reply)).last_message is reply


class TestHttpClient:
    def test_explicit_timeout(self):
        client = create_http_client(timeout_seconds=5)
        assert client.timeout.read == 5

    def test_zero_disables_deadline(self):
        client = create_http_client(timeout_seconds=0)
        assert client.timeout.read is None
        assert client.timeout.connect is None
