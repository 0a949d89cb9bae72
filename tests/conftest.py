"""Shared pytest fixtures for chatterm tests."""

import io

import pytest

from chatterm.chat.session import ChatSession
from chatterm.chat.transcript import TranscriptLogger
from chatterm.conversation.store import ConversationStore
from chatterm.providers.base import LLMProvider
from tests.fixtures import CharCounter, KeepOpenStringIO, ScriptedProvider, make_result


@pytest.fixture
def transcript_buffer() -> KeepOpenStringIO:
    return KeepOpenStringIO()


@pytest.fixture
def make_session(transcript_buffer):
    """Factory for sessions wired to in-memory console and transcript."""

    def _make(
        provider: LLMProvider | None = None,
        *,
        system_prompt: str | None = None,
        model: str = "o3-mini",
        **kwargs,
    ) -> ChatSession:
        return ChatSession(
            provider or ScriptedProvider([make_result()]),
            model=model,
            store=ConversationStore(system_prompt),
            counter=kwargs.pop("counter", CharCounter()),
            transcript=TranscriptLogger(transcript_buffer),
            out=kwargs.pop("out", io.StringIO()),
            err=kwargs.pop("err", io.StringIO()),
            **kwargs,
        )

    return _make
