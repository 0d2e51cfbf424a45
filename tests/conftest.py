"""Shared test fixtures and configuration."""

from __future__ import annotations

import pytest

from chat_sessions.config import Settings, get_settings
from chat_sessions.sessions.chat_session import ChatSession
from tests.helpers import EchoTool, SubmitTool


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch):
    """Run every test without CHAT_* overrides and with fresh cached settings."""
    for var in ["CHAT_RUN_LOOP_LIMIT", "CHAT_DEBUG"]:
        monkeypatch.delenv(var, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings() -> Settings:
    return Settings(CHAT_RUN_LOOP_LIMIT=10, CHAT_DEBUG=False)


@pytest.fixture
def session(settings: Settings) -> ChatSession:
    return ChatSession(settings=settings)


@pytest.fixture
def echo_tool() -> EchoTool:
    return EchoTool()


@pytest.fixture
def submit_tool() -> SubmitTool:
    return SubmitTool()
