"""Shared pytest fixtures for the Slack bridge test suite."""

from typing import Iterator
from unittest.mock import AsyncMock, MagicMock

import pytest
from slack_sdk.web.async_client import AsyncWebClient

from slack_bridge.client.manager import SlackClientManager
from slack_bridge.settings import reset_settings
from slack_bridge.subscription import MessageEvent, SubscriptionService
from slack_bridge.webhook.app import web_factory
from test.logging.config import setup_test_logging

setup_test_logging()


@pytest.fixture(autouse=True)
def reset_singletons() -> Iterator[None]:
    """Drop the cached web app and settings between tests."""
    web_factory.reset()
    reset_settings()
    yield
    web_factory.reset()
    reset_settings()


@pytest.fixture
def slack_client() -> AsyncMock:
    """A Slack web client whose API methods are async mocks."""
    client = AsyncMock(spec=AsyncWebClient)
    client.chat_postMessage.return_value = {"ok": True, "ts": "200.1"}
    client.conversations_list.return_value = {
        "ok": True,
        "channels": [{"id": "C1", "name": "general"}, {"id": "C2", "name": "ops"}],
        "response_metadata": {"next_cursor": ""},
    }
    client.users_list.return_value = {
        "ok": True,
        "members": [{"id": "U1", "name": "alice"}, {"id": "U2", "name": "bob"}],
        "response_metadata": {"next_cursor": ""},
    }
    client.conversations_info.return_value = {"ok": True, "channel": {"id": "C1", "is_member": True}}
    client.conversations_join.return_value = {"ok": True}
    return client


@pytest.fixture
def client_manager(slack_client: AsyncMock) -> MagicMock:
    """A client manager that always hands out ``slack_client``."""
    manager = MagicMock(spec=SlackClientManager)
    manager.get_client = AsyncMock(return_value=slack_client)
    manager.aclose = AsyncMock()
    return manager


@pytest.fixture
def service(client_manager: MagicMock) -> SubscriptionService:
    return SubscriptionService(client_manager)


@pytest.fixture
def mention_event() -> MessageEvent:
    return MessageEvent(type="app_mention", text="need help please", ts="100.1", channel="C1", user="U1")


@pytest.fixture
def channel_message() -> MessageEvent:
    return MessageEvent(type="message", text="deploy now", ts="100.2", channel="C1", user="U1")
