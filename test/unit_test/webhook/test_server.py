"""Unit tests for the bridge routes of the FastAPI app."""

import asyncio
import json
import time
from typing import Any, Dict, List, Tuple

import aiohttp
import pytest
from fastapi.testclient import TestClient
from slack_sdk.errors import SlackApiError
from slack_sdk.signature import SignatureVerifier

from slack_bridge.subscription import MessageEvent, MessageListener, SubscriptionService
from slack_bridge.webhook.server import SLACK_EVENTS_PATH, create_slack_app

SIGNING_SECRET = "test-signing-secret"


def _signed_headers(body: str, secret: str = SIGNING_SECRET) -> Dict[str, str]:
    timestamp = str(int(time.time()))
    signature = SignatureVerifier(secret).generate_signature(timestamp=timestamp, body=body)
    return {
        "X-Slack-Request-Timestamp": timestamp,
        "X-Slack-Signature": signature,
        "Content-Type": "application/json",
    }


def _event_callback(event: Dict[str, Any]) -> str:
    return json.dumps({"type": "event_callback", "team_id": "T1", "event_id": "Ev1", "event": event})


@pytest.fixture
def matches(service: SubscriptionService) -> List[Tuple[MessageListener, MessageEvent]]:
    recorded: List[Tuple[MessageListener, MessageEvent]] = []
    service.on_subscription = lambda listener, event: recorded.append((listener, event))
    return recorded


@pytest.fixture
def client(service: SubscriptionService) -> TestClient:
    return TestClient(create_slack_app(service, signing_secret=SIGNING_SECRET))


def _post_event(client: TestClient, body: str):
    return client.post(SLACK_EVENTS_PATH, content=body, headers=_signed_headers(body))


class TestSlackEvents:
    def test_url_verification_returns_challenge(self, client):
        body = json.dumps({"type": "url_verification", "challenge": "abc123", "token": "t"})

        response = _post_event(client, body)

        assert response.status_code == 200
        assert response.json() == {"challenge": "abc123"}

    def test_invalid_signature_is_rejected(self, client, service, matches):
        service.listeners.add(MessageListener.for_mentions("s1", "help"))
        body = _event_callback({"type": "app_mention", "text": "help", "ts": "1.0", "channel": "C1", "user": "U1"})
        headers = _signed_headers(body, secret="someone-else")

        response = client.post(SLACK_EVENTS_PATH, content=body, headers=headers)

        assert response.status_code == 401
        assert matches == []

    def test_missing_signature_headers_are_rejected(self, client):
        response = client.post(SLACK_EVENTS_PATH, content="{}")

        assert response.status_code == 401

    def test_empty_signing_secret_rejects_everything(self, service):
        client = TestClient(create_slack_app(service, signing_secret=""))
        body = json.dumps({"type": "url_verification", "challenge": "abc"})

        response = client.post(SLACK_EVENTS_PATH, content=body, headers=_signed_headers(body))

        assert response.status_code == 401

    def test_non_json_body_is_rejected(self, client):
        response = _post_event(client, "not-json")

        assert response.status_code == 400

    def test_mention_is_matched_and_retained(self, client, service, matches):
        service.listeners.add(MessageListener.for_mentions("s1", "help"))
        body = _event_callback(
            {"type": "app_mention", "text": "<@B1> help me", "ts": "100.1", "channel": "C1", "user": "U1"}
        )

        response = _post_event(client, body)

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}
        ((listener, event),) = matches
        assert listener.subscription_id == "s1"
        assert event.text == "<@B1> help me"
        assert "100.1" in service.events

    def test_channel_message_is_matched(self, client, service, matches):
        service.listeners.add(MessageListener.for_channel("s1", "C1", "deploy"))
        body = _event_callback({"type": "message", "text": "deploy now", "ts": "100.2", "channel": "C1", "user": "U1"})

        _post_event(client, body)

        assert [listener.subscription_id for listener, _ in matches] == ["s1"]

    def test_message_subtypes_are_not_matched(self, client, service, matches):
        service.listeners.add(MessageListener.for_channel("s1", "C1", "deploy"))
        body = _event_callback(
            {
                "type": "message",
                "subtype": "message_changed",
                "text": "deploy now",
                "ts": "100.3",
                "channel": "C1",
                "user": "U1",
            }
        )

        response = _post_event(client, body)

        assert response.status_code == 200
        assert matches == []

    def test_incomplete_event_is_acknowledged(self, client, matches):
        body = _event_callback({"type": "message", "subtype": "message_deleted", "channel": "C1", "ts": "1.0"})

        response = _post_event(client, body)

        assert response.status_code == 200
        assert matches == []

    def test_other_event_types_are_ignored(self, client, service, matches):
        service.listeners.add(MessageListener.for_mentions("s1", ".*"))
        body = _event_callback({"type": "reaction_added", "user": "U1", "reaction": "tada"})

        response = _post_event(client, body)

        assert response.status_code == 200
        assert matches == []

    def test_unsupported_payload_is_acknowledged(self, client):
        body = json.dumps({"type": "app_rate_limited"})

        response = _post_event(client, body)

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}


class TestSubscriptionApi:
    def test_hears_registers_channel_listener(self, client, service, slack_client):
        response = client.post(
            "/hears", json={"appID": "app-1", "subscriptionID": "s1", "channel": "#general", "pattern": "deploy"}
        )

        assert response.status_code == 200
        assert response.json() == {"ok": True}
        (listener,) = list(service.listeners)
        assert listener.channel == "C1"

    def test_hears_unknown_channel(self, client, service):
        response = client.post(
            "/hears", json={"appID": "app-1", "subscriptionID": "s1", "channel": "#nope", "pattern": "deploy"}
        )

        assert response.status_code == 200
        assert response.json() == {"ok": False}
        assert len(service.listeners) == 0

    def test_hears_invalid_pattern(self, client, service, slack_client):
        response = client.post(
            "/hears", json={"appID": "app-1", "subscriptionID": "s1", "channel": "#general", "pattern": "("}
        )

        assert response.json() == {"ok": False}
        slack_client.conversations_list.assert_not_awaited()

    def test_hears_missing_field_is_unprocessable(self, client):
        response = client.post("/hears", json={"appID": "app-1", "subscriptionID": "s1"})

        assert response.status_code == 422

    def test_unhears(self, client, service):
        service.listeners.add(MessageListener.for_channel("s1", "C1", "x"))

        assert client.post("/unhears", json={"subscriptionID": "s1"}).json() == {"ok": True}
        assert client.post("/unhears", json={"subscriptionID": "s1"}).json() == {"ok": False}

    def test_receives_and_unreceives(self, client, service):
        response = client.post("/receives", json={"appID": "app-1", "subscriptionID": "s2", "pattern": "help"})

        assert response.json() == {"ok": True}
        assert [listener.mention for listener in service.listeners] == [True]
        assert client.post("/unreceives", json={"subscriptionID": "s2"}).json() == {"ok": True}
        assert len(service.listeners) == 0

    def test_receives_invalid_pattern(self, client, service):
        response = client.post("/receives", json={"appID": "app-1", "subscriptionID": "s2", "pattern": "[a-"})

        assert response.json() == {"ok": False}
        assert len(service.listeners) == 0

    @pytest.mark.parametrize("path", ["/hears/reply", "/receives/reply"])
    def test_reply_threads_under_retained_event(self, client, service, slack_client, mention_event, path):
        service.events.insert(mention_event)

        response = client.post(path, json={"appID": "app-1", "eventID": "100.1", "text": "on it"})

        assert response.json() == {"ok": True}
        slack_client.chat_postMessage.assert_awaited_once_with(channel="C1", thread_ts="100.1", text="on it")

    def test_reply_to_unknown_event(self, client, slack_client):
        response = client.post("/hears/reply", json={"appID": "app-1", "eventID": "9.9", "text": "hi"})

        assert response.json() == {"ok": False}
        slack_client.chat_postMessage.assert_not_awaited()

    @pytest.mark.parametrize("path", ["/hears/close", "/receives/close"])
    def test_close_forgets_event(self, client, service, mention_event, path):
        service.events.insert(mention_event)

        assert client.post(path, json={"eventID": "100.1"}).json() == {"ok": True}
        assert client.post(path, json={"eventID": "100.1"}).json() == {"ok": False}
        assert "100.1" not in service.events

    def test_send_to_user(self, client, slack_client):
        response = client.post("/send", json={"appID": "app-1", "channel": "@bob", "text": "hello"})

        assert response.json() == {"ok": True}
        slack_client.chat_postMessage.assert_awaited_once_with(channel="U2", text="hello")

    def test_send_slack_failure(self, client, slack_client):
        slack_client.chat_postMessage.side_effect = SlackApiError("not_in_channel", {"ok": False})

        response = client.post("/send", json={"appID": "app-1", "channel": "#ops", "text": "hello"})

        assert response.status_code == 200
        assert response.json() == {"ok": False}


class TestSlackUnavailable:
    @pytest.fixture
    def client(self, service: SubscriptionService) -> TestClient:
        return TestClient(create_slack_app(service, signing_secret=SIGNING_SECRET), raise_server_exceptions=False)

    def test_send_when_slack_unreachable(self, client, slack_client):
        slack_client.chat_postMessage.side_effect = aiohttp.ClientConnectionError("Cannot connect to host slack.com")

        response = client.post("/send", json={"appID": "app-1", "channel": "#ops", "text": "hello"})

        assert response.status_code == 200
        assert response.json() == {"ok": False}

    def test_hears_when_directory_times_out(self, client, service, slack_client):
        slack_client.conversations_list.side_effect = asyncio.TimeoutError()

        response = client.post(
            "/hears", json={"appID": "app-1", "subscriptionID": "s1", "channel": "#general", "pattern": "deploy"}
        )

        assert response.status_code == 200
        assert response.json() == {"ok": False}
        assert len(service.listeners) == 0

    def test_reply_when_slack_times_out(self, client, service, slack_client, mention_event):
        service.events.insert(mention_event)
        slack_client.chat_postMessage.side_effect = asyncio.TimeoutError()

        response = client.post("/hears/reply", json={"appID": "app-1", "eventID": "100.1", "text": "on it"})

        assert response.status_code == 200
        assert response.json() == {"ok": False}


def test_health_reports_counts(client, service, mention_event):
    service.listeners.add(MessageListener.for_mentions("s1", "help"))
    service.events.insert(mention_event)

    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {
        "status": "healthy",
        "service": "slack-bridge",
        "components": {"listeners": 1, "retained_events": 1},
    }


def test_app_keeps_service_on_state(service):
    app = create_slack_app(service, signing_secret=SIGNING_SECRET)

    assert app.state.subscription_service is service
