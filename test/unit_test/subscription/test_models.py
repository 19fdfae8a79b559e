"""Unit tests for listener and event models."""

import re

import pytest
from pydantic import ValidationError

from slack_bridge.subscription.models import EditedInfo, MessageEvent, MessageListener, SlackEventType


class TestMessageListener:
    def test_for_channel_compiles_pattern(self):
        listener = MessageListener.for_channel("s1", "C1", r"deploy\s+\w+")

        assert listener.channel == "C1"
        assert listener.mention is False
        assert isinstance(listener.pattern, re.Pattern)
        assert listener.pattern.pattern == r"deploy\s+\w+"

    def test_for_mentions_has_no_channel(self):
        listener = MessageListener.for_mentions("s1", "help")

        assert listener.mention is True
        assert listener.channel is None

    def test_precompiled_pattern_is_reused(self):
        pattern = re.compile("help", re.IGNORECASE)

        listener = MessageListener.for_mentions("s1", pattern)

        assert listener.pattern is pattern

    def test_mention_listener_cannot_have_channel(self):
        with pytest.raises(ValueError):
            MessageListener(subscription_id="s1", pattern=re.compile("x"), channel="C1", mention=True)

    def test_message_listener_requires_channel(self):
        with pytest.raises(ValueError):
            MessageListener(subscription_id="s1", pattern=re.compile("x"))

    def test_invalid_pattern_raises(self):
        with pytest.raises(re.error):
            MessageListener.for_mentions("s1", "(unclosed")

    def test_listener_is_immutable(self):
        listener = MessageListener.for_mentions("s1", "help")

        with pytest.raises(AttributeError):
            listener.subscription_id = "s2"  # type: ignore[misc]


class TestMessageEvent:
    def test_required_fields(self):
        with pytest.raises(ValidationError):
            MessageEvent.model_validate({"type": "message", "channel": "C1", "ts": "1.0"})

    def test_optional_fields_default_to_none(self, channel_message):
        assert channel_message.subtype is None
        assert channel_message.edited is None
        assert channel_message.event_id == "100.2"

    def test_edited_metadata_is_parsed(self):
        event = MessageEvent.model_validate(
            {
                "type": "message",
                "channel": "C1",
                "user": "U1",
                "text": "fixed",
                "ts": "1.0",
                "edited": {"user": "U1", "ts": "2.0"},
            }
        )

        assert event.edited == EditedInfo(user="U1", ts="2.0")

    def test_payload_keeps_extra_slack_fields(self):
        event = MessageEvent.model_validate(
            {
                "type": "app_mention",
                "channel": "C1",
                "user": "U1",
                "text": "<@B1> hi",
                "ts": "1.0",
                "event_ts": "1.0",
                "team": "T1",
            }
        )

        payload = event.payload()

        assert payload["team"] == "T1"
        assert payload["event_ts"] == "1.0"
        assert "subtype" not in payload

    def test_event_type_enum_compares_to_strings(self):
        assert SlackEventType.APP_MENTION == "app_mention"
        assert str(SlackEventType.MESSAGE) == "message"
