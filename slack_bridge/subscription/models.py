"""Data types for listeners and the Slack events they match.

``MessageEvent`` is the closed, typed form of the ``event`` object inside a
Slack ``event_callback`` envelope. ``MessageListener`` is a single pattern
subscription, either scoped to one channel or to app mentions anywhere.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict

__all__: list[str] = [
    "SlackEventType",
    "EditedInfo",
    "MessageEvent",
    "MessageListener",
]


class SlackEventType(str, Enum):
    """Slack event types the bridge subscribes to."""

    MESSAGE = "message"
    APP_MENTION = "app_mention"

    def __str__(self) -> str:
        return self.value


class EditedInfo(BaseModel):
    """``edited`` metadata attached to a changed message."""

    model_config = ConfigDict(frozen=True, extra="allow")

    user: str
    ts: str


class MessageEvent(BaseModel):
    """A Slack ``message`` or ``app_mention`` event.

    :param type: the event category (``message`` or ``app_mention``)
    :param channel: ID of the channel the event happened in
    :param user: ID of the author
    :param text: the message body that listener patterns are searched in
    :param ts: the Slack timestamp; also the event identifier used to reply or close
    :param subtype: set for edits, bot messages, joins and the like
    :param edited: edit metadata, unused by matching

    Unknown Slack fields are kept so the forwarded payload mirrors what Slack sent.
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    type: str
    channel: str
    user: str
    text: str
    ts: str
    subtype: Optional[str] = None
    edited: Optional[EditedInfo] = None

    @property
    def event_id(self) -> str:
        """Identifier used by the retention set."""
        return self.ts

    def payload(self) -> Dict[str, Any]:
        """JSON-ready representation forwarded to the runtime."""
        return self.model_dump(mode="json", exclude_none=True)


@dataclass(frozen=True, slots=True)
class MessageListener:
    """A registered pattern subscription.

    A listener is either channel-scoped (``channel`` set, ``mention`` false) or
    mention-scoped (``mention`` true, ``channel`` None). Use :meth:`for_channel`
    and :meth:`for_mentions` rather than building one by hand.
    """

    subscription_id: str
    pattern: re.Pattern[str]
    channel: Optional[str] = None
    mention: bool = False

    def __post_init__(self) -> None:
        if self.mention and self.channel is not None:
            raise ValueError("A mention listener cannot be scoped to a channel")
        if not self.mention and not self.channel:
            raise ValueError("A message listener requires a channel")

    @classmethod
    def for_channel(cls, subscription_id: str, channel: str, pattern: str | re.Pattern[str]) -> MessageListener:
        """Build a listener for plain messages in ``channel``."""
        return cls(subscription_id=subscription_id, pattern=_compile(pattern), channel=channel)

    @classmethod
    def for_mentions(cls, subscription_id: str, pattern: str | re.Pattern[str]) -> MessageListener:
        """Build a listener for app mentions in any channel."""
        return cls(subscription_id=subscription_id, pattern=_compile(pattern), mention=True)


def _compile(pattern: str | re.Pattern[str]) -> re.Pattern[str]:
    if isinstance(pattern, re.Pattern):
        return pattern
    return re.compile(pattern)
