"""Matching of inbound Slack events against registered listeners.

Predicate
=========
- Mention listener: the event is an ``app_mention`` and the listener pattern
  is found anywhere in the text.
- Channel listener: the event is a ``message`` without a subtype (edits, bot
  messages and joins carry one), it happened in the listener's channel, and
  the pattern is found anywhere in the text.

No other event type ever matches.

On a match the engine retains the event and then calls the notification
callback once, with the single winning listener.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable, Final, Optional

from .models import MessageEvent, MessageListener, SlackEventType

if TYPE_CHECKING:
    from .registry import ListenerRegistry
    from .retention import EventRetentionSet

__all__: list[str] = [
    "NotificationCallback",
    "listener_matches",
    "MatchingEngine",
]

_LOG: Final[logging.Logger] = logging.getLogger(__name__)

NotificationCallback = Callable[[MessageListener, MessageEvent], None]


def listener_matches(listener: MessageListener, event: MessageEvent) -> bool:
    """Return whether ``listener`` accepts ``event``."""
    if listener.mention:
        return event.type == SlackEventType.APP_MENTION and listener.pattern.search(event.text) is not None

    if listener.channel is not None:
        return (
            event.type == SlackEventType.MESSAGE
            and not event.subtype
            and event.channel == listener.channel
            and listener.pattern.search(event.text) is not None
        )

    return False


def _noop(_listener: MessageListener, _event: MessageEvent) -> None:
    return None


class MatchingEngine:
    """Routes an event to at most one listener.

    Parameters
    ----------
    registry : ListenerRegistry
        Listeners consulted in registration order
    retention : EventRetentionSet
        Where matched events are kept for later reply/close
    on_match : Optional[NotificationCallback]
        Called with ``(listener, event)`` after the event is retained
    """

    def __init__(
        self,
        registry: ListenerRegistry,
        retention: EventRetentionSet,
        on_match: Optional[NotificationCallback] = None,
    ) -> None:
        self._registry = registry
        self._retention = retention
        self._on_match: NotificationCallback = on_match or _noop

    @property
    def on_match(self) -> NotificationCallback:
        return self._on_match

    @on_match.setter
    def on_match(self, callback: Optional[NotificationCallback]) -> None:
        self._on_match = callback or _noop

    def dispatch(self, event: MessageEvent) -> Optional[MessageListener]:
        """Match ``event``, retain it and notify.

        A failing callback is logged and does not undo the retention.

        Returns
        -------
        Optional[MessageListener]
            The matched listener, or None when nothing matched
        """
        listener = self._registry.find_match(event)
        if listener is None:
            _LOG.debug(f"No listener for {event.type} event {event.ts} in {event.channel}")
            return None

        self._retention.insert(event)
        _LOG.info(f"Event {event.ts} ({event.type}) matched subscription {listener.subscription_id}")

        try:
            self._on_match(listener, event)
        except Exception as e:
            _LOG.exception(f"Notification callback failed for subscription {listener.subscription_id}: {e}")
        return listener
