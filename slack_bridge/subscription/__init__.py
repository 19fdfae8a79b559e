"""Subscription core: listener registry, event retention and matching.

Exports the types and the :class:`SubscriptionService` façade used by the
webhook layer.
"""

from .matcher import MatchingEngine, listener_matches
from .models import EditedInfo, MessageEvent, MessageListener, SlackEventType
from .registry import ListenerRegistry
from .retention import EventRetentionSet
from .service import SubscriptionService

__all__ = [
    "EditedInfo",
    "EventRetentionSet",
    "ListenerRegistry",
    "MatchingEngine",
    "MessageEvent",
    "MessageListener",
    "SlackEventType",
    "SubscriptionService",
    "listener_matches",
]
