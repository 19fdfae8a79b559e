"""Subscription service: the façade used by the HTTP layer.

The service owns a listener registry, an event retention set and the matching
engine tying them together. It also performs the Slack-side work of the
public operations (channel resolution, joining, posting).

Each instance holds its own state; nothing here is a process-wide singleton.

Concurrency
===========
The service runs on one asyncio event loop. Registry and retention mutations
contain no ``await`` and are therefore atomic with respect to other requests.
Network calls (credentials, directory, join, post) all happen before the
mutation they lead to, never while a structure is half-updated.

Examples
--------
.. code-block:: python

    service = SubscriptionService(client_manager)
    service.on_subscription = forwarder.notify

    await service.add_mention_listener("app-1", "sub-1", r"help")
    service.handle_event(MessageEvent(type="app_mention", channel="C1", user="U1", text="help", ts="1.0"))
    await service.reply("app-1", "1.0", "On it")
"""

from __future__ import annotations

import logging
import re
from typing import Final, Optional

from slack_bridge.client.directory import (
    SLACK_CALL_ERRORS,
    describe_error,
    ensure_member,
    is_user_name,
    resolve_name,
)
from slack_bridge.client.manager import SlackClientManager

from .matcher import MatchingEngine, NotificationCallback
from .models import MessageEvent, MessageListener
from .registry import ListenerRegistry
from .retention import EventRetentionSet

__all__: list[str] = ["SubscriptionService"]

_LOG: Final[logging.Logger] = logging.getLogger(__name__)


class SubscriptionService:
    """Registers listeners, matches events and talks back to Slack.

    Parameters
    ----------
    clients : SlackClientManager
        Builds an authenticated Slack client per app ID
    registry : Optional[ListenerRegistry]
        Listener storage; a fresh one when omitted
    retention : Optional[EventRetentionSet]
        Retained-event storage; a fresh unbounded one when omitted
    """

    def __init__(
        self,
        clients: SlackClientManager,
        registry: Optional[ListenerRegistry] = None,
        retention: Optional[EventRetentionSet] = None,
    ) -> None:
        self._clients = clients
        self._registry = registry if registry is not None else ListenerRegistry()
        self._events = retention if retention is not None else EventRetentionSet()
        self._engine = MatchingEngine(self._registry, self._events)

    @property
    def listeners(self) -> ListenerRegistry:
        return self._registry

    @property
    def events(self) -> EventRetentionSet:
        return self._events

    @property
    def on_subscription(self) -> NotificationCallback:
        return self._engine.on_match

    @on_subscription.setter
    def on_subscription(self, callback: Optional[NotificationCallback]) -> None:
        """Set the callback invoked with ``(listener, event)`` for every match."""
        self._engine.on_match = callback

    def handle_event(self, event: MessageEvent) -> Optional[MessageListener]:
        """Inbound hook for events delivered by the webhook."""
        return self._engine.dispatch(event)

    async def add_message_listener(self, app_id: str, subscription_id: str, channel_name: str, pattern: str) -> bool:
        """Listen for plain messages matching ``pattern`` in ``channel_name``.

        The channel is resolved through the Slack directory and joined when the
        bot is not yet a member. Nothing is registered when the name cannot be
        resolved.

        Returns
        -------
        bool
            True when the listener was registered

        Raises
        ------
        re.error
            If ``pattern`` is not a valid regular expression
        """
        compiled = re.compile(pattern)

        client = await self._clients.get_client(app_id)
        try:
            channel = await resolve_name(client, channel_name)
        except SLACK_CALL_ERRORS as e:
            _LOG.error(f"Directory lookup for '{channel_name}' failed: {describe_error(e)}")
            return False

        if channel is None:
            _LOG.warning(f"Listener {subscription_id} not registered: unknown channel '{channel_name}'")
            return False

        if not is_user_name(channel_name):
            await ensure_member(client, channel)

        self._registry.add(MessageListener.for_channel(subscription_id, channel, compiled))
        _LOG.info(f"Registered message listener {subscription_id} on {channel_name} ({channel})")
        return True

    def remove_message_listener(self, subscription_id: str) -> bool:
        removed = self._registry.remove(subscription_id)
        _LOG.info(f"Removed message listener {subscription_id}" if removed else f"No listener {subscription_id} to remove")
        return removed

    async def add_mention_listener(self, app_id: str, subscription_id: str, pattern: str) -> bool:
        """Listen for app mentions matching ``pattern`` in any channel.

        ``app_id`` is accepted for symmetry with the other operations; no Slack
        call is needed.
        """
        self._registry.add(MessageListener.for_mentions(subscription_id, pattern))
        _LOG.info(f"Registered mention listener {subscription_id} for app {app_id}")
        return True

    def remove_mention_listener(self, subscription_id: str) -> bool:
        removed = self._registry.remove(subscription_id)
        _LOG.info(f"Removed mention listener {subscription_id}" if removed else f"No listener {subscription_id} to remove")
        return removed

    def remove_event(self, event_id: str) -> bool:
        """Close a retained event.

        Returns
        -------
        bool
            False when no event was retained under ``event_id``
        """
        removed = self._events.remove(event_id)
        if removed:
            _LOG.info(f"Closed event {event_id}")
        else:
            _LOG.debug(f"No retained event {event_id} to close")
        return removed

    async def send_message(self, app_id: str, channel_name: str, text: str) -> bool:
        """Post ``text`` as a new message to a channel or ``@user``.

        Returns
        -------
        bool
            True when Slack accepted the message
        """
        client = await self._clients.get_client(app_id)
        try:
            channel = await resolve_name(client, channel_name)
            if channel is None:
                return False
            response = await client.chat_postMessage(channel=channel, text=text)
        except SLACK_CALL_ERRORS as e:
            _LOG.error(f"Sending message to '{channel_name}' failed: {describe_error(e)}")
            return False
        return bool(response.get("ok"))

    async def reply(self, app_id: str, event_id: str, text: str) -> bool:
        """Post ``text`` in the thread of a retained event.

        Returns
        -------
        bool
            False when the event is not retained or Slack rejected the reply
        """
        event = self._events.find(event_id)
        if event is None:
            _LOG.warning(f"Cannot reply to unknown event {event_id}")
            return False

        client = await self._clients.get_client(app_id)
        try:
            response = await client.chat_postMessage(channel=event.channel, thread_ts=event.ts, text=text)
        except SLACK_CALL_ERRORS as e:
            _LOG.error(f"Reply to event {event_id} failed: {describe_error(e)}")
            return False
        return bool(response.get("ok"))
