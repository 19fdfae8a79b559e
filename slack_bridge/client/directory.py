"""Translation of human-readable Slack names into IDs.

``@name`` resolves through the user directory, anything else (with or
without a leading ``#``) through the conversation directory. Both are full
linear scans over every page of the listing and nothing is cached, so each
call reflects the workspace as it is now.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, Final, Optional

import aiohttp
from slack_sdk.errors import SlackApiError, SlackClientError
from slack_sdk.web.async_client import AsyncWebClient

__all__: list[str] = [
    "SLACK_CALL_ERRORS",
    "USER_PREFIX",
    "describe_error",
    "is_user_name",
    "resolve_user",
    "resolve_channel",
    "resolve_name",
    "ensure_member",
]

_LOG: Final[logging.Logger] = logging.getLogger(__name__)

USER_PREFIX: Final[str] = "@"
CHANNEL_PREFIX: Final[str] = "#"
PAGE_SIZE: Final[int] = 200
CONVERSATION_TYPES: Final[str] = "public_channel,private_channel"

# Errors AsyncWebClient raises once its retry handlers give up.
SLACK_CALL_ERRORS: Final[tuple[type[BaseException], ...]] = (
    SlackClientError,
    aiohttp.ClientError,
    asyncio.TimeoutError,
)


def is_user_name(name: str) -> bool:
    return name.startswith(USER_PREFIX)


def describe_error(error: BaseException) -> str:
    """Short log text for one of :data:`SLACK_CALL_ERRORS`."""
    if isinstance(error, SlackApiError):
        return str(error.response.get("error", error))
    return f"{type(error).__name__}: {error}" if str(error) else type(error).__name__


async def _paginate(method: Callable[..., Awaitable[Any]], key: str, **kwargs: Any) -> AsyncIterator[Dict[str, Any]]:
    cursor: Optional[str] = None
    while True:
        params = dict(kwargs, limit=PAGE_SIZE)
        if cursor:
            params["cursor"] = cursor
        response = await method(**params)
        for item in response.get(key) or []:
            yield item
        cursor = (response.get("response_metadata") or {}).get("next_cursor")
        if not cursor:
            return


async def resolve_user(client: AsyncWebClient, name: str) -> Optional[str]:
    """Return the ID of the user whose ``name`` equals ``name``."""
    async for member in _paginate(client.users_list, "members"):
        if member.get("name") == name:
            return member.get("id")
    return None


async def resolve_channel(client: AsyncWebClient, name: str) -> Optional[str]:
    """Return the ID of the public or private channel called ``name``."""
    async for channel in _paginate(client.conversations_list, "channels", types=CONVERSATION_TYPES):
        if channel.get("name") == name:
            return channel.get("id")
    return None


async def resolve_name(client: AsyncWebClient, name: str) -> Optional[str]:
    """Resolve ``@user``, ``#channel`` or ``channel`` to a Slack ID.

    Returns
    -------
    Optional[str]
        The ID, or None when no directory entry matches

    Raises
    ------
    SlackClientError, aiohttp.ClientError, asyncio.TimeoutError
        If the directory listing itself fails (see :data:`SLACK_CALL_ERRORS`)
    """
    if is_user_name(name):
        resolved = await resolve_user(client, name[len(USER_PREFIX) :])
    else:
        channel_name = name[len(CHANNEL_PREFIX) :] if name.startswith(CHANNEL_PREFIX) else name
        resolved = await resolve_channel(client, channel_name)

    if resolved is None:
        _LOG.warning(f"Could not resolve Slack name '{name}'")
    return resolved


async def ensure_member(client: AsyncWebClient, channel_id: str) -> bool:
    """Join ``channel_id`` unless the bot already belongs to it.

    A failed lookup or join is logged and reported as False; it never raises.
    """
    try:
        info = await client.conversations_info(channel=channel_id)
        if (info.get("channel") or {}).get("is_member"):
            return True
        await client.conversations_join(channel=channel_id)
        _LOG.info(f"Joined channel {channel_id}")
        return True
    except SLACK_CALL_ERRORS as e:
        _LOG.warning(f"Could not join channel {channel_id}: {describe_error(e)}")
        return False
