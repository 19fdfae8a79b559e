"""Per-app Slack client resolution.

Every Slack operation performed on behalf of an app starts by asking the
credentials service for that app's token and building a fresh
``AsyncWebClient`` with it. Tokens are not cached, so a rotated credential
takes effect on the next call.

Usage Examples
==============

.. code-block:: python

    from slack_bridge.client.credentials import CredentialsClient
    from slack_bridge.client.manager import SlackClientManager

    manager = SlackClientManager(CredentialsClient("http://creds:8080"), retry=3)
    client = await manager.get_client("app-1")
    await client.chat_postMessage(channel="C12345678", text="Hello")
"""

from __future__ import annotations

import logging
from typing import Final, Optional

from slack_sdk.web.async_client import AsyncWebClient

from .credentials import CredentialsClient
from .factory import SlackClientFactory, build_factory

__all__: list[str] = ["SlackClientManager"]

_LOG: Final[logging.Logger] = logging.getLogger(__name__)


class SlackClientManager:
    """Builds Slack web clients for app IDs.

    Parameters
    ----------
    credentials : CredentialsClient
        Source of per-app access tokens
    factory : Optional[SlackClientFactory]
        Client factory; when omitted one is chosen from ``retry``
    retry : int
        Retry budget for slack_sdk's built-in retry handlers (0 disables)
    timeout : Optional[float]
        Per-request timeout for Slack API calls
    """

    def __init__(
        self,
        credentials: CredentialsClient,
        factory: Optional[SlackClientFactory] = None,
        retry: int = 0,
        timeout: Optional[float] = None,
    ) -> None:
        self._credentials = credentials
        self._factory = factory or build_factory(retry=retry, timeout=timeout)

    @property
    def credentials(self) -> CredentialsClient:
        return self._credentials

    async def get_client(self, app_id: str) -> AsyncWebClient:
        """Return a Slack client authenticated as ``app_id``.

        A failed credential lookup yields a client with an empty token rather
        than an error.
        """
        token = await self._credentials.fetch_token(app_id)
        if token:
            _LOG.debug(f"Created Slack client for app {app_id} with token ending with ...{token[-4:]}")
        else:
            _LOG.debug(f"Created unauthenticated Slack client for app {app_id}")
        return self._factory.create_async_client(token)

    async def aclose(self) -> None:
        await self._credentials.aclose()
