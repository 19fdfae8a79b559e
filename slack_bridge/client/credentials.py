"""Lookup of per-app Slack access tokens from the credentials service.

The service answers ``GET {creds_url}/creds?appID=<id>&integration=slack``
with ``{"access_token": "..."}``. Any failure is logged and degrades to an
empty token, so the Slack call made with it fails with Slack's own auth error
instead of a local exception.
"""

from __future__ import annotations

import logging
from typing import Final, Optional

import httpx

__all__: list[str] = ["CredentialsClient", "SLACK_INTEGRATION"]

_LOG: Final[logging.Logger] = logging.getLogger(__name__)

SLACK_INTEGRATION: Final[str] = "slack"


class CredentialsClient:
    """Fetches Slack tokens keyed by app ID.

    Parameters
    ----------
    base_url : str
        Base URL of the credentials service
    timeout : float
        Request timeout in seconds
    http_client : Optional[httpx.AsyncClient]
        Shared client; one is created (and owned) when omitted
    """

    def __init__(self, base_url: str, timeout: float = 10.0, http_client: Optional[httpx.AsyncClient] = None) -> None:
        self._base_url = base_url.rstrip("/")
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=timeout)

    async def fetch_token(self, app_id: str) -> str:
        """Return the Slack access token for ``app_id``, or ``""`` on any failure."""
        url = f"{self._base_url}/creds"
        try:
            response = await self._http.get(url, params={"appID": app_id, "integration": SLACK_INTEGRATION})
            response.raise_for_status()
            token = response.json().get("access_token")
        except (httpx.HTTPError, ValueError, AttributeError) as e:
            _LOG.warning(f"Could not fetch Slack credentials for app {app_id}: {e}")
            return ""

        if not isinstance(token, str) or not token:
            _LOG.warning(f"Credentials service returned no access token for app {app_id}")
            return ""
        return token

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()
