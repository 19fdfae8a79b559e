"""Forwarding of matched events to the downstream runtime.

A match is relayed as ``POST {runtime_url}/app/events`` with the JSON body
``{"subscriptionID": ..., "eventID": ..., "eventPayload": ...}``. Only HTTP 200
counts as delivered; any other status raises :class:`ForwardError`.

Transport errors, rate limits and 5xx answers are retried a bounded number of
times with exponential backoff and jitter (tenacity). Other statuses fail
immediately. Nothing is rolled back on failure: the event stays retained and
can still be replied to or closed.

:meth:`EventForwarder.notify` is the synchronous hook plugged into
``SubscriptionService.on_subscription``. It schedules the delivery on the
running loop so the webhook path never waits on the runtime.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Final, Optional, Set

import httpx
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential_jitter,
)

from slack_bridge.exceptions import ForwardError
from slack_bridge.subscription.models import MessageEvent, MessageListener

__all__: list[str] = ["EventForwarder", "EVENTS_PATH"]

_LOG: Final[logging.Logger] = logging.getLogger(__name__)

EVENTS_PATH: Final[str] = "/app/events"


def _is_retryable(error: BaseException) -> bool:
    """Transport failures, 429 and 5xx are worth another attempt; anything else is final."""
    if isinstance(error, ForwardError):
        return error.retryable
    return isinstance(error, httpx.TransportError)


class EventForwarder:
    """Posts matched events to the runtime event bus.

    Parameters
    ----------
    runtime_url : str
        Base URL of the runtime
    timeout : float
        Per-request timeout in seconds
    retry : int
        Extra attempts after the first one (0 disables retrying)
    backoff_initial : float
        First backoff delay in seconds
    backoff_max : float
        Upper bound on a single backoff delay
    http_client : Optional[httpx.AsyncClient]
        Shared client; one is created (and owned) when omitted
    """

    def __init__(
        self,
        runtime_url: str,
        timeout: float = 10.0,
        retry: int = 3,
        backoff_initial: float = 0.5,
        backoff_max: float = 8.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        if retry < 0:
            raise ValueError("Retry count must be non-negative")
        self._url = f"{runtime_url.rstrip('/')}{EVENTS_PATH}"
        self._retry = retry
        self._backoff_initial = backoff_initial
        self._backoff_max = backoff_max
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(
            timeout=timeout,
            headers={"Accept": "application/json", "Content-Type": "application/json"},
        )
        self._pending: Set[asyncio.Task] = set()

    @property
    def url(self) -> str:
        return self._url

    @property
    def pending(self) -> int:
        """Number of deliveries still in flight."""
        return len(self._pending)

    async def submit(self, subscription_id: str, event_id: str, event_payload: Dict[str, Any]) -> None:
        """Deliver one match to the runtime.

        Raises
        ------
        ForwardError
            If the runtime answered with a status other than 200 (after retries
            for retryable statuses)
        httpx.TransportError
            If the runtime could not be reached after retries
        """
        body = {
            "subscriptionID": subscription_id,
            "eventID": event_id,
            "eventPayload": event_payload,
        }

        async for attempt in AsyncRetrying(
            retry=retry_if_exception(_is_retryable),
            wait=wait_exponential_jitter(initial=self._backoff_initial, max=self._backoff_max, jitter=self._backoff_initial),
            stop=stop_after_attempt(self._retry + 1),
            before_sleep=before_sleep_log(_LOG, logging.WARNING),
            reraise=True,
        ):
            with attempt:
                await self._post(body)

        _LOG.info(f"Forwarded event {event_id} for subscription {subscription_id}")

    async def _post(self, body: Dict[str, Any]) -> None:
        response = await self._http.post(self._url, json=body)
        if response.status_code != 200:
            raise ForwardError(response.status_code, self._url)

    def notify(self, listener: MessageListener, event: MessageEvent) -> None:
        """Schedule delivery of a match without blocking the caller.

        Must be called from within a running event loop. Failures are logged,
        never raised.
        """
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            _LOG.error(f"No running event loop, dropping event {event.ts} for {listener.subscription_id}")
            return

        task = loop.create_task(self.submit(listener.subscription_id, event.ts, event.payload()))
        self._pending.add(task)
        task.add_done_callback(self._delivery_done(listener.subscription_id, event.ts))

    def _delivery_done(self, subscription_id: str, event_id: str):
        def _done(task: asyncio.Task) -> None:
            self._pending.discard(task)
            if task.cancelled():
                _LOG.warning(f"Forward of event {event_id} for {subscription_id} was cancelled")
                return
            error = task.exception()
            if error is not None:
                _LOG.error(f"Forward of event {event_id} for {subscription_id} failed: {error}")

        return _done

    async def drain(self) -> None:
        """Wait for every scheduled delivery to finish."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def aclose(self) -> None:
        await self.drain()
        if self._owns_client:
            await self._http.aclose()
