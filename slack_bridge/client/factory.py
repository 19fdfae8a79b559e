"""Factory pattern implementation for creating Slack clients.

This module provides an abstract base class for client factories and concrete
implementations for plain and retry-enabled async Slack clients. It allows for
dependency injection and easier testing by abstracting the client creation
process.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from slack_sdk.http_retry.builtin_async_handlers import (
    AsyncConnectionErrorRetryHandler,
    AsyncRateLimitErrorRetryHandler,
    AsyncServerErrorRetryHandler,
)
from slack_sdk.web.async_client import AsyncWebClient

__all__: list[str] = [
    "SlackClientFactory",
    "DefaultSlackClientFactory",
    "RetryableSlackClientFactory",
    "build_factory",
]


class SlackClientFactory(ABC):
    """Abstract base class for Slack client factories.

    The token is always supplied by the caller; it comes from the credentials
    service and may be empty when that lookup failed.
    """

    @abstractmethod
    def create_async_client(self, token: str) -> AsyncWebClient:
        """Create and return an AsyncWebClient instance.

        Parameters
        ----------
        token : str
            Slack token to use for authentication. An empty token yields a
            client whose calls fail with Slack's ``not_authed`` error.

        Returns
        -------
        AsyncWebClient
            Initialized Slack AsyncWebClient instance.
        """


class DefaultSlackClientFactory(SlackClientFactory):
    """Creates plain AsyncWebClient instances without retry handlers."""

    def __init__(self, timeout: Optional[float] = None) -> None:
        self._timeout = timeout

    def create_async_client(self, token: str) -> AsyncWebClient:
        if self._timeout is None:
            return AsyncWebClient(token=token)
        return AsyncWebClient(token=token, timeout=self._timeout)


class RetryableSlackClientFactory(SlackClientFactory):
    """Creates AsyncWebClient instances with slack_sdk's built-in retry handlers.

    Rate limits, server errors and connection errors are retried up to
    ``max_retry_count`` times each.

    Parameters
    ----------
    max_retry_count : int
        Retry budget per handler, must be non-negative
    timeout : Optional[float]
        Per-request timeout in seconds passed to the client
    """

    def __init__(self, max_retry_count: int = 3, timeout: Optional[float] = None) -> None:
        if max_retry_count < 0:
            raise ValueError("Retry count must be non-negative")
        self.max_retry_count = max_retry_count
        self._timeout = timeout

    def _retry_handlers(self) -> list:
        return [
            AsyncRateLimitErrorRetryHandler(max_retry_count=self.max_retry_count),
            AsyncServerErrorRetryHandler(max_retry_count=self.max_retry_count),
            AsyncConnectionErrorRetryHandler(max_retry_count=self.max_retry_count),
        ]

    def create_async_client(self, token: str) -> AsyncWebClient:
        if self._timeout is None:
            return AsyncWebClient(token=token, retry_handlers=self._retry_handlers())
        return AsyncWebClient(token=token, timeout=self._timeout, retry_handlers=self._retry_handlers())


def build_factory(retry: int = 0, timeout: Optional[float] = None) -> SlackClientFactory:
    """Pick the factory for a retry budget: plain when 0, retryable otherwise."""
    if retry < 0:
        raise ValueError("Retry count must be non-negative")
    if retry == 0:
        return DefaultSlackClientFactory(timeout=timeout)
    return RetryableSlackClientFactory(max_retry_count=retry, timeout=timeout)
