"""Exception types raised by the Slack bridge."""

from __future__ import annotations

__all__: list[str] = [
    "SlackBridgeError",
    "ConfigurationError",
    "ForwardError",
]


class SlackBridgeError(Exception):
    """Base class for all errors raised by this package."""


class ConfigurationError(SlackBridgeError):
    """A required setting is missing or invalid."""


class ForwardError(SlackBridgeError):
    """The runtime event bus answered a forward with a non-200 status.

    Parameters
    ----------
    status_code : int
        HTTP status returned by the runtime
    url : str
        The URL that was posted to
    """

    def __init__(self, status_code: int, url: str) -> None:
        self.status_code = status_code
        self.url = url
        super().__init__(f"Expected status code to be 200 but was {status_code} ({url})")

    @property
    def retryable(self) -> bool:
        """Whether the failure looks transient (server error or rate limit)."""
        return self.status_code >= 500 or self.status_code == 429
