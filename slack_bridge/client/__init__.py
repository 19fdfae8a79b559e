"""Slack client layer: credentials lookup, client factories and directory helpers."""

from .credentials import CredentialsClient
from .factory import DefaultSlackClientFactory, RetryableSlackClientFactory, SlackClientFactory
from .manager import SlackClientManager

__all__ = [
    "CredentialsClient",
    "DefaultSlackClientFactory",
    "RetryableSlackClientFactory",
    "SlackClientFactory",
    "SlackClientManager",
]
