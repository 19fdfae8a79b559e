"""Slack bridge service.

Receives Slack events over a webhook, matches them against registered pattern
subscriptions and forwards matches to a downstream runtime.
"""

__version__ = "0.1.0"
