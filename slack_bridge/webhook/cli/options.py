"""Command-line argument parsing for the Slack bridge server."""

from __future__ import annotations

import argparse

from slack_bridge.logging.config import add_logging_arguments

from .models import WebhookServerCliOptions


def _parse_args(argv: list[str] | None = None) -> WebhookServerCliOptions:
    """Parse CLI args and build `WebhookServerCliOptions`.

    Parameters
    ----------
    argv : list[str] | None, optional
        Argument list to parse. If None, uses sys.argv.

    Returns
    -------
    WebhookServerCliOptions
        Validated immutable options for starting the server.
    """
    parser = argparse.ArgumentParser(description="Run the Slack bridge server")
    parser.add_argument(
        "--host",
        default="0.0.0.0",
        help="Host to bind to (default: 0.0.0.0)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=9003,
        help="Port to listen on (default: 9003)",
    )
    parser.add_argument(
        "--env-file",
        default=".env",
        help="Path to .env file (default: .env in current directory)",
    )
    parser.add_argument(
        "--no-env-file",
        action="store_true",
        help="Disable loading from .env file",
    )
    parser.add_argument(
        "--retry",
        type=int,
        default=None,
        help="Number of retry attempts for Slack API calls (default: SLACK_RETRY setting, 3)",
    )

    # Add centralized logging arguments
    parser = add_logging_arguments(parser)

    return WebhookServerCliOptions.deserialize(parser.parse_args(argv))
