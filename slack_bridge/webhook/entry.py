"""Slack bridge server entry point.

Module Overview
===============
Builds the whole bridge from settings: the credentials client, the Slack
client manager, the subscription service with its retention limits, and the
event forwarder wired in as the match callback. It then serves the FastAPI app
with uvicorn.

Quick Start Examples
====================

.. code-block:: bash

    export SLACK_BOT_SIGNING_KEY=...
    export RUNTIME_URL=http://runtime:8080
    export CREDS_URL=http://creds:8080

    python -m slack_bridge.webhook --host 0.0.0.0 --port 9003

Environment Variables
======================
- **SLACK_BOT_SIGNING_KEY**: Slack signing secret for webhook verification (required)
- **RUNTIME_URL**: Base URL of the runtime receiving matched events (required)
- **CREDS_URL**: Base URL of the credentials service (required)
- **HTTP_TIMEOUT**: Timeout in seconds for outbound calls (default: 10)
- **FORWARD_RETRY**: Extra delivery attempts towards the runtime (default: 3)
- **SLACK_RETRY**: Retry budget of the Slack client (default: 3)
- **RETAINED_EVENTS_MAX** / **RETAINED_EVENTS_TTL**: Optional retention bounds

A missing required variable stops the process before it serves traffic.
"""

from __future__ import annotations

import asyncio
import logging
import pathlib
import sys
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Final, Optional

from dotenv import load_dotenv
from fastapi import FastAPI
from pydantic import ValidationError

from slack_bridge.client.credentials import CredentialsClient
from slack_bridge.client.manager import SlackClientManager
from slack_bridge.exceptions import ConfigurationError
from slack_bridge.forwarder import EventForwarder
from slack_bridge.logging.config import setup_logging, setup_logging_from_args
from slack_bridge.settings import SettingModel, get_settings
from slack_bridge.subscription import EventRetentionSet, SubscriptionService

from .cli.models import WebhookServerCliOptions
from .cli.options import _parse_args
from .server import create_slack_app

__all__: list[str] = [
    "load_settings",
    "logging_options",
    "build_bridge",
    "run_server",
    "main",
]

_LOG: Final[logging.Logger] = logging.getLogger(__name__)


def load_settings(options: WebhookServerCliOptions) -> SettingModel:
    """Load settings, turning validation failures into a :class:`ConfigurationError`.

    Raises
    ------
    ConfigurationError
        If a required setting is missing or a value is invalid
    """
    try:
        return get_settings(env_file=options.env_file, no_env_file=options.no_env_file, force_reload=True)
    except ValidationError as e:
        missing = [".".join(str(p) for p in err["loc"]).upper() for err in e.errors()]
        raise ConfigurationError(f"Invalid or missing settings: {', '.join(missing)}") from e


def logging_options(options: WebhookServerCliOptions, settings: SettingModel) -> Dict[str, Any]:
    """Merge logging flags with the ``LOG_*`` settings; a flag given on the command line wins."""
    return {
        "level": options.log_level or settings.log_level.value,
        "log_file": options.log_file or settings.log_file,
        "log_dir": options.log_dir or settings.log_dir,
        "log_format": options.log_format or settings.log_format,
    }


def build_bridge(settings: SettingModel, slack_retry: Optional[int] = None) -> FastAPI:
    """Wire the bridge components together and return the FastAPI app.

    Parameters
    ----------
    settings : SettingModel
        Loaded service settings
    slack_retry : Optional[int]
        Overrides ``settings.slack_retry`` when given

    Returns
    -------
    FastAPI
        The app, with a lifespan that closes outbound HTTP clients on shutdown
    """
    credentials = CredentialsClient(settings.creds_url, timeout=settings.http_timeout)
    clients = SlackClientManager(
        credentials,
        retry=settings.slack_retry if slack_retry is None else slack_retry,
        timeout=settings.http_timeout,
    )
    retention = EventRetentionSet(
        max_events=settings.retained_events_max,
        ttl_seconds=settings.retained_events_ttl,
    )
    service = SubscriptionService(clients, retention=retention)
    forwarder = EventForwarder(
        settings.runtime_url,
        timeout=settings.http_timeout,
        retry=settings.forward_retry,
    )
    service.on_subscription = forwarder.notify

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        _LOG.info(f"Forwarding matched events to {forwarder.url}")
        yield
        _LOG.info("Shutting down, waiting for pending forwards")
        await forwarder.aclose()
        await clients.aclose()

    return create_slack_app(
        service,
        signing_secret=settings.slack_bot_signing_key.get_secret_value(),
        lifespan=lifespan,
    )


async def run_server(app: FastAPI, host: str = "0.0.0.0", port: int = 9003) -> None:
    """Serve ``app`` with uvicorn until interrupted."""
    _LOG.info(f"Starting Slack bridge on {host}:{port}")

    import uvicorn

    config = uvicorn.Config(app=app, host=host, port=port)
    server = uvicorn.Server(config=config)
    await server.serve()


def main(argv: Optional[list[str]] = None) -> None:
    """Run the Slack bridge server.

    Parses arguments, configures logging from the flags, loads the ``.env``
    file and validates settings (exiting with status 1 when they are
    incomplete). Logging is then reconfigured with ``LOG_*`` settings filling
    in any flag that was not given, and the server starts.

    Parameters
    ----------
    argv : Optional[list[str]], optional
        Command-line arguments to parse. If None, uses sys.argv.
    """
    args = _parse_args(argv)

    setup_logging_from_args(args)

    if not args.no_env_file:
        env_path = pathlib.Path(args.env_file)
        if env_path.exists():
            _LOG.info(f"Loading environment variables from {env_path.resolve()}")
            load_dotenv(dotenv_path=env_path, override=True)
        else:
            _LOG.warning(f"Environment file not found: {env_path.resolve()}")

    try:
        settings = load_settings(args)
    except ConfigurationError as e:
        _LOG.error(str(e))
        sys.exit(1)

    setup_logging(**logging_options(args, settings))

    app = build_bridge(settings, slack_retry=args.retry)
    asyncio.run(run_server(app, host=args.host, port=args.port))


if __name__ == "__main__":
    main()
