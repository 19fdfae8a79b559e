"""
FastAPI application factory for the Slack bridge.

The process serves a single FastAPI instance; routes are attached to it by
:func:`slack_bridge.webhook.server.create_slack_app`.
"""

from __future__ import annotations

import logging
from typing import Any, Final, Optional, Type

from fastapi import FastAPI

from slack_bridge import __version__
from slack_bridge._base import BaseServerFactory

__all__: list[str] = ["WebServerFactory", "web_factory"]

_LOG: Final[logging.Logger] = logging.getLogger(__name__)

_WEB_SERVER_INSTANCE: Optional[FastAPI] = None


class WebServerFactory(BaseServerFactory[FastAPI]):
    @staticmethod
    def create(**kwargs: Any) -> FastAPI:
        """
        Create the web API server.

        Args:
            **kwargs: Forwarded to :class:`FastAPI` (e.g. ``lifespan``)

        Returns:
            Configured FastAPI server instance
        """
        global _WEB_SERVER_INSTANCE
        assert _WEB_SERVER_INSTANCE is None, "It is not allowed to create more than one instance of web server."
        _WEB_SERVER_INSTANCE = FastAPI(
            title="Slack Bridge",
            description="Bridges Slack events to a runtime through pattern subscriptions",
            version=__version__,
            **kwargs,
        )
        _LOG.debug("Created web server instance")
        return _WEB_SERVER_INSTANCE

    @staticmethod
    def get() -> FastAPI:
        """
        Get the web API server instance

        Returns:
            Configured FastAPI server instance
        """
        assert _WEB_SERVER_INSTANCE is not None, "It must be created web server first."
        return _WEB_SERVER_INSTANCE

    @staticmethod
    def reset() -> None:
        """
        Reset the singleton instance (for testing purposes).
        """
        global _WEB_SERVER_INSTANCE
        _WEB_SERVER_INSTANCE = None


web_factory: Final[Type[WebServerFactory]] = WebServerFactory
