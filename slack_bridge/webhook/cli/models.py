"""Pydantic models for Slack bridge server CLI options.

Defines a typed configuration model used by the server entrypoint.

Examples
--------
.. code-block:: python

    from slack_bridge.webhook.cli.options import _parse_args

    opts = _parse_args(["--port", "9100"])  # WebhookServerCliOptions
    assert opts.port == 9100
"""

from __future__ import annotations

import argparse

from pydantic import BaseModel, ConfigDict, Field


class WebhookServerCliOptions(BaseModel):
    """Validated CLI options for the Slack bridge server entrypoint.

    Fields
    ------
    host : str
        Host to bind (default: 0.0.0.0)
    port : int
        Port to listen on (default: 9003)
    log_level : str | None
        Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL); falls back to LOG_LEVEL when None
    log_file : str | None
        Path to log file (optional)
    log_dir : str | None
        Directory for log files (optional)
    log_format : str | None
        Log message format (optional)
    env_file : str
        Path to .env file for environment variable loading
    no_env_file : bool
        Disable loading .env file when True
    retry : int | None
        Retry attempts for Slack API calls (>= 0); falls back to SLACK_RETRY when None
    """

    host: str = "0.0.0.0"
    port: int = Field(9003, ge=1, le=65535)
    log_level: str | None = None
    log_file: str | None = None
    log_dir: str | None = None
    log_format: str | None = None

    env_file: str = ".env"
    no_env_file: bool = False

    retry: int | None = Field(None, ge=0)

    model_config = ConfigDict(frozen=True, extra="ignore")

    @classmethod
    def deserialize(cls, ns: argparse.Namespace) -> "WebhookServerCliOptions":
        """Build a validated options object from argparse namespace."""
        data = {name: getattr(ns, name) for name in cls.model_fields.keys() if hasattr(ns, name)}
        return cls(**data)
