"""Centralized logging configuration for the Slack bridge.

Every module logs through ``logging.getLogger(__name__)``; this module wires
the handlers once at startup, either from explicit values or from parsed
command-line options.

Examples
--------
.. code-block:: python

    import argparse
    from slack_bridge.logging.config import add_logging_arguments, setup_logging_from_args

    parser = add_logging_arguments(argparse.ArgumentParser())
    setup_logging_from_args(parser.parse_args(["--log-level", "DEBUG"]))
"""

from __future__ import annotations

import argparse
import logging
import logging.config
import os
from typing import Any, Dict, Final, Optional

__all__: list[str] = [
    "DEFAULT_LOG_FORMAT",
    "add_logging_arguments",
    "build_logging_config",
    "setup_logging",
    "setup_logging_from_args",
]

DEFAULT_LOG_FORMAT: Final[str] = "%(asctime)s [%(levelname)8s] %(name)s: %(message)s"

_LEVELS: Final[tuple[str, ...]] = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG", "NOTSET")


def build_logging_config(
    level: str = "INFO",
    log_file: Optional[str] = None,
    log_dir: Optional[str] = None,
    log_format: Optional[str] = None,
) -> Dict[str, Any]:
    """Build a ``dictConfig`` mapping for the service.

    Parameters
    ----------
    level : str
        Root level for the ``slack_bridge`` logger tree
    log_file : Optional[str]
        File name for a rotating file handler; no file handler when None
    log_dir : Optional[str]
        Directory prepended to ``log_file`` when the file name is relative
    log_format : Optional[str]
        Format string for all handlers

    Returns
    -------
    Dict[str, Any]
        A configuration accepted by :func:`logging.config.dictConfig`
    """
    level = level.upper()
    if level not in _LEVELS:
        raise ValueError(f"Unknown log level: {level}")

    handlers: Dict[str, Dict[str, Any]] = {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "standard",
            "stream": "ext://sys.stderr",
            "level": level,
        }
    }

    if log_file:
        path = log_file
        if log_dir and not os.path.isabs(log_file):
            path = os.path.join(log_dir, log_file)
        handlers["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "formatter": "standard",
            "filename": path,
            "maxBytes": 10 * 1024 * 1024,
            "backupCount": 5,
            "encoding": "utf-8",
            "level": level,
        }

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {"format": log_format or DEFAULT_LOG_FORMAT},
        },
        "handlers": handlers,
        "loggers": {
            "": {"handlers": list(handlers), "level": level},
            "slack_bridge": {"handlers": list(handlers), "level": level, "propagate": False},
            # Reduce noise from external libraries
            "uvicorn.access": {"level": "WARNING"},
            "httpx": {"level": "WARNING"},
        },
    }


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    log_dir: Optional[str] = None,
    log_format: Optional[str] = None,
) -> None:
    """Apply the service logging configuration."""
    config = build_logging_config(level=level, log_file=log_file, log_dir=log_dir, log_format=log_format)
    if "file" in config["handlers"]:
        directory = os.path.dirname(config["handlers"]["file"]["filename"])
        if directory:
            os.makedirs(directory, exist_ok=True)
    logging.config.dictConfig(config)


def add_logging_arguments(parser: argparse.ArgumentParser) -> argparse.ArgumentParser:
    """Add the shared logging options to an argument parser.

    Parameters
    ----------
    parser : argparse.ArgumentParser
        The parser to extend

    Returns
    -------
    argparse.ArgumentParser
        The same parser, for chaining
    """
    parser.add_argument(
        "--log-level",
        default=None,
        type=str.upper,
        choices=list(_LEVELS),
        help="Logging level (default: LOG_LEVEL setting, else INFO)",
    )
    parser.add_argument("--log-file", default=None, help="Write logs to this file as well as stderr")
    parser.add_argument("--log-dir", default=None, help="Directory for the log file")
    parser.add_argument("--log-format", default=None, help="Log message format")
    return parser


def setup_logging_from_args(args: Any) -> None:
    """Configure logging from parsed CLI options (argparse namespace or options model)."""
    setup_logging(
        level=getattr(args, "log_level", "INFO") or "INFO",
        log_file=getattr(args, "log_file", None),
        log_dir=getattr(args, "log_dir", None),
        log_format=getattr(args, "log_format", None),
    )
