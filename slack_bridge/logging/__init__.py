"""Logging setup shared by the Slack bridge entry points."""

from .config import add_logging_arguments, setup_logging, setup_logging_from_args

__all__ = ["add_logging_arguments", "setup_logging", "setup_logging_from_args"]
