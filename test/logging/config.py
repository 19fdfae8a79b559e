"""Logging configuration for the test suite.

Keeps test output quiet by default; set ``TEST_LOG_LEVEL=DEBUG`` to see
what the bridge logs while a test runs.
"""

import logging
import logging.config
import os
from typing import Optional

# Default test log level - higher than INFO to reduce noise
DEFAULT_TEST_LOG_LEVEL = "WARNING"


def setup_test_logging(level: Optional[str] = None) -> None:
    """Configure logging for test execution.

    Args:
        level: Logging level. If None, uses TEST_LOG_LEVEL or DEFAULT_TEST_LOG_LEVEL.
    """
    level = (level or os.getenv("TEST_LOG_LEVEL", DEFAULT_TEST_LOG_LEVEL)).upper()

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "simple": {"format": "%(levelname)s - %(name)s - %(message)s"},
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "simple",
                    "stream": "ext://sys.stdout",
                    "level": level,
                }
            },
            "loggers": {
                # Propagation stays on so caplog can observe bridge records
                "slack_bridge": {"handlers": ["console"], "level": level, "propagate": True},
                "httpx": {"handlers": ["console"], "level": "ERROR", "propagate": False},
                "asyncio": {"handlers": ["console"], "level": "ERROR", "propagate": False},
            },
        }
    )
