"""Test logging configuration package."""

from .config import setup_test_logging

__all__ = ["setup_test_logging"]
