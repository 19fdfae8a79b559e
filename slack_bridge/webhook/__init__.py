"""Slack bridge web subpackage.

Contains the FastAPI app factory, request and Slack envelope models, the
route definitions and the CLI entry point.
"""
