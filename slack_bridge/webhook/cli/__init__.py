"""Command-line options for the Slack bridge server."""
