"""Courier - chat bridge that brokers conversations with the Claude Code CLI."""

__version__ = "0.1.0"
