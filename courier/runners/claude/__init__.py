"""Claude Code CLI runner."""

from courier.runners.claude.config import ClaudeConfig
from courier.runners.claude.runner import ClaudeRunner, claude_runner_factory

__all__ = ["ClaudeConfig", "ClaudeRunner", "claude_runner_factory"]
