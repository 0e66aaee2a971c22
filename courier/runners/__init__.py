"""CLI runners for code agents."""

from courier.runners.claude import ClaudeConfig, ClaudeRunner, claude_runner_factory
from courier.runners.ports import (
    AssistantText,
    Init,
    Result,
    Runner,
    RunnerFactory,
    StreamEvent,
    ToolUse,
)

__all__ = [
    "AssistantText",
    "ClaudeConfig",
    "ClaudeRunner",
    "Init",
    "Result",
    "Runner",
    "RunnerFactory",
    "StreamEvent",
    "ToolUse",
    "claude_runner_factory",
]
