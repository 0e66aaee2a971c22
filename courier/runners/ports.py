"""Ports (interfaces) for runner implementations.

The session runtime depends on these contracts rather than on the concrete
Claude runner, so tests can drive it with scripted runners.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import AsyncIterator, Protocol, Union


@dataclass(frozen=True)
class Init:
    """The CLI announced the id it will accept for `--resume`."""

    continuation_token: str


@dataclass(frozen=True)
class AssistantText:
    """Cumulative snapshot of the answer so far (not a delta)."""

    text: str


@dataclass(frozen=True)
class ToolUse:
    name: str
    input: dict = field(default_factory=dict)


@dataclass(frozen=True)
class Result:
    """Terminal record of one CLI invocation."""

    duration_ms: int = 0
    cost_usd: float = 0.0
    tokens_in: int = 0
    tokens_out: int = 0
    num_turns: int = 0
    text: str | None = None
    cache_read_tokens: int = 0
    cache_creation_tokens: int = 0
    is_error: bool = False


StreamEvent = Union[Init, AssistantText, ToolUse, Result]


class Runner(Protocol):
    """A streaming runner: one external process per call to `run`."""

    returncode: int | None

    def run(
        self, prompt: str, session_id: str | None = None
    ) -> AsyncIterator[StreamEvent]:
        ...

    async def cleanup(self) -> None:
        ...


class RunnerFactory(Protocol):
    def __call__(self, working_dir: str) -> Runner:
        ...
