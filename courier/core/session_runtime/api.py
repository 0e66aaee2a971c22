"""Public API for session runtime.

This module is the stable boundary between:
- transport/adapters (XMPP, commands)
- the concrete runtime implementation (runtime.py, store.py)

Code outside the runtime should depend on these types, not on Session
internals.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Awaitable, Callable, Union

from courier.runners.ports import Result

MaybeAwaitable = Union[Awaitable[None], None]


@dataclass(frozen=True)
class TurnStats:
    """Usage reported by one completed CLI invocation."""

    duration_ms: int = 0
    cost_usd: float = 0.0
    input_tokens: int = 0
    output_tokens: int = 0
    cache_read_tokens: int = 0
    cache_creation_tokens: int = 0
    num_turns: int = 0

    @classmethod
    def from_result(cls, result: Result) -> "TurnStats":
        return cls(
            duration_ms=result.duration_ms,
            cost_usd=result.cost_usd,
            input_tokens=result.tokens_in,
            output_tokens=result.tokens_out,
            cache_read_tokens=result.cache_read_tokens,
            cache_creation_tokens=result.cache_creation_tokens,
            num_turns=result.num_turns,
        )


@dataclass
class StatsTotals:
    """Session-lifetime usage. Only ever grows."""

    total_messages: int = 0
    total_tokens_in: int = 0
    total_tokens_out: int = 0
    total_cost_usd: float = 0.0
    total_duration_ms: int = 0
    total_turns: int = 0

    def merge(self, stats: TurnStats) -> None:
        self.total_messages += 1
        self.total_tokens_in += max(0, stats.input_tokens)
        self.total_tokens_out += max(0, stats.output_tokens)
        self.total_cost_usd += max(0.0, stats.cost_usd)
        self.total_duration_ms += max(0, stats.duration_ms)
        self.total_turns += max(0, stats.num_turns)

    def snapshot(self) -> "StatsTotals":
        return replace(self)


@dataclass(frozen=True)
class SessionStats:
    """Read-only view returned by `SessionManager.get_stats`."""

    alias: str
    working_dir: str
    created_at: float
    last_activity_at: float
    totals: StatsTotals = field(default_factory=StatsTotals)


@dataclass(frozen=True)
class SessionSummary:
    key: str
    alias: str
    created_at: float
    last_activity_at: float


@dataclass
class TurnCallbacks:
    """Per-turn observers. Each may be a plain or a coroutine function."""

    on_tool_use: Callable[[str, dict[str, Any]], MaybeAwaitable] | None = None
    on_text: Callable[[str], MaybeAwaitable] | None = None
    on_result: Callable[[TurnStats], MaybeAwaitable] | None = None


IdleTimeoutCallback = Callable[[str], MaybeAwaitable]
