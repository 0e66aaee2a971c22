"""Session runtime (core orchestration).

This package implements the per-conversation runtime:
- an in-memory session store
- serialized turn processing (one active turn per session, FIFO)
- cancellation of queued turns on kill
- idle eviction
- per-turn usage aggregation

The Claude runner is injected through a factory, so the runtime never spawns
processes itself.
"""

from courier.core.session_runtime.api import (
    SessionStats,
    SessionSummary,
    StatsTotals,
    TurnCallbacks,
    TurnStats,
)
from courier.core.session_runtime.idle import IdleTimer
from courier.core.session_runtime.invoker import NO_RESPONSE_TEXT, TurnOutcome, invoke_turn
from courier.core.session_runtime.runtime import Turn, TurnQueue
from courier.core.session_runtime.store import Session, SessionState, SessionStore

__all__ = [
    "IdleTimer",
    "NO_RESPONSE_TEXT",
    "Session",
    "SessionState",
    "SessionStats",
    "SessionStore",
    "SessionSummary",
    "StatsTotals",
    "Turn",
    "TurnCallbacks",
    "TurnOutcome",
    "TurnQueue",
    "TurnStats",
    "invoke_turn",
]
