"""In-memory session store.

Sessions are memory-resident only; a restart loses them. All operations run on
the event loop thread and never await, so create/remove cannot interleave with
lookups.
"""

from __future__ import annotations

import asyncio
import enum
import logging
import time
from collections import deque
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from courier.core.session_runtime.api import SessionSummary, StatsTotals

if TYPE_CHECKING:
    from courier.core.session_runtime.runtime import Turn

log = logging.getLogger("session.store")


class SessionState(enum.Enum):
    IDLE = "idle"
    BUSY = "busy"


@dataclass(eq=False)
class Session:
    key: str
    alias: str
    working_dir: str
    created_at: float = field(default_factory=time.time)
    last_activity_at: float = field(default_factory=time.time)
    state: SessionState = SessionState.IDLE
    pending: "deque[Turn]" = field(default_factory=deque)
    stats: StatsTotals = field(default_factory=StatsTotals)
    idle_handle: asyncio.TimerHandle | None = None

    _continuation_token: str | None = None

    @property
    def continuation_token(self) -> str | None:
        return self._continuation_token

    def assign_continuation_token(self, token: str) -> bool:
        """Record the CLI's resume id. Write-once; later values are ignored."""
        if self._continuation_token is not None or not token:
            return False
        self._continuation_token = token
        return True

    @property
    def busy(self) -> bool:
        return self.state is SessionState.BUSY

    def touch(self) -> None:
        self.last_activity_at = time.time()


class SessionStore:
    """Maps conversation ids to live sessions."""

    def __init__(self):
        self._sessions: dict[str, Session] = {}

    def create(self, key: str, alias: str, working_dir: str) -> tuple[Session, bool]:
        """Return (session, created). An existing session is returned unchanged."""
        existing = self._sessions.get(key)
        if existing is not None:
            return existing, False
        session = Session(key=key, alias=alias, working_dir=working_dir)
        self._sessions[key] = session
        log.info(f"Created session {key} ({alias} -> {working_dir})")
        return session, True

    def get(self, key: str) -> Session | None:
        return self._sessions.get(key)

    def has(self, key: str) -> bool:
        return key in self._sessions

    def remove(self, key: str) -> Session | None:
        return self._sessions.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._sessions)

    def list_active(self) -> list[SessionSummary]:
        return [
            SessionSummary(
                key=s.key,
                alias=s.alias,
                created_at=s.created_at,
                last_activity_at=s.last_activity_at,
            )
            for s in self._sessions.values()
        ]
