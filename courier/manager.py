"""Session manager - the entry points the messaging layer talks to."""

from __future__ import annotations

import logging

from courier.core.session_runtime import (
    IdleTimer,
    Session,
    SessionStats,
    SessionStore,
    SessionSummary,
    TurnCallbacks,
    TurnQueue,
)
from courier.core.session_runtime.api import IdleTimeoutCallback
from courier.errors import SessionNotFoundError
from courier.runners.ports import RunnerFactory

log = logging.getLogger("manager")


class SessionManager:
    """Owns every live conversation: create, send, kill, stats.

    Must be used from inside a running event loop (timers and turns are
    scheduled on it).
    """

    def __init__(
        self,
        *,
        runner_factory: RunnerFactory,
        session_timeout_s: float,
        store: SessionStore | None = None,
    ):
        self.sessions = store if store is not None else SessionStore()
        self._queue = TurnQueue(runner_factory=runner_factory)
        self._idle = IdleTimer(session_timeout_s, kill=self._kill_expired)

    def create(self, key: str, alias: str, working_dir: str) -> Session:
        """Create the session for `key`, or return the existing one unchanged."""
        session, created = self.sessions.create(key, alias, working_dir)
        if created:
            self._idle.reset(session)
        return session

    async def enqueue(
        self, key: str, text: str, callbacks: TurnCallbacks | None = None
    ) -> str:
        """Send one turn and wait for its final text.

        Turns for the same session complete in the order they were enqueued.
        Raises SessionNotFoundError, SpawnError, ProcessExitError, or
        TurnCancelledError (session killed while the turn was still queued).
        """
        session = self.sessions.get(key)
        if session is None:
            raise SessionNotFoundError(key)

        session.touch()
        self._idle.reset(session)
        return await self._queue.enqueue(session, text, callbacks)

    def kill(self, key: str) -> bool:
        """Drop queued turns and forget the session. The in-flight turn finishes on its own."""
        session = self.sessions.get(key)
        if session is None:
            return False

        self._idle.cancel(session)
        dropped = self._queue.cancel_pending(session)
        self.sessions.remove(key)
        log.info(f"Killed session {key} ({dropped} queued dropped)")
        return True

    def _kill_expired(self, session: Session) -> None:
        # The id may already belong to a newer session.
        if self.sessions.get(session.key) is session:
            self.kill(session.key)

    def has(self, key: str) -> bool:
        return self.sessions.has(key)

    def get(self, key: str) -> Session | None:
        return self.sessions.get(key)

    def pending_count(self, key: str) -> int:
        session = self.sessions.get(key)
        return self._queue.pending_count(session) if session else 0

    def get_stats(self, key: str) -> SessionStats | None:
        session = self.sessions.get(key)
        if session is None:
            return None
        return SessionStats(
            alias=session.alias,
            working_dir=session.working_dir,
            created_at=session.created_at,
            last_activity_at=session.last_activity_at,
            totals=session.stats.snapshot(),
        )

    def list_active(self) -> list[SessionSummary]:
        return self.sessions.list_active()

    def on_idle_timeout(self, callback: IdleTimeoutCallback | None) -> None:
        self._idle.on_timeout(callback)

    def kill_all(self) -> None:
        for key in self.sessions.keys():
            self.kill(key)

    async def shutdown(self, *, grace_s: float = 5.0) -> None:
        """Kill every session and terminate CLI processes that are still running.

        Unlike `kill`, shutdown does not leave children behind, including those
        of sessions killed while their turn was running. Each process gets
        SIGTERM, then SIGKILL if it lingers; turns still unfinished after
        `grace_s` are cancelled.
        """
        self.kill_all()
        await self._queue.terminate_running()
        await self._queue.drain(timeout=grace_s)
        await self._idle.drain()
