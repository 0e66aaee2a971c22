"""Per-session idle countdown.

Any enqueue re-arms the countdown; a long-running turn does not keep a session
alive by itself. When the countdown fires, the registered timeout callback
runs first (it can still read the session's stats), then the session is
killed whether or not the callback succeeded, unless an enqueue re-armed the
countdown while the callback was running.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Callable

from courier.core.session_runtime.api import IdleTimeoutCallback
from courier.core.session_runtime.store import Session

log = logging.getLogger("session.idle")


class IdleTimer:
    def __init__(self, timeout_s: float, *, kill: Callable[[Session], object]):
        self.timeout_s = float(timeout_s)
        self._kill = kill
        self._on_timeout: IdleTimeoutCallback | None = None
        self._tasks: set[asyncio.Task] = set()

    def on_timeout(self, callback: IdleTimeoutCallback | None) -> None:
        self._on_timeout = callback

    def reset(self, session: Session) -> None:
        self.cancel(session)
        loop = asyncio.get_running_loop()
        session.idle_handle = loop.call_later(self.timeout_s, self._fire, session)

    def cancel(self, session: Session) -> None:
        handle = session.idle_handle
        session.idle_handle = None
        if handle is not None:
            handle.cancel()

    def _fire(self, session: Session) -> None:
        session.idle_handle = None
        task = asyncio.create_task(self._expire(session))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _expire(self, session: Session) -> None:
        log.info(f"Session timeout {session.key}")
        try:
            if self._on_timeout is not None:
                result = self._on_timeout(session.key)
                if inspect.isawaitable(result):
                    await result
        except Exception:
            log.exception("Idle timeout callback failed for %s", session.key)
        finally:
            if session.idle_handle is None:
                self._kill(session)
            else:
                log.info(f"Session {session.key} became active again, not evicting")

    async def drain(self) -> None:
        """Wait for timeout callbacks that are already running."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
