"""Composing-state keepalive for a conversation.

XMPP clients drop the "composing" state after a few seconds, so it is
re-sent on an interval while Claude is still working on the turn.
"""

from __future__ import annotations

import asyncio
import time
from typing import Callable


class TypingIndicator:
    def __init__(
        self,
        *,
        send_typing: Callable[[], None],
        is_active: Callable[[], bool],
        is_shutting_down: Callable[[], bool],
    ):
        self._send_typing = send_typing
        self._is_active = is_active
        self._is_shutting_down = is_shutting_down

        self._task: asyncio.Task | None = None
        self._last_sent = 0.0

    def maybe_send(self, *, min_interval_s: float = 5.0) -> None:
        if self._is_shutting_down():
            return
        now = time.monotonic()
        if now - self._last_sent < min_interval_s:
            return
        self._last_sent = now
        self._send_typing()

    async def _refresh(self, interval_s: float) -> None:
        while self._is_active() and not self._is_shutting_down():
            await asyncio.sleep(interval_s)
            self.maybe_send(min_interval_s=interval_s / 2)

    def start(self, *, interval_s: float = 8.0) -> None:
        self.maybe_send(min_interval_s=0.0)
        if self._task and not self._task.done():
            return
        self._task = asyncio.create_task(self._refresh(interval_s))

    def stop(self) -> None:
        task, self._task = self._task, None
        if task and not task.done():
            task.cancel()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()
