"""Courier exceptions.

Every turn-level failure is one of these types, so the messaging layer can
format failures consistently without scraping strings. None of them are fatal
to the bridge: each one fails exactly one turn.
"""

from __future__ import annotations


class CourierError(RuntimeError):
    """Base class for session/runner errors."""


class SpawnError(CourierError):
    """The CLI process could not be started (missing binary, bad cwd, permissions)."""

    def __init__(self, command: str, reason: str):
        self.command = command
        self.reason = reason
        super().__init__(self.__str__())

    def __str__(self) -> str:
        return f"Failed to spawn {self.command}: {self.reason}"


class ProcessExitError(CourierError):
    """The CLI exited non-zero without producing any usable text."""

    def __init__(self, code: int, *, stderr_tail: str | None = None):
        self.code = int(code)
        self.stderr_tail = stderr_tail
        super().__init__(self.__str__())

    def __str__(self) -> str:
        tail = (self.stderr_tail or "").strip()
        if tail:
            return f"Claude exited with code {self.code}: {tail}"
        return f"Claude exited with code {self.code}"


class TurnCancelledError(CourierError):
    """A queued turn was dropped because its session was killed before it started."""

    def __init__(self, session_key: str):
        self.session_key = session_key
        super().__init__(f"Session {session_key} was closed before this message ran")


class SessionNotFoundError(CourierError, LookupError):
    """No live session exists for the given conversation id."""

    def __init__(self, session_key: str):
        self.session_key = session_key
        super().__init__(f"No active session for {session_key}")
