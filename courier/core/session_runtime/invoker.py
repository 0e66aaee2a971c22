"""Process invoker: one runner invocation per turn.

Consumes the runner's typed event stream, applies each event to the session
(continuation token) and fans it out to the turn's callbacks, then decides the
turn's final text from what was seen and how the process exited.
"""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass
from typing import Any, Callable

from courier.core.session_runtime.api import TurnCallbacks, TurnStats
from courier.core.session_runtime.store import Session
from courier.errors import ProcessExitError
from courier.runners.ports import AssistantText, Init, Result, Runner, ToolUse

log = logging.getLogger("session.invoker")

NO_RESPONSE_TEXT = "Claude did not respond."


@dataclass(frozen=True)
class TurnOutcome:
    text: str
    stats: TurnStats | None = None


async def _notify(callback: Callable[..., Any] | None, *args: Any, session: Session) -> None:
    """Run one observer; its failures are logged, never propagated into the turn."""
    if callback is None:
        return
    try:
        result = callback(*args)
        if inspect.isawaitable(result):
            await result
    except Exception:
        log.exception("Turn callback %s failed for %s", getattr(callback, "__name__", callback), session.key)


async def invoke_turn(
    runner: Runner,
    session: Session,
    text: str,
    callbacks: TurnCallbacks,
) -> TurnOutcome:
    """Run one turn to completion.

    Raises SpawnError if the CLI cannot start, ProcessExitError if it exits
    non-zero without producing any text.
    """
    final_text = ""
    stats: TurnStats | None = None

    async for event in runner.run(text, session.continuation_token):
        if isinstance(event, Init):
            if session.assign_continuation_token(event.continuation_token):
                log.info(f"Session {session.key} bound to {event.continuation_token}")
            elif event.continuation_token != session.continuation_token:
                log.debug(
                    "Ignoring new continuation token %s for %s",
                    event.continuation_token,
                    session.key,
                )
        elif isinstance(event, AssistantText):
            final_text = event.text
            await _notify(callbacks.on_text, event.text, session=session)
        elif isinstance(event, ToolUse):
            await _notify(callbacks.on_tool_use, event.name, event.input, session=session)
        elif isinstance(event, Result):
            stats = TurnStats.from_result(event)
            if event.is_error:
                log.warning(f"Turn for {session.key} ended with an error result")
            if event.text:
                final_text = event.text
            await _notify(callbacks.on_result, stats, session=session)

    if final_text:
        return TurnOutcome(final_text, stats)

    code = runner.returncode or 0
    if code != 0:
        raise ProcessExitError(code, stderr_tail=getattr(runner, "stderr_tail", None))
    return TurnOutcome(NO_RESPONSE_TEXT, stats)
