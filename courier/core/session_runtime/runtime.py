"""Turn queue.

Owns per-session serialization: a session is either IDLE or BUSY, and queued
turns are consumed only on the BUSY -> IDLE transition, strictly in arrival
order. Each caller gets its own future, resolved with the turn's final text or
failed with that turn's error. A failed turn never blocks the ones behind it.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field

from courier.core.session_runtime.api import TurnCallbacks
from courier.core.session_runtime.invoker import invoke_turn
from courier.core.session_runtime.store import Session, SessionState
from courier.errors import TurnCancelledError
from courier.runners.ports import Runner, RunnerFactory

log = logging.getLogger("session.queue")


@dataclass(eq=False)
class Turn:
    text: str
    callbacks: TurnCallbacks
    done: asyncio.Future[str]
    enqueued_at: float = field(default_factory=time.monotonic)


class TurnQueue:
    def __init__(self, *, runner_factory: RunnerFactory):
        self._runner_factory = runner_factory
        self._tasks: set[asyncio.Task] = set()
        # Runners whose process may still be alive, including turns of killed sessions.
        self._runners: set[Runner] = set()

    def enqueue(
        self,
        session: Session,
        text: str,
        callbacks: TurnCallbacks | None = None,
    ) -> asyncio.Future[str]:
        done: asyncio.Future[str] = asyncio.get_running_loop().create_future()
        turn = Turn(text=text, callbacks=callbacks or TurnCallbacks(), done=done)

        if session.state is SessionState.IDLE:
            self._start(session, turn)
        else:
            session.pending.append(turn)
            log.info(f"Queued message for {session.key} ({len(session.pending)} in queue)")
        return done

    def pending_count(self, session: Session) -> int:
        return len(session.pending)

    def cancel_pending(self, session: Session) -> int:
        """Fail every queued turn with TurnCancelledError; the active turn is untouched."""
        dropped = 0
        while session.pending:
            turn = session.pending.popleft()
            dropped += 1
            if not turn.done.done():
                turn.done.set_exception(TurnCancelledError(session.key))
        return dropped

    def _start(self, session: Session, turn: Turn) -> None:
        session.state = SessionState.BUSY
        task = asyncio.create_task(self._run_turn(session, turn))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run_turn(self, session: Session, turn: Turn) -> None:
        runner: Runner | None = None
        try:
            runner = self._runner_factory(session.working_dir)
            self._runners.add(runner)
            outcome = await invoke_turn(runner, session, turn.text, turn.callbacks)
        except asyncio.CancelledError:
            if not turn.done.done():
                turn.done.cancel()
            raise
        except Exception as e:
            log.warning(f"Turn failed for {session.key}: {type(e).__name__}: {e}")
            if not turn.done.done():
                turn.done.set_exception(e)
        else:
            if outcome.stats is not None:
                session.stats.merge(outcome.stats)
            if not turn.done.done():
                turn.done.set_result(outcome.text)
        finally:
            if runner is not None:
                self._runners.discard(runner)
            self._finish(session)

    def _finish(self, session: Session) -> None:
        session.state = SessionState.IDLE
        while session.pending:
            turn = session.pending.popleft()
            if turn.done.done():
                # The caller gave up waiting before the turn started.
                continue
            waited = time.monotonic() - turn.enqueued_at
            log.info(
                f"Dequeuing message for {session.key} after {waited:.1f}s "
                f"({len(session.pending)} remaining)"
            )
            self._start(session, turn)
            return

    async def drain(self, timeout: float | None = None) -> None:
        """Wait for in-flight turns; cancel whatever is still running after `timeout`."""
        tasks = list(self._tasks)
        if not tasks:
            return
        _, still_running = await asyncio.wait(tasks, timeout=timeout)
        for task in still_running:
            task.cancel()
        if still_running:
            await asyncio.gather(*still_running, return_exceptions=True)

    async def terminate_running(self) -> int:
        """Terminate every CLI process still running, whether or not its session is alive."""
        runners = list(self._runners)
        if runners:
            log.info(f"Terminating {len(runners)} running Claude process(es)")
            await asyncio.gather(*(r.cleanup() for r in runners), return_exceptions=True)
        return len(runners)
