"""Claude Code CLI runner."""

from __future__ import annotations

import asyncio
import logging
import shlex
from typing import AsyncIterator

from courier.runners.base import BaseRunner, RunState
from courier.runners.claude.config import ClaudeConfig
from courier.runners.claude.processor import ClaudeEventProcessor
from courier.runners.pipeline import JSONLineStats, iter_json_line_pipeline
from courier.runners.ports import StreamEvent
from courier.runners.subprocess_transport import SubprocessTransport

log = logging.getLogger("claude")

_STDOUT_LIMIT = 10 * 1024 * 1024


class ClaudeRunner(BaseRunner):
    """Runs one Claude Code invocation and streams parsed events.

    The prompt goes to stdin (then stdin is closed), so arbitrarily long
    messages never hit argv limits. `returncode` is set once the stream ends.
    """

    def __init__(self, working_dir: str, config: ClaudeConfig | None = None):
        super().__init__(working_dir)
        self.config = config or ClaudeConfig()
        self._transport = SubprocessTransport()
        self._processor = ClaudeEventProcessor()
        self.state: RunState | None = None

    def _build_command(self, session_id: str | None) -> list[str]:
        """Build the claude command line."""
        cmd = self.config.resolve_command() + [
            "-p",
            "--output-format", "stream-json",
            "--verbose",
            "--dangerously-skip-permissions",
        ]

        model = self.config.resolve_model()
        if model:
            cmd.extend(["--model", model])

        cmd.extend(self.config.resolve_extra_args())

        if session_id:
            cmd.extend(["--resume", session_id])
        return cmd

    async def run(
        self, prompt: str, session_id: str | None = None
    ) -> AsyncIterator[StreamEvent]:
        """Run Claude, yielding Init / AssistantText / ToolUse / Result events.

        Raises SpawnError before yielding anything if the CLI cannot start.
        """
        cmd = self._build_command(session_id)
        log.info(f"Claude: {prompt[:50]}...")
        log.debug("CMD (cwd=%s): %s", self.working_dir, shlex.join(cmd))

        state = RunState()
        self.state = state
        self.returncode = None

        stdout = await self._transport.start(
            cmd,
            cwd=self.working_dir,
            stdin_data=prompt.encode("utf-8"),
            stdout_limit=_STDOUT_LIMIT,
        )

        stats = JSONLineStats()
        try:
            async for event in iter_json_line_pipeline(
                byte_stream=stdout,
                state=state,
                parse_event=self._processor.parse_event,
                stats=stats,
            ):
                yield event
        except (asyncio.CancelledError, GeneratorExit):
            # Abandoned mid-stream: the child must not outlive the turn.
            await self._transport.cancel_and_kill()
            raise
        finally:
            self.returncode = await self._transport.wait()

        log.info(
            "Exit code=%s after %.1fs, result=%d chars, %d tools, %d records, %d skipped lines",
            self.returncode,
            state.duration_s,
            len(state.text),
            state.tool_count,
            stats.records,
            state.skipped_lines,
        )
        if stats.emitted_any and not state.saw_result:
            log.warning("Claude stream ended without a result record")
        if not stats.emitted_any and stats.non_json_lines:
            log.warning(
                "Claude runner produced no JSON events:\n%s",
                "\n".join(stats.non_json_lines[:10]),
            )

    @property
    def stderr_tail(self) -> str:
        return "\n".join(self._transport.stderr_lines[-3:])

    async def cleanup(self) -> None:
        """Terminate and force-kill if the process doesn't exit."""
        await self._transport.cancel_and_kill()


def claude_runner_factory(config: ClaudeConfig | None = None):
    """Return a `RunnerFactory` building one ClaudeRunner per turn."""

    cfg = config or ClaudeConfig()

    def create(working_dir: str) -> ClaudeRunner:
        return ClaudeRunner(working_dir, cfg)

    return create
