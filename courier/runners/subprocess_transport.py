"""Subprocess transport helpers for runners."""

from __future__ import annotations

import asyncio
import logging

from courier.errors import SpawnError

log = logging.getLogger(__name__)

_STDERR_PREVIEW_CHARS = 300


class SubprocessTransport:
    """Owns exactly one child process: spawn, feed stdin, drain stderr, reap."""

    def __init__(self):
        self.process: asyncio.subprocess.Process | None = None
        self.stderr_lines: list[str] = []
        self._stderr_task: asyncio.Task | None = None

    async def start(
        self,
        cmd: list[str],
        *,
        cwd: str,
        stdin_data: bytes,
        stdout_limit: int,
    ) -> asyncio.StreamReader:
        """Spawn `cmd`, write `stdin_data`, close stdin and return stdout.

        Raises SpawnError if the process cannot be started at all.
        """
        try:
            self.process = await asyncio.create_subprocess_exec(
                *cmd,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=cwd,
                limit=stdout_limit,
            )
        except OSError as e:
            raise SpawnError(cmd[0], e.strerror or str(e)) from e

        if self.process.stdout is None or self.process.stdin is None:
            raise SpawnError(cmd[0], "subprocess pipes missing")

        if self.process.stderr is not None:
            self._stderr_task = asyncio.create_task(
                self._drain_stderr(self.process.stderr)
            )

        try:
            self.process.stdin.write(stdin_data)
            await self.process.stdin.drain()
        except (BrokenPipeError, ConnectionResetError):
            # The child exited before reading its input; its exit code says why.
            log.warning("Process %s closed stdin early", self.process.pid)
        finally:
            self.process.stdin.close()

        return self.process.stdout

    async def _drain_stderr(self, stream: asyncio.StreamReader) -> None:
        async for raw_line in stream:
            line = raw_line.decode(errors="replace").strip()
            if not line:
                continue
            if len(self.stderr_lines) < 50:
                self.stderr_lines.append(line)
            log.warning("STDERR: %s", line[:_STDERR_PREVIEW_CHARS])

    async def wait(self) -> int:
        if not self.process:
            return 0
        await self.process.wait()
        if self._stderr_task is not None:
            await self._stderr_task
            self._stderr_task = None
        return int(self.process.returncode or 0)

    async def cancel_and_kill(self, timeout: float = 5.0) -> None:
        """Terminate the process, wait, then force-kill if still alive."""
        proc = self.process
        if not proc or proc.returncode is not None:
            return
        try:
            proc.terminate()
        except ProcessLookupError:
            return
        try:
            await asyncio.wait_for(proc.wait(), timeout=timeout)
        except (asyncio.TimeoutError, ProcessLookupError):
            log.warning("Process %s did not exit after SIGTERM, sending SIGKILL", proc.pid)
            try:
                proc.kill()
            except ProcessLookupError:
                pass
