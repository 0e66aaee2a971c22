"""Test fixtures, including a scripted runner standing in for the Claude CLI."""

from __future__ import annotations

import asyncio
import xml.etree.ElementTree as ET
from collections.abc import AsyncIterator
from dataclasses import dataclass, field

import pytest

from courier.errors import SpawnError
from courier.runners.ports import AssistantText, Init, Result, StreamEvent


@dataclass
class Script:
    """What one scripted invocation does.

    `gate`, when set, holds the run open after its events until the test
    releases it, so tests can pile turns up behind a busy session.
    """

    events: list[StreamEvent] = field(default_factory=list)
    returncode: int = 0
    gate: asyncio.Event | None = None
    spawn_error: bool = False


def reply(text: str, *, token: str = "sess-1", cost: float = 0.0) -> Script:
    return Script(
        events=[
            Init(continuation_token=token),
            AssistantText(text=text),
            Result(duration_ms=1000, cost_usd=cost, tokens_in=10, tokens_out=5, num_turns=1),
        ]
    )


class ScriptedRunner:
    def __init__(self, factory: "ScriptedRunnerFactory", working_dir: str):
        self.factory = factory
        self.working_dir = working_dir
        self.returncode: int | None = None
        self.cleaned_up = False

    async def run(self, prompt: str, session_id: str | None = None) -> AsyncIterator[StreamEvent]:
        script = self.factory.next_script()
        self.factory.calls.append((prompt, session_id, self.working_dir))
        if script.spawn_error:
            raise SpawnError("claude", "No such file or directory")

        self.factory.active += 1
        self.factory.max_active = max(self.factory.max_active, self.factory.active)
        try:
            for event in script.events:
                await asyncio.sleep(0)
                yield event
            if script.gate is not None:
                await script.gate.wait()
        finally:
            self.factory.active -= 1
            self.returncode = script.returncode

    async def cleanup(self) -> None:
        self.cleaned_up = True


class ScriptedRunnerFactory:
    """RunnerFactory that plays back queued scripts, one per turn."""

    def __init__(self, *scripts: Script):
        self.scripts = list(scripts)
        self.calls: list[tuple[str, str | None, str]] = []
        self.runners: list[ScriptedRunner] = []
        self.active = 0
        self.max_active = 0

    def add(self, *scripts: Script) -> None:
        self.scripts.extend(scripts)

    def next_script(self) -> Script:
        if not self.scripts:
            return reply("ok")
        return self.scripts.pop(0)

    def __call__(self, working_dir: str) -> ScriptedRunner:
        runner = ScriptedRunner(self, working_dir)
        self.runners.append(runner)
        return runner


@pytest.fixture
def runner_factory() -> ScriptedRunnerFactory:
    return ScriptedRunnerFactory()


class FakeJID:
    def __init__(self, full: str):
        self.bare = full.split("/", 1)[0]


class FakeMessage(dict):
    """Just enough of a slixmpp Message for the inbound helpers and ThreadBot."""

    def __init__(
        self,
        sender: str,
        body: str = "",
        *,
        thread: str = "",
        mtype: str = "chat",
        xml: str = "<message/>",
    ):
        super().__init__({"from": FakeJID(sender), "body": body, "thread": thread, "type": mtype})
        self.xml = ET.fromstring(xml)
