"""Tests for ThreadBot message routing, with the XMPP send path recorded."""

from __future__ import annotations

import pytest

from courier.bots.thread_bot import NO_SESSION_TEXT, ThreadBot
from courier.config import BridgeConfig
from courier.manager import SessionManager
from courier.runners.ports import AssistantText, Init, Result, ToolUse
from tests.conftest import FakeMessage, Script, ScriptedRunnerFactory

ME = "me@localhost"


def make_bot(factory: ScriptedRunnerFactory, workdir: str) -> tuple[ThreadBot, list]:
    config = BridgeConfig(
        server="localhost",
        domain="localhost",
        jid="courier@localhost",
        password="pw",
        allowed_jids=frozenset({ME}),
        aliases={"web": workdir},
        long_running_s=60,
    )
    manager = SessionManager(runner_factory=factory, session_timeout_s=60)
    bot = ThreadBot(config, manager)

    sent: list[tuple[str, str | None, str]] = []

    def send_reply(text, recipient, *, thread=None):
        sent.append((recipient, thread, text))

    bot.send_reply = send_reply
    bot.send_typing = lambda recipient, *, thread=None: None
    return bot, sent


def texts(sent) -> list[str]:
    return [t for _, _, t in sent]


class TestRouting:
    @pytest.mark.asyncio
    async def test_streams_turn_back_to_thread(self, tmp_path):
        factory = ScriptedRunnerFactory(
            Script(
                events=[
                    Init(continuation_token="s1"),
                    ToolUse(name="Bash", input={"command": "ls"}),
                    AssistantText(text="Hello"),
                    AssistantText(text="Hello\nworld"),
                    Result(duration_ms=1000, tokens_out=5, num_turns=1),
                ]
            )
        )
        bot, sent = make_bot(factory, str(tmp_path))

        await bot._handle_message(FakeMessage(ME, "/chat web", thread="t1"))
        sent.clear()
        await bot._handle_message(FakeMessage(f"{ME}/laptop", "list files", thread="t1"))
        await bot.drain_turns(timeout=5)

        assert texts(sent) == [
            "> Running command: `ls`",
            "Hello",
            "world",
            "1s | 5 tokens out | $0",
        ]
        assert {(r, t) for r, t, _ in sent} == {(ME, "t1")}
        assert factory.calls == [("list files", None, str(tmp_path))]

    @pytest.mark.asyncio
    async def test_threads_are_separate_sessions(self, tmp_path, runner_factory):
        bot, sent = make_bot(runner_factory, str(tmp_path))
        await bot._handle_message(FakeMessage(ME, "/chat web", thread="t1"))
        await bot._handle_message(FakeMessage(ME, "hello", thread="t2"))
        assert texts(sent)[-1] == NO_SESSION_TEXT
        assert bot.manager.has(f"{ME}#t1")
        assert not bot.manager.has(f"{ME}#t2")

    @pytest.mark.asyncio
    async def test_unknown_sender_ignored(self, tmp_path, runner_factory):
        bot, sent = make_bot(runner_factory, str(tmp_path))
        await bot._handle_message(FakeMessage("stranger@elsewhere", "/chat web"))
        assert sent == []
        assert bot.manager.list_active() == []

    @pytest.mark.asyncio
    async def test_groupchat_ignored(self, tmp_path, runner_factory):
        bot, sent = make_bot(runner_factory, str(tmp_path))
        await bot._handle_message(FakeMessage(ME, "/help", mtype="groupchat"))
        assert sent == []

    @pytest.mark.asyncio
    async def test_bang_commands(self, tmp_path, runner_factory):
        bot, sent = make_bot(runner_factory, str(tmp_path))
        await bot._handle_message(FakeMessage(ME, "!help"))
        assert texts(sent)[-1].startswith("/chat <alias>")


class TestFailures:
    @pytest.mark.asyncio
    async def test_process_failure_is_reported(self, tmp_path):
        factory = ScriptedRunnerFactory(Script(events=[], returncode=1))
        bot, sent = make_bot(factory, str(tmp_path))

        await bot._handle_message(FakeMessage(ME, "/chat web"))
        await bot._handle_message(FakeMessage(ME, "do it"))
        await bot.drain_turns(timeout=5)

        assert texts(sent)[-1] == "Error: Claude exited with code 1"
        assert bot.manager.get(ME).state.value == "idle"


class TestIdle:
    @pytest.mark.asyncio
    async def test_idle_summary_goes_to_conversation(self, tmp_path, runner_factory):
        bot, sent = make_bot(runner_factory, str(tmp_path))
        await bot._handle_message(FakeMessage(ME, "/chat web", thread="t1"))

        await bot.on_idle_timeout(f"{ME}#t1")

        recipient, thread, text = sent[-1]
        assert (recipient, thread) == (ME, "t1")
        assert text.startswith("Session closed - summary")
        assert text.endswith("(closed after inactivity)")

    @pytest.mark.asyncio
    async def test_unknown_conversation_is_silent(self, tmp_path, runner_factory):
        bot, sent = make_bot(runner_factory, str(tmp_path))
        await bot.on_idle_timeout("nobody@localhost")
        assert sent == []
