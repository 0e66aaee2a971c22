"""Conversation bot - one XMPP account fronting every Claude session."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from courier.attachments import AttachmentStore, augment_prompt
from courier.bots.base import BaseXMPPBot
from courier.bots.inbound import (
    ConversationRef,
    conversation_ref,
    extract_attachment_urls,
    normalize_leading_at,
)
from courier.bots.typing import TypingIndicator
from courier.commands import CommandHandler
from courier.core.session_runtime import TurnCallbacks, TurnStats
from courier.errors import CourierError, TurnCancelledError
from courier.formatting import (
    format_duration,
    result_stats_line,
    session_summary,
    tool_description,
)
from courier.streaming import TextDeltaEmitter

if TYPE_CHECKING:
    from courier.config import BridgeConfig
    from courier.manager import SessionManager

NO_SESSION_TEXT = "No active session. Start one with /chat <alias>"
TYPING_INTERVAL_S = 8.0


class ThreadBot(BaseXMPPBot):
    """Routes chat messages from allowed JIDs into SessionManager turns."""

    def __init__(
        self,
        config: "BridgeConfig",
        manager: "SessionManager",
        attachments: AttachmentStore | None = None,
    ):
        super().__init__(config.jid, config.password)
        self.log = logging.getLogger("bot")
        self.config = config
        self.manager = manager
        self.attachments = attachments
        self.commands = CommandHandler(self)
        # key -> where to post replies that are not triggered by a message
        # (idle eviction summaries).
        self._conversations: dict[str, ConversationRef] = {}
        self._turns: set[asyncio.Task] = set()

        self.add_event_handler("session_start", self.on_start)
        self.add_event_handler("message", self.on_message)
        self.add_event_handler("disconnected", self.on_disconnected)

    # -------------------------------------------------------------------------
    # Connection lifecycle
    # -------------------------------------------------------------------------

    async def on_start(self, event):
        await self.guard(self._on_start(event), context="bot.on_start")

    async def _on_start(self, event):
        self.send_presence()
        try:
            await asyncio.wait_for(self.get_roster(), timeout=15)
        except asyncio.TimeoutError:
            self.log.error("Startup timed out fetching roster")
            self.disconnect()
            return
        self.log.info("Connected as %s", self.boundjid.bare)
        self.set_connected(True)

    def on_disconnected(self, event):
        self.set_connected(False)
        if self.shutting_down:
            self.log.info("Disconnected during shutdown")
        else:
            self.log.warning("Disconnected from XMPP server")

    # -------------------------------------------------------------------------
    # Conversations
    # -------------------------------------------------------------------------

    def reply(self, ref: ConversationRef, text: str) -> None:
        self.send_reply(text, ref.jid, thread=ref.thread)

    def remember(self, ref: ConversationRef) -> None:
        self._conversations[ref.key] = ref

    def forget(self, ref: ConversationRef) -> None:
        self._conversations.pop(ref.key, None)

    def is_allowed(self, jid: str) -> bool:
        return jid in self.config.allowed_jids

    async def on_message(self, msg):
        await self.guard(self._handle_message(msg), context="bot.on_message")

    async def _handle_message(self, msg):
        if msg["type"] not in ("chat", "normal"):
            return
        if self.shutting_down:
            return

        ref = conversation_ref(msg)
        if not self.is_allowed(ref.jid):
            self.log.debug("Ignoring message from %s", ref.jid)
            return

        body = normalize_leading_at(str(msg["body"] or ""))
        urls = extract_attachment_urls(msg)
        if not body and not urls:
            return

        if body.startswith("/") and await self.commands.handle(body, ref):
            return

        if not self.manager.has(ref.key):
            self.reply(ref, NO_SESSION_TEXT)
            return

        self.remember(ref)
        task = self.spawn_guarded(
            self.run_turn(ref, body, urls),
            recipient=ref.jid,
            thread=ref.thread,
            context=f"turn {ref.key}",
        )
        self._turns.add(task)
        task.add_done_callback(self._turns.discard)

    async def run_turn(self, ref: ConversationRef, body: str, urls: list[str]) -> None:
        """Send one message to Claude and stream the answer back."""
        emitter = TextDeltaEmitter(self.config.chunk_size, trim_leading=True)
        result_stats: list[TurnStats] = []
        done = False

        def on_tool_use(name: str, tool_input: dict[str, Any]) -> None:
            self.reply(ref, f"> {tool_description(name, tool_input)}")
            typing.maybe_send(min_interval_s=5.0)

        def on_text(snapshot: str) -> None:
            for chunk in emitter.iter_feed(snapshot):
                self.reply(ref, chunk)

        def on_result(stats: TurnStats) -> None:
            result_stats.append(stats)

        typing = TypingIndicator(
            send_typing=lambda: self.send_typing(ref.jid, thread=ref.thread),
            is_active=lambda: not done,
            is_shutting_down=lambda: self.shutting_down,
        )
        loop = asyncio.get_running_loop()
        long_running = loop.call_later(
            self.config.long_running_s,
            lambda: self.reply(
                ref,
                f"Still working... (> {format_duration(self.config.long_running_s * 1000)})",
            ),
        )

        typing.start(interval_s=TYPING_INTERVAL_S)
        try:
            prompt = body
            if urls and self.attachments is not None:
                saved = await self.attachments.download(ref.key, urls)
                prompt = augment_prompt(body, saved)
            final_text = await self.manager.enqueue(
                ref.key,
                prompt,
                TurnCallbacks(on_tool_use=on_tool_use, on_text=on_text, on_result=on_result),
            )
        except TurnCancelledError:
            self.reply(ref, "Session closed before this message was processed.")
            return
        except CourierError as e:
            self.log.warning("Turn failed for %s: %s", ref.key, e)
            self.reply(ref, f"Error: {e}")
            return
        finally:
            done = True
            long_running.cancel()
            typing.stop()

        for chunk in emitter.feed_final(final_text):
            self.reply(ref, chunk)
        if result_stats:
            self.reply(ref, result_stats_line(result_stats[-1]))
        self.log.info("Turn done for %s, %d chars", ref.key, len(final_text))

    async def on_idle_timeout(self, key: str) -> None:
        """Post the closing summary before an idle session is evicted."""
        ref = self._conversations.pop(key, None)
        if ref is None or self.shutting_down:
            return
        summary = session_summary(self.manager.get_stats(key))
        self.reply(ref, f"{summary}\n(closed after inactivity)")

    async def drain_turns(self, timeout: float | None = None) -> None:
        if not self._turns:
            return
        await asyncio.wait(list(self._turns), timeout=timeout)
