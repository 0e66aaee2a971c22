"""Base XMPP bot with common setup."""

from __future__ import annotations

import asyncio
import logging

from slixmpp.clientxmpp import ClientXMPP


class BaseXMPPBot(ClientXMPP):
    """
    Base class for XMPP bots.

    Provides:
    - Standard plugin registration (xep_0199, xep_0085, xep_0066)
    - Common connect method
    - send_reply and send_typing helpers (thread aware)
    - a single error boundary for handlers
    """

    def __init__(self, jid: str, password: str):
        super().__init__(jid, password)
        self.log = logging.getLogger("xmpp")
        self.shutting_down = False
        self._connected_event = asyncio.Event()

        self.register_plugin("xep_0199")  # Ping
        self.register_plugin("xep_0085")  # Chat State Notifications
        self.register_plugin("xep_0066")  # Out of Band Data (attachment URLs)

    def connect_to_server(self, server: str, port: int = 5222, *, plaintext: bool = True):
        """Connect to `server`; plaintext mode matches a local ejabberd/prosody setup."""
        if plaintext:
            self["feature_mechanisms"].unencrypted_plain = True  # type: ignore[attr-defined]
            self.enable_starttls = False
            self.enable_direct_tls = False
            self.enable_plaintext = True
        # slixmpp.ClientXMPP.connect expects a single address tuple.
        # TLS behavior is governed by the enable_* flags above.
        self.connect((server, port))  # type: ignore[arg-type]

    def set_connected(self, connected: bool) -> None:
        if connected:
            self._connected_event.set()
        else:
            self._connected_event.clear()

    async def wait_connected(self, timeout: float | None = None) -> bool:
        try:
            await asyncio.wait_for(self._connected_event.wait(), timeout)
            return True
        except asyncio.TimeoutError:
            return False

    def send_reply(self, text: str, recipient: str, *, thread: str | None = None) -> None:
        """Send a chat message, keeping it in the sender's conversation thread."""
        msg = self.make_message(mto=recipient, mbody=text, mtype="chat")
        if thread:
            msg["thread"] = thread
        msg["chat_state"] = "active"
        msg.send()

    def send_typing(self, recipient: str, *, thread: str | None = None) -> None:
        """Send composing (typing) indicator."""
        msg = self.make_message(mto=recipient, mtype="chat")
        if thread:
            msg["thread"] = thread
        msg["chat_state"] = "composing"
        msg.send()

    def _format_exception_for_user(self, exc: BaseException) -> str:
        msg = str(exc).strip()
        if msg:
            return f"Error: {type(exc).__name__}: {msg}"
        return f"Error: {type(exc).__name__}"

    async def guard(
        self,
        coro,
        *,
        recipient: str | None = None,
        thread: str | None = None,
        context: str | None = None,
    ):
        """Run a coroutine with a single error boundary.

        - Lets internal code raise normally.
        - Catches at the boundary, logs, and sends an error message to the
          relevant recipient.
        """

        try:
            return await coro
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            if context:
                self.log.exception("Unhandled error (%s)", context)
            else:
                self.log.exception("Unhandled error")
            if recipient:
                try:
                    self.send_reply(
                        self._format_exception_for_user(exc),
                        recipient,
                        thread=thread,
                    )
                except Exception:
                    self.log.debug("Failed to report error to %s", recipient, exc_info=True)
            return None

    def spawn_guarded(
        self,
        coro,
        *,
        recipient: str | None = None,
        thread: str | None = None,
        context: str | None = None,
    ) -> asyncio.Task:
        """Create a task that reports exceptions to the user."""
        return asyncio.create_task(
            self.guard(coro, recipient=recipient, thread=thread, context=context)
        )
