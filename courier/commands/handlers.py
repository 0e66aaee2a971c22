"""Command handlers for the conversation bot."""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Any, Awaitable, Callable, cast

from courier.bots.inbound import ConversationRef
from courier.bots.typing import TypingIndicator
from courier.core.session_runtime import NO_RESPONSE_TEXT
from courier.errors import CourierError
from courier.formatting import cost_line, format_cost, format_duration, session_summary

if TYPE_CHECKING:
    from courier.bots.thread_bot import ThreadBot

Handler = Callable[[str, ConversationRef], Awaitable[bool]]


def command(name: str, *aliases: str, exact: bool = True):
    """Decorator to register a command handler.

    Args:
        name: Primary command name (e.g., "/kill")
        *aliases: Additional names that trigger this command
        exact: If True, requires exact match; if False, allows prefix match
    """

    def decorator(func: Callable[..., Awaitable[bool]]) -> Callable[..., Awaitable[bool]]:
        setattr(func, "_command_name", name)
        setattr(func, "_command_aliases", aliases)
        setattr(func, "_command_exact", exact)
        return func

    return decorator


class CommandHandler:
    """Handles slash commands for ThreadBot.

    Commands are registered via the @command decorator on methods.
    The handler auto-discovers all decorated methods on init.
    """

    def __init__(self, bot: "ThreadBot"):
        self.bot = bot
        self._commands: dict[str, tuple[Handler, bool]] = {}
        self._discover_commands()

    def _discover_commands(self) -> None:
        for name in dir(self):
            method = getattr(self, name)
            if callable(method) and hasattr(method, "_command_name"):
                m = cast(Any, method)
                handler = cast(Handler, method)
                exact = cast(bool, m._command_exact)
                self._commands[cast(str, m._command_name)] = (handler, exact)
                for alias in cast(tuple[str, ...], m._command_aliases):
                    self._commands[alias] = (handler, exact)

    @property
    def names(self) -> list[str]:
        return sorted(self._commands)

    async def handle(self, body: str, ref: ConversationRef) -> bool:
        """Handle a command. Returns True if command was handled."""
        cmd = body.strip().lower()

        for prefix, (handler, exact) in self._commands.items():
            if exact and cmd == prefix:
                return await handler(body, ref)

        # Prefix commands must be followed by an argument separator.
        best: tuple[int, Handler] | None = None
        for prefix, (handler, exact) in self._commands.items():
            if exact:
                continue
            if cmd == prefix or cmd.startswith(prefix + " "):
                if best is None or len(prefix) > best[0]:
                    best = (len(prefix), handler)
        if best is not None:
            return await best[1](body, ref)

        return False

    def _reply(self, ref: ConversationRef, text: str) -> None:
        self.bot.reply(ref, text)

    @command("/chat", "/new", exact=False)
    async def chat(self, body: str, ref: ConversationRef) -> bool:
        """Start a session bound to a project alias."""
        aliases = self.bot.config.aliases
        parts = body.strip().split(maxsplit=1)
        alias = parts[1].strip().lower() if len(parts) > 1 else ""

        if alias not in aliases:
            available = ", ".join(sorted(aliases)) or "(none configured)"
            if alias:
                self._reply(ref, f'Unknown alias "{alias}". Available: {available}')
            else:
                self._reply(ref, f"Usage: /chat <alias>. Available: {available}")
            return True

        if self.bot.manager.has(ref.key):
            session = self.bot.manager.get(ref.key)
            current = session.alias if session else alias
            self._reply(ref, f"A session for {current} is already open here. /kill it first.")
            return True

        cwd = aliases[alias]
        self.bot.manager.create(ref.key, alias, cwd)
        self.bot.remember(ref)
        self._reply(
            ref,
            f"Session created for {alias} ({cwd}).\n"
            "Send messages here for Claude. Commands: /kill /cost /compact",
        )
        return True

    @command("/sessions")
    async def sessions(self, _body: str, ref: ConversationRef) -> bool:
        """List active sessions."""
        active = self.bot.manager.list_active()
        if not active:
            self._reply(ref, "No active sessions.")
            return True

        now = time.time()
        lines = []
        for s in active:
            stats = self.bot.manager.get_stats(s.key)
            msgs = stats.totals.total_messages if stats else 0
            cost = format_cost(stats.totals.total_cost_usd) if stats else "$0"
            age = format_duration((now - s.created_at) * 1000)
            lines.append(f"{s.alias} | {age} | {msgs} msgs | {cost} | {s.key}")
        lines.append(f"Total: {len(active)}")
        self._reply(ref, "\n".join(lines))
        return True

    @command("/kill")
    async def kill(self, _body: str, ref: ConversationRef) -> bool:
        """Close the session and post its summary."""
        stats = self.bot.manager.get_stats(ref.key)
        if not self.bot.manager.kill(ref.key):
            self._reply(ref, "No active session here.")
            return True
        self.bot.forget(ref)
        self._reply(ref, session_summary(stats))
        return True

    @command("/cost")
    async def cost(self, _body: str, ref: ConversationRef) -> bool:
        stats = self.bot.manager.get_stats(ref.key)
        if stats is None:
            self._reply(ref, "No active session here.")
            return True
        self._reply(ref, cost_line(stats))
        return True

    @command("/compact")
    async def compact(self, _body: str, ref: ConversationRef) -> bool:
        """Ask Claude to compact its context; queued behind any running turn."""
        if not self.bot.manager.has(ref.key):
            self._reply(ref, "No active session here.")
            return True

        typing = TypingIndicator(
            send_typing=lambda: self.bot.send_typing(ref.jid, thread=ref.thread),
            is_active=lambda: self.bot.manager.has(ref.key),
            is_shutting_down=lambda: self.bot.shutting_down,
        )
        typing.start()
        try:
            result = await self.bot.manager.enqueue(ref.key, "/compact")
        except CourierError as e:
            self._reply(ref, f"Compaction failed: {e}")
            return True
        finally:
            typing.stop()

        if not result or result == NO_RESPONSE_TEXT:
            result = "Context compacted."
        self._reply(ref, result)
        return True

    @command("/help")
    async def help(self, _body: str, ref: ConversationRef) -> bool:
        aliases = ", ".join(sorted(self.bot.config.aliases)) or "(none configured)"
        self._reply(
            ref,
            "\n".join(
                [
                    "/chat <alias> - start a session in a project",
                    "/sessions - list active sessions",
                    "/cost - running totals for this session",
                    "/compact - compact Claude's context",
                    "/kill - close this session",
                    f"Aliases: {aliases}",
                ]
            ),
        )
        return True
