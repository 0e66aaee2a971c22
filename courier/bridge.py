#!/usr/bin/env python3
"""
Courier - XMPP bridge to Claude Code

One bot account relays chat messages to the `claude` CLI. Each conversation
(sender JID, plus the XMPP thread when the client sets one) is its own
resumable Claude session bound to a project directory.

- /chat <alias> starts a session in the alias's directory
- every other message is a turn; answers stream back as they are written
- /kill closes the session and posts its cost summary
"""

from __future__ import annotations

import asyncio
import logging
import signal

from courier.attachments import AttachmentStore
from courier.bots.thread_bot import ThreadBot
from courier.config import get_bridge_config, load_env
from courier.manager import SessionManager
from courier.runners.claude import claude_runner_factory

log = logging.getLogger("bridge")


async def main():
    cfg = get_bridge_config()
    if not cfg.password:
        log.error("COURIER_PASSWORD is not set")
        return
    if not cfg.aliases:
        log.warning("No aliases configured; /chat will have nothing to offer")

    manager = SessionManager(
        runner_factory=claude_runner_factory(cfg.claude),
        session_timeout_s=cfg.session_timeout_s,
    )
    bot = ThreadBot(cfg, manager, AttachmentStore(cfg.attachments))
    manager.on_idle_timeout(bot.on_idle_timeout)

    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop.set)

    bot.connect_to_server(cfg.server)
    if await bot.wait_connected(timeout=30):
        log.info(f"Bridge ready: {len(cfg.aliases)} alias(es), {len(cfg.allowed_jids)} allowed JID(s)")
    else:
        log.warning("Not connected after 30s; still trying")

    await stop.wait()

    log.info(f"Shutting down ({len(manager.list_active())} active session(s))...")
    bot.shutting_down = True
    await manager.shutdown()
    await bot.drain_turns(timeout=5)
    bot.disconnect()


def run() -> None:
    load_env()
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        log.info("Shutting down...")


if __name__ == "__main__":
    run()
