"""Inbound message parsing helpers for ThreadBot."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ConversationRef:
    """Where a conversation lives: the peer's bare JID plus an optional XMPP thread."""

    jid: str
    thread: str | None = None

    @property
    def key(self) -> str:
        if self.thread:
            return f"{self.jid}#{self.thread}"
        return self.jid


def conversation_ref(msg) -> ConversationRef:
    jid = str(msg["from"].bare).lower()
    thread = str(msg["thread"] or "").strip() or None
    return ConversationRef(jid=jid, thread=thread)


def extract_attachment_urls(msg) -> list[str]:
    """URLs the client attached out-of-band (XEP-0066). Links typed in the body are left alone."""
    root = getattr(msg, "xml", None)
    if root is None:
        return []

    # jabber:x:oob and similar: any <url> element below the stanza root.
    urls: list[str] = []
    for el in root:
        for child in el.iter():
            tag = child.tag if isinstance(child.tag, str) else ""
            if tag.endswith("}url") or tag == "url":
                text = (child.text or "").strip()
                if text.startswith("http"):
                    urls.append(text)

    seen: set[str] = set()
    out: list[str] = []
    for u in urls:
        if u in seen:
            continue
        seen.add(u)
        out.append(u)
    return out


def normalize_leading_at(body: str) -> str:
    body = (body or "").strip()
    if body.startswith("@") or body.startswith("!"):  # convenience aliases for slash commands
        return "/" + body[1:]
    return body
