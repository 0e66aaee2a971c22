"""Streaming helpers: cumulative snapshots to forward-only message chunks.

Claude's stream-json output repeats the whole answer-so-far in every assistant
record. Chat clients want only what is new, cut into messages that fit the
transport's size limit.
"""

from __future__ import annotations

from typing import Iterator

DEFAULT_CHUNK_SIZE = 1900


def iter_chunks(text: str, max_chunk: int = DEFAULT_CHUNK_SIZE) -> Iterator[str]:
    """Yield pieces of `text`, each at most `max_chunk` long.

    Prefers to cut after the last newline in the window, then after the last
    space, as long as that cut lies past half the window; otherwise cuts hard.
    The pieces concatenate back to `text` exactly.
    """
    if max_chunk <= 0:
        raise ValueError("max_chunk must be positive")

    half = max_chunk * 0.5
    remaining = text
    while remaining:
        if len(remaining) <= max_chunk:
            yield remaining
            return

        window = remaining[:max_chunk]
        idx = window.rfind("\n")
        if idx < half:
            idx = window.rfind(" ")
        cut = idx + 1 if idx >= half else max_chunk

        yield remaining[:cut]
        remaining = remaining[cut:]


def split_message(text: str, max_chunk: int = DEFAULT_CHUNK_SIZE) -> list[str]:
    return list(iter_chunks(text, max_chunk))


class TextDeltaEmitter:
    """Turns successive cumulative snapshots of one turn into new-text chunks.

    If a snapshot does not extend the previous one (the model restarted its
    answer), the whole snapshot is sent again rather than a corrupted suffix.
    """

    def __init__(self, max_chunk: int = DEFAULT_CHUNK_SIZE, *, trim_leading: bool = False):
        if max_chunk <= 0:
            raise ValueError("max_chunk must be positive")
        self.max_chunk = max_chunk
        self.trim_leading = trim_leading
        self.last_snapshot = ""

    def delta(self, snapshot: str) -> str:
        if snapshot == self.last_snapshot:
            return ""

        if snapshot.startswith(self.last_snapshot):
            new = snapshot[len(self.last_snapshot):]
            if self.trim_leading:
                new = new.lstrip()
        else:
            new = snapshot

        self.last_snapshot = snapshot
        return new

    def iter_feed(self, snapshot: str) -> Iterator[str]:
        new = self.delta(snapshot)
        if new:
            yield from iter_chunks(new, self.max_chunk)

    def feed(self, snapshot: str) -> list[str]:
        return list(self.iter_feed(snapshot))

    def feed_final(self, final_text: str) -> list[str]:
        """Chunks of the final answer that were not already streamed."""
        return self.feed(final_text)
