"""Shared runner pipeline helpers.

Turns a raw byte stream of newline-delimited JSON into parsed events. Engines
supply how one decoded record maps to zero or more events; this module owns
buffering, line splitting, and tolerance of malformed lines.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import AsyncIterator, Callable, Protocol, TypeVar

from courier.runners.base import RunState

log = logging.getLogger(__name__)

T = TypeVar("T")

_READ_CHUNK_BYTES = 64 * 1024
_MAX_KEPT_NON_JSON = 50


class ByteStream(Protocol):
    async def read(self, n: int = -1) -> bytes: ...


@dataclass
class JSONLineStats:
    emitted_any: bool = False
    records: int = 0
    non_json_lines: list[str] = field(default_factory=list)


def decode_record(line: bytes | str) -> dict | None:
    """Decode one protocol line; None for blank, malformed, or non-object lines."""
    if isinstance(line, bytes):
        line = line.decode("utf-8", errors="replace")
    line = line.strip()
    if not line:
        return None
    try:
        record = json.loads(line)
    except json.JSONDecodeError:
        return None
    if not isinstance(record, dict):
        return None
    return record


def split_lines(buf: bytearray) -> list[bytes]:
    """Pop every complete line off `buf`, leaving the trailing partial line."""
    idx = buf.rfind(b"\n")
    if idx == -1:
        return []
    complete = bytes(buf[:idx])
    del buf[: idx + 1]
    return complete.split(b"\n")


async def iter_json_line_pipeline(
    *,
    byte_stream: ByteStream,
    state: RunState,
    parse_event: Callable[[dict, RunState], list[T]],
    stats: JSONLineStats,
    read_size: int = _READ_CHUNK_BYTES,
) -> AsyncIterator[T]:
    """Drive `parse_event` over every JSON line of `byte_stream` until EOF.

    Lines may arrive split across reads; the unterminated tail is re-buffered
    and, once the stream ends, decoded as one last record.
    """

    buf = bytearray()

    def _handle(raw: bytes) -> list[T]:
        record = decode_record(raw)
        if record is None:
            text = raw.decode("utf-8", errors="replace").strip()
            if text:
                state.skipped_lines += 1
                if len(stats.non_json_lines) < _MAX_KEPT_NON_JSON:
                    stats.non_json_lines.append(text)
                log.debug("Skipping non-JSON line: %s", text[:200])
            return []
        stats.records += 1
        return parse_event(record, state)

    while True:
        chunk = await byte_stream.read(read_size)
        if not chunk:
            break
        buf.extend(chunk)

        for raw in split_lines(buf):
            for item in _handle(raw):
                stats.emitted_any = True
                yield item

    # Processes sometimes omit the final newline.
    if buf.strip():
        for item in _handle(bytes(buf)):
            stats.emitted_any = True
            yield item
