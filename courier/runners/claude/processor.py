"""Claude runner event processing.

Separates record classification from the subprocess orchestration in
`courier/runners/claude/runner.py`.
"""

from __future__ import annotations

import logging

from courier.runners.base import RunState
from courier.runners.ports import AssistantText, Init, Result, StreamEvent, ToolUse

log = logging.getLogger("claude")


def _as_int(value: object) -> int:
    if isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        return int(value)
    return 0


def _as_float(value: object) -> float:
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    return 0.0


class ClaudeEventProcessor:
    """Maps decoded stream-json records to typed stream events."""

    def _handle_init(self, event: dict, state: RunState) -> StreamEvent | None:
        if event.get("type") == "system" and event.get("subtype") != "init":
            return None
        session_id = event.get("session_id")
        if isinstance(session_id, str) and session_id:
            state.session_id = session_id
            return Init(continuation_token=session_id)
        return None

    def _handle_assistant_text(self, block: dict, state: RunState) -> StreamEvent | None:
        text = block.get("text")
        if not isinstance(text, str):
            return None
        state.text = text
        return AssistantText(text=text)

    def _handle_assistant_tool(self, block: dict, state: RunState) -> StreamEvent:
        state.tool_count += 1
        name = block.get("name")
        tool_input = block.get("input")
        return ToolUse(
            name=str(name) if name else "?",
            input=tool_input if isinstance(tool_input, dict) else {},
        )

    def _handle_assistant(self, event: dict, state: RunState) -> list[StreamEvent]:
        events: list[StreamEvent] = []
        message = event.get("message")
        content = message.get("content") if isinstance(message, dict) else None
        if not isinstance(content, list):
            return events

        for block in content:
            if not isinstance(block, dict):
                continue
            block_type = block.get("type")
            if block_type == "text":
                result = self._handle_assistant_text(block, state)
                if result:
                    events.append(result)
            elif block_type == "tool_use":
                events.append(self._handle_assistant_tool(block, state))

        return events

    def _handle_result(self, event: dict, state: RunState) -> StreamEvent:
        state.saw_result = True
        is_error = bool(event.get("is_error"))
        if is_error:
            log.warning("Claude reported an error result: %s", str(event.get("result"))[:200])

        usage = event.get("usage")
        if not isinstance(usage, dict):
            usage = {}

        text = event.get("result")
        return Result(
            duration_ms=_as_int(event.get("duration_ms")),
            cost_usd=_as_float(event.get("total_cost_usd")),
            tokens_in=_as_int(usage.get("input_tokens")),
            tokens_out=_as_int(usage.get("output_tokens")),
            num_turns=_as_int(event.get("num_turns")),
            text=text if isinstance(text, str) and text else None,
            cache_read_tokens=_as_int(usage.get("cache_read_input_tokens")),
            cache_creation_tokens=_as_int(usage.get("cache_creation_input_tokens")),
            is_error=is_error,
        )

    def parse_event(self, event: dict, state: RunState) -> list[StreamEvent]:
        event_type = event.get("type")

        if event_type in ("system", "init"):
            result = self._handle_init(event, state)
            return [result] if result else []
        if event_type == "assistant":
            return self._handle_assistant(event, state)
        if event_type == "result":
            return [self._handle_result(event, state)]

        return []
