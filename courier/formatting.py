"""Human-readable formatting for chat replies."""

from __future__ import annotations

import time

from courier.core.session_runtime.api import SessionStats, TurnStats

TOOL_LABELS = {
    "Read": "Reading file",
    "Edit": "Editing file",
    "Write": "Writing file",
    "Bash": "Running command",
    "Glob": "Finding files",
    "Grep": "Searching content",
    "Task": "Starting agent",
    "WebFetch": "Fetching page",
    "WebSearch": "Searching the web",
}

_BASH_PREVIEW_CHARS = 80


def format_duration(ms: float) -> str:
    ms = int(ms or 0)
    if ms < 1000:
        return f"{ms}ms"
    s = ms // 1000
    if s < 60:
        return f"{s}s"
    m = s // 60
    return f"{m}m {s % 60}s"


def format_cost(usd: float) -> str:
    if not usd:
        return "$0"
    if usd < 0.01:
        return f"${usd:.4f}"
    return f"${usd:.2f}"


def tool_description(name: str, tool_input: dict | None) -> str:
    label = TOOL_LABELS.get(name, name)
    tool_input = tool_input if isinstance(tool_input, dict) else {}

    detail = ""
    if name in ("Read", "Edit", "Write"):
        detail = str(tool_input.get("file_path") or "")
    elif name in ("Glob", "Grep"):
        detail = str(tool_input.get("pattern") or "")
    elif name == "Bash":
        detail = str(tool_input.get("command") or "")
        if len(detail) > _BASH_PREVIEW_CHARS:
            detail = detail[:_BASH_PREVIEW_CHARS] + "..."

    if detail:
        return f"{label}: `{detail}`"
    return label


def result_stats_line(stats: TurnStats) -> str:
    parts = [
        format_duration(stats.duration_ms),
        f"{stats.output_tokens} tokens out",
        format_cost(stats.cost_usd),
    ]
    if stats.num_turns > 1:
        parts.append(f"{stats.num_turns} turns")
    return " | ".join(parts)


def cost_line(stats: SessionStats, *, now: float | None = None) -> str:
    totals = stats.totals
    age_ms = ((now or time.time()) - stats.created_at) * 1000
    return (
        f"Cost: {format_cost(totals.total_cost_usd)}"
        f" | Tokens: {totals.total_tokens_in:,} in / {totals.total_tokens_out:,} out"
        f" | Messages: {totals.total_messages}"
        f" | Age: {format_duration(age_ms)}"
    )


def session_summary(stats: SessionStats | None, *, now: float | None = None) -> str:
    if stats is None:
        return "Session closed."

    totals = stats.totals
    age_ms = ((now or time.time()) - stats.created_at) * 1000
    lines = [
        "Session closed - summary",
        f"Project: {stats.alias} ({stats.working_dir})",
        f"Duration: {format_duration(age_ms)}",
        f"Messages: {totals.total_messages}",
        f"Tokens: {totals.total_tokens_in:,} in / {totals.total_tokens_out:,} out",
        f"Cost: {format_cost(totals.total_cost_usd)}",
        f"Turns: {totals.total_turns}",
    ]
    return "\n".join(lines)
