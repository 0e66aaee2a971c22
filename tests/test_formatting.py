"""Tests for chat reply formatting."""

from __future__ import annotations

from courier.core.session_runtime import SessionStats, StatsTotals, TurnStats
from courier.formatting import (
    cost_line,
    format_cost,
    format_duration,
    result_stats_line,
    session_summary,
    tool_description,
)


def _stats(**totals) -> SessionStats:
    return SessionStats(
        alias="web",
        working_dir="/srv/web",
        created_at=1000.0,
        last_activity_at=1060.0,
        totals=StatsTotals(**totals),
    )


class TestFormatDuration:
    def test_units(self):
        assert format_duration(450) == "450ms"
        assert format_duration(12_500) == "12s"
        assert format_duration(125_000) == "2m 5s"
        assert format_duration(0) == "0ms"


class TestFormatCost:
    def test_values(self):
        assert format_cost(0) == "$0"
        assert format_cost(0.0042) == "$0.0042"
        assert format_cost(1.5) == "$1.50"


class TestToolDescription:
    def test_file_tools(self):
        assert tool_description("Read", {"file_path": "/a.py"}) == "Reading file: `/a.py`"

    def test_bash_preview_is_truncated(self):
        desc = tool_description("Bash", {"command": "x" * 200})
        assert desc == "Running command: `" + "x" * 80 + "...`"

    def test_unknown_tool(self):
        assert tool_description("mcp__db__query", None) == "mcp__db__query"


class TestStatsLines:
    def test_result_stats_line(self):
        line = result_stats_line(TurnStats(duration_ms=3200, output_tokens=120, cost_usd=0.05, num_turns=2))
        assert line == "3s | 120 tokens out | $0.05 | 2 turns"

    def test_cost_line(self):
        line = cost_line(
            _stats(total_cost_usd=0.03, total_tokens_in=1500, total_tokens_out=20, total_messages=2),
            now=1090.0,
        )
        assert line == "Cost: $0.03 | Tokens: 1,500 in / 20 out | Messages: 2 | Age: 1m 30s"

    def test_session_summary(self):
        summary = session_summary(_stats(total_messages=3, total_turns=4), now=1010.0)
        assert summary.splitlines()[0] == "Session closed - summary"
        assert "Project: web (/srv/web)" in summary
        assert "Duration: 10s" in summary
        assert "Turns: 4" in summary

    def test_summary_without_stats(self):
        assert session_summary(None) == "Session closed."
