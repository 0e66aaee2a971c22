"""Base runner functionality shared by runner implementations."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class RunState:
    """Accumulates state during a runner execution."""

    start_time: datetime = field(default_factory=datetime.now)
    session_id: str | None = None
    text: str = ""
    tool_count: int = 0
    saw_result: bool = False
    skipped_lines: int = 0

    @property
    def duration_s(self) -> float:
        return (datetime.now() - self.start_time).total_seconds()


class BaseRunner:
    """Base class for CLI runners."""

    def __init__(self, working_dir: str):
        self.working_dir = working_dir
        self.returncode: int | None = None
