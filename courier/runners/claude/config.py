"""Claude runner configuration."""

from __future__ import annotations

import os
import shlex
from dataclasses import dataclass


@dataclass(frozen=True)
class ClaudeConfig:
    # Optional overrides (otherwise env defaults apply)
    claude_bin: str | None = None
    model: str | None = None
    extra_args: tuple[str, ...] | None = None

    def resolve_bin(self) -> str:
        return self.claude_bin or os.getenv("COURIER_CLAUDE_BIN", "claude")

    def resolve_command(self) -> list[str]:
        """The executable plus any wrapper args, e.g. 'npx claude'."""
        return shlex.split(self.resolve_bin())

    def resolve_model(self) -> str | None:
        return self.model or os.getenv("COURIER_CLAUDE_MODEL") or None

    def resolve_extra_args(self) -> list[str]:
        if self.extra_args is not None:
            return list(self.extra_args)
        raw = os.getenv("COURIER_CLAUDE_EXTRA_ARGS", "").strip()
        return shlex.split(raw) if raw else []
