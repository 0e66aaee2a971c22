#!/usr/bin/env python3
"""
Configuration for the Courier bridge.

Everything comes from the environment (optionally seeded from a `.env` file at
the repository root). Call load_env() before get_bridge_config().
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path

from courier.runners.claude.config import ClaudeConfig
from courier.streaming import DEFAULT_CHUNK_SIZE

_log = logging.getLogger("config")

DEFAULT_SESSION_TIMEOUT_S = 24 * 60 * 60


# =============================================================================
# Environment Loading
# =============================================================================


def load_env(env_path: Path | None = None) -> None:
    """Load .env file into os.environ. Handles quoted values and spaces."""
    if env_path is None:
        env_path = Path(__file__).parent.parent / ".env"

    if not env_path.exists():
        return

    for line in env_path.read_text().splitlines():
        line = line.strip()
        if line and not line.startswith("#") and "=" in line:
            key, val = line.split("=", 1)
            val = val.strip().strip('"').strip("'")
            os.environ[key.strip()] = val


# =============================================================================
# Aliases (alias -> project working directory)
# =============================================================================


def _normalize_aliases(payload: object) -> dict[str, str]:
    """Normalize alias config from a JSON object to {alias: absolute dir}."""
    if not isinstance(payload, dict):
        raise ValueError("aliases config must be a JSON object")

    out: dict[str, str] = {}
    for key, value in payload.items():
        name = str(key).strip().lower()
        if not name:
            continue
        if not isinstance(value, str) or not value.strip():
            _log.warning("Skipping alias %s: missing directory", name)
            continue
        out[name] = str(Path(value.strip()).expanduser())
    return out


def _load_aliases() -> dict[str, str]:
    """Load aliases from COURIER_ALIASES_JSON, else COURIER_ALIASES_FILE."""

    raw_json = (os.getenv("COURIER_ALIASES_JSON", "") or "").strip()
    raw_file = (os.getenv("COURIER_ALIASES_FILE", "") or "").strip()

    payload: object | None = None
    if raw_json:
        try:
            payload = json.loads(raw_json)
        except Exception as e:
            _log.warning("Invalid COURIER_ALIASES_JSON; no aliases configured: %s", e)
    elif raw_file:
        try:
            payload = json.loads(Path(raw_file).expanduser().read_text())
        except Exception as e:
            _log.warning("Invalid COURIER_ALIASES_FILE; no aliases configured: %s", e)

    if payload is None:
        return {}

    try:
        return _normalize_aliases(payload)
    except ValueError as e:
        _log.warning("Failed to normalize aliases config: %s", e)
        return {}


def _split_jids(raw: str) -> frozenset[str]:
    return frozenset(
        part.strip().split("/", 1)[0].lower() for part in raw.split(",") if part.strip()
    )


def _env_float(name: str, default: float) -> float:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        _log.warning("Invalid %s=%r; using %s", name, raw, default)
        return default


# =============================================================================
# Configuration (call load_env() before accessing these)
# =============================================================================


@dataclass(frozen=True)
class AttachmentsConfig:
    base_dir: Path
    max_bytes: int
    fetch_timeout_s: float


@dataclass(frozen=True)
class BridgeConfig:
    server: str
    domain: str
    jid: str
    password: str
    allowed_jids: frozenset[str]
    aliases: dict[str, str] = field(default_factory=dict)
    session_timeout_s: float = DEFAULT_SESSION_TIMEOUT_S
    chunk_size: int = DEFAULT_CHUNK_SIZE
    long_running_s: float = 120.0
    claude: ClaudeConfig = field(default_factory=ClaudeConfig)
    attachments: AttachmentsConfig | None = None


def get_attachments_config() -> AttachmentsConfig:
    default_dir = Path(tempfile.gettempdir()) / "courier-attachments"
    return AttachmentsConfig(
        base_dir=Path(os.getenv("COURIER_ATTACHMENTS_DIR", str(default_dir))).expanduser(),
        max_bytes=int(_env_float("COURIER_ATTACHMENT_MAX_BYTES", 10 * 1024 * 1024)),
        fetch_timeout_s=_env_float("COURIER_ATTACHMENT_FETCH_TIMEOUT_S", 20.0),
    )


def get_bridge_config() -> BridgeConfig:
    """Get bridge configuration from environment."""
    server = os.getenv("XMPP_SERVER", "your.xmpp.server")
    domain = os.getenv("XMPP_DOMAIN", server)
    recipient = os.getenv("XMPP_RECIPIENT", f"user@{domain}")

    chunk_size = int(_env_float("COURIER_CHUNK_SIZE", DEFAULT_CHUNK_SIZE))
    if chunk_size <= 0:
        _log.warning("COURIER_CHUNK_SIZE must be positive; using %s", DEFAULT_CHUNK_SIZE)
        chunk_size = DEFAULT_CHUNK_SIZE

    return BridgeConfig(
        server=server,
        domain=domain,
        jid=os.getenv("COURIER_JID", f"courier@{domain}"),
        password=os.getenv("COURIER_PASSWORD", os.getenv("XMPP_PASSWORD", "")),
        allowed_jids=_split_jids(os.getenv("COURIER_ALLOWED_JIDS", recipient)),
        aliases=_load_aliases(),
        session_timeout_s=_env_float("COURIER_SESSION_TIMEOUT_S", DEFAULT_SESSION_TIMEOUT_S),
        chunk_size=chunk_size,
        long_running_s=_env_float("COURIER_LONG_RUNNING_S", 120.0),
        claude=ClaudeConfig(),
        attachments=get_attachments_config(),
    )
