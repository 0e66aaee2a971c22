"""Attachment downloads.

Files linked from an incoming message are fetched into a per-session folder so
Claude can open them from disk; the prompt then references the local paths.
"""

from __future__ import annotations

import asyncio
import logging
import os
import re
import time
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable
from urllib.parse import unquote, urlparse

import aiohttp

from courier.config import AttachmentsConfig, get_attachments_config

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Attachment:
    kind: str  # "image" | "file"
    mime: str
    local_path: str
    size_bytes: int
    original_url: str


_IMAGE_EXTS = {".png", ".jpg", ".jpeg", ".gif", ".webp"}


def _safe_slug(text: str) -> str:
    text = text.strip().lower()
    text = re.sub(r"[^a-z0-9._-]+", "-", text)
    text = re.sub(r"-+", "-", text).strip("-")
    return text or "file"


def _filename_from_url(url: str) -> str:
    name = os.path.basename(unquote(urlparse(url).path))
    return _safe_slug(name) if name else "file"


def _is_disallowed_url(url: str) -> bool:
    try:
        parsed = urlparse(url)
    except Exception:
        return True
    if parsed.scheme not in {"http", "https"}:
        return True
    host = (parsed.hostname or "").strip().lower()
    if not host:
        return True
    if host in {"localhost", "127.0.0.1", "::1"}:
        return True
    # Best-effort guardrails against obvious private IP literals.
    if re.match(r"^10\.", host):
        return True
    if re.match(r"^192\.168\.", host):
        return True
    if re.match(r"^172\.(1[6-9]|2\d|3[0-1])\.", host):
        return True
    if host.startswith("169.254."):
        return True
    return False


def _is_image(mime: str, filename: str) -> bool:
    return mime.startswith("image/") or Path(filename).suffix.lower() in _IMAGE_EXTS


def augment_prompt(body: str, attachments: list[Attachment] | None) -> str:
    """Append local attachment paths to the user's text."""
    if not attachments:
        return body
    lines = []
    for att in attachments:
        if att.kind == "image":
            lines.append(f"[Attached image: {att.local_path}]")
        else:
            lines.append(f"[Attached file saved to: {att.local_path}]")
    notes = "\n".join(lines)
    return f"{body}\n\n{notes}" if body else notes


class AttachmentStore:
    def __init__(self, config: AttachmentsConfig | None = None):
        cfg = config or get_attachments_config()
        self.base_dir = cfg.base_dir
        self.max_bytes = cfg.max_bytes
        self.fetch_timeout_s = cfg.fetch_timeout_s

    def session_dir(self, session_key: str) -> Path:
        d = self.base_dir / _safe_slug(session_key)
        d.mkdir(parents=True, exist_ok=True)
        return d

    async def download(self, session_key: str, urls: Iterable[str]) -> list[Attachment]:
        """Fetch each allowed URL; failures and oversized files are skipped."""
        out: list[Attachment] = []

        async with aiohttp.ClientSession(
            timeout=aiohttp.ClientTimeout(total=self.fetch_timeout_s)
        ) as http:
            for url in urls:
                url = (url or "").strip()
                if not url or _is_disallowed_url(url):
                    continue

                try:
                    async with http.get(url) as resp:
                        if resp.status >= 400:
                            log.info("Attachment fetch %s -> HTTP %s", url, resp.status)
                            continue
                        mime = (
                            (resp.headers.get("Content-Type") or "")
                            .split(";", 1)[0]
                            .strip()
                            .lower()
                        )

                        data = bytearray()
                        async for chunk in resp.content.iter_chunked(64 * 1024):
                            data.extend(chunk)
                            if len(data) > self.max_bytes:
                                data = bytearray()
                                break
                        if not data:
                            continue
                except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                    log.warning("Attachment fetch failed for %s: %s", url, e)
                    continue

                filename = _filename_from_url(url)
                path = self.session_dir(session_key) / (
                    f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:6]}-{filename}"
                )
                path.write_bytes(bytes(data))
                out.append(
                    Attachment(
                        kind="image" if _is_image(mime, filename) else "file",
                        mime=mime or "application/octet-stream",
                        local_path=str(path),
                        size_bytes=len(data),
                        original_url=url,
                    )
                )

        return out
