from __future__ import annotations

import re
import time

_UNSAFE_CHARS_RE = re.compile(r'[<>:"/\\|?*]')
_WHITESPACE_RE = re.compile(r"\s+")
_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"
MAX_FILENAME_CHARS = 80


def sanitize_filename(name: str) -> str:
    cleaned = _UNSAFE_CHARS_RE.sub("", name)
    cleaned = _WHITESPACE_RE.sub("_", cleaned)
    return cleaned[:MAX_FILENAME_CHARS]


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36[remainder])
    return "".join(reversed(digits))


def generate_filename(title: str | None = None, service: str = "ai", conversation_id: str = "") -> str:
    safe_title = sanitize_filename(title or "conversation")
    prefix = (service or "ai").lower()
    ident = conversation_id[:8] if conversation_id else _to_base36(time.time_ns() // 1_000_000)
    return f"{prefix}_{ident}_{safe_title}.md"


def get_basename(filename: str) -> str:
    """Subdirectory name for a markdown file's images and attachments."""
    return filename[:-3] if filename.endswith(".md") else filename
