from __future__ import annotations

import math
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

from config.settings import get_settings
from transcript.schema import is_number


def _parse_iso(value: str) -> datetime | None:
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_timestamp(
    value: str | int | float | None,
    *,
    tz: str | None = None,
    fmt: str | None = None,
) -> str:
    """Render a message timestamp or an ISO date for display.

    Numbers are epoch milliseconds; strings are ISO-8601. Empty values and
    non-finite numbers give an empty string. Unparsable strings and epochs
    outside the platform's range come back unchanged.
    """
    if not value:
        return ""

    if tz is None or fmt is None:
        settings = get_settings()
        tz = tz or settings.timezone
        fmt = fmt or settings.timestamp_format

    if is_number(value):
        if not math.isfinite(value):
            return ""
        try:
            moment = datetime.fromtimestamp(float(value) / 1000.0, tz=timezone.utc)
            return moment.astimezone(ZoneInfo(tz)).strftime(fmt)
        except (OverflowError, OSError, ValueError):
            return str(value)

    parsed = _parse_iso(str(value))
    if parsed is None:
        return str(value)
    return parsed.astimezone(ZoneInfo(tz)).strftime(fmt)
