"""
Wall-clock helpers and duration parsing.

All timestamps produced by the engine are timezone-aware UTC datetimes.
"""

import re
from datetime import datetime, timezone
from typing import Any, Optional

_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)\s*([dhms])", re.IGNORECASE)
_UNIT_SECONDS = {"d": 86400, "h": 3600, "m": 60, "s": 1}


def utc_now() -> datetime:
    """Current wall-clock time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def parse_duration_seconds(value: Any) -> Optional[float]:
    """
    Parse a session duration into seconds.

    Accepts plain numbers (seconds), numeric strings, and compact unit strings
    such as "45s", "30m", "1h" or "1h30m". Returns None when the value cannot
    be parsed or is not positive.

    Args:
        value: Raw duration from configuration

    Returns:
        Duration in seconds, or None if invalid
    """
    if isinstance(value, bool) or value is None:
        return None

    if isinstance(value, (int, float)):
        return float(value) if value > 0 else None

    text = str(value).strip().lower()
    if not text:
        return None

    try:
        seconds = float(text)
        return seconds if seconds > 0 else None
    except ValueError:
        pass

    parts = _DURATION_PART.findall(text)
    # Reject strings with leftover characters, e.g. "1x" or "1h foo"
    if not parts or _DURATION_PART.sub("", text).strip():
        return None

    total = sum(float(amount) * _UNIT_SECONDS[unit] for amount, unit in parts)
    return total if total > 0 else None


def format_elapsed(seconds: float) -> str:
    """Render a duration as HH:MM:SS."""
    seconds = max(0, int(seconds))
    hours, remainder = divmod(seconds, 3600)
    minutes, secs = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"
