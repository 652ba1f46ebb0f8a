"""
Date parsing and formatting for search metadata.
"""

import re
from datetime import date, datetime, timezone
from typing import Any, Optional, Union


def safe_parse_date(raw: Optional[Union[str, int, datetime, date]]) -> Optional[datetime]:
    """
    Parse various date formats into timezone-aware datetime.

    Supports:
    - ISO format strings
    - datetime/date objects
    - Year-only strings or ints (YYYY)
    - Year-month strings (YYYY-MM)

    Returns:
        Timezone-aware datetime or None if parsing fails
    """
    if raw is None:
        return None

    if isinstance(raw, datetime):
        if raw.tzinfo is None:
            return raw.replace(tzinfo=timezone.utc)
        return raw

    if isinstance(raw, date):
        return datetime(raw.year, raw.month, raw.day, tzinfo=timezone.utc)

    if isinstance(raw, int) and not isinstance(raw, bool):
        raw = str(raw)

    if not isinstance(raw, str):
        return None

    raw = raw.strip()
    if not raw:
        return None

    # Handle Z timezone indicator
    raw = raw.replace("Z", "+00:00")

    try:
        dt = datetime.fromisoformat(raw)
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return dt
    except (ValueError, AttributeError):
        pass

    m = re.match(r"^(\d{4})$", raw)
    if m:
        try:
            return datetime(int(m.group(1)), 1, 1, tzinfo=timezone.utc)
        except ValueError:
            return None

    m = re.match(r"^(\d{4})-(\d{1,2})$", raw)
    if m:
        try:
            return datetime(int(m.group(1)), int(m.group(2)), 1, tzinfo=timezone.utc)
        except ValueError:
            return None

    return None


def format_date(raw: Any) -> str:
    """Render *raw* as ``YYYY-MM-DD``; unparseable values keep their first 10 chars."""
    if raw is None or raw == "":
        return ""
    if isinstance(raw, (list, tuple)):
        raw = raw[0] if raw else ""
        if not raw:
            return ""
    dt = safe_parse_date(raw)
    if dt is None:
        return str(raw)[:10]
    return dt.date().isoformat()
