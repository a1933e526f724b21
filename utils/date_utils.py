"""
Centralized Date Utilities Module
Date parsing and formatting shared by the export generators
"""

from datetime import datetime, date, timezone
from typing import Optional, Union


def safe_parse_date(raw: Optional[Union[str, datetime, date]]) -> Optional[datetime]:
    """
    Parse various date formats into timezone-aware datetime.

    Supports ISO strings (with or without a trailing ``Z``), datetime and
    date objects.

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

    if not isinstance(raw, str):
        return None

    raw = raw.strip()
    if not raw:
        return None

    raw = raw.replace("Z", "+00:00")
    try:
        dt = datetime.fromisoformat(raw)
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def get_current_utc() -> datetime:
    """Current UTC datetime with timezone awareness."""
    return datetime.now(timezone.utc)


def format_date_only(dt: Optional[datetime] = None) -> str:
    """
    Format datetime as date only (YYYY-MM-DD).

    Args:
        dt: datetime to format (defaults to current UTC time)
    """
    if dt is None:
        dt = get_current_utc()
    elif dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)

    return dt.strftime("%Y-%m-%d")


def format_long_date(raw: Optional[Union[str, datetime, date]] = None) -> str:
    """
    Human-readable date for title pages, e.g. ``18 October 2026``.

    Unparseable strings are returned unchanged so user-entered dates still
    appear on the page.
    """
    if raw is None:
        dt = get_current_utc()
    else:
        dt = safe_parse_date(raw)
        if dt is None:
            return str(raw)
    return f"{dt.day} {dt.strftime('%B %Y')}"


def format_time_only(dt: Optional[datetime] = None) -> str:
    """Format time of day as HH:MM:SS UTC."""
    if dt is None:
        dt = get_current_utc()
    return dt.strftime("%H:%M:%S UTC")
