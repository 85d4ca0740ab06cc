"""Time Utilities - UTC timestamps and formatting"""
import re
from datetime import datetime, timezone
from typing import Optional, Tuple
from dateutil import parser as date_parser

CLOCK_TIME_PATTERN = re.compile(r"^([01]?\d|2[0-3]):([0-5]\d)$")


def utc_now() -> datetime:
    """Get current UTC datetime"""
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """Attach UTC to naive datetimes, convert aware ones to UTC"""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def format_iso(dt: Optional[datetime]) -> Optional[str]:
    """
    Format datetime to ISO 8601 string

    Args:
        dt: Datetime object (None passes through)

    Returns:
        ISO formatted string with Z suffix for UTC
    """
    if dt is None:
        return None
    return ensure_utc(dt).isoformat().replace("+00:00", "Z")


def parse_iso(iso_string: str) -> datetime:
    """
    Parse ISO 8601 string to datetime

    Args:
        iso_string: ISO formatted datetime string

    Returns:
        Datetime object in UTC
    """
    return ensure_utc(date_parser.isoparse(iso_string))


def elapsed_seconds(start: Optional[datetime], end: Optional[datetime]) -> Optional[int]:
    """
    Whole seconds between two instants, floored.

    Returns None when either side is missing; never negative.
    """
    if start is None or end is None:
        return None
    delta = ensure_utc(end) - ensure_utc(start)
    return max(0, int(delta.total_seconds() // 1))


def parse_clock_time(value: str) -> Optional[Tuple[int, int]]:
    """Parse an HH:MM 24h string into (hour, minute); None when malformed"""
    if not isinstance(value, str):
        return None
    match = CLOCK_TIME_PATTERN.match(value.strip())
    if not match:
        return None
    return int(match.group(1)), int(match.group(2))
