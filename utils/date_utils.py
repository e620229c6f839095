"""
Date Parsing and Manipulation Utilities

Provides consistent timestamp handling across the application.
All timestamps are handled as timezone-aware UTC datetimes internally
and stored as ISO-8601 strings.
"""

from typing import Optional, Union
from datetime import datetime, date

import pytz

UTC = pytz.UTC


def utc_now() -> datetime:
    """Current time as an aware UTC datetime"""
    return datetime.now(UTC)


def parse_timestamp(value: Union[str, datetime, date, None]) -> Optional[datetime]:
    """
    Parse a stored timestamp into an aware UTC datetime

    Supported inputs:
    - ISO-8601 strings, with or without offset, including a trailing 'Z'
    - datetime (naive values are assumed to be UTC)
    - date (midnight UTC)

    Args:
        value: Raw value from a store row

    Returns:
        Aware datetime or None if empty/invalid
    """
    if value is None or value == '':
        return None

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    else:
        text = str(value).strip()
        if text.endswith('Z'):
            text = text[:-1] + '+00:00'
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None

    if parsed.tzinfo is None:
        return UTC.localize(parsed)
    return parsed.astimezone(UTC)


def to_iso(value: Optional[datetime]) -> Optional[str]:
    """Serialize a datetime for storage"""
    if value is None:
        return None
    if value.tzinfo is None:
        value = UTC.localize(value)
    return value.astimezone(UTC).isoformat()


def hours_between(start: Optional[datetime], end: Optional[datetime]) -> float:
    """Elapsed hours between two timestamps, 0 if either is missing"""
    if start is None or end is None:
        return 0.0
    return (end - start).total_seconds() / 3600


def local_hour(value: datetime, timezone_name: Optional[str]) -> int:
    """
    Hour of day of a timestamp in an airport's local time

    Falls back to UTC when the airport has no configured timezone.
    """
    if value.tzinfo is None:
        value = UTC.localize(value)
    if not timezone_name:
        return value.astimezone(UTC).hour
    return value.astimezone(pytz.timezone(timezone_name)).hour


def hour_in_window(hour: int, start: int, end: int) -> bool:
    """
    Check whether an hour falls inside a curfew window

    Both ends are inclusive. A window whose start is after its end wraps
    midnight (e.g. 23 -> 6). start == end denotes no window at all.
    """
    if start == end:
        return False
    if start < end:
        return start <= hour <= end
    return hour >= start or hour <= end
