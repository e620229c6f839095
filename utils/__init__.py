"""
Utility Functions Package
"""

from utils.date_utils import (
    utc_now,
    parse_timestamp,
    to_iso,
    hours_between,
    local_hour,
    hour_in_window
)

__all__ = [
    'utc_now',
    'parse_timestamp',
    'to_iso',
    'hours_between',
    'local_hour',
    'hour_in_window'
]
