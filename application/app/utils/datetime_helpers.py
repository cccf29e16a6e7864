"""
Utility functions for date and time handling.
"""

from datetime import datetime, timezone
from typing import Optional


def get_utc_now() -> datetime:
    """
    Get current datetime in UTC (Ghana runs on GMT all year).
    Returns:
        Current timezone-aware datetime object
    """
    return datetime.now(timezone.utc)


def parse_datetime(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO string written by ``datetime.isoformat``; naive values are treated as UTC."""
    if not value:
        return None
    dt = datetime.fromisoformat(value)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt
