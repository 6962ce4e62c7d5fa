"""
Datetime utilities for consistent timezone handling across the application.
Booking dates are compared in the salon's local timezone at day granularity.
"""

from datetime import date, datetime, timezone
from typing import Optional, Union
from zoneinfo import ZoneInfo


def utc_now() -> datetime:
    """
    Get current UTC time as timezone-aware datetime.

    Returns:
        Current UTC datetime with timezone info
    """
    return datetime.now(timezone.utc)


def local_today(tz_name: Optional[str] = None) -> date:
    """
    Get today's date in the salon timezone.

    Args:
        tz_name: IANA timezone name (defaults to settings.timezone)
    """
    if tz_name is None:
        from config import settings

        tz_name = settings.timezone
    return datetime.now(ZoneInfo(tz_name)).date()


def to_booking_date(value: Union[str, date, datetime]) -> date:
    """
    Reduce a booking date value to a calendar date.

    Accepts ``date``, ``datetime`` or ISO strings ("2026-01-15" or
    "2026-01-15T10:00:00Z"). Time of day is dropped.

    Raises:
        ValueError: If the value cannot be interpreted as a date
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        day, _, time_part = value.strip().partition("T")
        try:
            if time_part:
                # Validates the time part too
                return datetime.fromisoformat(value.strip().replace("Z", "+00:00")).date()
            return date.fromisoformat(day)
        except ValueError as e:
            raise ValueError(f"Invalid date string: {value}") from e
    raise ValueError(f"Unsupported date value: {value!r}")
