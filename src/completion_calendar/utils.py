from __future__ import annotations

from datetime import date, datetime, timezone, tzinfo
from typing import Optional, Union


def utcnow() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


# PUBLIC_INTERFACE
def local_day(value: Union[date, datetime], tz: Optional[tzinfo] = None) -> date:
    """
    Return the calendar day a date/datetime falls on in local time.

    Args:
        value: A date or datetime. Plain dates are returned unchanged.
        tz: Zone used to interpret aware datetimes. None means the system's
            local zone.

    Returns:
        The calendar date, with any time-of-day discarded.
    """
    if not isinstance(value, datetime):
        return value
    # Naive datetimes are already wall-clock local time
    if value.tzinfo is None:
        return value.date()
    return value.astimezone(tz).date()
