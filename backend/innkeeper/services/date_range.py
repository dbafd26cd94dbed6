"""
Date-only helpers used by every part of the reservation engine.

A date string must name the same calendar day regardless of the server's
timezone, so strings are truncated to their leading YYYY-MM-DD and all
night arithmetic is done on UTC-midnight datetimes. Call sites must not
subtract dates or datetimes themselves.
"""

import math
from datetime import date, datetime, time, timezone
from zoneinfo import ZoneInfo

from innkeeper.core.config import get_settings
from innkeeper.core.exceptions import InvalidDate, InvalidRange

SECONDS_PER_DAY = 24 * 60 * 60


def to_date_only(value) -> date:
    """Truncate a date, datetime or ISO-ish string to its calendar date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()[:10]
        try:
            return date.fromisoformat(text)
        except ValueError:
            pass
    raise InvalidDate(f"Invalid date: {value!r}", value=str(value))


def _utc_midnight(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


def nights_between(check_in, check_out) -> int:
    start = _utc_midnight(to_date_only(check_in))
    end = _utc_midnight(to_date_only(check_out))
    nights = math.ceil((end - start).total_seconds() / SECONDS_PER_DAY)
    if nights <= 0:
        raise InvalidRange(
            "Check-out date must be after check-in date",
            check_in=start.date().isoformat(),
            check_out=end.date().isoformat(),
        )
    return nights


def today() -> date:
    """Current calendar date at the hotel."""
    return datetime.now(ZoneInfo(get_settings().HOTEL_TIMEZONE)).date()
