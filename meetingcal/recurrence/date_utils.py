"""Date and time helpers for recurrence expansion.

All expansion arithmetic happens on naive wall-clock datetimes. Aware
values are converted into the configured zone (or the host's local zone)
and stripped of tzinfo before they reach the expansion loop.
"""

from datetime import date, datetime, timedelta
from typing import Optional, Union

import pytz
from dateutil.parser import isoparse, isoparser
from dateutil.relativedelta import relativedelta

# Weekday indices use 0 = Sunday .. 6 = Saturday
WEEKDAY_CODES = ("SU", "MO", "TU", "WE", "TH", "FR", "SA")

_DATE_PARSER = isoparser()


def _require_text(value: object) -> str:
    if not isinstance(value, str):
        raise TypeError(
            f"Expected an ISO-8601 string, date or datetime, got {type(value).__name__}"
        )
    return value.strip()


def is_date_only(text: str) -> bool:
    """Check whether an ISO-8601 string names a day without a time part.

    Both the extended (``2024-01-05``) and basic (``20240105``) forms count.
    """
    try:
        _DATE_PARSER.parse_isodate(text.strip())
    except ValueError:
        return False
    return True


def parse_timestamp(value: Union[str, datetime, date]) -> datetime:
    """Parse an ISO-8601 string (or date) into a datetime.

    Date-only values become midnight of that day.

    Raises:
        TypeError: If the value is not a string, date or datetime
        ValueError: If the string is not ISO-8601
    """
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    return isoparse(_require_text(value))


def parse_calendar_day(value: Union[str, datetime, date]) -> Union[datetime, date]:
    """Parse a day-granularity value, keeping timestamps as timestamps.

    ``"2024-03-10"`` becomes a ``date``; ``"2024-03-10T09:00:00Z"`` stays a
    ``datetime`` so its local calendar day can be resolved later.
    """
    if isinstance(value, (datetime, date)):
        return value
    text = _require_text(value)
    if is_date_only(text):
        return _DATE_PARSER.parse_isodate(text)
    return isoparse(text)


def get_zone(timezone_name: Optional[str]) -> Optional[pytz.BaseTzInfo]:
    """Resolve an IANA zone name, ``None`` meaning the host's local zone."""
    if not timezone_name:
        return None
    return pytz.timezone(timezone_name)


def to_wall_clock(dt: datetime, zone: Optional[pytz.BaseTzInfo] = None) -> datetime:
    """Convert a datetime to naive local wall-clock time.

    Naive values are assumed to already be wall-clock and are returned as is.
    """
    if dt.tzinfo is None:
        return dt
    local = dt.astimezone(zone) if zone is not None else dt.astimezone()
    return local.replace(tzinfo=None)


def calendar_day(
    value: Union[datetime, date], zone: Optional[pytz.BaseTzInfo] = None
) -> date:
    """Get the local calendar day of a date or timestamp."""
    if isinstance(value, datetime):
        return to_wall_clock(value, zone).date()
    return value


def sunday_weekday(dt: Union[datetime, date]) -> int:
    """Weekday index with 0 = Sunday .. 6 = Saturday."""
    return (dt.weekday() + 1) % 7


def weekday_from_code(code: str) -> int:
    """Map an iCalendar day code (``MO``, ``TU``, ...) to a Sunday-based index.

    Positional prefixes such as ``1MO`` or ``-1FR`` are ignored.

    Raises:
        ValueError: If the code is not a known day
    """
    normalized = code.strip().upper()[-2:]
    if normalized not in WEEKDAY_CODES:
        raise ValueError(f"Unknown weekday code: {code!r}")
    return WEEKDAY_CODES.index(normalized)


def add_days(dt: datetime, days: int) -> datetime:
    return dt + timedelta(days=days)


def add_weeks(dt: datetime, weeks: int) -> datetime:
    return dt + timedelta(weeks=weeks)


def add_months(dt: datetime, months: int) -> datetime:
    """Add calendar months, clamping to the last day of shorter months."""
    return dt + relativedelta(months=months)


def add_years(dt: datetime, years: int) -> datetime:
    """Add calendar years, clamping Feb 29 to Feb 28 in non-leap years."""
    return dt + relativedelta(years=years)


def start_of_day(dt: datetime) -> datetime:
    return dt.replace(hour=0, minute=0, second=0, microsecond=0)


def end_of_day(dt: datetime) -> datetime:
    return dt.replace(hour=23, minute=59, second=59, microsecond=999999)


def start_of_month(dt: datetime) -> datetime:
    return start_of_day(dt.replace(day=1))


def end_of_month(dt: datetime) -> datetime:
    """Last microsecond of the month containing ``dt``."""
    return start_of_month(dt) + relativedelta(months=1) - timedelta(microseconds=1)
