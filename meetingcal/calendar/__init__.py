"""Calendar grid support built on recurrence expansion."""

from .view import (
    CalendarEntry,
    CalendarStats,
    calendar_stats,
    expand_meetings,
    expand_month,
    group_by_date,
    month_range,
)

__all__ = [
    "CalendarEntry",
    "CalendarStats",
    "calendar_stats",
    "expand_meetings",
    "expand_month",
    "group_by_date",
    "month_range",
]
