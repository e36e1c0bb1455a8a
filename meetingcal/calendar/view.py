"""Calendar view helpers: month windows, expanded entries and headline stats."""

from datetime import date, datetime, timedelta
import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, Field, field_serializer

from ..recurrence.date_utils import (
    end_of_month,
    parse_timestamp,
    start_of_day,
    start_of_month,
    sunday_weekday,
)
from ..recurrence.exceptions import RecurrenceValidationError
from ..recurrence.expander import RangeBound, RecurrenceExpander
from ..recurrence.rows import event_from_meeting_row

logger = logging.getLogger(__name__)

DATE_KEY_FORMAT = "%Y-%m-%d"


class CalendarEntry(BaseModel):
    """One meeting occurrence as shown on the calendar grid."""

    meeting_id: str = Field(..., description="Id of the source meeting")
    title: Optional[str] = Field(default=None, description="Meeting title")
    start_time: datetime
    end_time: datetime
    location: Optional[str] = None
    description: Optional[str] = None
    is_recurring: bool = False
    is_exception: bool = Field(default=False, description="An exception changed this occurrence")
    meeting: Dict[str, Any] = Field(
        default_factory=dict, description="Source meeting row without nested relations"
    )

    @field_serializer("start_time", "end_time")
    def serialize_datetime(self, dt: datetime) -> str:
        """Serialize datetime to ISO format."""
        return dt.isoformat()

    @property
    def date_key(self) -> str:
        return self.start_time.strftime(DATE_KEY_FORMAT)


class CalendarStats(BaseModel):
    """Meeting counts shown in the calendar header."""

    total: int = 0
    today: int = 0
    this_week: int = 0
    this_month: int = 0


NESTED_RELATIONS = ("recurrence_rules", "event_exceptions", "meeting_attendees")


def month_range(day: Union[datetime, date]) -> Tuple[datetime, datetime]:
    """First and last instant of the month containing ``day``."""
    if not isinstance(day, datetime):
        day = datetime(day.year, day.month, day.day)
    return start_of_month(day), end_of_month(day)


def _meeting_fields(row: Mapping[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in row.items() if key not in NESTED_RELATIONS}


def _parse_row_time(row: Mapping[str, Any], field: str, expander: RecurrenceExpander) -> datetime:
    value = row.get(field)
    if value is None:
        raise RecurrenceValidationError(f"Meeting {row.get('id')} has no {field}", field=field)
    try:
        return expander.wall_clock(parse_timestamp(value))
    except (TypeError, ValueError) as e:
        raise RecurrenceValidationError(
            f"Meeting {row.get('id')} has invalid {field}: {value!r}", field=field, value=value
        ) from e


def expand_meetings(
    meetings: Iterable[Mapping[str, Any]],
    range_start: RangeBound,
    range_end: RangeBound,
    expander: Optional[RecurrenceExpander] = None,
) -> List[CalendarEntry]:
    """Expand meeting rows into calendar entries inside ``[range_start, range_end]``.

    Recurring meetings are expanded through their recurrence rule; exception
    overrides replace the meeting's location and description. One-off
    meetings are kept when they start inside the window. Rows that cannot be
    parsed are logged and skipped so the rest of the calendar still renders.

    Args:
        meetings: Meeting rows with nested ``recurrence_rules`` and ``event_exceptions``
        range_start: Window start, inclusive
        range_end: Window end, inclusive
        expander: Expander to use, a default-configured one if omitted

    Returns:
        Entries sorted by start time

    Raises:
        RecurrenceValidationError: If the window itself is invalid
    """
    if expander is None:
        expander = RecurrenceExpander()
    window_start, window_end = expander.resolve_window(range_start, range_end)

    entries: List[CalendarEntry] = []
    for row in meetings:
        if not isinstance(row, Mapping):
            logger.warning(f"Skipping meeting row of type {type(row).__name__}")
            continue
        fields = _meeting_fields(row)
        meeting_id = str(row.get("id"))
        try:
            event = event_from_meeting_row(row)
            if event is None:
                start = _parse_row_time(row, "start_time", expander)
                if not window_start <= start <= window_end:
                    continue
                entries.append(
                    CalendarEntry(
                        meeting_id=meeting_id,
                        title=row.get("title"),
                        start_time=start,
                        end_time=_parse_row_time(row, "end_time", expander),
                        location=row.get("location"),
                        description=row.get("description"),
                        is_recurring=bool(row.get("is_recurring")),
                        meeting=fields,
                    )
                )
                continue

            for instance in expander.expand(event, window_start, window_end):
                overrides = instance.overrides
                entries.append(
                    CalendarEntry(
                        meeting_id=meeting_id,
                        title=row.get("title"),
                        start_time=instance.start,
                        end_time=instance.end,
                        location=(overrides and overrides.override_location) or row.get("location"),
                        description=(overrides and overrides.override_description)
                        or row.get("description"),
                        is_recurring=True,
                        is_exception=instance.is_exception,
                        meeting=fields,
                    )
                )
        except RecurrenceValidationError as e:
            logger.warning(f"Skipping meeting {meeting_id}: {e.message}")

    entries.sort(key=lambda entry: entry.start_time)
    logger.debug(
        "Expanded %d meetings into %d calendar entries for %s..%s",
        len({entry.meeting_id for entry in entries}),
        len(entries),
        window_start.isoformat(),
        window_end.isoformat(),
    )
    return entries


def expand_month(
    meetings: Iterable[Mapping[str, Any]],
    month: Union[datetime, date],
    expander: Optional[RecurrenceExpander] = None,
) -> List[CalendarEntry]:
    """Expand meetings for the calendar month containing ``month``."""
    range_start, range_end = month_range(month)
    return expand_meetings(meetings, range_start, range_end, expander)


def group_by_date(entries: Iterable[CalendarEntry]) -> Dict[str, List[CalendarEntry]]:
    """Group entries by ``YYYY-MM-DD`` of their start, keeping input order per day."""
    grouped: Dict[str, List[CalendarEntry]] = {}
    for entry in entries:
        grouped.setdefault(entry.date_key, []).append(entry)
    return grouped


def calendar_stats(
    meetings: Iterable[Mapping[str, Any]],
    now: Optional[datetime] = None,
    expander: Optional[RecurrenceExpander] = None,
) -> CalendarStats:
    """Count stored meetings for the calendar header.

    Counts meeting rows by their own start time, not expanded occurrences.
    The week runs from Sunday 00:00 to the end of Saturday.
    """
    if expander is None:
        expander = RecurrenceExpander()
    now = expander.wall_clock(now) if now is not None else datetime.now()

    today = now.date()
    week_start = start_of_day(now) - timedelta(days=sunday_weekday(now))
    week_end = week_start + timedelta(days=7)
    month_start, month_end = month_range(now)

    stats = CalendarStats()
    for row in meetings:
        stats.total += 1
        try:
            start = _parse_row_time(row, "start_time", expander)
        except RecurrenceValidationError as e:
            logger.warning(f"Not counting meeting {row.get('id')} by date: {e.message}")
            continue
        if start.date() == today:
            stats.today += 1
        if week_start <= start < week_end:
            stats.this_week += 1
        if month_start <= start <= month_end:
            stats.this_month += 1
    return stats
