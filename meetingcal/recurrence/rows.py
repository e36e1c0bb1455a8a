"""Adapters from database rows to recurrence models.

Rows come from the ``meetings`` table joined with ``recurrence_rules`` and
``event_exceptions``. Rule rows use the storage column names (``until_date``,
``by_day``, ``by_month_day``); the distilled names (``end_date``,
``days_of_week``, ``day_of_month``) are accepted as well.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional

from pydantic import ValidationError

from .date_utils import weekday_from_code
from .exceptions import RecurrenceValidationError
from .models import EventException, RecurrenceRule, RecurringEvent

logger = logging.getLogger(__name__)


def _validation_error(kind: str, error: ValidationError) -> RecurrenceValidationError:
    first = error.errors()[0] if error.errors() else {}
    field = ".".join(str(part) for part in first.get("loc", ())) or None
    return RecurrenceValidationError(
        f"Invalid {kind}: {error.error_count()} validation error(s), first: "
        f"{field or '<root>'}: {first.get('msg', 'invalid value')}",
        field=field,
        value=first.get("input"),
    )


def _require_mapping(kind: str, row: Any) -> Mapping[str, Any]:
    if not isinstance(row, Mapping):
        raise RecurrenceValidationError(
            f"Invalid {kind}: expected a mapping, got {type(row).__name__}", value=row
        )
    return row


def _days_of_week(row: Mapping[str, Any]) -> Optional[List[int]]:
    if row.get("days_of_week") is not None:
        return list(row["days_of_week"])
    by_day = row.get("by_day")
    if not by_day:
        return None
    days = []
    for code in by_day:
        if isinstance(code, int):
            days.append(code)
            continue
        try:
            days.append(weekday_from_code(code))
        except ValueError as e:
            raise RecurrenceValidationError(str(e), field="by_day", value=code) from e
    return days


def _day_of_month(row: Mapping[str, Any]) -> Optional[int]:
    if row.get("day_of_month") is not None:
        return row["day_of_month"]
    by_month_day = row.get("by_month_day")
    if by_month_day:
        if len(by_month_day) > 1:
            logger.debug(f"Keeping only the first of {len(by_month_day)} by_month_day values")
        return by_month_day[0]
    return None


def rule_from_row(row: Mapping[str, Any]) -> RecurrenceRule:
    """Build a RecurrenceRule from a ``recurrence_rules`` row.

    Raises:
        RecurrenceValidationError: If the row does not describe a valid rule
    """
    row = _require_mapping("recurrence rule", row)
    interval = row.get("interval")
    try:
        data: Dict[str, Any] = {
            "frequency": row.get("frequency"),
            "interval": 1 if interval is None else interval,
            "end_date": row.get("end_date", row.get("until_date")),
            "days_of_week": _days_of_week(row),
            "day_of_month": _day_of_month(row),
            "month_of_year": row.get("month_of_year"),
            "occurrence_count": row.get("occurrence_count"),
        }
    except TypeError as e:
        raise RecurrenceValidationError(f"Invalid recurrence rule: {e}") from e
    try:
        return RecurrenceRule(**data)
    except ValidationError as e:
        raise _validation_error("recurrence rule", e) from e


def exception_from_row(row: Mapping[str, Any]) -> EventException:
    """Build an EventException from an ``event_exceptions`` row.

    Raises:
        RecurrenceValidationError: If the row is malformed
    """
    row = _require_mapping("event exception", row)
    fields = (
        "exception_date",
        "is_cancelled",
        "override_start_time",
        "override_end_time",
        "override_location",
        "override_description",
    )
    try:
        return EventException(**{name: row.get(name) for name in fields if name in row})
    except ValidationError as e:
        raise _validation_error("event exception", e) from e


def event_from_meeting_row(row: Mapping[str, Any]) -> Optional[RecurringEvent]:
    """Build a RecurringEvent from a ``meetings`` row with nested relations.

    Returns:
        The recurring event, or None if the meeting is not recurring or has
        no recurrence rule

    Raises:
        RecurrenceValidationError: If the meeting, its rule or an exception is malformed
    """
    row = _require_mapping("meeting", row)
    if not row.get("is_recurring"):
        return None
    if row.get("id") is None:
        raise RecurrenceValidationError("Recurring meeting row has no id", field="id")

    rule_rows = row.get("recurrence_rules") or []
    if isinstance(rule_rows, Mapping):
        rule_rows = [rule_rows]
    if not isinstance(rule_rows, (list, tuple)):
        raise RecurrenceValidationError(
            f"Meeting {row.get('id')} has invalid recurrence_rules", field="recurrence_rules"
        )
    if not rule_rows:
        logger.debug(f"Meeting {row.get('id')} is marked recurring but has no recurrence rule")
        return None
    if len(rule_rows) > 1:
        logger.warning(
            f"Meeting {row.get('id')} has {len(rule_rows)} recurrence rules, using the first"
        )

    rule = rule_from_row(rule_rows[0])
    exception_rows = row.get("event_exceptions") or []
    if isinstance(exception_rows, Mapping):
        exception_rows = [exception_rows]
    exceptions = [exception_from_row(ex) for ex in exception_rows]

    try:
        return RecurringEvent(
            id=str(row.get("id")),
            start_time=row.get("start_time"),
            end_time=row.get("end_time"),
            recurrence_rule=rule,
            exceptions=exceptions,
        )
    except ValidationError as e:
        raise _validation_error("recurring event", e) from e
