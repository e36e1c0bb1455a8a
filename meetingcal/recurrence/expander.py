"""Expansion of recurring meetings into concrete occurrences."""

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Dict, FrozenSet, List, Optional, Tuple, Union

import pytz

from .date_utils import (
    add_days,
    add_months,
    add_weeks,
    add_years,
    calendar_day,
    end_of_day,
    get_zone,
    is_date_only,
    parse_timestamp,
    sunday_weekday,
    to_wall_clock,
)
from .exceptions import RecurrenceValidationError
from .models import (
    EmitOccurrence,
    EventException,
    EventInstance,
    ExpansionResult,
    InstanceOverrides,
    OccurrenceOutcome,
    RecurrenceFrequency,
    RecurrenceRule,
    RecurringEvent,
    SkipOccurrence,
    SkipReason,
)
from ..utils.logging import get_logger

logger = get_logger(__name__)

RangeBound = Union[datetime, date, str]


@dataclass(frozen=True)
class ExpanderConfig:
    """Configuration for recurrence expansion.

    ``max_candidates`` bounds the number of candidate dates one call may
    consider, emitted or not.
    """

    max_candidates: int = 1000
    default_horizon_years: int = 2
    timezone: Optional[str] = None

    @classmethod
    def from_settings(cls, settings: Any) -> "ExpanderConfig":
        """Extract expansion configuration from a settings object.

        Accepts either the application settings (reading ``settings.recurrence``)
        or a recurrence settings object directly.
        """
        source = getattr(settings, "recurrence", settings)
        return cls(
            max_candidates=getattr(source, "max_candidates", 1000),
            default_horizon_years=getattr(source, "default_horizon_years", 2),
            timezone=getattr(source, "timezone", None),
        )


class RecurrenceExpander:
    """Expands a recurring event into the occurrences inside a query window.

    The expander holds only immutable configuration, so one instance can be
    shared between callers.
    """

    def __init__(self, settings: Any = None, config: Optional[ExpanderConfig] = None):
        """Initialize RecurrenceExpander.

        Args:
            settings: Optional settings object to read the configuration from
            config: Explicit configuration, takes precedence over settings

        Raises:
            RecurrenceValidationError: If the configuration is unusable
        """
        if config is None:
            config = ExpanderConfig.from_settings(settings) if settings is not None else ExpanderConfig()
        if config.max_candidates < 1:
            raise RecurrenceValidationError(
                f"max_candidates must be at least 1, got {config.max_candidates}",
                field="max_candidates",
                value=config.max_candidates,
            )
        if config.default_horizon_years < 0:
            raise RecurrenceValidationError(
                f"default_horizon_years must not be negative, got {config.default_horizon_years}",
                field="default_horizon_years",
                value=config.default_horizon_years,
            )
        try:
            self._zone = get_zone(config.timezone)
        except pytz.UnknownTimeZoneError as e:
            raise RecurrenceValidationError(
                f"Unknown timezone: {config.timezone}", field="timezone", value=config.timezone
            ) from e
        self.config = config

    def expand(
        self, event: RecurringEvent, range_start: RangeBound, range_end: RangeBound
    ) -> List[EventInstance]:
        """Expand ``event`` into the instances starting inside ``[range_start, range_end]``."""
        return self.expand_with_report(event, range_start, range_end).instances

    def expand_with_report(
        self, event: RecurringEvent, range_start: RangeBound, range_end: RangeBound
    ) -> ExpansionResult:
        """Expand ``event`` and report skipped dates and truncation.

        Walks candidate dates from the event's first start. Candidates inside
        the window are checked against the event's exceptions: cancelled
        dates are recorded as skipped, all others become instances. The walk
        stops at the rule's end date (or the window end plus the default
        horizon), after the window end, at the rule's occurrence count, or
        when ``max_candidates`` candidates have been considered.

        Args:
            event: Recurring event to expand
            range_start: Window start, inclusive (a date means 00:00 of that day)
            range_end: Window end, inclusive (a date means the end of that day)

        Returns:
            ExpansionResult with instances in chronological order

        Raises:
            RecurrenceValidationError: If the rule or the window is invalid
        """
        rule = event.recurrence_rule
        frequency = self._validate_rule(rule)
        weekdays = self._weekdays(rule, frequency)

        window_start, window_end = self.resolve_window(range_start, range_end)
        exceptions_by_day = self._index_exceptions(event)

        first_start = self.wall_clock(event.start_time)
        duration = self.wall_clock(event.end_time) - first_start

        if rule.end_date is not None:
            stop_bound = self.wall_clock(rule.end_date)
        else:
            stop_bound = add_years(window_end, self.config.default_horizon_years)

        logger.debug(
            "Recurrence expansion: id=%s start=%s frequency=%s interval=%s window=%s..%s stop=%s",
            event.id,
            first_start.isoformat(),
            frequency.value,
            rule.interval,
            window_start.isoformat(),
            window_end.isoformat(),
            stop_bound.isoformat(),
        )

        cursor = first_start
        if weekdays and sunday_weekday(cursor) not in weekdays:
            cursor = self._next_listed_weekday(cursor, weekdays) or cursor

        instances: List[EventInstance] = []
        skipped: List[SkipOccurrence] = []
        considered = 0
        max_candidates = self.config.max_candidates
        occurrence_count = rule.occurrence_count

        while cursor < stop_bound and considered < max_candidates:
            if occurrence_count is not None and considered >= occurrence_count:
                break
            if cursor > window_end:
                break

            if cursor >= window_start:
                outcome = self._evaluate(event.id, cursor, duration, exceptions_by_day.get(cursor.date()))
                if isinstance(outcome, EmitOccurrence):
                    instances.append(outcome.instance)
                else:
                    skipped.append(outcome)

            cursor = self._advance(cursor, frequency, rule.interval, weekdays)
            considered += 1

        truncated = (
            considered >= max_candidates
            and cursor < stop_bound
            and cursor <= window_end
            and (occurrence_count is None or considered < occurrence_count)
        )
        if truncated:
            logger.warning(
                f"Recurrence expansion for {event.id} stopped after {max_candidates} candidates "
                f"at {cursor.isoformat()}; later occurrences in the window were not generated"
            )

        result = ExpansionResult(
            instances=instances,
            skipped=skipped,
            candidates_considered=considered,
            truncated=truncated,
            stop_bound=stop_bound,
        )
        logger.verbose(
            "Recurrence expansion result: id=%s instances=%d skipped=%d candidates=%d",
            event.id,
            result.instance_count,
            len(skipped),
            considered,
        )
        return result

    def _evaluate(
        self,
        event_id: str,
        cursor: datetime,
        duration: timedelta,
        exception: Optional[EventException],
    ) -> OccurrenceOutcome:
        """Decide what one candidate date inside the window produces."""
        if exception is None:
            return EmitOccurrence(
                instance=EventInstance(original_id=event_id, start=cursor, end=cursor + duration)
            )

        if exception.is_cancelled:
            return SkipOccurrence(occurrence_date=cursor.date(), reason=SkipReason.CANCELLED)

        if exception.override_start_time is not None:
            start = self.wall_clock(exception.override_start_time)
        else:
            start = cursor
        if exception.override_end_time is not None:
            end = self.wall_clock(exception.override_end_time)
        else:
            end = cursor + duration

        return EmitOccurrence(
            instance=EventInstance(
                original_id=event_id,
                start=start,
                end=end,
                is_exception=True,
                overrides=InstanceOverrides(
                    override_location=exception.override_location,
                    override_description=exception.override_description,
                ),
            )
        )

    def _advance(
        self,
        cursor: datetime,
        frequency: RecurrenceFrequency,
        interval: int,
        weekdays: FrozenSet[int],
    ) -> datetime:
        """Move the cursor to the next candidate date."""
        if frequency is RecurrenceFrequency.DAILY:
            return add_days(cursor, interval)
        if frequency is RecurrenceFrequency.WEEKLY:
            if weekdays:
                next_day = self._next_listed_weekday(cursor, weekdays)
                if next_day is not None:
                    return next_day
            return add_weeks(cursor, interval)
        if frequency is RecurrenceFrequency.MONTHLY:
            return add_months(cursor, interval)
        return add_years(cursor, interval)

    @staticmethod
    def _next_listed_weekday(cursor: datetime, weekdays: FrozenSet[int]) -> Optional[datetime]:
        """First day within the following seven whose weekday is listed."""
        for offset in range(1, 8):
            candidate = add_days(cursor, offset)
            if sunday_weekday(candidate) in weekdays:
                return candidate
        return None

    def _validate_rule(self, rule: RecurrenceRule) -> RecurrenceFrequency:
        """Re-check the rule so unvalidated models cannot stall the loop."""
        try:
            frequency = RecurrenceFrequency(rule.frequency)
        except ValueError as e:
            raise RecurrenceValidationError(
                f"Unsupported recurrence frequency: {rule.frequency!r}",
                field="frequency",
                value=rule.frequency,
            ) from e

        if isinstance(rule.interval, bool) or not isinstance(rule.interval, int) or rule.interval < 1:
            raise RecurrenceValidationError(
                f"Recurrence interval must be a positive integer, got {rule.interval!r}",
                field="interval",
                value=rule.interval,
            )

        if rule.occurrence_count is not None and rule.occurrence_count < 1:
            raise RecurrenceValidationError(
                f"occurrence_count must be at least 1, got {rule.occurrence_count}",
                field="occurrence_count",
                value=rule.occurrence_count,
            )

        return frequency

    @staticmethod
    def _weekdays(rule: RecurrenceRule, frequency: RecurrenceFrequency) -> FrozenSet[int]:
        if not rule.days_of_week:
            return frozenset()
        invalid = [day for day in rule.days_of_week if not 0 <= day <= 6]
        if invalid:
            raise RecurrenceValidationError(
                f"days_of_week values must be between 0 and 6, got {invalid}",
                field="days_of_week",
                value=rule.days_of_week,
            )
        if frequency is not RecurrenceFrequency.WEEKLY:
            logger.debug(f"Ignoring days_of_week for {frequency.value} rule")
            return frozenset()
        return frozenset(rule.days_of_week)

    def _index_exceptions(self, event: RecurringEvent) -> Dict[date, EventException]:
        """Index exceptions by local calendar day."""
        by_day: Dict[date, EventException] = {}
        for exception in event.exceptions:
            day = calendar_day(exception.exception_date, self._zone)
            if day in by_day:
                raise RecurrenceValidationError(
                    f"Event {event.id} has more than one exception on {day.isoformat()}",
                    field="exceptions",
                    value=day,
                )
            by_day[day] = exception
        return by_day

    def resolve_window(self, range_start: RangeBound, range_end: RangeBound) -> Tuple[datetime, datetime]:
        """Turn query bounds into an ordered pair of wall-clock datetimes.

        Raises:
            RecurrenceValidationError: If a bound is malformed or start is after end
        """
        window_start = self._coerce_bound(range_start, "range_start", end=False)
        window_end = self._coerce_bound(range_end, "range_end", end=True)
        if window_start > window_end:
            raise RecurrenceValidationError(
                f"range_start {window_start.isoformat()} is after range_end {window_end.isoformat()}",
                field="range_start",
                value=range_start,
            )
        return window_start, window_end

    def _coerce_bound(self, value: RangeBound, field: str, end: bool) -> datetime:
        """Turn a window bound into a wall-clock datetime."""
        if isinstance(value, str):
            try:
                parsed = parse_timestamp(value)
            except ValueError as e:
                raise RecurrenceValidationError(
                    f"Invalid {field}: {value!r}", field=field, value=value
                ) from e
            if end and is_date_only(value):
                parsed = end_of_day(parsed)
            return self.wall_clock(parsed)
        if isinstance(value, datetime):
            return self.wall_clock(value)
        if isinstance(value, date):
            day_start = datetime(value.year, value.month, value.day)
            return end_of_day(day_start) if end else day_start
        raise RecurrenceValidationError(
            f"{field} must be a datetime, date or ISO string, got {type(value).__name__}",
            field=field,
            value=value,
        )

    def wall_clock(self, dt: datetime) -> datetime:
        return to_wall_clock(dt, self._zone)


def expand(
    event: RecurringEvent,
    range_start: RangeBound,
    range_end: RangeBound,
    max_candidates: Optional[int] = None,
) -> List[EventInstance]:
    """Expand ``event`` over ``[range_start, range_end]`` with default configuration.

    Args:
        event: Recurring event to expand
        range_start: Window start, inclusive
        range_end: Window end, inclusive
        max_candidates: Override for the candidate cap

    Returns:
        Instances in chronological order
    """
    config = ExpanderConfig() if max_candidates is None else ExpanderConfig(max_candidates=max_candidates)
    return RecurrenceExpander(config=config).expand(event, range_start, range_end)
