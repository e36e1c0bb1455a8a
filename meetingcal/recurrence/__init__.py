"""Recurring meeting models and expansion into concrete occurrences."""

from .exceptions import RecurrenceError, RecurrenceValidationError
from .expander import ExpanderConfig, RecurrenceExpander, expand
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
from .rows import event_from_meeting_row, exception_from_row, rule_from_row

__all__ = [
    "EmitOccurrence",
    "EventException",
    "EventInstance",
    "ExpanderConfig",
    "ExpansionResult",
    "InstanceOverrides",
    "OccurrenceOutcome",
    "RecurrenceError",
    "RecurrenceExpander",
    "RecurrenceFrequency",
    "RecurrenceRule",
    "RecurrenceValidationError",
    "RecurringEvent",
    "SkipOccurrence",
    "SkipReason",
    "event_from_meeting_row",
    "exception_from_row",
    "expand",
    "rule_from_row",
]
