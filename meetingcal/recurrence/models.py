"""Data models for recurring meetings and their expanded occurrences."""

from datetime import date, datetime
from enum import Enum
from typing import Any, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator, model_validator

from .date_utils import parse_calendar_day, parse_timestamp


def _parse_optional_timestamp(value: Any) -> Any:
    if isinstance(value, str):
        return parse_timestamp(value)
    return value


class RecurrenceFrequency(str, Enum):
    """How often a recurring event repeats."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class SkipReason(str, Enum):
    """Why a candidate date inside the query window produced no instance."""

    CANCELLED = "cancelled"


class RecurrenceRule(BaseModel):
    """Recurrence pattern of a recurring event."""

    frequency: RecurrenceFrequency = Field(..., description="daily, weekly, monthly or yearly")
    interval: int = Field(default=1, ge=1, description="Step between occurrences")
    end_date: Optional[datetime] = Field(
        default=None, description="Candidates at or after this instant are not generated"
    )
    days_of_week: Optional[List[int]] = Field(
        default=None, description="Weekday indices (0 = Sunday .. 6 = Saturday), weekly only"
    )

    # Stored with the rule but not consumed by expansion
    day_of_month: Optional[int] = Field(default=None, ge=1, le=31)
    month_of_year: Optional[int] = Field(default=None, ge=1, le=12)

    occurrence_count: Optional[int] = Field(
        default=None, ge=1, description="Total occurrences in the series, counted from its start"
    )

    model_config = ConfigDict(use_enum_values=True)

    @field_validator("end_date", mode="before")
    @classmethod
    def parse_end_date(cls, value: Any) -> Any:
        return _parse_optional_timestamp(value)

    @field_validator("days_of_week")
    @classmethod
    def validate_days_of_week(cls, value: Optional[List[int]]) -> Optional[List[int]]:
        """Reject out-of-range weekday indices and collapse duplicates."""
        if value is None:
            return None
        invalid = [day for day in value if not 0 <= day <= 6]
        if invalid:
            raise ValueError(f"days_of_week values must be between 0 and 6, got {invalid}")
        return sorted(set(value))


class EventException(BaseModel):
    """Per-date override or cancellation of one occurrence."""

    exception_date: Union[datetime, date] = Field(
        ..., description="Calendar day the exception applies to"
    )
    is_cancelled: bool = Field(default=False, description="Suppress the occurrence entirely")

    override_start_time: Optional[datetime] = None
    override_end_time: Optional[datetime] = None
    override_location: Optional[str] = None
    override_description: Optional[str] = None

    @field_validator("exception_date", mode="before")
    @classmethod
    def parse_exception_date(cls, value: Any) -> Any:
        if isinstance(value, str):
            return parse_calendar_day(value)
        return value

    @field_validator("is_cancelled", mode="before")
    @classmethod
    def null_is_not_cancelled(cls, value: Any) -> Any:
        return False if value is None else value

    @field_validator("override_start_time", "override_end_time", mode="before")
    @classmethod
    def parse_override_times(cls, value: Any) -> Any:
        return _parse_optional_timestamp(value)


class RecurringEvent(BaseModel):
    """A recurring meeting: first occurrence, rule and exceptions."""

    id: str = Field(..., description="Identifier shared by every generated instance")
    start_time: datetime = Field(..., description="Start of the first occurrence")
    end_time: datetime = Field(..., description="End of the first occurrence")
    recurrence_rule: RecurrenceRule
    exceptions: List[EventException] = Field(default_factory=list)

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def parse_times(cls, value: Any) -> Any:
        return _parse_optional_timestamp(value)

    @model_validator(mode="after")
    def check_end_not_before_start(self) -> "RecurringEvent":
        same_awareness = (self.start_time.tzinfo is None) == (self.end_time.tzinfo is None)
        if same_awareness and self.end_time < self.start_time:
            raise ValueError("end_time must not be earlier than start_time")
        return self


class InstanceOverrides(BaseModel):
    """Non-temporal fields an exception replaces on one occurrence."""

    override_location: Optional[str] = None
    override_description: Optional[str] = None

    model_config = ConfigDict(frozen=True)


class EventInstance(BaseModel):
    """One concrete occurrence of a recurring event. Never persisted."""

    original_id: str = Field(..., description="Id of the source recurring event")
    start: datetime
    end: datetime
    is_exception: bool = False
    overrides: Optional[InstanceOverrides] = None

    model_config = ConfigDict(frozen=True)

    @field_serializer("start", "end")
    def serialize_datetime(self, dt: datetime) -> str:
        """Serialize datetime to ISO format."""
        return dt.isoformat()


class EmitOccurrence(BaseModel):
    """Outcome of a candidate date that produced an instance."""

    kind: Literal["emit"] = "emit"
    instance: EventInstance

    model_config = ConfigDict(frozen=True)


class SkipOccurrence(BaseModel):
    """Outcome of a candidate date that was deliberately not emitted."""

    kind: Literal["skip"] = "skip"
    occurrence_date: date
    reason: SkipReason = SkipReason.CANCELLED

    model_config = ConfigDict(frozen=True, use_enum_values=True)


OccurrenceOutcome = Union[EmitOccurrence, SkipOccurrence]


class ExpansionResult(BaseModel):
    """Instances produced by one expansion call, with bookkeeping."""

    instances: List[EventInstance] = Field(default_factory=list)
    skipped: List[SkipOccurrence] = Field(default_factory=list)
    candidates_considered: int = 0
    truncated: bool = Field(
        default=False, description="Candidate cap reached before the stop bound"
    )
    stop_bound: Optional[datetime] = None

    @property
    def instance_count(self) -> int:
        return len(self.instances)
