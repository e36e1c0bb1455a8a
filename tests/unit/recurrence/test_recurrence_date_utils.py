"""Unit tests for recurrence date helpers."""

from datetime import date, datetime, timezone

import pytest
import pytz

from meetingcal.recurrence.date_utils import (
    add_months,
    add_years,
    calendar_day,
    end_of_day,
    end_of_month,
    get_zone,
    is_date_only,
    parse_calendar_day,
    parse_timestamp,
    start_of_month,
    sunday_weekday,
    to_wall_clock,
    weekday_from_code,
)


class TestParsing:
    """Test ISO parsing helpers."""

    def test_parse_timestamp_date_string(self):
        assert parse_timestamp("2024-01-05") == datetime(2024, 1, 5)

    def test_parse_timestamp_aware_string(self):
        assert parse_timestamp(" 2024-01-05T09:00:00Z ") == datetime(
            2024, 1, 5, 9, 0, tzinfo=timezone.utc
        )

    def test_parse_timestamp_date_object(self):
        assert parse_timestamp(date(2024, 1, 5)) == datetime(2024, 1, 5)

    def test_parse_timestamp_rejects_garbage(self):
        with pytest.raises(ValueError):
            parse_timestamp("tomorrow")

    def test_parse_calendar_day_keeps_granularity(self):
        """Test date strings become dates and timestamps stay datetimes."""
        assert parse_calendar_day("2024-01-05") == date(2024, 1, 5)
        assert isinstance(parse_calendar_day("2024-01-05T10:00:00"), datetime)

    def test_parse_timestamp_rejects_epoch_number(self):
        """Test numeric timestamps are a type error rather than an AttributeError."""
        with pytest.raises(TypeError, match="got int"):
            parse_timestamp(1704099600)

    def test_parse_calendar_day_rejects_non_string(self):
        with pytest.raises(TypeError):
            parse_calendar_day(["2024-01-05"])

    def test_parse_calendar_day_basic_format(self):
        assert parse_calendar_day("20240105") == date(2024, 1, 5)

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("2024-01-05", True),
            ("20240105", True),
            (" 2024-01-05 ", True),
            ("2024-01-05T09:00:00", False),
            ("20240105T0900", False),
            ("2024-01-05 09:00", False),
            ("soon", False),
        ],
    )
    def test_is_date_only(self, text, expected):
        assert is_date_only(text) is expected


class TestTimezones:
    """Test wall-clock conversion."""

    def test_naive_passthrough(self):
        dt = datetime(2024, 1, 1, 9, 0)

        assert to_wall_clock(dt, pytz.timezone("Asia/Tokyo")) is dt

    def test_aware_converted_and_stripped(self):
        dt = datetime(2024, 7, 1, 12, 0, tzinfo=timezone.utc)

        result = to_wall_clock(dt, pytz.timezone("Europe/Berlin"))

        assert result == datetime(2024, 7, 1, 14, 0)
        assert result.tzinfo is None

    def test_calendar_day_of_aware_timestamp(self):
        """Test the local day can differ from the UTC day."""
        dt = datetime(2024, 1, 3, 4, 0, tzinfo=timezone.utc)

        assert calendar_day(dt, pytz.timezone("America/New_York")) == date(2024, 1, 2)
        assert calendar_day(date(2024, 1, 3)) == date(2024, 1, 3)

    def test_get_zone(self):
        assert get_zone(None) is None
        assert get_zone("UTC") == pytz.utc
        with pytest.raises(pytz.UnknownTimeZoneError):
            get_zone("Nowhere/Special")


class TestWeekdays:
    """Test Sunday-based weekday helpers."""

    @pytest.mark.parametrize(
        "day,expected",
        [
            (date(2024, 1, 7), 0),  # Sunday
            (date(2024, 1, 8), 1),  # Monday
            (date(2024, 1, 13), 6),  # Saturday
        ],
    )
    def test_sunday_weekday(self, day, expected):
        assert sunday_weekday(day) == expected

    @pytest.mark.parametrize("code,expected", [("SU", 0), ("mo", 1), ("1MO", 1), ("-1FR", 5)])
    def test_weekday_from_code(self, code, expected):
        assert weekday_from_code(code) == expected

    def test_weekday_from_unknown_code(self):
        with pytest.raises(ValueError, match="Unknown weekday code"):
            weekday_from_code("XX")

class TestArithmetic:
    """Test calendar arithmetic."""

    def test_add_months_clamps(self):
        assert add_months(datetime(2023, 1, 31, 9, 0), 1) == datetime(2023, 2, 28, 9, 0)

    def test_add_years_from_leap_day(self):
        assert add_years(datetime(2024, 2, 29), 1) == datetime(2025, 2, 28)

    def test_day_and_month_bounds(self):
        dt = datetime(2024, 2, 14, 15, 30)

        assert end_of_day(dt) == datetime(2024, 2, 14, 23, 59, 59, 999999)
        assert start_of_month(dt) == datetime(2024, 2, 1)
        assert end_of_month(dt) == datetime(2024, 2, 29, 23, 59, 59, 999999)
