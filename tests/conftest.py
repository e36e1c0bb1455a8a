"""Shared test configuration and fixtures."""

import logging
import os
from datetime import datetime
from typing import Any, Callable, Dict, List

import pytest

from meetingcal.config.settings import reset_settings
from meetingcal.recurrence.expander import ExpanderConfig, RecurrenceExpander
from meetingcal.recurrence.models import EventException, RecurrenceRule, RecurringEvent


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch: pytest.MonkeyPatch, tmp_path: Any):
    """Keep tests away from the developer's environment and config files."""
    for key in list(os.environ):
        if key.upper().startswith("MEETINGCAL_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("MEETINGCAL_CONFIG_DIR", str(tmp_path / "config"))
    monkeypatch.setenv("MEETINGCAL_DATA_DIR", str(tmp_path / "data"))
    reset_settings()
    yield
    reset_settings()


@pytest.fixture(autouse=True)
def reset_meetingcal_logger():
    """Drop handlers the code under test attached to the namespace logger."""
    yield
    logger = logging.getLogger("meetingcal")
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def expander() -> RecurrenceExpander:
    """Expander with default configuration."""
    return RecurrenceExpander(config=ExpanderConfig())


@pytest.fixture
def make_event() -> Callable[..., RecurringEvent]:
    """Factory for recurring events starting 2024-01-01 09:00 for 30 minutes."""

    def _make_event(
        frequency: str = "daily",
        interval: int = 1,
        start: datetime = datetime(2024, 1, 1, 9, 0),
        end: datetime = datetime(2024, 1, 1, 9, 30),
        exceptions: List[Dict[str, Any]] = None,
        **rule_fields: Any,
    ) -> RecurringEvent:
        return RecurringEvent(
            id="meeting-1",
            start_time=start,
            end_time=end,
            recurrence_rule=RecurrenceRule(frequency=frequency, interval=interval, **rule_fields),
            exceptions=[EventException(**ex) for ex in exceptions or []],
        )

    return _make_event


@pytest.fixture
def meeting_rows() -> List[Dict[str, Any]]:
    """Meeting rows as returned by the meetings query with nested relations."""
    return [
        {
            "id": "m-1",
            "title": "Board sync",
            "start_time": "2024-01-01T09:00:00",
            "end_time": "2024-01-01T09:30:00",
            "location": "Room A",
            "description": "Weekly board sync",
            "is_recurring": True,
            "recurrence_rules": [{"frequency": "weekly", "interval": 1}],
            "event_exceptions": [
                {"exception_date": "2024-01-15", "override_location": "Room B"},
                {"exception_date": "2024-01-22", "is_cancelled": True},
            ],
        },
        {
            "id": "m-2",
            "title": "Budget review",
            "start_time": "2024-01-10T13:00:00",
            "end_time": "2024-01-10T14:00:00",
            "location": "Room C",
            "is_recurring": False,
        },
        {
            "id": "m-3",
            "title": "Strategy offsite",
            "start_time": "2024-02-10T13:00:00",
            "end_time": "2024-02-10T17:00:00",
            "is_recurring": False,
        },
    ]
