"""Configuration management for MeetingCal."""

from .settings import (
    LoggingSettings,
    MeetingCalSettings,
    RecurrenceSettings,
    get_settings,
    reset_settings,
)

__all__ = [
    "LoggingSettings",
    "MeetingCalSettings",
    "RecurrenceSettings",
    "get_settings",
    "reset_settings",
]
