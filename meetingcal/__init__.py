"""MeetingCal - recurring meeting expansion for the executive meeting calendar."""

__version__ = "1.0.0"
__author__ = "MeetingCal Team"
__description__ = "Recurring meeting expansion with per-date exceptions for calendar views"

# Package metadata
__all__ = [
    "__author__",
    "__description__",
    "__version__",
]
