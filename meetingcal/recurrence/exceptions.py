"""Recurrence-specific exceptions for error handling."""

from typing import Any, Optional


class RecurrenceError(Exception):
    """Base exception for recurrence-related errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class RecurrenceValidationError(RecurrenceError, ValueError):
    """Exception raised when a rule, event, row or query window is invalid."""

    def __init__(self, message: str, field: Optional[str] = None, value: Any = None):
        super().__init__(message)
        self.field = field
        self.value = value
