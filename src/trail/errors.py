"""Exceptions raised by trail."""

from __future__ import annotations

from datetime import timedelta


class TrailError(Exception):
    """Base exception for trail errors."""

    pass


class TimeParseError(TrailError):
    """Raised when a time or date expression cannot be parsed."""

    def __init__(self, message: str, expression: str) -> None:
        super().__init__(message)
        self.expression = expression


class UnrecognizedTimeExpression(TimeParseError):
    """Raised when an expression matches none of the known forms."""

    def __init__(self, expression: str) -> None:
        super().__init__(f"Unrecognized time format: {expression}", expression)


class InvalidTimeFormat(TimeParseError):
    """Raised when a relative offset has a non-integer numeric prefix."""

    def __init__(self, expression: str) -> None:
        super().__init__(f"Invalid time format: {expression}", expression)


class InvalidDateFormat(TimeParseError):
    """Raised when a calendar date is not YYYY-MM-DD."""

    def __init__(self, expression: str) -> None:
        super().__init__(f"Invalid date format: {expression}. Use YYYY-MM-DD.", expression)


class StaleLocationError(TrailError):
    """Raised when the closest prior location is too old to trust."""

    def __init__(self, cwd: str, staleness: timedelta) -> None:
        super().__init__(f"Closest match ({cwd}) is {staleness} old")
        self.cwd = cwd
        self.staleness = staleness
