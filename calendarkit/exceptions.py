"""Exception hierarchy for calendarkit."""

from typing import Optional


class CalendarKitError(Exception):
    """Base exception for calendarkit errors."""

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.detail = detail


class TimeParseError(CalendarKitError):
    """Raised when a civil date-time string does not match a supported pattern."""


class InvalidTimeZoneError(CalendarKitError):
    """Raised when a time zone name cannot be resolved."""


class InvalidLocalTimeError(CalendarKitError):
    """Raised when a civil time does not map to a single instant in its zone.

    Covers the spring-forward gap (the wall time never happens) when the
    chosen disambiguation does not tolerate it.
    """


class ValidationError(CalendarKitError):
    """Raised when an event is missing a field or its fields disagree."""


class RecurrenceError(CalendarKitError):
    """Raised for unsupported frequencies or malformed recurrence rules."""


class CodecError(CalendarKitError):
    """Raised when ICS or JSON content cannot be read or written."""
