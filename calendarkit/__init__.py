"""calendarkit - timezone-aware calendar events, recurrence and availability analysis.

Example usage:
    >>> from datetime import timedelta
    >>> from calendarkit import Calendar, EventConfig, find_gaps, resolve
    >>>
    >>> calendar = Calendar("Work")
    >>> calendar.add_event(
    ...     EventConfig(
    ...         title="Standup",
    ...         start="2025-11-03 09:00:00",
    ...         timezone="UTC",
    ...         duration_minutes=15,
    ...     ).build()
    ... )
    >>> gaps = find_gaps(
    ...     calendar,
    ...     resolve("2025-11-03 08:00:00", "UTC"),
    ...     resolve("2025-11-03 18:00:00", "UTC"),
    ...     timedelta(minutes=30),
    ... )
"""

__version__ = "1.0.0"

# Registers the VERBOSE level and Logger.verbose before any module logs
from .utils.logging import VERBOSE, setup_logging  # isort: skip

from .builder import EventConfig
from .calendar import Calendar, Occurrence
from .exceptions import (
    CalendarKitError,
    CodecError,
    InvalidLocalTimeError,
    InvalidTimeZoneError,
    RecurrenceError,
    TimeParseError,
    ValidationError,
)
from .gap_validation import (
    EventOverlap,
    ScheduleDensity,
    TimeGap,
    calculate_density,
    find_available_slots,
    find_gaps,
    find_longest_gap,
    find_overlaps,
    is_slot_available,
    suggest_alternatives,
)
from .models import Event, EventStatus
from .recurrence import (
    Frequency,
    RecurrenceEngine,
    RecurrenceFilter,
    RecurrenceRule,
    Weekday,
    generate_occurrences,
)
from .timezone import (
    UTC,
    Disambiguation,
    Instant,
    ZonedClock,
    convert_timezone,
    end_of_day,
    is_dst,
    parse_datetime_with_tz,
    parse_timezone,
    resolve,
    start_of_day,
)

__all__ = [
    "UTC",
    "VERBOSE",
    "Calendar",
    "CalendarKitError",
    "CodecError",
    "Disambiguation",
    "Event",
    "EventConfig",
    "EventOverlap",
    "EventStatus",
    "Frequency",
    "Instant",
    "InvalidLocalTimeError",
    "InvalidTimeZoneError",
    "Occurrence",
    "RecurrenceEngine",
    "RecurrenceError",
    "RecurrenceFilter",
    "RecurrenceRule",
    "ScheduleDensity",
    "TimeGap",
    "TimeParseError",
    "ValidationError",
    "Weekday",
    "ZonedClock",
    "__version__",
    "calculate_density",
    "convert_timezone",
    "end_of_day",
    "find_available_slots",
    "find_gaps",
    "find_longest_gap",
    "find_overlaps",
    "generate_occurrences",
    "is_dst",
    "is_slot_available",
    "parse_datetime_with_tz",
    "parse_timezone",
    "resolve",
    "setup_logging",
    "start_of_day",
    "suggest_alternatives",
]
