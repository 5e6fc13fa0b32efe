"""
Timezone package for calendarkit.

Provides the Instant value type and the zoned clock that turns civil
date-time strings into instants.

Example usage:
    >>> from calendarkit.timezone import Disambiguation, resolve
    >>>
    >>> start = resolve("2025-11-02 01:30:00", "America/New_York")
    >>> later = resolve("2025-11-02 01:30:00", "America/New_York", Disambiguation.LATEST)
    >>> (later - start).total_seconds()
    3600.0
"""

from .instant import UTC, Instant, zone_name
from .service import (
    CIVIL_FORMATS,
    Disambiguation,
    ZonedClock,
    convert_timezone,
    end_of_day,
    get_zoned_clock,
    is_dst,
    localize,
    parse_civil,
    parse_datetime_with_tz,
    parse_timezone,
    resolve,
    start_of_day,
)

__all__ = [
    "CIVIL_FORMATS",
    "UTC",
    "Disambiguation",
    "Instant",
    "ZonedClock",
    "convert_timezone",
    "end_of_day",
    "get_zoned_clock",
    "is_dst",
    "localize",
    "parse_civil",
    "parse_datetime_with_tz",
    "parse_timezone",
    "resolve",
    "start_of_day",
    "zone_name",
]
