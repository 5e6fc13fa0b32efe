"""Validated event construction from loosely typed input.

``EventConfig`` collects every field of an event (civil strings plus a zone
name, or ready-made instants) and turns them into an ``Event`` in a single
``build()`` call. Any invalid field fails the whole build with a typed
error; nothing is dropped or defaulted behind the caller's back.

Example usage:
    >>> event = EventConfig(
    ...     title="Standup",
    ...     start="2025-11-03 09:00:00",
    ...     timezone="America/New_York",
    ...     duration_minutes=15,
    ...     recurrence=RecurrenceRule.daily().with_count(5),
    ...     skip_weekends=True,
    ... ).build()
"""

import logging
from datetime import date, timedelta, tzinfo
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, InstanceOf

from .exceptions import TimeParseError, ValidationError
from .models import Event, EventStatus
from .recurrence import RecurrenceFilter, RecurrenceRule
from .timezone import Disambiguation, Instant, get_zoned_clock

logger = logging.getLogger(__name__)

TimeInput = Union[InstanceOf[Instant], str]
DateInput = Union[InstanceOf[Instant], date, str]


class EventConfig(BaseModel):
    """All the fields needed to build an event."""

    model_config = ConfigDict(arbitrary_types_allowed=True, extra="forbid")

    title: Optional[str] = None
    start: Optional[TimeInput] = None
    end: Optional[TimeInput] = None
    duration_hours: Optional[int] = None
    duration_minutes: Optional[int] = None
    timezone: Optional[str] = None

    description: Optional[str] = None
    location: Optional[str] = None
    uid: Optional[str] = None
    attendees: list[str] = Field(default_factory=list)
    status: EventStatus = EventStatus.CONFIRMED

    recurrence: Optional[InstanceOf[RecurrenceRule]] = None
    recurrence_filter: Optional[InstanceOf[RecurrenceFilter]] = None
    skip_weekends: bool = False
    exception_dates: list[DateInput] = Field(default_factory=list)

    def build(self) -> Event:
        """Validate the configuration and create the event.

        Raises:
            ValidationError: Missing or contradictory fields, or ``end <= start``
            InvalidTimeZoneError: Unknown zone name
            TimeParseError: Malformed civil date-time or date string
            InvalidLocalTimeError: Civil start or end inside a DST gap
        """
        if not self.title or not self.title.strip():
            raise ValidationError("Event title is required")
        if self.start is None:
            raise ValidationError(f"Event {self.title!r} has no start time")

        zone = self._resolve_zone()
        start = self._resolve_time(self.start, zone)
        end = self._resolve_end(start, zone)

        recurrence_filter = self.recurrence_filter
        if self.skip_weekends:
            recurrence_filter = (recurrence_filter or RecurrenceFilter()).with_skip_weekends()
        if recurrence_filter is not None and self.recurrence is None:
            raise ValidationError(
                f"Event {self.title!r} has a recurrence filter but no recurrence rule"
            )

        event = Event(
            title=self.title,
            start_time=start,
            end_time=end,
            timezone=zone,
            description=self.description,
            attendees=list(self.attendees),
            recurrence=self.recurrence,
            recurrence_filter=recurrence_filter,
            exception_dates=[self._resolve_date(value, zone) for value in self.exception_dates],
            location=self.location,
            uid=self.uid,
            status=self.status,
        )
        logger.debug("Built event %r starting %s", event.title, event.start_time)
        return event

    def _resolve_zone(self) -> tzinfo:
        if self.timezone is not None:
            return get_zoned_clock().parse_timezone(self.timezone)
        if isinstance(self.start, Instant):
            return self.start.zone
        raise ValidationError(f"Event {self.title!r} needs a timezone for civil start time")

    def _resolve_time(self, value: Union[Instant, str], zone: tzinfo) -> Instant:
        if isinstance(value, Instant):
            return value.with_zone(zone)
        return get_zoned_clock().resolve(value, zone, Disambiguation.EARLIEST)

    def _resolve_end(self, start: Instant, zone: tzinfo) -> Instant:
        has_duration = self.duration_hours is not None or self.duration_minutes is not None

        if self.end is not None and has_duration:
            raise ValidationError(f"Event {self.title!r} has both an end time and a duration")
        if self.end is not None:
            return self._resolve_time(self.end, zone)
        if has_duration:
            duration = timedelta(hours=self.duration_hours or 0, minutes=self.duration_minutes or 0)
            return start + duration

        raise ValidationError(f"Event {self.title!r} needs an end time or a duration")

    @staticmethod
    def _resolve_date(value: Union[Instant, date, str], zone: tzinfo) -> date:
        if isinstance(value, Instant):
            return value.with_zone(zone).civil_date()
        if isinstance(value, date):
            return value

        text = value.strip()
        try:
            return date.fromisoformat(text)
        except ValueError:
            pass
        # Full civil date-times are accepted too; only the date is kept
        try:
            return get_zoned_clock().parse_civil(text).date()
        except TimeParseError as e:
            raise TimeParseError(f"Invalid exception date: {value!r}") from e
