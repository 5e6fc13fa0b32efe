"""Event model and booking lifecycle."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta, tzinfo
from enum import Enum
from typing import Any, Optional

from .exceptions import ValidationError
from .recurrence import RecurrenceFilter, RecurrenceRule, get_recurrence_engine, to_civil_date
from .timezone import Instant, get_zoned_clock

logger = logging.getLogger(__name__)

DEFAULT_MAX_OCCURRENCES = 1000


class EventStatus(str, Enum):
    """Booking status of an event."""

    CONFIRMED = "confirmed"
    TENTATIVE = "tentative"
    CANCELLED = "cancelled"
    BLOCKED = "blocked"


@dataclass
class Event:
    """A titled, timezone-aware interval with optional recurrence.

    ``start_time`` and ``end_time`` are absolute instants rendered in
    ``timezone``. When ``timezone`` is omitted it is taken from
    ``start_time``. Construction fails with ValidationError when a required
    field is missing or ``end_time <= start_time``.
    """

    title: Optional[str] = None
    start_time: Optional[Instant] = None
    end_time: Optional[Instant] = None
    timezone: Optional[tzinfo] = None
    description: Optional[str] = None
    attendees: list[str] = field(default_factory=list)
    recurrence: Optional[RecurrenceRule] = None
    recurrence_filter: Optional[RecurrenceFilter] = None
    exception_dates: list[date] = field(default_factory=list)
    location: Optional[str] = None
    uid: Optional[str] = None
    status: EventStatus = EventStatus.CONFIRMED

    def __post_init__(self) -> None:
        if not isinstance(self.title, str) or not self.title.strip():
            raise ValidationError("Event title is required")
        if self.start_time is None:
            raise ValidationError("Event start time is required")
        if self.end_time is None:
            raise ValidationError("Event end time is required")
        if not isinstance(self.start_time, Instant) or not isinstance(self.end_time, Instant):
            raise ValidationError("Event start and end times must be Instants")

        if self.timezone is None:
            self.timezone = self.start_time.zone
        if self.timezone is None:
            raise ValidationError("Event timezone is required")

        self._check_interval(self.start_time, self.end_time)

        try:
            self.status = EventStatus(self.status)
        except ValueError as e:
            raise ValidationError(f"Invalid event status: {self.status!r}") from e

        self.start_time = self.start_time.with_zone(self.timezone)
        self.end_time = self.end_time.with_zone(self.timezone)
        self.attendees = list(self.attendees)
        self.exception_dates = sorted({to_civil_date(d) for d in self.exception_dates})

    @classmethod
    def from_duration(
        cls,
        title: str,
        start_time: Instant,
        duration: timedelta,
        timezone: Optional[tzinfo] = None,
        **kwargs: Any,
    ) -> Event:
        """Create an event from its start and duration."""
        if start_time is None:
            raise ValidationError("Event start time is required")
        return cls(
            title=title,
            start_time=start_time,
            end_time=start_time + duration,
            timezone=timezone,
            **kwargs,
        )

    @staticmethod
    def _check_interval(start: Instant, end: Instant) -> None:
        if end <= start:
            raise ValidationError("Event end time must be after start time")

    @property
    def is_recurring(self) -> bool:
        return self.recurrence is not None

    def duration(self) -> timedelta:
        return self.end_time - self.start_time  # type: ignore[operator]

    def is_active(self) -> bool:
        """Whether the event occupies time. Only cancelled events do not."""
        return self.status != EventStatus.CANCELLED

    def confirm(self) -> None:
        self.status = EventStatus.CONFIRMED

    def cancel(self) -> None:
        self.status = EventStatus.CANCELLED

    def tentative(self) -> None:
        self.status = EventStatus.TENTATIVE

    def block(self) -> None:
        self.status = EventStatus.BLOCKED

    def reschedule(self, new_start: Instant, new_end: Instant) -> None:
        """Move the event to a new interval.

        A cancelled event becomes confirmed again once rescheduled.

        Raises:
            ValidationError: If ``new_end <= new_start``
        """
        self._check_interval(new_start, new_end)

        self.start_time = new_start.with_zone(self.timezone)  # type: ignore[arg-type]
        self.end_time = new_end.with_zone(self.timezone)  # type: ignore[arg-type]

        if self.status == EventStatus.CANCELLED:
            logger.info("Rescheduled cancelled event %r, status reset to confirmed", self.title)
            self.status = EventStatus.CONFIRMED

    def occurrences_between(
        self,
        start: Instant,
        end: Instant,
        max_occurrences: int = DEFAULT_MAX_OCCURRENCES,
    ) -> list[Instant]:
        """Occurrence start instants within ``[start, end]`` (inclusive).

        Recurring events are generated from ``start_time`` (capped at
        ``max_occurrences``), restricted to the window, passed through the
        recurrence filter and stripped of exception dates.
        """
        if self.recurrence is None:
            if start <= self.start_time <= end:  # type: ignore[operator]
                return [self.start_time]  # type: ignore[list-item]
            return []

        occurrences = get_recurrence_engine().generate_occurrences(
            self.recurrence, self.start_time, max_occurrences  # type: ignore[arg-type]
        )
        occurrences = [occ for occ in occurrences if start <= occ <= end]

        if self.recurrence_filter is not None:
            occurrences = self.recurrence_filter.filter_occurrences(occurrences)

        if self.exception_dates:
            excluded = set(self.exception_dates)
            occurrences = [occ for occ in occurrences if occ.civil_date() not in excluded]

        return occurrences

    def occurs_on(self, day: Instant, max_occurrences: int = DEFAULT_MAX_OCCURRENCES) -> bool:
        """Whether any occurrence falls on the calendar date of ``day``.

        The date is read in ``day``'s own zone; that date's midnight-to-midnight
        span is then taken in the event's zone.
        """
        clock = get_zoned_clock()
        civil_day = day.civil_date()
        day_start = clock.start_of_day(civil_day, self.timezone)  # type: ignore[arg-type]
        day_end = clock.end_of_day(civil_day, self.timezone)  # type: ignore[arg-type]
        return bool(self.occurrences_between(day_start, day_end, max_occurrences))
