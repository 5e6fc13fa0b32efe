"""Calendar: an ordered collection of events and the occurrence index over it."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta, tzinfo
from typing import Callable, Iterable, Iterator, Optional, Union

from .config import CalendarKitSettings, get_settings
from .models import Event
from .timezone import Instant, get_zoned_clock

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Occurrence:
    """One concrete realization of a calendar event.

    Holds the index of the event inside its calendar rather than the event
    itself; the event is looked up through the calendar on every read, so
    an occurrence is only meaningful for the calendar that produced it.
    """

    event_index: int
    start_time: Instant

    def event(self, calendar: Calendar) -> Event:
        return calendar.events[self.event_index]

    def end_time(self, calendar: Calendar) -> Instant:
        return self.start_time + self.event(calendar).duration()

    def title(self, calendar: Calendar) -> str:
        return self.event(calendar).title  # type: ignore[return-value]

    def description(self, calendar: Calendar) -> Optional[str]:
        return self.event(calendar).description

    def duration(self, calendar: Calendar) -> timedelta:
        return self.event(calendar).duration()


class Calendar:
    """Insertion-ordered, non-deduplicating collection of events.

    Events are addressed by their position. Occurrence queries expand every
    event with the per-event cap ``settings.max_occurrences_per_event``.
    """

    def __init__(
        self,
        name: str,
        description: Optional[str] = None,
        timezone: Optional[Union[str, tzinfo]] = None,
        settings: Optional[CalendarKitSettings] = None,
    ) -> None:
        self.name = name
        self.description = description
        self.settings = settings or get_settings()
        self.timezone: Optional[tzinfo] = (
            get_zoned_clock().parse_timezone(timezone) if timezone is not None else None
        )
        self.events: list[Event] = []

    def __repr__(self) -> str:
        return f"Calendar(name={self.name!r}, events={len(self.events)})"

    def __len__(self) -> int:
        return len(self.events)

    def __iter__(self) -> Iterator[Event]:
        return iter(self.events)

    @property
    def default_timezone(self) -> tzinfo:
        """The calendar zone, or the configured default zone."""
        if self.timezone is not None:
            return self.timezone
        return get_zoned_clock().parse_timezone(self.settings.default_timezone)

    def add_event(self, event: Event) -> None:
        self.events.append(event)
        logger.debug("Added event %r to calendar %r", event.title, self.name)

    def add_events(self, events: Iterable[Event]) -> None:
        for event in events:
            self.add_event(event)

    def remove_event(self, index: int) -> Optional[Event]:
        """Remove and return the event at ``index``, or None when out of range."""
        if not 0 <= index < len(self.events):
            return None
        return self.events.pop(index)

    def update_event(self, index: int, update: Callable[[Event], object]) -> bool:
        """Apply ``update`` to the event at ``index`` in place.

        Returns:
            False when there is no event at ``index``
        """
        event = self.get_event(index)
        if event is None:
            return False
        update(event)
        return True

    def get_event(self, index: int) -> Optional[Event]:
        if not 0 <= index < len(self.events):
            return None
        return self.events[index]

    def get_events(self) -> list[Event]:
        return list(self.events)

    def find_events_by_title(self, title: str) -> list[Event]:
        """Events whose title contains ``title``, ignoring case."""
        needle = title.lower()
        return [event for event in self.events if needle in (event.title or "").lower()]

    def event_count(self) -> int:
        return len(self.events)

    def clear_events(self) -> None:
        self.events.clear()

    def events_between(
        self,
        start: Instant,
        end: Instant,
        active_only: bool = False,
    ) -> list[Occurrence]:
        """Expand every event over ``[start, end]`` into sorted occurrences.

        Args:
            start: Window start (inclusive)
            end: Window end (inclusive)
            active_only: Skip cancelled events

        Returns:
            Occurrences ordered by start instant; occurrences at the same
            instant keep event insertion order
        """
        cap = self.settings.max_occurrences_per_event
        occurrences: list[Occurrence] = []

        for index, event in enumerate(self.events):
            if active_only and not event.is_active():
                continue
            for instant in event.occurrences_between(start, end, cap):
                occurrences.append(Occurrence(index, instant))

        # list.sort is stable, so ties stay in insertion order
        occurrences.sort(key=lambda occurrence: occurrence.start_time)

        logger.verbose(  # type: ignore[attr-defined]
            "Calendar %r: %d occurrences between %s and %s",
            self.name,
            len(occurrences),
            start,
            end,
        )
        return occurrences

    def events_on_date(self, day: Instant, active_only: bool = False) -> list[Occurrence]:
        """Occurrences on the civil day of ``day``, in ``day``'s own zone."""
        clock = get_zoned_clock()
        civil_day = day.civil_date()
        return self.events_between(
            clock.start_of_day(civil_day, day.zone),
            clock.end_of_day(civil_day, day.zone),
            active_only=active_only,
        )
