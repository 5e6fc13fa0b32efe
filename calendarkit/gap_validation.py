"""Free-time, conflict and density analysis over a calendar.

All functions work on the active occurrences of a calendar: cancelled events
are left out before the window is swept, so cancelling a booking frees its
slot. Every call expands the calendar afresh.

Example usage:
    >>> gaps = find_gaps(calendar, day_start, day_end, timedelta(minutes=30))
    >>> for gap in gaps:
    ...     print(gap.start, gap.duration_minutes())
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from .calendar import Calendar, Occurrence
from .timezone import Instant

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TimeGap:
    """A free interval ``[start, end)`` inside a query window."""

    start: Instant
    end: Instant
    before_event: Optional[str] = None
    after_event: Optional[str] = None

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    def duration_minutes(self) -> int:
        return int(self.duration.total_seconds() // 60)

    def duration_hours(self) -> int:
        return int(self.duration.total_seconds() // 3600)

    def is_at_least(self, min_duration: timedelta) -> bool:
        return self.duration >= min_duration


@dataclass(frozen=True)
class EventOverlap:
    """An interval during which two occurrences are both active."""

    start: Instant
    end: Instant
    events: tuple[str, ...]

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    def duration_minutes(self) -> int:
        return int(self.duration.total_seconds() // 60)

    def event_count(self) -> int:
        return len(self.events)


@dataclass(frozen=True)
class ScheduleDensity:
    """Occupancy report for a query window.

    ``busy_duration`` is the plain sum of clipped occurrence durations, so
    overlapping occurrences are counted once each and occupancy can exceed
    100%.
    """

    total_duration: timedelta
    busy_duration: timedelta
    free_duration: timedelta
    occupancy_percentage: float
    event_count: int
    gap_count: int
    overlap_count: int
    busy_threshold: float = 60.0
    light_threshold: float = 30.0

    def is_busy(self) -> bool:
        return self.occupancy_percentage > self.busy_threshold

    def is_light(self) -> bool:
        return self.occupancy_percentage < self.light_threshold

    def has_conflicts(self) -> bool:
        return self.overlap_count > 0


def _active_occurrences(calendar: Calendar, start: Instant, end: Instant) -> list[Occurrence]:
    return calendar.events_between(start, end, active_only=True)


def find_gaps(
    calendar: Calendar,
    start: Instant,
    end: Instant,
    min_duration: timedelta = timedelta(0),
) -> list[TimeGap]:
    """Find free intervals of at least ``min_duration`` within ``[start, end]``.

    The occurrences are swept in start order with a frontier that only moves
    forward, so overlapping occurrences never produce a negative gap.

    Args:
        calendar: Calendar to analyse
        start: Window start
        end: Window end
        min_duration: Shortest gap to report

    Returns:
        Gaps in chronological order. ``after_event`` names the occurrence
        that ends the gap; ``before_event`` names the occurrence that last
        pushed the frontier (None for a leading gap).
    """
    gaps: list[TimeGap] = []
    frontier = start
    frontier_title: Optional[str] = None

    for occurrence in _active_occurrences(calendar, start, end):
        occ_start = occurrence.start_time
        occ_end = occurrence.end_time(calendar)
        title = occurrence.title(calendar)

        if occ_start > frontier:
            gap = TimeGap(frontier, occ_start, before_event=frontier_title, after_event=title)
            if gap.is_at_least(min_duration):
                gaps.append(gap)

        if occ_end > frontier:
            frontier = occ_end
            frontier_title = title

    if end > frontier:
        gap = TimeGap(frontier, end, before_event=frontier_title)
        if gap.is_at_least(min_duration):
            gaps.append(gap)

    logger.debug("Found %d gaps of at least %s between %s and %s", len(gaps), min_duration, start, end)
    return gaps


def find_overlaps(calendar: Calendar, start: Instant, end: Instant) -> list[EventOverlap]:
    """Find every pair of occurrences that share time within ``[start, end]``.

    Detection is pairwise: three mutually overlapping occurrences give three
    two-event records.
    """
    occurrences = _active_occurrences(calendar, start, end)
    spans = [
        (occurrence.start_time, occurrence.end_time(calendar), occurrence.title(calendar))
        for occurrence in occurrences
    ]

    overlaps: list[EventOverlap] = []
    for i, (start_i, end_i, title_i) in enumerate(spans):
        for start_j, end_j, title_j in spans[i + 1 :]:
            if start_i < end_j and start_j < end_i:
                overlaps.append(
                    EventOverlap(max(start_i, start_j), min(end_i, end_j), (title_i, title_j))
                )

    if overlaps:
        logger.debug("Found %d overlapping occurrence pairs", len(overlaps))
    return overlaps


def calculate_density(calendar: Calendar, start: Instant, end: Instant) -> ScheduleDensity:
    """Measure how much of ``[start, end]`` is taken by active occurrences."""
    occurrences = _active_occurrences(calendar, start, end)
    total = end - start

    busy = timedelta(0)
    for occurrence in occurrences:
        clipped_start = max(occurrence.start_time, start)
        clipped_end = min(occurrence.end_time(calendar), end)
        if clipped_end > clipped_start:
            busy += clipped_end - clipped_start

    if total > timedelta(0):
        occupancy = busy.total_seconds() / total.total_seconds() * 100.0
    else:
        occupancy = 0.0

    settings = calendar.settings
    return ScheduleDensity(
        total_duration=total,
        busy_duration=busy,
        free_duration=total - busy,
        occupancy_percentage=occupancy,
        event_count=len(occurrences),
        gap_count=len(find_gaps(calendar, start, end)),
        overlap_count=len(find_overlaps(calendar, start, end)),
        busy_threshold=settings.busy_threshold_percent,
        light_threshold=settings.light_threshold_percent,
    )


def find_longest_gap(calendar: Calendar, start: Instant, end: Instant) -> Optional[TimeGap]:
    """Return the longest free interval, the earliest one on ties."""
    gaps = find_gaps(calendar, start, end)
    if not gaps:
        return None
    return max(gaps, key=lambda gap: gap.duration)


def find_available_slots(
    calendar: Calendar, start: Instant, end: Instant, duration: timedelta
) -> list[TimeGap]:
    """Free intervals long enough to hold a booking of ``duration``."""
    return find_gaps(calendar, start, end, duration)


def is_slot_available(calendar: Calendar, slot_start: Instant, slot_end: Instant) -> bool:
    """Whether ``[slot_start, slot_end)`` is free of active occurrences.

    The search starts ``settings.slot_lookback_hours`` before the slot so
    that earlier occurrences running into it are found. Touching boundaries
    do not conflict.
    """
    lookback = timedelta(hours=calendar.settings.slot_lookback_hours)

    for occurrence in _active_occurrences(calendar, slot_start - lookback, slot_end):
        occ_start = occurrence.start_time
        occ_end = occurrence.end_time(calendar)
        if occ_start < slot_end and slot_start < occ_end:
            logger.debug(
                "Slot %s - %s conflicts with %r", slot_start, slot_end, occurrence.title(calendar)
            )
            return False

    return True


def suggest_alternatives(
    calendar: Calendar,
    requested_start: Instant,
    duration: timedelta,
    search_window: timedelta,
) -> list[Instant]:
    """Suggest start times near ``requested_start`` that fit ``duration``.

    Looks ``search_window`` either side of the request. Each fitting gap
    contributes its own start and then every ``settings.suggestion_step_minutes``
    step whose booking still ends inside the gap.
    """
    step = timedelta(minutes=calendar.settings.suggestion_step_minutes)
    gaps = find_available_slots(
        calendar, requested_start - search_window, requested_start + search_window, duration
    )

    suggestions: list[Instant] = []
    for gap in gaps:
        candidate = gap.start
        while candidate + duration <= gap.end:
            suggestions.append(candidate)
            candidate = candidate + step

    suggestions.sort()
    return suggestions
