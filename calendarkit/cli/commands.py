"""Subcommand implementations for the calendarkit CLI."""

import argparse
import logging
from datetime import timedelta
from pathlib import Path
from typing import Optional

from ..calendar import Calendar
from ..codec import export_to_ics, export_to_json, import_from_ics, import_from_json
from ..config import CalendarKitSettings
from ..gap_validation import calculate_density, find_gaps, find_overlaps
from ..timezone import Instant, get_zoned_clock

logger = logging.getLogger(__name__)

TIME_FORMAT = "%Y-%m-%d %H:%M"


def load_calendar(path: Path, settings: CalendarKitSettings) -> Calendar:
    logger.debug(f"Loading calendar from {path}")
    if path.suffix.lower() == ".json":
        return import_from_json(path, settings)
    return import_from_ics(path, settings)


def save_calendar(calendar: Calendar, path: Path) -> None:
    if path.suffix.lower() == ".json":
        export_to_json(calendar, path)
    else:
        export_to_ics(calendar, path)


def _window(args: argparse.Namespace, settings: CalendarKitSettings) -> tuple[Instant, Instant]:
    clock = get_zoned_clock()
    zone = clock.parse_timezone(args.timezone or settings.default_timezone)
    return clock.resolve(args.start, zone), clock.resolve(args.end, zone)


def _format(instant: Instant, zone_hint: Optional[Instant] = None) -> str:
    if zone_hint is not None:
        instant = instant.with_zone(zone_hint.zone)
    return instant.strftime(TIME_FORMAT)


def run_occurrences(args: argparse.Namespace, settings: CalendarKitSettings) -> int:
    calendar = load_calendar(args.calendar, settings)
    start, end = _window(args, settings)

    occurrences = calendar.events_between(start, end, active_only=args.active_only)
    for occurrence in occurrences:
        event = occurrence.event(calendar)
        print(
            f"{_format(occurrence.start_time, start)} - "
            f"{_format(occurrence.end_time(calendar), start)}  "
            f"{event.title} [{event.status.value}]"
        )

    print(f"{len(occurrences)} occurrence(s)")
    return 0


def run_gaps(args: argparse.Namespace, settings: CalendarKitSettings) -> int:
    calendar = load_calendar(args.calendar, settings)
    start, end = _window(args, settings)

    gaps = find_gaps(calendar, start, end, timedelta(minutes=args.min_minutes))
    for gap in gaps:
        before = gap.before_event or "-"
        after = gap.after_event or "-"
        print(
            f"{_format(gap.start, start)} - {_format(gap.end, start)}  "
            f"{gap.duration_minutes()} min  (after: {before}, before: {after})"
        )

    print(f"{len(gaps)} gap(s)")
    return 0


def run_overlaps(args: argparse.Namespace, settings: CalendarKitSettings) -> int:
    calendar = load_calendar(args.calendar, settings)
    start, end = _window(args, settings)

    overlaps = find_overlaps(calendar, start, end)
    for overlap in overlaps:
        print(
            f"{_format(overlap.start, start)} - {_format(overlap.end, start)}  "
            f"{overlap.duration_minutes()} min  {' / '.join(overlap.events)}"
        )

    print(f"{len(overlaps)} overlap(s)")
    return 0


def run_density(args: argparse.Namespace, settings: CalendarKitSettings) -> int:
    calendar = load_calendar(args.calendar, settings)
    start, end = _window(args, settings)

    density = calculate_density(calendar, start, end)
    if density.is_busy():
        label = "busy"
    elif density.is_light():
        label = "light"
    else:
        label = "moderate"

    print(f"Occupancy:   {density.occupancy_percentage:.1f}% ({label})")
    print(f"Busy:        {density.busy_duration}")
    print(f"Free:        {density.free_duration}")
    print(f"Occurrences: {density.event_count}")
    print(f"Gaps:        {density.gap_count}")
    print(f"Overlaps:    {density.overlap_count}")
    if density.has_conflicts():
        print("Schedule has conflicts")
    return 0


def run_convert(args: argparse.Namespace, settings: CalendarKitSettings) -> int:
    calendar = load_calendar(args.calendar, settings)
    save_calendar(calendar, args.output)
    print(f"Wrote {calendar.event_count()} event(s) to {args.output}")
    return 0


COMMANDS = {
    "occurrences": run_occurrences,
    "gaps": run_gaps,
    "overlaps": run_overlaps,
    "density": run_density,
    "convert": run_convert,
}
