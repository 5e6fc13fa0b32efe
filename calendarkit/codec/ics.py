"""ICS (RFC 5545) import and export using the icalendar library."""

import logging
import uuid
from datetime import date, datetime, timedelta, tzinfo
from pathlib import Path
from typing import Any, Optional, Union

from icalendar import Calendar as ICalendar, Event as ICalEvent
from pydantic import BaseModel, ConfigDict, Field, InstanceOf

from ..calendar import Calendar
from ..config import CalendarKitSettings
from ..exceptions import CalendarKitError, CodecError, InvalidTimeZoneError
from ..models import Event, EventStatus
from ..recurrence import RecurrenceRule
from ..timezone import UTC, Disambiguation, Instant, get_zoned_clock

logger = logging.getLogger(__name__)

PRODID = "-//calendarkit//calendarkit//EN"
UID_DOMAIN = "calendarkit"

# Status values written to STATUS; BLOCKED has no RFC 5545 equivalent
ICS_STATUS = {
    EventStatus.CONFIRMED: "CONFIRMED",
    EventStatus.TENTATIVE: "TENTATIVE",
    EventStatus.CANCELLED: "CANCELLED",
    EventStatus.BLOCKED: "CONFIRMED",
}
STATUS_EXTENSION = "X-CALENDARKIT-STATUS"


class ImportResult(BaseModel):
    """Result of a tolerant ICS import."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    success: bool
    calendar: Optional[InstanceOf[Calendar]] = None
    total_components: int = 0
    event_count: int = 0
    skipped_count: int = 0
    error_message: Optional[str] = None
    warnings: list[str] = Field(default_factory=list)


def _is_utc(zone: tzinfo) -> bool:
    # Zones without an IANA key (fixed offsets) are written as UTC
    key = getattr(zone, "key", None)
    return key is None or key in ("UTC", "Etc/UTC")


def _ics_datetime(instant: Instant, zone: tzinfo) -> datetime:
    """Datetime value that icalendar renders as ``...Z`` or ``TZID=...``."""
    if _is_utc(zone):
        return instant.utc
    return instant.with_zone(zone).local


def _event_to_ical(event: Event) -> ICalEvent:
    zone = event.timezone
    vevent = ICalEvent()

    vevent.add("uid", event.uid or f"{uuid.uuid4()}@{UID_DOMAIN}")
    vevent.add("dtstamp", datetime.now(UTC))
    vevent.add("summary", event.title)
    vevent.add("dtstart", _ics_datetime(event.start_time, zone))
    vevent.add("dtend", _ics_datetime(event.end_time, zone))

    if event.description:
        vevent.add("description", event.description)
    if event.location:
        vevent.add("location", event.location)

    vevent.add("status", ICS_STATUS[event.status])
    if event.status == EventStatus.BLOCKED:
        vevent.add(STATUS_EXTENSION, event.status.value.upper())

    for attendee in event.attendees:
        vevent.add("attendee", f"mailto:{attendee}")

    if event.recurrence is not None:
        vevent.add("rrule", _rrule_dict(event.recurrence))

    if event.exception_dates:
        # Exception dates are written at the event's own time of day
        clock = get_zoned_clock()
        time_of_day = event.start_time.local.time().replace(tzinfo=None)
        exdates = [
            _ics_datetime(
                clock.localize(datetime.combine(day, time_of_day), zone, Disambiguation.COMPATIBLE),
                zone,
            )
            for day in event.exception_dates
        ]
        vevent.add("exdate", exdates)

    return vevent


def _rrule_dict(rule: RecurrenceRule) -> dict[str, Any]:
    value: dict[str, Any] = {"freq": rule.frequency.value}
    if rule.interval > 1:
        value["interval"] = rule.interval
    if rule.count is not None:
        value["count"] = rule.count
    if rule.until is not None:
        value["until"] = rule.until.utc
    if rule.weekdays:
        value["byday"] = [day.value for day in rule.weekdays]
    return value


def to_ics_string(calendar: Calendar) -> str:
    """Serialize a calendar to ICS text."""
    ical = ICalendar()
    ical.add("prodid", PRODID)
    ical.add("version", "2.0")
    ical.add("x-wr-calname", calendar.name)
    if calendar.description:
        ical.add("x-wr-caldesc", calendar.description)
    if calendar.timezone is not None and getattr(calendar.timezone, "key", None):
        ical.add("x-wr-timezone", calendar.timezone.key)  # type: ignore[attr-defined]

    for event in calendar.events:
        ical.add_component(_event_to_ical(event))

    logger.debug("Exported %d events from calendar %r", len(calendar.events), calendar.name)
    return ical.to_ical().decode("utf-8")


def export_to_ics(calendar: Calendar, path: Union[str, Path]) -> None:
    """Write a calendar to an ``.ics`` file.

    Raises:
        CodecError: If the file cannot be written
    """
    try:
        Path(path).write_text(to_ics_string(calendar), encoding="utf-8")
    except OSError as e:
        raise CodecError(f"Failed to write ICS file: {path}", str(e)) from e
    logger.info("Exported calendar %r to %s", calendar.name, path)


def parse_ics(ics_content: str, settings: Optional[CalendarKitSettings] = None) -> ImportResult:
    """Parse ICS text, skipping events that cannot be converted.

    Each skipped VEVENT adds a warning to the result instead of failing the
    whole import.
    """
    try:
        ical = ICalendar.from_ical(ics_content)
    except ValueError as e:
        logger.error(f"Failed to parse ICS content: {e}")
        return ImportResult(success=False, error_message=f"Failed to parse ICS: {e}")

    name = str(ical.get("X-WR-CALNAME") or ical.get("NAME") or "Imported Calendar")
    description = ical.get("X-WR-CALDESC") or ical.get("DESCRIPTION")
    calendar = Calendar(
        name,
        description=str(description) if description else None,
        settings=settings,
    )

    calendar_tz = ical.get("X-WR-TIMEZONE")
    if calendar_tz:
        try:
            calendar.timezone = get_zoned_clock().parse_timezone(str(calendar_tz))
        except InvalidTimeZoneError:
            logger.warning(f"Ignoring unknown calendar timezone: {calendar_tz}")

    result = ImportResult(success=True, calendar=calendar)

    for component in ical.walk("VEVENT"):
        result.total_components += 1
        try:
            calendar.add_event(_ical_to_event(component, calendar.default_timezone))
            result.event_count += 1
        except CalendarKitError as e:
            uid = component.get("UID", "<no uid>")
            message = f"Skipped event {uid}: {e.message}"
            logger.warning(message)
            result.warnings.append(message)
            result.skipped_count += 1

    logger.debug(
        "Imported %d of %d events into calendar %r",
        result.event_count,
        result.total_components,
        calendar.name,
    )
    return result


def from_ics_string(ics_content: str, settings: Optional[CalendarKitSettings] = None) -> Calendar:
    """Build a calendar from ICS text.

    Events that cannot be converted are skipped with a logged warning.

    Raises:
        CodecError: If the text is not parseable ICS at all
    """
    result = parse_ics(ics_content, settings)
    if not result.success or result.calendar is None:
        raise CodecError(result.error_message or "Failed to parse ICS")
    return result.calendar


def import_from_ics(
    path: Union[str, Path], settings: Optional[CalendarKitSettings] = None
) -> Calendar:
    """Read a calendar from an ``.ics`` file.

    Raises:
        CodecError: If the file cannot be read or parsed
    """
    try:
        content = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise CodecError(f"Failed to read ICS file: {path}", str(e)) from e
    return from_ics_string(content, settings)


def _ical_to_event(component: Any, default_zone: tzinfo) -> Event:
    summary = component.get("SUMMARY")
    if not summary:
        raise CodecError("Event missing SUMMARY")

    dtstart = component.get("DTSTART")
    if dtstart is None:
        raise CodecError("Event missing DTSTART")

    start, zone = _parse_ical_time(dtstart, default_zone)

    dtend = component.get("DTEND")
    duration = component.get("DURATION")
    if dtend is not None:
        end, _ = _parse_ical_time(dtend, default_zone)
    elif duration is not None:
        end = start + duration.dt
    else:
        # RFC 5545: a date-only event without DTEND lasts one day
        is_all_day = not isinstance(dtstart.dt, datetime)
        end = start + (timedelta(days=1) if is_all_day else timedelta(hours=1))

    rrule = component.get("RRULE")
    recurrence = None
    if rrule is not None:
        recurrence = RecurrenceRule.from_rrule_string(rrule.to_ical().decode("utf-8"), zone)

    return Event(
        title=str(summary),
        start_time=start,
        end_time=end,
        timezone=zone,
        description=str(component["DESCRIPTION"]) if component.get("DESCRIPTION") else None,
        location=str(component["LOCATION"]) if component.get("LOCATION") else None,
        uid=str(component["UID"]) if component.get("UID") else None,
        attendees=_parse_attendees(component.get("ATTENDEE")),
        recurrence=recurrence,
        exception_dates=_parse_exdates(component.get("EXDATE"), zone),
        status=_parse_status(component),
    )


def _parse_ical_time(prop: Any, default_zone: tzinfo) -> tuple[Instant, tzinfo]:
    """Convert a DTSTART/DTEND property into an instant and its zone.

    The TZID parameter wins over whatever tzinfo icalendar attached. UTC
    values stay in UTC; floating and date-only values use ``default_zone``.
    """
    clock = get_zoned_clock()
    value = prop.dt
    tzid = prop.params.get("TZID") if hasattr(prop, "params") else None

    if not isinstance(value, datetime):
        naive = datetime.combine(value, datetime.min.time())
        return clock.localize(naive, default_zone), default_zone

    if tzid:
        try:
            zone = clock.parse_timezone(str(tzid))
        except InvalidTimeZoneError:
            if value.tzinfo is None:
                raise
            logger.debug(f"Unknown TZID {tzid}, using the parsed offset")
            return Instant.from_datetime(value), value.tzinfo
        return clock.localize(value.replace(tzinfo=None), zone), zone

    if value.tzinfo is not None:
        if value.utcoffset() == timedelta(0):
            return Instant.from_datetime(value, UTC), UTC
        return Instant.from_datetime(value), value.tzinfo

    return clock.localize(value, default_zone), default_zone


def _parse_attendees(prop: Any) -> list[str]:
    if prop is None:
        return []
    props = prop if isinstance(prop, list) else [prop]

    attendees = []
    for attendee in props:
        address = str(attendee)
        if address.lower().startswith("mailto:"):
            address = address[len("mailto:") :]
        if address:
            attendees.append(address)
    return attendees


def _parse_exdates(prop: Any, zone: tzinfo) -> list[date]:
    if prop is None:
        return []
    props = prop if isinstance(prop, list) else [prop]

    dates = []
    for exdate in props:
        for item in exdate.dts:
            value = item.dt
            if isinstance(value, datetime):
                if value.tzinfo is not None:
                    value = value.astimezone(zone)
                dates.append(value.date())
            else:
                dates.append(value)
    return dates


def _parse_status(component: Any) -> EventStatus:
    extension = component.get(STATUS_EXTENSION)
    if extension and str(extension).upper() == "BLOCKED":
        return EventStatus.BLOCKED

    status = component.get("STATUS")
    if status is None:
        return EventStatus.CONFIRMED

    try:
        return EventStatus(str(status).lower())
    except ValueError:
        logger.debug(f"Unknown STATUS {status}, treating as confirmed")
        return EventStatus.CONFIRMED
