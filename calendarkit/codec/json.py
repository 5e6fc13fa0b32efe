"""JSON import and export of calendars through pydantic document models."""

import logging
import re
from datetime import date, datetime, timedelta, timezone as dt_timezone, tzinfo
from pathlib import Path
from typing import Optional, Union

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from ..calendar import Calendar
from ..config import CalendarKitSettings
from ..exceptions import CalendarKitError, CodecError
from ..models import Event, EventStatus
from ..recurrence import Frequency, RecurrenceFilter, RecurrenceRule, Weekday
from ..timezone import Instant, get_zoned_clock, zone_name

logger = logging.getLogger(__name__)

# Zones without an IANA key are written as an ISO offset, e.g. "+05:30"
OFFSET_PATTERN = re.compile(r"^([+-])(\d{2}):(\d{2})$")


class RecurrenceDocument(BaseModel):
    """Serialized recurrence rule."""

    frequency: Frequency
    interval: int = 1
    count: Optional[int] = None
    until: Optional[datetime] = None
    weekdays: Optional[list[Weekday]] = None


class RecurrenceFilterDocument(BaseModel):
    skip_weekends: bool = False
    skip_dates: list[date] = Field(default_factory=list)


class EventDocument(BaseModel):
    """Serialized event; times are RFC 3339 in the event's own zone."""

    title: str
    description: Optional[str] = None
    start_time: datetime
    end_time: datetime
    timezone: str
    attendees: list[str] = Field(default_factory=list)
    location: Optional[str] = None
    uid: Optional[str] = None
    status: EventStatus = EventStatus.CONFIRMED
    recurrence: Optional[RecurrenceDocument] = None
    recurrence_filter: Optional[RecurrenceFilterDocument] = None
    exception_dates: list[date] = Field(default_factory=list)


class CalendarDocument(BaseModel):
    name: str
    description: Optional[str] = None
    timezone: Optional[str] = None
    events: list[EventDocument] = Field(default_factory=list)


def _zone_to_text(zone: tzinfo) -> str:
    """IANA key for named zones, ``+HH:MM`` for fixed offsets."""
    if getattr(zone, "key", None):
        return zone_name(zone)

    offset = zone.utcoffset(None)
    if offset is None:
        return zone_name(zone)
    if offset == timedelta(0):
        return "UTC"

    sign = "-" if offset < timedelta(0) else "+"
    minutes = abs(int(offset.total_seconds())) // 60
    return f"{sign}{minutes // 60:02d}:{minutes % 60:02d}"


def _zone_from_text(text: str) -> tzinfo:
    match = OFFSET_PATTERN.match(text.strip())
    if match is None:
        return get_zoned_clock().parse_timezone(text)

    sign, hours, minutes = match.groups()
    offset = timedelta(hours=int(hours), minutes=int(minutes))
    return dt_timezone(-offset if sign == "-" else offset)


def _event_document(event: Event) -> EventDocument:
    rule = event.recurrence
    recurrence = None
    if rule is not None:
        recurrence = RecurrenceDocument(
            frequency=rule.frequency,
            interval=rule.interval,
            count=rule.count,
            until=rule.until.utc if rule.until is not None else None,
            weekdays=list(rule.weekdays) if rule.weekdays else None,
        )

    recurrence_filter = None
    if event.recurrence_filter is not None:
        recurrence_filter = RecurrenceFilterDocument(
            skip_weekends=event.recurrence_filter.skip_weekends,
            skip_dates=list(event.recurrence_filter.skip_dates),
        )

    return EventDocument(
        title=event.title,  # type: ignore[arg-type]
        description=event.description,
        start_time=event.start_time.local,  # type: ignore[union-attr]
        end_time=event.end_time.local,  # type: ignore[union-attr]
        timezone=_zone_to_text(event.timezone),  # type: ignore[arg-type]
        attendees=list(event.attendees),
        location=event.location,
        uid=event.uid,
        status=event.status,
        recurrence=recurrence,
        recurrence_filter=recurrence_filter,
        exception_dates=list(event.exception_dates),
    )


def _event_from_document(document: EventDocument) -> Event:
    zone = _zone_from_text(document.timezone)

    recurrence = None
    if document.recurrence is not None:
        rec = document.recurrence
        recurrence = RecurrenceRule(
            rec.frequency,
            interval=rec.interval,
            count=rec.count,
            until=Instant.from_datetime(rec.until, zone) if rec.until is not None else None,
            weekdays=tuple(rec.weekdays) if rec.weekdays else None,
        )

    recurrence_filter = None
    if document.recurrence_filter is not None:
        recurrence_filter = RecurrenceFilter(
            skip_weekends=document.recurrence_filter.skip_weekends,
            skip_dates=tuple(document.recurrence_filter.skip_dates),
        )

    return Event(
        title=document.title,
        start_time=_document_instant(document.start_time, zone),
        end_time=_document_instant(document.end_time, zone),
        timezone=zone,
        description=document.description,
        attendees=document.attendees,
        recurrence=recurrence,
        recurrence_filter=recurrence_filter,
        exception_dates=document.exception_dates,
        location=document.location,
        uid=document.uid,
        status=document.status,
    )


def _document_instant(value: datetime, zone) -> Instant:  # type: ignore[no-untyped-def]
    # Times written without an offset are civil times in the event zone
    if value.tzinfo is None:
        return get_zoned_clock().localize(value, zone)
    return Instant.from_datetime(value, zone)


def to_json(calendar: Calendar, indent: Optional[int] = 2) -> str:
    """Serialize a calendar, including every event field, to JSON."""
    timezone = calendar.timezone
    document = CalendarDocument(
        name=calendar.name,
        description=calendar.description,
        timezone=_zone_to_text(timezone) if timezone is not None else None,
        events=[_event_document(event) for event in calendar.events],
    )
    return document.model_dump_json(indent=indent)


def from_json(json_content: str, settings: Optional[CalendarKitSettings] = None) -> Calendar:
    """Build a calendar from JSON produced by ``to_json``.

    Raises:
        CodecError: If the document is malformed or any event is invalid
    """
    try:
        document = CalendarDocument.model_validate_json(json_content)
    except PydanticValidationError as e:
        raise CodecError("Invalid calendar JSON", str(e)) from e

    try:
        calendar = Calendar(
            document.name,
            description=document.description,
            timezone=_zone_from_text(document.timezone) if document.timezone is not None else None,
            settings=settings,
        )
    except CalendarKitError as e:
        raise CodecError(f"Invalid calendar: {e.message}") from e

    for index, event_document in enumerate(document.events):
        try:
            calendar.add_event(_event_from_document(event_document))
        except CalendarKitError as e:
            raise CodecError(f"Invalid event at index {index}: {e.message}") from e

    logger.debug("Loaded %d events from JSON into calendar %r", calendar.event_count(), calendar.name)
    return calendar


def export_to_json(calendar: Calendar, path: Union[str, Path]) -> None:
    try:
        Path(path).write_text(to_json(calendar), encoding="utf-8")
    except OSError as e:
        raise CodecError(f"Failed to write JSON file: {path}", str(e)) from e


def import_from_json(
    path: Union[str, Path], settings: Optional[CalendarKitSettings] = None
) -> Calendar:
    try:
        content = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise CodecError(f"Failed to read JSON file: {path}", str(e)) from e
    return from_json(content, settings)
