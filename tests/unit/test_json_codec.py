"""Unit tests for JSON import and export."""

import json
from datetime import date, datetime, timedelta, timezone

import pytest

from calendarkit.calendar import Calendar
from calendarkit.codec import export_to_json, from_json, import_from_json, to_json
from calendarkit.exceptions import CodecError
from calendarkit.models import Event, EventStatus
from calendarkit.recurrence import RecurrenceFilter, RecurrenceRule, Weekday
from calendarkit.timezone import Disambiguation, Instant, resolve

pytestmark = [pytest.mark.unit, pytest.mark.fast]


@pytest.fixture
def full_calendar(settings):
    calendar = Calendar("Work", description="Work things", timezone="Europe/Berlin", settings=settings)
    start = resolve("2025-11-03 09:00:00", "Europe/Berlin")
    calendar.add_event(
        Event.from_duration(
            "Standup",
            start,
            timedelta(minutes=15),
            description="Daily sync",
            attendees=["alice@example.com", "bob@example.com"],
            location="Room 1",
            uid="standup@example.com",
            status=EventStatus.TENTATIVE,
            recurrence=RecurrenceRule.weekly()
            .with_interval(2)
            .with_until(resolve("2025-12-31 23:00:00", "Europe/Berlin"))
            .with_weekdays(["MO", "TH"]),
            recurrence_filter=RecurrenceFilter(skip_weekends=True, skip_dates=(date(2025, 11, 17),)),
            exception_dates=[date(2025, 12, 1)],
        )
    )
    return calendar


class TestToJson:
    """Serialized document shape."""

    def test_document_fields(self, full_calendar):
        document = json.loads(to_json(full_calendar))

        assert document["name"] == "Work"
        assert document["description"] == "Work things"
        assert document["timezone"] == "Europe/Berlin"
        event = document["events"][0]
        assert event["title"] == "Standup"
        assert event["start_time"] == "2025-11-03T09:00:00+01:00"
        assert event["timezone"] == "Europe/Berlin"
        assert event["status"] == "tentative"
        assert event["recurrence"]["frequency"] == "WEEKLY"
        assert event["recurrence"]["weekdays"] == ["MO", "TH"]
        assert event["recurrence_filter"]["skip_dates"] == ["2025-11-17"]
        assert event["exception_dates"] == ["2025-12-01"]

    def test_empty_calendar(self, settings):
        document = json.loads(to_json(Calendar("Empty", settings=settings)))

        assert document["events"] == []
        assert document["timezone"] is None


class TestFromJson:
    """Strict loading."""

    def test_round_trip_keeps_every_field(self, full_calendar, settings):
        restored = from_json(to_json(full_calendar), settings)

        original = full_calendar.get_event(0)
        event = restored.get_event(0)
        assert restored.name == "Work"
        assert restored.timezone.key == "Europe/Berlin"
        assert event.title == original.title
        assert event.start_time == original.start_time
        assert event.end_time == original.end_time
        assert event.timezone.key == "Europe/Berlin"
        assert event.attendees == original.attendees
        assert event.location == "Room 1"
        assert event.uid == "standup@example.com"
        assert event.status == EventStatus.TENTATIVE
        assert event.recurrence.interval == 2
        assert event.recurrence.until == original.recurrence.until
        assert event.recurrence.weekdays == (Weekday.MO, Weekday.TH)
        assert event.recurrence_filter.skip_weekends
        assert event.exception_dates == [date(2025, 12, 1)]

    def test_round_trip_keeps_ambiguous_wall_time(self, settings):
        calendar = Calendar("Night", settings=settings)
        late = resolve("2025-11-02 01:30:00", "America/New_York", Disambiguation.LATEST)
        calendar.add_event(Event.from_duration("Second pass", late, timedelta(minutes=30)))

        restored = from_json(to_json(calendar), settings)

        assert restored.get_event(0).start_time == late

    @pytest.mark.parametrize(
        "offset,text",
        [(timedelta(hours=5), "+05:00"), (timedelta(hours=-3, minutes=-30), "-03:30")],
    )
    def test_round_trip_keeps_fixed_offset_zone(self, settings, offset, text):
        zone = timezone(offset)
        calendar = Calendar("Offsets", timezone=zone, settings=settings)
        start = Instant.from_datetime(datetime(2025, 11, 3, 9, 0, tzinfo=zone))
        calendar.add_event(
            Event.from_duration(
                "Offset standup", start, timedelta(minutes=30), recurrence=RecurrenceRule.daily().with_count(3)
            )
        )

        text_document = to_json(calendar)
        document = json.loads(text_document)
        restored = from_json(text_document, settings)

        assert document["timezone"] == text
        assert document["events"][0]["timezone"] == text
        event = restored.get_event(0)
        assert restored.timezone.utcoffset(None) == offset
        assert event.timezone.utcoffset(None) == offset
        assert event.start_time == start
        assert event.start_time.strftime("%H:%M") == "09:00"
        assert len(event.occurrences_between(start, start + timedelta(days=5))) == 3

    def test_civil_times_without_offset_use_event_zone(self, settings):
        text = json.dumps(
            {
                "name": "Civil",
                "events": [
                    {
                        "title": "Lunch",
                        "start_time": "2025-07-01T12:00:00",
                        "end_time": "2025-07-01T13:00:00",
                        "timezone": "America/New_York",
                    }
                ],
            }
        )

        event = from_json(text, settings).get_event(0)

        assert event.start_time.utc.hour == 16

    @pytest.mark.parametrize(
        "text",
        [
            "not json",
            '{"events": []}',
            '{"name": "X", "events": [{"title": "No times"}]}',
            '{"name": "X", "events": [{"title": "T", "start_time": "2025-01-01T10:00:00Z",'
            ' "end_time": "2025-01-01T11:00:00Z", "timezone": "UTC", "status": "maybe"}]}',
        ],
    )
    def test_malformed_documents_raise(self, text, settings):
        with pytest.raises(CodecError):
            from_json(text, settings)

    def test_invalid_event_names_its_index(self, settings):
        text = json.dumps(
            {
                "name": "Broken",
                "events": [
                    {
                        "title": "Fine",
                        "start_time": "2025-01-01T10:00:00Z",
                        "end_time": "2025-01-01T11:00:00Z",
                        "timezone": "UTC",
                    },
                    {
                        "title": "Backwards",
                        "start_time": "2025-01-01T11:00:00Z",
                        "end_time": "2025-01-01T10:00:00Z",
                        "timezone": "UTC",
                    },
                ],
            }
        )

        with pytest.raises(CodecError, match="index 1"):
            from_json(text, settings)

    def test_unknown_event_zone_raises(self, settings):
        text = json.dumps(
            {
                "name": "Lost",
                "events": [
                    {
                        "title": "Nowhere",
                        "start_time": "2025-01-01T10:00:00Z",
                        "end_time": "2025-01-01T11:00:00Z",
                        "timezone": "Atlantis/Capital",
                    }
                ],
            }
        )

        with pytest.raises(CodecError):
            from_json(text, settings)


class TestJsonFiles:
    """File helpers."""

    def test_export_and_import(self, full_calendar, settings, tmp_path):
        path = tmp_path / "work.json"

        export_to_json(full_calendar, path)
        restored = import_from_json(path, settings)

        assert restored.event_count() == 1

    def test_import_missing_file_raises(self, tmp_path):
        with pytest.raises(CodecError):
            import_from_json(tmp_path / "absent.json")
