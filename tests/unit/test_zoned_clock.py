"""Unit tests for the zoned clock and the Instant value type."""

from datetime import date, datetime, timedelta, timezone

import pytest

from calendarkit.exceptions import InvalidLocalTimeError, InvalidTimeZoneError, TimeParseError
from calendarkit.timezone import (
    UTC,
    Disambiguation,
    Instant,
    ZonedClock,
    convert_timezone,
    end_of_day,
    is_dst,
    parse_timezone,
    resolve,
    start_of_day,
)

pytestmark = [pytest.mark.unit, pytest.mark.fast]

NEW_YORK = "America/New_York"


class TestParsing:
    """Civil string and zone parsing."""

    @pytest.mark.parametrize("civil", ["2025-11-01 10:00:00", "2025-11-01T10:00:00"])
    def test_resolve_accepts_both_civil_patterns(self, civil):
        instant = resolve(civil, "UTC")

        assert instant.utc == datetime(2025, 11, 1, 10, 0, tzinfo=UTC)

    @pytest.mark.parametrize(
        "civil",
        ["2025-11-01", "2025/11/01 10:00:00", "10:00 2025-11-01", "2025-11-01 10:00", ""],
    )
    def test_resolve_rejects_other_patterns(self, civil):
        with pytest.raises(TimeParseError):
            resolve(civil, "UTC")

    def test_parse_timezone_returns_zone(self):
        zone = parse_timezone(NEW_YORK)

        assert zone.key == NEW_YORK

    @pytest.mark.parametrize("name", ["Mars/Olympus_Mons", "", "   "])
    def test_parse_timezone_rejects_unknown_names(self, name):
        with pytest.raises(InvalidTimeZoneError):
            parse_timezone(name)

    def test_parse_timezone_passes_tzinfo_through(self):
        assert parse_timezone(UTC) is UTC

    def test_resolve_renders_in_requested_zone(self):
        instant = resolve("2025-10-27 10:00:00", NEW_YORK)

        assert instant.zone_name == NEW_YORK
        assert instant.utc == datetime(2025, 10, 27, 14, 0, tzinfo=UTC)
        assert str(instant) == "2025-10-27 10:00:00 America/New_York"


class TestDisambiguation:
    """DST fall-back and spring-forward handling."""

    def test_fall_back_earliest_and_latest_are_an_hour_apart(self):
        earliest = resolve("2025-11-02 01:30:00", NEW_YORK, Disambiguation.EARLIEST)
        latest = resolve("2025-11-02 01:30:00", NEW_YORK, Disambiguation.LATEST)

        assert earliest.utc == datetime(2025, 11, 2, 5, 30, tzinfo=UTC)
        assert latest.utc == datetime(2025, 11, 2, 6, 30, tzinfo=UTC)
        assert latest - earliest == timedelta(hours=1)
        assert earliest < latest

    def test_fall_back_instants_render_same_wall_time(self):
        earliest = resolve("2025-11-02 01:30:00", NEW_YORK, Disambiguation.EARLIEST)
        latest = resolve("2025-11-02 01:30:00", NEW_YORK, Disambiguation.LATEST)

        assert earliest.strftime("%H:%M") == latest.strftime("%H:%M") == "01:30"

    @pytest.mark.parametrize("strategy", [Disambiguation.EARLIEST, Disambiguation.LATEST])
    def test_spring_forward_gap_is_rejected(self, strategy):
        with pytest.raises(InvalidLocalTimeError):
            resolve("2025-03-09 02:30:00", NEW_YORK, strategy)

    def test_spring_forward_gap_compatible_shifts_forward(self):
        instant = resolve("2025-03-09 02:30:00", NEW_YORK, Disambiguation.COMPATIBLE)

        assert instant.strftime("%H:%M") == "03:30"
        assert instant.utc == datetime(2025, 3, 9, 7, 30, tzinfo=UTC)

    def test_unambiguous_time_ignores_strategy(self):
        results = {
            resolve("2025-07-01 12:00:00", NEW_YORK, strategy).utc for strategy in Disambiguation
        }

        assert len(results) == 1


class TestDayBoundaries:
    """start_of_day / end_of_day across DST transitions."""

    def test_start_and_end_of_regular_day(self):
        start = start_of_day(date(2025, 7, 1), NEW_YORK)
        end = end_of_day(date(2025, 7, 1), NEW_YORK)

        assert start.strftime("%Y-%m-%d %H:%M:%S") == "2025-07-01 00:00:00"
        assert end.strftime("%Y-%m-%d %H:%M:%S") == "2025-07-01 23:59:59"

    def test_fall_back_day_is_25_hours_long(self):
        start = start_of_day(date(2025, 11, 2), NEW_YORK)
        end = end_of_day(date(2025, 11, 2), NEW_YORK)

        assert end - start == timedelta(hours=24, minutes=59, seconds=59)

    def test_spring_forward_day_is_23_hours_long(self):
        start = start_of_day(date(2025, 3, 9), NEW_YORK)
        end = end_of_day(date(2025, 3, 9), NEW_YORK)

        assert end - start == timedelta(hours=22, minutes=59, seconds=59)


class TestConversion:
    """Zone conversion and DST detection."""

    def test_convert_timezone_keeps_absolute_instant(self):
        instant = resolve("2025-10-27 10:00:00", NEW_YORK)
        converted = convert_timezone(instant, "Europe/London")

        assert converted == instant
        assert converted.strftime("%H:%M") == "14:00"
        assert converted.zone_name == "Europe/London"

    def test_is_dst(self):
        assert is_dst(resolve("2025-07-01 12:00:00", NEW_YORK))
        assert not is_dst(resolve("2025-01-15 12:00:00", NEW_YORK))
        assert not is_dst(resolve("2025-07-01 12:00:00", "UTC"))

    def test_clock_default_timezone(self):
        clock = ZonedClock("Europe/Berlin")

        assert clock.get_default_timezone().key == "Europe/Berlin"


class TestInstant:
    """Instant equality, ordering and arithmetic."""

    def test_equality_ignores_rendering_zone(self):
        instant = resolve("2025-10-27 10:00:00", NEW_YORK)

        assert instant == instant.with_zone(UTC)
        assert hash(instant) == hash(instant.with_zone(UTC))

    def test_naive_datetime_is_rejected(self):
        with pytest.raises(ValueError):
            Instant(datetime(2025, 1, 1, 12, 0))

    def test_fixed_offset_is_normalized_to_utc(self):
        offset = timezone(timedelta(hours=2))
        instant = Instant.from_datetime(datetime(2025, 1, 1, 12, 0, tzinfo=offset))

        assert instant.utc == datetime(2025, 1, 1, 10, 0, tzinfo=UTC)
        assert instant.local.hour == 12

    def test_arithmetic(self):
        start = resolve("2025-01-01 12:00:00", "UTC")

        later = start + timedelta(minutes=90)

        assert later - start == timedelta(minutes=90)
        assert later - timedelta(minutes=90) == start
        assert later.zone is start.zone
