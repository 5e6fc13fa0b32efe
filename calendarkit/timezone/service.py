"""Zoned clock: resolves civil date-time strings against named time zones.

Civil (wall-clock) times are ambiguous during a DST fall-back and do not
exist during a spring-forward. Every conversion from civil time to an
Instant goes through this module so the disambiguation policy is applied
in one place.
"""

import logging
from datetime import date, datetime, time, timedelta, timezone as dt_timezone, tzinfo
from enum import Enum
from typing import Optional, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from ..exceptions import InvalidLocalTimeError, InvalidTimeZoneError, TimeParseError
from .instant import Instant, zone_name

logger = logging.getLogger(__name__)

DEFAULT_TZ_NAME = "UTC"

# Accepted civil date-time patterns
CIVIL_FORMATS = (
    "%Y-%m-%d %H:%M:%S",  # 2025-11-01 10:00:00
    "%Y-%m-%dT%H:%M:%S",  # 2025-11-01T10:00:00
)

ZoneLike = Union[str, tzinfo]


class Disambiguation(str, Enum):
    """How to pick an instant for a civil time that is not unique."""

    EARLIEST = "earliest"
    LATEST = "latest"
    COMPATIBLE = "compatible"


class ZonedClock:
    """Civil-time resolution for named IANA zones.

    ``EARLIEST`` and ``LATEST`` pick the first or second instant of a
    fall-back overlap and reject spring-forward gaps. ``COMPATIBLE`` behaves
    like ``EARLIEST`` for overlaps and shifts a non-existent wall time forward
    by the length of the gap.
    """

    def __init__(self, default_tz_name: str = DEFAULT_TZ_NAME) -> None:
        self.default_tz_name = default_tz_name
        self._default_zone: Optional[ZoneInfo] = None

    def get_default_timezone(self) -> ZoneInfo:
        if self._default_zone is None:
            self._default_zone = self.parse_timezone(self.default_tz_name)
            logger.debug(f"Created default timezone: {self._default_zone}")
        return self._default_zone

    def parse_timezone(self, tz_name: ZoneLike) -> tzinfo:
        """Resolve a zone name (or pass through a tzinfo).

        Raises:
            InvalidTimeZoneError: If the name is not a known IANA zone.
        """
        if isinstance(tz_name, tzinfo):
            return tz_name
        if not isinstance(tz_name, str) or not tz_name.strip():
            raise InvalidTimeZoneError(f"Invalid timezone: {tz_name!r}")

        try:
            return ZoneInfo(tz_name.strip())
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise InvalidTimeZoneError(f"Invalid timezone: {tz_name}") from e

    def parse_civil(self, civil: str) -> datetime:
        """Parse a civil date-time string into a naive datetime.

        Raises:
            TimeParseError: If the string matches none of ``CIVIL_FORMATS``.
        """
        if not isinstance(civil, str):
            raise TimeParseError(f"Expected civil date-time string, got {type(civil).__name__}")

        text = civil.strip()
        for fmt in CIVIL_FORMATS:
            try:
                return datetime.strptime(text, fmt)
            except ValueError:  # noqa: PERF203
                continue

        raise TimeParseError(
            f"Could not parse '{civil}'. Expected format: "
            "'YYYY-MM-DD HH:MM:SS' or 'YYYY-MM-DDTHH:MM:SS'"
        )

    def localize(
        self,
        naive: datetime,
        zone: ZoneLike,
        disambiguation: Disambiguation = Disambiguation.EARLIEST,
    ) -> Instant:
        """Map a naive civil datetime in ``zone`` onto the absolute timeline.

        Raises:
            InvalidLocalTimeError: If the civil time falls in a DST gap and
                ``disambiguation`` is not ``COMPATIBLE``.
        """
        tz = self.parse_timezone(zone)
        naive = naive.replace(tzinfo=None)

        first = naive.replace(tzinfo=tz, fold=0)
        second = naive.replace(tzinfo=tz, fold=1)

        if first.utcoffset() == second.utcoffset():
            return Instant.from_datetime(first, tz)

        if self._round_trips(first, naive):
            # Fall-back overlap: the wall time happens twice
            candidates = sorted(
                (first.astimezone(dt_timezone.utc), second.astimezone(dt_timezone.utc))
            )
            chosen = candidates[1] if disambiguation == Disambiguation.LATEST else candidates[0]
            logger.debug(
                "Ambiguous local time %s in %s resolved %s -> %s",
                naive,
                zone_name(tz),
                disambiguation.value,
                chosen.isoformat(),
            )
            return Instant(chosen, tz)

        if disambiguation == Disambiguation.COMPATIBLE:
            # fold=0 applies the pre-transition offset, which lands past the gap
            shifted = Instant.from_datetime(first, tz)
            logger.debug(
                "Non-existent local time %s in %s shifted to %s",
                naive,
                zone_name(tz),
                shifted,
            )
            return shifted

        raise InvalidLocalTimeError(
            f"Local time {naive.isoformat(sep=' ')} does not exist in timezone {zone_name(tz)}"
        )

    def resolve(
        self,
        civil: str,
        zone: ZoneLike,
        disambiguation: Disambiguation = Disambiguation.EARLIEST,
    ) -> Instant:
        """Parse ``civil`` and resolve it against ``zone``."""
        tz = self.parse_timezone(zone)
        return self.localize(self.parse_civil(civil), tz, disambiguation)

    def convert_timezone(self, instant: Instant, zone: ZoneLike) -> Instant:
        """Render the same absolute instant in another zone."""
        return instant.with_zone(self.parse_timezone(zone))

    def is_dst(self, instant: Instant) -> bool:
        dst = instant.local.dst()
        return bool(dst) and dst != timedelta(0)

    def start_of_day(self, day: date, zone: ZoneLike) -> Instant:
        """First instant of a civil day (earliest disambiguation)."""
        return self.localize(datetime.combine(day, time(0, 0, 0)), zone, Disambiguation.EARLIEST)

    def end_of_day(self, day: date, zone: ZoneLike) -> Instant:
        """Last whole second of a civil day (latest disambiguation)."""
        return self.localize(datetime.combine(day, time(23, 59, 59)), zone, Disambiguation.LATEST)

    @staticmethod
    def _round_trips(candidate: datetime, naive: datetime) -> bool:
        back = candidate.astimezone(dt_timezone.utc).astimezone(candidate.tzinfo)
        return back.replace(tzinfo=None, fold=0) == naive.replace(fold=0)


_zoned_clock: Optional[ZonedClock] = None


def get_zoned_clock() -> ZonedClock:
    """Get the shared ZonedClock instance."""
    if "_zoned_clock" not in globals() or globals()["_zoned_clock"] is None:
        globals()["_zoned_clock"] = ZonedClock()
    return globals()["_zoned_clock"]


# Convenience functions for direct use
def parse_timezone(tz_name: ZoneLike) -> tzinfo:
    """Resolve a zone name to a tzinfo."""
    return get_zoned_clock().parse_timezone(tz_name)


def parse_civil(civil: str) -> datetime:
    """Parse a civil date-time string."""
    return get_zoned_clock().parse_civil(civil)


def localize(
    naive: datetime,
    zone: ZoneLike,
    disambiguation: Disambiguation = Disambiguation.EARLIEST,
) -> Instant:
    """Resolve a naive civil datetime in a zone."""
    return get_zoned_clock().localize(naive, zone, disambiguation)


def resolve(
    civil: str,
    zone: ZoneLike,
    disambiguation: Disambiguation = Disambiguation.EARLIEST,
) -> Instant:
    """Resolve a civil date-time string in a zone."""
    return get_zoned_clock().resolve(civil, zone, disambiguation)


def parse_datetime_with_tz(civil: str, zone: ZoneLike) -> Instant:
    """Resolve a civil string with earliest disambiguation."""
    return get_zoned_clock().resolve(civil, zone, Disambiguation.EARLIEST)


def convert_timezone(instant: Instant, zone: ZoneLike) -> Instant:
    """Render an instant in another zone."""
    return get_zoned_clock().convert_timezone(instant, zone)


def is_dst(instant: Instant) -> bool:
    """Check whether daylight saving time is in effect at an instant."""
    return get_zoned_clock().is_dst(instant)


def start_of_day(day: date, zone: ZoneLike) -> Instant:
    """First instant of a civil day."""
    return get_zoned_clock().start_of_day(day, zone)


def end_of_day(day: date, zone: ZoneLike) -> Instant:
    """Last whole second of a civil day."""
    return get_zoned_clock().end_of_day(day, zone)
