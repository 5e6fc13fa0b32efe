"""Absolute instants tagged with the zone used to render them."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Optional, Union
from zoneinfo import ZoneInfo

UTC = timezone.utc


def zone_name(zone: tzinfo) -> str:
    """Return the IANA key of a zone, falling back to its tzname."""
    key = getattr(zone, "key", None)
    if key:
        return str(key)
    return str(zone.tzname(None) or zone)


@dataclass(frozen=True, order=True)
class Instant:
    """A point on the absolute timeline plus the zone it is displayed in.

    Equality, hashing and ordering only look at ``utc``. Aware ``datetime``
    objects sharing one ``tzinfo`` compare by wall time and ignore ``fold``,
    so the absolute value is kept separately in UTC.
    """

    utc: datetime
    zone: tzinfo = field(default=UTC, compare=False)

    def __post_init__(self) -> None:
        if self.utc.tzinfo is None:
            raise ValueError("Instant requires a timezone-aware datetime")
        if self.utc.tzinfo is not UTC:
            object.__setattr__(self, "utc", self.utc.astimezone(UTC))

    @classmethod
    def from_datetime(cls, dt: datetime, zone: Optional[tzinfo] = None) -> Instant:
        """Build an Instant from an aware datetime.

        The rendering zone defaults to the datetime's own tzinfo.
        """
        if dt.tzinfo is None:
            raise ValueError(f"Cannot build an Instant from naive datetime {dt!r}")
        return cls(dt.astimezone(UTC), zone or dt.tzinfo)

    @classmethod
    def from_timestamp(cls, seconds: float, zone: tzinfo = UTC) -> Instant:
        return cls(datetime.fromtimestamp(seconds, tz=UTC), zone)

    @property
    def local(self) -> datetime:
        """Civil rendering of this instant in its zone."""
        return self.utc.astimezone(self.zone)

    @property
    def zone_name(self) -> str:
        return zone_name(self.zone)

    def civil_date(self) -> date:
        return self.local.date()

    def weekday(self) -> int:
        """Day of week in the rendering zone, Monday == 0."""
        return self.local.weekday()

    def with_zone(self, zone: Union[tzinfo, ZoneInfo]) -> Instant:
        return Instant(self.utc, zone)

    def timestamp(self) -> float:
        return self.utc.timestamp()

    def isoformat(self) -> str:
        return self.local.isoformat()

    def strftime(self, fmt: str) -> str:
        return self.local.strftime(fmt)

    def __add__(self, other: timedelta) -> Instant:
        if not isinstance(other, timedelta):
            return NotImplemented
        return Instant(self.utc + other, self.zone)

    def __sub__(self, other):  # type: ignore[no-untyped-def]
        if isinstance(other, Instant):
            return self.utc - other.utc
        if isinstance(other, timedelta):
            return Instant(self.utc - other, self.zone)
        return NotImplemented

    def __str__(self) -> str:
        return f"{self.local.strftime('%Y-%m-%d %H:%M:%S')} {self.zone_name}"
