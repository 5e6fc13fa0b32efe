"""Recurrence rules, occurrence generation and recurrence filters."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from enum import Enum
from typing import Iterable, Optional, Sequence, Union

from dateutil.relativedelta import relativedelta

from .exceptions import RecurrenceError
from .timezone import UTC, Disambiguation, Instant, ZonedClock, get_zoned_clock

logger = logging.getLogger(__name__)

DateLike = Union[date, datetime, Instant]


class Frequency(str, Enum):
    """Supported recurrence frequencies."""

    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    YEARLY = "YEARLY"


class Weekday(str, Enum):
    """RFC 5545 weekday codes."""

    MO = "MO"
    TU = "TU"
    WE = "WE"
    TH = "TH"
    FR = "FR"
    SA = "SA"
    SU = "SU"


# relativedelta keyword for each frequency step
STEP_UNITS = {
    Frequency.DAILY: "days",
    Frequency.WEEKLY: "weeks",
    Frequency.MONTHLY: "months",
    Frequency.YEARLY: "years",
}

# UNTIL formats accepted in RRULE text
UNTIL_FORMATS = (
    "%Y%m%dT%H%M%S",  # 20250623T083000
    "%Y%m%d",  # 20250623
)


def to_civil_date(value: DateLike) -> date:
    """Civil date of an Instant, datetime or date, in its own zone."""
    if isinstance(value, Instant):
        return value.civil_date()
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    raise TypeError(f"Expected date, datetime or Instant, got {type(value).__name__}")


def _coerce_frequency(value: Union[str, Frequency]) -> Frequency:
    try:
        return Frequency(value.upper() if isinstance(value, str) else value)
    except ValueError as e:
        raise RecurrenceError(f"Unsupported frequency: {value}") from e


@dataclass(frozen=True)
class RecurrenceRule:
    """Structured recurrence rule.

    ``weekdays`` is carried for export only; generation steps from the
    anchor by ``interval`` units of ``frequency``.
    """

    frequency: Frequency
    interval: int = 1
    count: Optional[int] = None
    until: Optional[Instant] = None
    weekdays: Optional[tuple[Weekday, ...]] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "frequency", _coerce_frequency(self.frequency))

        if isinstance(self.interval, bool) or not isinstance(self.interval, int):
            raise RecurrenceError(f"Recurrence interval must be an integer, got {self.interval!r}")
        if self.interval < 1:
            raise RecurrenceError(f"Recurrence interval must be >= 1, got {self.interval}")
        if self.count is not None and (isinstance(self.count, bool) or self.count < 1):
            raise RecurrenceError(f"Recurrence count must be >= 1, got {self.count}")
        if self.count is not None and self.until is not None:
            raise RecurrenceError("Recurrence rule cannot have both COUNT and UNTIL")
        if self.until is not None and not isinstance(self.until, Instant):
            raise RecurrenceError(f"Recurrence until must be an Instant, got {self.until!r}")

        if self.weekdays is not None:
            try:
                days = tuple(
                    Weekday(day.upper() if isinstance(day, str) else day) for day in self.weekdays
                )
            except ValueError as e:
                raise RecurrenceError(f"Invalid weekday in {self.weekdays!r}") from e
            object.__setattr__(self, "weekdays", days)

    @classmethod
    def daily(cls) -> RecurrenceRule:
        return cls(Frequency.DAILY)

    @classmethod
    def weekly(cls) -> RecurrenceRule:
        return cls(Frequency.WEEKLY)

    @classmethod
    def monthly(cls) -> RecurrenceRule:
        return cls(Frequency.MONTHLY)

    @classmethod
    def yearly(cls) -> RecurrenceRule:
        return cls(Frequency.YEARLY)

    def with_interval(self, interval: int) -> RecurrenceRule:
        return replace(self, interval=interval)

    def with_count(self, count: int) -> RecurrenceRule:
        return replace(self, count=count, until=None)

    def with_until(self, until: Instant) -> RecurrenceRule:
        return replace(self, until=until, count=None)

    def with_weekdays(self, weekdays: Iterable[Union[Weekday, str]]) -> RecurrenceRule:
        return replace(self, weekdays=tuple(weekdays))  # type: ignore[arg-type]

    def rrule_value(self) -> str:
        """Value part of an RRULE property, e.g. ``FREQ=WEEKLY;INTERVAL=2;COUNT=10``."""
        parts = [f"FREQ={self.frequency.value}"]

        if self.interval > 1:
            parts.append(f"INTERVAL={self.interval}")
        if self.count is not None:
            parts.append(f"COUNT={self.count}")
        if self.until is not None:
            parts.append(f"UNTIL={self.until.utc.strftime('%Y%m%dT%H%M%SZ')}")
        if self.weekdays:
            parts.append("BYDAY=" + ",".join(day.value for day in self.weekdays))

        return ";".join(parts)

    def to_rrule_string(self, dtstart: Instant) -> str:
        """Render as ``DTSTART:...`` plus ``RRULE:...`` lines."""
        return f"DTSTART:{dtstart.strftime('%Y%m%dT%H%M%S')}\nRRULE:{self.rrule_value()}"

    @classmethod
    def from_rrule_string(cls, rrule_string: str, zone=UTC) -> RecurrenceRule:  # type: ignore[no-untyped-def]
        """Parse the FREQ/INTERVAL/COUNT/UNTIL/BYDAY subset of an RRULE value.

        Args:
            rrule_string: RRULE value, optionally prefixed with ``RRULE:``
            zone: Zone used for a floating (non-``Z``) UNTIL value

        Raises:
            RecurrenceError: If the rule is empty, lacks FREQ or is malformed
        """
        if not rrule_string or not rrule_string.strip():
            raise RecurrenceError("Empty RRULE string")

        text = rrule_string.strip()
        if text.upper().startswith("RRULE:"):
            text = text[len("RRULE:") :]

        params: dict[str, str] = {}
        for part in text.split(";"):
            if "=" not in part:
                continue
            key, value = part.split("=", 1)
            params[key.strip().upper()] = value.strip()

        if "FREQ" not in params:
            raise RecurrenceError(f"RRULE missing required FREQ parameter: {rrule_string}")

        ignored = sorted(set(params) - {"FREQ", "INTERVAL", "COUNT", "UNTIL", "BYDAY"})
        if ignored:
            logger.debug("Ignoring unsupported RRULE parts %s in %s", ignored, rrule_string)

        try:
            interval = int(params.get("INTERVAL", "1"))
            count = int(params["COUNT"]) if "COUNT" in params else None
        except ValueError as e:
            raise RecurrenceError(f"Invalid RRULE format: {rrule_string}") from e

        until = _parse_until(params["UNTIL"], zone) if "UNTIL" in params else None
        weekdays = None
        if params.get("BYDAY"):
            # Ordinal prefixes like "2MO" are outside the supported subset
            weekdays = tuple(day.strip()[-2:] for day in params["BYDAY"].split(",") if day.strip())

        return cls(
            _coerce_frequency(params["FREQ"]),
            interval=interval,
            count=count,
            until=until,
            weekdays=weekdays,  # type: ignore[arg-type]
        )


def _parse_until(value: str, zone) -> Instant:  # type: ignore[no-untyped-def]
    clock = get_zoned_clock()
    is_utc = value.endswith("Z")
    text = value.rstrip("Z")

    for fmt in UNTIL_FORMATS:
        try:
            naive = datetime.strptime(text, fmt)
        except ValueError:  # noqa: PERF203
            continue
        if is_utc:
            return Instant(naive.replace(tzinfo=UTC), clock.parse_timezone(zone))
        return clock.localize(naive, zone, Disambiguation.COMPATIBLE)

    raise RecurrenceError(f"Unable to parse UNTIL value: {value}")


@dataclass(frozen=True)
class RecurrenceFilter:
    """Post-generation filter that drops weekend and explicitly skipped days.

    Skip dates are compared by civil date only: each stored date is the civil
    date in whatever zone it was given in, and each occurrence is compared by
    its own civil date.
    """

    skip_weekends: bool = False
    skip_dates: tuple[date, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        object.__setattr__(self, "skip_dates", tuple(to_civil_date(d) for d in self.skip_dates))

    def with_skip_weekends(self, skip: bool = True) -> RecurrenceFilter:
        return replace(self, skip_weekends=skip)

    def with_skip_dates(self, dates: Iterable[DateLike]) -> RecurrenceFilter:
        return replace(self, skip_dates=self.skip_dates + tuple(to_civil_date(d) for d in dates))

    def should_skip(self, instant: Instant) -> bool:
        if self.skip_weekends and instant.weekday() >= 5:
            return True
        return instant.civil_date() in self.skip_dates

    def filter_occurrences(self, occurrences: Sequence[Instant]) -> list[Instant]:
        return [occurrence for occurrence in occurrences if not self.should_skip(occurrence)]


class RecurrenceEngine:
    """Generates ordered occurrence instants from a rule and an anchor.

    The k-th occurrence is the anchor's civil date-time advanced by
    ``k * interval`` units and resolved back in the anchor's zone, so the
    wall-clock time of day is kept across DST transitions. A monthly or
    yearly step that lands on a day the target month does not have ends
    generation instead of clamping.
    """

    def __init__(self, clock: Optional[ZonedClock] = None) -> None:
        self.clock = clock or get_zoned_clock()

    def generate_occurrences(
        self,
        rule: RecurrenceRule,
        anchor: Instant,
        cap: int,
    ) -> list[Instant]:
        """Generate up to ``min(rule.count, cap)`` occurrences starting at ``anchor``.

        Raises:
            RecurrenceError: If the frequency is unsupported or cap is invalid
        """
        if isinstance(cap, bool) or not isinstance(cap, int) or cap < 0:
            raise RecurrenceError(f"Occurrence cap must be a non-negative integer, got {cap!r}")

        unit = STEP_UNITS.get(rule.frequency)
        if unit is None:
            raise RecurrenceError(f"Unsupported frequency: {rule.frequency}")

        limit = min(rule.count, cap) if rule.count is not None else cap
        anchor_civil = anchor.local.replace(tzinfo=None)

        logger.debug(
            "Recurrence expansion: anchor=%s rule=%s limit=%d",
            anchor,
            rule.rrule_value(),
            limit,
        )

        occurrences: list[Instant] = []
        for k in range(limit):
            if k == 0:
                current = anchor
            else:
                civil = anchor_civil + relativedelta(**{unit: k * rule.interval})
                if unit in ("months", "years") and civil.day != anchor_civil.day:
                    # relativedelta clamps day-of-month; stop rather than move the day
                    logger.debug(
                        "Recurrence stopped: %s has no day %d (after %d occurrences)",
                        civil.strftime("%Y-%m"),
                        anchor_civil.day,
                        len(occurrences),
                    )
                    break
                current = self.clock.localize(civil, anchor.zone, Disambiguation.COMPATIBLE)

            if rule.until is not None and current > rule.until:
                break

            occurrences.append(current)

        if rule.count is None and len(occurrences) == cap and cap > 0:
            logger.debug("Recurrence expansion reached occurrence cap of %d", cap)

        return occurrences


_engine: Optional[RecurrenceEngine] = None


def get_recurrence_engine() -> RecurrenceEngine:
    """Get the shared RecurrenceEngine instance."""
    if "_engine" not in globals() or globals()["_engine"] is None:
        globals()["_engine"] = RecurrenceEngine()
    return globals()["_engine"]


def generate_occurrences(rule: RecurrenceRule, anchor: Instant, cap: int) -> list[Instant]:
    """Generate occurrences with the shared engine."""
    return get_recurrence_engine().generate_occurrences(rule, anchor, cap)

