"""Julian Day arithmetic across the 1582 Gregorian reform.

Dates before 1582-10-15 follow the Julian calendar, later dates the
Gregorian one.  The ten days 1582-10-05 .. 1582-10-14 never existed and are
rejected with :class:`~lunisolar.errors.GregorianGapDate`.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Tuple

from .errors import GregorianGapDate, InvalidCalendarDate

__all__ = [
    "J2000",
    "GREGORIAN_FIRST_DAY",
    "SolarDate",
    "days_in_month",
    "from_julian_day",
    "is_leap_year",
    "to_julian_day",
]

J2000 = 2451545.0
# Day number (JD at noon) of 1582-10-15, the first Gregorian day.
GREGORIAN_FIRST_DAY = 2299161
# y * 372 + m * 31 + d of 1582-10-15, monotonic in (y, m, d).
_GREGORIAN_KEY = 588829
_GAP_KEYS = range(588819, 588829)

MIN_YEAR = -4712
MAX_YEAR = 10000

_DAYS_OF_MONTH = (31, 28, 31, 30, 31, 30, 31, 31, 30, 31, 30, 31)

CivilFields = Tuple[int, int, int, int, int, int]


def is_leap_year(year: int) -> bool:
    """Leap-year rule of the calendar in force for *year*."""

    if year < 1583:
        return year % 4 == 0
    return (year % 4 == 0 and year % 100 != 0) or year % 400 == 0


def days_in_month(year: int, month: int) -> int:
    if not 1 <= month <= 12:
        raise InvalidCalendarDate(f"month must be within 1..12: {month}")
    if month == 2 and is_leap_year(year):
        return 29
    return _DAYS_OF_MONTH[month - 1]


def _validate(year: int, month: int, day: int, hour: int, minute: int, second: int) -> None:
    if not MIN_YEAR <= year <= MAX_YEAR:
        raise InvalidCalendarDate(f"year must be within {MIN_YEAR}..{MAX_YEAR}: {year}")
    limit = days_in_month(year, month)
    if not 1 <= day <= limit:
        raise InvalidCalendarDate(f"day must be within 1..{limit} for {year}-{month:02d}: {day}")
    if not 0 <= hour <= 23:
        raise InvalidCalendarDate(f"hour must be within 0..23: {hour}")
    if not 0 <= minute <= 59:
        raise InvalidCalendarDate(f"minute must be within 0..59: {minute}")
    if not 0 <= second <= 59:
        raise InvalidCalendarDate(f"second must be within 0..59: {second}")
    if year * 372 + month * 31 + day in _GAP_KEYS:
        raise GregorianGapDate(f"{year:04d}-{month:02d}-{day:02d} falls in the 1582 reform gap")


def to_julian_day(
    year: int,
    month: int,
    day: int,
    hour: int = 0,
    minute: int = 0,
    second: int = 0,
) -> float:
    """Return the Julian Day of a civil timestamp (noon is ``.0``)."""

    _validate(year, month, day, hour, minute, second)
    gregorian = year * 372 + month * 31 + day >= _GREGORIAN_KEY
    y, m = year, month
    if m <= 2:
        y -= 1
        m += 12
    correction = 0
    if gregorian:
        century = math.floor(y / 100)
        correction = 2 - century + math.floor(century / 4)
    fraction = (hour * 3600 + minute * 60 + second) / 86400.0
    return (
        math.floor(365.25 * (y + 4716))
        + math.floor(30.6001 * (m + 1))
        + day
        + correction
        - 1524.5
        + fraction
    )


def _civil_from_day_number(number: int) -> Tuple[int, int, int]:
    a = number
    if number >= GREGORIAN_FIRST_DAY:
        alpha = math.floor((number - 1867216.25) / 36524.25)
        a = number + 1 + alpha - math.floor(alpha / 4)
    b = a + 1524
    c = math.floor((b - 122.1) / 365.25)
    d = math.floor(365.25 * c)
    e = math.floor((b - d) / 30.6001)
    day = b - d - math.floor(30.6001 * e)
    month = e - 1 if e < 14 else e - 13
    year = c - 4716 if month > 2 else c - 4715
    return year, month, day


def from_julian_day(julian_day: float) -> CivilFields:
    """Inverse of :func:`to_julian_day`, rounded to the nearest second."""

    if not math.isfinite(julian_day):
        raise InvalidCalendarDate(f"Julian Day must be finite: {julian_day}")
    number = math.floor(julian_day + 0.5)
    seconds = int(round((julian_day + 0.5 - number) * 86400.0))
    if seconds >= 86400:
        number += 1
        seconds -= 86400
    year, month, day = _civil_from_day_number(number)
    hour, rest = divmod(seconds, 3600)
    minute, second = divmod(rest, 60)
    return year, month, day, hour, minute, second


@dataclass(frozen=True, order=True)
class SolarDate:
    """A validated civil timestamp in the Julian/Gregorian calendar."""

    year: int
    month: int
    day: int
    hour: int = 0
    minute: int = 0
    second: int = 0

    def __post_init__(self) -> None:
        _validate(self.year, self.month, self.day, self.hour, self.minute, self.second)

    @classmethod
    def from_julian_day(cls, julian_day: float) -> "SolarDate":
        return cls(*from_julian_day(julian_day))

    @classmethod
    def from_datetime(cls, moment: datetime) -> "SolarDate":
        """Take the wall-clock fields of *moment* as they are."""

        return cls(
            moment.year, moment.month, moment.day, moment.hour, moment.minute, moment.second
        )

    @property
    def julian_day(self) -> float:
        return to_julian_day(
            self.year, self.month, self.day, self.hour, self.minute, self.second
        )

    @property
    def day_number(self) -> int:
        """Julian Day of noon on this civil day."""

        return math.floor(self.julian_day + 0.5)

    @property
    def date_key(self) -> Tuple[int, int, int]:
        return self.year, self.month, self.day

    @property
    def weekday(self) -> int:
        """Day of week, 0 for Sunday through 6 for Saturday."""

        return (self.day_number + 1) % 7

    def at(self, hour: int = 0, minute: int = 0, second: int = 0) -> "SolarDate":
        return SolarDate(self.year, self.month, self.day, hour, minute, second)

    def next(self, days: int) -> "SolarDate":
        """Shift by whole days, keeping the time of day."""

        moved = SolarDate.from_julian_day(self.day_number + days)
        return moved.at(self.hour, self.minute, self.second)

    def isoformat(self) -> str:
        return (
            f"{self.year:04d}-{self.month:02d}-{self.day:02d}"
            f"T{self.hour:02d}:{self.minute:02d}:{self.second:02d}"
        )

    def __str__(self) -> str:
        return f"{self.year:04d}-{self.month:02d}-{self.day:02d}"
