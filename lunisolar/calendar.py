"""Calendar engine: solar <-> lunar conversion over cached lunar years."""

from __future__ import annotations

from datetime import datetime
from threading import Lock
from typing import Iterable, List, Optional, Union

from .cache import LunarYearCache
from .config import Settings
from .ephemeris import EphemerisProvider, ErfaEphemeris
from .errors import DateOutOfRange, InvalidLunarDate
from .julian import SolarDate
from .kernels import resolve_kernel_path
from .lunar_date import LunarDate
from .lunar_year import LunarMonth, LunarYear, LunarYearBuilder, check_year
from .spice import SpiceEphemeris
from .terms import SolarTermTable
from .timescale import TimeScale

__all__ = [
    "MAX_SOLAR_YEAR",
    "MIN_SOLAR_YEAR",
    "LunarCalendar",
    "default_calendar",
    "lunar_to_solar",
    "set_default_calendar",
    "solar_term_table",
    "solar_to_lunar",
]

MIN_SOLAR_YEAR = 1
MAX_SOLAR_YEAR = 9999

SolarLike = Union[SolarDate, datetime, int]


def _check_solar_year(year: int) -> None:
    if not MIN_SOLAR_YEAR <= year <= MAX_SOLAR_YEAR:
        raise DateOutOfRange(
            f"solar year must be within {MIN_SOLAR_YEAR}..{MAX_SOLAR_YEAR}: {year}"
        )


def _coerce_solar(value: SolarLike, month, day, hour, minute, second) -> SolarDate:
    if isinstance(value, SolarDate):
        return value
    if isinstance(value, datetime):
        return SolarDate.from_datetime(value)
    if month is None or day is None:
        raise TypeError("month and day are required with a numeric year")
    return SolarDate(value, month, day, hour, minute, second)


class LunarCalendar:
    """Solar/lunar conversions backed by one provider and one year cache."""

    def __init__(
        self,
        provider: Optional[EphemerisProvider] = None,
        timescale: Optional[TimeScale] = None,
        cache: Optional[LunarYearCache] = None,
    ) -> None:
        self.provider = provider if provider is not None else ErfaEphemeris()
        self.timescale = timescale if timescale is not None else TimeScale()
        self.cache = cache if cache is not None else LunarYearCache()
        self.builder = LunarYearBuilder(self.provider, self.timescale)

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "LunarCalendar":
        settings = settings or Settings.from_env()
        if settings.ephemeris == "spice":
            provider: EphemerisProvider = SpiceEphemeris(resolve_kernel_path(settings))
        else:
            provider = ErfaEphemeris()
        return cls(provider, TimeScale(settings.utc_offset_hours))

    @property
    def provider_name(self) -> str:
        return getattr(self.provider, "name", type(self.provider).__name__)

    def lunar_year(self, year: int) -> LunarYear:
        return self.cache.get_or_build(check_year(year), self.builder.build)

    def prefetch(self, years: Iterable[int], n_jobs: int = -1) -> List[LunarYear]:
        years = [check_year(year) for year in years]
        return self.cache.prefetch(years, self.builder.build, n_jobs=n_jobs)

    def solar_term_table(self, year: int) -> SolarTermTable:
        return self.lunar_year(year).terms

    def solar_to_lunar(
        self,
        value: SolarLike,
        month: Optional[int] = None,
        day: Optional[int] = None,
        hour: int = 0,
        minute: int = 0,
        second: int = 0,
    ) -> LunarDate:
        """Resolve a solar timestamp (fields, :class:`SolarDate` or naive
        :class:`~datetime.datetime`) to its lunar date."""

        solar = _coerce_solar(value, month, day, hour, minute, second)
        _check_solar_year(solar.year)
        lunar_month = self._month_of_day(solar.day_number, solar.year)
        if lunar_month is None:
            raise DateOutOfRange(f"{solar} lies outside the months built for {solar.year}")
        owner = self.lunar_year(lunar_month.year)
        return LunarDate(
            year=lunar_month.year,
            month=lunar_month.month,
            day=solar.day_number - lunar_month.first_day_number + 1,
            solar=solar,
            lunar_month=lunar_month,
            terms=self.lunar_year(solar.year).terms,
            low_confidence=owner.low_confidence,
        )

    def _month_of_day(self, day_number: int, solar_year: int) -> Optional[LunarMonth]:
        """The month holding ``day_number`` as numbered by the year owning it."""

        for year in (solar_year, solar_year - 1):
            month = self.lunar_year(year).month_of_day(day_number)
            if month is not None:
                return self.lunar_year(month.year).month(month.ordinal, month.is_leap)
        return None

    def lunar_date(
        self,
        year: int,
        month: int,
        day: int,
        hour: int = 0,
        minute: int = 0,
        second: int = 0,
        is_leap: bool = False,
    ) -> LunarDate:
        """Build a lunar date from lunar fields; a negative ``month`` is a
        leap month."""

        if month < 0:
            month, is_leap = -month, True
        lunar_year = self.lunar_year(year)
        lunar_month = lunar_year.month(month, is_leap)
        if not 1 <= day <= lunar_month.day_count:
            raise InvalidLunarDate(
                f"lunar {year} month {lunar_month.month} has {lunar_month.day_count} days: {day}"
            )
        noon = SolarDate.from_julian_day(lunar_month.first_day_number + day - 1)
        _check_solar_year(noon.year)
        solar = noon.at(hour, minute, second)
        terms = lunar_year.terms if noon.year == year else self.solar_term_table(noon.year)
        return LunarDate(
            year=year,
            month=lunar_month.month,
            day=day,
            solar=solar,
            lunar_month=lunar_month,
            terms=terms,
            low_confidence=lunar_year.low_confidence,
        )

    def lunar_to_solar(
        self,
        year: int,
        month: int,
        is_leap: bool = False,
        day: int = 1,
        hour: int = 0,
        minute: int = 0,
        second: int = 0,
    ) -> SolarDate:
        return self.lunar_date(year, month, day, hour, minute, second, is_leap=is_leap).solar

    def add_days(self, date: LunarDate, days: int) -> LunarDate:
        return self.solar_to_lunar(date.solar.next(days))


_DEFAULT: Optional[LunarCalendar] = None
_DEFAULT_LOCK = Lock()


def default_calendar() -> LunarCalendar:
    """Process-wide calendar built from the environment on first use."""

    global _DEFAULT

    if _DEFAULT is not None:
        return _DEFAULT
    with _DEFAULT_LOCK:
        if _DEFAULT is None:
            _DEFAULT = LunarCalendar.from_settings()
        return _DEFAULT


def set_default_calendar(calendar: Optional[LunarCalendar]) -> None:
    global _DEFAULT

    with _DEFAULT_LOCK:
        _DEFAULT = calendar


def solar_to_lunar(value: SolarLike, month=None, day=None, hour=0, minute=0, second=0) -> LunarDate:
    return default_calendar().solar_to_lunar(value, month, day, hour, minute, second)


def lunar_to_solar(year, month, is_leap=False, day=1, hour=0, minute=0, second=0) -> SolarDate:
    return default_calendar().lunar_to_solar(year, month, is_leap, day, hour, minute, second)


def solar_term_table(year: int) -> SolarTermTable:
    return default_calendar().solar_term_table(year)
