"""The composed lunar date value."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from .julian import SolarDate
from .lunar_year import LunarMonth
from .sexagenary import (
    DaySect,
    FourPillars,
    MonthSect,
    Pillar,
    SectMode,
    YearSect,
    day_pillar,
    four_pillars,
    hour_pillar,
    month_pillar,
    year_pillar,
)
from .terms import SolarTermInstant, SolarTermTable, TermKind

__all__ = ["LunarDate"]


@dataclass(frozen=True)
class LunarDate:
    """Lunar year, signed month (negative for a leap month) and day, tied to
    the solar timestamp it was resolved from.

    ``terms`` is the solar-term table of the solar year of ``solar``; every
    pillar and term query reads it.
    """

    year: int
    month: int
    day: int
    solar: SolarDate
    lunar_month: LunarMonth = field(compare=False, repr=False)
    terms: SolarTermTable = field(compare=False, repr=False)
    low_confidence: bool = field(default=False, compare=False)

    @property
    def ordinal(self) -> int:
        return abs(self.month)

    @property
    def is_leap(self) -> bool:
        return self.month < 0

    @property
    def hour(self) -> int:
        return self.solar.hour

    @property
    def minute(self) -> int:
        return self.solar.minute

    @property
    def second(self) -> int:
        return self.solar.second

    @property
    def weekday(self) -> int:
        """0 for Sunday through 6 for Saturday."""

        return self.solar.weekday

    @property
    def day_number(self) -> int:
        return self.solar.day_number

    def year_pillar(self, sect: YearSect = YearSect.LUNAR_NEW_YEAR) -> Pillar:
        return year_pillar(self, sect)

    def month_pillar(self, sect: MonthSect = MonthSect.NODE_DAY) -> Pillar:
        return month_pillar(self, sect)

    def day_pillar(self, sect: DaySect = DaySect.LATE_ZI_SAME_DAY) -> Pillar:
        return day_pillar(self, sect)

    def hour_pillar(self) -> Pillar:
        return hour_pillar(self)

    def four_pillars(self, mode: SectMode = SectMode()) -> FourPillars:
        return four_pillars(self, mode)

    @property
    def lunar_month_pillar(self) -> Pillar:
        """Month pillar counted by lunar months instead of node terms."""

        return self.lunar_month.pillar

    def current_term(self, kind: TermKind = TermKind.ANY) -> Optional[SolarTermInstant]:
        return self.terms.current(self.solar, TermKind(kind))

    def next_term(
        self, kind: TermKind = TermKind.ANY, whole_day: bool = False
    ) -> Optional[SolarTermInstant]:
        return self.terms.next_term(self.solar, TermKind(kind), whole_day)

    def previous_term(
        self, kind: TermKind = TermKind.ANY, whole_day: bool = False
    ) -> Optional[SolarTermInstant]:
        return self.terms.previous_term(self.solar, TermKind(kind), whole_day)

    def __str__(self) -> str:
        leap = "L" if self.is_leap else ""
        return f"{self.year:04d}-{leap}{self.ordinal:02d}-{self.day:02d}"
