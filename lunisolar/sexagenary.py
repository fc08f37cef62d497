"""Sexagenary (stem-branch) pillars for years, months, days and hours.

Every function here is pure: it reads the lunar date, its solar timestamp
and its solar-term table, and returns a :class:`Pillar`.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, NamedTuple

if TYPE_CHECKING:  # pragma: no cover
    from .lunar_date import LunarDate

__all__ = [
    "DaySect",
    "FourPillars",
    "MonthSect",
    "Pillar",
    "SectMode",
    "YearSect",
    "day_pillar",
    "four_pillars",
    "hour_pillar",
    "month_pillar",
    "year_pillar",
]


@dataclass(frozen=True)
class Pillar:
    """A (stem 0..9, branch 0..11) pair of equal parity."""

    stem: int
    branch: int

    def __post_init__(self) -> None:
        if not 0 <= self.stem < 10:
            raise ValueError(f"stem must be within 0..9: {self.stem}")
        if not 0 <= self.branch < 12:
            raise ValueError(f"branch must be within 0..11: {self.branch}")
        if self.stem % 2 != self.branch % 2:
            raise ValueError(f"stem {self.stem} and branch {self.branch} never pair")

    @property
    def index(self) -> int:
        """Position in the 60-cycle, 0 for Jia-Zi."""

        return (6 * self.stem - 5 * self.branch) % 60

    @classmethod
    def from_index(cls, index: int) -> "Pillar":
        return cls(index % 10, index % 12)

    def next(self, steps: int = 1) -> "Pillar":
        return Pillar.from_index(self.index + steps)


class YearSect(str, Enum):
    LUNAR_NEW_YEAR = "lunar_new_year"
    SPRING_BEGINS_DAY = "spring_begins_day"
    SPRING_BEGINS_EXACT = "spring_begins_exact"


class DaySect(str, Enum):
    # 23:00-23:59 belongs to the next day
    LATE_ZI_NEXT_DAY = "late_zi_next_day"
    # 23:00-23:59 stays on its calendar day
    LATE_ZI_SAME_DAY = "late_zi_same_day"


class MonthSect(str, Enum):
    NODE_DAY = "node_day"
    NODE_INSTANT = "node_instant"


@dataclass(frozen=True)
class SectMode:
    year: YearSect = YearSect.LUNAR_NEW_YEAR
    day: DaySect = DaySect.LATE_ZI_SAME_DAY
    month: MonthSect = MonthSect.NODE_DAY


class FourPillars(NamedTuple):
    year: Pillar
    month: Pillar
    day: Pillar
    hour: Pillar


def _before(date: "LunarDate", instant, exact: bool) -> bool:
    if exact:
        return date.solar < instant.solar
    return date.solar.day_number < instant.day_number


def year_pillar(date: "LunarDate", sect: YearSect = YearSect.LUNAR_NEW_YEAR) -> Pillar:
    sect = YearSect(sect)
    base = Pillar((date.year - 4) % 10, (date.year - 4) % 12)
    if sect is YearSect.LUNAR_NEW_YEAR:
        return base

    solar_year = date.solar.year
    spring = date.terms.spring_begins(solar_year)
    before = _before(date, spring, sect is YearSect.SPRING_BEGINS_EXACT)
    if date.year == solar_year and before:
        return base.next(-1)
    if date.year < solar_year and not before:
        return base.next(1)
    return base


def _node_index(date: "LunarDate", exact: bool) -> int:
    """-3 before the table's first node term, 0 from Spring Begins on."""

    index = -3
    for instant in date.terms.jie:
        if _before(date, instant, exact):
            break
        index += 1
    return index


def month_pillar(date: "LunarDate", sect: MonthSect = MonthSect.NODE_DAY) -> Pillar:
    sect = MonthSect(sect)
    exact = sect is MonthSect.NODE_INSTANT
    index = _node_index(date, exact)
    year_sect = YearSect.SPRING_BEGINS_EXACT if exact else YearSect.SPRING_BEGINS_DAY
    year_stem = year_pillar(date, year_sect).stem
    offset = (((year_stem + (1 if index < 0 else 0)) % 5 + 1) * 2) % 10
    return Pillar((index + offset) % 10, (index + 2) % 12)


def day_pillar(date: "LunarDate", sect: DaySect = DaySect.LATE_ZI_SAME_DAY) -> Pillar:
    sect = DaySect(sect)
    offset = date.solar.day_number - 11
    pillar = Pillar(offset % 10, offset % 12)
    if sect is DaySect.LATE_ZI_NEXT_DAY and date.solar.hour == 23:
        return pillar.next(1)
    return pillar


def hour_pillar(date: "LunarDate") -> Pillar:
    branch = ((date.solar.hour + 1) // 2) % 12
    day_stem = day_pillar(date, DaySect.LATE_ZI_NEXT_DAY).stem
    return Pillar((day_stem % 5 * 2 + branch) % 10, branch)


def four_pillars(date: "LunarDate", mode: SectMode = SectMode()) -> FourPillars:
    return FourPillars(
        year_pillar(date, mode.year),
        month_pillar(date, mode.month),
        day_pillar(date, mode.day),
        hour_pillar(date),
    )
