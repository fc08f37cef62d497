"""The 24 solar terms and the per-year solar-term table."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, List, Optional, Sequence

from .ephemeris import EphemerisProvider
from .julian import SolarDate
from .timescale import TimeScale

__all__ = [
    "FIRST_MULTIPLE",
    "SPRING_BEGINS_POSITIONS",
    "TABLE_SIZE",
    "SolarTerm",
    "SolarTermInstant",
    "SolarTermTable",
    "TermKind",
]


class SolarTerm(str, Enum):
    """Solar terms in order of apparent longitude, from 0° (March equinox)."""

    SPRING_EQUINOX = "春分"
    CLEAR_AND_BRIGHT = "清明"
    GRAIN_RAIN = "谷雨"
    SUMMER_BEGINS = "立夏"
    GRAIN_BUDS = "小满"
    GRAIN_IN_EAR = "芒种"
    SUMMER_SOLSTICE = "夏至"
    MINOR_HEAT = "小暑"
    MAJOR_HEAT = "大暑"
    AUTUMN_BEGINS = "立秋"
    END_OF_HEAT = "处暑"
    WHITE_DEW = "白露"
    AUTUMN_EQUINOX = "秋分"
    COLD_DEW = "寒露"
    FROST_DESCENT = "霜降"
    WINTER_BEGINS = "立冬"
    MINOR_SNOW = "小雪"
    MAJOR_SNOW = "大雪"
    WINTER_SOLSTICE = "冬至"
    MINOR_COLD = "小寒"
    MAJOR_COLD = "大寒"
    SPRING_BEGINS = "立春"
    RAIN_WATER = "雨水"
    INSECTS_AWAKEN = "惊蛰"

    @property
    def multiple(self) -> int:
        """Longitude in units of 15°."""

        return _ORDER.index(self)

    @property
    def longitude(self) -> float:
        return self.multiple * 15.0

    @property
    def is_jie(self) -> bool:
        return self.multiple % 2 == 1

    @classmethod
    def from_multiple(cls, multiple: int) -> "SolarTerm":
        return _ORDER[multiple % 24]


_ORDER: Sequence[SolarTerm] = tuple(SolarTerm)


class TermKind(str, Enum):
    ANY = "any"
    JIE = "jie"
    QI = "qi"


# Position 0 of a year's table is Major Snow (255°) of the previous year.
FIRST_MULTIPLE = 17
TABLE_SIZE = 31
SPRING_BEGINS_POSITIONS = (4, 28)


@dataclass(frozen=True)
class SolarTermInstant:
    term: SolarTerm
    position: int
    julian_day: float

    @property
    def name(self) -> str:
        return self.term.value

    @property
    def is_jie(self) -> bool:
        return self.position % 2 == 0

    @property
    def is_qi(self) -> bool:
        return not self.is_jie

    @property
    def solar(self) -> SolarDate:
        return SolarDate.from_julian_day(self.julian_day)

    @property
    def day_number(self) -> int:
        return math.floor(self.julian_day + 0.5)

    def matches(self, kind: "TermKind") -> bool:
        if kind is TermKind.JIE:
            return self.is_jie
        if kind is TermKind.QI:
            return self.is_qi
        return True


class SolarTermTable:
    """The 31 solar terms bracketing lunar year ``year``.

    Positions 0..30 run from Major Snow of ``year - 1`` to Insects Awaken of
    ``year + 1``.  Julian Days are civil (zone-local) values.
    """

    def __init__(self, year: int, instants: Sequence[SolarTermInstant]) -> None:
        if len(instants) != TABLE_SIZE:
            raise ValueError(f"a solar-term table holds {TABLE_SIZE} instants, got {len(instants)}")
        self.year = year
        self.instants = tuple(instants)

    @classmethod
    def build(cls, year: int, provider: EphemerisProvider, timescale: TimeScale) -> "SolarTermTable":
        instants = []
        for position in range(TABLE_SIZE):
            multiple = FIRST_MULTIPLE + position
            jd_tt = provider.solar_longitude_crossing(multiple, year - 1)
            instants.append(
                SolarTermInstant(
                    SolarTerm.from_multiple(multiple), position, timescale.tt_to_civil(jd_tt)
                )
            )
        return cls(year, instants)

    def __len__(self) -> int:
        return len(self.instants)

    def __iter__(self) -> Iterator[SolarTermInstant]:
        return iter(self.instants)

    def __getitem__(self, position: int) -> SolarTermInstant:
        return self.instants[position]

    def __repr__(self) -> str:
        return f"SolarTermTable(year={self.year})"

    @property
    def jie(self) -> List[SolarTermInstant]:
        return list(self.instants[0::2])

    @property
    def qi(self) -> List[SolarTermInstant]:
        return list(self.instants[1::2])

    def find(self, term: SolarTerm) -> List[SolarTermInstant]:
        return [instant for instant in self.instants if instant.term is term]

    def spring_begins(self, solar_year: int) -> SolarTermInstant:
        """Spring Begins falling in ``solar_year`` (the table holds two)."""

        first, second = (self.instants[p] for p in SPRING_BEGINS_POSITIONS)
        return first if first.solar.year == solar_year else second

    def current(self, solar: SolarDate, kind: TermKind = TermKind.ANY) -> Optional[SolarTermInstant]:
        """The term whose civil day is the day of ``solar``, if any."""

        kind = TermKind(kind)
        day = solar.day_number
        for instant in self.instants:
            if instant.day_number == day and instant.matches(kind):
                return instant
        return None

    def next_term(
        self, solar: SolarDate, kind: TermKind = TermKind.ANY, whole_day: bool = False
    ) -> Optional[SolarTermInstant]:
        """First term at or after ``solar``.

        With ``whole_day`` a term on the same civil day counts even if its
        instant has already passed.
        """

        kind = TermKind(kind)
        for instant in self.instants:
            if not instant.matches(kind):
                continue
            if whole_day:
                if instant.day_number >= solar.day_number:
                    return instant
            elif instant.solar >= solar:
                return instant
        return None

    def previous_term(
        self, solar: SolarDate, kind: TermKind = TermKind.ANY, whole_day: bool = False
    ) -> Optional[SolarTermInstant]:
        """Last term at or before ``solar``."""

        kind = TermKind(kind)
        for instant in reversed(self.instants):
            if not instant.matches(kind):
                continue
            if whole_day:
                if instant.day_number <= solar.day_number:
                    return instant
            elif instant.solar <= solar:
                return instant
        return None
