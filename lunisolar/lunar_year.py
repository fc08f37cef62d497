"""Lunar years: month boundaries, day counts and leap-month placement."""

from __future__ import annotations

import json
import logging
import math
import time
from dataclasses import dataclass
from threading import Lock
from typing import Dict, FrozenSet, List, Optional, Sequence, Tuple

from .ephemeris import MEAN_NEW_MOON_2000, SYNODIC_MONTH, EphemerisProvider
from .errors import DateOutOfRange, InvalidLunarDate
from .julian import SolarDate
from .sexagenary import Pillar
from .terms import SolarTermTable
from .timescale import TimeScale

__all__ = [
    "CURATED_YEARS",
    "LEAP_11",
    "LEAP_12",
    "MAX_YEAR",
    "MIN_YEAR",
    "LunarMonth",
    "LunarYear",
    "LunarYearBuilder",
    "check_year",
]

LOGGER = logging.getLogger(__name__)

MIN_YEAR = 0
MAX_YEAR = 9999
MONTH_SPAN = 29.5306

# Years whose leap month is the 11th (LEAP_11) or 12th (LEAP_12) month,
# following the historical calendars rather than the astronomical rule.
LEAP_11: FrozenSet[int] = frozenset((
    75, 94, 170, 238, 265, 322, 389, 469, 553, 583, 610, 678, 735, 754, 773,
    849, 887, 936, 1050, 1069, 1126, 1145, 1164, 1183, 1259, 1278, 1308, 1373,
    1403, 1441, 1460, 1498, 1555, 1593, 1612, 1631, 1642, 2033, 2128, 2147,
    2242, 2614, 2728, 2910, 3062, 3244, 3339, 3616, 3711, 3730, 3825, 4007,
    4159, 4197, 4322, 4341, 4379, 4417, 4531, 4599, 4694, 4713, 4789, 4808, 4971,
    5085, 5104, 5161, 5180, 5199, 5294, 5305, 5476, 5677, 5696, 5772, 5791, 5848,
    5886, 6049, 6068, 6144, 6163, 6258, 6402, 6440, 6497, 6516, 6630, 6641, 6660,
    6679, 6736, 6774, 6850, 6869, 6899, 6918, 6994, 7013, 7032, 7051, 7070, 7089,
    7108, 7127, 7146, 7222, 7271, 7290, 7309, 7366, 7385, 7404, 7442, 7461, 7480,
    7491, 7499, 7594, 7624, 7643, 7662, 7681, 7719, 7738, 7814, 7863, 7882, 7901,
    7939, 7958, 7977, 7996, 8034, 8053, 8072, 8091, 8121, 8159, 8186, 8216, 8235,
    8254, 8273, 8311, 8330, 8341, 8349, 8368, 8444, 8463, 8474, 8493, 8531, 8569,
    8588, 8626, 8664, 8683, 8694, 8702, 8713, 8721, 8751, 8789, 8808, 8816, 8827,
    8846, 8884, 8903, 8922, 8941, 8971, 9036, 9066, 9085, 9104, 9123, 9142, 9161,
    9180, 9199, 9218, 9256, 9294, 9313, 9324, 9343, 9362, 9381, 9419, 9438, 9476,
    9514, 9533, 9544, 9552, 9563, 9571, 9582, 9601, 9639, 9658, 9666, 9677, 9696,
    9734, 9753, 9772, 9791, 9802, 9821, 9886, 9897, 9916, 9935, 9954, 9973, 9992
))
LEAP_12: FrozenSet[int] = frozenset((
    37, 56, 113, 132, 151, 189, 208, 227, 246, 284, 303, 341, 360, 379, 417, 436,
    458, 477, 496, 515, 534, 572, 591, 629, 648, 667, 697, 716, 792, 811, 830,
    868, 906, 925, 944, 963, 982, 1001, 1020, 1039, 1058, 1088, 1153, 1202,
    1221, 1240, 1297, 1335, 1392, 1411, 1422, 1430, 1517, 1525, 1536, 1574,
    3358, 3472, 3806, 3988, 4751, 4941, 5066, 5123, 5275, 5343, 5438, 5457,
    5495, 5533, 5552, 5715, 5810, 5829, 5905, 5924, 6421, 6535, 6793, 6812,
    6888, 6907, 7002, 7184, 7260, 7279, 7374, 7556, 7746, 7757, 7776, 7833,
    7852, 7871, 7966, 8015, 8110, 8129, 8148, 8224, 8243, 8338, 8406, 8425,
    8482, 8501, 8520, 8558, 8596, 8607, 8615, 8645, 8740, 8778, 8835, 8865, 8930,
    8960, 8979, 8998, 9017, 9055, 9074, 9093, 9112, 9150, 9188, 9237, 9275, 9332,
    9351, 9370, 9408, 9427, 9446, 9457, 9465, 9495, 9560, 9590, 9628, 9647, 9685,
    9715, 9742, 9780, 9810, 9818, 9829, 9848, 9867, 9905, 9924, 9943, 9962, 10000
))
LEAP: Dict[int, int] = {**{y: 13 for y in LEAP_11}, **{y: 14 for y in LEAP_12}}
CURATED_YEARS = range(min(LEAP_12 | LEAP_11), MAX_YEAR + 1)

# Years whose month 11 of the previous year opens with the first new moon
# after the winter solstice rather than the one before it.
_SEED_ON_SOLSTICE = frozenset((41, 193, 288, 345, 918, 1013))


def check_year(year: int) -> int:
    if not MIN_YEAR <= year <= MAX_YEAR:
        raise DateOutOfRange(f"lunar year must be within {MIN_YEAR}..{MAX_YEAR}: {year}")
    return year


def year_stem_branch(year: int) -> Pillar:
    """Pillar of a lunar year counted from its first day (1984 is Jia-Zi)."""

    return Pillar((year - 4) % 10, (year - 4) % 12)


@dataclass(frozen=True)
class LunarMonth:
    year: int
    ordinal: int
    is_leap: bool
    day_count: int
    first_day_number: int
    sequence_index: int

    @property
    def month(self) -> int:
        """Signed month number, negative for a leap month."""

        return -self.ordinal if self.is_leap else self.ordinal

    @property
    def first_julian_day(self) -> float:
        return float(self.first_day_number)

    @property
    def first_day(self) -> SolarDate:
        return SolarDate.from_julian_day(self.first_day_number)

    @property
    def last_day_number(self) -> int:
        return self.first_day_number + self.day_count - 1

    @property
    def pillar(self) -> Pillar:
        """Stem and branch of the month counted by lunar months.

        The first month of every year is a Tiger month; leap months take the
        next position in the sequence.
        """

        year_stem = year_stem_branch(self.year).stem
        stem = (self.sequence_index - 1 + (year_stem + 1) % 5 * 2) % 10
        branch = (self.sequence_index - 1 + 2) % 12
        return Pillar(stem, branch)

    def contains(self, day_number: int) -> bool:
        return 0 <= day_number - self.first_day_number < self.day_count


class LunarYear:
    """Months of one lunar year inside its construction window."""

    def __init__(
        self,
        year: int,
        window: Sequence[LunarMonth],
        terms: SolarTermTable,
        low_confidence: bool = False,
    ) -> None:
        self.year = year
        self.window = tuple(window)
        self.terms = terms
        self.low_confidence = low_confidence
        self.months = tuple(month for month in self.window if month.year == year)

    def __repr__(self) -> str:
        return f"LunarYear(year={self.year}, leap_month={self.leap_month})"

    @property
    def pillar(self) -> Pillar:
        return year_stem_branch(self.year)

    @property
    def stem(self) -> int:
        return self.pillar.stem

    @property
    def branch(self) -> int:
        return self.pillar.branch

    @property
    def leap_month(self) -> int:
        """Ordinal of the leap month, 0 when the year has none."""

        for month in self.months:
            if month.is_leap:
                return month.ordinal
        return 0

    @property
    def day_count(self) -> int:
        return sum(month.day_count for month in self.months)

    @property
    def first_day(self) -> SolarDate:
        return self.months[0].first_day

    def month(self, ordinal: int, is_leap: bool = False) -> LunarMonth:
        for month in self.months:
            if month.ordinal == ordinal and month.is_leap == is_leap:
                return month
        kind = "leap month" if is_leap else "month"
        raise InvalidLunarDate(f"lunar year {self.year} has no {kind} {ordinal}")

    def month_of_day(self, day_number: int) -> Optional[LunarMonth]:
        """The window month containing the civil day ``day_number``."""

        for month in self.window:
            if month.contains(day_number):
                return month
        return None


class LunarYearBuilder:
    """Builds :class:`LunarYear` values from an ephemeris provider.

    Month 11 of every lunar year ``Y`` opens at an anchor lunation, normally
    the one holding the winter solstice of ``Y``.  The lunations between two
    consecutive anchors form one span of 12 or 13 months whose labels depend
    on those anchors only, so every build that reaches a span labels it the
    same way.
    """

    def __init__(self, provider: EphemerisProvider, timescale: Optional[TimeScale] = None) -> None:
        self.provider = provider
        self.timescale = timescale or TimeScale()
        self._solstices: Dict[int, Tuple[int, bool]] = {}
        self._solstice_lock = Lock()

    def solar_term_table(self, year: int) -> SolarTermTable:
        return SolarTermTable.build(year, self.provider, self.timescale)

    def lunation_day(self, day_number: float) -> int:
        """Civil day of the new moon of the lunation around ``day_number``."""

        k = math.floor((day_number + 14 - 2451551) / MONTH_SPAN)
        jd_tt = self.provider.nearest_lunation(MEAN_NEW_MOON_2000 + SYNODIC_MONTH * k)
        return self.timescale.civil_day_number(jd_tt)

    def term_day(self, multiple: int, year_seed: int) -> int:
        return self.timescale.civil_day_number(
            self.provider.solar_longitude_crossing(multiple, year_seed)
        )

    def _solstice_lunation(self, year: int) -> Tuple[int, bool]:
        """(first day of the lunation holding the winter solstice of ``year``,
        whether the nearest new moon falls after the solstice day)."""

        with self._solstice_lock:
            cached = self._solstices.get(year)
        if cached is not None:
            return cached
        solstice = self.term_day(18, year)
        nearest = self.lunation_day(solstice)
        if nearest > solstice:
            result = self.lunation_day(nearest - MONTH_SPAN), True
        else:
            result = nearest, False
        with self._solstice_lock:
            self._solstices[year] = result
        return result

    def raw_anchor(self, year: int) -> int:
        return self._solstice_lunation(year)[0]

    def _raw_span(self, year: int) -> int:
        """Lunations from raw anchor ``year - 1`` up to raw anchor ``year``."""

        return round((self.raw_anchor(year) - self.raw_anchor(year - 1)) / MONTH_SPAN)

    def _table_shift(self, year: int) -> int:
        # a listed leap 11 or 12 of ``year`` moves its month 11 back one lunation
        if year in LEAP and self._raw_span(year) == 13 and self._raw_span(year + 1) == 12:
            return -1
        return 0

    def _seed_shift(self, year: int) -> int:
        if year + 1 not in _SEED_ON_SOLSTICE or not self._solstice_lunation(year)[1]:
            return 0
        if self._raw_span(year) != 12 or self._raw_span(year + 1) != 13:
            return 0
        if self._table_shift(year - 1) or self._table_shift(year + 1):
            return 0
        return 1

    def anchor(self, year: int) -> int:
        """First day of month 11 of lunar year ``year``."""

        shift = self._table_shift(year) + self._seed_shift(year)
        raw = self.raw_anchor(year)
        if shift == 0:
            return raw
        return self.lunation_day(raw + MONTH_SPAN * shift)

    def _span_starts(self, year: int, count: int) -> List[int]:
        first = self.anchor(year - 1)
        return [self.lunation_day(first + MONTH_SPAN * i) for i in range(count + 1)]

    @staticmethod
    def _span_leap(year: int, starts: Sequence[int], size: int, qi_day) -> Optional[int]:
        """Position of the leap month in the span closed by anchor ``year``.

        ``starts`` may hold only the first months of the span; a leap month
        beyond them is reported at the first position past the end.
        """

        if size != 13:
            return None
        if year - 1 in LEAP:
            return LEAP[year - 1] - 12
        # first month that holds no qi term
        limit = min(12, len(starts) - 1)
        i = 1
        while i < limit and starts[i + 1] > qi_day(i):
            i += 1
        return i

    def _conflicts(self, year: int, size: int, next_size: int) -> List[str]:
        conflicts = []
        if year - 1 in LEAP and size != 13:
            conflicts.append(f"leap {LEAP[year - 1] - 2} of {year - 1}")
        if year in LEAP and next_size != 13:
            conflicts.append(f"leap {LEAP[year] - 2} of {year}")
        if size == 13 and year - 1 not in LEAP and year in LEAP:
            conflicts.append(f"leap months in {year - 1} and {year}")
        if year in _SEED_ON_SOLSTICE and not self._seed_shift(year - 1):
            if self._solstice_lunation(year - 1)[1]:
                conflicts.append(f"solstice seed of {year}")
        return conflicts

    def build(self, year: int) -> LunarYear:
        check_year(year)
        started = time.perf_counter()
        terms = self.solar_term_table(year)

        size = round((self.anchor(year) - self.anchor(year - 1)) / MONTH_SPAN)
        next_size = round((self.anchor(year + 1) - self.anchor(year)) / MONTH_SPAN)
        starts = self._span_starts(year, size)
        # months 11 and 12 of ``year`` open the next span
        next_starts = self._span_starts(year + 1, 3)

        # qi term i of a span sits at table position 2i + 1 of its year
        leap = self._span_leap(year, starts, size, lambda i: terms[2 * i + 1].day_number)
        next_leap = self._span_leap(
            year + 1, next_starts, next_size, lambda i: self.term_day(18 + 2 * i, year)
        )

        leap_positions = set()
        if leap is not None:
            leap_positions.add(leap)
        if next_leap is not None:
            leap_positions.add(size + next_leap)
        firsts = starts[:-1] + next_starts
        day_counts = [firsts[i + 1] - firsts[i] for i in range(len(firsts) - 1)]

        window: List[LunarMonth] = []
        y = year - 1
        m = 11
        index = 11
        for i, day_count in enumerate(day_counts):
            is_leap = i in leap_positions
            window.append(LunarMonth(y, m, is_leap, day_count, firsts[i], index))
            if i + 1 not in leap_positions:
                m += 1
            index += 1
            if m == 13:
                m = 1
                index = 1
                y += 1

        conflicts = self._conflicts(year, size, next_size)
        low_confidence = year not in CURATED_YEARS or bool(conflicts)
        lunar_year = LunarYear(year, window, terms, low_confidence=low_confidence)
        LOGGER.info(
            json.dumps(
                {
                    "event": "lunar_year_built",
                    "year": year,
                    "leap_month": lunar_year.leap_month,
                    "elapsed_ms": round((time.perf_counter() - started) * 1000.0, 3),
                }
            )
        )
        if conflicts:
            LOGGER.warning(
                json.dumps({"event": "lunar_year_rule_conflict", "year": year, "rules": conflicts})
            )
        elif low_confidence:
            LOGGER.warning(
                json.dumps(
                    {
                        "event": "lunar_year_low_confidence",
                        "year": year,
                        "curated": [CURATED_YEARS.start, CURATED_YEARS.stop - 1],
                    }
                )
            )
        return lunar_year
