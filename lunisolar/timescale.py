"""Terrestrial Time to civil time of a fixed zone.

Within the published leap-second era UTC is derived exactly through ERFA
(TT -> TAI -> UTC).  Outside it UT is approximated as TT - ΔT with the
Espenak–Meeus polynomials.
"""

from __future__ import annotations

import math
import warnings

import erfa

__all__ = ["SEC_PER_DAY", "TimeScale", "decimal_year", "delta_t_seconds"]

SEC_PER_DAY = 86400.0
LEAP_SECOND_START = 1972.0
LEAP_SECOND_END = 2026.0


def decimal_year(julian_day: float) -> float:
    return 2000.0 + (julian_day - 2451544.5) / 365.2425


def _poly(t: float, coefficients) -> float:
    value = 0.0
    for coefficient in reversed(coefficients):
        value = value * t + coefficient
    return value


def delta_t_seconds(year: float) -> float:
    """ΔT = TT - UT in seconds (Espenak & Meeus, NASA eclipse polynomials)."""

    y = year
    if y < -500.0:
        u = (y - 1820.0) / 100.0
        return -20.0 + 32.0 * u * u
    if y < 500.0:
        return _poly(y / 100.0, (10583.6, -1014.41, 33.78311, -5.952053,
                                 -0.1798452, 0.022174192, 0.0090316521))
    if y < 1600.0:
        return _poly((y - 1000.0) / 100.0, (1574.2, -556.01, 71.23472, 0.319781,
                                            -0.8503463, -0.005050998, 0.0083572073))
    if y < 1700.0:
        t = y - 1600.0
        return 120.0 - 0.9808 * t - 0.01532 * t ** 2 + t ** 3 / 7129.0
    if y < 1800.0:
        t = y - 1700.0
        return _poly(t, (8.83, 0.1603, -0.0059285, 0.00013336)) - t ** 4 / 1174000.0
    if y < 1860.0:
        return _poly(y - 1800.0, (13.72, -0.332447, 0.0068612, 0.0041116, -0.00037436,
                                  0.0000121272, -0.0000001699, 0.000000000875))
    if y < 1900.0:
        t = y - 1860.0
        return _poly(t, (7.62, 0.5737, -0.251754, 0.01680668, -0.0004473624)) + t ** 5 / 233174.0
    if y < 1920.0:
        return _poly(y - 1900.0, (-2.79, 1.494119, -0.0598939, 0.0061966, -0.000197))
    if y < 1941.0:
        return _poly(y - 1920.0, (21.20, 0.84493, -0.076100, 0.0020936))
    if y < 1961.0:
        t = y - 1950.0
        return 29.07 + 0.407 * t - t ** 2 / 233.0 + t ** 3 / 2547.0
    if y < 1986.0:
        t = y - 1975.0
        return 45.45 + 1.067 * t - t ** 2 / 260.0 - t ** 3 / 718.0
    if y < 2005.0:
        return _poly(y - 2000.0, (63.86, 0.3345, -0.060374, 0.0017275,
                                  0.000651814, 0.00002373599))
    if y < 2050.0:
        return _poly(y - 2000.0, (62.92, 0.32217, 0.005589))
    if y < 2150.0:
        u = (y - 1820.0) / 100.0
        return -20.0 + 32.0 * u * u - 0.5628 * (2150.0 - y)
    u = (y - 1820.0) / 100.0
    return -20.0 + 32.0 * u * u


def _split(julian_day: float):
    whole = float(math.floor(julian_day))
    return whole, julian_day - whole


class TimeScale:
    """TT <-> civil Julian Day for a zone ``utc_offset_hours`` east of UTC."""

    def __init__(self, utc_offset_hours: float = 8.0) -> None:
        self.utc_offset_hours = float(utc_offset_hours)

    def __repr__(self) -> str:
        return f"TimeScale(utc_offset_hours={self.utc_offset_hours!r})"

    @staticmethod
    def tt_to_utc(jd_tt: float) -> float:
        year = decimal_year(jd_tt)
        if LEAP_SECOND_START <= year < LEAP_SECOND_END:
            tt1, tt2 = _split(jd_tt)
            with warnings.catch_warnings():
                warnings.simplefilter("ignore", erfa.ErfaWarning)
                tai1, tai2 = erfa.tttai(tt1, tt2)
                utc1, utc2 = erfa.taiutc(tai1, tai2)
            return float(utc1) + float(utc2)
        return jd_tt - delta_t_seconds(year) / SEC_PER_DAY

    @staticmethod
    def utc_to_tt(jd_utc: float) -> float:
        year = decimal_year(jd_utc)
        if LEAP_SECOND_START <= year < LEAP_SECOND_END:
            utc1, utc2 = _split(jd_utc)
            with warnings.catch_warnings():
                warnings.simplefilter("ignore", erfa.ErfaWarning)
                tai1, tai2 = erfa.utctai(utc1, utc2)
                tt1, tt2 = erfa.taitt(tai1, tai2)
            return float(tt1) + float(tt2)
        return jd_utc + delta_t_seconds(year) / SEC_PER_DAY

    def tt_to_civil(self, jd_tt: float) -> float:
        return self.tt_to_utc(jd_tt) + self.utc_offset_hours / 24.0

    def civil_to_tt(self, jd_civil: float) -> float:
        return self.utc_to_tt(jd_civil - self.utc_offset_hours / 24.0)

    def civil_day_number(self, jd_tt: float) -> int:
        """Julian Day of noon of the civil day containing ``jd_tt``."""

        return math.floor(self.tt_to_civil(jd_tt) + 0.5)
