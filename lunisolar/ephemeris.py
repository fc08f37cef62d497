"""Solar-longitude crossings and new moons from apparent ecliptic longitudes.

Providers only supply the apparent geocentric ecliptic longitude of the sun
and the moon (true equinox and ecliptic of date) together with its time
derivative; :class:`ApparentLongitudeEphemeris` turns those into the two
root-finding services the calendar needs.
"""

from __future__ import annotations

import math
import warnings
from functools import lru_cache
from typing import Callable, Protocol, Tuple, runtime_checkable

import erfa
import numpy as np

from .errors import EphemerisUnavailable

__all__ = [
    "ApparentLongitudeEphemeris",
    "EphemerisProvider",
    "ErfaEphemeris",
    "MARCH_EQUINOX_2000",
    "MEAN_NEW_MOON_2000",
    "SYNODIC_MONTH",
    "TROPICAL_YEAR",
    "annual_aberration",
    "ecliptic_rotation",
]

C_AU_PER_DAY = 173.144632674
TWO_PI = 2.0 * math.pi
# TT Julian Days of the 2000 March equinox and of lunation 0 (2000-01-06).
MARCH_EQUINOX_2000 = 2451623.80984
MEAN_NEW_MOON_2000 = 2451550.09766
TROPICAL_YEAR = 365.242196
SYNODIC_MONTH = 29.530588861

Longitude = Tuple[float, float]


@runtime_checkable
class EphemerisProvider(Protocol):
    """Astronomical primitives consumed by the calendar engine."""

    def solar_longitude_crossing(self, multiple: int, year_seed: float) -> float:
        """TT Julian Day at which the sun reaches ``multiple * 15°`` past the
        March equinox that opens solar year ``year_seed``."""

    def nearest_lunation(self, reference: float) -> float:
        """TT Julian Day of the new moon closest to ``reference``."""


def _rotation_x(angle: float) -> np.ndarray:
    c, s = math.cos(angle), math.sin(angle)
    return np.array([[1.0, 0.0, 0.0], [0.0, c, s], [0.0, -s, c]])


@lru_cache(maxsize=256)
def ecliptic_rotation(jd_tt: float) -> np.ndarray:
    """GCRS -> true ecliptic and equinox of date (IAU 2006/2000A)."""

    d1 = float(math.floor(jd_tt))
    d2 = jd_tt - d1
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", erfa.ErfaWarning)
        npb = np.array(erfa.pnm06a(d1, d2))
        _, deps = erfa.nut06a(d1, d2)
        eps = float(erfa.obl06(d1, d2)) + float(deps)
    return _rotation_x(eps) @ npb


def annual_aberration(vector: np.ndarray, observer_velocity: np.ndarray) -> np.ndarray:
    """Relativistic annual aberration of *vector* seen from an observer moving
    with ``observer_velocity`` (AU/day, barycentric)."""

    r = float(np.linalg.norm(vector))
    n = vector / r
    beta = observer_velocity / C_AU_PER_DAY
    beta2 = float(beta @ beta)
    gamma_inv = math.sqrt(max(0.0, 1.0 - beta2))
    nb = float(n @ beta)
    n_app = (gamma_inv * n + beta + (nb * beta) / (1.0 + gamma_inv)) / (1.0 + nb)
    norm = float(np.linalg.norm(n_app))
    if norm == 0.0:
        return vector
    return (n_app / norm) * r


def longitude_and_rate(position: np.ndarray, velocity: np.ndarray, jd_tt: float) -> Longitude:
    """Ecliptic longitude (rad, 0..2π) and its rate (rad/day) of a GCRS state."""

    rotation = ecliptic_rotation(jd_tt)
    x = rotation @ position
    x_dot = rotation @ velocity
    lam = math.atan2(x[1], x[0])
    if lam < 0:
        lam += TWO_PI
    lam_dot = (x[0] * x_dot[1] - x[1] * x_dot[0]) / (x[0] ** 2 + x[1] ** 2)
    return lam, lam_dot


class ApparentLongitudeEphemeris:
    """Newton-Raphson crossing solver over apparent longitudes.

    Subclasses implement :meth:`sun` and :meth:`moon`, each returning the
    apparent ecliptic longitude in radians and its rate in radians per day.
    """

    name = "abstract"

    def __init__(self, eps_days: float = 1e-8, max_iter: int = 20) -> None:
        self.eps_days = eps_days
        self.max_iter = max_iter

    def sun(self, jd_tt: float) -> Longitude:
        raise NotImplementedError

    def moon(self, jd_tt: float) -> Longitude:
        raise NotImplementedError

    @staticmethod
    def _norm(angle: float) -> float:
        return angle - TWO_PI * math.floor((angle + math.pi) / TWO_PI)

    def _solar(self, target: float) -> Callable[[float], Longitude]:
        def evaluate(jd_tt: float) -> Longitude:
            lam, lam_dot = self.sun(jd_tt)
            return self._norm(lam - target), lam_dot

        return evaluate

    def _elongation(self, jd_tt: float) -> Longitude:
        lam_s, lam_dot_s = self.sun(jd_tt)
        lam_m, lam_dot_m = self.moon(jd_tt)
        return self._norm(lam_m - lam_s), lam_dot_m - lam_dot_s

    def solar_longitude_crossing(self, multiple: int, year_seed: float) -> float:
        target = math.radians((multiple * 15.0) % 360.0)
        seed = MARCH_EQUINOX_2000 + TROPICAL_YEAR * (year_seed - 2000.0 + multiple / 24.0)
        return self.newton(self._solar(target), seed)

    def nearest_lunation(self, reference: float) -> float:
        k = round((reference - MEAN_NEW_MOON_2000) / SYNODIC_MONTH)
        seed = MEAN_NEW_MOON_2000 + SYNODIC_MONTH * k
        return self.newton(self._elongation, seed)

    def newton(self, evaluate: Callable[[float], Longitude], jd_initial: float) -> float:
        """Damped Newton iteration on ``evaluate``; falls back to a bracket
        scan and bisection within ±3 days of the last iterate."""

        eps_days = self.eps_days
        jd = jd_initial
        f, fdot = evaluate(jd)
        if abs(f) < 1e-12:
            return jd

        for _ in range(self.max_iter):
            if abs(fdot) < 1e-12:
                break

            delta = max(-3.0, min(3.0, f / fdot))
            jd_new = jd - delta
            f_new, fdot_new = evaluate(jd_new)

            backtracks = 0
            while abs(f_new) > abs(f) and abs(delta) > eps_days and backtracks < 20:
                delta *= 0.5
                jd_new = jd - delta
                f_new, fdot_new = evaluate(jd_new)
                backtracks += 1

            if abs(f_new) > abs(f) and abs(delta) > eps_days:
                break

            if abs(delta) < eps_days or abs(f_new) < 1e-12:
                return jd_new

            jd, f, fdot = jd_new, f_new, fdot_new

        return self._bisect(evaluate, jd, f, eps_days)

    @staticmethod
    def _bisect(evaluate, jd_center: float, f_center: float, eps_days: float) -> float:
        scan_step = 0.5
        steps = 6
        for direction in (-1, 1):
            prev_jd, prev_f = jd_center, f_center
            for i in range(1, steps + 1):
                cand_jd = jd_center + direction * i * scan_step
                cand_f, _ = evaluate(cand_jd)
                if abs(cand_f) < 1e-12:
                    return cand_jd
                # a sign change across ±π is a wrap, not a root
                if prev_f * cand_f <= 0 and abs(prev_f - cand_f) < math.pi:
                    left, right = sorted((prev_jd, cand_jd))
                    f_left = prev_f if left == prev_jd else cand_f
                    for _ in range(60):
                        mid = 0.5 * (left + right)
                        f_mid, _ = evaluate(mid)
                        if abs(f_mid) < 1e-12 or (right - left) * 0.5 < eps_days:
                            return mid
                        if f_left * f_mid <= 0:
                            right = mid
                        else:
                            left, f_left = mid, f_mid
                    return 0.5 * (left + right)
                prev_jd, prev_f = cand_jd, cand_f

        raise EphemerisUnavailable(
            f"longitude crossing did not converge near JD {jd_center:.5f}"
        )


class ErfaEphemeris(ApparentLongitudeEphemeris):
    """Analytic ephemeris: ERFA ``epv00`` for the sun, ``moon98`` for the moon.

    Both series are fitted to 1900-2100; further out the error grows
    smoothly and ERFA's range warnings are suppressed.
    """

    name = "erfa"

    def sun(self, jd_tt: float) -> Longitude:
        d1 = float(math.floor(jd_tt))
        d2 = jd_tt - d1
        with warnings.catch_warnings():
            warnings.simplefilter("ignore", erfa.ErfaWarning)
            pvh, pvb = erfa.epv00(d1, d2)
        position = -np.array(pvh["p"], dtype=float)
        velocity = -np.array(pvh["v"], dtype=float)
        apparent = annual_aberration(position, np.array(pvb["v"], dtype=float))
        return longitude_and_rate(apparent, velocity, jd_tt)

    def moon(self, jd_tt: float) -> Longitude:
        d1 = float(math.floor(jd_tt))
        d2 = jd_tt - d1
        with warnings.catch_warnings():
            warnings.simplefilter("ignore", erfa.ErfaWarning)
            pv = erfa.moon98(d1, d2)
        position = np.array(pv["p"], dtype=float)
        velocity = np.array(pv["v"], dtype=float)
        return longitude_and_rate(position, velocity, jd_tt)
