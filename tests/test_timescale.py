from __future__ import annotations

import pytest

from lunisolar.timescale import SEC_PER_DAY, TimeScale, delta_t_seconds


@pytest.mark.parametrize(
    "year, expected, tolerance",
    [
        (1900.0, -2.79, 1e-9),
        (2000.0, 63.86, 1e-9),
        (2005.0, 64.7, 0.2),
        (1800.0, 13.72, 1e-9),
        (-500.0, 17200.0, 200.0),
    ],
)
def test_delta_t_polynomials(year: float, expected: float, tolerance: float):
    assert delta_t_seconds(year) == pytest.approx(expected, abs=tolerance)


def test_delta_t_grows_into_the_past():
    assert delta_t_seconds(1000.0) > delta_t_seconds(1600.0) > 0
    assert delta_t_seconds(0.0) > delta_t_seconds(1000.0)


def test_tt_minus_utc_in_leap_second_era():
    # TAI - UTC was 32 s in 2000; TT - TAI is 32.184 s.
    jd_tt = 2451545.0
    utc = TimeScale.tt_to_utc(jd_tt)
    assert (jd_tt - utc) * SEC_PER_DAY == pytest.approx(64.184, abs=1e-3)


@pytest.mark.parametrize("jd", [2451545.0, 2299160.5, 2816787.5])
def test_utc_round_trip(jd: float):
    assert TimeScale.tt_to_utc(TimeScale.utc_to_tt(jd)) == pytest.approx(jd, abs=1e-7)


def test_zone_offset_shifts_civil_time():
    jd_tt = 2460000.25
    east8 = TimeScale(8.0).tt_to_civil(jd_tt)
    utc = TimeScale(0.0).tt_to_civil(jd_tt)
    assert east8 - utc == pytest.approx(8.0 / 24.0, abs=1e-12)
    assert TimeScale(8.0).civil_to_tt(east8) == pytest.approx(jd_tt, abs=1e-7)
