from __future__ import annotations

from datetime import datetime

import pytest

from lunisolar import (
    DateOutOfRange,
    InvalidCalendarDate,
    InvalidLunarDate,
    LunarCalendar,
    SolarDate,
    SolarTerm,
    TermKind,
)


def test_lunar_new_year_2023(calendar: LunarCalendar):
    lunar = calendar.solar_to_lunar(2023, 1, 22)
    assert (lunar.year, lunar.month, lunar.day) == (2023, 1, 1)
    assert not lunar.is_leap
    assert lunar.weekday == 0
    assert str(lunar) == "2023-01-01"


def test_new_years_eve(calendar: LunarCalendar):
    lunar = calendar.solar_to_lunar(2023, 1, 21, 20, 0, 0)
    assert (lunar.year, lunar.month, lunar.day) == (2022, 12, 30)
    assert lunar.hour == 20


def test_leap_month_day(calendar: LunarCalendar):
    lunar = calendar.solar_to_lunar(SolarDate(2023, 3, 22, 8, 15, 0))
    assert lunar.month == -2
    assert lunar.ordinal == 2
    assert lunar.is_leap
    assert lunar.day == 1
    assert str(lunar) == "2023-L02-01"


def test_datetime_input(calendar: LunarCalendar):
    lunar = calendar.solar_to_lunar(datetime(2023, 1, 22, 23, 30))
    assert lunar.solar == SolarDate(2023, 1, 22, 23, 30, 0)
    assert (lunar.year, lunar.month, lunar.day) == (2023, 1, 1)


def test_lunar_to_solar(calendar: LunarCalendar):
    assert calendar.lunar_to_solar(2023, 2, True, 1) == SolarDate(2023, 3, 22)
    assert calendar.lunar_to_solar(2023, 1, False, 1, 9, 30, 5) == SolarDate(2023, 1, 22, 9, 30, 5)
    assert calendar.lunar_to_solar(2023, -2, day=1) == SolarDate(2023, 3, 22)
    assert calendar.lunar_to_solar(2022, 12, False, 30) == SolarDate(2023, 1, 21)


@pytest.mark.parametrize(
    "fields",
    [
        (2023, 3, True, 1),
        (2022, 5, True, 1),
        (2023, 1, False, 30),
        (2023, 1, False, 0),
    ],
)
def test_invalid_lunar_dates(calendar: LunarCalendar, fields):
    with pytest.raises(InvalidLunarDate):
        calendar.lunar_to_solar(*fields)


def test_solar_input_errors(calendar: LunarCalendar):
    with pytest.raises(InvalidCalendarDate):
        calendar.solar_to_lunar(1582, 10, 10)
    with pytest.raises(DateOutOfRange):
        calendar.solar_to_lunar(1582, 10, 10)
    with pytest.raises(DateOutOfRange):
        calendar.solar_to_lunar(10000, 1, 1)
    with pytest.raises(InvalidCalendarDate):
        calendar.solar_to_lunar(2023, 2, 30)


def test_round_trip_through_2023(calendar: LunarCalendar):
    start = SolarDate(2023, 1, 1, 7, 8, 9)
    for offset in range(0, 365, 5):
        solar = start.next(offset)
        lunar = calendar.solar_to_lunar(solar)
        back = calendar.lunar_to_solar(
            lunar.year, lunar.ordinal, lunar.is_leap, lunar.day,
            lunar.hour, lunar.minute, lunar.second,
        )
        assert back == solar


def test_add_days(calendar: LunarCalendar):
    eve = calendar.solar_to_lunar(2023, 1, 21)
    new_year = calendar.add_days(eve, 1)
    assert (new_year.year, new_year.month, new_year.day) == (2023, 1, 1)
    assert calendar.add_days(new_year, 29).month == 2


def test_lunar_date_from_lunar_fields_uses_solar_year_terms(calendar: LunarCalendar):
    lunar = calendar.lunar_date(2022, 12, 30, 12, 0, 0)
    assert lunar.solar == SolarDate(2023, 1, 21, 12, 0, 0)
    assert lunar.terms.year == 2023


def test_term_queries_on_lunar_date(calendar: LunarCalendar):
    lunar = calendar.solar_to_lunar(2023, 2, 4, 12, 0, 0)
    assert lunar.current_term().term is SolarTerm.SPRING_BEGINS
    assert lunar.next_term().term is SolarTerm.RAIN_WATER
    assert lunar.next_term(TermKind.JIE, whole_day=True).term is SolarTerm.SPRING_BEGINS
    assert lunar.previous_term(TermKind.QI).term is SolarTerm.MAJOR_COLD


def test_module_level_functions(calendar: LunarCalendar):
    import lunisolar

    lunisolar.set_default_calendar(calendar)
    try:
        lunar = lunisolar.solar_to_lunar(2023, 1, 22)
        assert lunar.year_pillar().index == 39
        assert lunisolar.lunar_to_solar(2023, 1, False, 1) == SolarDate(2023, 1, 22)
        assert len(lunisolar.solar_term_table(2023)) == 31
        assert lunisolar.year_pillar(lunar).index == 39
    finally:
        lunisolar.set_default_calendar(None)


def test_conversion_across_the_reform(calendar: LunarCalendar):
    before = calendar.solar_to_lunar(1582, 10, 4)
    after = calendar.solar_to_lunar(1582, 10, 15)
    assert after.day_number - before.day_number == 1
    assert calendar.add_days(before, 1) == after
    assert after.day_pillar().index == (before.day_pillar().index + 1) % 60
