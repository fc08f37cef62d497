from __future__ import annotations

import pytest

from lunisolar import (
    DaySect,
    FourPillars,
    LunarCalendar,
    MonthSect,
    Pillar,
    SectMode,
    YearSect,
    four_pillars,
)


def test_pillar_index_and_cycle():
    assert Pillar(0, 0).index == 0
    assert Pillar(9, 11).index == 59
    assert Pillar(6, 4).index == 16
    assert Pillar.from_index(39) == Pillar(9, 3)
    assert Pillar(0, 0).next(-1) == Pillar(9, 11)
    assert Pillar(9, 11).next() == Pillar(0, 0)
    for index in range(60):
        assert Pillar.from_index(index).index == index


@pytest.mark.parametrize("stem, branch", [(0, 1), (1, 0), (10, 0), (0, 12), (-1, 1)])
def test_pillar_rejects_invalid_pairs(stem, branch):
    with pytest.raises(ValueError):
        Pillar(stem, branch)


def test_pillars_on_lunar_new_year_2023(calendar: LunarCalendar):
    lunar = calendar.solar_to_lunar(2023, 1, 22, 23, 30, 0)
    assert lunar.year_pillar().index == 39
    assert lunar.year_pillar(YearSect.SPRING_BEGINS_DAY).index == 38
    assert lunar.year_pillar("spring_begins_exact").index == 38
    assert lunar.month_pillar() == Pillar(9, 1)
    assert lunar.day_pillar() == Pillar(6, 4)
    assert lunar.day_pillar().index == 16
    assert lunar.day_pillar(DaySect.LATE_ZI_NEXT_DAY) == Pillar(7, 5)
    assert lunar.hour_pillar() == Pillar(4, 0)


def test_day_sects_agree_outside_late_zi(calendar: LunarCalendar):
    noon = calendar.solar_to_lunar(2023, 1, 22, 12, 0, 0)
    assert noon.day_pillar(DaySect.LATE_ZI_NEXT_DAY) == noon.day_pillar(DaySect.LATE_ZI_SAME_DAY)


def test_day_pillar_of_2000_epoch(calendar: LunarCalendar):
    assert calendar.solar_to_lunar(2000, 1, 1).day_pillar() == Pillar(4, 6)


def test_consecutive_days_step_the_cycle(calendar: LunarCalendar):
    day = calendar.solar_to_lunar(2023, 1, 1, 12, 0, 0)
    for _ in range(70):
        following = calendar.add_days(day, 1)
        assert following.day_pillar().index == (day.day_pillar().index + 1) % 60
        day = following


def test_year_pillar_around_spring_begins(calendar: LunarCalendar):
    morning = calendar.solar_to_lunar(2023, 2, 4, 8, 0, 0)
    assert morning.year_pillar(YearSect.SPRING_BEGINS_DAY).index == 39
    assert morning.year_pillar(YearSect.SPRING_BEGINS_EXACT).index == 38

    noon = calendar.solar_to_lunar(2023, 2, 4, 12, 0, 0)
    assert noon.year_pillar(YearSect.SPRING_BEGINS_DAY).index == 39
    assert noon.year_pillar(YearSect.SPRING_BEGINS_EXACT).index == 39

    eve = calendar.solar_to_lunar(2023, 2, 3, 12, 0, 0)
    assert eve.year_pillar(YearSect.SPRING_BEGINS_DAY).index == 38
    assert eve.year_pillar(YearSect.SPRING_BEGINS_EXACT).index == 38


def test_year_pillar_before_lunar_new_year(calendar: LunarCalendar):
    early = calendar.solar_to_lunar(2023, 1, 10)
    assert early.year == 2022
    for sect in YearSect:
        assert early.year_pillar(sect).index == 38


def test_spring_begins_before_lunar_new_year(calendar: LunarCalendar):
    lunar = calendar.solar_to_lunar(2024, 2, 5, 12, 0, 0)
    assert lunar.year == 2023
    assert lunar.year_pillar(YearSect.LUNAR_NEW_YEAR).index == 39
    assert lunar.year_pillar(YearSect.SPRING_BEGINS_DAY).index == 40
    assert lunar.year_pillar(YearSect.SPRING_BEGINS_EXACT).index == 40


def test_month_pillar_node_day_versus_instant(calendar: LunarCalendar):
    morning = calendar.solar_to_lunar(2023, 2, 4, 8, 0, 0)
    assert morning.month_pillar(MonthSect.NODE_DAY) == Pillar(0, 2)
    assert morning.month_pillar(MonthSect.NODE_INSTANT) == Pillar(9, 1)


def test_month_pillar_follows_node_terms(calendar: LunarCalendar):
    assert calendar.solar_to_lunar(2023, 3, 10).month_pillar() == Pillar(1, 3)
    assert calendar.solar_to_lunar(2023, 12, 10).month_pillar() == Pillar(0, 0)


def test_lunar_month_pillar_counts_leap_months(calendar: LunarCalendar):
    first = calendar.solar_to_lunar(2023, 1, 22)
    leap = calendar.solar_to_lunar(2023, 3, 22)
    assert first.lunar_month_pillar == Pillar(0, 2)
    assert leap.lunar_month_pillar.index == first.lunar_month_pillar.index + 2


@pytest.mark.parametrize(
    "hour, branch",
    [(0, 0), (1, 1), (2, 1), (3, 2), (11, 6), (12, 6), (13, 7), (22, 11), (23, 0)],
)
def test_hour_branches(calendar: LunarCalendar, hour, branch):
    assert calendar.solar_to_lunar(2023, 5, 1, hour, 0, 0).hour_pillar().branch == branch


def test_hour_pillars_step_through_the_day(calendar: LunarCalendar):
    indexes = [
        calendar.solar_to_lunar(2023, 5, 1, hour, 0, 0).hour_pillar().index
        for hour in range(1, 24, 2)
    ]
    for earlier, later in zip(indexes, indexes[1:]):
        assert later == (earlier + 1) % 60


def test_four_pillars(calendar: LunarCalendar):
    lunar = calendar.solar_to_lunar(2023, 1, 22, 23, 30, 0)
    pillars = four_pillars(lunar)
    assert isinstance(pillars, FourPillars)
    assert pillars == FourPillars(Pillar(9, 3), Pillar(9, 1), Pillar(6, 4), Pillar(4, 0))

    mode = SectMode(YearSect.SPRING_BEGINS_EXACT, DaySect.LATE_ZI_NEXT_DAY, MonthSect.NODE_INSTANT)
    shifted = lunar.four_pillars(mode)
    assert shifted.year.index == 38
    assert shifted.day == Pillar(7, 5)


def test_month_pillars_step_with_node_months(calendar: LunarCalendar):
    indexes = [
        calendar.solar_to_lunar(2023, month, 15).month_pillar().index for month in range(1, 13)
    ]
    for earlier, later in zip(indexes, indexes[1:]):
        assert later == (earlier + 1) % 60
