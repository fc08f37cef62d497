from __future__ import annotations

import pytest

from lunisolar import LunarCalendar, SolarDate, SolarTerm, TermKind
from lunisolar.terms import SolarTermTable


@pytest.fixture(scope="module")
def table_2023(calendar: LunarCalendar) -> SolarTermTable:
    return calendar.solar_term_table(2023)


def _minutes(solar: SolarDate) -> int:
    return solar.hour * 60 + solar.minute


def test_solar_term_enum():
    assert SolarTerm.SPRING_EQUINOX.longitude == 0.0
    assert SolarTerm.SPRING_BEGINS.longitude == 315.0
    assert SolarTerm.SPRING_BEGINS.is_jie
    assert not SolarTerm.WINTER_SOLSTICE.is_jie
    assert SolarTerm.from_multiple(17) is SolarTerm.MAJOR_SNOW
    assert SolarTerm.from_multiple(47) is SolarTerm.INSECTS_AWAKEN


def test_table_span_and_order(table_2023: SolarTermTable):
    assert len(table_2023) == 31
    assert [item.position for item in table_2023] == list(range(31))
    days = [item.julian_day for item in table_2023]
    assert days == sorted(days)
    assert table_2023[0].term is SolarTerm.MAJOR_SNOW
    assert table_2023[0].solar.year == 2022
    assert table_2023[30].term is SolarTerm.INSECTS_AWAKEN
    assert table_2023[30].solar.year == 2024


def test_jie_and_qi_alternate(table_2023: SolarTermTable):
    flags = [item.is_jie for item in table_2023]
    assert flags == [position % 2 == 0 for position in range(31)]
    assert all(item.term.is_jie for item in table_2023.jie)
    assert not any(item.term.is_jie for item in table_2023.qi)
    assert len(table_2023.jie) == 16
    assert len(table_2023.qi) == 15


def test_known_instants(table_2023: SolarTermTable):
    assert str(table_2023[1].solar) == "2022-12-22"
    spring = table_2023.spring_begins(2023)
    assert spring.position == 4
    assert str(spring.solar) == "2023-02-04"
    assert abs(_minutes(spring.solar) - (10 * 60 + 42)) <= 2
    following = table_2023.spring_begins(2024)
    assert following.position == 28
    assert str(following.solar) == "2024-02-04"
    assert [item.position for item in table_2023.find(SolarTerm.MAJOR_SNOW)] == [0, 24]


def test_current_term(table_2023: SolarTermTable):
    assert table_2023.current(SolarDate(2023, 2, 4)).term is SolarTerm.SPRING_BEGINS
    assert table_2023.current(SolarDate(2023, 2, 4), TermKind.QI) is None
    assert table_2023.current(SolarDate(2023, 2, 5)) is None


def test_next_and_previous_terms(table_2023: SolarTermTable):
    morning = SolarDate(2023, 2, 4, 0, 0)
    noon = SolarDate(2023, 2, 4, 12, 0)
    assert table_2023.next_term(morning).term is SolarTerm.SPRING_BEGINS
    assert table_2023.next_term(noon).term is SolarTerm.RAIN_WATER
    assert table_2023.next_term(noon, whole_day=True).term is SolarTerm.SPRING_BEGINS
    assert table_2023.next_term(noon, TermKind.JIE).term is SolarTerm.INSECTS_AWAKEN
    assert table_2023.previous_term(noon).term is SolarTerm.SPRING_BEGINS
    assert table_2023.previous_term(morning).term is SolarTerm.MAJOR_COLD
    assert table_2023.previous_term(morning, whole_day=True).term is SolarTerm.SPRING_BEGINS
    assert table_2023.previous_term(noon, "qi").term is SolarTerm.MAJOR_COLD
    assert table_2023.previous_term(SolarDate(2022, 12, 1)) is None
