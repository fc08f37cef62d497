from __future__ import annotations

from pathlib import Path

import sys

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

import pytest

from lunisolar import ErfaEphemeris, LunarCalendar, TimeScale


@pytest.fixture(scope="session")
def calendar() -> LunarCalendar:
    """One ERFA-backed calendar (UTC+8) shared by the whole session."""

    return LunarCalendar(ErfaEphemeris(), TimeScale(8.0))
