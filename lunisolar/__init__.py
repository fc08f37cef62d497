"""East-Asian lunisolar calendar with sexagenary pillars."""

from .cache import LunarYearCache
from .calendar import (
    LunarCalendar,
    default_calendar,
    lunar_to_solar,
    set_default_calendar,
    solar_term_table,
    solar_to_lunar,
)
from .config import Settings
from .ephemeris import EphemerisProvider, ErfaEphemeris
from .errors import (
    CalendarError,
    DateOutOfRange,
    EphemerisAcquisitionError,
    EphemerisUnavailable,
    GregorianGapDate,
    InvalidCalendarDate,
    InvalidLunarDate,
)
from .julian import SolarDate, from_julian_day, to_julian_day
from .lunar_date import LunarDate
from .lunar_year import LunarMonth, LunarYear, LunarYearBuilder
from .sexagenary import (
    DaySect,
    FourPillars,
    MonthSect,
    Pillar,
    SectMode,
    YearSect,
    day_pillar,
    four_pillars,
    hour_pillar,
    month_pillar,
    year_pillar,
)
from .spice import SpiceEphemeris
from .terms import SolarTerm, SolarTermInstant, SolarTermTable, TermKind
from .timescale import TimeScale, delta_t_seconds

__version__ = "0.1.0"
