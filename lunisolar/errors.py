"""Exception hierarchy for the lunisolar calendar engine."""

from __future__ import annotations


class CalendarError(ValueError):
    """Base class for rejected calendar input."""


class InvalidCalendarDate(CalendarError):
    """Raised for solar fields out of range or dates that never existed."""


class DateOutOfRange(CalendarError):
    """Raised when a date lies outside the years the engine supports."""


class GregorianGapDate(InvalidCalendarDate, DateOutOfRange):
    """Raised for 1582-10-05 .. 1582-10-14, skipped by the Gregorian reform."""


class InvalidLunarDate(CalendarError):
    """Raised when a lunar year has no such month, leap month or day."""


class EphemerisUnavailable(RuntimeError):
    """Raised when the astronomical provider cannot produce an instant."""


class EphemerisAcquisitionError(EphemerisUnavailable):
    """Raised when an ephemeris kernel cannot be located or downloaded."""


__all__ = [
    "CalendarError",
    "InvalidCalendarDate",
    "DateOutOfRange",
    "GregorianGapDate",
    "InvalidLunarDate",
    "EphemerisUnavailable",
    "EphemerisAcquisitionError",
]
