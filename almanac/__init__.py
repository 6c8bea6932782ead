"""Calendar conversion through the Julian Day."""

from .astro import Ephemeris, EphemerisError, MeeusEphemeris, Season, SpiceEphemeris
from .calendars import (
    CalendarKind,
    FrenchRepublicanDate,
    GregorianDate,
    HebrewDate,
    IslamicDate,
    IslamicEra,
    JulianDate,
    JulianDay,
    MayaDate,
    PersianDate,
)
from .converter import convert, from_julian_day, to_julian_day
from .errors import CalendarFieldError, ConversionError, UnsupportedCalendarError

__all__ = [
    "CalendarFieldError",
    "CalendarKind",
    "ConversionError",
    "Ephemeris",
    "EphemerisError",
    "FrenchRepublicanDate",
    "GregorianDate",
    "HebrewDate",
    "IslamicDate",
    "IslamicEra",
    "JulianDate",
    "JulianDay",
    "MayaDate",
    "MeeusEphemeris",
    "PersianDate",
    "Season",
    "SpiceEphemeris",
    "UnsupportedCalendarError",
    "convert",
    "from_julian_day",
    "to_julian_day",
]
