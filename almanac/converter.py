"""Conversion between calendars through the Julian Day.

Every conversion runs ``to_julian_day`` on the source value and then
``from_julian_day`` for the target kind; there are no direct paths between
two calendars.
"""

from __future__ import annotations

from typing import Callable, Dict, Optional

from .astro import Ephemeris
from .calendars import (
    CalendarDate,
    CalendarKind,
    IslamicEra,
    JulianDay,
)
from .errors import UnsupportedCalendarError
from .hebrew import hebrew_to_jd, jd_to_hebrew
from .solar import (
    french_republican_to_jd,
    jd_to_french_republican,
    jd_to_persian,
    persian_to_jd,
)
from .tabular import (
    gregorian_to_jd,
    islamic_to_jd,
    jd_to_gregorian,
    jd_to_islamic,
    jd_to_julian,
    jd_to_maya,
    julian_to_jd,
    maya_to_jd,
)

__all__ = ["convert", "from_julian_day", "to_julian_day"]

ToJulianDay = Callable[[CalendarDate, Optional[Ephemeris]], JulianDay]
FromJulianDay = Callable[[JulianDay, Optional[Ephemeris], IslamicEra], CalendarDate]

_TO_JULIAN_DAY: Dict[CalendarKind, ToJulianDay] = {
    CalendarKind.julian_day: lambda jd, _: jd,
    CalendarKind.gregorian: lambda date, _: gregorian_to_jd(date),
    CalendarKind.julian: lambda date, _: julian_to_jd(date),
    CalendarKind.maya: lambda date, _: maya_to_jd(date),
    CalendarKind.islamic: lambda date, _: islamic_to_jd(date),
    CalendarKind.hebrew: lambda date, _: hebrew_to_jd(date),
    CalendarKind.french_republican: french_republican_to_jd,
    CalendarKind.persian: persian_to_jd,
}

_FROM_JULIAN_DAY: Dict[CalendarKind, FromJulianDay] = {
    CalendarKind.julian_day: lambda jd, _, __: jd,
    CalendarKind.gregorian: lambda jd, _, __: jd_to_gregorian(jd),
    CalendarKind.julian: lambda jd, _, __: jd_to_julian(jd),
    CalendarKind.maya: lambda jd, _, __: jd_to_maya(jd),
    CalendarKind.islamic: lambda jd, _, era: jd_to_islamic(jd, era),
    CalendarKind.hebrew: lambda jd, _, __: jd_to_hebrew(jd),
    CalendarKind.french_republican: lambda jd, ephemeris, _: jd_to_french_republican(jd, ephemeris),
    CalendarKind.persian: lambda jd, ephemeris, _: jd_to_persian(jd, ephemeris),
}


def _kind_of(value: object) -> CalendarKind:
    kind = getattr(type(value), "kind", None)
    if not isinstance(kind, CalendarKind) or kind not in _TO_JULIAN_DAY:
        raise UnsupportedCalendarError(
            f"Unsupported calendar value of type {type(value).__name__}"
        )
    return kind


def _target_kind(kind: object) -> CalendarKind:
    try:
        target = CalendarKind(kind)
    except ValueError as exc:
        raise UnsupportedCalendarError(f"Unsupported calendar kind: {kind!r}") from exc
    if target not in _FROM_JULIAN_DAY:
        raise UnsupportedCalendarError(f"Unsupported calendar kind: {kind!r}")
    return target


def to_julian_day(date: CalendarDate, ephemeris: Optional[Ephemeris] = None) -> JulianDay:
    """Return the Julian Day of *date*.

    Parameters
    ----------
    date:
        Any calendar value from :mod:`almanac.calendars`.
    ephemeris:
        Season timing for the equinox-anchored calendars; defaults to
        :class:`almanac.astro.MeeusEphemeris`.

    Raises
    ------
    UnsupportedCalendarError
        If *date* is not a calendar value.
    ConversionError
        If a bounded search fails to settle.
    """

    return _TO_JULIAN_DAY[_kind_of(date)](date, ephemeris)


def from_julian_day(
    jd: JulianDay,
    kind: CalendarKind,
    ephemeris: Optional[Ephemeris] = None,
    *,
    era: IslamicEra = IslamicEra.civil,
) -> CalendarDate:
    """Build the *kind* date containing *jd*.

    *era* only applies to Islamic dates.
    """

    if not isinstance(jd, JulianDay):
        raise UnsupportedCalendarError(f"Expected a JulianDay, got {type(jd).__name__}")
    return _FROM_JULIAN_DAY[_target_kind(kind)](jd, ephemeris, IslamicEra(era))


def convert(
    date: CalendarDate,
    kind: CalendarKind,
    ephemeris: Optional[Ephemeris] = None,
    *,
    era: IslamicEra = IslamicEra.civil,
) -> CalendarDate:
    """Convert *date* to calendar *kind*, pivoting through the Julian Day."""

    target = _target_kind(kind)
    if _kind_of(date) is target and (
        target is not CalendarKind.islamic or date.era is IslamicEra(era)
    ):
        return date
    return from_julian_day(to_julian_day(date, ephemeris), target, ephemeris, era=era)
