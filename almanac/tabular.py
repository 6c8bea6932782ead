"""Closed-form converters: Gregorian, Julian, Maya Long Count and tabular Islamic."""

from __future__ import annotations

import math

from .calendars import (
    CALENDAR_SPECS,
    ISLAMIC_ERA_OFFSETS,
    CalendarKind,
    GregorianDate,
    IslamicDate,
    IslamicEra,
    JulianDate,
    JulianDay,
    MayaDate,
    islamic_month_days,
)
from .errors import conversion_failure

__all__ = [
    "MAYA_PLACE_VALUES",
    "gregorian_to_jd",
    "islamic_to_jd",
    "jd_to_gregorian",
    "jd_to_islamic",
    "jd_to_julian",
    "jd_to_maya",
    "julian_to_jd",
    "maya_to_jd",
]

# Days per baktun, katun, tun, uinal and kin.
MAYA_PLACE_VALUES = (144000, 7200, 360, 20, 1)

ISLAMIC_MAX_CORRECTIONS = 3


def gregorian_to_jd(date: GregorianDate) -> JulianDay:
    year, month = date.year, date.month
    if month <= 2:
        year -= 1
        month += 12
    a = year // 100
    b = 2 - a + a // 4
    jd = (
        b
        + date.day
        + math.floor(365.25 * (year + 4716))
        + math.floor(30.6001 * (month + 1))
        - 1524.5
    )
    return JulianDay(jd)


def jd_to_gregorian(jd: JulianDay) -> GregorianDate:
    """Richards' integer algorithm for the proleptic Gregorian calendar."""

    j = math.floor(jd.value + 0.5)
    f = j + 1401 + (((4 * j + 274277) // 146097) * 3) // 4 - 38
    e = 4 * f + 3
    g = (e % 1461) // 4
    h = 5 * g + 2
    day = (h % 153) // 5 + 1
    month = (h // 153 + 2) % 12 + 1
    year = e // 1461 - 4716 + (12 + 2 - month) // 12
    return GregorianDate(year, month, day)


def julian_to_jd(date: JulianDate) -> JulianDay:
    year, month = date.year, date.month
    if year < 1:
        year += 1
    if month <= 2:
        year -= 1
        month += 12
    jd = (
        math.floor(365.25 * (year + 4716))
        + math.floor(30.6001 * (month + 1))
        + date.day
        - 1524.5
    )
    return JulianDay(jd)


def jd_to_julian(jd: JulianDay) -> JulianDate:
    a = math.floor(jd.value + 0.5)
    b = a + 1524
    c = math.floor((b - 122.1) / 365.25)
    d = math.floor(365.25 * c)
    e = math.floor((b - d) / 30.6001)

    month = e - 1 if e < 14 else e - 13
    year = c - 4716 if month > 2 else c - 4715
    day = b - d - math.floor(30.6001 * e)
    if year < 1:
        year -= 1
    return JulianDate(year, month, day)


def maya_to_jd(date: MayaDate) -> JulianDay:
    places = (date.baktun, date.katun, date.tun, date.uinal, date.kin)
    count = sum(place * weight for place, weight in zip(places, MAYA_PLACE_VALUES))
    return JulianDay(CALENDAR_SPECS[CalendarKind.maya].epoch + count)


def jd_to_maya(jd: JulianDay) -> MayaDate:
    remainder = int(jd.at_midnight().value - CALENDAR_SPECS[CalendarKind.maya].epoch)
    places = []
    for weight in MAYA_PLACE_VALUES:
        place, remainder = divmod(remainder, weight)
        places.append(place)
    return MayaDate(*places)


def _islamic_epoch(era: IslamicEra) -> float:
    return CALENDAR_SPECS[CalendarKind.islamic].epoch - ISLAMIC_ERA_OFFSETS[era]


def _islamic_day_number(year: int, month: int, day: int, era: IslamicEra) -> float:
    return (
        day
        + math.ceil(29.5 * (month - 1))
        + (year - 1) * 354
        + (3 + 11 * year) // 30
        + _islamic_epoch(era)
        - 1
    )


def islamic_to_jd(date: IslamicDate) -> JulianDay:
    return JulianDay(_islamic_day_number(date.year, date.month, date.day, date.era))


def jd_to_islamic(jd: JulianDay, era: IslamicEra = IslamicEra.civil) -> IslamicDate:
    """Estimate year and month, then correct the month from the day residual.

    The density estimate can land a month away from the answer near year
    ends; each correction pass moves one month and re-derives the residual.
    """

    jday = jd.at_midnight().value
    year = math.floor((30 * (jday - _islamic_epoch(era)) + 10646) / 10631)
    year_start = _islamic_day_number(year, 1, 1, era)
    month = min(12, math.ceil((jday - (29 + year_start)) / 29.5) + 1)
    month = max(1, month)

    for _ in range(ISLAMIC_MAX_CORRECTIONS + 1):
        day = int(jday - _islamic_day_number(year, month, 1, era)) + 1
        if day < 1:
            year, month = (year - 1, 12) if month == 1 else (year, month - 1)
        elif day > islamic_month_days(year, month):
            year, month = (year + 1, 1) if month == 12 else (year, month + 1)
        else:
            return IslamicDate(year, month, day, era)

    raise conversion_failure(
        "islamic_month_unsettled",
        f"Islamic month estimate did not settle for JD {jd.value}",
        julian_day=jd.value,
        era=era.value,
    )
