"""Hebrew lunisolar calendar: molad delays, year types and month lengths.

Months are numbered from Nisan (1); the civil year begins with Tishrei (7)
and leap years insert a thirteenth month (Adar II).
"""

from __future__ import annotations

import math
from enum import Enum

from .calendars import CALENDAR_SPECS, CalendarKind, HebrewDate, JulianDay
from .errors import conversion_failure

__all__ = [
    "HebrewYearType",
    "delay_hebrew_year",
    "delay_hebrew_year_adjacent",
    "hebrew_leap",
    "hebrew_month_days",
    "hebrew_to_jd",
    "hebrew_year_days",
    "hebrew_year_months",
    "hebrew_year_type",
    "jd_to_hebrew",
]

TISHREI = 7
MAX_YEAR_STEPS = 5
MAX_MONTH_STEPS = 14


class HebrewYearType(str, Enum):
    """Length class of a Hebrew year (353/383, 354/384 or 355/385 days)."""

    deficient = "deficient"
    regular = "regular"
    complete = "complete"


def _epoch() -> float:
    return CALENDAR_SPECS[CalendarKind.hebrew].epoch


def hebrew_leap(year: int) -> bool:
    return (7 * year + 1) % 19 < 7


def hebrew_year_months(year: int) -> int:
    return 13 if hebrew_leap(year) else 12


def delay_hebrew_year(year: int) -> int:
    """Days from the epoch to Tishrei 1, postponed off Sunday, Wednesday and Friday."""

    months = (235 * year - 234) // 19
    parts = 12084 + 13753 * months
    day = months * 29 + parts // 25920
    if (3 * (day + 1)) % 7 < 3:
        day += 1
    return day


def delay_hebrew_year_adjacent(year: int) -> int:
    """Extra postponement so that neighbouring years keep legal lengths."""

    last = delay_hebrew_year(year - 1)
    present = delay_hebrew_year(year)
    following = delay_hebrew_year(year + 1)
    if following - present == 356:
        return 2
    if present - last == 382:
        return 1
    return 0


def _new_year(year: int) -> int:
    return delay_hebrew_year(year) + delay_hebrew_year_adjacent(year)


def hebrew_year_days(year: int) -> int:
    return _new_year(year + 1) - _new_year(year)


def hebrew_year_type(year: int) -> HebrewYearType:
    remainder = hebrew_year_days(year) % 10
    if remainder == 3:
        return HebrewYearType.deficient
    if remainder == 5:
        return HebrewYearType.complete
    return HebrewYearType.regular


def hebrew_month_days(year: int, month: int) -> int:
    if month in (2, 4, 6, 10, 13):
        return 29
    if month == 12 and not hebrew_leap(year):
        return 29
    if month == 8 and hebrew_year_type(year) is not HebrewYearType.complete:
        return 29
    if month == 9 and hebrew_year_type(year) is HebrewYearType.deficient:
        return 29
    return 30


def _day_number(year: int, month: int, day: int) -> float:
    jd = _epoch() + _new_year(year) + day + 1
    if month < TISHREI:
        months = range(TISHREI, hebrew_year_months(year) + 1)
        jd += sum(hebrew_month_days(year, m) for m in months)
        jd += sum(hebrew_month_days(year, m) for m in range(1, month))
    else:
        jd += sum(hebrew_month_days(year, m) for m in range(TISHREI, month))
    return jd


def hebrew_to_jd(date: HebrewDate) -> JulianDay:
    return JulianDay(_day_number(date.year, date.month, date.day))


def jd_to_hebrew(jd: JulianDay) -> HebrewDate:
    jday = jd.at_midnight().value
    year = math.floor((jday - _epoch()) * 98496.0 / 35975351.0) - 1

    for _ in range(MAX_YEAR_STEPS):
        if jday < _day_number(year + 1, TISHREI, 1):
            break
        year += 1
    else:
        raise conversion_failure(
            "hebrew_year_unsettled",
            f"Hebrew year search did not settle for JD {jd.value}",
            julian_day=jd.value,
        )

    month = TISHREI if jday < _day_number(year, 1, 1) else 1
    for _ in range(MAX_MONTH_STEPS):
        if jday <= _day_number(year, month, hebrew_month_days(year, month)):
            break
        month += 1
    else:
        raise conversion_failure(
            "hebrew_month_unsettled",
            f"Hebrew month search did not settle for JD {jd.value}",
            julian_day=jd.value,
            year=year,
        )

    day = int(jday - _day_number(year, month, 1)) + 1
    return HebrewDate(year, month, day)
