"""Equinox-anchored calendars: French Republican (Paris) and Persian (Tehran).

Both calendars start their year on the day of an equinox as observed at a
reference meridian. :func:`find_equinox_bracket` locates the pair of local
year starts surrounding a Julian day; the converters work from there.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Union

from .astro import TROPICAL_YEAR, Ephemeris, MeeusEphemeris, Season
from .calendars import (
    CALENDAR_SPECS,
    CalendarKind,
    FrenchRepublicanDate,
    JulianDay,
    PersianDate,
)
from .errors import CalendarFieldError, conversion_failure
from .tabular import jd_to_gregorian

__all__ = [
    "DEFAULT_EPHEMERIS",
    "EQUINOX_RULES",
    "EquinoxBracket",
    "EquinoxRule",
    "find_equinox_bracket",
    "french_republican_to_jd",
    "jd_to_french_republican",
    "jd_to_persian",
    "local_year_start",
    "persian_to_jd",
]

DEFAULT_EPHEMERIS: Ephemeris = MeeusEphemeris()

MAX_SEARCH_STEPS = 8
MAX_YEAR_PASSES = 4


@dataclass(frozen=True)
class EquinoxRule:
    """How a calendar turns an equinox instant into the first day of its year."""

    season: Season
    longitude_offset: float
    round_day: Callable[[float], float]


def _paris_midnight(jd: float) -> float:
    return math.floor(jd - 0.5) + 0.5


EQUINOX_RULES: Dict[CalendarKind, EquinoxRule] = {
    # Paris Observatory, 2h20m15s east of Greenwich.
    CalendarKind.french_republican: EquinoxRule(
        season=Season.autumn,
        longitude_offset=(2.0 + 20.0 / 60.0 + 15.0 / 3600.0) / 360.0,
        round_day=_paris_midnight,
    ),
    # Tehran, 52.5 degrees east.
    CalendarKind.persian: EquinoxRule(
        season=Season.spring,
        longitude_offset=52.5 / 360.0,
        round_day=math.floor,
    ),
}


@dataclass(frozen=True)
class EquinoxBracket:
    """Year index and local year starts with ``last_equinox <= jd < next_equinox``."""

    year: int
    last_equinox: float
    next_equinox: float


def local_year_start(kind: CalendarKind, year: int, ephemeris: Optional[Ephemeris] = None) -> float:
    """Return the local day on which the equinox of Gregorian *year* falls."""

    ephemeris = ephemeris or DEFAULT_EPHEMERIS
    rule = EQUINOX_RULES[kind]
    jde = ephemeris.equinox(year, rule.season)
    jd_ut = jde - ephemeris.delta_t(year) / 86400.0
    apparent = jd_ut + ephemeris.equation_of_time(jde)
    return float(rule.round_day(apparent + rule.longitude_offset))


def find_equinox_bracket(
    jd: float,
    kind: CalendarKind,
    ephemeris: Optional[Ephemeris] = None,
) -> EquinoxBracket:
    """Find the local equinoxes that enclose *jd* for calendar *kind*.

    The search seeds two Gregorian years early, steps back while the seed
    overshoots and then forward until *jd* falls inside the bracket. Both
    phases are capped since consecutive equinoxes are a tropical year apart.
    """

    guess = jd_to_gregorian(JulianDay(jd)).year - 2
    last = local_year_start(kind, guess, ephemeris)
    for _ in range(MAX_SEARCH_STEPS):
        if last <= jd:
            break
        guess -= 1
        last = local_year_start(kind, guess, ephemeris)
    else:
        raise conversion_failure(
            "equinox_overshoot",
            f"No {CALENDAR_SPECS[kind].name} year start found before JD {jd}",
            julian_day=jd,
        )

    following = local_year_start(kind, guess + 1, ephemeris)
    for _ in range(MAX_SEARCH_STEPS):
        if jd < following:
            break
        guess += 1
        last, following = following, local_year_start(kind, guess + 1, ephemeris)
    else:
        raise conversion_failure(
            "equinox_undershoot",
            f"No {CALENDAR_SPECS[kind].name} year start found after JD {jd}",
            julian_day=jd,
        )

    elapsed = (last - CALENDAR_SPECS[kind].epoch) / TROPICAL_YEAR
    return EquinoxBracket(math.floor(elapsed + 1 + 0.5), last, following)


def _year_bracket(
    kind: CalendarKind,
    year: int,
    ephemeris: Optional[Ephemeris],
    epoch_shift: float = 0.0,
) -> EquinoxBracket:
    guess = CALENDAR_SPECS[kind].epoch + epoch_shift + TROPICAL_YEAR * (year - 2)
    bracket = None
    for _ in range(MAX_YEAR_PASSES):
        bracket = find_equinox_bracket(guess, kind, ephemeris)
        if bracket.year >= year:
            break
        guess = bracket.last_equinox + TROPICAL_YEAR + 2
    if bracket is None or bracket.year != year:
        raise conversion_failure(
            "year_start_unsettled",
            f"Could not locate the start of {CALENDAR_SPECS[kind].name} year {year}",
            year=year,
        )
    return bracket


def _check_within_year(
    kind: CalendarKind,
    date: Union[FrenchRepublicanDate, PersianDate],
    jd: float,
    bracket: EquinoxBracket,
) -> None:
    if jd >= bracket.next_equinox:
        raise CalendarFieldError(
            f"{CALENDAR_SPECS[kind].name} year {date.year} has "
            f"{int(bracket.next_equinox - bracket.last_equinox)} days; {date} does not exist"
        )


def french_republican_to_jd(
    date: FrenchRepublicanDate, ephemeris: Optional[Ephemeris] = None
) -> JulianDay:
    bracket = _year_bracket(CalendarKind.french_republican, date.year, ephemeris)
    jd = (
        bracket.last_equinox
        + 30 * (date.month - 1)
        + 10 * (date.week - 1)
        + (date.day - 1)
    )
    _check_within_year(CalendarKind.french_republican, date, jd, bracket)
    return JulianDay(jd)


def jd_to_french_republican(
    jd: JulianDay, ephemeris: Optional[Ephemeris] = None
) -> FrenchRepublicanDate:
    jday = jd.at_midnight().value
    bracket = find_equinox_bracket(jday, CalendarKind.french_republican, ephemeris)
    elapsed = jday - bracket.last_equinox
    month = math.floor(elapsed / 30) + 1
    in_month = elapsed % 30
    week = math.floor(in_month / 10) + 1
    day = int(in_month % 10) + 1

    if day > 10:
        day -= 12
        week = 1
        month = 13
    if month == 13:
        week = 1
        if day > 6:
            day = 1
    return FrenchRepublicanDate(bracket.year, month, week, day)


def _persian_month_offset(month: int) -> int:
    return (month - 1) * 31 if month <= 7 else (month - 1) * 30 + 6


def persian_to_jd(date: PersianDate, ephemeris: Optional[Ephemeris] = None) -> JulianDay:
    bracket = _year_bracket(CalendarKind.persian, date.year, ephemeris, epoch_shift=-1)
    jd = bracket.last_equinox + _persian_month_offset(date.month) + (date.day - 1)
    _check_within_year(CalendarKind.persian, date, jd, bracket)
    return JulianDay(jd + 0.5)


def jd_to_persian(jd: JulianDay, ephemeris: Optional[Ephemeris] = None) -> PersianDate:
    jday = jd.at_midnight().value
    bracket = find_equinox_bracket(jday, CalendarKind.persian, ephemeris)
    year_day = math.floor(jday) - math.floor(bracket.last_equinox) + 1
    if year_day <= 186:
        month = math.ceil(year_day / 31)
    else:
        month = math.ceil((year_day - 6) / 30)
    day = year_day - _persian_month_offset(month)
    return PersianDate(bracket.year, month, day)
