"""Immutable date values for every supported calendar.

Each value carries a ``kind`` tag from :class:`CalendarKind`; the converter
dispatches on that tag. Field validation happens at construction time and
raises :class:`CalendarFieldError`; nothing is silently clamped.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, ClassVar, Dict, Optional, Union

from .errors import CalendarFieldError

if TYPE_CHECKING:  # pragma: no cover
    from .astro import Ephemeris

__all__ = [
    "CALENDAR_SPECS",
    "CalendarDate",
    "CalendarFieldError",
    "CalendarKind",
    "CalendarSpec",
    "FrenchRepublicanDate",
    "GregorianDate",
    "HebrewDate",
    "IslamicDate",
    "IslamicEra",
    "JulianDate",
    "JulianDay",
    "MayaDate",
    "PersianDate",
]


class CalendarKind(str, Enum):
    """Enumeration of supported calendars."""

    julian_day = "julian_day"
    gregorian = "gregorian"
    julian = "julian"
    maya = "maya"
    islamic = "islamic"
    hebrew = "hebrew"
    french_republican = "french_republican"
    persian = "persian"


class IslamicEra(str, Enum):
    """Epoch convention for the tabular Islamic calendar."""

    civil = "civil"
    astronomical = "astronomical"


@dataclass(frozen=True)
class CalendarSpec:
    """Static description of a calendar kind."""

    name: str
    epoch: Optional[float] = None


CALENDAR_SPECS: Dict[CalendarKind, CalendarSpec] = {
    CalendarKind.julian_day: CalendarSpec("Julian Day"),
    CalendarKind.gregorian: CalendarSpec("Gregorian Calendar"),
    CalendarKind.julian: CalendarSpec("Julian Calendar"),
    CalendarKind.maya: CalendarSpec("Maya Long Count", epoch=584282.5),
    CalendarKind.islamic: CalendarSpec("Islamic Calendar", epoch=1948439.5),
    CalendarKind.hebrew: CalendarSpec("Hebrew Calendar", epoch=347995.5),
    CalendarKind.french_republican: CalendarSpec("French Republican Calendar", epoch=2375839.5),
    CalendarKind.persian: CalendarSpec("Persian Calendar", epoch=1948320.5),
}

# Days subtracted from the Islamic epoch for each era.
ISLAMIC_ERA_OFFSETS: Dict[IslamicEra, int] = {
    IslamicEra.civil: 0,
    IslamicEra.astronomical: 1,
}

_GREGORIAN_MONTH_LENGTHS = (31, 28, 31, 30, 31, 30, 31, 31, 30, 31, 30, 31)


def _check_range(calendar: str, name: str, value: int, low: int, high: int) -> None:
    if not low <= value <= high:
        raise CalendarFieldError(
            f"{calendar} {name} must be in {low}..{high}, got {value}"
        )


def gregorian_leap(year: int) -> bool:
    return year % 4 == 0 and (year % 100 != 0 or year % 400 == 0)


def julian_leap(year: int) -> bool:
    # Year -1 (1 BC) is the leap year preceding AD 4.
    astronomical = year + 1 if year < 0 else year
    return astronomical % 4 == 0


def islamic_leap(year: int) -> bool:
    return (14 + 11 * year) % 30 < 11


def islamic_month_days(year: int, month: int) -> int:
    if month % 2 == 1 or (month == 12 and islamic_leap(year)):
        return 30
    return 29


class _Convertible:
    """Pivot helpers shared by every date value."""

    kind: ClassVar[CalendarKind]

    def to_julian_day(self, ephemeris: Optional["Ephemeris"] = None) -> "JulianDay":
        from .converter import to_julian_day

        return to_julian_day(self, ephemeris)

    @classmethod
    def from_julian_day(cls, jd: "JulianDay", ephemeris: Optional["Ephemeris"] = None, **options):
        from .converter import from_julian_day

        return from_julian_day(jd, cls.kind, ephemeris, **options)


@dataclass(frozen=True)
class JulianDay(_Convertible):
    """Continuous day count; whole values fall at noon, ``.5`` at midnight."""

    kind: ClassVar[CalendarKind] = CalendarKind.julian_day

    value: float

    def __post_init__(self) -> None:
        if not math.isfinite(self.value):
            raise CalendarFieldError(f"Julian day must be finite, got {self.value}")

    def at_midnight(self) -> "JulianDay":
        """Return the midnight that starts this civil day."""

        return JulianDay(math.floor(self.value - 0.5) + 0.5)


@dataclass(frozen=True)
class GregorianDate(_Convertible):
    """Proleptic Gregorian date with astronomical year numbering."""

    kind: ClassVar[CalendarKind] = CalendarKind.gregorian

    year: int
    month: int
    day: int

    def __post_init__(self) -> None:
        _check_range("Gregorian", "month", self.month, 1, 12)
        length = _GREGORIAN_MONTH_LENGTHS[self.month - 1]
        if self.month == 2 and gregorian_leap(self.year):
            length += 1
        _check_range("Gregorian", "day", self.day, 1, length)


@dataclass(frozen=True)
class JulianDate(_Convertible):
    """Proleptic Julian date; there is no year zero, 1 BC is year -1."""

    kind: ClassVar[CalendarKind] = CalendarKind.julian

    year: int
    month: int
    day: int

    def __post_init__(self) -> None:
        if self.year == 0:
            raise CalendarFieldError("Julian calendar has no year 0")
        _check_range("Julian", "month", self.month, 1, 12)
        length = _GREGORIAN_MONTH_LENGTHS[self.month - 1]
        if self.month == 2 and julian_leap(self.year):
            length += 1
        _check_range("Julian", "day", self.day, 1, length)


@dataclass(frozen=True)
class MayaDate(_Convertible):
    """Long Count date; the baktun is unbounded and negative before the epoch."""

    kind: ClassVar[CalendarKind] = CalendarKind.maya

    baktun: int
    katun: int
    tun: int
    uinal: int
    kin: int

    def __post_init__(self) -> None:
        _check_range("Maya", "katun", self.katun, 0, 19)
        _check_range("Maya", "tun", self.tun, 0, 19)
        _check_range("Maya", "uinal", self.uinal, 0, 17)
        _check_range("Maya", "kin", self.kin, 0, 19)


@dataclass(frozen=True)
class IslamicDate(_Convertible):
    """Tabular Islamic date on the 30-year leap cycle."""

    kind: ClassVar[CalendarKind] = CalendarKind.islamic

    year: int
    month: int
    day: int
    era: IslamicEra = IslamicEra.civil

    def __post_init__(self) -> None:
        _check_range("Islamic", "month", self.month, 1, 12)
        _check_range("Islamic", "day", self.day, 1, islamic_month_days(self.year, self.month))
        object.__setattr__(self, "era", IslamicEra(self.era))


@dataclass(frozen=True)
class HebrewDate(_Convertible):
    """Hebrew date, months numbered from Nisan (1); Tishrei is month 7.

    Years before 1 extend the calendar proleptically.
    """

    kind: ClassVar[CalendarKind] = CalendarKind.hebrew

    year: int
    month: int
    day: int

    def __post_init__(self) -> None:
        from .hebrew import hebrew_month_days, hebrew_year_months

        _check_range("Hebrew", "month", self.month, 1, hebrew_year_months(self.year))
        _check_range("Hebrew", "day", self.day, 1, hebrew_month_days(self.year, self.month))


@dataclass(frozen=True)
class FrenchRepublicanDate(_Convertible):
    """French Republican date counted in décades (10-day weeks).

    Month 13 holds the five or six complementary days and has a single week.
    """

    kind: ClassVar[CalendarKind] = CalendarKind.french_republican

    year: int
    month: int
    week: int
    day: int

    def __post_init__(self) -> None:
        _check_range("French Republican", "month", self.month, 1, 13)
        if self.month == 13:
            _check_range("French Republican", "week", self.week, 1, 1)
            _check_range("French Republican", "day", self.day, 1, 6)
        else:
            _check_range("French Republican", "week", self.week, 1, 3)
            _check_range("French Republican", "day", self.day, 1, 10)

    @classmethod
    def from_day_of_month(cls, year: int, month: int, day: int) -> "FrenchRepublicanDate":
        """Build a date from the long form day of month (1..30)."""

        return cls(year, month, (day - 1) // 10 + 1, (day - 1) % 10 + 1)

    @property
    def day_of_month(self) -> int:
        return (self.week - 1) * 10 + self.day


@dataclass(frozen=True)
class PersianDate(_Convertible):
    """Astronomical Solar Hijri date; months 1-6 have 31 days, the rest 30."""

    kind: ClassVar[CalendarKind] = CalendarKind.persian

    year: int
    month: int
    day: int

    def __post_init__(self) -> None:
        _check_range("Persian", "month", self.month, 1, 12)
        _check_range("Persian", "day", self.day, 1, 31 if self.month <= 6 else 30)


CalendarDate = Union[
    JulianDay,
    GregorianDate,
    JulianDate,
    MayaDate,
    IslamicDate,
    HebrewDate,
    FrenchRepublicanDate,
    PersianDate,
]

DATE_TYPES: Dict[CalendarKind, type] = {
    date_type.kind: date_type
    for date_type in (
        JulianDay,
        GregorianDate,
        JulianDate,
        MayaDate,
        IslamicDate,
        HebrewDate,
        FrenchRepublicanDate,
        PersianDate,
    )
}
