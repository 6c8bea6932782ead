from __future__ import annotations

import json
import logging
import sys
from dataclasses import dataclass
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

import pytest

from almanac import (
    CalendarFieldError,
    CalendarKind,
    ConversionError,
    FrenchRepublicanDate,
    GregorianDate,
    JulianDay,
    MeeusEphemeris,
    PersianDate,
    Season,
)
from almanac.solar import (
    find_equinox_bracket,
    french_republican_to_jd,
    jd_to_french_republican,
    jd_to_persian,
    local_year_start,
    persian_to_jd,
)
from almanac.tabular import gregorian_to_jd, jd_to_gregorian

EQUINOX_KINDS = [CalendarKind.french_republican, CalendarKind.persian]


@dataclass(frozen=True)
class ShiftedEphemeris:
    """Meeus timing moved by a fixed number of days."""

    shift: float
    base: MeeusEphemeris = MeeusEphemeris()

    def equinox(self, year: int, season: Season) -> float:
        return self.base.equinox(year, season) + self.shift

    def delta_t(self, year: float) -> float:
        return self.base.delta_t(year)

    def equation_of_time(self, jde: float) -> float:
        return self.base.equation_of_time(jde)


@dataclass(frozen=True)
class FrozenEphemeris:
    """Every season of every year starts at the same instant."""

    jde: float

    def equinox(self, year: int, season: Season) -> float:
        return self.jde

    def delta_t(self, year: float) -> float:
        return 0.0

    def equation_of_time(self, jde: float) -> float:
        return 0.0


@pytest.mark.parametrize(
    "date, gregorian",
    [
        (FrenchRepublicanDate(1, 1, 1, 1), GregorianDate(1792, 9, 22)),
        (FrenchRepublicanDate(2, 11, 1, 9), GregorianDate(1794, 7, 27)),
        (FrenchRepublicanDate(234, 1, 1, 1), GregorianDate(2025, 9, 22)),
    ],
)
def test_french_republican_reference_days(
    date: FrenchRepublicanDate, gregorian: GregorianDate
) -> None:
    jd = french_republican_to_jd(date)
    assert jd_to_gregorian(jd) == gregorian
    assert jd_to_french_republican(gregorian_to_jd(gregorian)) == date


def test_french_republican_epoch() -> None:
    assert french_republican_to_jd(FrenchRepublicanDate(1, 1, 1, 1)).value == 2375839.5


def test_french_republican_from_julian_day() -> None:
    assert jd_to_french_republican(JulianDay(2446864.5)) == FrenchRepublicanDate(195, 6, 2, 9)


@pytest.mark.parametrize(
    "date, gregorian",
    [
        (PersianDate(1403, 1, 1), GregorianDate(2024, 3, 20)),
        (PersianDate(1404, 1, 1), GregorianDate(2025, 3, 21)),
        (PersianDate(1405, 1, 1), GregorianDate(2026, 3, 21)),
    ],
)
def test_persian_new_year(date: PersianDate, gregorian: GregorianDate) -> None:
    jd = persian_to_jd(date)
    assert jd_to_gregorian(jd) == gregorian
    assert jd_to_persian(gregorian_to_jd(gregorian)) == date


def test_persian_month_boundaries() -> None:
    start = persian_to_jd(PersianDate(1404, 1, 1)).value
    assert persian_to_jd(PersianDate(1404, 6, 31)).value == start + 185
    assert persian_to_jd(PersianDate(1404, 7, 1)).value == start + 186
    assert persian_to_jd(PersianDate(1404, 12, 1)).value == start + 336


@pytest.mark.parametrize("kind", EQUINOX_KINDS)
def test_bracket_encloses_julian_day(kind: CalendarKind) -> None:
    for jd in range(1_500_000, 2_600_000, 1009):
        value = jd + 0.5
        bracket = find_equinox_bracket(value, kind)
        assert bracket.last_equinox <= value < bracket.next_equinox
        assert bracket.next_equinox - bracket.last_equinox in (365, 366)


def test_bracket_year_index() -> None:
    nowruz = gregorian_to_jd(GregorianDate(2025, 3, 21)).value
    assert find_equinox_bracket(nowruz, CalendarKind.persian).year == 1404
    assert find_equinox_bracket(nowruz - 1, CalendarKind.persian).year == 1403

    vendemiaire = gregorian_to_jd(GregorianDate(2025, 9, 22)).value
    assert find_equinox_bracket(vendemiaire, CalendarKind.french_republican).year == 234
    assert find_equinox_bracket(vendemiaire - 1, CalendarKind.french_republican).year == 233


def test_local_year_start_rounding() -> None:
    paris = local_year_start(CalendarKind.french_republican, 2025)
    tehran = local_year_start(CalendarKind.persian, 2025)
    assert paris % 1 == 0.5
    assert tehran % 1 == 0.0


def test_french_republican_year_round_trip() -> None:
    start = french_republican_to_jd(FrenchRepublicanDate(233, 1, 1, 1)).value
    end = french_republican_to_jd(FrenchRepublicanDate(234, 1, 1, 1)).value
    assert end - start in (365, 366)
    jd = start
    while jd < end:
        date = jd_to_french_republican(JulianDay(jd))
        assert date.year == 233
        assert french_republican_to_jd(date).value == jd
        jd += 1.0


def test_french_republican_complementary_days() -> None:
    start = french_republican_to_jd(FrenchRepublicanDate(233, 1, 1, 1)).value
    first = jd_to_french_republican(JulianDay(start + 360))
    assert first == FrenchRepublicanDate(233, 13, 1, 1)


def test_persian_year_round_trip() -> None:
    start = persian_to_jd(PersianDate(1403, 1, 1)).value
    end = persian_to_jd(PersianDate(1404, 1, 1)).value
    assert end - start in (365, 366)
    jd = start
    while jd < end:
        date = jd_to_persian(JulianDay(jd))
        assert date.year == 1403
        assert persian_to_jd(date).value == jd
        jd += 1.0


def test_ephemeris_is_injectable() -> None:
    shifted = ShiftedEphemeris(shift=1.0)
    jd = persian_to_jd(PersianDate(1404, 1, 1), shifted)
    assert jd_to_gregorian(jd) == GregorianDate(2025, 3, 22)
    assert jd_to_persian(jd, shifted) == PersianDate(1404, 1, 1)


def test_unsettled_search_raises(caplog: pytest.LogCaptureFixture) -> None:
    frozen = FrozenEphemeris(jde=2451544.5)
    with caplog.at_level(logging.ERROR, logger="almanac"):
        with pytest.raises(ConversionError, match="Persian Calendar year start"):
            jd_to_persian(JulianDay(2460755.5), frozen)
    events = [
        json.loads(record.getMessage())["event"]
        for record in caplog.records
        if record.name == "almanac"
    ]
    assert "equinox_undershoot" in events


def _year_length(kind: CalendarKind, first_day) -> float:
    bracket = find_equinox_bracket(first_day.to_julian_day().value, kind)
    return bracket.next_equinox - bracket.last_equinox


def test_sixth_complementary_day_only_in_sextile_years() -> None:
    lengths = {}
    for year in range(200, 220):
        lengths[year] = _year_length(
            CalendarKind.french_republican, FrenchRepublicanDate(year, 1, 1, 1)
        )
        last_day = FrenchRepublicanDate(year, 13, 1, 6)
        if lengths[year] == 366:
            jd = french_republican_to_jd(last_day)
            assert jd_to_french_republican(jd) == last_day
        else:
            with pytest.raises(CalendarFieldError, match="French Republican Calendar"):
                french_republican_to_jd(last_day)
            fifth = FrenchRepublicanDate(year, 13, 1, 5)
            assert jd_to_french_republican(french_republican_to_jd(fifth)) == fifth
    assert set(lengths.values()) == {365, 366}


def test_esfand_30_only_in_leap_years() -> None:
    lengths = {}
    for year in range(1390, 1410):
        lengths[year] = _year_length(CalendarKind.persian, PersianDate(year, 1, 1))
        last_day = PersianDate(year, 12, 30)
        if lengths[year] == 366:
            assert jd_to_persian(persian_to_jd(last_day)) == last_day
        else:
            message = f"Persian Calendar year {year} has 365 days"
            with pytest.raises(CalendarFieldError, match=message):
                persian_to_jd(last_day)
            eve = PersianDate(year, 12, 29)
            assert jd_to_persian(persian_to_jd(eve)) == eve
    assert lengths[1403] == 366
    assert lengths[1404] == 365
    assert set(lengths.values()) == {365, 366}
