"""
French Republican and Persian new-year table.

For each Gregorian year prints the autumn equinox (Paris) and the
Gregorian date of 1 Vendémiaire, then the spring equinox (Tehran) and
the Gregorian date of 1 Farvardin. Equinox instants are shown in TT.

Usage:
    python new_year_table.py [year | start-end | y1,y2,...] [--jobs N]
"""
from __future__ import annotations

import argparse
import sys
from dataclasses import dataclass
from typing import List, Optional, Sequence

from astropy.time import Time
from joblib import Parallel, cpu_count, delayed

from almanac import (
    CalendarKind,
    ConversionError,
    FrenchRepublicanDate,
    MeeusEphemeris,
    PersianDate,
    Season,
    convert,
)

# Gregorian year in which year 1 of each calendar began.
FRENCH_REPUBLICAN_OFFSET = 1791
PERSIAN_OFFSET = 621


@dataclass(frozen=True)
class NewYearRow:
    year: int
    autumn_equinox_tt: str
    vendemiaire: str
    spring_equinox_tt: str
    farvardin: str


def _format_tt(jde: float) -> str:
    return Time(jde, format="jd", scale="tt").iso


def _format_gregorian(date) -> str:
    return f"{date.year:04d}-{date.month:02d}-{date.day:02d}"


def compute_row(year: int, ephemeris: Optional[MeeusEphemeris] = None) -> NewYearRow:
    ephemeris = ephemeris or MeeusEphemeris()
    vendemiaire = FrenchRepublicanDate(year - FRENCH_REPUBLICAN_OFFSET, 1, 1, 1)
    farvardin = PersianDate(year - PERSIAN_OFFSET, 1, 1)
    return NewYearRow(
        year=year,
        autumn_equinox_tt=_format_tt(ephemeris.equinox(year, Season.autumn)),
        vendemiaire=_format_gregorian(convert(vendemiaire, CalendarKind.gregorian, ephemeris)),
        spring_equinox_tt=_format_tt(ephemeris.equinox(year, Season.spring)),
        farvardin=_format_gregorian(convert(farvardin, CalendarKind.gregorian, ephemeris)),
    )


def compute_rows(years: Sequence[int], n_jobs: Optional[int] = None) -> List[NewYearRow]:
    """Compute one row per year, in parallel when several workers are available."""

    if not years:
        return []
    if n_jobs is None:
        n_jobs = max(1, min(cpu_count(), len(years)))
    if n_jobs == 1:
        return [compute_row(year) for year in years]
    return Parallel(n_jobs=n_jobs)(delayed(compute_row)(year) for year in years)


def parse_year_arguments(arg: str) -> List[int]:
    """Parse a single year, a range and comma separated lists, keeping input order."""

    years: List[int] = []
    parts = [p.strip() for p in arg.split(",") if p.strip()]
    if not parts:
        raise ValueError("empty year argument")

    for part in parts:
        # A leading minus is a negative year, not a range separator.
        if "-" in part[1:]:
            start_str, end_str = part[1:].split("-", 1)
            start = int(part[0] + start_str)
            end = int(end_str)
            if end < start:
                raise ValueError(f"range {part} ends before it starts")
            years.extend(range(start, end + 1))
        else:
            years.append(int(part))

    seen = set()
    ordered_years: List[int] = []
    for year in years:
        if year not in seen:
            ordered_years.append(year)
            seen.add(year)
    return ordered_years


def format_table(rows: Sequence[NewYearRow]) -> str:
    header = f"{'Year':>6}  {'Autumn equinox (TT)':<23}  {'1 Vendemiaire':<13}  {'Spring equinox (TT)':<23}  {'1 Farvardin':<11}"
    lines = [header, "-" * len(header)]
    for row in rows:
        lines.append(
            f"{row.year:>6}  {row.autumn_equinox_tt:<23}  {row.vendemiaire:<13}  "
            f"{row.spring_equinox_tt:<23}  {row.farvardin:<11}"
        )
    return "\n".join(lines)


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
    parser.add_argument("years", nargs="?", default="2025", help="year, start-end or y1,y2,...")
    parser.add_argument("--jobs", type=int, default=None, help="worker processes (default: CPUs)")
    ns = parser.parse_args(argv)

    try:
        years = parse_year_arguments(ns.years)
    except ValueError as exc:
        print(f"invalid year argument: {exc}", file=sys.stderr)
        return 1

    try:
        rows = compute_rows(years, ns.jobs)
    except ConversionError as exc:
        print(f"conversion failed: {exc}", file=sys.stderr)
        return 1
    print(format_table(rows))
    return 0


if __name__ == "__main__":
    sys.exit(main())
