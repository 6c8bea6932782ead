from __future__ import annotations

import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

import pytest

from new_year_table import compute_row, compute_rows, format_table, main, parse_year_arguments


@pytest.mark.parametrize(
    "arg, expected",
    [
        ("2025", [2025]),
        ("2024-2026", [2024, 2025, 2026]),
        ("2026,2024-2025,2026", [2026, 2024, 2025]),
        ("-100", [-100]),
        ("-3-1", [-3, -2, -1, 0, 1]),
        (" 1792 , 1793 ", [1792, 1793]),
    ],
)
def test_parse_year_arguments(arg: str, expected: list) -> None:
    assert parse_year_arguments(arg) == expected


@pytest.mark.parametrize("arg", ["", ",", "2026-2024", "year"])
def test_parse_year_arguments_rejects(arg: str) -> None:
    with pytest.raises(ValueError):
        parse_year_arguments(arg)


def test_compute_row_2025() -> None:
    row = compute_row(2025)
    assert row.year == 2025
    assert row.vendemiaire == "2025-09-22"
    assert row.farvardin == "2025-03-21"
    assert row.spring_equinox_tt.startswith("2025-03-20 09:")
    assert row.autumn_equinox_tt.startswith("2025-09-22")


def test_compute_rows_keeps_order() -> None:
    rows = compute_rows([2026, 2024], n_jobs=1)
    assert [row.year for row in rows] == [2026, 2024]
    assert rows[0].farvardin == "2026-03-21"
    assert rows[1].farvardin == "2024-03-20"
    assert compute_rows([]) == []


def test_compute_rows_in_parallel() -> None:
    sequential = compute_rows([2024, 2025], n_jobs=1)
    parallel = compute_rows([2024, 2025], n_jobs=2)
    assert parallel == sequential


def test_main_prints_table(capsys: pytest.CaptureFixture) -> None:
    assert main(["1792", "--jobs", "1"]) == 0
    output = capsys.readouterr().out
    assert "1792-09-22" in output
    assert output.splitlines()[0].split()[0] == "Year"


def test_main_rejects_bad_years(capsys: pytest.CaptureFixture) -> None:
    assert main(["2026-2024"]) == 1
    assert "invalid year argument" in capsys.readouterr().err


def test_format_table_has_row_per_year() -> None:
    rows = compute_rows([2025], n_jobs=1)
    lines = format_table(rows).splitlines()
    assert len(lines) == 3
    assert lines[2].split()[0] == "2025"
