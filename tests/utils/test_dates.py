"""Tests for ledger date helpers."""

from datetime import date

import pytest

from app.utils.dates import (
    end_of_period,
    is_year_month,
    one_year_before,
    parse_ledger_date,
    year_month,
)

pytestmark = pytest.mark.unit


class TestParseLedgerDate:
    """Tests for ledger date validation."""

    @pytest.mark.parametrize("value", ["2024-02-29", "2024-02", "1999-12-31"])
    def test_valid_dates_pass_through(self, value: str) -> None:
        assert parse_ledger_date(value) == value

    def test_surrounding_whitespace_is_stripped(self) -> None:
        assert parse_ledger_date(" 2024-03 ") == "2024-03"

    @pytest.mark.parametrize(
        "value",
        ["2023-02-29", "2024-13", "2024-00-10", "2024/01/31", "24-01-31", "2024-1-31", ""],
    )
    def test_invalid_dates_are_rejected(self, value: str) -> None:
        with pytest.raises(ValueError):
            parse_ledger_date(value)

    def test_non_string_is_rejected(self) -> None:
        with pytest.raises(ValueError):
            parse_ledger_date(20240131)  # type: ignore[arg-type]


class TestPeriods:
    """Tests for year-month handling."""

    def test_is_year_month(self) -> None:
        assert is_year_month("2024-01")
        assert not is_year_month("2024-01-31")

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("2024-02", "2024-02-29"),
            ("2023-02", "2023-02-28"),
            ("2024-04", "2024-04-30"),
            ("2024-12", "2024-12-31"),
            ("2024-02-10", "2024-02-10"),
        ],
    )
    def test_end_of_period(self, value: str, expected: str) -> None:
        assert end_of_period(value) == expected

    def test_year_month_sorts_before_its_days(self) -> None:
        assert "2024-03" < "2024-03-01" < "2024-03-31" < "2024-04"

    def test_year_month_format(self) -> None:
        assert year_month(date(2024, 7, 4)) == "2024-07"

    def test_one_year_before(self) -> None:
        assert one_year_before(date(2025, 6, 15)) == date(2024, 6, 15)

    def test_one_year_before_leap_day(self) -> None:
        assert one_year_before(date(2024, 2, 29)) == date(2023, 2, 28)
