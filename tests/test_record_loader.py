"""Tests for record loading and value parsers."""

from datetime import date, timedelta
from decimal import Decimal

import pytest

from rulebook.domain.errors import ValidationError
from rulebook.utils.parsers import parse_amount, parse_date
from rulebook.utils.record_loader import load_records


def test_load_fixture(fixtures_dir):
    result = load_records(fixtures_dir / "records.csv")

    assert result["errors"] == []
    records = result["records"]
    assert len(records) == 6
    assert records[0].id == "t1"
    assert records[0].date == date(2024, 1, 15)
    assert records[0].account_id == "acct_checking"
    assert records[0].tag_ids == ()
    assert records[2].amount == Decimal("-182.40")
    assert records[4].tag_ids == ("fuel", "car")


def test_semicolon_delimiter(tmp_path):
    path = tmp_path / "records.csv"
    path.write_text("Description;Amount\nSTARBUCKS;-4.50\nPEETS;-3.00\n")

    records = load_records(path)["records"]
    assert [r.description for r in records] == ["STARBUCKS", "PEETS"]
    assert records[1].amount == Decimal("-3.00")


def test_bad_rows_are_reported(tmp_path):
    path = tmp_path / "records.csv"
    path.write_text("description,amount,date\nOK,1.00,2024-01-01\nBAD,abc,2024-01-01\nLATE,2.00,someday\n")

    result = load_records(path)
    assert [r.description for r in result["records"]] == ["OK"]
    assert len(result["errors"]) == 2
    assert result["errors"][0].startswith("Row 3:")
    assert result["errors"][1].startswith("Row 4:")


def test_missing_required_column(tmp_path):
    path = tmp_path / "records.csv"
    path.write_text("description,date\nX,2024-01-01\n")
    with pytest.raises(ValidationError, match="amount"):
        load_records(path)


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_records(tmp_path / "nope.csv")


class TestParseAmount:
    """Tests for parse_amount."""

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("12.50", Decimal("12.50")),
            ("-4.5", Decimal("-4.5")),
            ("$1,234.00", Decimal("1234.00")),
            ("(12.50)", Decimal("-12.50")),
            ("  €7 ", Decimal("7")),
        ],
    )
    def test_valid(self, text, expected):
        assert parse_amount(text) == expected

    @pytest.mark.parametrize("text", ["", "   ", "abc", "1.2.3", "nan", "Infinity"])
    def test_invalid(self, text):
        with pytest.raises(ValueError):
            parse_amount(text)


class TestParseDate:
    """Tests for parse_date."""

    def test_iso(self):
        assert parse_date("2024-01-15") == date(2024, 1, 15)

    def test_written_month(self):
        assert parse_date("Jan 15 2024") == date(2024, 1, 15)

    def test_relative(self):
        assert parse_date("today") == date.today()
        assert parse_date("Yesterday") == date.today() - timedelta(days=1)

    def test_invalid(self):
        with pytest.raises(ValueError):
            parse_date("someday soon")
