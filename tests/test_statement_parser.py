"""Tests for bank statement parsing."""

from datetime import date
from decimal import Decimal

import pytest

from parishledger.domain.errors import StatementFormatError
from parishledger.domain.statement_parser import StatementParser, extract_reference


def test_extract_reference_strips_bank_suffix():
    assert extract_reference("J SMITH REF JS1234 VIA MOBILE APP") == "JS1234"
    assert extract_reference("M JONES REF MJ5678 VIA ONLINE BANKING") == "MJ5678"
    assert extract_reference("A STRANGER REF XY9999") == "XY9999"


def test_extract_reference_is_case_insensitive():
    assert extract_reference("j smith ref js1234 via mobile app") == "js1234"


def test_extract_reference_without_marker():
    assert extract_reference("CASH DEPOSIT") == ""
    assert extract_reference("") == ""
    assert extract_reference(None) == ""


def test_extract_reference_is_capped():
    description = "PAYER REF " + "A" * 150
    assert len(extract_reference(description)) == 100


def test_parse_file(fixtures_dir):
    result = StatementParser().parse_file(str(fixtures_dir / "hsbc_statement.csv"))

    assert result.total_rows == 5
    assert result.errors == []
    assert len(result.rows) == 5

    first = result.rows[0]
    assert first.date == date(2025, 6, 8)
    assert first.money_in == Decimal("50.00")
    assert first.reference == "JS1234"
    assert first.row_num == 2

    debit = result.rows[3]
    assert debit.money_in is None


def test_parse_uses_reference_column_when_present():
    result = StatementParser().parse_lines([
        "Date,Description,Reference,Money In",
        "08/06/2025,FASTER PAYMENT,JS1234,20.00",
    ])

    assert result.rows[0].reference == "JS1234"


def test_parse_collects_row_errors():
    result = StatementParser().parse_lines([
        "Date,Description,Money In",
        ",NO DATE,10.00",
        "not a date,BAD DATE,10.00",
        "08/06/2025,BAD AMOUNT,ten pounds",
        "08/06/2025,GOOD ROW REF AB12,10.00",
    ])

    assert len(result.rows) == 1
    assert result.total_rows == 4
    assert len(result.errors) == 3
    assert result.errors[0] == "Row 2: Missing date"
    assert result.errors[1].startswith("Row 3:")
    assert result.errors[2].startswith("Row 4:")


def test_parse_semicolon_delimited():
    result = StatementParser().parse_lines([
        "Date;Description;Money In",
        "08/06/2025;J SMITH REF JS1234;15.00",
    ])

    assert result.rows[0].money_in == Decimal("15.00")
    assert result.rows[0].reference == "JS1234"


def test_parse_missing_columns_raises(fixtures_dir):
    with pytest.raises(StatementFormatError) as excinfo:
        StatementParser().parse_file(str(fixtures_dir / "missing_columns.csv"))

    assert "money in" in str(excinfo.value).lower()


def test_parse_empty_file_raises(tmp_path):
    csv_path = tmp_path / "empty.csv"
    csv_path.write_text("", encoding="utf-8")

    with pytest.raises(StatementFormatError):
        StatementParser().parse_file(str(csv_path))


def test_parse_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        StatementParser().parse_file(str(tmp_path / "nope.csv"))
