from datetime import date, datetime
from decimal import Decimal

import pytest

from statement_ingest.services.errors import VanParseError
from statement_ingest.services.van_parser import COLUMNS, parse_van_file


def test_parse_van_file(tmp_path, van_row, van_csv):
    path = tmp_path / "credits.csv"
    path.write_text(van_csv([van_row(), van_row(**{"Amount (INR)": "1,250.50", "Remitter Name": "  Bob  "})]))

    first, second = parse_van_file(path)

    assert first.line_no == 2
    assert first.main_account_number == "50200012345678"
    assert first.virtual_account_number == "VAN0001"
    assert first.transaction_date == date(2024, 1, 2)
    assert first.amount == Decimal("1500.00")
    assert first.date_time_of_credit == datetime(2024, 1, 2, 10, 15, 0)
    assert first.remitter_vpa is None
    assert second.line_no == 3
    assert second.amount == Decimal("1250.50")
    assert second.remitter_name == "Bob"


def test_columns_matched_by_header_name(tmp_path, van_row):
    header = list(reversed(list(COLUMNS)))
    row = van_row()
    content = ",".join(header) + "\n" + ",".join(row[h] for h in header) + "\n"
    path = tmp_path / "reordered.csv"
    path.write_text(content)

    [record] = parse_van_file(path)

    assert record.invoice_reference_id == "INV-42"
    assert record.amount == Decimal("1500.00")


def test_header_whitespace_and_bom_tolerated(tmp_path, van_row):
    header = list(COLUMNS)
    row = van_row()
    content = ",".join(f" {h} " for h in header) + "\n" + ",".join(row[h] for h in header) + "\n"
    path = tmp_path / "bom.csv"
    path.write_bytes(content.encode("utf-8-sig"))

    [record] = parse_van_file(path)

    assert record.main_account_number == "50200012345678"


def test_blank_fields_become_none(tmp_path, van_row, van_csv):
    path = tmp_path / "blank.csv"
    path.write_text(van_csv([van_row(**{"Virtual Account Number (VAN)": "", "Amount (INR)": ""})]))

    [record] = parse_van_file(path)

    assert record.virtual_account_number is None
    assert record.amount is None


def test_missing_column_fails_file(tmp_path, van_row):
    header = [h for h in COLUMNS if h != "Amount (INR)"]
    row = van_row()
    path = tmp_path / "short.csv"
    path.write_text(",".join(header) + "\n" + ",".join(row[h] for h in header) + "\n")

    with pytest.raises(VanParseError, match="Amount"):
        parse_van_file(path)


@pytest.mark.parametrize("column, value", [
    ("Transaction Date", "02/01/2024"),
    ("Amount (INR)", "abc"),
    ("Date & Time of Credit", "2024-01-02T10:15"),
])
def test_malformed_value_fails_file_with_line(tmp_path, van_row, van_csv, column, value):
    path = tmp_path / "bad.csv"
    path.write_text(van_csv([van_row(), van_row(**{column: value})]))

    with pytest.raises(VanParseError) as exc_info:
        parse_van_file(path)

    assert exc_info.value.line_no == 3


def test_empty_file_fails(tmp_path):
    path = tmp_path / "empty.csv"
    path.write_text("")

    with pytest.raises(VanParseError):
        parse_van_file(path)


def test_header_only_file_has_no_records(tmp_path, van_csv):
    path = tmp_path / "header.csv"
    path.write_text(van_csv([]))

    assert parse_van_file(path) == []


def test_truncated_row_fails_file_with_line(tmp_path, van_row, van_csv):
    row = van_row()
    truncated = ",".join(f'"{row[h]}"' for h in list(COLUMNS)[:-1])
    path = tmp_path / "truncated.csv"
    path.write_text(van_csv([row]) + truncated + "\n")

    with pytest.raises(VanParseError, match="field") as exc_info:
        parse_van_file(path)

    assert exc_info.value.line_no == 3


@pytest.mark.parametrize("column", ["Transaction Date", "Value Date", "Date & Time of Credit"])
def test_blank_date_fails_file(tmp_path, van_row, van_csv, column):
    path = tmp_path / "undated.csv"
    path.write_text(van_csv([van_row(**{column: ""})]))

    with pytest.raises(VanParseError, match=column) as exc_info:
        parse_van_file(path)

    assert exc_info.value.line_no == 2
