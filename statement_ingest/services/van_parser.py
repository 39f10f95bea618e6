"""
VAN (virtual account number) credit feed decoder.

The feed is a CSV with a header row and one credit per data row. Columns are
matched by header name, so their order does not matter. Any malformed row
aborts the whole file; business checks happen later, per row.
"""
import csv
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import List, Optional

import pandas as pd

from .errors import VanParseError

DATE_FORMAT = "%Y-%m-%d"
DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"

# Header name -> VanRecord attribute
COLUMNS = {
    "Main Account Number": "main_account_number",
    "Virtual Account Number (VAN)": "virtual_account_number",
    "Transaction Reference Number": "transaction_reference_number",
    "Bank Reference / Trace ID": "bank_reference_trace_id",
    "Remitter Name": "remitter_name",
    "Remitter Account Number": "remitter_account_number",
    "Remitter IFSC / Bank Name": "remitter_ifsc_bank_name",
    "Remitter VPA": "remitter_vpa",
    "Transaction Date": "transaction_date",
    "Value Date": "value_date",
    "Amount (INR)": "amount",
    "Mode / Channel": "mode_channel",
    "Payment Description / Narration": "payment_description_narration",
    "Payment Status": "payment_status",
    "Mapped Customer ID / Code": "mapped_customer_id_code",
    "Invoice / Reference ID": "invoice_reference_id",
    "Date & Time of Credit": "date_time_of_credit",
    "Branch / Bank Code": "branch_bank_code",
}

DATE_COLUMNS = ("Transaction Date", "Value Date")


@dataclass(frozen=True)
class VanRecord:
    line_no: int
    main_account_number: Optional[str]
    virtual_account_number: Optional[str]
    transaction_reference_number: Optional[str]
    bank_reference_trace_id: Optional[str]
    remitter_name: Optional[str]
    remitter_account_number: Optional[str]
    remitter_ifsc_bank_name: Optional[str]
    remitter_vpa: Optional[str]
    transaction_date: date
    value_date: date
    amount: Optional[Decimal]
    mode_channel: Optional[str]
    payment_description_narration: Optional[str]
    payment_status: Optional[str]
    mapped_customer_id_code: Optional[str]
    invoice_reference_id: Optional[str]
    date_time_of_credit: datetime
    branch_bank_code: Optional[str]


def _text(value: str) -> Optional[str]:
    value = value.strip()
    return value or None


def _date(value: str, column: str) -> date:
    value = value.strip()
    try:
        return datetime.strptime(value, DATE_FORMAT).date()
    except ValueError:
        raise ValueError(f"Invalid {column}: {value!r} (expected yyyy-MM-dd)")


def _datetime(value: str, column: str) -> datetime:
    value = value.strip()
    try:
        return datetime.strptime(value, DATETIME_FORMAT)
    except ValueError:
        raise ValueError(f"Invalid {column}: {value!r} (expected yyyy-MM-dd HH:mm:ss)")


def _amount(value: str) -> Optional[Decimal]:
    value = value.strip().replace(",", "")
    if not value:
        return None
    try:
        amount = Decimal(value)
    except InvalidOperation:
        raise ValueError(f"Invalid Amount (INR): {value!r}")
    if not amount.is_finite():
        raise ValueError(f"Invalid Amount (INR): {value!r}")
    return amount


def _record(row: dict, line_no: int) -> VanRecord:
    values = {}
    for column, attr in COLUMNS.items():
        raw = row[column]
        if column in DATE_COLUMNS:
            values[attr] = _date(raw, column)
        elif column == "Amount (INR)":
            values[attr] = _amount(raw)
        elif column == "Date & Time of Credit":
            values[attr] = _datetime(raw, column)
        else:
            values[attr] = _text(raw)
    return VanRecord(line_no=line_no, **values)


def _field_counts(filepath: Path) -> List[int]:
    """Fields per non-blank CSV row, header first; pandas pads short rows with blanks"""
    try:
        with open(filepath, newline="", encoding="utf-8-sig") as f:
            return [len(row) for row in csv.reader(f) if row]
    except (csv.Error, UnicodeDecodeError, OSError) as e:
        raise VanParseError(f"Failed to parse CSV file: {e}") from e


def parse_van_file(filepath: Path) -> List[VanRecord]:
    """
    Parse a VAN CSV file into records.

    Raises VanParseError when the file cannot be read, a required column is
    missing, or any row is short of fields or holds an unparsable date or
    amount. A blank amount is left to validation.
    """
    try:
        df = pd.read_csv(filepath, dtype=str, keep_default_na=False, encoding="utf-8-sig")
    except pd.errors.EmptyDataError:
        raise VanParseError(f"VAN file is empty: {Path(filepath).name}")
    except (pd.errors.ParserError, UnicodeDecodeError, OSError) as e:
        raise VanParseError(f"Failed to parse CSV file: {e}") from e

    df.columns = [str(c).strip() for c in df.columns]
    missing = [column for column in COLUMNS if column not in df.columns]
    if missing:
        raise VanParseError(f"Missing required column(s): {', '.join(missing)}")

    counts = _field_counts(filepath)
    width = counts[0]

    records = []
    for idx, row in enumerate(df.to_dict(orient="records")):
        line_no = idx + 2  # header is line 1
        fields = counts[idx + 1] if idx + 1 < len(counts) else width
        if fields < width:
            raise VanParseError(f"Row has {fields} field(s), header has {width}", line_no)
        try:
            records.append(_record(row, line_no))
        except ValueError as e:
            raise VanParseError(str(e), line_no) from e
    return records
