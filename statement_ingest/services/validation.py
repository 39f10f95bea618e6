"""
Business-rule checks for decoded statements and VAN rows.

Everything here is pure: checks return a RecordError or a validated value,
and per-file counts are folded into an immutable ImportSummary that decides
the ImportRun's final status.
"""
from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Optional, Tuple, Union

from ..models.import_run import ImportStatus
from .mt940_parser import Statement
from .van_parser import VanRecord

DEFAULT_TOLERANCE = Decimal("0.02")

# Error codes
MISSING_ACCOUNT = "MISSING_ACCOUNT"
MISSING_CURRENCY = "MISSING_CURRENCY"
MISSING_BALANCE = "MISSING_BALANCE"
NO_TRANSACTIONS = "NO_TRANSACTIONS"
CURRENCY_MISMATCH = "CURRENCY_MISMATCH"
BALANCE_MISMATCH = "BALANCE_MISMATCH"
DUPLICATE_STATEMENT = "DUPLICATE_STATEMENT"
DUPLICATE_TRANSACTION = "DUPLICATE_TRANSACTION"
DECODE_ERROR = "DECODE_ERROR"
PERSISTENCE_ERROR = "PERSISTENCE_ERROR"
MISSING_MAIN_ACCOUNT = "MISSING_MAIN_ACCOUNT"
MISSING_VIRTUAL_ACCOUNT = "MISSING_VIRTUAL_ACCOUNT"
INVALID_AMOUNT = "INVALID_AMOUNT"
FILE_ERROR = "FILE_ERROR"


@dataclass(frozen=True)
class RecordError:
    code: str
    message: str
    line_no: Optional[int] = None


@dataclass(frozen=True)
class ValidatedStatement:
    """A statement that passed every check, with its reconciled totals"""
    statement: Statement
    opening: Decimal
    closing: Decimal
    movement: Decimal


@dataclass(frozen=True)
class ImportSummary:
    total: int = 0
    processed: int = 0
    failed: int = 0
    errors: Tuple[RecordError, ...] = ()
    quarantine_reason: Optional[str] = None

    def accepted(self) -> "ImportSummary":
        return replace(self, total=self.total + 1, processed=self.processed + 1)

    def rejected(self, error: RecordError) -> "ImportSummary":
        return replace(self, total=self.total + 1, failed=self.failed + 1, errors=self.errors + (error,))

    def quarantined(self, reason: str) -> "ImportSummary":
        return replace(self, quarantine_reason=self.quarantine_reason or reason)

    @property
    def status(self) -> ImportStatus:
        return decide_status(self.processed, self.failed)


def decide_status(processed: int, failed: int) -> ImportStatus:
    if processed > 0 and failed == 0:
        return ImportStatus.IMPORTED
    if processed > 0:
        return ImportStatus.PARTIAL
    return ImportStatus.FAILED


def _blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


def _label(stmt: Statement) -> str:
    return f"statement {stmt.index} (:20: {stmt.reference})"


def is_balanced(opening: Decimal, movement: Decimal, closing: Decimal, tolerance: Decimal = DEFAULT_TOLERANCE) -> bool:
    return abs(opening + movement - closing) <= tolerance


def validate_statement(
    stmt: Statement, tolerance: Decimal = DEFAULT_TOLERANCE
) -> Union[ValidatedStatement, RecordError]:
    """
    Check one statement. The first failing rule rejects it.

    Order: account, currency, opening/closing balances, at least one
    transaction, balance currencies, then opening + movements == closing
    within ``tolerance``.
    """
    line_no = stmt.raw_lines[0].line_no if stmt.raw_lines else None

    if _blank(stmt.account):
        return RecordError(MISSING_ACCOUNT, f"Missing account number in {_label(stmt)}", line_no)
    if _blank(stmt.currency):
        return RecordError(MISSING_CURRENCY, f"Missing currency in {_label(stmt)}", line_no)
    if stmt.opening_balance is None or stmt.closing_balance is None:
        return RecordError(MISSING_BALANCE, f"Missing opening/closing balance in {_label(stmt)}", line_no)
    if stmt.opening_balance.amount is None or stmt.closing_balance.amount is None:
        return RecordError(MISSING_BALANCE, f"Missing opening/closing balance amount in {_label(stmt)}", line_no)
    if not stmt.transactions:
        return RecordError(NO_TRANSACTIONS, f"Missing transactions in {_label(stmt)}", line_no)
    if stmt.opening_balance.currency != stmt.currency or stmt.closing_balance.currency != stmt.currency:
        return RecordError(
            CURRENCY_MISMATCH,
            f"Currency mismatch in {_label(stmt)}: opening {stmt.opening_balance.currency}, "
            f"closing {stmt.closing_balance.currency}, statement {stmt.currency}",
            line_no,
        )

    opening = stmt.opening_balance.signed_amount
    closing = stmt.closing_balance.signed_amount
    movement = sum((txn.signed_amount for txn in stmt.transactions), Decimal("0"))
    if not is_balanced(opening, movement, closing, tolerance):
        return RecordError(
            BALANCE_MISMATCH,
            f"Opening {opening} + transactions {movement} != closing {closing} in {_label(stmt)}",
            line_no,
        )
    return ValidatedStatement(stmt, opening, closing, movement)


def validate_van_record(record: VanRecord) -> Optional[RecordError]:
    """Return the first failing rule for a VAN row, or None when it is acceptable"""
    if _blank(record.main_account_number):
        return RecordError(MISSING_MAIN_ACCOUNT, "Missing main account number", record.line_no)
    if _blank(record.virtual_account_number):
        return RecordError(MISSING_VIRTUAL_ACCOUNT, "Missing virtual account number", record.line_no)
    if record.amount is None or record.amount <= 0:
        return RecordError(INVALID_AMOUNT, f"Invalid amount: {record.amount}", record.line_no)
    return None
