import random
from dataclasses import replace
from datetime import date, datetime
from decimal import Decimal

import pytest

from statement_ingest.models.import_run import ImportStatus
from statement_ingest.services.mt940_parser import parse_mt940
from statement_ingest.services.validation import (
    BALANCE_MISMATCH,
    CURRENCY_MISMATCH,
    INVALID_AMOUNT,
    MISSING_ACCOUNT,
    MISSING_BALANCE,
    MISSING_CURRENCY,
    MISSING_MAIN_ACCOUNT,
    MISSING_VIRTUAL_ACCOUNT,
    NO_TRANSACTIONS,
    ImportSummary,
    RecordError,
    ValidatedStatement,
    decide_status,
    validate_statement,
    validate_van_record,
)
from statement_ingest.services.van_parser import VanRecord


def _statement(build, **kwargs):
    return parse_mt940(build(**kwargs))[0]


def _van_record(**overrides):
    values = dict(
        line_no=2,
        main_account_number="MAIN",
        virtual_account_number="VAN1",
        transaction_reference_number=None,
        bank_reference_trace_id=None,
        remitter_name=None,
        remitter_account_number=None,
        remitter_ifsc_bank_name=None,
        remitter_vpa=None,
        transaction_date=date(2024, 1, 2),
        value_date=date(2024, 1, 2),
        amount=Decimal("10.00"),
        mode_channel=None,
        payment_description_narration=None,
        payment_status=None,
        mapped_customer_id_code=None,
        invoice_reference_id=None,
        date_time_of_credit=datetime(2024, 1, 2, 10, 15),
        branch_bank_code=None,
    )
    values.update(overrides)
    return VanRecord(**values)


class TestValidateStatement:

    def test_balanced_statement_is_accepted(self, mt940_message):
        result = validate_statement(_statement(mt940_message))

        assert isinstance(result, ValidatedStatement)
        assert result.opening == Decimal("100.00")
        assert result.movement == Decimal("30.00")
        assert result.closing == Decimal("130.00")

    def test_missing_account(self, mt940_message):
        stmt = replace(_statement(mt940_message), account=None)
        assert validate_statement(stmt).code == MISSING_ACCOUNT

    def test_blank_account(self, mt940_message):
        stmt = replace(_statement(mt940_message), account="   ")
        assert validate_statement(stmt).code == MISSING_ACCOUNT

    def test_missing_currency(self, mt940_message):
        stmt = replace(_statement(mt940_message), currency=None)
        assert validate_statement(stmt).code == MISSING_CURRENCY

    def test_missing_closing_balance(self, mt940_message):
        stmt = replace(_statement(mt940_message), closing_balance=None)
        assert validate_statement(stmt).code == MISSING_BALANCE

    def test_no_transactions(self, mt940_message):
        stmt = _statement(mt940_message, lines=[], closing="C240103EUR100,00")
        assert validate_statement(stmt).code == NO_TRANSACTIONS

    def test_currency_mismatch(self, mt940_message):
        stmt = _statement(mt940_message, closing="C240103USD130,00")
        result = validate_statement(stmt)
        assert result.code == CURRENCY_MISMATCH
        assert "USD" in result.message

    def test_balance_mismatch_reports_first_line(self, mt940_message):
        stmt = _statement(mt940_message, closing="C240103EUR131,00")
        result = validate_statement(stmt)
        assert result.code == BALANCE_MISMATCH
        assert result.line_no == 2

    def test_account_checked_before_balance(self, mt940_message):
        stmt = replace(_statement(mt940_message, closing="C240103EUR999,00"), account="")
        assert validate_statement(stmt).code == MISSING_ACCOUNT

    @pytest.mark.parametrize("closing, accepted", [
        ("C240103EUR130,02", True),
        ("C240103EUR129,98", True),
        ("C240103EUR130,03", False),
        ("C240103EUR129,97", False),
    ])
    def test_tolerance_band(self, mt940_message, closing, accepted):
        result = validate_statement(_statement(mt940_message, closing=closing))
        assert isinstance(result, ValidatedStatement) is accepted

    def test_custom_tolerance(self, mt940_message):
        stmt = _statement(mt940_message, closing="C240103EUR131,00")
        assert isinstance(validate_statement(stmt, Decimal("1.00")), ValidatedStatement)

    def test_debit_closing_balance(self, mt940_message):
        stmt = _statement(
            mt940_message,
            opening="C240101EUR10,00",
            closing="D240103EUR40,00",
            lines=[":61:240102D50,00NTRFNONREF"],
        )
        assert isinstance(validate_statement(stmt), ValidatedStatement)

    def test_random_balanced_statements_are_accepted(self, mt940_message):
        """Generated statements whose closing equals opening plus movements always pass"""
        rng = random.Random(940)
        for _ in range(25):
            opening = Decimal(rng.randint(0, 100000)) / 100
            lines, total = [], opening
            for n in range(rng.randint(1, 8)):
                amount = Decimal(rng.randint(1, 50000)) / 100
                mark = rng.choice(["C", "D"])
                total += amount if mark == "C" else -amount
                lines.append(f":61:240102{mark}{str(amount).replace('.', ',')}NTRFREF{n}")
            closing_mark = "C" if total >= 0 else "D"
            closing = f"{closing_mark}240103EUR{str(abs(total)).replace('.', ',')}"
            opening_text = f"C240101EUR{str(opening).replace('.', ',')}"

            result = validate_statement(_statement(mt940_message, opening=opening_text, closing=closing, lines=lines))

            assert isinstance(result, ValidatedStatement)
            assert result.opening + result.movement == result.closing


class TestValidateVanRecord:

    def test_valid_record(self):
        assert validate_van_record(_van_record()) is None

    def test_missing_main_account(self):
        error = validate_van_record(_van_record(main_account_number=None, virtual_account_number=None))
        assert error.code == MISSING_MAIN_ACCOUNT

    def test_missing_virtual_account(self):
        error = validate_van_record(_van_record(virtual_account_number=None, line_no=7))
        assert error == RecordError(MISSING_VIRTUAL_ACCOUNT, "Missing virtual account number", 7)

    @pytest.mark.parametrize("amount", [None, Decimal("0"), Decimal("-5.00")])
    def test_invalid_amount(self, amount):
        assert validate_van_record(_van_record(amount=amount)).code == INVALID_AMOUNT


class TestImportSummary:

    @pytest.mark.parametrize("processed, failed, status", [
        (3, 0, ImportStatus.IMPORTED),
        (2, 1, ImportStatus.PARTIAL),
        (0, 2, ImportStatus.FAILED),
        (0, 0, ImportStatus.FAILED),
    ])
    def test_decide_status(self, processed, failed, status):
        assert decide_status(processed, failed) == status

    def test_fold_counts(self):
        error = RecordError(INVALID_AMOUNT, "bad")
        summary = ImportSummary().accepted().rejected(error).accepted()

        assert (summary.total, summary.processed, summary.failed) == (3, 2, 1)
        assert summary.errors == (error,)
        assert summary.status == ImportStatus.PARTIAL

    def test_first_quarantine_reason_wins(self):
        summary = ImportSummary().quarantined("first").quarantined("second")
        assert summary.quarantine_reason == "first"
