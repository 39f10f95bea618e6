"""
MT940 ingestion: decode every statement message of a claimed file, validate
each one, and persist accepted statements inside their own savepoint.

Policy: a statement rejected by validation (or as a duplicate) is counted
and recorded, and the file is still archived. A message that fails to decode
or a statement that fails to persist quarantines the whole file, after its
accepted siblings have been committed.
"""
import logging
from dataclasses import dataclass
from decimal import Decimal
from pathlib import Path
from typing import Dict, Optional, Tuple

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..config import DirectoryLayout, settings
from ..models.import_run import FileType, ImportRun, ImportStatus
from ..models.statement import (
    RawStatementLine,
    StatementBalance,
    StatementFile,
    StatementTransaction,
    Transaction86Segment,
)
from .errors import DuplicateRecordError, Mt940ParseError
from .import_service import (
    find_fingerprint_owner,
    find_statement_file_id,
    get_or_create_bank_account,
    record_import_error,
)
from .ingestion import IngestionPipeline, PollReport, poll_and_process
from .mt940_parser import Balance, DecodedMessage, decode_messages, read_statement_sources
from .validation import (
    DECODE_ERROR,
    DUPLICATE_STATEMENT,
    DUPLICATE_TRANSACTION,
    PERSISTENCE_ERROR,
    ImportSummary,
    RecordError,
    ValidatedStatement,
    validate_statement,
)

logger = logging.getLogger(__name__)

MT940_EXTENSIONS = (".mt940", ".sta", ".zip")
STATEMENT_FAILURE_REASON = "One or more statements failed to import"
SEGMENT_VALUE_MAX = 512


@dataclass(frozen=True)
class PersistedStatement:
    statement_file_id: int
    transaction_ids: Tuple[int, ...]


def _balance_row(balance: Balance) -> StatementBalance:
    return StatementBalance(
        balance_type=balance.kind,
        dc=balance.mark,
        balance_date=balance.date,
        currency=balance.currency,
        amount=balance.amount,
    )


def persist_statement(validated: ValidatedStatement, import_run: ImportRun, db: Session) -> PersistedStatement:
    """
    Write one validated statement with its balances, transactions, :86:
    segments and raw lines.

    Raises DuplicateRecordError when the statement key or any transaction
    fingerprint is already stored; the error carries the id of the
    statement file that already holds it.
    """
    stmt = validated.statement
    account = get_or_create_bank_account(stmt.account.strip(), stmt.currency, db)
    sequence = stmt.sequence or ""

    existing_id = find_statement_file_id(account.id, stmt.reference, sequence, db)
    if existing_id is not None:
        raise DuplicateRecordError(RecordError(
            DUPLICATE_STATEMENT,
            f"Statement already imported: account {account.account_no} {stmt.currency}, "
            f":20: {stmt.reference}, :28C: {sequence}",
            stmt.raw_lines[0].line_no if stmt.raw_lines else None,
        ), statement_file_id=existing_id)

    seen = set()
    for txn in stmt.transactions:
        owner_id = None
        if txn.idempotency_hash not in seen:
            owner_id = find_fingerprint_owner(txn.idempotency_hash, db)
        if owner_id is not None or txn.idempotency_hash in seen:
            raise DuplicateRecordError(RecordError(
                DUPLICATE_TRANSACTION,
                f"Transaction already imported at line {txn.line_no} of :20: {stmt.reference}",
                txn.line_no,
            ), statement_file_id=owner_id)
        seen.add(txn.idempotency_hash)

    statement_file = StatementFile(
        import_run_id=import_run.id,
        bank_account_id=account.id,
        statement_reference=stmt.reference,
        sequence_number=sequence,
        statement_date=stmt.closing_balance.date,
        opening_dc=stmt.opening_balance.mark,
        opening_amount=stmt.opening_balance.amount,
        closing_dc=stmt.closing_balance.mark,
        closing_amount=stmt.closing_balance.amount,
        currency=stmt.currency,
        is_interim=stmt.is_interim,
    )
    db.add(statement_file)

    for balance in (stmt.opening_balance, stmt.closing_balance) + stmt.other_balances:
        statement_file.balances.append(_balance_row(balance))

    owners: Dict[int, StatementTransaction] = {}
    for txn in stmt.transactions:
        row = StatementTransaction(
            line_no=txn.line_no,
            value_date=txn.value_date,
            entry_date=txn.entry_date,
            dc=txn.mark,
            funds_code=txn.funds_code,
            amount=txn.amount,
            signed_amount=txn.signed_amount,
            currency=txn.currency,
            txn_type_code=txn.txn_type_code,
            customer_reference=txn.customer_reference,
            bank_reference=txn.bank_reference,
            entry_reference=txn.entry_reference,
            narrative=txn.narrative,
            idempotency_hash=txn.idempotency_hash,
        )
        for seq, (key, value) in enumerate(txn.segments, 1):
            row.segments.append(Transaction86Segment(seg_key=key, seg_value=value[:SEGMENT_VALUE_MAX], seg_seq=seq))
        statement_file.transactions.append(row)
        for line in txn.raw_lines:
            owners[line.line_no] = row

    for line in stmt.raw_lines:
        statement_file.raw_lines.append(RawStatementLine(
            line_no=line.line_no,
            tag=line.tag,
            raw_text=line.text,
            statement_transaction=owners.get(line.line_no),
        ))

    db.flush()
    return PersistedStatement(statement_file.id, tuple(row.id for row in statement_file.transactions))


def _reject(
    summary: ImportSummary,
    error: RecordError,
    import_run: ImportRun,
    db: Session,
    statement_file_id: Optional[int] = None,
) -> ImportSummary:
    logger.warning("Import run %s rejected record: [%s] %s", import_run.id, error.code, error.message)
    record_import_error(import_run, error, db, statement_file_id)
    return summary.rejected(error)


def ingest_message(
    message: DecodedMessage,
    import_run: ImportRun,
    db: Session,
    summary: ImportSummary,
    tolerance: Decimal = settings.BALANCE_TOLERANCE,
) -> ImportSummary:
    """Validate and persist one decoded message, folding the outcome into ``summary``"""
    if message.error is not None:
        error = RecordError(DECODE_ERROR, str(message.error))
        return _reject(summary, error, import_run, db).quarantined(STATEMENT_FAILURE_REASON)

    result = validate_statement(message.statement, tolerance)
    if isinstance(result, RecordError):
        return _reject(summary, result, import_run, db)

    try:
        with db.begin_nested():
            persisted = persist_statement(result, import_run, db)
    except DuplicateRecordError as e:
        return _reject(summary, e.error, import_run, db, e.statement_file_id)
    except IntegrityError as e:
        code = DUPLICATE_TRANSACTION if "idempotency_hash" in str(e.orig) else DUPLICATE_STATEMENT
        return _reject(summary, RecordError(code, f"Constraint violation: {e.orig}"), import_run, db)
    except SQLAlchemyError as e:
        logger.exception("Failed to persist statement %s of import run %s", message.index, import_run.id)
        error = RecordError(PERSISTENCE_ERROR, f"Failed to persist statement {message.index}: {e}")
        return _reject(summary, error, import_run, db).quarantined(STATEMENT_FAILURE_REASON)

    logger.debug(
        "Persisted statement %s as statement_file %s with %d transaction(s)",
        message.statement.reference, persisted.statement_file_id, len(persisted.transaction_ids),
    )
    return summary.accepted()


def decode_and_persist(path: Path, import_run: ImportRun, db: Session) -> ImportSummary:
    sources = read_statement_sources(path, display_name=import_run.filename)
    messages = [message for name, text in sources for message in decode_messages(text, name)]
    if not messages:
        raise Mt940ParseError(f"No MT940 messages found in {import_run.filename}")
    logger.info("Decoded %d statement message(s) from %s", len(messages), import_run.filename)

    import_run.status = ImportStatus.PARSED.value
    db.flush()

    summary = ImportSummary()
    for message in messages:
        summary = ingest_message(message, import_run, db, summary)
    return summary


def mt940_pipeline(directories: Optional[DirectoryLayout] = None, **overrides) -> IngestionPipeline:
    return IngestionPipeline(
        name="MT940",
        file_type=FileType.MT940.value,
        directories=directories or settings.MT940_DIRS,
        extensions=MT940_EXTENSIONS,
        decode_and_persist=decode_and_persist,
        **overrides,
    )


def poll_and_process_inbox(db: Session, pipeline: Optional[IngestionPipeline] = None) -> PollReport:
    """Run one MT940 poll cycle"""
    return poll_and_process(pipeline or mt940_pipeline(), db)
