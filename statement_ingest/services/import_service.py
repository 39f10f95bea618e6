"""
Import bookkeeping: ImportRun lifecycle, ImportError rows and lookups by
natural key. Functions here add to the session; committing is left to the
pipeline that owns the transaction.
"""
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session

from ..models.bank_account import BankAccount
from ..models.import_run import ImportErrorRecord, ImportRun, ImportStatus
from ..models.statement import StatementFile, StatementTransaction
from .validation import ImportSummary, RecordError

BLOCKING_STATUSES = (
    ImportStatus.NEW.value,
    ImportStatus.PARSED.value,
    ImportStatus.IMPORTED.value,
    ImportStatus.PARTIAL.value,
)


def find_import_run_by_hash(file_hash: str, db: Session) -> Optional[ImportRun]:
    return db.query(ImportRun).filter(ImportRun.file_hash == file_hash).first()


def is_duplicate(file_hash: str, db: Session) -> bool:
    """A hash already held by a run that did not fail is a duplicate file"""
    run = find_import_run_by_hash(file_hash, db)
    return run is not None and run.status in BLOCKING_STATUSES


def open_import_run(filename: str, file_hash: str, file_size: int, file_type: str, db: Session) -> ImportRun:
    """
    Create the ImportRun for a newly claimed file, or reopen the FAILED run
    that holds the same hash.
    """
    run = find_import_run_by_hash(file_hash, db)
    if run is None:
        run = ImportRun(file_hash=file_hash)
        db.add(run)
    run.filename = filename
    run.file_size_bytes = file_size
    run.file_type = file_type
    run.received_at = datetime.now(timezone.utc)
    run.total_records = 0
    run.processed_records = 0
    run.failed_records = 0
    run.status = ImportStatus.NEW.value
    run.error_message = None
    db.flush()
    return run


def record_import_error(
    import_run: ImportRun,
    error: RecordError,
    db: Session,
    statement_file_id: Optional[int] = None,
) -> ImportErrorRecord:
    entry = ImportErrorRecord(
        import_run_id=import_run.id,
        statement_file_id=statement_file_id,
        line_no=error.line_no,
        code=error.code,
        message=error.message,
    )
    db.add(entry)
    return entry


def finalize_import_run(import_run: ImportRun, summary: ImportSummary, db: Session) -> ImportRun:
    """Write counts and the status the summary decides"""
    import_run.total_records = summary.total
    import_run.processed_records = summary.processed
    import_run.failed_records = summary.failed
    import_run.status = summary.status.value
    if summary.quarantine_reason:
        import_run.error_message = summary.quarantine_reason
    elif summary.errors and summary.processed == 0:
        import_run.error_message = summary.errors[0].message
    db.flush()
    return import_run


def mark_import_run_failed(import_run: ImportRun, error: RecordError, db: Session) -> ImportRun:
    import_run.status = ImportStatus.FAILED.value
    import_run.error_message = error.message
    record_import_error(import_run, error, db)
    db.flush()
    return import_run


def get_or_create_bank_account(account_no: str, currency: str, db: Session) -> BankAccount:
    """Get existing bank account for (account number, currency) or create one"""
    account = db.query(BankAccount).filter(
        BankAccount.account_no == account_no,
        BankAccount.currency == currency,
    ).first()

    if account is None:
        account = BankAccount(account_no=account_no, currency=currency, is_active=True)
        db.add(account)
        db.flush()

    return account


def find_statement_file_id(bank_account_id: int, reference: str, sequence: str, db: Session) -> Optional[int]:
    """Id of the stored statement with this key, if any"""
    return db.query(StatementFile.id).filter(
        StatementFile.bank_account_id == bank_account_id,
        StatementFile.statement_reference == reference,
        StatementFile.sequence_number == sequence,
    ).scalar()


def find_fingerprint_owner(idempotency_hash: str, db: Session) -> Optional[int]:
    """Statement file holding the transaction with this fingerprint, if any"""
    return db.query(StatementTransaction.statement_file_id).filter(
        StatementTransaction.idempotency_hash == idempotency_hash
    ).scalar()
