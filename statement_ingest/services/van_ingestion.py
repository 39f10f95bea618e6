"""
VAN ingestion: decode a claimed CSV, validate each row, persist the good
ones. Bad rows are recorded as ImportErrors and never stop the file.
"""
import logging
from pathlib import Path
from typing import Optional

from sqlalchemy.orm import Session

from ..config import DirectoryLayout, settings
from ..models.import_run import FileType, ImportRun, ImportStatus
from ..models.van_transaction import VanTransaction
from .import_service import record_import_error
from .ingestion import IngestionPipeline, PollReport, poll_and_process
from .van_parser import COLUMNS, VanRecord, parse_van_file
from .validation import ImportSummary, validate_van_record

logger = logging.getLogger(__name__)

VAN_EXTENSIONS = (".csv",)


def _van_row(record: VanRecord, import_run: ImportRun) -> VanTransaction:
    values = {attr: getattr(record, attr) for attr in COLUMNS.values()}
    return VanTransaction(import_run_id=import_run.id, line_no=record.line_no, **values)


def decode_and_persist(path: Path, import_run: ImportRun, db: Session) -> ImportSummary:
    records = parse_van_file(path)
    logger.info("Parsed %d VAN record(s) from %s", len(records), import_run.filename)

    import_run.status = ImportStatus.PARSED.value
    db.flush()

    summary = ImportSummary()
    for record in records:
        error = validate_van_record(record)
        if error is not None:
            logger.warning("Skipping VAN row at line %s: [%s] %s", record.line_no, error.code, error.message)
            record_import_error(import_run, error, db)
            summary = summary.rejected(error)
            continue
        db.add(_van_row(record, import_run))
        summary = summary.accepted()

    # A database failure here fails the whole file
    db.flush()
    return summary


def van_pipeline(directories: Optional[DirectoryLayout] = None, **overrides) -> IngestionPipeline:
    return IngestionPipeline(
        name="VAN",
        file_type=FileType.VAN.value,
        directories=directories or settings.VAN_DIRS,
        extensions=VAN_EXTENSIONS,
        decode_and_persist=decode_and_persist,
        **overrides,
    )


def poll_and_process_inbox(db: Session, pipeline: Optional[IngestionPipeline] = None) -> PollReport:
    """Run one VAN poll cycle"""
    return poll_and_process(pipeline or van_pipeline(), db)
