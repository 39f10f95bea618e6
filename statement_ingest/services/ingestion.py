"""
Generic poll-and-process loop shared by the MT940 and VAN pipelines.

Per file: claim (inbox -> processing), size check, hash and dedup, then the
format's decode_and_persist, then archive or quarantine. Files are handled
one after another; a failure on one file never stops the batch.
"""
import enum
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..config import DirectoryLayout, settings
from ..models.import_run import ImportRun
from . import file_lifecycle
from .errors import DecodeError, FileLifecycleError
from .import_service import finalize_import_run, is_duplicate, mark_import_run_failed, open_import_run
from .validation import DECODE_ERROR, FILE_ERROR, ImportSummary, RecordError

logger = logging.getLogger(__name__)

DecodeAndPersist = Callable[[Path, ImportRun, Session], ImportSummary]


class FileOutcome(str, enum.Enum):
    ARCHIVED = "ARCHIVED"
    DUPLICATE = "DUPLICATE"  # archived, no ImportRun created
    QUARANTINED = "QUARANTINED"
    UNCLAIMED = "UNCLAIMED"  # could not be moved out of the inbox
    STUCK = "STUCK"  # left in processing after a failed quarantine move


@dataclass(frozen=True)
class IngestionPipeline:
    name: str
    file_type: str
    directories: DirectoryLayout
    extensions: Tuple[str, ...]
    decode_and_persist: DecodeAndPersist
    max_file_size: int = settings.MAX_FILE_SIZE_BYTES
    stability_window: float = settings.FILE_STABILITY_WINDOW_SEC


@dataclass(frozen=True)
class FileReport:
    filename: str
    outcome: FileOutcome
    import_run_id: Optional[int] = None
    status: Optional[str] = None
    processed: int = 0
    failed: int = 0
    reason: Optional[str] = None
    location: Optional[str] = None


@dataclass(frozen=True)
class PollReport:
    pipeline: str
    files: Tuple[FileReport, ...] = ()

    def count(self, outcome: FileOutcome) -> int:
        return sum(1 for report in self.files if report.outcome == outcome)


def poll_and_process(pipeline: IngestionPipeline, db: Session) -> PollReport:
    """Main entry point: process every stable inbox file once"""
    inbox = pipeline.directories.inbox
    logger.info("Polling %s inbox directory: %s", pipeline.name, inbox)
    files = file_lifecycle.discover_stable_files(inbox, pipeline.extensions, pipeline.stability_window)
    logger.info("Discovered %d stable file(s) for ingestion", len(files))

    reports = tuple(process_file(pipeline, path, db) for path in files)
    return PollReport(pipeline=pipeline.name, files=reports)


def process_file(pipeline: IngestionPipeline, path: Path, db: Session) -> FileReport:
    original_name = path.name
    logger.info("Processing file: %s", path)
    try:
        claimed = file_lifecycle.move_to_processing(path, pipeline.directories.processing)
    except FileLifecycleError as e:
        logger.error("Could not claim %s, leaving it in the inbox: %s", path, e)
        return FileReport(original_name, FileOutcome.UNCLAIMED, reason=str(e))

    try:
        return _process_claimed(pipeline, claimed, original_name, db)
    except Exception as e:
        db.rollback()
        logger.exception("Error processing file: %s. Moving to quarantine.", claimed)
        return _quarantine(pipeline, claimed, original_name, f"Unhandled error: {e}")


def _process_claimed(pipeline: IngestionPipeline, claimed: Path, original_name: str, db: Session) -> FileReport:
    size = claimed.stat().st_size
    if size > pipeline.max_file_size:
        return _quarantine(
            pipeline, claimed, original_name,
            f"File exceeds max size policy ({size} > {pipeline.max_file_size} bytes)",
        )

    file_hash = file_lifecycle.compute_content_hash(claimed)
    logger.debug("Computed SHA-256 hash for file %s: %s", claimed.name, file_hash)
    if is_duplicate(file_hash, db):
        return _archive_duplicate(pipeline, claimed, original_name, file_hash)

    try:
        run = open_import_run(original_name, file_hash, size, pipeline.file_type, db)
        db.commit()
    except IntegrityError:
        # Another poll registered the same content first
        db.rollback()
        return _archive_duplicate(pipeline, claimed, original_name, file_hash)

    try:
        summary = pipeline.decode_and_persist(claimed, run, db)
        finalize_import_run(run, summary, db)
        db.commit()
    except Exception as e:
        db.rollback()
        if isinstance(e, DecodeError):
            logger.warning("Failed to decode %s: %s", original_name, e)
            error = RecordError(DECODE_ERROR, str(e))
        else:
            logger.exception("Error processing file: %s", original_name)
            error = RecordError(FILE_ERROR, f"Unhandled error: {e}")
        mark_import_run_failed(run, error, db)
        db.commit()
        return _quarantine(pipeline, claimed, original_name, error.message, run)

    logger.info(
        "Import run %s for %s finished %s (processed=%d, failed=%d)",
        run.id, original_name, run.status, summary.processed, summary.failed,
    )
    if summary.quarantine_reason:
        return _quarantine(pipeline, claimed, original_name, summary.quarantine_reason, run, summary)

    destination = file_lifecycle.move_to_archive(claimed, pipeline.directories.archive)
    return FileReport(
        original_name,
        FileOutcome.ARCHIVED,
        import_run_id=run.id,
        status=run.status,
        processed=summary.processed,
        failed=summary.failed,
        location=str(destination),
    )


def _archive_duplicate(pipeline: IngestionPipeline, claimed: Path, original_name: str, file_hash: str) -> FileReport:
    logger.warning("Duplicate file detected: %s (hash=%s)", original_name, file_hash)
    destination = file_lifecycle.move_to_archive(claimed, pipeline.directories.archive)
    return FileReport(original_name, FileOutcome.DUPLICATE, reason="Duplicate file content", location=str(destination))


def _quarantine(
    pipeline: IngestionPipeline,
    claimed: Path,
    original_name: str,
    reason: str,
    run: Optional[ImportRun] = None,
    summary: Optional[ImportSummary] = None,
) -> FileReport:
    run_id = run.id if run is not None else None
    status = run.status if run is not None else None
    processed = summary.processed if summary is not None else 0
    failed = summary.failed if summary is not None else 0
    try:
        destination = file_lifecycle.move_to_quarantine(claimed, pipeline.directories.quarantine, reason)
    except FileLifecycleError:
        logger.exception("Could not quarantine %s; it stays in processing", claimed)
        return FileReport(original_name, FileOutcome.STUCK, run_id, status, processed, failed, reason, str(claimed))
    return FileReport(
        original_name, FileOutcome.QUARANTINED, run_id, status, processed, failed, reason, str(destination)
    )
