"""
Pydantic schemas for API responses.
"""
from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, ConfigDict

from .services.ingestion import FileOutcome


# =============================================================================
# Poll Schemas
# =============================================================================

class FileReportResponse(BaseModel):
    """Outcome of one inbox file in a poll cycle"""
    model_config = ConfigDict(from_attributes=True)

    filename: str
    outcome: FileOutcome
    import_run_id: Optional[int] = None
    status: Optional[str] = None
    processed: int = 0
    failed: int = 0
    reason: Optional[str] = None
    location: Optional[str] = None


class PollReportResponse(BaseModel):
    """Schema for a completed poll cycle"""
    model_config = ConfigDict(from_attributes=True)

    pipeline: str
    files: List[FileReportResponse] = []


# =============================================================================
# Import History Schemas
# =============================================================================

class ImportErrorResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    statement_file_id: Optional[int] = None
    line_no: Optional[int] = None
    code: str
    message: str
    created_at: Optional[datetime] = None


class ImportRunResponse(BaseModel):
    """Schema for an import run in the history list"""
    model_config = ConfigDict(from_attributes=True)

    id: int
    filename: str
    file_hash: str
    file_size_bytes: Optional[int] = None
    file_type: str
    received_at: Optional[datetime] = None
    total_records: int = 0
    processed_records: int = 0
    failed_records: int = 0
    status: str
    error_message: Optional[str] = None


class ImportRunDetailResponse(ImportRunResponse):
    """Import run with every error recorded against it"""
    errors: List[ImportErrorResponse] = []
