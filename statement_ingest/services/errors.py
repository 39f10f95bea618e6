"""
Exceptions raised by the ingestion pipeline.

Validation rejections are not exceptions: they are reported as
``RecordError`` values by the validation module and counted per ImportRun.
"""
from typing import Optional


class IngestionError(Exception):
    """Base class for ingestion failures"""


class FileLifecycleError(IngestionError):
    """A file could not be moved, read or hashed"""


class DecodeError(IngestionError):
    """Raw content could not be decoded into records"""


class Mt940ParseError(DecodeError):
    def __init__(self, message: str, message_index: Optional[int] = None):
        self.message_index = message_index
        if message_index is not None:
            message = f"Failed to parse statement at index {message_index}: {message}"
        super().__init__(message)


class ArchiveError(DecodeError):
    """A zip container held no usable statement members"""


class VanParseError(DecodeError):
    def __init__(self, message: str, line_no: Optional[int] = None):
        self.line_no = line_no
        if line_no is not None:
            message = f"Line {line_no}: {message}"
        super().__init__(message)


class DuplicateRecordError(IngestionError):
    """A statement or transaction already persisted; carries the rejection"""

    def __init__(self, error, statement_file_id=None):
        self.error = error
        self.statement_file_id = statement_file_id
        super().__init__(error.message)
