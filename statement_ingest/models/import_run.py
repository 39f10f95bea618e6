import enum

from sqlalchemy import Column, Integer, BigInteger, String, DateTime, ForeignKey, Text, UniqueConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from ..database import Base


class FileType(str, enum.Enum):
    MT940 = "MT940"
    VAN = "VAN"


class ImportStatus(str, enum.Enum):
    NEW = "NEW"
    PARSED = "PARSED"
    IMPORTED = "IMPORTED"
    PARTIAL = "PARTIAL"
    FAILED = "FAILED"


class ImportRun(Base):
    __tablename__ = "import_runs"

    id = Column(Integer, primary_key=True, index=True)
    filename = Column(String(255), nullable=False)  # name as dropped in the inbox
    file_hash = Column(String(64), nullable=False)  # sha256 of the raw bytes
    file_size_bytes = Column(BigInteger, nullable=False)
    file_type = Column(String(16), nullable=False)  # MT940, VAN
    received_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    total_records = Column(Integer, default=0)
    processed_records = Column(Integer, default=0)
    failed_records = Column(Integer, default=0)
    status = Column(String(16), nullable=False, default=ImportStatus.NEW.value)
    error_message = Column(Text)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    errors = relationship("ImportErrorRecord", back_populates="import_run", order_by="ImportErrorRecord.id")
    statement_files = relationship("StatementFile", back_populates="import_run")

    __table_args__ = (
        UniqueConstraint("file_hash", name="uq_import_runs_file_hash"),
    )

    def __repr__(self) -> str:
        return f"<ImportRun(id={self.id}, filename={self.filename}, status={self.status})>"


class ImportErrorRecord(Base):
    """Append-only audit row for a rejected statement, record or file"""
    __tablename__ = "import_errors"

    id = Column(Integer, primary_key=True, index=True)
    import_run_id = Column(Integer, ForeignKey("import_runs.id"), nullable=False, index=True)
    statement_file_id = Column(Integer, ForeignKey("statement_files.id"))
    line_no = Column(Integer)
    code = Column(String(64), nullable=False)
    message = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    import_run = relationship("ImportRun", back_populates="errors")
