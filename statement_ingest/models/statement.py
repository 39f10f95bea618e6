from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Numeric, Date, Boolean, Text, UniqueConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from ..database import Base


class StatementFile(Base):
    """One MT940 statement message, keyed by account, :20: and :28C:"""
    __tablename__ = "statement_files"

    id = Column(Integer, primary_key=True, index=True)
    import_run_id = Column(Integer, ForeignKey("import_runs.id"), nullable=False, index=True)
    bank_account_id = Column(Integer, ForeignKey("bank_accounts.id"), nullable=False)
    statement_reference = Column(String(35), nullable=False)  # :20:
    sequence_number = Column(String(35), nullable=False, default="")  # :28C:
    statement_date = Column(Date, nullable=False)  # closing balance date
    opening_dc = Column(String(1), nullable=False)
    opening_amount = Column(Numeric(19, 3), nullable=False)
    closing_dc = Column(String(1), nullable=False)
    closing_amount = Column(Numeric(19, 3), nullable=False)
    currency = Column(String(3), nullable=False)
    is_interim = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    import_run = relationship("ImportRun", back_populates="statement_files")
    bank_account = relationship("BankAccount")
    balances = relationship("StatementBalance", back_populates="statement_file", cascade="all, delete-orphan")
    transactions = relationship(
        "StatementTransaction",
        back_populates="statement_file",
        cascade="all, delete-orphan",
        order_by="StatementTransaction.line_no",
    )
    raw_lines = relationship(
        "RawStatementLine",
        back_populates="statement_file",
        cascade="all, delete-orphan",
        order_by="RawStatementLine.line_no",
    )

    __table_args__ = (
        UniqueConstraint("bank_account_id", "statement_reference", "sequence_number", name="uq_statement_files_natural_key"),
    )


class StatementBalance(Base):
    __tablename__ = "statement_balances"

    id = Column(Integer, primary_key=True, index=True)
    statement_file_id = Column(Integer, ForeignKey("statement_files.id"), nullable=False, index=True)
    balance_type = Column(String(16), nullable=False)  # OPENING, CLOSING, AVAILABLE, FORWARD
    dc = Column(String(1), nullable=False)
    balance_date = Column(Date, nullable=False)
    currency = Column(String(3), nullable=False)
    amount = Column(Numeric(19, 3), nullable=False)

    statement_file = relationship("StatementFile", back_populates="balances")


class StatementTransaction(Base):
    __tablename__ = "statement_transactions"

    id = Column(Integer, primary_key=True, index=True)
    statement_file_id = Column(Integer, ForeignKey("statement_files.id"), nullable=False, index=True)
    line_no = Column(Integer, nullable=False)  # physical line of the :61: field
    value_date = Column(Date, nullable=False)
    entry_date = Column(Date)
    dc = Column(String(2), nullable=False)  # C, D, RC, RD
    funds_code = Column(String(1))
    amount = Column(Numeric(19, 3), nullable=False)
    signed_amount = Column(Numeric(19, 3), nullable=False)  # negative = debit
    currency = Column(String(3), nullable=False)
    txn_type_code = Column(String(4))
    customer_reference = Column(String(35))
    bank_reference = Column(String(35))
    entry_reference = Column(String(35))
    narrative = Column(Text)
    idempotency_hash = Column(String(64), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    statement_file = relationship("StatementFile", back_populates="transactions")
    segments = relationship(
        "Transaction86Segment",
        back_populates="statement_transaction",
        cascade="all, delete-orphan",
        order_by="Transaction86Segment.seg_seq",
    )

    __table_args__ = (
        UniqueConstraint("idempotency_hash", name="uq_statement_transactions_idempotency_hash"),
    )


class Transaction86Segment(Base):
    __tablename__ = "transaction_86_segments"

    id = Column(Integer, primary_key=True, index=True)
    statement_transaction_id = Column(Integer, ForeignKey("statement_transactions.id"), nullable=False, index=True)
    seg_key = Column(String(32), nullable=False)  # sub-field key, or FULL
    seg_value = Column(String(512))
    seg_seq = Column(Integer, nullable=False)

    statement_transaction = relationship("StatementTransaction", back_populates="segments")


class RawStatementLine(Base):
    __tablename__ = "raw_statement_lines"

    id = Column(Integer, primary_key=True, index=True)
    statement_file_id = Column(Integer, ForeignKey("statement_files.id"), nullable=False, index=True)
    statement_transaction_id = Column(Integer, ForeignKey("statement_transactions.id"))
    line_no = Column(Integer, nullable=False)
    tag = Column(String(8))
    raw_text = Column(Text, nullable=False)

    statement_file = relationship("StatementFile", back_populates="raw_lines")
    statement_transaction = relationship("StatementTransaction")
