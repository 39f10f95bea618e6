from sqlalchemy import Column, Integer, String, DateTime, Boolean, UniqueConstraint
from sqlalchemy.sql import func
from ..database import Base


class BankAccount(Base):
    __tablename__ = "bank_accounts"

    id = Column(Integer, primary_key=True, index=True)
    account_no = Column(String(64), nullable=False)  # :25: account identification
    currency = Column(String(3), nullable=False)
    iban = Column(String(34))
    bank_bic = Column(String(11))
    holder_name = Column(String(128))
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Same account number may carry one sub-ledger per currency
    __table_args__ = (
        UniqueConstraint("account_no", "currency", name="uq_bank_accounts_account_currency"),
    )
