from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Numeric, Date
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from ..database import Base


class VanTransaction(Base):
    __tablename__ = "van_transactions"

    id = Column(Integer, primary_key=True, index=True)
    import_run_id = Column(Integer, ForeignKey("import_runs.id"), nullable=False, index=True)
    line_no = Column(Integer)  # CSV line the row came from

    # Identification
    main_account_number = Column(String, nullable=False)
    virtual_account_number = Column(String, nullable=False, index=True)
    transaction_reference_number = Column(String)
    bank_reference_trace_id = Column(String)

    # Remitter
    remitter_name = Column(String)
    remitter_account_number = Column(String)
    remitter_ifsc_bank_name = Column(String)
    remitter_vpa = Column(String)

    # Transaction details
    transaction_date = Column(Date)
    value_date = Column(Date)
    amount = Column(Numeric(19, 2), nullable=False)
    mode_channel = Column(String)
    payment_description_narration = Column(String)
    payment_status = Column(String)

    # Reconciliation metadata
    mapped_customer_id_code = Column(String)
    invoice_reference_id = Column(String)
    date_time_of_credit = Column(DateTime)
    branch_bank_code = Column(String)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    import_run = relationship("ImportRun")
