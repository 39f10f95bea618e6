from .import_run import ImportRun, ImportErrorRecord, ImportStatus, FileType
from .bank_account import BankAccount
from .statement import (
    StatementFile,
    StatementBalance,
    StatementTransaction,
    Transaction86Segment,
    RawStatementLine,
)
from .van_transaction import VanTransaction

__all__ = [
    "ImportRun",
    "ImportErrorRecord",
    "ImportStatus",
    "FileType",
    "BankAccount",
    "StatementFile",
    "StatementBalance",
    "StatementTransaction",
    "Transaction86Segment",
    "RawStatementLine",
    "VanTransaction",
]
