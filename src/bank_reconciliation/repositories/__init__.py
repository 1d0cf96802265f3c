from bank_reconciliation.repositories.interfaces import (
    AccountingPeriodRepository,
    Filter,
    LedgerTransactionRepository,
    ReconciliationMatchRepository,
    ReconciliationRepository,
    RecordStore,
    StatementLineRepository,
    StatementRepository,
)
from bank_reconciliation.repositories.records import (
    AccountingPeriodRecordRepository,
    LedgerTransactionRecordRepository,
    ReconciliationMatchRecordRepository,
    ReconciliationRecordRepository,
    StatementLineRecordRepository,
    StatementRecordRepository,
)
from bank_reconciliation.repositories.sqlite import SQLiteDatabase, SQLiteRecordStore

__all__ = [
    "AccountingPeriodRepository",
    "Filter",
    "LedgerTransactionRepository",
    "ReconciliationMatchRepository",
    "ReconciliationRepository",
    "RecordStore",
    "StatementLineRepository",
    "StatementRepository",
    "AccountingPeriodRecordRepository",
    "LedgerTransactionRecordRepository",
    "ReconciliationMatchRecordRepository",
    "ReconciliationRecordRepository",
    "StatementLineRecordRepository",
    "StatementRecordRepository",
    "SQLiteDatabase",
    "SQLiteRecordStore",
]

# PostgreSQL support is optional - only available if psycopg2 is installed
try:
    from bank_reconciliation.repositories.postgres import (
        PostgresDatabase,
        PostgresRecordStore,
    )

    __all__ += ["PostgresDatabase", "PostgresRecordStore"]
except ImportError:
    # psycopg2 not installed, PostgreSQL store not available
    pass
