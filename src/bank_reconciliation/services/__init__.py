from bank_reconciliation.services.ingestion import (
    ImportResult,
    StatementIngestionService,
    compute_line_hash,
)
from bank_reconciliation.services.ledger_view import (
    LedgerViewService,
    build_banking_view,
)
from bank_reconciliation.services.periods import PeriodLockService, month_bounds
from bank_reconciliation.services.reconciliation import (
    ReconciliationResult,
    ReconciliationService,
    UnmatchedItems,
)

__all__ = [
    "ImportResult",
    "LedgerViewService",
    "PeriodLockService",
    "ReconciliationResult",
    "ReconciliationService",
    "StatementIngestionService",
    "UnmatchedItems",
    "build_banking_view",
    "compute_line_hash",
    "month_bounds",
]
