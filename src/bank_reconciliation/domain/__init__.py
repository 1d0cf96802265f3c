from bank_reconciliation.domain.ledger import BankingViewRow, LedgerTransaction
from bank_reconciliation.domain.periods import AccountingPeriod, PeriodStatus
from bank_reconciliation.domain.reconciliation import (
    MatchKey,
    Reconciliation,
    ReconciliationMatch,
)
from bank_reconciliation.domain.statements import (
    ParsedStatementLine,
    Statement,
    StatementLine,
)

__all__ = [
    "AccountingPeriod",
    "BankingViewRow",
    "LedgerTransaction",
    "MatchKey",
    "ParsedStatementLine",
    "PeriodStatus",
    "Reconciliation",
    "ReconciliationMatch",
    "Statement",
    "StatementLine",
]
