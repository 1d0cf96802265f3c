from bank_reconciliation.domain import (
    AccountingPeriod,
    BankingViewRow,
    LedgerTransaction,
    MatchKey,
    ParsedStatementLine,
    Reconciliation,
    ReconciliationMatch,
    Statement,
    StatementLine,
)

__all__ = [
    "AccountingPeriod",
    "BankingViewRow",
    "LedgerTransaction",
    "MatchKey",
    "ParsedStatementLine",
    "Reconciliation",
    "ReconciliationMatch",
    "Statement",
    "StatementLine",
]

__version__ = "0.1.0"
