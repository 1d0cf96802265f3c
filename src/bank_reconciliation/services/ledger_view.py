"""Banking view of ledger transactions.

Customer receipts and supplier/expense payments are recorded in the ledger
from the counter-party's side. The banking view inverts them so that cash
coming in shows as a credit and cash going out as a debit, then folds a
running balance over the rows shown.
"""

from collections.abc import Iterable
from datetime import date
from decimal import Decimal
from uuid import UUID

from bank_reconciliation.domain.ledger import (
    OUTGOING_REFERENCE_TYPES,
    RECEIPT_PAYMENT,
    BankingViewRow,
    LedgerTransaction,
)
from bank_reconciliation.logging_config import get_logger
from bank_reconciliation.repositories.interfaces import LedgerTransactionRepository
from bank_reconciliation.services.validation import coerce_uuid

logger = get_logger(__name__)

ZERO = Decimal("0")


def display_amounts(txn: LedgerTransaction) -> tuple[Decimal, Decimal]:
    """Return (display_debit, display_credit) for a transaction."""
    reference_type = (txn.reference_type or "").lower()
    if reference_type == RECEIPT_PAYMENT:
        return ZERO, txn.debit_amount
    if reference_type in OUTGOING_REFERENCE_TYPES:
        return txn.credit_amount, ZERO
    return txn.debit_amount, txn.credit_amount


def matches_search(txn: LedgerTransaction, search: str | None) -> bool:
    query = (search or "").strip().lower()
    if not query:
        return True
    return (
        query in txn.description.lower()
        or query in (txn.reference_type or "").lower()
        or query in txn.transaction_date.isoformat()
    )


def build_banking_view(
    transactions: Iterable[LedgerTransaction], search: str | None = None
) -> list[BankingViewRow]:
    """Filter, sign-flip and accumulate a running balance.

    The balance starts at zero and covers only the rows that pass the
    search, in the order given.
    """
    rows: list[BankingViewRow] = []
    balance = ZERO
    for txn in transactions:
        if not matches_search(txn, search):
            continue
        display_debit, display_credit = display_amounts(txn)
        balance += display_credit - display_debit
        rows.append(
            BankingViewRow(
                transaction=txn,
                display_debit=display_debit,
                display_credit=display_credit,
                running_balance=balance,
            )
        )
    return rows


class LedgerViewService:
    """Loads an account's ledger transactions and renders the banking view."""

    def __init__(self, transaction_repo: LedgerTransactionRepository) -> None:
        self._transaction_repo = transaction_repo

    def banking_view(
        self,
        account_id: UUID | str,
        search: str | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> list[BankingViewRow]:
        account_uuid = coerce_uuid(account_id, "account_id")
        transactions = list(
            self._transaction_repo.list_by_account(account_uuid, start_date, end_date)
        )
        rows = build_banking_view(transactions, search)
        logger.debug(
            "banking_view_built",
            account_id=account_uuid,
            transactions=len(transactions),
            rows=len(rows),
        )
        return rows
