"""Ledger transaction models and the banking display row."""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from uuid import UUID, uuid4

# Reference types whose cash movement is shown inverted in the banking view.
RECEIPT_PAYMENT = "receipt_payment"
EXPENSE = "expense"
PURCHASE_PAYMENT = "purchase_payment"

OUTGOING_REFERENCE_TYPES = frozenset({EXPENSE, PURCHASE_PAYMENT})


@dataclass
class LedgerTransaction:
    """An entry recorded by the ledger subsystem against one account.

    Read-only to this engine. Debit and credit are both non-negative; normally
    only one of them is non-zero, but both may be populated.
    """

    account_id: UUID
    transaction_date: date
    description: str = ""
    debit_amount: Decimal = Decimal("0")
    credit_amount: Decimal = Decimal("0")
    reference_type: str | None = None
    reference_id: str | None = None
    organization_id: UUID | None = None
    id: UUID = field(default_factory=uuid4)

    @property
    def net_amount(self) -> Decimal:
        return self.credit_amount - self.debit_amount


@dataclass(frozen=True)
class BankingViewRow:
    """A ledger transaction as displayed in the banking view."""

    transaction: LedgerTransaction
    display_debit: Decimal
    display_credit: Decimal
    running_balance: Decimal

    @property
    def transaction_id(self) -> UUID:
        return self.transaction.id
