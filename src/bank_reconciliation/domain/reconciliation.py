"""Reconciliation and match domain models."""

from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from decimal import ROUND_HALF_UP, Decimal
from uuid import UUID, uuid4

CENT = Decimal("0.01")


def _utc_now() -> datetime:
    return datetime.now(UTC)


def quantize_amount(amount: Decimal) -> Decimal:
    """Round to two decimal places so keys compare without drift."""
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class MatchKey:
    """Exact lookup key pairing a statement line with a ledger transaction."""

    on_date: date
    amount: Decimal

    @classmethod
    def of(cls, on_date: date, amount: Decimal) -> "MatchKey":
        return cls(on_date=on_date, amount=quantize_amount(amount))


@dataclass
class Reconciliation:
    """Unit of work matching statement lines to ledger transactions for a period.

    At most one exists per (account_id, period_start, period_end).
    """

    organization_id: UUID
    account_id: UUID
    period_start: date
    period_end: date
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=_utc_now)


@dataclass
class ReconciliationMatch:
    """A persisted pairing of one statement line with one ledger transaction."""

    reconciliation_id: UUID
    statement_line_id: UUID
    account_transaction_id: UUID
    match_amount: Decimal
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=_utc_now)
