"""Bank statement domain models."""

from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from decimal import Decimal
from uuid import UUID, uuid4


def _utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True)
class ParsedStatementLine:
    """A normalized row read from a bank statement file, before persistence."""

    line_date: date
    description: str = ""
    debit: Decimal = Decimal("0")
    credit: Decimal = Decimal("0")
    balance: Decimal | None = None
    external_reference: str | None = None

    @property
    def net_amount(self) -> Decimal:
        """Credit minus debit: positive for money in, negative for money out."""
        return self.credit - self.debit


@dataclass
class Statement:
    """Header record for one imported statement file.

    The date bounds are the earliest and latest line dates in the file.
    """

    organization_id: UUID
    account_id: UUID
    name: str
    start_date: date
    end_date: date
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=_utc_now)

    def overlaps(self, period_start: date, period_end: date) -> bool:
        return self.start_date <= period_end and self.end_date >= period_start


@dataclass
class StatementLine:
    """A persisted statement line.

    ``hash`` is unique within the account; it is what makes re-importing the
    same file a no-op. ``matched`` and ``reconciled_at`` are only changed by
    auto-reconciliation.
    """

    statement_id: UUID
    account_id: UUID
    line_date: date
    hash: str
    ordinal: int
    description: str = ""
    debit: Decimal = Decimal("0")
    credit: Decimal = Decimal("0")
    balance: Decimal | None = None
    external_reference: str | None = None
    matched: bool = False
    reconciled_at: datetime | None = None
    id: UUID = field(default_factory=uuid4)

    @property
    def net_amount(self) -> Decimal:
        return self.credit - self.debit
