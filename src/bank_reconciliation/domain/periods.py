"""Accounting period lock model."""

from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from enum import Enum
from uuid import UUID, uuid4


class PeriodStatus(str, Enum):
    """Status of an accounting period row.

    Only LOCKED is ever stored: an unlocked period has no row at all.
    """

    LOCKED = "locked"


@dataclass
class AccountingPeriod:
    organization_id: UUID
    period_start: date
    period_end: date
    status: PeriodStatus = PeriodStatus.LOCKED
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def contains(self, on_date: date) -> bool:
        return self.period_start <= on_date <= self.period_end
