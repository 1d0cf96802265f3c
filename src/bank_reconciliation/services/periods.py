"""Accounting period locks.

A locked period is a row in the store; unlocking deletes it. Locks are
advisory: nothing in this package refuses writes inside a locked period.
"""

from datetime import date
from uuid import UUID

from dateutil.relativedelta import relativedelta

from bank_reconciliation.domain.periods import AccountingPeriod
from bank_reconciliation.exceptions import (
    DuplicateKeyError,
    PeriodAlreadyLockedError,
    ValidationError,
)
from bank_reconciliation.logging_config import get_logger
from bank_reconciliation.repositories.interfaces import AccountingPeriodRepository
from bank_reconciliation.services.validation import check_range, coerce_uuid

logger = get_logger(__name__)


def month_bounds(year: int, month: int) -> tuple[date, date]:
    """First and last day of a calendar month."""
    if not 1 <= month <= 12:
        raise ValidationError(f"Invalid month: {month}", context={"month": month})
    start = date(year, month, 1)
    end = start + relativedelta(months=1) - relativedelta(days=1)
    return start, end


class PeriodLockService:
    def __init__(self, period_repo: AccountingPeriodRepository) -> None:
        self._period_repo = period_repo

    def lock_period(
        self, organization_id: UUID | str, period_start: date, period_end: date
    ) -> AccountingPeriod:
        """Record a lock for exactly these bounds.

        Raises:
            InvalidRangeError: If period_start is after period_end.
            PeriodAlreadyLockedError: If the same bounds are already locked.
        """
        check_range(period_start, period_end)
        org_uuid = coerce_uuid(organization_id, "organization_id")
        period = AccountingPeriod(
            organization_id=org_uuid,
            period_start=period_start,
            period_end=period_end,
        )
        try:
            self._period_repo.add(period)
        except DuplicateKeyError as e:
            raise PeriodAlreadyLockedError(org_uuid, period_start, period_end) from e

        logger.info(
            "period_locked",
            organization_id=org_uuid,
            period_start=period_start,
            period_end=period_end,
        )
        return period

    def unlock_period(
        self, organization_id: UUID | str, period_start: date, period_end: date
    ) -> int:
        """Remove the lock with exactly these bounds. Returns rows removed."""
        org_uuid = coerce_uuid(organization_id, "organization_id")
        removed = self._period_repo.delete_by_bounds(org_uuid, period_start, period_end)
        logger.info(
            "period_unlocked",
            organization_id=org_uuid,
            period_start=period_start,
            period_end=period_end,
            removed=removed,
        )
        return removed

    def lock_month(
        self, organization_id: UUID | str, year: int, month: int
    ) -> AccountingPeriod:
        start, end = month_bounds(year, month)
        return self.lock_period(organization_id, start, end)

    def list_periods(self, organization_id: UUID | str) -> list[AccountingPeriod]:
        return list(
            self._period_repo.list_by_organization(
                coerce_uuid(organization_id, "organization_id")
            )
        )

    def is_locked(self, organization_id: UUID | str, on_date: date) -> bool:
        """True if any locked period of the organization contains the date."""
        return any(period.contains(on_date) for period in self.list_periods(organization_id))
