"""Tests for PeriodLockService."""

import logging
from datetime import date
from uuid import UUID, uuid4

import pytest

from bank_reconciliation.domain.periods import PeriodStatus
from bank_reconciliation.exceptions import (
    InvalidRangeError,
    PeriodAlreadyLockedError,
    ValidationError,
)
from bank_reconciliation.repositories.records import AccountingPeriodRecordRepository
from bank_reconciliation.services.periods import PeriodLockService, month_bounds


@pytest.fixture
def service(period_repo: AccountingPeriodRecordRepository) -> PeriodLockService:
    return PeriodLockService(period_repo)


class TestMonthBounds:
    def test_regular_month(self) -> None:
        assert month_bounds(2025, 1) == (date(2025, 1, 1), date(2025, 1, 31))

    def test_leap_february(self) -> None:
        assert month_bounds(2024, 2) == (date(2024, 2, 1), date(2024, 2, 29))

    def test_december(self) -> None:
        assert month_bounds(2025, 12) == (date(2025, 12, 1), date(2025, 12, 31))

    @pytest.mark.parametrize("month", [0, 13])
    def test_invalid_month_raises(self, month: int) -> None:
        with pytest.raises(ValidationError):
            month_bounds(2025, month)


class TestLockPeriod:
    def test_lock_creates_locked_period(
        self, service: PeriodLockService, organization_id: UUID
    ) -> None:
        period = service.lock_period(
            organization_id, date(2025, 1, 1), date(2025, 1, 31)
        )

        assert period.status == PeriodStatus.LOCKED
        stored = service.list_periods(organization_id)
        assert len(stored) == 1
        assert stored[0].id == period.id
        assert stored[0].period_end == date(2025, 1, 31)

    def test_single_day_period(
        self, service: PeriodLockService, organization_id: UUID
    ) -> None:
        period = service.lock_period(
            organization_id, date(2025, 3, 31), date(2025, 3, 31)
        )

        assert period.period_start == period.period_end

    def test_locking_same_bounds_twice_raises(
        self, service: PeriodLockService, organization_id: UUID
    ) -> None:
        service.lock_period(organization_id, date(2025, 1, 1), date(2025, 1, 31))

        with pytest.raises(PeriodAlreadyLockedError) as exc_info:
            service.lock_period(organization_id, date(2025, 1, 1), date(2025, 1, 31))

        assert exc_info.value.status_code == 409
        assert len(service.list_periods(organization_id)) == 1

    def test_overlapping_bounds_are_separate_locks(
        self, service: PeriodLockService, organization_id: UUID
    ) -> None:
        service.lock_period(organization_id, date(2025, 1, 1), date(2025, 1, 31))
        service.lock_period(organization_id, date(2025, 1, 15), date(2025, 2, 15))

        assert len(service.list_periods(organization_id)) == 2

    def test_same_bounds_for_other_organization(
        self, service: PeriodLockService, organization_id: UUID
    ) -> None:
        service.lock_period(organization_id, date(2025, 1, 1), date(2025, 1, 31))
        service.lock_period(uuid4(), date(2025, 1, 1), date(2025, 1, 31))

        assert len(service.list_periods(organization_id)) == 1

    def test_inverted_range_raises(
        self, service: PeriodLockService, organization_id: UUID
    ) -> None:
        with pytest.raises(InvalidRangeError):
            service.lock_period(organization_id, date(2025, 2, 1), date(2025, 1, 1))

        assert service.list_periods(organization_id) == []

    def test_lock_month(
        self, service: PeriodLockService, organization_id: UUID
    ) -> None:
        period = service.lock_month(organization_id, 2024, 2)

        assert period.period_start == date(2024, 2, 1)
        assert period.period_end == date(2024, 2, 29)

    def test_logs_lock(
        self,
        service: PeriodLockService,
        organization_id: UUID,
        capsys,
        caplog,
    ) -> None:
        with caplog.at_level(logging.INFO):
            service.lock_period(organization_id, date(2025, 1, 1), date(2025, 1, 31))

        all_output = capsys.readouterr().out + caplog.text
        assert "period_locked" in all_output


class TestUnlockPeriod:
    def test_unlock_removes_lock(
        self, service: PeriodLockService, organization_id: UUID
    ) -> None:
        service.lock_period(organization_id, date(2025, 1, 1), date(2025, 1, 31))

        removed = service.unlock_period(
            organization_id, date(2025, 1, 1), date(2025, 1, 31)
        )

        assert removed == 1
        assert service.list_periods(organization_id) == []

    def test_unlock_without_lock_is_noop(
        self, service: PeriodLockService, organization_id: UUID
    ) -> None:
        assert (
            service.unlock_period(organization_id, date(2025, 1, 1), date(2025, 1, 31))
            == 0
        )

    def test_unlock_requires_exact_bounds(
        self, service: PeriodLockService, organization_id: UUID
    ) -> None:
        service.lock_period(organization_id, date(2025, 1, 1), date(2025, 1, 31))

        removed = service.unlock_period(
            organization_id, date(2025, 1, 1), date(2025, 1, 30)
        )

        assert removed == 0
        assert len(service.list_periods(organization_id)) == 1

    def test_relock_after_unlock(
        self, service: PeriodLockService, organization_id: UUID
    ) -> None:
        service.lock_period(organization_id, date(2025, 1, 1), date(2025, 1, 31))
        service.unlock_period(organization_id, date(2025, 1, 1), date(2025, 1, 31))

        service.lock_period(organization_id, date(2025, 1, 1), date(2025, 1, 31))

        assert len(service.list_periods(organization_id)) == 1


class TestQueries:
    def test_list_periods_ordered_by_start(
        self, service: PeriodLockService, organization_id: UUID
    ) -> None:
        service.lock_month(organization_id, 2025, 3)
        service.lock_month(organization_id, 2025, 1)

        starts = [p.period_start for p in service.list_periods(organization_id)]

        assert starts == [date(2025, 1, 1), date(2025, 3, 1)]

    def test_is_locked(
        self, service: PeriodLockService, organization_id: UUID
    ) -> None:
        service.lock_month(organization_id, 2025, 1)

        assert service.is_locked(organization_id, date(2025, 1, 31))
        assert not service.is_locked(organization_id, date(2025, 2, 1))

    def test_invalid_organization_raises(self, service: PeriodLockService) -> None:
        with pytest.raises(ValidationError):
            service.list_periods("not-a-uuid")
