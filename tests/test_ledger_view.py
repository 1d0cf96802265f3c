"""Tests for the banking view transformation and LedgerViewService."""

from datetime import date
from decimal import Decimal
from uuid import UUID, uuid4

import pytest

from bank_reconciliation.domain.ledger import LedgerTransaction
from bank_reconciliation.exceptions import ValidationError
from bank_reconciliation.repositories.records import LedgerTransactionRecordRepository
from bank_reconciliation.services.ledger_view import (
    LedgerViewService,
    build_banking_view,
    display_amounts,
)


def _txn(
    on: date,
    debit: str = "0",
    credit: str = "0",
    reference_type: str | None = None,
    description: str = "",
) -> LedgerTransaction:
    return LedgerTransaction(
        account_id=uuid4(),
        transaction_date=on,
        description=description,
        debit_amount=Decimal(debit),
        credit_amount=Decimal(credit),
        reference_type=reference_type,
    )


class TestDisplayAmounts:
    def test_receipt_payment_debit_shows_as_credit(self) -> None:
        txn = _txn(date(2025, 1, 1), debit="100", reference_type="receipt_payment")

        assert display_amounts(txn) == (Decimal("0"), Decimal("100"))

    @pytest.mark.parametrize("reference_type", ["expense", "purchase_payment"])
    def test_outgoing_payment_credit_shows_as_debit(self, reference_type: str) -> None:
        txn = _txn(date(2025, 1, 1), credit="75", reference_type=reference_type)

        assert display_amounts(txn) == (Decimal("75"), Decimal("0"))

    def test_reference_type_is_case_insensitive(self) -> None:
        txn = _txn(date(2025, 1, 1), debit="100", reference_type="Receipt_Payment")

        assert display_amounts(txn) == (Decimal("0"), Decimal("100"))

    def test_other_types_pass_through(self) -> None:
        txn = _txn(date(2025, 1, 1), debit="3", credit="4", reference_type="journal")

        assert display_amounts(txn) == (Decimal("3"), Decimal("4"))

    def test_missing_type_passes_through(self) -> None:
        txn = _txn(date(2025, 1, 1), debit="3")

        assert display_amounts(txn) == (Decimal("3"), Decimal("0"))

    def test_receipt_with_both_columns_uses_debit_only(self) -> None:
        txn = _txn(
            date(2025, 1, 1), debit="10", credit="99", reference_type="receipt_payment"
        )

        assert display_amounts(txn) == (Decimal("0"), Decimal("10"))


class TestBuildBankingView:
    def test_running_balance(self) -> None:
        transactions = [
            _txn(date(2025, 1, 1), credit="50"),
            _txn(date(2025, 1, 2), debit="20"),
            _txn(date(2025, 1, 3), credit="10"),
        ]

        rows = build_banking_view(transactions)

        assert [row.running_balance for row in rows] == [
            Decimal("50"),
            Decimal("30"),
            Decimal("40"),
        ]

    def test_running_balance_uses_flipped_amounts(self) -> None:
        transactions = [
            _txn(date(2025, 1, 1), debit="100", reference_type="receipt_payment"),
            _txn(date(2025, 1, 2), credit="30", reference_type="expense"),
        ]

        rows = build_banking_view(transactions)

        assert rows[0].display_credit == Decimal("100")
        assert rows[1].display_debit == Decimal("30")
        assert [row.running_balance for row in rows] == [Decimal("100"), Decimal("70")]

    def test_empty_input(self) -> None:
        assert build_banking_view([]) == []

    def test_search_filters_before_balance(self) -> None:
        transactions = [
            _txn(date(2025, 1, 1), credit="50", description="Rent received"),
            _txn(date(2025, 1, 2), debit="20", description="Coffee"),
            _txn(date(2025, 1, 3), credit="10", description="Rent top-up"),
        ]

        rows = build_banking_view(transactions, search="  RENT ")

        assert [row.transaction.description for row in rows] == [
            "Rent received",
            "Rent top-up",
        ]
        assert [row.running_balance for row in rows] == [Decimal("50"), Decimal("60")]

    def test_search_matches_reference_type_and_date(self) -> None:
        transactions = [
            _txn(date(2025, 1, 1), credit="5", reference_type="receipt_payment"),
            _txn(date(2025, 2, 14), debit="7"),
        ]

        assert len(build_banking_view(transactions, search="receipt")) == 1
        assert len(build_banking_view(transactions, search="2025-02")) == 1

    def test_blank_search_keeps_everything(self) -> None:
        transactions = [_txn(date(2025, 1, 1), credit="5")]

        assert len(build_banking_view(transactions, search="   ")) == 1

    def test_each_call_starts_from_zero(self) -> None:
        transactions = [_txn(date(2025, 1, 1), credit="5")]

        build_banking_view(transactions)
        rows = build_banking_view(transactions)

        assert rows[0].running_balance == Decimal("5")


class TestLedgerViewService:
    def test_loads_account_transactions_in_date_order(
        self,
        transaction_repo: LedgerTransactionRecordRepository,
        account_id: UUID,
        january_ledger: list[LedgerTransaction],
    ) -> None:
        service = LedgerViewService(transaction_repo)

        rows = service.banking_view(account_id)

        assert [row.transaction_id for row in rows] == [t.id for t in january_ledger]
        # 1500 in, 200 out, 15.50 out, 50 out
        assert rows[-1].running_balance == Decimal("1234.50")

    def test_other_accounts_are_excluded(
        self,
        transaction_repo: LedgerTransactionRecordRepository,
        january_ledger: list[LedgerTransaction],
    ) -> None:
        service = LedgerViewService(transaction_repo)

        assert service.banking_view(uuid4()) == []

    def test_search_and_date_range(
        self,
        transaction_repo: LedgerTransactionRecordRepository,
        account_id: UUID,
        january_ledger: list[LedgerTransaction],
    ) -> None:
        service = LedgerViewService(transaction_repo)

        rows = service.banking_view(
            account_id,
            search="bank",
            start_date=date(2025, 1, 15),
            end_date=date(2025, 1, 31),
        )

        assert len(rows) == 1
        assert rows[0].display_debit == Decimal("15.50")

    def test_invalid_account_raises(
        self, transaction_repo: LedgerTransactionRecordRepository
    ) -> None:
        with pytest.raises(ValidationError):
            LedgerViewService(transaction_repo).banking_view("nope")
