"""Typed repositories implemented on top of any RecordStore.

Amounts are stored as decimal strings, dates and timestamps as ISO-8601
text, ids as UUID strings and booleans as 0/1.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import date, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from bank_reconciliation.domain.ledger import LedgerTransaction
from bank_reconciliation.domain.periods import AccountingPeriod, PeriodStatus
from bank_reconciliation.domain.reconciliation import (
    Reconciliation,
    ReconciliationMatch,
)
from bank_reconciliation.domain.statements import Statement, StatementLine
from bank_reconciliation.repositories.interfaces import (
    AccountingPeriodRepository,
    Filter,
    LedgerTransactionRepository,
    ReconciliationMatchRepository,
    ReconciliationRepository,
    RecordStore,
    StatementLineRepository,
    StatementRepository,
)
from bank_reconciliation.repositories.schema import (
    ACCOUNT_TRANSACTIONS,
    ACCOUNTING_PERIODS,
    RECONCILIATION_MATCHES,
    RECONCILIATIONS,
    STATEMENT_LINES,
    STATEMENTS,
)


def _optional_str(value: Any) -> str | None:
    return None if value is None else str(value)


def _optional_decimal(value: Any) -> Decimal | None:
    return None if value is None else Decimal(str(value))


def _optional_uuid(value: Any) -> UUID | None:
    return None if value is None else UUID(str(value))


class StatementRecordRepository(StatementRepository):
    """RecordStore implementation of StatementRepository."""

    def __init__(self, store: RecordStore) -> None:
        self._store = store

    def add(self, statement: Statement) -> None:
        self._store.insert(
            STATEMENTS,
            [
                {
                    "id": str(statement.id),
                    "organization_id": str(statement.organization_id),
                    "account_id": str(statement.account_id),
                    "name": statement.name,
                    "start_date": statement.start_date.isoformat(),
                    "end_date": statement.end_date.isoformat(),
                    "created_at": statement.created_at.isoformat(),
                }
            ],
        )

    def get(self, statement_id: UUID) -> Statement | None:
        rows = self._store.query(STATEMENTS, [Filter("id", "eq", str(statement_id))])
        return self._row_to_statement(rows[0]) if rows else None

    def list_by_account(self, account_id: UUID) -> Iterable[Statement]:
        rows = self._store.query(
            STATEMENTS,
            [Filter("account_id", "eq", str(account_id))],
            order_by=["start_date", "created_at", "id"],
        )
        return [self._row_to_statement(row) for row in rows]

    def list_overlapping(
        self, account_id: UUID, period_start: date, period_end: date
    ) -> Iterable[Statement]:
        rows = self._store.query(
            STATEMENTS,
            [
                Filter("account_id", "eq", str(account_id)),
                Filter("start_date", "lte", period_end.isoformat()),
                Filter("end_date", "gte", period_start.isoformat()),
            ],
            order_by=["start_date", "created_at", "id"],
        )
        return [self._row_to_statement(row) for row in rows]

    def _row_to_statement(self, row: dict[str, Any]) -> Statement:
        return Statement(
            id=UUID(row["id"]),
            organization_id=UUID(row["organization_id"]),
            account_id=UUID(row["account_id"]),
            name=row["name"],
            start_date=date.fromisoformat(row["start_date"]),
            end_date=date.fromisoformat(row["end_date"]),
            created_at=datetime.fromisoformat(row["created_at"]),
        )


class StatementLineRecordRepository(StatementLineRepository):
    """RecordStore implementation of StatementLineRepository."""

    def __init__(self, store: RecordStore) -> None:
        self._store = store

    def add_many(self, lines: Sequence[StatementLine]) -> None:
        self._store.insert(STATEMENT_LINES, [self._line_to_row(line) for line in lines])

    def list_by_statement(self, statement_id: UUID) -> Iterable[StatementLine]:
        rows = self._store.query(
            STATEMENT_LINES,
            [Filter("statement_id", "eq", str(statement_id))],
            order_by=["ordinal"],
        )
        return [self._row_to_line(row) for row in rows]

    def list_in_range(
        self, statement_ids: Sequence[UUID], period_start: date, period_end: date
    ) -> Iterable[StatementLine]:
        rows = self._store.query(
            STATEMENT_LINES,
            [
                Filter("statement_id", "in", [str(sid) for sid in statement_ids]),
                Filter("line_date", "gte", period_start.isoformat()),
                Filter("line_date", "lte", period_end.isoformat()),
            ],
            order_by=["line_date", "ordinal", "id"],
        )
        return [self._row_to_line(row) for row in rows]

    def mark_matched(self, line_ids: Sequence[UUID], reconciled_at: datetime) -> int:
        if not line_ids:
            return 0
        return self._store.update(
            STATEMENT_LINES,
            [Filter("id", "in", [str(line_id) for line_id in line_ids])],
            {"matched": 1, "reconciled_at": reconciled_at.isoformat()},
        )

    def _line_to_row(self, line: StatementLine) -> dict[str, Any]:
        return {
            "id": str(line.id),
            "statement_id": str(line.statement_id),
            "account_id": str(line.account_id),
            "ordinal": line.ordinal,
            "line_date": line.line_date.isoformat(),
            "description": line.description,
            "debit": str(line.debit),
            "credit": str(line.credit),
            "balance": _optional_str(line.balance),
            "external_reference": line.external_reference,
            "hash": line.hash,
            "matched": 1 if line.matched else 0,
            "reconciled_at": (
                line.reconciled_at.isoformat() if line.reconciled_at else None
            ),
        }

    def _row_to_line(self, row: dict[str, Any]) -> StatementLine:
        return StatementLine(
            id=UUID(row["id"]),
            statement_id=UUID(row["statement_id"]),
            account_id=UUID(row["account_id"]),
            ordinal=int(row["ordinal"]),
            line_date=date.fromisoformat(row["line_date"]),
            description=row["description"],
            debit=Decimal(row["debit"]),
            credit=Decimal(row["credit"]),
            balance=_optional_decimal(row["balance"]),
            external_reference=row["external_reference"],
            hash=row["hash"],
            matched=bool(row["matched"]),
            reconciled_at=(
                datetime.fromisoformat(row["reconciled_at"])
                if row["reconciled_at"]
                else None
            ),
        )


class ReconciliationRecordRepository(ReconciliationRepository):
    """RecordStore implementation of ReconciliationRepository."""

    def __init__(self, store: RecordStore) -> None:
        self._store = store

    def add(self, reconciliation: Reconciliation) -> None:
        self._store.insert(
            RECONCILIATIONS,
            [
                {
                    "id": str(reconciliation.id),
                    "organization_id": str(reconciliation.organization_id),
                    "account_id": str(reconciliation.account_id),
                    "period_start": reconciliation.period_start.isoformat(),
                    "period_end": reconciliation.period_end.isoformat(),
                    "created_at": reconciliation.created_at.isoformat(),
                }
            ],
        )

    def get(self, reconciliation_id: UUID) -> Reconciliation | None:
        rows = self._store.query(
            RECONCILIATIONS, [Filter("id", "eq", str(reconciliation_id))]
        )
        return self._row_to_reconciliation(rows[0]) if rows else None

    def find(
        self, account_id: UUID, period_start: date, period_end: date
    ) -> Reconciliation | None:
        rows = self._store.query(
            RECONCILIATIONS,
            [
                Filter("account_id", "eq", str(account_id)),
                Filter("period_start", "eq", period_start.isoformat()),
                Filter("period_end", "eq", period_end.isoformat()),
            ],
        )
        return self._row_to_reconciliation(rows[0]) if rows else None

    def _row_to_reconciliation(self, row: dict[str, Any]) -> Reconciliation:
        return Reconciliation(
            id=UUID(row["id"]),
            organization_id=UUID(row["organization_id"]),
            account_id=UUID(row["account_id"]),
            period_start=date.fromisoformat(row["period_start"]),
            period_end=date.fromisoformat(row["period_end"]),
            created_at=datetime.fromisoformat(row["created_at"]),
        )


class ReconciliationMatchRecordRepository(ReconciliationMatchRepository):
    """RecordStore implementation of ReconciliationMatchRepository."""

    def __init__(self, store: RecordStore) -> None:
        self._store = store

    def add_many(self, matches: Sequence[ReconciliationMatch]) -> None:
        self._store.insert(
            RECONCILIATION_MATCHES,
            [
                {
                    "id": str(match.id),
                    "reconciliation_id": str(match.reconciliation_id),
                    "statement_line_id": str(match.statement_line_id),
                    "account_transaction_id": str(match.account_transaction_id),
                    "match_amount": str(match.match_amount),
                    "created_at": match.created_at.isoformat(),
                }
                for match in matches
            ],
        )

    def list_by_reconciliation(
        self, reconciliation_id: UUID
    ) -> Iterable[ReconciliationMatch]:
        rows = self._store.query(
            RECONCILIATION_MATCHES,
            [Filter("reconciliation_id", "eq", str(reconciliation_id))],
            order_by=["created_at", "id"],
        )
        return [self._row_to_match(row) for row in rows]

    def list_by_transactions(
        self, transaction_ids: Sequence[UUID]
    ) -> Iterable[ReconciliationMatch]:
        rows = self._store.query(
            RECONCILIATION_MATCHES,
            [
                Filter(
                    "account_transaction_id",
                    "in",
                    [str(txn_id) for txn_id in transaction_ids],
                )
            ],
            order_by=["created_at", "id"],
        )
        return [self._row_to_match(row) for row in rows]

    def _row_to_match(self, row: dict[str, Any]) -> ReconciliationMatch:
        return ReconciliationMatch(
            id=UUID(row["id"]),
            reconciliation_id=UUID(row["reconciliation_id"]),
            statement_line_id=UUID(row["statement_line_id"]),
            account_transaction_id=UUID(row["account_transaction_id"]),
            match_amount=Decimal(row["match_amount"]),
            created_at=datetime.fromisoformat(row["created_at"]),
        )


class LedgerTransactionRecordRepository(LedgerTransactionRepository):
    """RecordStore implementation of LedgerTransactionRepository.

    The engine only reads ledger transactions; ``add`` exists for loading
    fixtures and for deployments where the ledger lives in the same store.
    """

    def __init__(self, store: RecordStore) -> None:
        self._store = store

    def add(self, txn: LedgerTransaction) -> None:
        self._store.insert(
            ACCOUNT_TRANSACTIONS,
            [
                {
                    "id": str(txn.id),
                    "organization_id": _optional_str(txn.organization_id),
                    "account_id": str(txn.account_id),
                    "transaction_date": txn.transaction_date.isoformat(),
                    "description": txn.description,
                    "debit_amount": str(txn.debit_amount),
                    "credit_amount": str(txn.credit_amount),
                    "reference_type": txn.reference_type,
                    "reference_id": txn.reference_id,
                }
            ],
        )

    def list_by_account(
        self,
        account_id: UUID,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> Iterable[LedgerTransaction]:
        filters = [Filter("account_id", "eq", str(account_id))]
        if start_date is not None:
            filters.append(Filter("transaction_date", "gte", start_date.isoformat()))
        if end_date is not None:
            filters.append(Filter("transaction_date", "lte", end_date.isoformat()))
        rows = self._store.query(
            ACCOUNT_TRANSACTIONS, filters, order_by=["transaction_date", "id"]
        )
        return [self._row_to_transaction(row) for row in rows]

    def _row_to_transaction(self, row: dict[str, Any]) -> LedgerTransaction:
        return LedgerTransaction(
            id=UUID(row["id"]),
            organization_id=_optional_uuid(row["organization_id"]),
            account_id=UUID(row["account_id"]),
            transaction_date=date.fromisoformat(row["transaction_date"]),
            description=row["description"] or "",
            debit_amount=Decimal(row["debit_amount"] or "0"),
            credit_amount=Decimal(row["credit_amount"] or "0"),
            reference_type=row["reference_type"],
            reference_id=row["reference_id"],
        )


class AccountingPeriodRecordRepository(AccountingPeriodRepository):
    """RecordStore implementation of AccountingPeriodRepository."""

    def __init__(self, store: RecordStore) -> None:
        self._store = store

    def add(self, period: AccountingPeriod) -> None:
        self._store.insert(
            ACCOUNTING_PERIODS,
            [
                {
                    "id": str(period.id),
                    "organization_id": str(period.organization_id),
                    "period_start": period.period_start.isoformat(),
                    "period_end": period.period_end.isoformat(),
                    "status": period.status.value,
                    "created_at": period.created_at.isoformat(),
                }
            ],
        )

    def delete_by_bounds(
        self, organization_id: UUID, period_start: date, period_end: date
    ) -> int:
        return self._store.delete(
            ACCOUNTING_PERIODS,
            [
                Filter("organization_id", "eq", str(organization_id)),
                Filter("period_start", "eq", period_start.isoformat()),
                Filter("period_end", "eq", period_end.isoformat()),
            ],
        )

    def list_by_organization(
        self, organization_id: UUID
    ) -> Iterable[AccountingPeriod]:
        rows = self._store.query(
            ACCOUNTING_PERIODS,
            [Filter("organization_id", "eq", str(organization_id))],
            order_by=["period_start", "period_end"],
        )
        return [
            AccountingPeriod(
                id=UUID(row["id"]),
                organization_id=UUID(row["organization_id"]),
                period_start=date.fromisoformat(row["period_start"]),
                period_end=date.fromisoformat(row["period_end"]),
                status=PeriodStatus(row["status"]),
                created_at=datetime.fromisoformat(row["created_at"]),
            )
            for row in rows
        ]
