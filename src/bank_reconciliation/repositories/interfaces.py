from abc import ABC, abstractmethod
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any
from uuid import UUID

from bank_reconciliation.domain.ledger import LedgerTransaction
from bank_reconciliation.domain.periods import AccountingPeriod
from bank_reconciliation.domain.reconciliation import (
    Reconciliation,
    ReconciliationMatch,
)
from bank_reconciliation.domain.statements import Statement, StatementLine

FILTER_OPS = ("eq", "in", "gte", "lte")


@dataclass(frozen=True)
class Filter:
    """A single column predicate. Filters passed together are AND-ed."""

    column: str
    op: str
    value: Any

    def __post_init__(self) -> None:
        if self.op not in FILTER_OPS:
            raise ValueError(f"Unsupported filter op: {self.op}")


class RecordStore(ABC):
    """Generic table-oriented persistence.

    Rows are plain dicts of already-serialized column values. Every call is
    its own transaction: an insert either stores all rows or none.
    Unique-constraint violations raise DuplicateKeyError, anything else
    raises PersistenceError.
    """

    @abstractmethod
    def insert(self, table: str, rows: Sequence[dict[str, Any]]) -> list[str]:
        pass

    @abstractmethod
    def query(
        self,
        table: str,
        filters: Sequence[Filter] | None = None,
        order_by: Sequence[str] | None = None,
    ) -> list[dict[str, Any]]:
        pass

    @abstractmethod
    def update(
        self, table: str, filters: Sequence[Filter], patch: dict[str, Any]
    ) -> int:
        pass

    @abstractmethod
    def delete(self, table: str, filters: Sequence[Filter]) -> int:
        pass


class StatementRepository(ABC):
    @abstractmethod
    def add(self, statement: Statement) -> None:
        pass

    @abstractmethod
    def get(self, statement_id: UUID) -> Statement | None:
        pass

    @abstractmethod
    def list_by_account(self, account_id: UUID) -> Iterable[Statement]:
        pass

    @abstractmethod
    def list_overlapping(
        self, account_id: UUID, period_start: date, period_end: date
    ) -> Iterable[Statement]:
        pass


class StatementLineRepository(ABC):
    @abstractmethod
    def add_many(self, lines: Sequence[StatementLine]) -> None:
        pass

    @abstractmethod
    def list_by_statement(self, statement_id: UUID) -> Iterable[StatementLine]:
        pass

    @abstractmethod
    def list_in_range(
        self, statement_ids: Sequence[UUID], period_start: date, period_end: date
    ) -> Iterable[StatementLine]:
        pass

    @abstractmethod
    def mark_matched(self, line_ids: Sequence[UUID], reconciled_at: datetime) -> int:
        pass


class ReconciliationRepository(ABC):
    @abstractmethod
    def add(self, reconciliation: Reconciliation) -> None:
        pass

    @abstractmethod
    def get(self, reconciliation_id: UUID) -> Reconciliation | None:
        pass

    @abstractmethod
    def find(
        self, account_id: UUID, period_start: date, period_end: date
    ) -> Reconciliation | None:
        pass


class ReconciliationMatchRepository(ABC):
    @abstractmethod
    def add_many(self, matches: Sequence[ReconciliationMatch]) -> None:
        pass

    @abstractmethod
    def list_by_reconciliation(
        self, reconciliation_id: UUID
    ) -> Iterable[ReconciliationMatch]:
        pass

    @abstractmethod
    def list_by_transactions(
        self, transaction_ids: Sequence[UUID]
    ) -> Iterable[ReconciliationMatch]:
        pass


class LedgerTransactionRepository(ABC):
    @abstractmethod
    def add(self, txn: LedgerTransaction) -> None:
        pass

    @abstractmethod
    def list_by_account(
        self,
        account_id: UUID,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> Iterable[LedgerTransaction]:
        pass


class AccountingPeriodRepository(ABC):
    @abstractmethod
    def add(self, period: AccountingPeriod) -> None:
        pass

    @abstractmethod
    def delete_by_bounds(
        self, organization_id: UUID, period_start: date, period_end: date
    ) -> int:
        pass

    @abstractmethod
    def list_by_organization(
        self, organization_id: UUID
    ) -> Iterable[AccountingPeriod]:
        pass
