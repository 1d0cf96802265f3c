from datetime import date
from decimal import Decimal
from uuid import UUID, uuid4

import pytest

from bank_reconciliation.domain.ledger import LedgerTransaction
from bank_reconciliation.domain.statements import ParsedStatementLine
from bank_reconciliation.repositories.records import (
    AccountingPeriodRecordRepository,
    LedgerTransactionRecordRepository,
    ReconciliationMatchRecordRepository,
    ReconciliationRecordRepository,
    StatementLineRecordRepository,
    StatementRecordRepository,
)
from bank_reconciliation.repositories.sqlite import SQLiteDatabase, SQLiteRecordStore


@pytest.fixture
def db() -> SQLiteDatabase:
    """Create an in-memory SQLite database for testing."""
    database = SQLiteDatabase(":memory:")
    database.initialize()
    return database


@pytest.fixture
def store(db: SQLiteDatabase) -> SQLiteRecordStore:
    return SQLiteRecordStore(db)


@pytest.fixture
def statement_repo(store: SQLiteRecordStore) -> StatementRecordRepository:
    return StatementRecordRepository(store)


@pytest.fixture
def line_repo(store: SQLiteRecordStore) -> StatementLineRecordRepository:
    return StatementLineRecordRepository(store)


@pytest.fixture
def transaction_repo(store: SQLiteRecordStore) -> LedgerTransactionRecordRepository:
    return LedgerTransactionRecordRepository(store)


@pytest.fixture
def reconciliation_repo(store: SQLiteRecordStore) -> ReconciliationRecordRepository:
    return ReconciliationRecordRepository(store)


@pytest.fixture
def match_repo(store: SQLiteRecordStore) -> ReconciliationMatchRecordRepository:
    return ReconciliationMatchRecordRepository(store)


@pytest.fixture
def period_repo(store: SQLiteRecordStore) -> AccountingPeriodRecordRepository:
    return AccountingPeriodRecordRepository(store)


@pytest.fixture
def organization_id() -> UUID:
    return uuid4()


@pytest.fixture
def account_id() -> UUID:
    return uuid4()


@pytest.fixture
def january_lines() -> list[ParsedStatementLine]:
    """Three statement lines for January 2025 with no balance column."""
    return [
        ParsedStatementLine(
            line_date=date(2025, 1, 5),
            description="Client payment INV-001",
            credit=Decimal("1500.00"),
        ),
        ParsedStatementLine(
            line_date=date(2025, 1, 10),
            description="Supplier payment",
            debit=Decimal("200.00"),
        ),
        ParsedStatementLine(
            line_date=date(2025, 1, 20),
            description="Bank charges",
            debit=Decimal("15.50"),
        ),
    ]


@pytest.fixture
def january_ledger(
    transaction_repo: LedgerTransactionRecordRepository,
    account_id: UUID,
    organization_id: UUID,
) -> list[LedgerTransaction]:
    """Ledger transactions mirroring ``january_lines`` plus one unmatched entry."""
    transactions = [
        LedgerTransaction(
            account_id=account_id,
            organization_id=organization_id,
            transaction_date=date(2025, 1, 5),
            description="Receipt INV-001",
            credit_amount=Decimal("1500.00"),
            reference_type="deposit",
        ),
        LedgerTransaction(
            account_id=account_id,
            organization_id=organization_id,
            transaction_date=date(2025, 1, 10),
            description="Payment to supplier",
            debit_amount=Decimal("200.00"),
            reference_type="transfer",
        ),
        LedgerTransaction(
            account_id=account_id,
            organization_id=organization_id,
            transaction_date=date(2025, 1, 20),
            description="Bank fees",
            debit_amount=Decimal("15.50"),
            reference_type="fee",
        ),
        LedgerTransaction(
            account_id=account_id,
            organization_id=organization_id,
            transaction_date=date(2025, 1, 25),
            description="Petty cash top-up",
            debit_amount=Decimal("50.00"),
        ),
    ]
    for txn in transactions:
        transaction_repo.add(txn)
    return transactions
