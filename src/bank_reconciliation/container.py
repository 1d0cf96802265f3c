"""Dependency injection container for the Bank Reconciliation Engine.

Wires the configured record store into the typed repositories and the
services. Everything is created lazily on first access and cached.

Usage:
    from bank_reconciliation.container import Container, get_container

    container = get_container()
    result = container.reconciliation_service.auto_reconcile(
        account_id, period_start, period_end
    )
"""

from functools import cached_property, lru_cache
from typing import TYPE_CHECKING

from bank_reconciliation.config import DatabaseType, Settings, get_settings
from bank_reconciliation.logging_config import get_logger
from bank_reconciliation.repositories.interfaces import RecordStore
from bank_reconciliation.repositories.records import (
    AccountingPeriodRecordRepository,
    LedgerTransactionRecordRepository,
    ReconciliationMatchRecordRepository,
    ReconciliationRecordRepository,
    StatementLineRecordRepository,
    StatementRecordRepository,
)

if TYPE_CHECKING:
    from bank_reconciliation.repositories.postgres import PostgresDatabase
    from bank_reconciliation.repositories.sqlite import SQLiteDatabase
    from bank_reconciliation.services.ingestion import StatementIngestionService
    from bank_reconciliation.services.ledger_view import LedgerViewService
    from bank_reconciliation.services.periods import PeriodLockService
    from bank_reconciliation.services.reconciliation import ReconciliationService

logger = get_logger(__name__)


class Container:
    """Dependency injection container.

    The container can be configured with custom settings for testing:

        test_settings = Settings(database_type=DatabaseType.SQLITE, sqlite_path=":memory:")
        container = Container(settings=test_settings)
    """

    def __init__(self, settings: Settings | None = None) -> None:
        self._settings = settings or get_settings()
        logger.debug(
            "container_created",
            database_type=self._settings.database_type.value,
            match_on_statement_balance=self._settings.match_on_statement_balance,
        )

    @property
    def settings(self) -> Settings:
        return self._settings

    @cached_property
    def database(self) -> "SQLiteDatabase | PostgresDatabase":
        """Get the database connection manager, initialized on first access.

        SQLite for development and testing, PostgreSQL for production.
        """
        if self._settings.database_type == DatabaseType.POSTGRES:
            return self._create_postgres_database()
        return self._create_sqlite_database()

    def _create_sqlite_database(self) -> "SQLiteDatabase":
        from bank_reconciliation.repositories.sqlite import SQLiteDatabase

        db_path = str(self._settings.sqlite_path)
        logger.info("initializing_sqlite_database", path=db_path)

        # API handlers run in a worker thread pool
        db = SQLiteDatabase(db_path, check_same_thread=False)
        db.initialize()
        return db

    def _create_postgres_database(self) -> "PostgresDatabase":
        from bank_reconciliation.repositories.postgres import PostgresDatabase

        url = self._settings.database_url or ""

        logger.info(
            "initializing_postgres_database",
            # Don't log the full URL as it may contain credentials
            host=url.split("@")[-1].split("/")[0] if "@" in url else "localhost",
        )

        db = PostgresDatabase(url)
        db.initialize()
        return db

    @cached_property
    def record_store(self) -> RecordStore:
        if self._settings.database_type == DatabaseType.POSTGRES:
            from bank_reconciliation.repositories.postgres import PostgresRecordStore

            return PostgresRecordStore(self.database)
        from bank_reconciliation.repositories.sqlite import SQLiteRecordStore

        return SQLiteRecordStore(self.database)

    @cached_property
    def statement_repository(self) -> StatementRecordRepository:
        return StatementRecordRepository(self.record_store)

    @cached_property
    def statement_line_repository(self) -> StatementLineRecordRepository:
        return StatementLineRecordRepository(self.record_store)

    @cached_property
    def transaction_repository(self) -> LedgerTransactionRecordRepository:
        return LedgerTransactionRecordRepository(self.record_store)

    @cached_property
    def reconciliation_repository(self) -> ReconciliationRecordRepository:
        return ReconciliationRecordRepository(self.record_store)

    @cached_property
    def match_repository(self) -> ReconciliationMatchRecordRepository:
        return ReconciliationMatchRecordRepository(self.record_store)

    @cached_property
    def period_repository(self) -> AccountingPeriodRecordRepository:
        return AccountingPeriodRecordRepository(self.record_store)

    @cached_property
    def ingestion_service(self) -> "StatementIngestionService":
        """Get the statement ingestion service."""
        from bank_reconciliation.parsers.statement_csv import StatementCSVParser
        from bank_reconciliation.services.ingestion import StatementIngestionService

        return StatementIngestionService(
            self.statement_repository,
            self.statement_line_repository,
            batch_size=self._settings.import_batch_size,
            parser=StatementCSVParser(self._settings.statement_date_format),
        )

    @cached_property
    def ledger_view_service(self) -> "LedgerViewService":
        """Get the banking view service."""
        from bank_reconciliation.services.ledger_view import LedgerViewService

        return LedgerViewService(self.transaction_repository)

    @cached_property
    def reconciliation_service(self) -> "ReconciliationService":
        """Get the auto-reconciliation service."""
        from bank_reconciliation.services.reconciliation import ReconciliationService

        return ReconciliationService(
            self.statement_repository,
            self.statement_line_repository,
            self.transaction_repository,
            self.reconciliation_repository,
            self.match_repository,
            batch_size=self._settings.match_batch_size,
            match_on_statement_balance=self._settings.match_on_statement_balance,
        )

    @cached_property
    def period_lock_service(self) -> "PeriodLockService":
        """Get the accounting period lock service."""
        from bank_reconciliation.services.periods import PeriodLockService

        return PeriodLockService(self.period_repository)

    def close(self) -> None:
        """Close the database connection if one was opened."""
        if "database" in self.__dict__:
            logger.info("closing_database_connection")
            self.database.close()

    def __enter__(self) -> "Container":
        return self

    def __exit__(self, *args: object) -> None:
        self.close()


@lru_cache
def get_container() -> Container:
    """Get the global container singleton.

    For testing, create a Container directly with custom settings instead
    of using this function.
    """
    return Container()


def reset_container() -> None:
    """Close and drop the global container."""
    if get_container.cache_info().currsize:
        get_container().close()
    get_container.cache_clear()


# FastAPI dependency functions
def get_ingestion_service() -> "StatementIngestionService":
    return get_container().ingestion_service


def get_ledger_view_service() -> "LedgerViewService":
    return get_container().ledger_view_service


def get_reconciliation_service() -> "ReconciliationService":
    return get_container().reconciliation_service


def get_period_lock_service() -> "PeriodLockService":
    return get_container().period_lock_service
