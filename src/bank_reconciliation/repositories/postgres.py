"""PostgreSQL implementation of the record store."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import psycopg2
import psycopg2.errors
import psycopg2.extras

from bank_reconciliation.exceptions import DuplicateKeyError, PersistenceError
from bank_reconciliation.logging_config import get_logger
from bank_reconciliation.repositories.interfaces import Filter, RecordStore
from bank_reconciliation.repositories.schema import (
    SCHEMA_SQL,
    build_delete,
    build_insert,
    build_select,
    build_update,
)

logger = get_logger(__name__)


class PostgresDatabase:
    """PostgreSQL database connection manager."""

    def __init__(self, connection_string: str) -> None:
        self._connection_string = connection_string
        self._connection: psycopg2.extensions.connection | None = None

    def get_connection(self) -> psycopg2.extensions.connection:
        """Get or create the database connection."""
        if self._connection is None or self._connection.closed:
            self._connection = psycopg2.connect(
                self._connection_string,
                cursor_factory=psycopg2.extras.RealDictCursor,
            )
        return self._connection

    def initialize(self) -> None:
        """Create all database tables."""
        conn = self.get_connection()
        with conn.cursor() as cur:
            cur.execute(SCHEMA_SQL)
        conn.commit()
        logger.debug("postgres_schema_initialized")

    def close(self) -> None:
        """Close the database connection."""
        if self._connection is not None:
            self._connection.close()
            self._connection = None


class PostgresRecordStore(RecordStore):
    """PostgreSQL implementation of RecordStore."""

    PLACEHOLDER = "%s"

    def __init__(self, database: PostgresDatabase) -> None:
        self._db = database

    def insert(self, table: str, rows: Sequence[dict[str, Any]]) -> list[str]:
        if not rows:
            return []
        sql, params = build_insert(table, rows, self.PLACEHOLDER)
        conn = self._db.get_connection()
        try:
            with conn, conn.cursor() as cur:
                cur.executemany(sql, params)
        except psycopg2.errors.UniqueViolation as e:
            raise DuplicateKeyError(table, str(e).strip()) from e
        except psycopg2.Error as e:
            raise PersistenceError(
                f"Insert into {table} failed: {e}", table=table
            ) from e
        return [str(row["id"]) for row in rows]

    def query(
        self,
        table: str,
        filters: Sequence[Filter] | None = None,
        order_by: Sequence[str] | None = None,
    ) -> list[dict[str, Any]]:
        sql, params = build_select(table, filters, order_by, self.PLACEHOLDER)
        conn = self._db.get_connection()
        try:
            with conn, conn.cursor() as cur:
                cur.execute(sql, params)
                return [dict(row) for row in cur.fetchall()]
        except psycopg2.Error as e:
            raise PersistenceError(
                f"Query on {table} failed: {e}", table=table
            ) from e

    def update(
        self, table: str, filters: Sequence[Filter], patch: dict[str, Any]
    ) -> int:
        sql, params = build_update(table, filters, patch, self.PLACEHOLDER)
        return self._execute_write(table, sql, params)

    def delete(self, table: str, filters: Sequence[Filter]) -> int:
        sql, params = build_delete(table, filters, self.PLACEHOLDER)
        return self._execute_write(table, sql, params)

    def _execute_write(self, table: str, sql: str, params: list[Any]) -> int:
        conn = self._db.get_connection()
        try:
            with conn, conn.cursor() as cur:
                cur.execute(sql, params)
                return cur.rowcount
        except psycopg2.Error as e:
            raise PersistenceError(
                f"Write to {table} failed: {e}", table=table
            ) from e
