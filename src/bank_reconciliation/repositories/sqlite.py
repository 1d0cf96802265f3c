"""SQLite implementation of the record store."""

from __future__ import annotations

import sqlite3
from collections.abc import Sequence
from pathlib import Path
from typing import Any

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


class SQLiteDatabase:
    """SQLite database connection manager."""

    def __init__(
        self, path: str | Path = ":memory:", check_same_thread: bool = True
    ) -> None:
        self._path = str(path)
        self._check_same_thread = check_same_thread
        self._connection: sqlite3.Connection | None = None

    def get_connection(self) -> sqlite3.Connection:
        """Get or create the database connection."""
        if self._connection is None:
            self._connection = sqlite3.connect(
                self._path, check_same_thread=self._check_same_thread
            )
            self._connection.row_factory = sqlite3.Row
            # Enable foreign keys
            self._connection.execute("PRAGMA foreign_keys = ON")
        return self._connection

    def initialize(self) -> None:
        """Create all database tables."""
        conn = self.get_connection()
        conn.executescript(SCHEMA_SQL)
        conn.commit()
        logger.debug("sqlite_schema_initialized", path=self._path)

    def close(self) -> None:
        """Close the database connection."""
        if self._connection is not None:
            self._connection.close()
            self._connection = None


def _is_unique_violation(exc: sqlite3.IntegrityError) -> bool:
    return "UNIQUE constraint failed" in str(exc)


class SQLiteRecordStore(RecordStore):
    """SQLite implementation of RecordStore."""

    PLACEHOLDER = "?"

    def __init__(self, database: SQLiteDatabase) -> None:
        self._db = database

    def insert(self, table: str, rows: Sequence[dict[str, Any]]) -> list[str]:
        if not rows:
            return []
        sql, params = build_insert(table, rows, self.PLACEHOLDER)
        conn = self._db.get_connection()
        try:
            with conn:
                conn.executemany(sql, params)
        except sqlite3.IntegrityError as e:
            if _is_unique_violation(e):
                raise DuplicateKeyError(table, str(e)) from e
            raise PersistenceError(
                f"Insert into {table} failed: {e}", table=table
            ) from e
        except sqlite3.Error as e:
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
            cursor = conn.execute(sql, params)
            return [dict(row) for row in cursor.fetchall()]
        except sqlite3.Error as e:
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
            with conn:
                cursor = conn.execute(sql, params)
        except sqlite3.Error as e:
            raise PersistenceError(
                f"Write to {table} failed: {e}", table=table
            ) from e
        return cursor.rowcount
