"""Table names, DDL and SQL statement building shared by the SQL stores."""

import re
from collections.abc import Sequence
from typing import Any

from bank_reconciliation.repositories.interfaces import Filter

ACCOUNT_TRANSACTIONS = "account_transactions"
STATEMENTS = "statements"
STATEMENT_LINES = "statement_lines"
RECONCILIATIONS = "reconciliations"
RECONCILIATION_MATCHES = "reconciliation_matches"
ACCOUNTING_PERIODS = "accounting_periods"

TABLES = frozenset(
    {
        ACCOUNT_TRANSACTIONS,
        STATEMENTS,
        STATEMENT_LINES,
        RECONCILIATIONS,
        RECONCILIATION_MATCHES,
        ACCOUNTING_PERIODS,
    }
)

# Portable between SQLite and PostgreSQL: amounts and dates are TEXT,
# booleans are INTEGER 0/1.
SCHEMA_SQL = """
-- Ledger transactions (owned by the ledger subsystem, read-only here)
CREATE TABLE IF NOT EXISTS account_transactions (
    id TEXT PRIMARY KEY,
    organization_id TEXT,
    account_id TEXT NOT NULL,
    transaction_date TEXT NOT NULL,
    description TEXT NOT NULL DEFAULT '',
    debit_amount TEXT NOT NULL DEFAULT '0',
    credit_amount TEXT NOT NULL DEFAULT '0',
    reference_type TEXT,
    reference_id TEXT
);
CREATE INDEX IF NOT EXISTS idx_account_transactions_account_date
    ON account_transactions(account_id, transaction_date);

-- Imported statement headers
CREATE TABLE IF NOT EXISTS statements (
    id TEXT PRIMARY KEY,
    organization_id TEXT NOT NULL,
    account_id TEXT NOT NULL,
    name TEXT NOT NULL,
    start_date TEXT NOT NULL,
    end_date TEXT NOT NULL,
    created_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_statements_account ON statements(account_id);

-- Statement lines; a hash is unique within its account, so re-imports are a no-op
CREATE TABLE IF NOT EXISTS statement_lines (
    id TEXT PRIMARY KEY,
    statement_id TEXT NOT NULL REFERENCES statements(id),
    account_id TEXT NOT NULL,
    ordinal INTEGER NOT NULL,
    line_date TEXT NOT NULL,
    description TEXT NOT NULL DEFAULT '',
    debit TEXT NOT NULL DEFAULT '0',
    credit TEXT NOT NULL DEFAULT '0',
    balance TEXT,
    external_reference TEXT,
    hash TEXT NOT NULL,
    matched INTEGER NOT NULL DEFAULT 0,
    reconciled_at TEXT,
    UNIQUE(account_id, hash)
);
CREATE INDEX IF NOT EXISTS idx_statement_lines_statement_date
    ON statement_lines(statement_id, line_date);

-- Reconciliations, one per account and period
CREATE TABLE IF NOT EXISTS reconciliations (
    id TEXT PRIMARY KEY,
    organization_id TEXT NOT NULL,
    account_id TEXT NOT NULL,
    period_start TEXT NOT NULL,
    period_end TEXT NOT NULL,
    created_at TEXT NOT NULL,
    UNIQUE(account_id, period_start, period_end)
);

-- Statement line to ledger transaction pairings
CREATE TABLE IF NOT EXISTS reconciliation_matches (
    id TEXT PRIMARY KEY,
    reconciliation_id TEXT NOT NULL REFERENCES reconciliations(id),
    statement_line_id TEXT NOT NULL REFERENCES statement_lines(id),
    account_transaction_id TEXT NOT NULL,
    match_amount TEXT NOT NULL,
    created_at TEXT NOT NULL,
    UNIQUE(reconciliation_id, statement_line_id)
);
CREATE INDEX IF NOT EXISTS idx_reconciliation_matches_transaction
    ON reconciliation_matches(account_transaction_id);

-- Locked accounting periods; no row means unlocked
CREATE TABLE IF NOT EXISTS accounting_periods (
    id TEXT PRIMARY KEY,
    organization_id TEXT NOT NULL,
    period_start TEXT NOT NULL,
    period_end TEXT NOT NULL,
    status TEXT NOT NULL DEFAULT 'locked',
    created_at TEXT NOT NULL,
    UNIQUE(organization_id, period_start, period_end)
);
"""

_IDENTIFIER = re.compile(r"^[a-z_][a-z0-9_]*$")

_OPERATORS = {"eq": "=", "gte": ">=", "lte": "<="}


def check_table(table: str) -> str:
    if table not in TABLES:
        raise ValueError(f"Unknown table: {table}")
    return table


def check_column(column: str) -> str:
    if not _IDENTIFIER.match(column):
        raise ValueError(f"Invalid column name: {column!r}")
    return column


def build_where(
    filters: Sequence[Filter] | None, placeholder: str
) -> tuple[str, list[Any]]:
    """Render filters as a WHERE clause and its parameters.

    An ``in`` filter with no values matches nothing.
    """
    if not filters:
        return "", []

    clauses: list[str] = []
    params: list[Any] = []
    for flt in filters:
        column = check_column(flt.column)
        if flt.op == "in":
            values = list(flt.value)
            if not values:
                clauses.append("1 = 0")
                continue
            clauses.append(
                f"{column} IN ({', '.join(placeholder for _ in values)})"
            )
            params.extend(values)
        else:
            clauses.append(f"{column} {_OPERATORS[flt.op]} {placeholder}")
            params.append(flt.value)
    return " WHERE " + " AND ".join(clauses), params


def build_order_by(order_by: Sequence[str] | None) -> str:
    """Render ``["line_date", "-ordinal"]`` as ``ORDER BY line_date, ordinal DESC``."""
    if not order_by:
        return ""
    terms = []
    for term in order_by:
        if term.startswith("-"):
            terms.append(f"{check_column(term[1:])} DESC")
        else:
            terms.append(check_column(term))
    return " ORDER BY " + ", ".join(terms)


def build_insert(
    table: str, rows: Sequence[dict[str, Any]], placeholder: str
) -> tuple[str, list[tuple[Any, ...]]]:
    columns = [check_column(column) for column in rows[0]]
    sql = (
        f"INSERT INTO {check_table(table)} ({', '.join(columns)}) "
        f"VALUES ({', '.join(placeholder for _ in columns)})"
    )
    return sql, [tuple(row[column] for column in columns) for row in rows]


def build_select(
    table: str,
    filters: Sequence[Filter] | None,
    order_by: Sequence[str] | None,
    placeholder: str,
) -> tuple[str, list[Any]]:
    where, params = build_where(filters, placeholder)
    return f"SELECT * FROM {check_table(table)}{where}{build_order_by(order_by)}", params


def build_update(
    table: str,
    filters: Sequence[Filter],
    patch: dict[str, Any],
    placeholder: str,
) -> tuple[str, list[Any]]:
    if not filters:
        raise ValueError("update requires at least one filter")
    if not patch:
        raise ValueError("update requires at least one column")
    assignments = ", ".join(
        f"{check_column(column)} = {placeholder}" for column in patch
    )
    where, params = build_where(filters, placeholder)
    return (
        f"UPDATE {check_table(table)} SET {assignments}{where}",
        list(patch.values()) + params,
    )


def build_delete(
    table: str, filters: Sequence[Filter], placeholder: str
) -> tuple[str, list[Any]]:
    if not filters:
        raise ValueError("delete requires at least one filter")
    where, params = build_where(filters, placeholder)
    return f"DELETE FROM {check_table(table)}{where}", params
