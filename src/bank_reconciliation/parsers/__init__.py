"""File parsers for importing bank statements."""

from bank_reconciliation.parsers.statement_csv import (
    StatementCSVParser,
    parse_statement_csv,
    parse_statement_file,
    statement_template,
)

__all__ = [
    "StatementCSVParser",
    "parse_statement_csv",
    "parse_statement_file",
    "statement_template",
]
