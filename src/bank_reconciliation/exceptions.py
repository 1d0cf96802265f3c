"""Domain exception hierarchy for the bank reconciliation engine.

All domain-specific exceptions inherit from BankReconciliationError.
This allows catching all engine errors with a single base class
while preserving specificity for individual error types.
"""

from datetime import date
from typing import Any
from uuid import UUID


class BankReconciliationError(Exception):
    """Base exception for all bank reconciliation errors.

    Includes optional error_code for API responses and extra context.
    """

    error_code: str = "BANKREC_ERROR"
    status_code: int = 500

    def __init__(
        self,
        message: str,
        *,
        error_code: str | None = None,
        status_code: int | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if error_code:
            self.error_code = error_code
        if status_code:
            self.status_code = status_code
        self.context = context or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": self.error_code,
            "message": self.message,
            "context": self.context,
        }


# =============================================================================
# Validation Errors
# =============================================================================


class ValidationError(BankReconciliationError):
    """Base exception for validation errors."""

    error_code = "VALIDATION_ERROR"
    status_code = 422


class InvalidRangeError(ValidationError):
    """Raised when a period operation is given start > end."""

    error_code = "INVALID_RANGE"

    def __init__(self, start: date, end: date) -> None:
        super().__init__(
            f"Invalid date range: {start.isoformat()} is after {end.isoformat()}",
            context={"start": start.isoformat(), "end": end.isoformat()},
        )


# =============================================================================
# Statement Errors
# =============================================================================


class StatementError(BankReconciliationError):
    """Base exception for statement import errors."""

    error_code = "STATEMENT_ERROR"
    status_code = 400


class EmptyImportError(StatementError):
    """Raised when an import carries no statement lines."""

    error_code = "EMPTY_IMPORT"
    status_code = 422

    def __init__(self, file_name: str) -> None:
        super().__init__(
            f"No statement lines to import from {file_name}",
            context={"file_name": file_name},
        )


# =============================================================================
# Reconciliation Errors
# =============================================================================


class ReconciliationError(BankReconciliationError):
    """Base exception for reconciliation-related errors."""

    error_code = "RECONCILIATION_ERROR"
    status_code = 400


class NoStatementDataError(ReconciliationError):
    """Raised when no imported statement overlaps the requested period."""

    error_code = "NO_STATEMENT_DATA"
    status_code = 404

    def __init__(self, account_id: UUID | str, start: date, end: date) -> None:
        super().__init__(
            f"No statement data for account {account_id} between "
            f"{start.isoformat()} and {end.isoformat()}",
            context={
                "account_id": str(account_id),
                "period_start": start.isoformat(),
                "period_end": end.isoformat(),
            },
        )


# =============================================================================
# Period Errors
# =============================================================================


class PeriodError(BankReconciliationError):
    """Base exception for accounting period errors."""

    error_code = "PERIOD_ERROR"
    status_code = 400


class PeriodAlreadyLockedError(PeriodError):
    """Raised when an identical period lock already exists."""

    error_code = "PERIOD_ALREADY_LOCKED"
    status_code = 409

    def __init__(self, organization_id: UUID | str, start: date, end: date) -> None:
        super().__init__(
            f"Period {start.isoformat()} to {end.isoformat()} is already locked",
            context={
                "organization_id": str(organization_id),
                "period_start": start.isoformat(),
                "period_end": end.isoformat(),
            },
        )


# =============================================================================
# Database Errors
# =============================================================================


class DatabaseError(BankReconciliationError):
    """Base exception for database-related errors."""

    error_code = "DATABASE_ERROR"
    status_code = 500


class PersistenceError(DatabaseError):
    """Raised when the record store fails for a reason other than a duplicate key."""

    error_code = "PERSISTENCE_ERROR"

    def __init__(
        self,
        message: str,
        *,
        table: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        ctx = dict(context or {})
        if table is not None:
            ctx["table"] = table
        super().__init__(message, context=ctx)


class DuplicateKeyError(DatabaseError):
    """Raised by a record store when a uniqueness constraint is violated.

    Services treat this as a successful no-op; it is never surfaced to callers.
    """

    error_code = "DUPLICATE_KEY"
    status_code = 409

    def __init__(self, table: str, detail: str = "") -> None:
        super().__init__(
            f"Duplicate key in {table}: {detail}" if detail else f"Duplicate key in {table}",
            context={"table": table},
        )
        self.table = table
