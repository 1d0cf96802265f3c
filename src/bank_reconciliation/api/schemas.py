"""Pydantic v2 schemas for API request/response models."""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class HealthResponse(BaseModel):
    """Schema for health check response."""

    status: str
    version: str = "0.1.0"


# Statement Schemas
class StatementImportRequest(BaseModel):
    """Raw statement file content to import for an account."""

    model_config = ConfigDict(str_strip_whitespace=True)

    account_id: UUID
    organization_id: UUID
    file_name: str = Field(..., min_length=1, max_length=255)
    content: str
    date_format: str | None = None


class StatementImportResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    statement_id: UUID
    lines_received: int
    lines_inserted: int
    duplicates_skipped: int
    start_date: date
    end_date: date


# Reconciliation Schemas
class AutoReconcileRequest(BaseModel):
    account_id: UUID
    period_start: date
    period_end: date
    organization_id: UUID | None = None


class AutoReconcileResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    reconciliation_id: UUID
    matches_created: int
    matches_attempted: int
    lines_considered: int
    transactions_considered: int
    flags_updated: int
    flags_failed: int


class MatchResponse(BaseModel):
    """Schema for a persisted statement line to ledger transaction match."""

    id: UUID
    reconciliation_id: UUID
    statement_line_id: UUID
    account_transaction_id: UUID
    match_amount: str
    created_at: datetime


# Banking View Schemas
class BankingViewRowResponse(BaseModel):
    transaction_id: UUID
    transaction_date: date
    description: str
    reference_type: str | None
    reference_id: str | None
    debit_amount: str
    credit_amount: str
    display_debit: str
    display_credit: str
    running_balance: str


# Period Schemas
class PeriodRequest(BaseModel):
    organization_id: UUID
    period_start: date
    period_end: date


class PeriodResponse(BaseModel):
    id: UUID
    organization_id: UUID
    period_start: date
    period_end: date
    status: str
    created_at: datetime


class UnlockResponse(BaseModel):
    removed: int


# Unmatched Items Schemas
class StatementLineResponse(BaseModel):
    id: UUID
    statement_id: UUID
    ordinal: int
    line_date: date
    description: str
    debit: str
    credit: str
    balance: str | None
    external_reference: str | None


class LedgerTransactionResponse(BaseModel):
    id: UUID
    transaction_date: date
    description: str
    debit_amount: str
    credit_amount: str
    reference_type: str | None
    reference_id: str | None


class UnmatchedItemsResponse(BaseModel):
    """Statement lines and ledger transactions not yet paired in a period."""

    account_id: UUID
    period_start: date
    period_end: date
    statement_lines: list[StatementLineResponse]
    transactions: list[LedgerTransactionResponse]
