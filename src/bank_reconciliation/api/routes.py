"""API routes for the Bank Reconciliation Engine."""

from datetime import date
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from bank_reconciliation import __version__
from bank_reconciliation.api.schemas import (
    AutoReconcileRequest,
    AutoReconcileResponse,
    BankingViewRowResponse,
    HealthResponse,
    LedgerTransactionResponse,
    MatchResponse,
    PeriodRequest,
    PeriodResponse,
    StatementImportRequest,
    StatementImportResponse,
    StatementLineResponse,
    UnlockResponse,
    UnmatchedItemsResponse,
)
from bank_reconciliation.container import (
    get_ingestion_service,
    get_ledger_view_service,
    get_period_lock_service,
    get_reconciliation_service,
)
from bank_reconciliation.domain.ledger import BankingViewRow, LedgerTransaction
from bank_reconciliation.domain.periods import AccountingPeriod
from bank_reconciliation.domain.reconciliation import ReconciliationMatch
from bank_reconciliation.domain.statements import StatementLine
from bank_reconciliation.services.ingestion import StatementIngestionService
from bank_reconciliation.services.ledger_view import LedgerViewService
from bank_reconciliation.services.periods import PeriodLockService
from bank_reconciliation.services.reconciliation import ReconciliationService

# Create routers
health_router = APIRouter(tags=["health"])
statement_router = APIRouter(prefix="/statements", tags=["statements"])
reconciliation_router = APIRouter(prefix="/reconciliations", tags=["reconciliations"])
account_router = APIRouter(prefix="/accounts", tags=["accounts"])
period_router = APIRouter(prefix="/periods", tags=["periods"])


# Helper functions
def _match_to_response(match: ReconciliationMatch) -> MatchResponse:
    return MatchResponse(
        id=match.id,
        reconciliation_id=match.reconciliation_id,
        statement_line_id=match.statement_line_id,
        account_transaction_id=match.account_transaction_id,
        match_amount=str(match.match_amount),
        created_at=match.created_at,
    )


def _row_to_response(row: BankingViewRow) -> BankingViewRowResponse:
    txn = row.transaction
    return BankingViewRowResponse(
        transaction_id=txn.id,
        transaction_date=txn.transaction_date,
        description=txn.description,
        reference_type=txn.reference_type,
        reference_id=txn.reference_id,
        debit_amount=str(txn.debit_amount),
        credit_amount=str(txn.credit_amount),
        display_debit=str(row.display_debit),
        display_credit=str(row.display_credit),
        running_balance=str(row.running_balance),
    )


def _line_to_response(line: StatementLine) -> StatementLineResponse:
    return StatementLineResponse(
        id=line.id,
        statement_id=line.statement_id,
        ordinal=line.ordinal,
        line_date=line.line_date,
        description=line.description,
        debit=str(line.debit),
        credit=str(line.credit),
        balance=None if line.balance is None else str(line.balance),
        external_reference=line.external_reference,
    )


def _transaction_to_response(txn: LedgerTransaction) -> LedgerTransactionResponse:
    return LedgerTransactionResponse(
        id=txn.id,
        transaction_date=txn.transaction_date,
        description=txn.description,
        debit_amount=str(txn.debit_amount),
        credit_amount=str(txn.credit_amount),
        reference_type=txn.reference_type,
        reference_id=txn.reference_id,
    )


def _period_to_response(period: AccountingPeriod) -> PeriodResponse:
    return PeriodResponse(
        id=period.id,
        organization_id=period.organization_id,
        period_start=period.period_start,
        period_end=period.period_end,
        status=period.status.value,
        created_at=period.created_at,
    )


@health_router.get("/health", response_model=HealthResponse)
def health_check() -> HealthResponse:
    """Health check endpoint."""
    return HealthResponse(status="healthy", version=__version__)


# Statement endpoints
@statement_router.post(
    "/import",
    response_model=StatementImportResponse,
    status_code=status.HTTP_201_CREATED,
)
def import_statement(
    payload: StatementImportRequest,
    service: Annotated[StatementIngestionService, Depends(get_ingestion_service)],
) -> StatementImportResponse:
    """Import a statement file. Lines already stored are skipped, not rejected."""
    result = service.import_content(
        payload.account_id,
        payload.file_name,
        payload.content,
        organization_id=payload.organization_id,
        date_format=payload.date_format,
    )
    return StatementImportResponse.model_validate(result)


# Reconciliation endpoints
@reconciliation_router.post("/auto", response_model=AutoReconcileResponse)
def auto_reconcile(
    payload: AutoReconcileRequest,
    service: Annotated[ReconciliationService, Depends(get_reconciliation_service)],
) -> AutoReconcileResponse:
    result = service.auto_reconcile(
        payload.account_id,
        payload.period_start,
        payload.period_end,
        organization_id=payload.organization_id,
    )
    return AutoReconcileResponse.model_validate(result)


@reconciliation_router.get(
    "/{reconciliation_id}/matches", response_model=list[MatchResponse]
)
def list_matches(
    reconciliation_id: UUID,
    service: Annotated[ReconciliationService, Depends(get_reconciliation_service)],
) -> list[MatchResponse]:
    return [_match_to_response(m) for m in service.list_matches(reconciliation_id)]


# Account endpoints
@account_router.get(
    "/{account_id}/banking-view", response_model=list[BankingViewRowResponse]
)
def banking_view(
    account_id: UUID,
    service: Annotated[LedgerViewService, Depends(get_ledger_view_service)],
    search: Annotated[str | None, Query()] = None,
    start_date: Annotated[date | None, Query()] = None,
    end_date: Annotated[date | None, Query()] = None,
) -> list[BankingViewRowResponse]:
    """Ledger transactions with banking sign conventions and a running balance."""
    rows = service.banking_view(account_id, search, start_date, end_date)
    return [_row_to_response(row) for row in rows]


@account_router.get("/{account_id}/unmatched", response_model=UnmatchedItemsResponse)
def unmatched_items(
    account_id: UUID,
    period_start: Annotated[date, Query()],
    period_end: Annotated[date, Query()],
    service: Annotated[ReconciliationService, Depends(get_reconciliation_service)],
) -> UnmatchedItemsResponse:
    """Statement lines and ledger transactions still waiting for a match."""
    items = service.unmatched_items(account_id, period_start, period_end)
    return UnmatchedItemsResponse(
        account_id=account_id,
        period_start=period_start,
        period_end=period_end,
        statement_lines=[_line_to_response(line) for line in items.statement_lines],
        transactions=[_transaction_to_response(txn) for txn in items.transactions],
    )


# Period endpoints
@period_router.post(
    "/lock", response_model=PeriodResponse, status_code=status.HTTP_201_CREATED
)
def lock_period(
    payload: PeriodRequest,
    service: Annotated[PeriodLockService, Depends(get_period_lock_service)],
) -> PeriodResponse:
    period = service.lock_period(
        payload.organization_id, payload.period_start, payload.period_end
    )
    return _period_to_response(period)


@period_router.post("/unlock", response_model=UnlockResponse)
def unlock_period(
    payload: PeriodRequest,
    service: Annotated[PeriodLockService, Depends(get_period_lock_service)],
) -> UnlockResponse:
    removed = service.unlock_period(
        payload.organization_id, payload.period_start, payload.period_end
    )
    return UnlockResponse(removed=removed)


@period_router.get("", response_model=list[PeriodResponse])
def list_periods(
    organization_id: Annotated[UUID, Query()],
    service: Annotated[PeriodLockService, Depends(get_period_lock_service)],
) -> list[PeriodResponse]:
    return [_period_to_response(p) for p in service.list_periods(organization_id)]
