"""FastAPI application factory."""

import uuid
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from bank_reconciliation.api.routes import (
    account_router,
    health_router,
    period_router,
    reconciliation_router,
    statement_router,
)
from bank_reconciliation.config import get_settings
from bank_reconciliation.container import get_container, reset_container
from bank_reconciliation.exceptions import BankReconciliationError
from bank_reconciliation.logging_config import configure_logging, get_logger, log_scope

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Configure logging and open the database on startup, close it on shutdown."""
    settings = get_settings()
    configure_logging(settings)

    logger.info(
        "application_starting",
        app_name=settings.app_name,
        version=settings.app_version,
        environment=settings.environment.value,
    )

    container = get_container()
    _ = container.database  # Force database initialization

    logger.info("application_started")

    yield

    logger.info("application_stopping")
    reset_container()
    logger.info("application_stopped")


async def log_request_middleware(request: Request, call_next):
    """Middleware to add request context to logs."""
    request_id = str(uuid.uuid4())[:8]
    with log_scope(request_id=request_id, path=request.url.path, method=request.method):
        response = await call_next(request)
        logger.debug("request_completed", status_code=response.status_code)
        return response


async def exception_handler(
    request: Request, exc: BankReconciliationError
) -> JSONResponse:
    """Render domain exceptions as JSON with the error's status code."""
    logger.warning(
        "domain_exception",
        error_code=exc.error_code,
        message=exc.message,
        context=exc.context,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict(),
    )


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Bank statement import, banking view and auto-reconciliation",
        version=settings.app_version,
        debug=settings.debug,
        lifespan=lifespan,
    )

    app.middleware("http")(log_request_middleware)
    app.add_exception_handler(BankReconciliationError, exception_handler)

    app.include_router(health_router)
    app.include_router(statement_router)
    app.include_router(reconciliation_router)
    app.include_router(account_router)
    app.include_router(period_router)

    return app
