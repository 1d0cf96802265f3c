"""Structured logging for the reconciliation engine, built on structlog.

Services scope their events to the records they work on:

    with log_scope(account_id=account_id, organization_id=org_id):
        logger.info("statement_import_completed", statement_id=statement.id)

Ids, dates and amounts are passed as they are; ``render_domain_values``
turns them into plain strings so console and JSON output carry the same
values, and the scope keys are moved to the front of every event.
"""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import date
from decimal import Decimal
from typing import Any
from uuid import UUID

import structlog
from structlog.types import EventDict, Processor

from bank_reconciliation.config import Settings, get_settings

# Ids that identify what an event is about, in rendering order
SCOPE_KEYS = (
    "organization_id",
    "account_id",
    "statement_id",
    "reconciliation_id",
    "request_id",
)


def render_domain_values(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Render UUIDs, Decimals and dates as strings, scope keys first."""
    rendered: EventDict = {}
    for key in SCOPE_KEYS:
        if key in event_dict:
            rendered[key] = event_dict.pop(key)
    rendered.update(event_dict)
    for key, value in rendered.items():
        if isinstance(value, (UUID, Decimal)):
            rendered[key] = str(value)
        elif isinstance(value, date):
            rendered[key] = value.isoformat()
    return rendered


def _shared_processors() -> list[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        render_domain_values,
    ]


def _renderers(log_format: str) -> list[Processor]:
    if log_format == "json":
        return [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    return [
        structlog.dev.ConsoleRenderer(
            colors=sys.stdout.isatty(),
            sort_keys=False,
            exception_formatter=structlog.dev.plain_traceback,
        )
    ]


def configure_logging(settings: Settings | None = None) -> None:
    """Configure structured logging based on settings.

    Call this once at application startup before any logging occurs.
    """
    if settings is None:
        settings = get_settings()

    log_level = getattr(logging, settings.log_level.value)

    structlog.configure(
        processors=[*_shared_processors(), *_renderers(settings.log_format)],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=log_level)
    logging.getLogger("uvicorn.access").setLevel(max(log_level, logging.INFO))


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.stdlib.get_logger(name)


@contextmanager
def log_scope(**ids: Any) -> Iterator[None]:
    """Attach ids to every event logged inside the block.

    Keys bound by an enclosing scope are restored on exit.
    """
    with structlog.contextvars.bound_contextvars(**ids):
        yield
