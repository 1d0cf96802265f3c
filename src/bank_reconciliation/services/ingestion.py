"""Statement ingestion: hashing, deduplication and chunked persistence of lines.

Importing the same file twice stores its lines once. Each line carries a
content hash that is unique within the account; a batch that collides with lines
already present is retried line by line, and the collisions are counted as
skipped duplicates rather than reported as errors.
"""

import hashlib
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from uuid import UUID

from bank_reconciliation.domain.statements import (
    ParsedStatementLine,
    Statement,
    StatementLine,
)
from bank_reconciliation.exceptions import (
    DuplicateKeyError,
    EmptyImportError,
    PersistenceError,
)
from bank_reconciliation.logging_config import get_logger, log_scope
from bank_reconciliation.parsers.statement_csv import StatementCSVParser
from bank_reconciliation.repositories.interfaces import (
    StatementLineRepository,
    StatementRepository,
)
from bank_reconciliation.services.batching import write_in_batches
from bank_reconciliation.services.validation import coerce_uuid

logger = get_logger(__name__)

DEFAULT_IMPORT_BATCH_SIZE = 500


def compute_line_hash(line: ParsedStatementLine, ordinal: int) -> str:
    """Content hash of a statement line at its position in the file.

    The ordinal keeps identical rows within one file distinct while the
    same file imported again produces the same hashes.
    """
    parts = [
        line.line_date.isoformat(),
        line.description,
        str(line.debit),
        str(line.credit),
        "" if line.balance is None else str(line.balance),
        line.external_reference or "",
        str(ordinal),
    ]
    return hashlib.sha256("|".join(parts).encode("utf-8")).hexdigest()


@dataclass
class ImportResult:
    """Summary of a statement import."""

    statement_id: UUID
    lines_received: int
    lines_inserted: int
    duplicates_skipped: int
    start_date: date
    end_date: date


class StatementIngestionService:
    """Creates a statement header and persists its lines, skipping duplicates."""

    def __init__(
        self,
        statement_repo: StatementRepository,
        line_repo: StatementLineRepository,
        organization_id: UUID | None = None,
        batch_size: int = DEFAULT_IMPORT_BATCH_SIZE,
        parser: StatementCSVParser | None = None,
    ) -> None:
        self._statement_repo = statement_repo
        self._line_repo = line_repo
        self._organization_id = organization_id
        self._batch_size = batch_size
        self._parser = parser or StatementCSVParser()

    def import_statement(
        self,
        account_id: UUID | str,
        file_name: str,
        lines: Sequence[ParsedStatementLine],
        organization_id: UUID | str | None = None,
    ) -> ImportResult:
        """Persist one parsed statement file for an account.

        Args:
            account_id: Bank account the statement belongs to.
            file_name: Used as the statement name.
            lines: Parsed lines in file order.
            organization_id: Overrides the organization the service was
                created with.

        Returns:
            ImportResult with counts of inserted and skipped lines.

        Raises:
            ValidationError: If the account or organization is missing.
            EmptyImportError: If there are no lines.
            PersistenceError: If the header or a batch cannot be stored.
                Batches written before the failure are kept.
        """
        account_uuid = coerce_uuid(account_id, "account_id")
        org_uuid = coerce_uuid(
            organization_id if organization_id is not None else self._organization_id,
            "organization_id",
        )
        if not lines:
            raise EmptyImportError(file_name)

        with log_scope(account_id=account_uuid, organization_id=org_uuid):
            logger.info(
                "statement_import_started", file_name=file_name, lines=len(lines)
            )

            statement = Statement(
                organization_id=org_uuid,
                account_id=account_uuid,
                name=file_name,
                start_date=min(line.line_date for line in lines),
                end_date=max(line.line_date for line in lines),
            )
            try:
                self._statement_repo.add(statement)
            except DuplicateKeyError as e:
                raise PersistenceError(
                    f"Could not create statement header for {file_name}",
                    table=e.table,
                ) from e

            records = [
                StatementLine(
                    statement_id=statement.id,
                    account_id=account_uuid,
                    line_date=line.line_date,
                    hash=compute_line_hash(line, ordinal),
                    ordinal=ordinal,
                    description=line.description,
                    debit=line.debit,
                    credit=line.credit,
                    balance=line.balance,
                    external_reference=line.external_reference,
                )
                for ordinal, line in enumerate(lines)
            ]

            try:
                written = write_in_batches(
                    records,
                    self._batch_size,
                    self._line_repo.add_many,
                    label="statement",
                )
            except PersistenceError:
                logger.error(
                    "statement_import_failed",
                    statement_id=statement.id,
                    file_name=file_name,
                )
                raise

            result = ImportResult(
                statement_id=statement.id,
                lines_received=len(lines),
                lines_inserted=written.written,
                duplicates_skipped=written.duplicates,
                start_date=statement.start_date,
                end_date=statement.end_date,
            )
            logger.info(
                "statement_import_completed",
                statement_id=statement.id,
                lines_inserted=result.lines_inserted,
                duplicates_skipped=result.duplicates_skipped,
            )
        return result

    def import_content(
        self,
        account_id: UUID | str,
        file_name: str,
        content: str,
        organization_id: UUID | str | None = None,
        date_format: str | None = None,
    ) -> ImportResult:
        """Parse raw file content and import it.

        ``date_format`` overrides the configured parser for this file only.
        """
        parser = StatementCSVParser(date_format) if date_format else self._parser
        lines = parser.parse(content)
        return self.import_statement(account_id, file_name, lines, organization_id)

    def import_file(
        self,
        account_id: UUID | str,
        file_path: str | Path,
        organization_id: UUID | str | None = None,
    ) -> ImportResult:
        """Parse a statement file from disk and import it under its base name."""
        path = Path(file_path)
        lines = self._parser.parse_file(path)
        return self.import_statement(account_id, path.name, lines, organization_id)
