"""Tests for StatementIngestionService.

Tests cover:
- Statement header bounds and line persistence
- Idempotent re-import (duplicates skipped, never raised)
- Identical rows within one file kept apart by their position
- Mixed batches where only some rows are new
- Non-duplicate persistence failures abort without rollback
"""

import logging
from datetime import date
from decimal import Decimal
from unittest.mock import MagicMock
from uuid import UUID, uuid4

import pytest

from bank_reconciliation.domain.statements import ParsedStatementLine
from bank_reconciliation.exceptions import (
    EmptyImportError,
    PersistenceError,
    ValidationError,
)
from bank_reconciliation.repositories.records import (
    StatementLineRecordRepository,
    StatementRecordRepository,
)
from bank_reconciliation.services.ingestion import (
    StatementIngestionService,
    compute_line_hash,
)


@pytest.fixture
def service(
    statement_repo: StatementRecordRepository,
    line_repo: StatementLineRecordRepository,
    organization_id: UUID,
) -> StatementIngestionService:
    return StatementIngestionService(
        statement_repo, line_repo, organization_id=organization_id
    )


def _stored_lines(
    statement_repo: StatementRecordRepository,
    line_repo: StatementLineRecordRepository,
    account_id: UUID,
) -> list:
    lines = []
    for statement in statement_repo.list_by_account(account_id):
        lines.extend(line_repo.list_by_statement(statement.id))
    return lines


class TestComputeLineHash:
    def test_same_line_and_position_hash_equal(self) -> None:
        line = ParsedStatementLine(line_date=date(2025, 1, 1), debit=Decimal("5"))

        assert compute_line_hash(line, 0) == compute_line_hash(line, 0)

    def test_position_changes_hash(self) -> None:
        line = ParsedStatementLine(line_date=date(2025, 1, 1), debit=Decimal("5"))

        assert compute_line_hash(line, 0) != compute_line_hash(line, 1)

    def test_balance_and_reference_change_hash(self) -> None:
        base = ParsedStatementLine(line_date=date(2025, 1, 1), debit=Decimal("5"))
        with_balance = ParsedStatementLine(
            line_date=date(2025, 1, 1), debit=Decimal("5"), balance=Decimal("10")
        )
        with_ref = ParsedStatementLine(
            line_date=date(2025, 1, 1), debit=Decimal("5"), external_reference="X"
        )

        hashes = {
            compute_line_hash(base, 0),
            compute_line_hash(with_balance, 0),
            compute_line_hash(with_ref, 0),
        }
        assert len(hashes) == 3


class TestImportStatement:
    def test_creates_statement_with_date_bounds(
        self,
        service: StatementIngestionService,
        statement_repo: StatementRecordRepository,
        account_id: UUID,
        january_lines: list[ParsedStatementLine],
    ) -> None:
        result = service.import_statement(account_id, "jan.csv", january_lines)

        statement = statement_repo.get(result.statement_id)
        assert statement is not None
        assert statement.name == "jan.csv"
        assert statement.start_date == date(2025, 1, 5)
        assert statement.end_date == date(2025, 1, 20)
        assert result.lines_received == 3
        assert result.lines_inserted == 3
        assert result.duplicates_skipped == 0

    def test_lines_are_stored_unmatched_in_file_order(
        self,
        service: StatementIngestionService,
        line_repo: StatementLineRecordRepository,
        account_id: UUID,
        january_lines: list[ParsedStatementLine],
    ) -> None:
        result = service.import_statement(account_id, "jan.csv", january_lines)

        stored = list(line_repo.list_by_statement(result.statement_id))
        assert [line.ordinal for line in stored] == [0, 1, 2]
        assert [line.description for line in stored] == [
            "Client payment INV-001",
            "Supplier payment",
            "Bank charges",
        ]
        assert all(not line.matched for line in stored)
        assert stored[0].credit == Decimal("1500.00")

    def test_reimport_is_idempotent(
        self,
        service: StatementIngestionService,
        statement_repo: StatementRecordRepository,
        line_repo: StatementLineRecordRepository,
        account_id: UUID,
        january_lines: list[ParsedStatementLine],
    ) -> None:
        service.import_statement(account_id, "jan.csv", january_lines)
        second = service.import_statement(account_id, "jan.csv", january_lines)

        assert second.lines_inserted == 0
        assert second.duplicates_skipped == 3
        assert len(_stored_lines(statement_repo, line_repo, account_id)) == 3

    def test_identical_rows_in_one_file_are_both_kept(
        self,
        service: StatementIngestionService,
        account_id: UUID,
    ) -> None:
        row = ParsedStatementLine(
            line_date=date(2025, 1, 3), description="Coffee", debit=Decimal("4.50")
        )

        result = service.import_statement(account_id, "dup.csv", [row, row])

        assert result.lines_inserted == 2
        assert result.duplicates_skipped == 0

    def test_new_rows_sharing_a_batch_with_duplicates_persist(
        self,
        statement_repo: StatementRecordRepository,
        line_repo: StatementLineRecordRepository,
        organization_id: UUID,
        account_id: UUID,
        january_lines: list[ParsedStatementLine],
    ) -> None:
        service = StatementIngestionService(
            statement_repo, line_repo, organization_id=organization_id, batch_size=2
        )
        service.import_statement(account_id, "jan.csv", january_lines[:2])

        result = service.import_statement(account_id, "jan-full.csv", january_lines)

        assert result.lines_inserted == 1
        assert result.duplicates_skipped == 2
        assert len(_stored_lines(statement_repo, line_repo, account_id)) == 3

    def test_same_line_in_other_accounts_is_kept(
        self,
        statement_repo: StatementRecordRepository,
        line_repo: StatementLineRecordRepository,
    ) -> None:
        service = StatementIngestionService(statement_repo, line_repo)
        row = ParsedStatementLine(
            line_date=date(2025, 1, 3), description="Monthly fee", debit=Decimal("9.99")
        )

        first = service.import_statement(uuid4(), "a.csv", [row], organization_id=uuid4())
        second = service.import_statement(uuid4(), "b.csv", [row], organization_id=uuid4())
        third = service.import_statement(uuid4(), "c.csv", [row], organization_id=uuid4())

        assert first.lines_inserted == 1
        assert second.lines_inserted == 1
        assert second.duplicates_skipped == 0
        assert third.lines_inserted == 1
        stored = list(line_repo.list_by_statement(second.statement_id))
        assert [line.description for line in stored] == ["Monthly fee"]

    def test_lines_carry_their_account(
        self,
        service: StatementIngestionService,
        line_repo: StatementLineRecordRepository,
        account_id: UUID,
        january_lines: list[ParsedStatementLine],
    ) -> None:
        result = service.import_statement(account_id, "jan.csv", january_lines)

        stored = list(line_repo.list_by_statement(result.statement_id))
        assert {line.account_id for line in stored} == {account_id}

    def test_organization_can_be_passed_per_call(
        self,
        statement_repo: StatementRecordRepository,
        line_repo: StatementLineRecordRepository,
        account_id: UUID,
        january_lines: list[ParsedStatementLine],
    ) -> None:
        service = StatementIngestionService(statement_repo, line_repo)
        org = uuid4()

        result = service.import_statement(
            account_id, "jan.csv", january_lines, organization_id=str(org)
        )

        statement = statement_repo.get(result.statement_id)
        assert statement is not None
        assert statement.organization_id == org

    def test_empty_lines_raise(
        self, service: StatementIngestionService, account_id: UUID
    ) -> None:
        with pytest.raises(EmptyImportError) as exc_info:
            service.import_statement(account_id, "empty.csv", [])

        assert exc_info.value.status_code == 422

    def test_missing_organization_raises(
        self,
        statement_repo: StatementRecordRepository,
        line_repo: StatementLineRecordRepository,
        account_id: UUID,
        january_lines: list[ParsedStatementLine],
    ) -> None:
        service = StatementIngestionService(statement_repo, line_repo)

        with pytest.raises(ValidationError):
            service.import_statement(account_id, "jan.csv", january_lines)

    def test_missing_account_raises(
        self,
        service: StatementIngestionService,
        january_lines: list[ParsedStatementLine],
    ) -> None:
        with pytest.raises(ValidationError):
            service.import_statement("", "jan.csv", january_lines)

    def test_invalid_account_id_raises(
        self,
        service: StatementIngestionService,
        january_lines: list[ParsedStatementLine],
    ) -> None:
        with pytest.raises(ValidationError):
            service.import_statement("not-a-uuid", "jan.csv", january_lines)

    def test_logs_import_completed(
        self,
        service: StatementIngestionService,
        account_id: UUID,
        january_lines: list[ParsedStatementLine],
        capsys,
        caplog,
    ) -> None:
        with caplog.at_level(logging.INFO):
            service.import_statement(account_id, "jan.csv", january_lines)

        all_output = capsys.readouterr().out + caplog.text
        assert "statement_import_completed" in all_output


class TestPersistenceFailures:
    def test_header_failure_propagates(
        self, account_id: UUID, january_lines: list[ParsedStatementLine]
    ) -> None:
        statement_repo = MagicMock()
        statement_repo.add.side_effect = PersistenceError("disk full")
        line_repo = MagicMock()
        service = StatementIngestionService(
            statement_repo, line_repo, organization_id=uuid4()
        )

        with pytest.raises(PersistenceError):
            service.import_statement(account_id, "jan.csv", january_lines)

        line_repo.add_many.assert_not_called()

    def test_batch_failure_aborts_remaining_batches(
        self, account_id: UUID, january_lines: list[ParsedStatementLine]
    ) -> None:
        statement_repo = MagicMock()
        line_repo = MagicMock()
        line_repo.add_many.side_effect = [None, PersistenceError("connection lost")]
        service = StatementIngestionService(
            statement_repo, line_repo, organization_id=uuid4(), batch_size=1
        )

        with pytest.raises(PersistenceError):
            service.import_statement(account_id, "jan.csv", january_lines)

        assert line_repo.add_many.call_count == 2
        statement_repo.add.assert_called_once()


class TestImportFile:
    def test_import_file_uses_base_name(
        self,
        service: StatementIngestionService,
        statement_repo: StatementRecordRepository,
        account_id: UUID,
        tmp_path,
    ) -> None:
        path = tmp_path / "feb-2025.csv"
        path.write_text(
            "Date,Description,Debit,Credit\n2025-02-01,Rent,750,\n2025-02-03,Sale,,90\n",
            encoding="utf-8",
        )

        result = service.import_file(account_id, path)

        statement = statement_repo.get(result.statement_id)
        assert statement is not None
        assert statement.name == "feb-2025.csv"
        assert result.lines_inserted == 2

    def test_import_content_with_header_only_raises(
        self, service: StatementIngestionService, account_id: UUID
    ) -> None:
        with pytest.raises(EmptyImportError):
            service.import_content(account_id, "empty.csv", "Date,Debit\n")

    def test_import_content_date_format_override(
        self, service: StatementIngestionService, account_id: UUID
    ) -> None:
        result = service.import_content(
            account_id,
            "compact.csv",
            "Date,Debit\n20250214,12.00\n",
            date_format="%Y%m%d",
        )

        assert result.lines_inserted == 1
        assert result.start_date == date(2025, 2, 14)
