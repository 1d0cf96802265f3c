"""Automatic reconciliation of statement lines against ledger transactions.

Matching is exact: a statement line and a ledger transaction pair up when
their date and signed amount are equal. Each line is paired at most once per
reconciliation, and running the same reconciliation again creates nothing
new because the store rejects a second match for the same line.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from uuid import UUID

from bank_reconciliation.domain.ledger import LedgerTransaction
from bank_reconciliation.domain.reconciliation import (
    MatchKey,
    Reconciliation,
    ReconciliationMatch,
)
from bank_reconciliation.domain.statements import Statement, StatementLine
from bank_reconciliation.exceptions import (
    DuplicateKeyError,
    NoStatementDataError,
    PersistenceError,
    ReconciliationError,
)
from bank_reconciliation.logging_config import get_logger, log_scope
from bank_reconciliation.repositories.interfaces import (
    LedgerTransactionRepository,
    ReconciliationMatchRepository,
    ReconciliationRepository,
    StatementLineRepository,
    StatementRepository,
)
from bank_reconciliation.services.batching import chunked, write_in_batches
from bank_reconciliation.services.validation import check_range, coerce_uuid

logger = get_logger(__name__)

DEFAULT_MATCH_BATCH_SIZE = 500


@dataclass
class ReconciliationResult:
    """Outcome of one auto-reconciliation run."""

    reconciliation_id: UUID
    matches_created: int
    matches_attempted: int
    lines_considered: int
    transactions_considered: int
    flags_updated: int
    flags_failed: int = 0


@dataclass
class UnmatchedItems:
    statement_lines: list[StatementLine] = field(default_factory=list)
    transactions: list[LedgerTransaction] = field(default_factory=list)


class ReconciliationService:
    """Pairs statement lines with ledger transactions by date and amount."""

    def __init__(
        self,
        statement_repo: StatementRepository,
        line_repo: StatementLineRepository,
        transaction_repo: LedgerTransactionRepository,
        reconciliation_repo: ReconciliationRepository,
        match_repo: ReconciliationMatchRepository,
        organization_id: UUID | None = None,
        batch_size: int = DEFAULT_MATCH_BATCH_SIZE,
        match_on_statement_balance: bool = True,
    ) -> None:
        self._statement_repo = statement_repo
        self._line_repo = line_repo
        self._transaction_repo = transaction_repo
        self._reconciliation_repo = reconciliation_repo
        self._match_repo = match_repo
        self._organization_id = organization_id
        self._batch_size = batch_size
        self._match_on_statement_balance = match_on_statement_balance

    def auto_reconcile(
        self,
        account_id: UUID | str,
        period_start: date,
        period_end: date,
        organization_id: UUID | str | None = None,
    ) -> ReconciliationResult:
        """Match the account's statement lines to its ledger for a period.

        Args:
            account_id: Bank account to reconcile.
            period_start: First day of the period, inclusive.
            period_end: Last day of the period, inclusive.
            organization_id: Owner of a newly created reconciliation. Falls
                back to the service's organization, then to the statement's.

        Returns:
            ReconciliationResult with counts for this run.

        Raises:
            InvalidRangeError: If period_start is after period_end.
            NoStatementDataError: If no statement overlaps the period.
            PersistenceError: If the reconciliation or its matches cannot
                be stored.
        """
        check_range(period_start, period_end)
        account_uuid = coerce_uuid(account_id, "account_id")

        with log_scope(account_id=account_uuid):
            statements = list(
                self._statement_repo.list_overlapping(
                    account_uuid, period_start, period_end
                )
            )
            if not statements:
                raise NoStatementDataError(account_uuid, period_start, period_end)

            org_value = organization_id or self._organization_id
            org_uuid = (
                coerce_uuid(org_value, "organization_id")
                if org_value
                else statements[0].organization_id
            )
            reconciliation = self._get_or_create(
                org_uuid, account_uuid, period_start, period_end
            )
            logger.info(
                "auto_reconcile_started",
                reconciliation_id=reconciliation.id,
                period_start=period_start,
                period_end=period_end,
                statements=len(statements),
            )

            lines = self._lines_in_period(statements, period_start, period_end)
            transactions = list(
                self._transaction_repo.list_by_account(
                    account_uuid, period_start, period_end
                )
            )
            pending = self.pair(reconciliation.id, lines, transactions)

            written = write_in_batches(
                pending,
                self._batch_size,
                self._match_repo.add_many,
                label="match",
            )
            flags_updated, flags_failed = self._flag_lines(
                [match.statement_line_id for match in pending]
            )

            result = ReconciliationResult(
                reconciliation_id=reconciliation.id,
                matches_created=written.written,
                matches_attempted=len(pending),
                lines_considered=len(lines),
                transactions_considered=len(transactions),
                flags_updated=flags_updated,
                flags_failed=flags_failed,
            )
            logger.info(
                "auto_reconcile_completed",
                reconciliation_id=reconciliation.id,
                matches_created=result.matches_created,
                matches_attempted=result.matches_attempted,
                lines=result.lines_considered,
                transactions=result.transactions_considered,
                flags_failed=flags_failed,
            )
        return result

    def statement_key(self, line: StatementLine) -> MatchKey:
        if self._match_on_statement_balance and line.balance is not None:
            return MatchKey.of(line.line_date, line.balance)
        return MatchKey.of(line.line_date, line.net_amount)

    def pair(
        self,
        reconciliation_id: UUID,
        lines: Sequence[StatementLine],
        transactions: Sequence[LedgerTransaction],
    ) -> list[ReconciliationMatch]:
        """Build prospective matches without touching the store.

        The first line seen for a key wins; later lines with the same key
        stay unmatched. A transaction consumes the key it hits, so no line
        is paired twice.
        """
        index: dict[MatchKey, StatementLine] = {}
        for line in lines:
            index.setdefault(self.statement_key(line), line)

        matches: list[ReconciliationMatch] = []
        for txn in transactions:
            key = MatchKey.of(txn.transaction_date, txn.net_amount)
            line = index.pop(key, None)
            if line is None:
                continue
            matches.append(
                ReconciliationMatch(
                    reconciliation_id=reconciliation_id,
                    statement_line_id=line.id,
                    account_transaction_id=txn.id,
                    match_amount=key.amount,
                )
            )
        return matches

    def unmatched_items(
        self, account_id: UUID | str, period_start: date, period_end: date
    ) -> UnmatchedItems:
        """Statement lines and ledger transactions still unpaired in a period.

        A ledger transaction counts as matched once any reconciliation has
        paired it. An account without statements for the period reports
        every ledger transaction as unmatched.

        Raises:
            InvalidRangeError: If period_start is after period_end.
        """
        check_range(period_start, period_end)
        account_uuid = coerce_uuid(account_id, "account_id")

        statements = list(
            self._statement_repo.list_overlapping(account_uuid, period_start, period_end)
        )
        lines = [
            line
            for line in self._lines_in_period(statements, period_start, period_end)
            if not line.matched
        ]
        transactions = list(
            self._transaction_repo.list_by_account(account_uuid, period_start, period_end)
        )
        paired = {
            match.account_transaction_id
            for match in self._match_repo.list_by_transactions(
                [txn.id for txn in transactions]
            )
        }
        items = UnmatchedItems(
            statement_lines=lines,
            transactions=[txn for txn in transactions if txn.id not in paired],
        )
        logger.debug(
            "unmatched_items_listed",
            account_id=account_uuid,
            statement_lines=len(items.statement_lines),
            transactions=len(items.transactions),
        )
        return items

    def list_matches(self, reconciliation_id: UUID | str) -> list[ReconciliationMatch]:
        return list(
            self._match_repo.list_by_reconciliation(
                coerce_uuid(reconciliation_id, "reconciliation_id")
            )
        )

    def get_reconciliation(
        self, account_id: UUID | str, period_start: date, period_end: date
    ) -> Reconciliation | None:
        check_range(period_start, period_end)
        return self._reconciliation_repo.find(
            coerce_uuid(account_id, "account_id"), period_start, period_end
        )

    def _lines_in_period(
        self, statements: Sequence[Statement], period_start: date, period_end: date
    ) -> list[StatementLine]:
        """Lines in date order; on the same date the earlier import comes first."""
        if not statements:
            return []
        imported = sorted(statements, key=lambda s: (s.created_at, str(s.id)))
        rank = {statement.id: i for i, statement in enumerate(imported)}
        lines = list(
            self._line_repo.list_in_range(
                [statement.id for statement in imported], period_start, period_end
            )
        )
        lines.sort(
            key=lambda line: (line.line_date, rank[line.statement_id], line.ordinal)
        )
        return lines

    def _get_or_create(
        self,
        organization_id: UUID,
        account_id: UUID,
        period_start: date,
        period_end: date,
    ) -> Reconciliation:
        existing = self._reconciliation_repo.find(account_id, period_start, period_end)
        if existing is not None:
            return existing

        reconciliation = Reconciliation(
            organization_id=organization_id,
            account_id=account_id,
            period_start=period_start,
            period_end=period_end,
        )
        try:
            self._reconciliation_repo.add(reconciliation)
        except DuplicateKeyError as e:
            # Created concurrently by another run
            existing = self._reconciliation_repo.find(
                account_id, period_start, period_end
            )
            if existing is None:
                raise ReconciliationError(
                    "Reconciliation conflict could not be resolved",
                    context={"account_id": str(account_id)},
                ) from e
            return existing

        logger.info("reconciliation_created", reconciliation_id=reconciliation.id)
        return reconciliation

    def _flag_lines(self, line_ids: Sequence[UUID]) -> tuple[int, int]:
        """Mark matched lines as reconciled. Failures are logged, not raised."""
        reconciled_at = datetime.now(UTC)
        updated = 0
        failed = 0
        for batch in chunked(line_ids, self._batch_size):
            try:
                updated += self._line_repo.mark_matched(batch, reconciled_at)
            except PersistenceError as e:
                failed += len(batch)
                logger.warning(
                    "statement_line_flag_update_failed",
                    lines=len(batch),
                    error=e.message,
                )
        return updated, failed
