"""Command-line interface for the Bank Reconciliation Engine."""

import argparse
import sys
from datetime import date
from pathlib import Path

from bank_reconciliation.config import DatabaseType, LogLevel, Settings, get_settings
from bank_reconciliation.container import Container
from bank_reconciliation.exceptions import BankReconciliationError, ValidationError
from bank_reconciliation.logging_config import configure_logging
from bank_reconciliation.parsers.statement_csv import statement_template
from bank_reconciliation.repositories.sqlite import SQLiteDatabase


def get_default_db_path() -> Path:
    """Get the default database path in user's home directory."""
    return Path.home() / ".bank_reconciliation" / "bankrec.db"


def _db_path(args: argparse.Namespace) -> Path:
    return Path(args.database) if args.database else get_default_db_path()


def _iso_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"Invalid date (expected YYYY-MM-DD): {value}") from e


def _open_container(args: argparse.Namespace) -> Container | None:
    """Build a container over an existing SQLite database, or report why not."""
    db_path = _db_path(args)
    if not db_path.exists():
        print(f"Error: Database not found at {db_path}")
        print("Run 'bankrec init' to create a new database")
        return None
    return Container(
        Settings(database_type=DatabaseType.SQLITE, sqlite_path=db_path)
    )


def cmd_init(args: argparse.Namespace) -> int:
    """Initialize a new database."""
    db_path = _db_path(args)

    if db_path.exists() and not args.force:
        print(f"Database already exists at {db_path}")
        print("Use --force to reinitialize (WARNING: will delete existing data)")
        return 1

    if db_path.exists() and args.force:
        db_path.unlink()

    db_path.parent.mkdir(parents=True, exist_ok=True)
    db = SQLiteDatabase(str(db_path))
    db.initialize()
    db.close()

    print(f"Initialized database at {db_path}")
    return 0


def cmd_template(args: argparse.Namespace) -> int:
    """Write a sample statement file."""
    content = statement_template()
    if args.output:
        Path(args.output).write_text(content, encoding="utf-8")
        print(f"Template written to {args.output}")
    else:
        print(content, end="")
    return 0


def cmd_import(args: argparse.Namespace) -> int:
    """Import a bank statement file for an account."""
    file_path = Path(args.file)
    if not file_path.exists():
        print(f"Error: File not found: {file_path}")
        return 1

    container = _open_container(args)
    if container is None:
        return 1

    with container:
        try:
            result = container.ingestion_service.import_file(
                args.account, file_path, organization_id=args.organization
            )
        except BankReconciliationError as e:
            print(f"Error: {e.message}")
            return 1

    print(f"Statement imported: {result.statement_id}")
    print(f"  Period: {result.start_date} to {result.end_date}")
    print(f"  Lines received: {result.lines_received}")
    print(f"  Lines inserted: {result.lines_inserted}")
    print(f"  Duplicates skipped: {result.duplicates_skipped}")
    return 0


def cmd_reconcile(args: argparse.Namespace) -> int:
    """Auto-reconcile an account for a period."""
    container = _open_container(args)
    if container is None:
        return 1

    with container:
        try:
            result = container.reconciliation_service.auto_reconcile(
                args.account,
                args.start,
                args.end,
                organization_id=args.organization,
            )
        except BankReconciliationError as e:
            print(f"Error: {e.message}")
            return 1

    print(f"Reconciliation: {result.reconciliation_id}")
    print(f"  Statement lines: {result.lines_considered}")
    print(f"  Ledger transactions: {result.transactions_considered}")
    print(f"  Matches created: {result.matches_created}")
    print(f"  Matches attempted: {result.matches_attempted}")
    if result.flags_failed:
        print(f"  Warning: {result.flags_failed} line(s) could not be flagged as matched")
    return 0


def cmd_unmatched(args: argparse.Namespace) -> int:
    """List statement lines and ledger transactions still unmatched in a period."""
    container = _open_container(args)
    if container is None:
        return 1

    with container:
        try:
            items = container.reconciliation_service.unmatched_items(
                args.account, args.start, args.end
            )
        except BankReconciliationError as e:
            print(f"Error: {e.message}")
            return 1

    print(f"Unmatched statement lines: {len(items.statement_lines)}")
    for line in items.statement_lines:
        print(
            f"  {line.line_date.isoformat():<12} "
            f"{line.description[:32]:<32} "
            f"{line.net_amount:>12}"
        )
    print(f"Unmatched ledger transactions: {len(items.transactions)}")
    for txn in items.transactions:
        print(
            f"  {txn.transaction_date.isoformat():<12} "
            f"{txn.description[:32]:<32} "
            f"{txn.net_amount:>12}"
        )
    return 0


def cmd_view(args: argparse.Namespace) -> int:
    """Print the banking view of an account's ledger."""
    container = _open_container(args)
    if container is None:
        return 1

    with container:
        try:
            rows = container.ledger_view_service.banking_view(args.account, args.search)
        except BankReconciliationError as e:
            print(f"Error: {e.message}")
            return 1

    if not rows:
        print("No transactions found")
        return 0

    print(f"{'Date':<12} {'Description':<32} {'Debit':>12} {'Credit':>12} {'Balance':>12}")
    print("-" * 84)
    for row in rows:
        txn = row.transaction
        print(
            f"{txn.transaction_date.isoformat():<12} "
            f"{txn.description[:32]:<32} "
            f"{row.display_debit:>12} "
            f"{row.display_credit:>12} "
            f"{row.running_balance:>12}"
        )
    return 0


def cmd_lock(args: argparse.Namespace) -> int:
    """Lock an accounting period."""
    container = _open_container(args)
    if container is None:
        return 1

    with container:
        try:
            if args.month:
                year, month = _parse_month(args.month)
                period = container.period_lock_service.lock_month(
                    args.organization, year, month
                )
            elif args.start and args.end:
                period = container.period_lock_service.lock_period(
                    args.organization, args.start, args.end
                )
            else:
                print("Error: Provide --month or both --start and --end")
                return 1
        except BankReconciliationError as e:
            print(f"Error: {e.message}")
            return 1

    print(f"Locked period {period.period_start} to {period.period_end}")
    return 0


def cmd_unlock(args: argparse.Namespace) -> int:
    """Unlock an accounting period."""
    container = _open_container(args)
    if container is None:
        return 1

    with container:
        try:
            removed = container.period_lock_service.unlock_period(
                args.organization, args.start, args.end
            )
        except BankReconciliationError as e:
            print(f"Error: {e.message}")
            return 1

    if removed:
        print(f"Unlocked period {args.start} to {args.end}")
    else:
        print(f"No lock found for {args.start} to {args.end}")
    return 0


def cmd_periods(args: argparse.Namespace) -> int:
    """List locked accounting periods for an organization."""
    container = _open_container(args)
    if container is None:
        return 1

    with container:
        try:
            periods = container.period_lock_service.list_periods(args.organization)
        except BankReconciliationError as e:
            print(f"Error: {e.message}")
            return 1

    if not periods:
        print("No locked periods")
        return 0
    for period in periods:
        print(f"  {period.period_start} to {period.period_end} [{period.status.value}]")
    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    """Run the HTTP API with uvicorn."""
    import os

    import uvicorn

    if args.database:
        os.environ["BANKREC_SQLITE_PATH"] = str(args.database)

    settings = get_settings()
    uvicorn.run(
        "bank_reconciliation.api.app:create_app",
        factory=True,
        host=args.host or settings.api_host,
        port=args.port or settings.api_port,
    )
    return 0


def _parse_month(value: str) -> tuple[int, int]:
    try:
        year, month = value.split("-")
        return int(year), int(month)
    except ValueError as e:
        raise ValidationError(f"Invalid month (expected YYYY-MM): {value}") from e


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="bankrec",
        description="Bank Reconciliation Engine - statement import and auto-reconciliation",
    )
    parser.add_argument(
        "--database",
        "-d",
        help="Path to SQLite database file",
        default=None,
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Show debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # init command
    init_parser = subparsers.add_parser("init", help="Initialize a new database")
    init_parser.add_argument(
        "--force",
        "-f",
        action="store_true",
        help="Force reinitialization (deletes existing data)",
    )
    init_parser.set_defaults(func=cmd_init)

    # template command
    template_parser = subparsers.add_parser(
        "template", help="Print a sample statement file"
    )
    template_parser.add_argument("--output", "-o", help="Write to this file instead")
    template_parser.set_defaults(func=cmd_template)

    # import command
    import_parser = subparsers.add_parser("import", help="Import a statement file")
    import_parser.add_argument("file", help="Statement file to import")
    import_parser.add_argument("--account", required=True, help="Bank account ID")
    import_parser.add_argument("--organization", required=True, help="Organization ID")
    import_parser.set_defaults(func=cmd_import)

    # reconcile command
    reconcile_parser = subparsers.add_parser(
        "reconcile", help="Auto-reconcile an account for a period"
    )
    reconcile_parser.add_argument("--account", required=True, help="Bank account ID")
    reconcile_parser.add_argument("--organization", help="Organization ID")
    reconcile_parser.add_argument("--start", required=True, type=_iso_date)
    reconcile_parser.add_argument("--end", required=True, type=_iso_date)
    reconcile_parser.set_defaults(func=cmd_reconcile)

    # unmatched command
    unmatched_parser = subparsers.add_parser(
        "unmatched", help="List unmatched statement lines and ledger transactions"
    )
    unmatched_parser.add_argument("--account", required=True, help="Bank account ID")
    unmatched_parser.add_argument("--start", required=True, type=_iso_date)
    unmatched_parser.add_argument("--end", required=True, type=_iso_date)
    unmatched_parser.set_defaults(func=cmd_unmatched)

    # view command
    view_parser = subparsers.add_parser("view", help="Show the banking view")
    view_parser.add_argument("--account", required=True, help="Bank account ID")
    view_parser.add_argument("--search", help="Filter by description, type or date")
    view_parser.set_defaults(func=cmd_view)

    # lock command
    lock_parser = subparsers.add_parser("lock", help="Lock an accounting period")
    lock_parser.add_argument("--organization", required=True, help="Organization ID")
    lock_parser.add_argument("--start", type=_iso_date)
    lock_parser.add_argument("--end", type=_iso_date)
    lock_parser.add_argument("--month", help="Lock a calendar month (YYYY-MM)")
    lock_parser.set_defaults(func=cmd_lock)

    # unlock command
    unlock_parser = subparsers.add_parser("unlock", help="Unlock an accounting period")
    unlock_parser.add_argument("--organization", required=True, help="Organization ID")
    unlock_parser.add_argument("--start", required=True, type=_iso_date)
    unlock_parser.add_argument("--end", required=True, type=_iso_date)
    unlock_parser.set_defaults(func=cmd_unlock)

    # periods command
    periods_parser = subparsers.add_parser("periods", help="List locked periods")
    periods_parser.add_argument("--organization", required=True, help="Organization ID")
    periods_parser.set_defaults(func=cmd_periods)

    # serve command
    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", help="Defaults to BANKREC_API_HOST")
    serve_parser.add_argument("--port", type=int, help="Defaults to BANKREC_API_PORT")
    serve_parser.set_defaults(func=cmd_serve)

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    configure_logging(
        Settings(log_level=LogLevel.DEBUG if args.verbose else LogLevel.WARNING)
    )

    result: int = args.func(args)
    return result


if __name__ == "__main__":
    sys.exit(main())
