"""Delimited-text parser for bank statement exports."""

import csv
import io
import re
from collections.abc import Sequence
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from pathlib import Path

from bank_reconciliation.domain.statements import ParsedStatementLine
from bank_reconciliation.logging_config import get_logger

logger = get_logger(__name__)

_NON_ALPHA = re.compile(r"[^a-z]")
_QUOTES = "\"'"

TEMPLATE_HEADERS = ["Date", "Description", "Debit", "Credit", "Balance", "Reference"]
TEMPLATE_EXAMPLE_ROW = [
    "2025-01-15",
    "Client payment - INV-0001",
    "0.00",
    "2500.00",
    "2500.00",
    "MPESA-QX12AB34",
]


def normalize_header(cell: str) -> str:
    """Lower-case a header cell and drop everything that is not a letter.

    ``" Date "``, ``"DEBIT:"`` and ``"Balance (KES)"`` become ``"date"``,
    ``"debit"`` and ``"balancekes"``.
    """
    return _NON_ALPHA.sub("", cell.lower())


def clean_cell(cell: str) -> str:
    """Strip surrounding whitespace and wrapping quote characters."""
    return cell.strip().strip(_QUOTES).strip()


class StatementCSVParser:
    """Parser for comma-separated bank statement files.

    Columns are located by semantic name after header normalization, so
    ``Date``, ``" date "`` and ``DATE:`` all resolve to the date column.
    Rows that cannot be read are skipped one at a time; a badly formatted
    export never aborts the whole file.
    """

    # Normalized header -> field. Exact field names first, then bank aliases.
    HEADER_ALIASES: dict[str, str] = {
        "date": "date",
        "description": "description",
        "debit": "debit",
        "credit": "credit",
        "amount": "amount",
        "balance": "balance",
        "reference": "reference",
        "transactiondate": "date",
        "transdate": "date",
        "posteddate": "date",
        "valuedate": "date",
        "details": "description",
        "narrative": "description",
        "particulars": "description",
        "memo": "description",
        "payee": "description",
        "withdrawal": "debit",
        "withdrawals": "debit",
        "paidout": "debit",
        "moneyout": "debit",
        "deposit": "credit",
        "deposits": "credit",
        "paidin": "credit",
        "moneyin": "credit",
        "transactionamount": "amount",
        "runningbalance": "balance",
        "ref": "reference",
        "referenceno": "reference",
        "referencenumber": "reference",
        "receiptno": "reference",
    }

    DATE_FORMATS = [
        "%Y-%m-%d",
        "%m/%d/%Y",
        "%m/%d/%y",
        "%d/%m/%Y",
        "%Y/%m/%d",
        "%d-%m-%Y",
        "%d.%m.%Y",
        "%d %b %Y",
        "%d-%b-%Y",
        "%Y-%m-%d %H:%M:%S",
    ]

    def __init__(self, date_format: str | None = None) -> None:
        """Initialize the parser.

        Args:
            date_format: Optional strptime format tried before the defaults.
        """
        self._date_format = date_format

    def parse(self, content: str) -> list[ParsedStatementLine]:
        """Parse raw file content into normalized statement lines.

        Returns an empty list when the content has fewer than two rows
        (header plus at least one data row). The caller decides whether
        that is a failure.
        """
        content = content.lstrip("\ufeff")
        rows = [
            row
            for row in csv.reader(io.StringIO(content))
            if any(cell.strip() for cell in row)
        ]
        if len(rows) < 2:
            return []

        columns = self.detect_columns(rows[0])
        lines: list[ParsedStatementLine] = []
        for row_num, row in enumerate(rows[1:], start=2):
            line = self._parse_row(row, columns, row_num)
            if line is not None:
                lines.append(line)

        logger.debug(
            "statement_parsed",
            rows=len(rows) - 1,
            lines=len(lines),
            skipped=len(rows) - 1 - len(lines),
        )
        return lines

    def parse_file(self, file_path: str | Path) -> list[ParsedStatementLine]:
        """Read a statement file from disk and parse it.

        Raises:
            FileNotFoundError: If the file does not exist.
        """
        path = Path(file_path)
        if not path.exists():
            raise FileNotFoundError(f"Statement file not found: {file_path}")
        return self.parse(path.read_text(encoding="utf-8-sig"))

    def detect_columns(self, header: Sequence[str]) -> dict[str, int]:
        """Map semantic field names to column indexes.

        The first column claiming a field wins.
        """
        columns: dict[str, int] = {}
        for index, cell in enumerate(header):
            field_name = self.HEADER_ALIASES.get(normalize_header(clean_cell(cell)))
            if field_name is not None and field_name not in columns:
                columns[field_name] = index
        return columns

    def _parse_row(
        self, row: Sequence[str], columns: dict[str, int], row_num: int
    ) -> ParsedStatementLine | None:
        date_cell = self._cell(row, columns, "date")
        if not date_cell:
            return None

        line_date = self._parse_date(date_cell)
        if line_date is None:
            logger.debug("statement_row_skipped", row=row_num, reason="unparseable_date")
            return None

        try:
            debit, credit = self._parse_debit_credit(row, columns)
            balance = self._optional_decimal(self._cell(row, columns, "balance"))
        except InvalidOperation:
            logger.debug("statement_row_skipped", row=row_num, reason="unparseable_amount")
            return None

        return ParsedStatementLine(
            line_date=line_date,
            description=self._cell(row, columns, "description"),
            debit=debit,
            credit=credit,
            balance=balance,
            external_reference=self._cell(row, columns, "reference") or None,
        )

    def _parse_debit_credit(
        self, row: Sequence[str], columns: dict[str, int]
    ) -> tuple[Decimal, Decimal]:
        """Derive non-negative debit and credit for a row.

        Explicit debit/credit columns win over a signed amount column.
        """
        if "debit" in columns or "credit" in columns:
            debit = self._optional_decimal(self._cell(row, columns, "debit"))
            credit = self._optional_decimal(self._cell(row, columns, "credit"))
            return (
                abs(debit) if debit is not None else Decimal("0"),
                abs(credit) if credit is not None else Decimal("0"),
            )

        if "amount" in columns:
            amount = self._optional_decimal(self._cell(row, columns, "amount"))
            if amount is None:
                return Decimal("0"), Decimal("0")
            if amount < 0:
                return abs(amount), Decimal("0")
            return Decimal("0"), amount

        return Decimal("0"), Decimal("0")

    @staticmethod
    def _cell(row: Sequence[str], columns: dict[str, int], field_name: str) -> str:
        index = columns.get(field_name)
        if index is None or index >= len(row):
            return ""
        return clean_cell(row[index])

    def _parse_date(self, date_str: str) -> date | None:
        formats = list(self.DATE_FORMATS)
        if self._date_format:
            formats.insert(0, self._date_format)

        for fmt in formats:
            try:
                return datetime.strptime(date_str, fmt).date()
            except ValueError:
                continue

        return None

    @staticmethod
    def _optional_decimal(value: str) -> Decimal | None:
        """Parse a money cell; empty cells are None.

        Raises:
            InvalidOperation: If the cell is non-empty but not a number.
        """
        cleaned = value.strip()
        if not cleaned:
            return None
        for symbol in ("$", "£", "€", ",", " "):
            cleaned = cleaned.replace(symbol, "")
        if cleaned.upper().startswith("KES"):
            cleaned = cleaned[3:]
        if cleaned.startswith("(") and cleaned.endswith(")"):
            cleaned = "-" + cleaned[1:-1]
        if not cleaned:
            return None
        amount = Decimal(cleaned)
        if not amount.is_finite():
            raise InvalidOperation(value)
        return amount


def parse_statement_csv(
    content: str, date_format: str | None = None
) -> list[ParsedStatementLine]:
    """Parse statement file content with the default parser."""
    return StatementCSVParser(date_format=date_format).parse(content)


def parse_statement_file(
    file_path: str | Path, date_format: str | None = None
) -> list[ParsedStatementLine]:
    return StatementCSVParser(date_format=date_format).parse_file(file_path)


def statement_template() -> str:
    """Sample statement file with every recognized header and one example row."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(TEMPLATE_HEADERS)
    writer.writerow(TEMPLATE_EXAMPLE_ROW)
    return buffer.getvalue()
