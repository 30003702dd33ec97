"""
Delimited bank export parser.
Handles the comma-separated export whose transfer title is not quoted.
"""

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Iterable, Iterator, Optional
import logging

from ..models.transaction import Transaction, TransactionSource
from ..config import ReconConfig
from ..utils.exceptions import StatementParseError

logger = logging.getLogger(__name__)

# Positional columns; the title sits between the account and the balance
COL_POSTING_DATE = 0
COL_OPERATION_DATE = 1
COL_TYPE = 2
COL_AMOUNT = 3
COL_CURRENCY = 4
COL_COUNTERPARTY = 5
COL_COUNTERPARTY_ACCOUNT = 6
FIRST_TITLE_COLUMN = 7


class CsvStatementParser:
    """
    Parser for comma-delimited bank exports.

    The title column may itself contain commas and is never quoted, so a row
    is split on every comma and the title is rebuilt from the tokens between
    the counterparty account and the trailing running balance.
    """

    def __init__(self, config: ReconConfig):
        """
        Initialize the parser with configuration.

        Args:
            config: Application configuration object
        """
        self.config = config
        self.settings = config.input.csv

    def parse_file(self, file_path: Path) -> list[Transaction]:
        """
        Parse a delimited export and return normalized transactions.

        Args:
            file_path: Path to the export file

        Returns:
            List of transactions in file order

        Raises:
            StatementParseError: If the file cannot be read
        """
        logger.info(f"Parsing delimited statement: {file_path}")

        try:
            # Undecodable bytes become U+FFFD; the row itself is still parsed
            with open(file_path, "r", encoding=self.settings.encoding, errors="replace") as f:
                lines = f.read().splitlines()
        except OSError as e:
            logger.error(f"Failed to read statement file: {e}")
            raise StatementParseError(f"Failed to read statement file: {e}") from e

        transactions = list(self.parse_lines(lines))
        logger.info(f"Extracted {len(transactions)} transactions from delimited statement")

        return transactions

    def parse_lines(self, lines: Iterable[str]) -> Iterator[Transaction]:
        """
        Parse export lines, skipping everything up to the header row.

        Args:
            lines: Raw lines of the export

        Yields:
            Transactions for every well-formed data line
        """
        header_found = False
        sequence = 0

        for line_number, line in enumerate(lines, start=1):
            if not line.strip():
                continue

            if self._is_header(line):
                header_found = True
                continue

            if not header_found:
                continue

            txn = self._parse_line(line, sequence, line_number)
            if txn:
                sequence += 1
                yield txn

        if not header_found:
            logger.warning(
                "Header row not found (expected tokens: %s), no transactions read",
                ", ".join(self.settings.header_tokens),
            )

    def _is_header(self, line: str) -> bool:
        return all(token in line for token in self.settings.header_tokens)

    def _parse_line(
        self, line: str, sequence: int, line_number: int
    ) -> Optional[Transaction]:
        """
        Parse a single data line.

        Format:
        posting date,operation date,type,amount,currency,counterparty,account,title...,balance

        Returns:
            Transaction or None if the line is malformed
        """
        parts = line.split(self.settings.delimiter)

        if len(parts) < self.settings.min_columns:
            logger.debug(f"Line {line_number}: {len(parts)} columns, skipping")
            return None

        operation_date = self._parse_date(parts[COL_OPERATION_DATE])
        if operation_date is None:
            logger.warning(f"Line {line_number}: invalid date {parts[COL_OPERATION_DATE]!r}, skipping")
            return None

        try:
            amount = Decimal(parts[COL_AMOUNT].strip())
        except InvalidOperation:
            logger.warning(f"Line {line_number}: invalid amount {parts[COL_AMOUNT]!r}, skipping")
            return None

        title = self.settings.delimiter.join(parts[FIRST_TITLE_COLUMN:-1])

        return Transaction(
            date=operation_date,
            amount=amount,
            currency=parts[COL_CURRENCY].strip(),
            counterparty=parts[COL_COUNTERPARTY].strip(),
            description=title.strip(),
            type=parts[COL_TYPE].strip(),
            raw=line,
            sequence=sequence,
            source=TransactionSource.CSV,
            posting_date=self._parse_date(parts[COL_POSTING_DATE]),
            counterparty_account=parts[COL_COUNTERPARTY_ACCOUNT].strip(),
            balance=self._parse_balance(parts[-1]),
        )

    def _parse_date(self, value: str) -> Optional[date]:
        text = value.strip()
        for fmt in self.settings.date_formats:
            try:
                return datetime.strptime(text, fmt).date()
            except ValueError:
                continue
        return None

    def _parse_balance(self, value: str) -> Optional[Decimal]:
        try:
            return Decimal(value.strip())
        except InvalidOperation:
            return None
