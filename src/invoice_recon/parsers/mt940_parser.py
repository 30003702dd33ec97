"""
SWIFT MT940 statement parser.
Converts :61: / :86: statement lines into normalized transactions.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Iterable, Iterator, Optional
import logging
import re

from ..models.transaction import Transaction, TransactionSource
from ..config import ReconConfig
from ..utils.exceptions import StatementParseError

logger = logging.getLogger(__name__)

# :61:YYMMDD[MMDD]<D/C mark><amount>N<type><reference>
STATEMENT_LINE = re.compile(
    r"^(?P<date>\d{6})(?P<entry>\d{4})?(?P<mark>[A-Z]{1,2})(?P<amount>[0-9,]+)"
    r"(?P<id>[A-Z])(?P<code>[A-Z0-9]{3})(?P<reference>.*)$"
)

# :60F:C251101PLN1234,56
OPENING_BALANCE = re.compile(r"^:60[FM]:[CD]\d{6}(?P<currency>[A-Z]{3})")

TAG = re.compile(r"^:\d{2}[A-Z]?:")

DESCRIPTION_CODES = range(20, 27)
COUNTERPARTY_CODES = (range(27, 30), range(60, 64))
TYPE_CODE = "00"


@dataclass
class _PendingTransaction:
    """A :61: line waiting for its :86: narrative."""

    date: date
    amount: Decimal
    type_code: str
    reference: str
    currency: str
    raw: str
    narrative: list[str] = field(default_factory=list)


class MT940Parser:
    """
    Parser for MT940 statements as exported by Polish banks.

    Statements are read with a single-byte Central-European code page.
    Each :61: line opens a transaction and the following :86: line (plus
    untagged continuation lines) carries its ``<NN``-coded narrative.
    """

    def __init__(self, config: ReconConfig):
        """
        Initialize the parser with configuration.

        Args:
            config: Application configuration object
        """
        self.config = config
        self.settings = config.input.mt940

    def parse_file(self, file_path: Path) -> list[Transaction]:
        """
        Parse an MT940 file and return normalized transactions.

        Args:
            file_path: Path to the statement

        Returns:
            List of transactions in file order

        Raises:
            StatementParseError: If the file cannot be read
        """
        logger.info(f"Parsing MT940 statement: {file_path}")

        try:
            content = file_path.read_bytes().decode(self.settings.encoding, errors="replace")
        except OSError as e:
            logger.error(f"Failed to read MT940 file: {e}")
            raise StatementParseError(f"Failed to read MT940 file: {e}") from e

        transactions = list(self.parse_lines(content.splitlines()))
        logger.info(f"Extracted {len(transactions)} transactions from MT940 statement")

        return transactions

    def parse_lines(self, lines: Iterable[str]) -> Iterator[Transaction]:
        """
        Parse decoded statement lines.

        Args:
            lines: Statement lines

        Yields:
            Transactions in statement order
        """
        currency = self.settings.default_currency
        pending: Optional[_PendingTransaction] = None
        sequence = 0

        for line in lines:
            if line.startswith(":61:"):
                if pending:
                    yield self._finish(pending, sequence)
                    sequence += 1
                pending = self._parse_statement_line(line, currency)

            elif line.startswith(":86:"):
                if pending:
                    pending.narrative.append(line[4:])

            elif TAG.match(line):
                # Any other tag closes the open transaction
                if pending:
                    yield self._finish(pending, sequence)
                    sequence += 1
                    pending = None

                balance = OPENING_BALANCE.match(line)
                if balance:
                    currency = balance.group("currency")

            elif pending:
                pending.narrative.append(line)

        if pending:
            yield self._finish(pending, sequence)

    def _parse_statement_line(
        self, line: str, currency: str
    ) -> Optional[_PendingTransaction]:
        """
        Parse a :61: statement line.

        Debit marks (D, RD, DN...) negate the amount so outgoing payments are
        negative, as in the delimited dialect.

        Returns:
            Pending transaction or None if the line does not match
        """
        match = STATEMENT_LINE.match(line[4:].strip())
        if not match:
            logger.warning(f"Unrecognised :61: line, skipping: {line}")
            return None

        try:
            amount = Decimal(match.group("amount").replace(",", "."))
            txn_date = _parse_yymmdd(match.group("date"))
        except (InvalidOperation, ValueError) as e:
            logger.warning(f"Invalid :61: line {line}: {e}")
            return None

        if "D" in match.group("mark"):
            amount = -amount

        return _PendingTransaction(
            date=txn_date,
            amount=amount,
            type_code=match.group("code"),
            reference=match.group("reference").strip(),
            currency=currency,
            raw=line,
        )

    def _finish(self, pending: _PendingTransaction, sequence: int) -> Transaction:
        type_text, description, counterparty = parse_narrative("".join(pending.narrative))

        return Transaction(
            date=pending.date,
            amount=pending.amount,
            currency=pending.currency,
            counterparty=counterparty,
            description=" ".join(part for part in (type_text, description) if part),
            type=type_text or pending.type_code,
            raw=pending.raw,
            sequence=sequence,
            source=TransactionSource.MT940,
            type_code=pending.type_code,
            reference=pending.reference,
        )


def parse_narrative(narrative: str) -> tuple[str, str, str]:
    """
    Split a :86: narrative into its coded sub-fields.

    ``<00`` carries the operation type, ``<20``-``<26`` the transfer title and
    ``<27``-``<29`` / ``<60``-``<63`` the counterparty name and address.

    Returns:
        Tuple of (type text, description, counterparty), whitespace collapsed
    """
    type_parts: list[str] = []
    description_parts: list[str] = []
    counterparty_parts: list[str] = []

    for part in narrative.split("<"):
        code = part[:2]
        if len(code) < 2 or not code.isdigit():
            continue
        value = part[2:].strip()
        number = int(code)

        if code == TYPE_CODE:
            type_parts.append(value)
        elif number in DESCRIPTION_CODES:
            description_parts.append(value)
        elif any(number in codes for codes in COUNTERPARTY_CODES):
            counterparty_parts.append(value)

    return (
        _collapse(" ".join(type_parts)),
        _collapse(" ".join(description_parts)),
        _collapse(" ".join(counterparty_parts)),
    )


def _collapse(text: str) -> str:
    return re.sub(r"\s+", " ", text).strip()


def _parse_yymmdd(value: str) -> date:
    return date(2000 + int(value[:2]), int(value[2:4]), int(value[4:6]))
