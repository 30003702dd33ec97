"""Data models for parsed bank transactions and registry invoices."""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from ..utils.text import parse_amount

# Registry column positions
COL_TIMESTAMP = 0
COL_FROM = 1
COL_SUBJECT = 2
COL_NUMBER = 3
COL_ISSUE_DATE = 4
COL_AMOUNT = 5
COL_CURRENCY = 6
COL_SELLER_NAME = 7
COL_SELLER_TAX_ID = 8
COL_BUYER_NAME = 9
COL_BUYER_TAX_ID = 10


class TransactionSource(Enum):
    """Statement dialect the transaction was read from."""

    CSV = "csv"
    MT940 = "mt940"


@dataclass(frozen=True)
class Transaction:
    """
    A single bank statement line, normalised across statement dialects.

    Immutable once parsed. ``amount`` is signed: negative values are outgoing
    payments, positive values are incoming.
    """

    date: date
    amount: Decimal
    currency: str
    counterparty: str
    description: str
    type: str
    raw: str

    # Position in the source file, used to keep first-in-file-wins ordering
    sequence: int = 0
    source: TransactionSource = TransactionSource.CSV

    posting_date: Optional[date] = None
    counterparty_account: str = ""
    balance: Optional[Decimal] = None

    # MT940-specific fields
    type_code: str = ""
    reference: str = ""

    @property
    def date_text(self) -> str:
        """Transaction date in the day-month-year convention used in reports."""
        return self.date.strftime("%d-%m-%Y")

    @property
    def counterparty_name(self) -> str:
        """Counterparty without the pipe-separated address fragment."""
        return self.counterparty.split("|", 1)[0].strip()

    @property
    def search_text(self) -> str:
        """Counterparty and description joined for text containment checks."""
        return f"{self.counterparty} {self.description}"

    @property
    def is_outgoing(self) -> bool:
        return self.amount < 0

    @property
    def absolute_amount(self) -> Decimal:
        return abs(self.amount)


@dataclass(frozen=True)
class InvoiceRecord:
    """
    A positional row from the invoice registry.

    ``index`` is the row position and identifies the invoice within a run.
    The issue date is kept verbatim because duplicate detection compares it
    as a string.
    """

    index: int
    number: str = ""
    issue_date: str = ""
    amount: Decimal = Decimal("0")
    currency: str = ""
    seller_name: str = ""
    seller_tax_id: str = ""
    buyer_name: str = ""
    buyer_tax_id: str = ""

    timestamp: str = ""
    sender: str = ""
    subject: str = ""
    raw: tuple[str, ...] = field(default_factory=tuple, compare=False, repr=False)

    @classmethod
    def from_row(cls, row: list[Any], index: int) -> "InvoiceRecord":
        """
        Build a record from a registry row.

        Short rows are padded with empty strings; columns past the buyer tax
        id are kept only in ``raw``.
        """
        cells = [_cell(value) for value in row]
        padded = cells + [""] * max(0, COL_BUYER_TAX_ID + 1 - len(cells))

        return cls(
            index=index,
            number=padded[COL_NUMBER],
            issue_date=padded[COL_ISSUE_DATE],
            amount=parse_amount(padded[COL_AMOUNT]),
            currency=padded[COL_CURRENCY],
            seller_name=padded[COL_SELLER_NAME],
            seller_tax_id=padded[COL_SELLER_TAX_ID],
            buyer_name=padded[COL_BUYER_NAME],
            buyer_tax_id=padded[COL_BUYER_TAX_ID],
            timestamp=padded[COL_TIMESTAMP],
            sender=padded[COL_FROM],
            subject=padded[COL_SUBJECT],
            raw=tuple(cells),
        )

    @property
    def absolute_amount(self) -> Decimal:
        return abs(self.amount)


@dataclass
class InvoiceAnnotation:
    """Per-run state of an invoice, kept by the engine instead of on the record."""

    consumed: bool = False
    partial: bool = False
    notes: str = ""
    combined_with: list[int] = field(default_factory=list)


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value != value:  # NaN from spreadsheet readers
        return ""
    return str(value).strip()
