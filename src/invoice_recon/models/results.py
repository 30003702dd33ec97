"""Reconciliation outcome models."""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from .transaction import InvoiceAnnotation, InvoiceRecord, Transaction


class MatchStrategyName(Enum):
    """Strategy that produced a match, in the order strategies are tried."""

    EXACT = "exact"
    EMBEDDED_NUMBER = "embedded_number"
    COUNTERPARTY_AMOUNT = "counterparty_amount"
    SUBSET_SUM = "subset_sum"


@dataclass(frozen=True)
class RecoveryRequest:
    """Deep search request for a missing transaction or a partial remainder."""

    transaction: Transaction
    target_amount: Decimal


@dataclass(frozen=True)
class RecoveryResult:
    """Outcome of a recovery search. Only annotates, never reclassifies."""

    found: bool
    reference: Optional[str] = None
    query_used: Optional[str] = None
    reason: Optional[str] = None

    @property
    def status(self) -> str:
        if self.found:
            return "FOUND"
        return f"NOT FOUND ({self.reason or 'unknown'})"


@dataclass
class MatchResult:
    """A transaction explained by one or more registry invoices."""

    transaction: Transaction
    invoice: InvoiceRecord
    score: int
    strategy: MatchStrategyName
    additional_invoices: list[InvoiceRecord] = field(default_factory=list)

    # Set when the invoice explains only part of the payment
    partial: bool = False
    remaining_amount: Optional[Decimal] = None

    recovery: Optional[RecoveryResult] = None

    @property
    def invoices(self) -> list[InvoiceRecord]:
        """Primary invoice followed by any combined invoices."""
        return [self.invoice, *self.additional_invoices]

    @property
    def invoice_total(self) -> Decimal:
        return sum((inv.absolute_amount for inv in self.invoices), Decimal("0"))


@dataclass
class ExemptResult:
    """A transaction that is not expected to have an invoice."""

    transaction: Transaction
    category: str


@dataclass
class MissingResult:
    """A transaction with no matching invoice and no exemption."""

    transaction: Transaction
    recovery: Optional[RecoveryResult] = None


@dataclass
class ReconciliationResult:
    """Partition of a statement into matched, missing and exempt transactions."""

    matched: list[MatchResult] = field(default_factory=list)
    missing: list[MissingResult] = field(default_factory=list)
    exempt: list[ExemptResult] = field(default_factory=list)

    # Keyed by InvoiceRecord.index
    annotations: dict[int, InvoiceAnnotation] = field(default_factory=dict)

    @property
    def consumed(self) -> frozenset[int]:
        return frozenset(idx for idx, note in self.annotations.items() if note.consumed)

    def is_consumed(self, invoice: InvoiceRecord) -> bool:
        return invoice.index in self.consumed

    def annotation_for(self, invoice: InvoiceRecord) -> InvoiceAnnotation:
        return self.annotations.get(invoice.index, InvoiceAnnotation())

    @property
    def partial_matches(self) -> list[MatchResult]:
        return [m for m in self.matched if m.partial]

    @property
    def transaction_count(self) -> int:
        return len(self.matched) + len(self.missing) + len(self.exempt)


@dataclass
class ReconciliationSummary:
    """Summary of the reconciliation run."""

    statement_filename: str
    reconciliation_date: datetime
    statement_period_start: Optional[date]
    statement_period_end: Optional[date]

    total_transactions: int
    total_invoices: int

    matched_count: int
    partial_count: int
    missing_count: int
    exempt_count: int

    outgoing_total: Decimal
    missing_total: Decimal

    matches_by_strategy: dict[str, int] = field(default_factory=dict)
    exempt_by_category: dict[str, int] = field(default_factory=dict)
    recovery_found_count: int = 0

    processing_time_seconds: float = 0.0
    config_file_used: Optional[str] = None

    @property
    def match_rate(self) -> float:
        """Percentage of matchable (matched + missing) transactions matched."""
        matchable = self.matched_count + self.missing_count
        if matchable == 0:
            return 0.0
        return (self.matched_count / matchable) * 100
