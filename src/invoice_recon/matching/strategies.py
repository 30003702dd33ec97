"""
Matching strategies for transaction reconciliation.
Each strategy implements one way of explaining a payment with registry invoices.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal
from itertools import combinations
from typing import Optional

from ..models.results import MatchStrategyName
from ..models.transaction import InvoiceRecord, Transaction
from ..utils.text import normalize_string
from .scoring import AMOUNT_TOLERANCE, DATE_WINDOW_DAYS, amounts_match, score_transaction


@dataclass
class StrategyMatch:
    """Invoices a strategy proposes for one transaction."""

    invoices: list[InvoiceRecord]
    score: int
    partial: bool = False
    remaining_amount: Optional[Decimal] = None


class MatchingStrategy(ABC):
    """Abstract base class for matching strategies."""

    name: MatchStrategyName

    @abstractmethod
    def find_match(
        self,
        transaction: Transaction,
        candidates: list[InvoiceRecord],
    ) -> Optional[StrategyMatch]:
        """
        Find invoices explaining an outgoing transaction.

        Args:
            transaction: Bank transaction to match
            candidates: Invoices not yet claimed in this run, in registry order

        Returns:
            Proposed match or None
        """
        pass


def within_tolerance(
    diff: Decimal, invoice_amount: Decimal, absolute: Decimal, percent: Decimal
) -> bool:
    """True when ``diff`` is below ``absolute`` or below ``percent`` of the invoice."""
    if diff < absolute:
        return True
    return invoice_amount > 0 and diff < invoice_amount * percent / Decimal("100")


def names_overlap(seller: str, counterparty: str) -> bool:
    """Either name contains the other (case-insensitive, blanks never match)."""
    seller = seller.strip().lower()
    counterparty = counterparty.strip().lower()
    if not seller or not counterparty:
        return False
    return seller in counterparty or counterparty in seller


class ExactMatchStrategy(MatchingStrategy):
    """
    Best reconciliation score over all candidates.
    Effectively requires the amount plus an issue date close to the payment.
    """

    name = MatchStrategyName.EXACT

    def __init__(
        self,
        threshold: int = 70,
        date_window_days: int = DATE_WINDOW_DAYS,
        tolerance: Decimal = AMOUNT_TOLERANCE,
    ):
        self.threshold = threshold
        self.date_window_days = date_window_days
        self.tolerance = tolerance

    def find_match(
        self,
        transaction: Transaction,
        candidates: list[InvoiceRecord],
    ) -> Optional[StrategyMatch]:
        """Pick the best-scoring invoice; ties keep the earliest."""
        best: Optional[InvoiceRecord] = None
        best_score = 0

        for invoice in candidates:
            score = score_transaction(
                transaction, invoice, self.date_window_days, self.tolerance
            )
            if score > best_score:
                best, best_score = invoice, score

        if best is not None and best_score >= self.threshold:
            return StrategyMatch(invoices=[best], score=best_score)
        return None


class EmbeddedNumberStrategy(MatchingStrategy):
    """
    Invoice number quoted in the transfer title or counterparty text.
    The amount only has to be roughly right.
    """

    name = MatchStrategyName.EMBEDDED_NUMBER

    def __init__(
        self,
        min_length: int = 3,
        amount_tolerance: Decimal = Decimal("100"),
        percent_tolerance: Decimal = Decimal("10"),
        score: int = 85,
    ):
        self.min_length = min_length
        self.amount_tolerance = amount_tolerance
        self.percent_tolerance = percent_tolerance
        self.score = score

    def find_match(
        self,
        transaction: Transaction,
        candidates: list[InvoiceRecord],
    ) -> Optional[StrategyMatch]:
        """First invoice whose normalized number occurs in the transaction text."""
        text = normalize_string(transaction.search_text)
        if not text:
            return None

        for invoice in candidates:
            number = normalize_string(invoice.number)
            if len(number) < self.min_length or number not in text:
                continue

            diff = abs(transaction.absolute_amount - invoice.absolute_amount)
            if within_tolerance(
                diff, invoice.absolute_amount, self.amount_tolerance, self.percent_tolerance
            ):
                return StrategyMatch(invoices=[invoice], score=self.score)

        return None


class CounterpartyAmountStrategy(MatchingStrategy):
    """
    Seller recognised in the counterparty, amount within a loose tolerance.

    When the payment is clearly larger than the invoice, the invoice is
    proposed as a partial match covering only part of the transfer.
    """

    name = MatchStrategyName.COUNTERPARTY_AMOUNT

    def __init__(
        self,
        amount_tolerance: Decimal = Decimal("50"),
        percent_tolerance: Decimal = Decimal("5"),
        score: int = 75,
        first_word_min_length: int = 4,
        partial_excess: Decimal = Decimal("50"),
        partial_score: int = 70,
    ):
        self.amount_tolerance = amount_tolerance
        self.percent_tolerance = percent_tolerance
        self.score = score
        self.first_word_min_length = first_word_min_length
        self.partial_excess = partial_excess
        self.partial_score = partial_score

    def counterparty_matches(self, transaction: Transaction, invoice: InvoiceRecord) -> bool:
        """
        Seller name and counterparty contain one another, share a long first
        word, or the seller name is quoted in the description.
        """
        seller = invoice.seller_name.strip().lower()
        if not seller:
            return False

        counterparty = transaction.counterparty_name.lower()
        if names_overlap(seller, counterparty):
            return True

        seller_words = seller.split()
        counterparty_words = counterparty.split()
        if (
            seller_words
            and counterparty_words
            and seller_words[0] == counterparty_words[0]
            and len(seller_words[0]) >= self.first_word_min_length
        ):
            return True

        return seller in transaction.description.lower()

    def find_match(
        self,
        transaction: Transaction,
        candidates: list[InvoiceRecord],
    ) -> Optional[StrategyMatch]:
        """First full match wins; otherwise the first partial candidate."""
        partial: Optional[StrategyMatch] = None
        paid = transaction.absolute_amount

        for invoice in candidates:
            if not self.counterparty_matches(transaction, invoice):
                continue

            invoiced = invoice.absolute_amount
            diff = abs(paid - invoiced)

            if within_tolerance(diff, invoiced, self.amount_tolerance, self.percent_tolerance):
                return StrategyMatch(invoices=[invoice], score=self.score)

            if partial is None and paid - invoiced > self.partial_excess:
                remaining = paid - invoiced
                partial = StrategyMatch(
                    invoices=[invoice],
                    score=self.partial_score,
                    partial=True,
                    remaining_amount=remaining,
                )

        return partial


class SubsetSumStrategy(MatchingStrategy):
    """
    One transfer paying several invoices from the same seller.

    Combinations are enumerated by ascending size in registry order, so the
    smallest, earliest subset summing to the payment wins. The candidate pool
    is capped to keep the search bounded (at most 2**9 subsets by default).
    """

    name = MatchStrategyName.SUBSET_SUM

    def __init__(
        self,
        min_candidates: int = 2,
        max_candidates: int = 9,
        tolerance: Decimal = AMOUNT_TOLERANCE,
        score: int = 95,
    ):
        self.min_candidates = min_candidates
        self.max_candidates = max_candidates
        self.tolerance = tolerance
        self.score = score

    def find_match(
        self,
        transaction: Transaction,
        candidates: list[InvoiceRecord],
    ) -> Optional[StrategyMatch]:
        """Find a subset of the seller's open invoices adding up to the payment."""
        pool = [
            invoice
            for invoice in candidates
            if names_overlap(invoice.seller_name, transaction.counterparty_name)
        ]
        if not self.min_candidates <= len(pool) <= self.max_candidates:
            return None

        target = transaction.absolute_amount
        for size in range(2, len(pool) + 1):
            for subset in combinations(pool, size):
                total = sum((inv.absolute_amount for inv in subset), Decimal("0"))
                if amounts_match(total, target, self.tolerance):
                    return StrategyMatch(invoices=list(subset), score=self.score)

        return None
