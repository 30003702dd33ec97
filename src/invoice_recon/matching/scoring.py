"""
Weighted similarity scores between financial records.

Two call sites share the same point-based approach: duplicate detection
(invoice vs. invoice) and the exact reconciliation tier (transaction vs.
invoice). Scores are integers between 0 and 100.
"""

from decimal import Decimal
from typing import Iterable, Optional, Union
import logging

from ..models.transaction import InvoiceRecord, Transaction
from ..utils.text import normalize_string, parse_date

logger = logging.getLogger(__name__)

AMOUNT_TOLERANCE = Decimal("0.05")
MAX_SCORE = 100

# Duplicate detection weights
DUP_AMOUNT_POINTS = 40
DUP_DATE_POINTS = 30
DUP_NUMBER_POINTS = 20
DUP_SELLER_TAX_ID_POINTS = 20
DUPLICATE_THRESHOLD = 80
DUP_LOG_THRESHOLD = 60

# Reconciliation weights
RECON_AMOUNT_POINTS = 50
RECON_DATE_POINTS = 40
RECON_SAME_DAY_POINTS = 10
RECON_SELLER_POINTS = 10
DATE_WINDOW_DAYS = 7

Number = Union[Decimal, int, float]


def amounts_match(a: Number, b: Number, tolerance: Number = AMOUNT_TOLERANCE) -> bool:
    """Compare absolute values, strictly within ``tolerance``."""
    diff = abs(abs(Decimal(str(a))) - abs(Decimal(str(b))))
    return diff < Decimal(str(tolerance))


def score_duplicate(
    candidate: InvoiceRecord,
    existing: InvoiceRecord,
    tolerance: Number = AMOUNT_TOLERANCE,
) -> int:
    """
    Score how likely ``candidate`` is the same document as ``existing``.

    Amount 40, identical issue date 30, normalized number 20, normalized
    seller tax id 20. Buyer tax id is not scored.
    """
    score = 0

    if amounts_match(candidate.amount, existing.amount, tolerance):
        score += DUP_AMOUNT_POINTS

    if candidate.issue_date and candidate.issue_date == existing.issue_date:
        score += DUP_DATE_POINTS

    number = normalize_string(candidate.number)
    if number and normalize_string(existing.number) == number:
        score += DUP_NUMBER_POINTS

    seller_tax_id = normalize_string(candidate.seller_tax_id)
    if seller_tax_id and normalize_string(existing.seller_tax_id) == seller_tax_id:
        score += DUP_SELLER_TAX_ID_POINTS

    return min(score, MAX_SCORE)


def find_duplicate(
    candidate: InvoiceRecord,
    registry: Iterable[InvoiceRecord],
    threshold: int = DUPLICATE_THRESHOLD,
) -> Optional[tuple[InvoiceRecord, int]]:
    """
    Find the first registry record ``candidate`` duplicates.

    Returns:
        Tuple of (existing record, score) or None
    """
    for existing in registry:
        score = score_duplicate(candidate, existing)

        if score >= DUP_LOG_THRESHOLD:
            logger.debug(
                f"Candidate match score: {score}/100 "
                f"(number={existing.number!r}, date={existing.issue_date!r}, amount={existing.amount})"
            )

        if score >= threshold:
            logger.info(f"Duplicate detected (score {score}) for invoice {candidate.number!r}")
            return existing, score

    return None


def is_duplicate(
    candidate: InvoiceRecord,
    registry: Iterable[InvoiceRecord],
    threshold: int = DUPLICATE_THRESHOLD,
) -> bool:
    """Check whether ``candidate`` already exists in the registry."""
    return find_duplicate(candidate, registry, threshold) is not None


def find_duplicate_pairs(
    invoices: list[InvoiceRecord],
    threshold: int = DUPLICATE_THRESHOLD,
) -> list[tuple[InvoiceRecord, InvoiceRecord, int]]:
    """
    Scan a registry for records that were logged more than once.

    Each later record is paired with the earliest record it duplicates and is
    reported at most once.

    Returns:
        List of (original, duplicate, score) tuples in registry order
    """
    pairs: list[tuple[InvoiceRecord, InvoiceRecord, int]] = []
    reported: set[int] = set()

    for i, original in enumerate(invoices):
        if original.index in reported:
            continue
        for duplicate in invoices[i + 1:]:
            if duplicate.index in reported:
                continue
            score = score_duplicate(duplicate, original)
            if score >= threshold:
                pairs.append((original, duplicate, score))
                reported.add(duplicate.index)

    return pairs


def score_transaction(
    transaction: Transaction,
    invoice: InvoiceRecord,
    date_window_days: int = DATE_WINDOW_DAYS,
    tolerance: Number = AMOUNT_TOLERANCE,
) -> int:
    """
    Score a bank transaction against a registry invoice.

    The amount must agree for any points: 50 base, 40 more when the invoice
    was issued within ``date_window_days`` of the transaction (10 extra on
    the same day) and 10 when the seller name appears in the transfer text.
    """
    if not amounts_match(transaction.amount, invoice.amount, tolerance):
        return 0

    score = RECON_AMOUNT_POINTS

    issue_date = parse_date(invoice.issue_date)
    if issue_date is not None:
        days = abs((transaction.date - issue_date).days)
        if days <= date_window_days:
            score += RECON_DATE_POINTS
            if days == 0:
                score += RECON_SAME_DAY_POINTS

    seller = invoice.seller_name.strip().lower()
    if seller and seller in transaction.search_text.lower():
        score += RECON_SELLER_POINTS

    return min(score, MAX_SCORE)
