"""Deterministic mailbox search terms for a missing invoice."""

from decimal import Decimal
import re

from ..models.transaction import Transaction

CANDIDATE_TOKEN = re.compile(r"[A-Z0-9/-]{5,}")
ACCOUNT_NUMBER = re.compile(r"^\d{26}$")
ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
LEGAL_SUFFIX = re.compile(r"Sp\.? z o\.?o\.?", re.IGNORECASE)

MIN_NAME_LENGTH = 4


def clean_counterparty_name(counterparty: str) -> str:
    """Counterparty name without address fragments and the legal form suffix."""
    name = re.split(r"[,|]", counterparty, maxsplit=1)[0]
    return LEGAL_SUFFIX.sub("", name, count=1).strip()


def reference_tokens(description: str) -> list[str]:
    """
    Upper-case alphanumeric tokens that may be invoice numbers.

    26-digit bank account numbers and ISO dates are left out.
    """
    return [
        token
        for token in CANDIDATE_TOKEN.findall(description or "")
        if not ACCOUNT_NUMBER.match(token) and not ISO_DATE.match(token)
    ]


def build_search_queries(transaction: Transaction, target_amount: Decimal) -> list[str]:
    """
    Build mailbox queries for a transaction.

    Args:
        transaction: Missing or partially matched transaction
        target_amount: Amount still to be explained

    Returns:
        Unique queries in generation order
    """
    amount = abs(target_amount).quantize(Decimal("0.01"))
    queries = [
        f'"{str(amount).replace(".", ",")}" faktura',
        f'"{amount}" invoice',
    ]

    name = clean_counterparty_name(transaction.counterparty)
    if len(name) >= MIN_NAME_LENGTH:
        queries.extend(
            [
                f'"{name}" faktura',
                f'"{name}" invoice',
                f'from:"{name}" has:attachment',
            ]
        )

    queries.extend(f'"{token}"' for token in reference_tokens(transaction.description))

    return list(dict.fromkeys(queries))
