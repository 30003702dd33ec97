"""Data models for reconciliation."""

from .transaction import (
    Transaction,
    TransactionSource,
    InvoiceRecord,
    InvoiceAnnotation,
)
from .results import (
    MatchStrategyName,
    MatchResult,
    ExemptResult,
    MissingResult,
    RecoveryRequest,
    RecoveryResult,
    ReconciliationResult,
    ReconciliationSummary,
)

__all__ = [
    "Transaction",
    "TransactionSource",
    "InvoiceRecord",
    "InvoiceAnnotation",
    "MatchStrategyName",
    "MatchResult",
    "ExemptResult",
    "MissingResult",
    "RecoveryRequest",
    "RecoveryResult",
    "ReconciliationResult",
    "ReconciliationSummary",
]
