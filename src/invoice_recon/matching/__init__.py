"""Matching engine, strategies and similarity scoring."""

from .engine import ReconciliationEngine
from .exemptions import ExemptionClassifier
from .scoring import (
    amounts_match,
    find_duplicate,
    find_duplicate_pairs,
    is_duplicate,
    score_duplicate,
    score_transaction,
)
from .strategies import (
    MatchingStrategy,
    ExactMatchStrategy,
    EmbeddedNumberStrategy,
    CounterpartyAmountStrategy,
    SubsetSumStrategy,
)

__all__ = [
    "ReconciliationEngine",
    "ExemptionClassifier",
    "amounts_match",
    "find_duplicate",
    "find_duplicate_pairs",
    "is_duplicate",
    "score_duplicate",
    "score_transaction",
    "MatchingStrategy",
    "ExactMatchStrategy",
    "EmbeddedNumberStrategy",
    "CounterpartyAmountStrategy",
    "SubsetSumStrategy",
]
