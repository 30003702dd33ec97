"""Rule-based classification of transactions that never carry an invoice."""

from typing import Optional
import logging

from ..config import ExemptionRule, ExemptionsConfig
from ..models.transaction import Transaction
from ..utils.text import canonical_label

logger = logging.getLogger(__name__)


class ExemptionClassifier:
    """
    Classifies leftover transactions as exempt (bank fees, internal
    transfers, taxes).

    Keyword rules are checked in order against the counterparty, description
    and bank type text; the first hit decides the category. A transaction
    whose bank type is the fee label is exempt even when no rule matches.
    """

    def __init__(
        self,
        rules: list[ExemptionRule],
        fee_type_label: str = "Opłaty i prowizje",
        fee_category: str = "FEES",
    ):
        self.rules = [
            (rule.category, [k.lower() for k in rule.keywords if k.strip()])
            for rule in rules
        ]
        self.fee_label = canonical_label(fee_type_label)
        self.fee_category = fee_category

    @classmethod
    def from_config(cls, config: ExemptionsConfig) -> "ExemptionClassifier":
        return cls(
            rules=config.rules,
            fee_type_label=config.fee_type_label,
            fee_category=config.fee_category,
        )

    def classify(self, transaction: Transaction) -> Optional[str]:
        """
        Return the exemption category, or None if an invoice is expected.

        Args:
            transaction: Transaction no strategy could match
        """
        text = " ".join(
            (transaction.counterparty, transaction.description, transaction.type)
        ).lower()

        for category, keywords in self.rules:
            for keyword in keywords:
                if keyword in text:
                    logger.debug(f"Exempt as {category} (keyword {keyword!r}): {transaction.raw}")
                    return category

        # The fee label shows up with varying encodings, so compare canonically
        if self.fee_label and canonical_label(transaction.type) == self.fee_label:
            return self.fee_category

        return None
