"""
Multi-strategy reconciliation engine.
Matches outgoing bank transactions against registry invoices.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
import logging

from ..models.results import (
    ExemptResult,
    MatchResult,
    MissingResult,
    ReconciliationResult,
    ReconciliationSummary,
)
from ..models.transaction import InvoiceAnnotation, InvoiceRecord, Transaction
from ..config import ReconConfig
from ..recovery.hook import RecoveryHook, apply_recovery
from .exemptions import ExemptionClassifier
from .strategies import (
    MatchingStrategy,
    StrategyMatch,
    ExactMatchStrategy,
    EmbeddedNumberStrategy,
    CounterpartyAmountStrategy,
    SubsetSumStrategy,
)

logger = logging.getLogger(__name__)


class ReconciliationEngine:
    """
    Main reconciliation engine that orchestrates the matching process.

    Transactions are processed one at a time in file order; for each one the
    strategies are tried in sequence and the first full match wins. Claimed
    invoices are tracked in a per-run consumed set, so an invoice explains
    at most one transaction and the input records are never modified.
    """

    def __init__(self, config: ReconConfig):
        """
        Initialize the reconciliation engine.

        Args:
            config: Application configuration
        """
        self.config = config
        self.strategies = self._build_strategies()
        self.classifier = ExemptionClassifier.from_config(config.exemptions)

    def _build_strategies(self) -> list[MatchingStrategy]:
        """
        Build matching strategies from configuration.

        Returns:
            Strategies in the order they are tried
        """
        m = self.config.matching
        tolerance = Decimal(str(m.amount_tolerance))

        return [
            ExactMatchStrategy(
                threshold=m.match_threshold,
                date_window_days=m.date_window_days,
                tolerance=tolerance,
            ),
            EmbeddedNumberStrategy(
                min_length=m.number_min_length,
                amount_tolerance=Decimal(str(m.number_amount_tolerance)),
                percent_tolerance=Decimal(str(m.number_percent_tolerance)),
                score=m.number_score,
            ),
            CounterpartyAmountStrategy(
                amount_tolerance=Decimal(str(m.counterparty_amount_tolerance)),
                percent_tolerance=Decimal(str(m.counterparty_percent_tolerance)),
                score=m.counterparty_score,
                first_word_min_length=m.first_word_min_length,
                partial_excess=Decimal(str(m.partial_excess)),
                partial_score=m.partial_score,
            ),
            SubsetSumStrategy(
                min_candidates=m.min_subset_candidates,
                max_candidates=m.max_subset_candidates,
                tolerance=tolerance,
                score=m.subset_score,
            ),
        ]

    def reconcile(
        self,
        transactions: list[Transaction],
        invoices: list[InvoiceRecord],
        recovery_hook: Optional[RecoveryHook] = None,
    ) -> ReconciliationResult:
        """
        Partition transactions into matched, missing and exempt.

        Args:
            transactions: Parsed statement transactions
            invoices: Registry invoices
            recovery_hook: Optional deep search run after matching

        Returns:
            Reconciliation result with per-invoice annotations
        """
        start_time = datetime.now()
        logger.info(
            f"Starting reconciliation: {len(transactions)} transactions, "
            f"{len(invoices)} invoices"
        )

        result = ReconciliationResult()
        consumed: set[int] = set()

        # Earliest transaction in the file claims a contested invoice
        for txn in sorted(transactions, key=lambda t: t.sequence):
            if not txn.is_outgoing:
                result.exempt.append(
                    ExemptResult(txn, self.config.exemptions.income_category)
                )
                continue

            candidates = [inv for inv in invoices if inv.index not in consumed]
            match_result = self._match_transaction(txn, candidates)

            if match_result:
                self._claim(match_result, consumed, result.annotations)
                result.matched.append(match_result)
                continue

            category = self.classifier.classify(txn)
            if category:
                result.exempt.append(ExemptResult(txn, category))
            else:
                result.missing.append(MissingResult(txn))

        elapsed = (datetime.now() - start_time).total_seconds()
        logger.info(
            f"Reconciliation complete in {elapsed:.2f}s: {len(result.matched)} matched, "
            f"{len(result.missing)} missing, {len(result.exempt)} exempt"
        )

        if recovery_hook is not None:
            apply_recovery(result, recovery_hook)

        return result

    def _match_transaction(
        self, txn: Transaction, candidates: list[InvoiceRecord]
    ) -> Optional[MatchResult]:
        """
        Try each strategy in order.

        A partial proposal is held while later strategies run; any full
        match found afterwards replaces it.
        """
        held: Optional[tuple[MatchingStrategy, StrategyMatch]] = None

        for strategy in self.strategies:
            proposal = strategy.find_match(txn, candidates)
            if proposal is None or proposal.score < self.config.matching.match_threshold:
                continue

            if not proposal.partial:
                return self._to_result(txn, strategy, proposal)

            if held is None:
                held = (strategy, proposal)

        if held:
            return self._to_result(txn, *held)
        return None

    def _to_result(
        self, txn: Transaction, strategy: MatchingStrategy, proposal: StrategyMatch
    ) -> MatchResult:
        primary, *additional = proposal.invoices
        logger.debug(
            f"{strategy.name.value} match (score {proposal.score}): "
            f"{txn.date_text} {txn.amount} -> {[inv.number for inv in proposal.invoices]}"
        )
        return MatchResult(
            transaction=txn,
            invoice=primary,
            score=proposal.score,
            strategy=strategy.name,
            additional_invoices=additional,
            partial=proposal.partial,
            remaining_amount=proposal.remaining_amount,
        )

    def _claim(
        self,
        match: MatchResult,
        consumed: set[int],
        annotations: dict[int, InvoiceAnnotation],
    ) -> None:
        """Mark every invoice of a match as consumed for the rest of the run."""
        indices = [inv.index for inv in match.invoices]

        for idx in indices:
            consumed.add(idx)
            annotations[idx] = InvoiceAnnotation(
                consumed=True,
                combined_with=[other for other in indices if other != idx],
            )

        if match.partial:
            note = annotations[match.invoice.index]
            note.partial = True
            note.notes = f"Remaining unexplained amount: {match.remaining_amount:.2f}"

    def generate_summary(
        self,
        transactions: list[Transaction],
        invoices: list[InvoiceRecord],
        result: ReconciliationResult,
        statement_filename: str,
        processing_time: float,
    ) -> ReconciliationSummary:
        """
        Generate a summary of the reconciliation results.

        Args:
            transactions: All parsed transactions
            invoices: All registry invoices
            result: Reconciliation result
            statement_filename: Name of the statement file
            processing_time: Time taken in seconds

        Returns:
            Reconciliation summary object
        """
        outgoing_total = sum(
            (t.absolute_amount for t in transactions if t.is_outgoing), Decimal("0")
        )
        missing_total = sum(
            (m.transaction.absolute_amount for m in result.missing), Decimal("0")
        )

        strategy_counts: dict[str, int] = {}
        for match in result.matched:
            key = match.strategy.value
            strategy_counts[key] = strategy_counts.get(key, 0) + 1

        category_counts: dict[str, int] = {}
        for exempt in result.exempt:
            category_counts[exempt.category] = category_counts.get(exempt.category, 0) + 1

        recovered = sum(1 for m in result.missing if m.recovery and m.recovery.found)
        recovered += sum(1 for m in result.matched if m.recovery and m.recovery.found)

        all_dates = [t.date for t in transactions]

        return ReconciliationSummary(
            statement_filename=statement_filename,
            reconciliation_date=datetime.now(),
            statement_period_start=min(all_dates) if all_dates else None,
            statement_period_end=max(all_dates) if all_dates else None,
            total_transactions=len(transactions),
            total_invoices=len(invoices),
            matched_count=len(result.matched),
            partial_count=len(result.partial_matches),
            missing_count=len(result.missing),
            exempt_count=len(result.exempt),
            outgoing_total=outgoing_total,
            missing_total=missing_total,
            matches_by_strategy=strategy_counts,
            exempt_by_category=category_counts,
            recovery_found_count=recovered,
            processing_time_seconds=processing_time,
            config_file_used=self.config.config_file_path,
        )
