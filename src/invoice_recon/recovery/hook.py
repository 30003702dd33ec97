"""
Recovery of missing invoices through an external deep search.

The search only annotates results: a transaction classified as missing
stays missing whether or not a document is found.
"""

from abc import ABC, abstractmethod
from typing import Optional
import importlib
import logging

from ..config import RecoveryConfig, ReconConfig
from ..models.results import (
    ReconciliationResult,
    RecoveryRequest,
    RecoveryResult,
)
from ..utils.exceptions import RecoveryError
from .queries import build_search_queries

logger = logging.getLogger(__name__)


class RecoveryHook(ABC):
    """Looks for the document behind a missing or partly explained payment."""

    @abstractmethod
    def recover(self, request: RecoveryRequest) -> RecoveryResult:
        pass


class MailboxSearch(ABC):
    """Mailbox client used by the deep search (e.g. a Gmail API wrapper)."""

    @abstractmethod
    def search(self, query: str, max_results: int) -> list[str]:
        """Return ids of messages matching ``query``."""
        pass

    @abstractmethod
    def has_invoice_attachment(self, message_id: str) -> bool:
        """True when the message carries a PDF or image attachment."""
        pass


class QuerySuggester(ABC):
    """Source of extra search terms, e.g. a language model."""

    @abstractmethod
    def suggest(self, request: RecoveryRequest) -> list[str]:
        pass


class DeepSearchRecovery(RecoveryHook):
    """
    Runs deterministic mailbox queries for a transaction until one returns a
    message with an invoice attachment.

    Incoming payments and internal counterparties are skipped before any
    query is sent. Suggested queries are only requested when fewer than
    ``min_queries`` deterministic queries could be built.
    """

    def __init__(
        self,
        mailbox: MailboxSearch,
        suggester: Optional[QuerySuggester] = None,
        internal_keywords: Optional[list[str]] = None,
        min_queries: int = 5,
        max_results: int = 5,
    ):
        self.mailbox = mailbox
        self.suggester = suggester
        self.internal_keywords = [k.lower() for k in internal_keywords or [] if k.strip()]
        self.min_queries = min_queries
        self.max_results = max_results

    @classmethod
    def from_config(
        cls,
        config: RecoveryConfig,
        mailbox: MailboxSearch,
        suggester: Optional[QuerySuggester] = None,
    ) -> "DeepSearchRecovery":
        return cls(
            mailbox=mailbox,
            suggester=suggester,
            internal_keywords=config.internal_keywords,
            min_queries=config.min_deterministic_queries,
            max_results=config.max_results_per_query,
        )

    def recover(self, request: RecoveryRequest) -> RecoveryResult:
        txn = request.transaction

        if txn.amount > 0:
            logger.debug(f"Skipping search for incoming transaction ({txn.amount})")
            return RecoveryResult(found=False, reason="income")

        if self._is_internal(request):
            logger.debug(f"Skipping search for internal counterparty: {txn.counterparty}")
            return RecoveryResult(found=False, reason="internal")

        queries = self._queries(request)
        if not queries:
            return RecoveryResult(found=False, reason="no_queries")

        logger.info(
            f"Searching for {txn.counterparty_name or txn.description!r} "
            f"(target {request.target_amount:.2f}) with {len(queries)} queries"
        )

        for query in queries:
            try:
                message_ids = self.mailbox.search(query, self.max_results)
                for message_id in message_ids:
                    if self._has_attachment(message_id):
                        logger.info(f"Found message {message_id} for query [{query}]")
                        return RecoveryResult(found=True, reference=message_id, query_used=query)
            except Exception as e:
                logger.warning(f"Error executing query [{query}]: {e}")
                continue

        logger.info(f"Not found after trying {len(queries)} queries")
        return RecoveryResult(found=False, reason="not_found")

    def _has_attachment(self, message_id: str) -> bool:
        try:
            return self.mailbox.has_invoice_attachment(message_id)
        except Exception as e:
            logger.warning(f"Error checking attachments of message {message_id}: {e}")
            return False

    def _is_internal(self, request: RecoveryRequest) -> bool:
        txn = request.transaction
        text = f"{txn.counterparty} {txn.description}".lower()
        return any(keyword in text for keyword in self.internal_keywords)

    def _queries(self, request: RecoveryRequest) -> list[str]:
        queries = build_search_queries(request.transaction, request.target_amount)

        if len(queries) < self.min_queries and self.suggester is not None:
            try:
                queries.extend(self.suggester.suggest(request) or [])
            except Exception as e:
                logger.warning(f"Query suggestion failed: {e}")

        return list(dict.fromkeys(q for q in queries if q))


def apply_recovery(result: ReconciliationResult, hook: RecoveryHook) -> int:
    """
    Annotate missing transactions and partial remainders with search results.

    Requests are issued one at a time: missing transactions in file order,
    then the unexplained remainder of each partial match. A failing request
    is logged and recorded as not found.

    Returns:
        Number of documents found
    """
    requests = [
        (missing, RecoveryRequest(missing.transaction, missing.transaction.absolute_amount))
        for missing in result.missing
    ]
    requests += [
        (match, RecoveryRequest(match.transaction, match.remaining_amount))
        for match in result.partial_matches
        if match.remaining_amount is not None
    ]

    found = 0
    for target, request in requests:
        try:
            outcome = hook.recover(request)
        except Exception as e:
            logger.error(f"Recovery failed for {request.transaction.raw!r}: {e}")
            outcome = RecoveryResult(found=False, reason="error")

        target.recovery = outcome
        if outcome.found:
            found += 1

    logger.info(f"Recovery search finished: {found}/{len(requests)} found")
    return found


def load_recovery_hook(config: ReconConfig) -> Optional[RecoveryHook]:
    """
    Build the hook named by ``recovery.backend`` (``"module:factory"``).

    The factory is called with the configuration and must return a
    RecoveryHook.

    Raises:
        RecoveryError: If the backend cannot be imported or built
    """
    settings = config.recovery
    if not settings.enabled:
        logger.info("Recovery search disabled in configuration")
        return None
    if not settings.backend:
        logger.info("No recovery backend configured, skipping deep search")
        return None

    module_name, _, attr = settings.backend.partition(":")
    if not module_name or not attr:
        raise RecoveryError(f"Invalid recovery backend {settings.backend!r}, expected 'module:factory'")

    try:
        factory = getattr(importlib.import_module(module_name), attr)
        hook = factory(config)
    except Exception as e:
        raise RecoveryError(f"Failed to load recovery backend {settings.backend!r}: {e}") from e

    if not isinstance(hook, RecoveryHook):
        raise RecoveryError(f"Recovery backend {settings.backend!r} did not return a RecoveryHook")
    return hook
