"""Deep search for invoices missing from the registry."""

from .hook import (
    RecoveryHook,
    MailboxSearch,
    QuerySuggester,
    DeepSearchRecovery,
    apply_recovery,
    load_recovery_hook,
)
from .queries import build_search_queries, clean_counterparty_name

__all__ = [
    "RecoveryHook",
    "MailboxSearch",
    "QuerySuggester",
    "DeepSearchRecovery",
    "apply_recovery",
    "load_recovery_hook",
    "build_search_queries",
    "clean_counterparty_name",
]
