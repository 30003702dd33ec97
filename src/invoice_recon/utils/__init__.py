"""Utility modules."""

from .exceptions import (
    ReconciliationError,
    StatementParseError,
    RegistryError,
    ConfigurationError,
    RecoveryError,
    ReportGenerationError,
)
from .logging_config import setup_logging
from .text import canonical_label, normalize_string, parse_amount, parse_date

__all__ = [
    "ReconciliationError",
    "StatementParseError",
    "RegistryError",
    "ConfigurationError",
    "RecoveryError",
    "ReportGenerationError",
    "setup_logging",
    "canonical_label",
    "normalize_string",
    "parse_amount",
    "parse_date",
]
