"""Custom exceptions for the reconciliation application."""


class ReconciliationError(Exception):
    """Base exception for reconciliation errors."""

    pass


class StatementParseError(ReconciliationError):
    """Error reading or recognising a bank statement file."""

    pass


class RegistryError(ReconciliationError):
    """Error reading the invoice registry."""

    pass


class ConfigurationError(ReconciliationError):
    """Error in configuration."""

    pass


class RecoveryError(ReconciliationError):
    """Error setting up or running the recovery search backend."""

    pass


class ReportGenerationError(ReconciliationError):
    """Error generating Excel report."""

    pass
