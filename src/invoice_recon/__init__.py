"""Bank statement to invoice registry reconciliation."""

__version__ = "0.1.0"
