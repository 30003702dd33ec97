"""Shared fixtures for reconciliation tests."""

from datetime import date
from decimal import Decimal

import pytest

from invoice_recon.config import ReconConfig
from invoice_recon.models.transaction import InvoiceRecord, Transaction


@pytest.fixture
def config():
    return ReconConfig()


@pytest.fixture
def make_transaction():
    """Factory for outgoing transactions with sensible defaults."""
    counter = iter(range(10_000))

    def _make(
        amount="-100.00",
        counterparty="Acme Sp. z o.o.",
        description="",
        txn_type="Przelewy wychodzące",
        txn_date=date(2025, 11, 20),
        currency="PLN",
        sequence=None,
    ):
        return Transaction(
            date=txn_date,
            amount=Decimal(amount),
            currency=currency,
            counterparty=counterparty,
            description=description,
            type=txn_type,
            raw=f"{txn_date},{amount},{counterparty},{description}",
            sequence=next(counter) if sequence is None else sequence,
        )

    return _make


@pytest.fixture
def make_invoice():
    """Factory for registry invoices; ``index`` defaults to creation order."""
    counter = iter(range(10_000))

    def _make(
        number="FV/1",
        amount="100.00",
        issue_date="",
        seller_name="Acme",
        seller_tax_id="",
        buyer_tax_id="",
        index=None,
    ):
        return InvoiceRecord(
            index=next(counter) if index is None else index,
            number=number,
            issue_date=issue_date,
            amount=Decimal(amount),
            currency="PLN",
            seller_name=seller_name,
            seller_tax_id=seller_tax_id,
            buyer_tax_id=buyer_tax_id,
        )

    return _make
