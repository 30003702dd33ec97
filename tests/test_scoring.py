"""Tests for duplicate and reconciliation scoring."""

import itertools
from datetime import date
from decimal import Decimal

from invoice_recon.matching.scoring import (
    amounts_match,
    find_duplicate,
    find_duplicate_pairs,
    is_duplicate,
    score_duplicate,
    score_transaction,
)


def test_amounts_match_is_strict_and_sign_blind():
    assert amounts_match(Decimal("-100.00"), Decimal("100.04"))
    assert not amounts_match(Decimal("100.00"), Decimal("100.05"))


def test_formatting_insensitive_duplicate(make_invoice):
    existing = make_invoice(
        number="F/2023/01", issue_date="2023-01-15", amount="100.00", seller_tax_id="1234567890"
    )
    candidate = make_invoice(
        number="F-2023-01", issue_date="2023-01-15", amount="100.00", seller_tax_id="123-456-78-90"
    )

    assert score_duplicate(candidate, existing) == 100
    assert is_duplicate(candidate, [existing])


def test_different_amount_is_not_duplicate(make_invoice):
    existing = make_invoice(number="F/1", issue_date="2023-01-15", amount="100.00")
    candidate = make_invoice(number="F/1", issue_date="2023-01-15", amount="150.00")

    # Date and number only: 50 points
    assert score_duplicate(candidate, existing) == 50
    assert not is_duplicate(candidate, [existing])


def test_different_date_is_not_duplicate(make_invoice):
    existing = make_invoice(number="F/1", issue_date="2023-01-15", amount="100.00")
    candidate = make_invoice(number="F/1", issue_date="2023-01-16", amount="100.00")

    assert score_duplicate(candidate, existing) == 60
    assert not is_duplicate(candidate, [existing])


def test_blank_fields_never_score(make_invoice):
    existing = make_invoice(number="", issue_date="", amount="100.00")
    candidate = make_invoice(number="", issue_date="", amount="100.00")

    assert score_duplicate(candidate, existing) == 40


def test_buyer_tax_id_is_ignored(make_invoice):
    existing = make_invoice(number="A", amount="10.00", buyer_tax_id="111")
    same_buyer = make_invoice(number="A", amount="10.00", buyer_tax_id="111")
    other_buyer = make_invoice(number="A", amount="10.00", buyer_tax_id="999")

    assert score_duplicate(same_buyer, existing) == score_duplicate(other_buyer, existing)


def test_duplicate_scores_stay_in_range(make_invoice):
    records = [
        make_invoice(number=n, issue_date=d, amount=a, seller_tax_id=t)
        for n, d, a, t in [
            ("F/1", "2023-01-15", "100.00", "123"),
            ("F-1", "2023-01-15", "100.01", "1-2-3"),
            ("", "", "0", ""),
            ("X", "2024-02-01", "-100.00", "999"),
        ]
    ]

    for a in records:
        for b in records:
            assert 0 <= score_duplicate(a, b) <= 100


def test_duplicate_needs_more_than_one_agreeing_field(make_invoice):
    existing = make_invoice(
        number="F/1", issue_date="2023-01-15", amount="100.00", seller_tax_id="123"
    )

    for same_amount, same_date, same_number, same_tax_id in itertools.product(
        [False, True], repeat=4
    ):
        candidate = make_invoice(
            number="F/1" if same_number else "G/9",
            issue_date="2023-01-15" if same_date else "2024-06-30",
            amount="100.00" if same_amount else "250.00",
            seller_tax_id="123" if same_tax_id else "999",
        )
        agreeing = sum([same_amount, same_date, same_number, same_tax_id])

        if score_duplicate(candidate, existing) >= 80:
            assert agreeing >= 2


def test_amount_and_date_alone_are_not_duplicate(make_invoice):
    existing = make_invoice(
        number="F/1", issue_date="2023-01-15", amount="100.00", seller_tax_id="123"
    )
    candidate = make_invoice(
        number="G/9", issue_date="2023-01-15", amount="100.00", seller_tax_id="999"
    )

    assert score_duplicate(candidate, existing) == 70
    assert not is_duplicate(candidate, [existing])


def test_find_duplicate_returns_first_hit(make_invoice):
    candidate = make_invoice(number="F/9", issue_date="2023-05-01", amount="10.00")
    registry = [
        make_invoice(number="F/1", issue_date="2023-05-01", amount="99.00"),
        make_invoice(number="F/9", issue_date="2023-05-01", amount="10.00"),
        make_invoice(number="F/9", issue_date="2023-05-01", amount="10.00"),
    ]

    existing, score = find_duplicate(candidate, registry)

    assert existing is registry[1]
    assert score == 90


def test_find_duplicate_pairs(make_invoice):
    invoices = [
        make_invoice(number="F/1", issue_date="2023-05-01", amount="10.00"),
        make_invoice(number="F/2", issue_date="2023-05-02", amount="20.00"),
        make_invoice(number="F-1", issue_date="2023-05-01", amount="10.00"),
        make_invoice(number="F 1", issue_date="2023-05-01", amount="10.00"),
    ]

    pairs = find_duplicate_pairs(invoices)

    assert [(o.index, d.index, s) for o, d, s in pairs] == [
        (invoices[0].index, invoices[2].index, 90),
        (invoices[0].index, invoices[3].index, 90),
    ]


def test_score_transaction_amount_is_required(make_transaction, make_invoice):
    txn = make_transaction(amount="-100.00", txn_date=date(2025, 11, 20))
    invoice = make_invoice(amount="150.00", issue_date="20-11-2025")

    assert score_transaction(txn, invoice) == 0


def test_score_transaction_date_and_seller(make_transaction, make_invoice):
    txn = make_transaction(
        amount="-100.00", counterparty="Acme Sp. z o.o.", txn_date=date(2025, 11, 20)
    )

    same_day = make_invoice(amount="100.00", issue_date="2025-11-20", seller_name="Acme")
    within_week = make_invoice(amount="100.00", issue_date="15-11-2025", seller_name="Other")
    too_old = make_invoice(amount="100.00", issue_date="01-10-2025", seller_name="Other")
    no_date = make_invoice(amount="100.00", issue_date="", seller_name="")

    assert score_transaction(txn, same_day) == 100
    assert score_transaction(txn, within_week) == 90
    assert score_transaction(txn, too_old) == 50
    assert score_transaction(txn, no_date) == 50
