"""Tests for exemption classification and label canonicalisation."""

from decimal import Decimal

import pytest

from invoice_recon.config import ExemptionRule
from invoice_recon.matching.exemptions import ExemptionClassifier
from invoice_recon.utils.text import canonical_label, normalize_string, parse_amount


@pytest.mark.parametrize(
    "label",
    [
        "Opłaty i prowizje",
        "OPŁATY I PROWIZJE",
        "Oplaty i prowizje",
        "OpĹ‚aty i prowizje",
        "OpÅ‚aty i prowizje",
    ],
)
def test_fee_label_variants_are_exempt(make_transaction, label):
    classifier = ExemptionClassifier(rules=[])
    txn = make_transaction(counterparty="", description="", txn_type=label)

    assert classifier.classify(txn) == "FEES"


def test_first_matching_rule_wins(make_transaction):
    classifier = ExemptionClassifier(
        rules=[
            ExemptionRule(keywords=["zus"], category="SOCIAL"),
            ExemptionRule(keywords=["składka"], category="OTHER"),
        ]
    )
    txn = make_transaction(counterparty="ZUS", description="Składka zdrowotna")

    assert classifier.classify(txn) == "SOCIAL"


def test_no_rule_means_invoice_expected(make_transaction, config):
    classifier = ExemptionClassifier.from_config(config.exemptions)
    txn = make_transaction(counterparty="Hurtownia", description="FV 12/2025")

    assert classifier.classify(txn) is None


def test_canonical_label():
    assert canonical_label("Opłaty i prowizje") == "oplatyiprowizje"
    assert canonical_label(None) == ""


def test_normalize_string():
    assert normalize_string("F/2023/01") == "f202301"
    assert normalize_string("123-456-78-90") == "1234567890"


@pytest.mark.parametrize(
    "value, expected",
    [
        ("1 000,00", Decimal("1000.00")),
        ("-1204.63", Decimal("-1204.63")),
        ("12,50 PLN", Decimal("12.50")),
        ("", Decimal("0")),
        ("n/a", Decimal("0")),
        (15, Decimal("15")),
        (float("nan"), Decimal("0")),
    ],
)
def test_parse_amount(value, expected):
    assert parse_amount(value) == expected
