"""Tests for the MT940 statement parser."""

from datetime import date
from decimal import Decimal

import pytest

from invoice_recon.models.transaction import TransactionSource
from invoice_recon.parsers.mt940_parser import MT940Parser, parse_narrative

STATEMENT = [
    ":20:MT940",
    ":25:/PL61109010140000071219812874",
    ":28C:00045",
    ":60F:C251101EUR1000,00",
    ":61:2511041104D1204,63NTRFNONREF//LM132141",
    ":86:020<00Przelew wychodzący<20Faktura LM/25/09/<21132141<22leasing",
    "<27PKO Leasing S.A.<28ul. Świętokrzyska 36<3010901014",
    ":61:251105C500,00NTRFNONREF",
    ":86:<00Przelew przychodzący<20Zwrot<27Klient Sp. z o.o.",
    ":62F:C251130EUR295,37",
]


@pytest.fixture
def parser(config):
    return MT940Parser(config)


def test_debit_is_negative_and_credit_positive(parser):
    transactions = list(parser.parse_lines(STATEMENT))

    assert [t.amount for t in transactions] == [Decimal("-1204.63"), Decimal("500.00")]
    assert transactions[0].is_outgoing
    assert not transactions[1].is_outgoing


def test_narrative_fields(parser):
    txn = list(parser.parse_lines(STATEMENT))[0]

    assert txn.date == date(2025, 11, 4)
    assert txn.date_text == "04-11-2025"
    assert txn.type == "Przelew wychodzący"
    assert "Faktura LM/25/09/ 132141 leasing" in txn.description
    assert txn.counterparty == "PKO Leasing S.A. ul. Świętokrzyska 36"
    assert txn.type_code == "TRF"
    assert txn.reference == "NONREF//LM132141"
    assert txn.source == TransactionSource.MT940


def test_currency_from_opening_balance(parser):
    transactions = list(parser.parse_lines(STATEMENT))

    assert {t.currency for t in transactions} == {"EUR"}


def test_default_currency_without_opening_balance(parser):
    lines = [":61:251104D10,00NTRFNONREF", ":86:<20Test"]

    txn = next(parser.parse_lines(lines))

    assert txn.currency == "PLN"
    assert txn.description == "Test"
    assert txn.type == "TRF"


def test_malformed_statement_line_is_skipped(parser):
    lines = [
        ":61:garbage",
        ":86:<20ignored",
        ":61:251104D10,00NTRFNONREF",
        ":86:<20kept",
    ]

    transactions = list(parser.parse_lines(lines))

    assert len(transactions) == 1
    assert transactions[0].description == "kept"
    assert transactions[0].sequence == 0


def test_parse_file_decodes_cp1250(parser, tmp_path):
    path = tmp_path / "statement.sta"
    path.write_bytes("\r\n".join(STATEMENT).encode("cp1250"))

    transactions = parser.parse_file(path)

    assert len(transactions) == 2
    assert "Świętokrzyska" in transactions[0].counterparty


def test_parse_narrative_codes():
    type_text, description, counterparty = parse_narrative(
        "<00Opłaty i prowizje<20Opłata za<21  przelew<32ignored<60Bank  Polski"
    )

    assert type_text == "Opłaty i prowizje"
    assert description == "Opłata za przelew"
    assert counterparty == "Bank Polski"
