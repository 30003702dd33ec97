"""Tests for the delimited bank export parser."""

from datetime import date
from decimal import Decimal

import pytest

from invoice_recon.parsers.csv_parser import CsvStatementParser
from invoice_recon.utils.exceptions import StatementParseError

HEADER = (
    "Data księgowania,Data operacji,Rodzaj operacji,Kwota,Waluta,"
    "Dane kontrahenta,Numer rachunku kontrahenta,Tytuł operacji,Saldo po operacji"
)

LEASING_ROW = (
    "20-11-2025,20-11-2025,Przelewy wychodzące,-1204.63,PLN,"
    "PKO Leasing S.A.|ul. Świętokrzyska 36,04114011240000000000000000,"
    "leasing umowa nr 25/021345, Nr faktury: LM/25/09/132141, Kwota VAT: 22 5,26, "
    "Identyfikator: 7251735694,21075.58"
)


@pytest.fixture
def parser(config):
    return CsvStatementParser(config)


def test_title_with_commas_is_reassembled(parser):
    transactions = list(parser.parse_lines([HEADER, LEASING_ROW]))

    assert len(transactions) == 1
    txn = transactions[0]
    assert txn.amount == Decimal("-1204.63")
    assert txn.counterparty == "PKO Leasing S.A.|ul. Świętokrzyska 36"
    assert txn.description == (
        "leasing umowa nr 25/021345, Nr faktury: LM/25/09/132141, "
        "Kwota VAT: 22 5,26, Identyfikator: 7251735694"
    )
    assert txn.counterparty_name == "PKO Leasing S.A."
    assert txn.balance == Decimal("21075.58")
    assert txn.date == date(2025, 11, 20)
    assert txn.date_text == "20-11-2025"
    assert txn.raw == LEASING_ROW


def test_lines_before_header_are_ignored(parser):
    lines = [
        "Historia rachunku,,,",
        "20-11-2025,20-11-2025,X,-1.00,PLN,A,1,T,0.00",
        HEADER,
        LEASING_ROW,
    ]

    transactions = list(parser.parse_lines(lines))

    assert [t.amount for t in transactions] == [Decimal("-1204.63")]


def test_short_and_malformed_lines_are_skipped(parser):
    lines = [
        HEADER,
        "20-11-2025,20-11-2025,Przelew,-5.00,PLN",
        "not-a-date,20-11-2025,Przelew,-5.00,PLN,A,1,T,0.00",
        "20-11-2025,20-11-2025,Przelew,abc,PLN,A,1,T,0.00",
        "",
        "21-11-2025,21-11-2025,Przelew,-7.50,PLN,Shop,1,Title,10.00",
    ]

    transactions = list(parser.parse_lines(lines))

    # The invalid posting date on the second data line is tolerated
    assert [t.amount for t in transactions] == [Decimal("-5.00"), Decimal("-7.50")]
    assert [t.sequence for t in transactions] == [0, 1]
    assert transactions[0].posting_date is None


def test_operation_date_is_transaction_date(parser):
    row = "01-12-2025,28-11-2025,Przelew,-10.00,PLN,Shop,1,Title,0.00"

    txn = next(parser.parse_lines([HEADER, row]))

    assert txn.date == date(2025, 11, 28)
    assert txn.posting_date == date(2025, 12, 1)


def test_iso_dates_are_accepted(parser):
    row = "2025-11-28,2025-11-28,Przelew,-10.00,PLN,Shop,1,Title,0.00"

    txn = next(parser.parse_lines([HEADER, row]))

    assert txn.date_text == "28-11-2025"


def test_no_header_yields_nothing(parser):
    assert list(parser.parse_lines([LEASING_ROW])) == []


def test_parse_file(parser, tmp_path):
    path = tmp_path / "statement.csv"
    path.write_text("\n".join([HEADER, LEASING_ROW]), encoding="utf-8-sig")

    transactions = parser.parse_file(path)

    assert len(transactions) == 1
    assert transactions[0].currency == "PLN"


def test_undecodable_row_is_still_parsed(parser, tmp_path):
    path = tmp_path / "statement.csv"
    good = "21-11-2025,21-11-2025,Przelew,-10.00,PLN,Acme,1,Zakupy,100.00"
    bad = (
        b"22-11-2025,22-11-2025,Przelew,-20.00,PLN,"
        + "Ząb".encode("cp1250")
        + b",2,Usluga,80.00"
    )
    path.write_bytes(
        (HEADER + "\n" + good + "\n").encode("utf-8") + bad + b"\n" + good.encode("utf-8")
    )

    transactions = parser.parse_file(path)

    assert [t.amount for t in transactions] == [
        Decimal("-10.00"), Decimal("-20.00"), Decimal("-10.00")
    ]
    assert transactions[1].counterparty == "Z�b"
    assert transactions[0].counterparty == "Acme"
    assert transactions[2].description == "Zakupy"


def test_unreadable_file_raises(parser, tmp_path):
    with pytest.raises(StatementParseError):
        parser.parse_file(tmp_path / "missing.csv")
