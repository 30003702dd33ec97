"""Tests for the invoice registry reader."""

from decimal import Decimal

import pandas as pd
import pytest

from invoice_recon.registry.reader import RegistryReader
from invoice_recon.utils.exceptions import RegistryError

HEADER = [
    "Timestamp", "From", "Subject", "Number", "IssueDate", "Amount",
    "Currency", "SellerName", "SellerTaxId", "BuyerName", "BuyerTaxId",
]
ROW = [
    "2025-11-21 10:00", "faktury@acme.pl", "Faktura", "FV/11/2025", "2025-11-20",
    "1 204,63", "PLN", "Acme Sp. z o.o.", "123-456-78-90", "Kupiec", "9876543210",
]


def test_rows_from_source_skip_header(config):
    reader = RegistryReader(config, source=lambda: [HEADER, ROW, ROW[:6]])

    invoices = reader.load_invoices()

    assert [inv.index for inv in invoices] == [0, 1]
    first = invoices[0]
    assert first.number == "FV/11/2025"
    assert first.amount == Decimal("1204.63")
    assert first.seller_name == "Acme Sp. z o.o."
    assert first.buyer_tax_id == "9876543210"
    assert first.sender == "faktury@acme.pl"
    # Short rows are padded
    assert invoices[1].seller_name == ""


def test_failing_source_degrades_to_empty_list(config):
    def broken():
        raise ConnectionError("registry unavailable")

    reader = RegistryReader(config, source=broken)

    assert reader.load_invoices() == []
    with pytest.raises(RegistryError):
        reader.read_rows()


def test_missing_configuration_degrades_to_empty_list(config):
    assert RegistryReader(config).load_invoices() == []


def test_csv_file(config, tmp_path):
    path = tmp_path / "registry.csv"
    path.write_text(
        ",".join(HEADER) + "\n"
        + '2025-11-21,a@b.pl,Faktura,FV/1,2025-11-20,"100,50",PLN,Acme,123,,\n'
        + "2025-11-22,a@b.pl,Faktura,FV/2\n",
        encoding="utf-8",
    )
    config.registry.path = str(path)

    invoices = RegistryReader(config).load_invoices()

    assert [inv.number for inv in invoices] == ["FV/1", "FV/2"]
    assert invoices[0].amount == Decimal("100.50")
    assert invoices[1].amount == Decimal("0")


def test_csv_file_with_extra_columns_keeps_text(config, tmp_path):
    path = tmp_path / "registry.csv"
    path.write_text(
        ",".join(HEADER) + "\n"
        + "2025-11-21,a@b.pl,Faktura,007/2025,2025-11-20,50.00,PLN,Acme,0123456789,Kupiec,,note,x\n",
        encoding="utf-8",
    )
    config.registry.path = str(path)

    invoices = RegistryReader(config).load_invoices()

    assert len(invoices) == 1
    assert invoices[0].number == "007/2025"
    assert invoices[0].seller_tax_id == "0123456789"
    assert invoices[0].buyer_tax_id == ""
    assert invoices[0].raw[11:13] == ("note", "x")


def test_excel_file(config, tmp_path):
    path = tmp_path / "registry.xlsx"
    pd.DataFrame([HEADER, ROW]).to_excel(path, header=False, index=False)
    config.registry.path = str(path)

    invoices = RegistryReader(config).load_invoices()

    assert len(invoices) == 1
    assert invoices[0].seller_tax_id == "123-456-78-90"
    assert invoices[0].currency == "PLN"

