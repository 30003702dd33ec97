"""Tests for the Excel report generator."""

from datetime import date

from openpyxl import load_workbook

from invoice_recon.matching.engine import ReconciliationEngine
from invoice_recon.models.results import RecoveryResult
from invoice_recon.reports.excel_generator import ExcelReportGenerator


def test_report_sheets_and_rows(config, make_transaction, make_invoice, tmp_path):
    transactions = [
        make_transaction(amount="-50.00", txn_date=date(2025, 11, 20)),
        make_transaction(amount="-80.00", counterparty="Nobody"),
        make_transaction(amount="-12.00", txn_type="Opłaty i prowizje"),
    ]
    invoices = [make_invoice(number="FV/50", amount="50.00", issue_date="20-11-2025")]
    engine = ReconciliationEngine(config)
    result = engine.reconcile(transactions, invoices)
    result.missing[0].recovery = RecoveryResult(found=False, reason="not_found")
    summary = engine.generate_summary(transactions, invoices, result, "statement.csv", 0.1)

    output = ExcelReportGenerator(config).generate_report(
        summary, result, tmp_path / "out" / "report.xlsx"
    )

    wb = load_workbook(output)
    assert wb.sheetnames == ["Summary", "Missing Invoices", "Matched Transactions", "Exempt"]

    missing = wb["Missing Invoices"]
    assert missing.max_row == 2
    assert missing.cell(row=2, column=2).value == -80.0
    assert missing.cell(row=2, column=6).value == "NOT FOUND (not_found)"

    matched = wb["Matched Transactions"]
    assert matched.cell(row=2, column=4).value == "FV/50"
    assert matched.cell(row=2, column=9).value == "exact"

    exempt = wb["Exempt"]
    assert exempt.cell(row=2, column=7).value == "FEES"

    assert wb["Summary"]["B3"].value == "statement.csv"
