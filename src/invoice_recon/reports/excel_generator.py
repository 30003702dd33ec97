"""
Excel report generator for reconciliation results.
Creates a multi-sheet workbook with missing, matched and exempt transactions.
"""

from pathlib import Path
from typing import Optional
import logging

from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill, Border, Side
from openpyxl.worksheet.worksheet import Worksheet

from ..models.results import ReconciliationResult, ReconciliationSummary
from ..config import ReconConfig
from ..utils.exceptions import ReportGenerationError

logger = logging.getLogger(__name__)

# Style definitions
HEADER_FILL = PatternFill(start_color="4472C4", end_color="4472C4", fill_type="solid")
HEADER_FONT = Font(color="FFFFFF", bold=True)
MATCH_FILL = PatternFill(start_color="C6EFCE", end_color="C6EFCE", fill_type="solid")
PARTIAL_FILL = PatternFill(start_color="FFEB9C", end_color="FFEB9C", fill_type="solid")
MISSING_FILL = PatternFill(start_color="FFC7CE", end_color="FFC7CE", fill_type="solid")
THIN_BORDER = Border(
    left=Side(style="thin"),
    right=Side(style="thin"),
    top=Side(style="thin"),
    bottom=Side(style="thin"),
)


class ExcelReportGenerator:
    """Generates Excel reconciliation reports with multiple sheets."""

    def __init__(self, config: ReconConfig):
        """
        Initialize the report generator.

        Args:
            config: Application configuration
        """
        self.config = config
        self.sheet_names = config.output.sheets

    def generate_report(
        self,
        summary: ReconciliationSummary,
        result: ReconciliationResult,
        output_path: Path,
    ) -> Path:
        """
        Generate the complete reconciliation report.

        Args:
            summary: Reconciliation summary
            result: Matched, missing and exempt transactions
            output_path: Path for output file

        Returns:
            Path to generated report
        """
        logger.info(f"Generating Excel report: {output_path}")

        wb = Workbook()

        # Remove default sheet
        if wb.active:
            wb.remove(wb.active)

        self._create_summary_sheet(wb, summary)
        self._create_missing_sheet(wb, result)
        self._create_matched_sheet(wb, result)
        self._create_exempt_sheet(wb, result)

        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            wb.save(output_path)
        except OSError as e:
            raise ReportGenerationError(f"Failed to save report {output_path}: {e}") from e
        logger.info(f"Report saved: {output_path}")

        return output_path

    def _create_summary_sheet(self, wb: Workbook, summary: ReconciliationSummary) -> None:
        """Create the summary sheet with key metrics."""
        ws = wb.create_sheet(self.sheet_names.summary)

        ws["A1"] = "Invoice Reconciliation Summary"
        ws["A1"].font = Font(size=16, bold=True)
        ws.merge_cells("A1:D1")

        rows: list[tuple[str, object]] = [
            ("Statement File:", summary.statement_filename),
            ("Reconciliation Date:", summary.reconciliation_date.strftime("%Y-%m-%d %H:%M:%S")),
            (
                "Statement Period:",
                f"{summary.statement_period_start or '-'} to {summary.statement_period_end or '-'}",
            ),
            ("", ""),
            ("Transactions:", summary.total_transactions),
            ("Registry Invoices:", summary.total_invoices),
            ("Matched:", summary.matched_count),
            ("  of which partial:", summary.partial_count),
            ("Missing:", summary.missing_count),
            ("Exempt:", summary.exempt_count),
            ("Match Rate:", f"{summary.match_rate:.1f}%"),
            ("", ""),
            ("Outgoing Total:", f"{summary.outgoing_total:,.2f}"),
            ("Missing Total:", f"{summary.missing_total:,.2f}"),
            ("Found by Deep Search:", summary.recovery_found_count),
        ]

        row = 3
        for label, value in rows:
            ws[f"A{row}"] = label
            ws[f"B{row}"] = value
            row += 1

        row += 1
        for title, counts in (
            ("Matches by Strategy", summary.matches_by_strategy),
            ("Exempt by Category", summary.exempt_by_category),
        ):
            ws[f"A{row}"] = title
            ws[f"A{row}"].font = Font(bold=True)
            row += 1
            for key, count in counts.items():
                ws[f"A{row}"] = key
                ws[f"B{row}"] = count
                row += 1
            row += 1

        ws.column_dimensions["A"].width = 30
        ws.column_dimensions["B"].width = 40

    def _create_missing_sheet(self, wb: Workbook, result: ReconciliationResult) -> None:
        """Create the missing invoices sheet."""
        ws = wb.create_sheet(self.sheet_names.missing)
        headers = [
            "Date",
            "Amount",
            "Currency",
            "Counterparty",
            "Description",
            "Search Status",
            "Search Query",
            "Reference",
            "Raw Transaction",
        ]
        self._write_headers(ws, headers)

        for row_num, missing in enumerate(result.missing, start=2):
            txn = missing.transaction
            recovery = missing.recovery
            row_data = [
                txn.date_text,
                float(txn.amount),
                txn.currency,
                txn.counterparty,
                txn.description,
                recovery.status if recovery else "PENDING",
                (recovery.query_used or "") if recovery else "",
                (recovery.reference or "") if recovery else "",
                txn.raw,
            ]
            self._write_row(ws, row_num, row_data, MISSING_FILL)

        self._auto_fit_columns(ws)

    def _create_matched_sheet(self, wb: Workbook, result: ReconciliationResult) -> None:
        """Create the matched transactions sheet."""
        ws = wb.create_sheet(self.sheet_names.matched)
        headers = [
            "Bank Date",
            "Bank Amount",
            "Bank Counterparty",
            "Invoice Number",
            "Invoice Date",
            "Invoice Amount",
            "Seller",
            "Combined Invoices",
            "Strategy",
            "Score",
            "Notes",
            "Remainder Search",
        ]
        self._write_headers(ws, headers)

        for row_num, match in enumerate(result.matched, start=2):
            txn = match.transaction
            inv = match.invoice
            row_data = [
                txn.date_text,
                float(txn.amount),
                txn.counterparty,
                inv.number,
                inv.issue_date,
                float(inv.amount),
                inv.seller_name,
                ", ".join(extra.number for extra in match.additional_invoices),
                match.strategy.value,
                match.score,
                result.annotation_for(inv).notes,
                match.recovery.status if match.recovery else "",
            ]
            self._write_row(ws, row_num, row_data, PARTIAL_FILL if match.partial else MATCH_FILL)

        self._auto_fit_columns(ws)

    def _create_exempt_sheet(self, wb: Workbook, result: ReconciliationResult) -> None:
        """Create the exempt transactions sheet."""
        ws = wb.create_sheet(self.sheet_names.exempt)
        headers = ["Date", "Amount", "Currency", "Counterparty", "Description", "Type", "Category"]
        self._write_headers(ws, headers)

        for row_num, exempt in enumerate(result.exempt, start=2):
            txn = exempt.transaction
            row_data = [
                txn.date_text,
                float(txn.amount),
                txn.currency,
                txn.counterparty,
                txn.description,
                txn.type,
                exempt.category,
            ]
            self._write_row(ws, row_num, row_data)

        self._auto_fit_columns(ws)

    def _write_headers(self, ws: Worksheet, headers: list[str]) -> None:
        for col, header in enumerate(headers, start=1):
            cell = ws.cell(row=1, column=col, value=header)
            cell.fill = HEADER_FILL
            cell.font = HEADER_FONT
            cell.border = THIN_BORDER

    def _write_row(
        self, ws: Worksheet, row_num: int, values: list, fill: Optional[PatternFill] = None
    ) -> None:
        for col, value in enumerate(values, start=1):
            cell = ws.cell(row=row_num, column=col, value=value)
            cell.border = THIN_BORDER
            if fill is not None:
                cell.fill = fill

    def _auto_fit_columns(self, ws: Worksheet) -> None:
        """Auto-fit column widths based on content."""
        for column_cells in ws.columns:
            column = column_cells[0].column_letter
            max_length = max((len(str(c.value)) for c in column_cells if c.value), default=0)
            ws.column_dimensions[column].width = min(max_length + 2, 50)
