"""
Command-line interface for the invoice reconciliation tool.
"""

from datetime import datetime
from pathlib import Path
from typing import Optional
import logging
import sys

import click
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from . import __version__
from .config import load_config, generate_default_config, ReconConfig
from .matching.engine import ReconciliationEngine
from .matching.scoring import find_duplicate, find_duplicate_pairs
from .models.results import ReconciliationSummary
from .models.transaction import InvoiceRecord
from .parsers.selector import parse_statement
from .recovery.hook import load_recovery_hook
from .registry.reader import RegistryReader
from .reports.excel_generator import ExcelReportGenerator
from .utils.logging_config import setup_logging

console = Console()


@click.group()
@click.version_option(version=__version__)
def main():
    """Bank statement to invoice registry reconciliation tool."""
    pass


@main.command()
@click.option(
    "--file",
    "statement_file",
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Bank statement (delimited export or MT940)",
)
@click.option(
    "--registry",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Invoice registry export (CSV or Excel); overrides registry.path",
)
@click.option(
    "-c",
    "--config",
    type=click.Path(exists=True, path_type=Path),
    help="Path to configuration file (YAML)",
)
@click.option("-o", "--output", type=click.Path(path_type=Path), help="Output Excel file path")
@click.option("--skip-search", is_flag=True, help="Do not run the deep search for missing invoices")
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output")
@click.option(
    "--dry-run", is_flag=True, help="Reconcile and show summary without generating report"
)
def reconcile(
    statement_file: Path,
    registry: Optional[Path],
    config: Optional[Path],
    output: Optional[Path],
    skip_search: bool,
    verbose: bool,
    dry_run: bool,
):
    """Reconcile a bank statement with the invoice registry."""
    try:
        recon_config = _load(config, registry, verbose)

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
        ) as progress:
            task = progress.add_task("Parsing bank statement...", total=None)
            transactions = parse_statement(statement_file, recon_config)
            progress.update(task, completed=True)

            task = progress.add_task("Loading invoice registry...", total=None)
            invoices = RegistryReader(recon_config).load_invoices()
            progress.update(task, completed=True)

            hook = None if skip_search else load_recovery_hook(recon_config)

            task = progress.add_task("Running reconciliation...", total=None)
            start_time = datetime.now()

            engine = ReconciliationEngine(recon_config)
            result = engine.reconcile(transactions, invoices, recovery_hook=hook)

            processing_time = (datetime.now() - start_time).total_seconds()
            progress.update(task, completed=True)

            summary = engine.generate_summary(
                transactions=transactions,
                invoices=invoices,
                result=result,
                statement_filename=statement_file.name,
                processing_time=processing_time,
            )

        _display_summary(summary)

        if dry_run:
            console.print("\n[yellow]Dry run - no report generated[/yellow]")
            return

        if output is None:
            now = datetime.now()
            output = Path(
                recon_config.output.excel.filename_template.format(
                    date=now.strftime("%Y%m%d"), time=now.strftime("%H%M%S")
                )
            )

        report_path = ExcelReportGenerator(recon_config).generate_report(
            summary=summary,
            result=result,
            output_path=output,
        )

        console.print(f"\n[green]Report generated: {report_path}[/green]")

    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        if verbose:
            console.print_exception()
        sys.exit(1)


@main.command("parse-statement")
@click.argument("statement_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("-c", "--config", type=click.Path(exists=True, path_type=Path))
def parse_statement_command(statement_file: Path, config: Optional[Path]):
    """
    Parse a bank statement and display its transactions.

    STATEMENT_FILE: Path to the delimited export or MT940 file
    """
    recon_config = _load(config, None, verbose=False)

    try:
        transactions = parse_statement(statement_file, recon_config)
    except Exception as e:
        console.print(f"[red]Error parsing file: {e}[/red]")
        sys.exit(1)

    table = Table(title=f"Transactions: {statement_file.name}")
    table.add_column("Date")
    table.add_column("Amount", justify="right")
    table.add_column("Type")
    table.add_column("Counterparty")
    table.add_column("Description")

    for txn in transactions[:20]:  # Show first 20
        table.add_row(
            txn.date_text,
            f"{txn.amount:,.2f} {txn.currency}",
            txn.type,
            _truncate(txn.counterparty_name),
            _truncate(txn.description),
        )

    console.print(table)

    if len(transactions) > 20:
        console.print(f"\n... and {len(transactions) - 20} more transactions")

    console.print(f"\nTotal transactions: {len(transactions)}")


@main.command("check-duplicate")
@click.option(
    "--registry",
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Invoice registry export",
)
@click.option("--number", required=True, help="Invoice number")
@click.option("--issue-date", required=True, help="Issue date as stored in the registry")
@click.option("--amount", required=True, help="Gross amount")
@click.option("--seller-tax-id", default="", help="Seller tax id (NIP)")
@click.option("--buyer-tax-id", default="", help="Buyer tax id (NIP)")
@click.option("-c", "--config", type=click.Path(exists=True, path_type=Path))
def check_duplicate(
    registry: Path,
    number: str,
    issue_date: str,
    amount: str,
    seller_tax_id: str,
    buyer_tax_id: str,
    config: Optional[Path],
):
    """Check whether an extracted invoice is already in the registry."""
    recon_config = _load(config, registry, verbose=False)
    invoices = RegistryReader(recon_config).load_invoices()

    candidate = InvoiceRecord.from_row(
        ["", "", "", number, issue_date, amount, "", "", seller_tax_id, "", buyer_tax_id],
        index=-1,
    )
    hit = find_duplicate(candidate, invoices, recon_config.matching.duplicate_threshold)

    if hit:
        existing, score = hit
        console.print(
            f"[yellow]Duplicate of registry row {existing.index + 1}: "
            f"{existing.number} ({existing.issue_date}, {existing.amount}) - score {score}[/yellow]"
        )
        sys.exit(2)

    console.print("[green]No duplicate found[/green]")


@main.command("find-duplicates")
@click.option(
    "--registry",
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Invoice registry export",
)
@click.option("-c", "--config", type=click.Path(exists=True, path_type=Path))
def find_duplicates(registry: Path, config: Optional[Path]):
    """List registry rows that duplicate an earlier row."""
    recon_config = _load(config, registry, verbose=False)
    invoices = RegistryReader(recon_config).load_invoices()
    pairs = find_duplicate_pairs(invoices, recon_config.matching.duplicate_threshold)

    table = Table(title=f"Duplicates in {registry.name}")
    table.add_column("Original Row", justify="right")
    table.add_column("Duplicate Row", justify="right")
    table.add_column("Number")
    table.add_column("Date")
    table.add_column("Amount", justify="right")
    table.add_column("Score", justify="right")

    for original, duplicate, score in pairs:
        table.add_row(
            str(original.index + 1),
            str(duplicate.index + 1),
            duplicate.number,
            duplicate.issue_date,
            f"{duplicate.amount:,.2f}",
            str(score),
        )

    console.print(table)
    console.print(f"\nDuplicates found: {len(pairs)}")


@main.command("init-config")
@click.option(
    "-o", "--output", type=click.Path(path_type=Path), default=Path("config.yaml")
)
def init_config(output: Path):
    """Generate a sample configuration file."""
    generate_default_config(output)
    console.print(f"[green]Configuration file generated: {output}[/green]")


def _load(config: Optional[Path], registry: Optional[Path], verbose: bool) -> ReconConfig:
    """Load configuration, apply the registry override and set up logging."""
    recon_config = load_config(config)
    if registry is not None:
        recon_config.registry.path = str(registry)

    if verbose:
        level = logging.DEBUG
    else:
        level = getattr(logging, recon_config.logging.level.upper(), logging.INFO)
    setup_logging(
        level,
        log_file=Path(recon_config.logging.file) if recon_config.logging.file else None,
        log_format=recon_config.logging.format,
    )
    return recon_config


def _display_summary(summary: ReconciliationSummary) -> None:
    """Display reconciliation summary in console."""
    table = Table(title="Reconciliation Summary")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")

    table.add_row("Transactions", str(summary.total_transactions))
    table.add_row("Registry Invoices", str(summary.total_invoices))
    table.add_row("Matched", str(summary.matched_count))
    table.add_row("Partial Matches", str(summary.partial_count))
    table.add_row("Missing", str(summary.missing_count))
    table.add_row("Exempt", str(summary.exempt_count))
    table.add_row("Match Rate", f"{summary.match_rate:.1f}%")
    table.add_row("Missing Total", f"{summary.missing_total:,.2f}")
    table.add_row("Found by Deep Search", str(summary.recovery_found_count))
    table.add_row("Processing Time", f"{summary.processing_time_seconds:.2f}s")

    console.print(table)


def _truncate(text: str, width: int = 40) -> str:
    return text[:width] + "..." if len(text) > width else text


if __name__ == "__main__":
    main()
