"""
Invoice registry reader.
Loads registry rows from a spreadsheet export or an injected row source.
"""

from pathlib import Path
from typing import Any, Callable, Optional
import logging

import pandas as pd

from ..models.transaction import InvoiceRecord
from ..config import ReconConfig
from ..utils.exceptions import RegistryError

logger = logging.getLogger(__name__)

RowSource = Callable[[], list[list[Any]]]

EXCEL_SUFFIXES = (".xlsx", ".xlsm", ".xls")


class RegistryReader:
    """
    Reads the invoice registry as positional rows.

    Rows come either from ``source`` (any callable returning a list of rows,
    e.g. a spreadsheet API client) or from the file configured under
    ``registry.path``. A failed fetch is logged and yields no invoices so a
    run can still classify every transaction.
    """

    def __init__(self, config: ReconConfig, source: Optional[RowSource] = None):
        """
        Initialize the reader.

        Args:
            config: Application configuration
            source: Optional callable returning raw registry rows
        """
        self.config = config
        self.settings = config.registry
        self.source = source

    def read_rows(self) -> list[list[Any]]:
        """
        Fetch raw registry rows without the header row.

        Raises:
            RegistryError: If no source is configured or the fetch fails
        """
        if self.source is not None:
            try:
                rows = self.source()
            except Exception as e:
                raise RegistryError(f"Registry source failed: {e}") from e
        elif self.settings.path:
            rows = self._read_file(Path(self.settings.path))
        else:
            raise RegistryError("No registry source or registry.path configured")

        rows = [list(row) for row in rows or []]
        if rows and rows[0] and str(rows[0][0]).strip() == self.settings.header_marker:
            rows = rows[1:]
        return rows

    def load_invoices(self) -> list[InvoiceRecord]:
        """
        Load registry invoices, degrading to an empty list on failure.

        Returns:
            Invoice records in registry order
        """
        try:
            rows = self.read_rows()
        except RegistryError as e:
            logger.error(f"Error fetching invoices from registry: {e}")
            return []

        invoices = [InvoiceRecord.from_row(row, idx) for idx, row in enumerate(rows)]
        logger.info(f"Loaded {len(invoices)} invoices from registry")
        return invoices

    def _read_file(self, file_path: Path) -> list[list[Any]]:
        """
        Read a CSV or Excel registry export with every cell as text.

        Args:
            file_path: Path to the export

        Returns:
            List of rows, blank cells as empty strings
        """
        logger.info(f"Reading invoice registry: {file_path}")

        try:
            if file_path.suffix.lower() in EXCEL_SUFFIXES:
                df = pd.read_excel(
                    file_path,
                    sheet_name=self.settings.sheet_name,
                    header=None,
                    dtype=str,
                )
                return df.fillna("").values.tolist()

            # Ragged rows are padded with NaN up to max_columns; with
            # keep_default_na=False only padding is NaN, so all-NaN columns go
            df = pd.read_csv(
                file_path,
                header=None,
                names=list(range(self.settings.max_columns)),
                index_col=False,
                dtype=str,
                keep_default_na=False,
                encoding=self.settings.encoding,
            )
            return df.dropna(axis=1, how="all").fillna("").values.tolist()
        except Exception as e:
            raise RegistryError(f"Failed to read registry file {file_path}: {e}") from e
