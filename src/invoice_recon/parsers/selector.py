"""Statement dialect detection."""

from pathlib import Path
from typing import Union
import logging

from ..models.transaction import Transaction
from ..config import ReconConfig
from ..utils.exceptions import StatementParseError
from .csv_parser import CsvStatementParser
from .mt940_parser import MT940Parser

logger = logging.getLogger(__name__)

StatementParser = Union[CsvStatementParser, MT940Parser]

SNIFF_BYTES = 4096


def select_parser(file_path: Path, config: ReconConfig) -> StatementParser:
    """
    Pick the parser for a statement file.

    The extension decides first (``.csv`` or one of the configured MT940
    extensions); otherwise the head of the file is sniffed for ``:61:`` tags
    or the delimited header tokens.

    Raises:
        StatementParseError: If the dialect cannot be determined
    """
    suffix = file_path.suffix.lower()

    if suffix == ".csv":
        return CsvStatementParser(config)
    if suffix in config.input.mt940.extensions:
        return MT940Parser(config)

    try:
        with open(file_path, "rb") as f:
            head = f.read(SNIFF_BYTES)
    except OSError as e:
        raise StatementParseError(f"Failed to read statement file: {e}") from e

    if b":61:" in head:
        logger.debug(f"Detected MT940 content in {file_path.name}")
        return MT940Parser(config)

    text = head.decode(config.input.csv.encoding, errors="ignore")
    if all(token in text for token in config.input.csv.header_tokens):
        logger.debug(f"Detected delimited export in {file_path.name}")
        return CsvStatementParser(config)

    raise StatementParseError(f"Unrecognised statement format: {file_path}")


def parse_statement(file_path: Path, config: ReconConfig) -> list[Transaction]:
    """Parse a statement file in whichever dialect it is written."""
    return select_parser(file_path, config).parse_file(file_path)
