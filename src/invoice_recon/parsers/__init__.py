"""Parsers for delimited and MT940 bank statements."""

from .csv_parser import CsvStatementParser
from .mt940_parser import MT940Parser
from .selector import parse_statement, select_parser

__all__ = ["CsvStatementParser", "MT940Parser", "parse_statement", "select_parser"]
