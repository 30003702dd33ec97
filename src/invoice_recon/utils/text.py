"""Text, amount and date normalisation helpers shared by parsers and matchers."""

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Optional
import re
import unicodedata

import pandas as pd

_NON_ALNUM = re.compile(r"[^a-z0-9]")
_AMOUNT_JUNK = re.compile(r"[^\d.\-]")

# Letters without a Unicode decomposition
_FOLD_TABLE = str.maketrans({"ł": "l", "Ł": "L", "đ": "d", "Đ": "D", "ø": "o", "Ø": "O"})

# Most common wrong decodings of Polish bank exports
_MOJIBAKE_ROUTES = (
    ("cp1250", "utf-8"),
    ("cp1252", "utf-8"),
    ("latin-1", "utf-8"),
    ("latin-1", "cp1250"),
)

DATE_FORMATS = ("%d-%m-%Y", "%Y-%m-%d", "%d.%m.%Y", "%Y.%m.%d", "%d/%m/%Y")


def normalize_string(value: Any) -> str:
    """Lowercase and strip everything except ASCII letters and digits."""
    if value is None:
        return ""
    return _NON_ALNUM.sub("", str(value).lower())


def parse_amount(value: Any) -> Decimal:
    """
    Parse a loosely formatted amount.

    Numbers pass through. For strings the first comma is treated as the
    decimal separator and every character other than digits, dot and minus is
    dropped, so ``"1 000,00"`` becomes ``Decimal("1000.00")``.

    Returns:
        Parsed amount, or ``Decimal("0")`` when nothing usable is found
    """
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    if isinstance(value, (int, float)):
        if isinstance(value, float) and pd.isna(value):
            return Decimal("0")
        return Decimal(str(value))

    cleaned = _AMOUNT_JUNK.sub("", str(value).replace(",", ".", 1))
    if not cleaned:
        return Decimal("0")
    try:
        return Decimal(cleaned)
    except InvalidOperation:
        return Decimal("0")


def parse_date(value: Any, formats: tuple[str, ...] = DATE_FORMATS) -> Optional[date]:
    """
    Parse a date written in one of the usual statement/registry conventions.

    Tries the explicit formats first, then falls back to the pandas parser
    with day-first disambiguation.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    text = str(value).strip()
    if not text:
        return None

    for fmt in formats:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue

    try:
        parsed = pd.to_datetime(text, dayfirst=True)
    except (ValueError, TypeError, OverflowError):
        return None
    if pd.isna(parsed):
        return None
    return parsed.date()


def repair_mojibake(text: str) -> str:
    """Undo a UTF-8 or cp1250 payload that was decoded with the wrong codec."""
    for wrong, right in _MOJIBAKE_ROUTES:
        try:
            repaired = text.encode(wrong).decode(right)
        except (UnicodeEncodeError, UnicodeDecodeError):
            continue
        if repaired != text:
            return repaired
    return text


def fold_text(text: str) -> str:
    """Lowercase and strip diacritics (including Polish letters)."""
    decomposed = unicodedata.normalize("NFKD", text.translate(_FOLD_TABLE))
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch)).lower()


def canonical_label(value: Any) -> str:
    """
    Canonical form of a bank category label for equality checks.

    ``"Opłaty i prowizje"``, ``"OPLATY I PROWIZJE"`` and the mis-decoded
    ``"OpĹ‚aty i prowizje"`` all collapse to ``"oplatyiprowizje"``.
    """
    if value is None:
        return ""
    text = str(value)
    if text.isascii():
        return normalize_string(text)
    return normalize_string(fold_text(repair_mojibake(text)))
