"""
Text utilities for spreadsheet cells, headers and brand names.

Client spreadsheets arrive with stray newlines, mixed case, accents and
inconsistent punctuation. These helpers produce the cleaned display value
and the comparison keys used for matching.
"""

import re
import unicodedata
from typing import Optional

_WHITESPACE = re.compile(r"\s+")
_LINE_BREAKS = re.compile(r"[\r\n]+")
_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def strip_accents(text: str) -> str:
    """
    Remove accent marks while keeping base characters.

    "Café Olé" → "Cafe Ole"
    """
    normalized = unicodedata.normalize("NFKD", text)
    return "".join(c for c in normalized if not unicodedata.combining(c))


def clean_cell(value: Optional[str]) -> str:
    """
    Clean a cell for display/storage.

    - Embedded line breaks become spaces
    - Whitespace runs collapse to one space
    - Leading/trailing whitespace trimmed

    Case is preserved. None becomes "".
    """
    if value is None:
        return ""
    text = _LINE_BREAKS.sub(" ", str(value))
    return _WHITESPACE.sub(" ", text).strip()


def normalize_header(header: Optional[str]) -> str:
    """
    Normalize a column header for synonym matching.

    "Ground  Inventory (qty)" → "ground inventory qty"
    "Código/SKU" → "codigo sku"
    """
    if header is None:
        return ""
    text = strip_accents(str(header)).lower()
    return _NON_ALNUM.sub(" ", text).strip()


def normalize_brand(name: Optional[str]) -> str:
    """
    Comparison key for brand text and client company names.

    Case, accents and whitespace differences disappear; punctuation is kept
    so "A.B. Wines" and "AB Wines" stay distinct.

    "  ACME   Co " → "acme co"
    """
    if not name:
        return ""
    text = strip_accents(str(name)).casefold()
    return _WHITESPACE.sub(" ", text).strip()


def alias_key(brand: Optional[str]) -> str:
    """
    Key under which a confirmed brand alias is stored.

    Lowercase, trimmed, whitespace collapsed. Same key used for lookups so
    re-confirming a mapping is a no-op.
    """
    return normalize_brand(brand)
