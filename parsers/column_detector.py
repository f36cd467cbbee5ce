"""
Column detection for client inventory spreadsheets.

Client files have no fixed template: "Code", "SKU", "Item Code" and
"Product Code" all mean SKU; "Ground Inventory", "Balance" and "Qty on hand"
all mean the counted quantity. Each canonical field owns a priority-ordered
synonym registry, and headers are assigned in three passes of decreasing
confidence so a strong match for one field is never stolen by a weak match
for another.

Detection never fails. Callers check missing_required() before normalizing.
"""

import re
from typing import Optional
import structlog

from models.spreadsheet_import import (
    CanonicalField,
    ColumnMapping,
    MatchTier,
    REQUIRED_FIELDS,
)
from utils.text_utils import normalize_header

logger = structlog.get_logger(__name__)


# ===================
# SYNONYM REGISTRY
# ===================
# All entries are in normalize_header() form (lowercase, no punctuation).
# Equality sets must stay disjoint across fields.

EXACT_NAMES: dict[CanonicalField, list[str]] = {
    CanonicalField.SKU: ["sku"],
    CanonicalField.QUANTITY: ["quantity", "ground inventory"],
    CanonicalField.ITEM_NAME: ["item name", "item"],
    CanonicalField.BRAND: ["brand"],
    CanonicalField.UNIT: ["unit"],
}

SYNONYMS: dict[CanonicalField, list[str]] = {
    CanonicalField.SKU: [
        "code", "sku code", "code sku", "item code", "product code",
        "sku number", "sku no", "item sku", "product sku", "stock code",
        "part number", "article number",
    ],
    CanonicalField.QUANTITY: [
        "ground inv", "ground count", "physical count", "balance",
        "balance qty", "balance quantity", "qty", "qty on hand",
        "quantity on hand", "on hand", "count", "stock", "inventory",
    ],
    CanonicalField.ITEM_NAME: [
        "product", "name", "product name", "description",
        "item description", "product description", "title",
    ],
    CanonicalField.BRAND: [
        "brand name", "brands", "client", "client name", "vendor",
        "supplier", "manufacturer", "label",
    ],
    CanonicalField.UNIT: [
        "uom", "unit of measure", "units", "unit type", "pack type",
        "container", "container type",
    ],
}

SYNONYM_PATTERNS: dict[CanonicalField, list[re.Pattern]] = {
    CanonicalField.SKU: [
        re.compile(r"\bsku\b"),
        re.compile(r"\bcode\b"),
    ],
    CanonicalField.QUANTITY: [
        re.compile(r"ground ?inv"),
        re.compile(r"ground ?count"),
        re.compile(r"physical ?count"),
        re.compile(r"balance ?(qty|quantity)"),
        re.compile(r"\bqty\b"),
        re.compile(r"\bquantity\b"),
        re.compile(r"on ?hand"),
    ],
    CanonicalField.ITEM_NAME: [
        re.compile(r"item.*name"),
        re.compile(r"product.*name"),
        re.compile(r"description"),
    ],
    CanonicalField.BRAND: [
        re.compile(r"\bbrand\b"),
    ],
    CanonicalField.UNIT: [
        re.compile(r"unit.*measure"),
        re.compile(r"\buom\b"),
        re.compile(r"\bunit\b"),
    ],
}

# Never mapped, even if a pattern would match ("Balance Case" is not a count)
EXCLUDED_PATTERNS = [
    re.compile(r"balance ?case"),
    re.compile(r"request"),
]

# Required fields claim headers first
FIELD_ORDER = [
    CanonicalField.SKU,
    CanonicalField.QUANTITY,
    CanonicalField.ITEM_NAME,
    CanonicalField.BRAND,
    CanonicalField.UNIT,
]

# Column order of the standard warehouse count sheet
TEMPLATE_POSITIONS: dict[CanonicalField, int] = {
    CanonicalField.BRAND: 0,
    CanonicalField.SKU: 1,
    CanonicalField.ITEM_NAME: 2,
    CanonicalField.UNIT: 3,
    CanonicalField.QUANTITY: 4,
}

# Reader placeholders for headers that carry no name
GENERIC_HEADER = re.compile(r"^((unnamed|column|col|field) \d+( \d+)?)?$")


def detect_columns(headers: list[str]) -> list[ColumnMapping]:
    """
    Map spreadsheet headers to canonical fields.

    Args:
        headers: Header strings in file order

    Returns:
        One ColumnMapping per CanonicalField, in enum order.
        Unmatched fields come back with confidence UNMAPPED.
    """
    normalized = [normalize_header(h) for h in headers]
    excluded = {
        idx for idx, h in enumerate(normalized)
        if any(p.search(h) for p in EXCLUDED_PATTERNS)
    }
    consumed: set[int] = set(excluded)
    assigned: dict[CanonicalField, tuple[int, MatchTier]] = {}

    passes = [
        (MatchTier.EXACT, lambda f: [_equals(s) for s in EXACT_NAMES[f]]),
        (MatchTier.SYNONYM, lambda f: [_equals(s) for s in SYNONYMS[f]]),
        (MatchTier.SYNONYM, lambda f: [p.search for p in SYNONYM_PATTERNS[f]]),
    ]

    for tier, matchers_for in passes:
        for canonical in FIELD_ORDER:
            if canonical in assigned:
                continue
            idx = _first_match(normalized, consumed, matchers_for(canonical))
            if idx is not None:
                assigned[canonical] = (idx, tier)
                consumed.add(idx)

    # Positional fallback only for headers with no name at all
    for canonical in FIELD_ORDER:
        if canonical in assigned:
            continue
        idx = TEMPLATE_POSITIONS[canonical]
        if idx < len(normalized) and idx not in consumed and GENERIC_HEADER.match(normalized[idx]):
            assigned[canonical] = (idx, MatchTier.POSITIONAL)
            consumed.add(idx)

    mappings = []
    for canonical in CanonicalField:
        if canonical in assigned:
            idx, tier = assigned[canonical]
            mappings.append(ColumnMapping(
                field=canonical,
                header=headers[idx],
                column_index=idx,
                confidence=tier,
            ))
        else:
            mappings.append(ColumnMapping(field=canonical))

    logger.info(
        "columns_detected",
        header_count=len(headers),
        mapped={m.field.value: m.header for m in mappings if m.is_mapped},
        unmapped=[m.field.value for m in mappings if not m.is_mapped],
    )

    return mappings


def mapping_by_field(mappings: list[ColumnMapping]) -> dict[CanonicalField, ColumnMapping]:
    """Index mappings by canonical field."""
    return {m.field: m for m in mappings}


def missing_required(mappings: list[ColumnMapping]) -> list[CanonicalField]:
    """Required fields (sku, quantity) with no mapped header."""
    by_field = mapping_by_field(mappings)
    return [f for f in REQUIRED_FIELDS if not by_field[f].is_mapped]


def unmapped_headers(headers: list[str], mappings: list[ColumnMapping]) -> list[str]:
    """Headers not feeding any canonical field (informational columns)."""
    used = {m.column_index for m in mappings if m.column_index is not None}
    return [h for idx, h in enumerate(headers) if idx not in used]


# ===================
# HELPER FUNCTIONS
# ===================

def _equals(synonym: str):
    return lambda header: header == synonym


def _first_match(
    normalized: list[str],
    consumed: set[int],
    matchers: list,
) -> Optional[int]:
    """
    First unconsumed header matching the highest-priority matcher.

    Matchers are tried in priority order; for each one headers are
    scanned in file order.
    """
    for matcher in matchers:
        for idx, header in enumerate(normalized):
            if idx in consumed or not header:
                continue
            if matcher(header):
                return idx
    return None
