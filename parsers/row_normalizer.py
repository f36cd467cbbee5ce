"""
Row normalization for client inventory spreadsheets.

Turns raw text rows into ParsedRow records using the detected column map.
Nothing here rejects a row: bad quantities coerce to 0, missing SKUs and
brands are flagged, and duplicates collapse to the last occurrence. The
operator sees every warning in the preview and decides what to apply.
"""

from collections import Counter, defaultdict
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional
import re
import structlog

from models.spreadsheet_import import CanonicalField, ColumnMapping, ParsedRow
from parsers.column_detector import mapping_by_field
from utils.text_utils import clean_cell

logger = structlog.get_logger(__name__)

# Header row occupies line 1
FIRST_DATA_LINE = 2

# Share of rows with one SKU prefix that must agree on a brand
PREFIX_DOMINANCE = 0.5

_QTY_NOISE = re.compile(r"[,\s]")

# Upper bound of the inventory qty_on_hand column (Postgres integer)
MAX_QUANTITY = 2_147_483_647

# (pattern on lowercased unit, display value), first match wins
UNIT_DISPLAY = [
    (re.compile(r"^bottle"), "Bottle"),
    (re.compile(r"^can"), "Can"),
    (re.compile(r"^case"), "Case"),
    (re.compile(r"^keg"), "Keg"),
    (re.compile(r"^bag"), "Bag-in-Box"),
    (re.compile(r"^(piece|each|ea)"), "Piece"),
    (re.compile(r"^pack"), "Pack"),
    (re.compile(r"^pallet"), "Pallet"),
    (re.compile(r"^(\d+\s*)?ml$"), "ML"),
    (re.compile(r"^plastic"), "Plastic"),
    (re.compile(r"^box"), "Box"),
]


@dataclass
class NormalizeStats:
    total_raw_rows: int = 0
    valid_rows: int = 0
    empty_rows: int = 0
    duplicate_skus: int = 0
    duplicate_sku_list: list[str] = field(default_factory=list)


@dataclass
class NormalizeResult:
    """Cleaned rows plus sheet-level stats and warnings."""
    rows: list[ParsedRow] = field(default_factory=list)
    stats: NormalizeStats = field(default_factory=NormalizeStats)
    warnings: list[str] = field(default_factory=list)


def normalize_rows(
    raw_rows: list[dict[str, str]],
    mappings: list[ColumnMapping],
    known_skus: Optional[set[str]] = None,
    supply_skus: Optional[dict[str, str]] = None,
) -> NormalizeResult:
    """
    Clean raw rows into ParsedRows.

    Args:
        raw_rows: Rows keyed by source header, in file order
        mappings: Output of detect_columns()
        known_skus: Lowercase SKUs already in the product catalog
        supply_skus: Lowercase packaging-supply SKU -> supply name

    Returns:
        NormalizeResult. Rows are deduplicated by SKU (last occurrence wins)
        and ordered by the line of the surviving occurrence.
    """
    known_skus = known_skus or set()
    supply_skus = supply_skus or {}
    by_field = mapping_by_field(mappings)

    result = NormalizeResult()
    result.stats.total_raw_rows = len(raw_rows)

    # key -> row; rows without SKU get a per-line key so they are never merged
    rows_by_key: dict[str, ParsedRow] = {}
    lines_by_sku: dict[str, list[int]] = defaultdict(list)

    for offset, raw in enumerate(raw_rows):
        line = offset + FIRST_DATA_LINE

        if all(not clean_cell(v) for v in raw.values()):
            result.stats.empty_rows += 1
            continue

        result.stats.valid_rows += 1
        row = _parse_row(raw, line, by_field)

        if row.sku:
            key = row.sku_key
            lines_by_sku[key].append(line)
            if key in rows_by_key:
                # Re-insert so ordering follows the surviving occurrence
                del rows_by_key[key]
                result.stats.duplicate_skus += 1
        else:
            key = f"__line_{line}"

        row.is_new_sku = bool(row.sku) and row.sku_key not in known_skus
        if row.sku_key in supply_skus:
            row.is_supply = True
            row.supply_name = supply_skus[row.sku_key]

        rows_by_key[key] = row

    result.rows = list(rows_by_key.values())

    _flag_duplicates(result, lines_by_sku)
    _flag_prefix_brand_mismatches(result)

    logger.info(
        "rows_normalized",
        total=result.stats.total_raw_rows,
        valid=result.stats.valid_rows,
        empty=result.stats.empty_rows,
        unique=len(result.rows),
        duplicates=result.stats.duplicate_skus,
        warnings=len(result.warnings)
    )

    return result


def parse_quantity(value: Optional[str]) -> tuple[int, Optional[str]]:
    """
    Parse a counted quantity.

    Returns:
        (quantity, warning). Quantity is always a non-negative integer;
        warning is None when the cell was a clean whole number.

    Examples:
        "1,250" -> (1250, None)
        "" -> (0, "Quantity is blank, set to 0")
        "n/a" -> (0, 'Quantity "n/a" is not a number, set to 0')
        "-3" -> (0, "Negative quantity -3 clamped to 0")
        "2.5" -> (3, "Quantity 2.5 rounded to 3")
        "1e30" -> (0, 'Quantity "1e30" is out of range, set to 0')
    """
    text = clean_cell(value)
    if not text:
        return 0, "Quantity is blank, set to 0"

    try:
        number = Decimal(_QTY_NOISE.sub("", text))
    except InvalidOperation:
        return 0, f'Quantity "{text}" is not a number, set to 0'

    if not number.is_finite():
        return 0, f'Quantity "{text}" is not a number, set to 0'

    if number < 0:
        return 0, f"Negative quantity {text} clamped to 0"

    if number > MAX_QUANTITY:
        return 0, f'Quantity "{text}" is out of range, set to 0'

    whole = int(number.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    if whole != number:
        return whole, f"Quantity {text} rounded to {whole}"
    return whole, None


def normalize_unit(value: Optional[str]) -> str:
    """
    Canonical display form for a unit cell.

    "bottles" -> "Bottle", "750ml" -> "ML", "" -> "Piece", "tin" -> "Tin"
    """
    text = clean_cell(value)
    lowered = text.lower()
    if not lowered:
        return "Piece"
    for pattern, display in UNIT_DISPLAY:
        if pattern.search(lowered):
            return display
    return text[:1].upper() + text[1:].lower()


# ===================
# HELPER FUNCTIONS
# ===================

def _cell(raw: dict[str, str], mapping: Optional[ColumnMapping]) -> str:
    if mapping is None or not mapping.is_mapped:
        return ""
    return raw.get(mapping.header, "")


def _parse_row(
    raw: dict[str, str],
    line: int,
    by_field: dict[CanonicalField, ColumnMapping],
) -> ParsedRow:
    warnings = []

    sku = clean_cell(_cell(raw, by_field.get(CanonicalField.SKU)))
    brand = clean_cell(_cell(raw, by_field.get(CanonicalField.BRAND)))
    item_name = clean_cell(_cell(raw, by_field.get(CanonicalField.ITEM_NAME)))
    unit = normalize_unit(_cell(raw, by_field.get(CanonicalField.UNIT)))
    quantity, qty_warning = parse_quantity(_cell(raw, by_field.get(CanonicalField.QUANTITY)))

    if not sku:
        warnings.append("Missing SKU/Code")
    if not brand:
        warnings.append("Missing Brand")
    if qty_warning:
        warnings.append(qty_warning)

    return ParsedRow(
        row_index=line,
        sku=sku,
        item_name=item_name,
        brand=brand,
        unit=unit,
        quantity=quantity,
        warnings=warnings,
    )


def _flag_duplicates(result: NormalizeResult, lines_by_sku: dict[str, list[int]]) -> None:
    """Sheet warning per duplicated SKU and a note on the surviving row."""
    survivors = {row.sku_key: row for row in result.rows if row.sku}

    for key, lines in lines_by_sku.items():
        if len(lines) < 2:
            continue
        row = survivors[key]
        result.stats.duplicate_sku_list.append(row.sku)
        result.warnings.append(
            f'Duplicate SKU "{row.sku}" found on rows {", ".join(str(n) for n in lines)}; '
            f"using row {lines[-1]}"
        )
        row.warnings.append(f"Duplicate SKU (appears {len(lines)} times, last row kept)")


def _flag_prefix_brand_mismatches(result: NormalizeResult) -> None:
    """
    Flag rows whose brand disagrees with the dominant brand for their SKU prefix.

    "ACM-001".."ACM-009" all branded "Acme" and "ACM-010" branded "Zenith"
    usually means a copy/paste slip in the sheet.
    """
    brands_by_prefix: dict[str, Counter] = defaultdict(Counter)
    for row in result.rows:
        if row.sku and row.brand:
            brands_by_prefix[_sku_prefix(row.sku)][row.brand] += 1

    dominant: dict[str, str] = {}
    for prefix, counts in brands_by_prefix.items():
        total = sum(counts.values())
        if total < 2:
            continue
        brand, count = counts.most_common(1)[0]
        if count > total * PREFIX_DOMINANCE:
            dominant[prefix] = brand

    for row in result.rows:
        if not row.sku or not row.brand:
            continue
        prefix = _sku_prefix(row.sku)
        expected = dominant.get(prefix)
        if expected and row.brand != expected:
            row.warnings.append(
                f'SKU prefix "{prefix}" typically belongs to "{expected}" but this row has brand "{row.brand}"'
            )
            result.warnings.append(
                f'Row {row.row_index}: SKU "{row.sku}" (prefix {prefix}) may belong to '
                f'"{expected}" instead of "{row.brand}"'
            )


def _sku_prefix(sku: str) -> str:
    return sku.split("-")[0].upper()
