"""
Sheet vs. system quantity comparison for update imports.

Every SKU on the sheet, plus every SKU with stock on hand at the location,
produces exactly one DiscrepancyRow.
"""

from collections import Counter
import structlog

from models.inventory import LocationInventoryItem
from models.spreadsheet_import import (
    DiscrepancyClass,
    DiscrepancyRow,
    DiscrepancyStats,
    ParsedRow,
)

logger = structlog.get_logger(__name__)


def classify_discrepancies(
    rows: list[ParsedRow],
    inventory: list[LocationInventoryItem],
) -> list[DiscrepancyRow]:
    """
    Classify each SKU in the union of sheet and location inventory.

    Args:
        rows: Normalized sheet rows (rows without SKU are ignored)
        inventory: Location inventory joined with product SKU/name

    Returns:
        Sheet SKUs in sheet order, then system-only SKUs in inventory order
    """
    system_qty: dict[str, int] = {}
    system_item: dict[str, LocationInventoryItem] = {}
    for item in inventory:
        key = item.sku.lower()
        system_qty[key] = system_qty.get(key, 0) + item.qty_on_hand
        system_item.setdefault(key, item)

    results = []
    seen: set[str] = set()

    for row in rows:
        if not row.sku or row.sku_key in seen:
            continue
        key = row.sku_key
        seen.add(key)

        item = system_item.get(key)
        if item is None:
            results.append(DiscrepancyRow(
                sku=row.sku,
                name=row.item_name,
                sheet_qty=row.quantity,
                system_qty=0,
                difference=row.quantity,
                classification=DiscrepancyClass.NEW,
            ))
            continue

        on_hand = system_qty[key]
        difference = row.quantity - on_hand
        results.append(DiscrepancyRow(
            sku=row.sku,
            name=item.name or row.item_name,
            product_id=item.product_id,
            sheet_qty=row.quantity,
            system_qty=on_hand,
            difference=difference,
            classification=(
                DiscrepancyClass.MATCH if difference == 0 else DiscrepancyClass.DISCREPANCY
            ),
        ))

    for key, item in system_item.items():
        if key in seen or system_qty[key] <= 0:
            continue
        results.append(DiscrepancyRow(
            sku=item.sku,
            name=item.name or "",
            product_id=item.product_id,
            sheet_qty=0,
            system_qty=system_qty[key],
            difference=-system_qty[key],
            classification=DiscrepancyClass.MISSING_FROM_SHEET,
        ))

    logger.info("discrepancies_classified", total=len(results))

    return results


def summarize(discrepancies: list[DiscrepancyRow]) -> DiscrepancyStats:
    """Count rows per classification."""
    counts = Counter(d.classification for d in discrepancies)
    return DiscrepancyStats(
        matches=counts[DiscrepancyClass.MATCH],
        discrepancies=counts[DiscrepancyClass.DISCREPANCY],
        new_skus=counts[DiscrepancyClass.NEW],
        missing_from_sheet=counts[DiscrepancyClass.MISSING_FROM_SHEET],
    )
