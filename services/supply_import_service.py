"""
Packaging supply import.

A simpler sibling of the product import: columns are SKU, name and
quantity only. Parse previews SKU matches against the supplies table;
apply creates unknown supplies and replaces their counted quantity at a
location. Row failures are reported and skipped, as in the product import.
"""

from collections import defaultdict
from typing import Optional
import structlog

from config import settings
from models.spreadsheet_import import CanonicalField, ColumnMapping, RowError
from models.supply_import import (
    SupplyApplyRequest,
    SupplyApplyResponse,
    SupplyApplyRow,
    SupplyApplyStats,
    SupplyImportStats,
    SupplyParsedRow,
    SupplyParsePreviewResponse,
    SupplySnapshot,
)
from parsers.column_detector import detect_columns, mapping_by_field
from parsers.row_normalizer import FIRST_DATA_LINE, parse_quantity
from parsers.spreadsheet_reader import detect_file_type, read_spreadsheet
from services.reconciliation_service import ROW_ERRORS
from services.supply_inventory_service import SupplyInventoryService, get_supply_inventory_service
from services.supply_service import SupplyService, get_supply_service
from exceptions import AppError, FileTooLargeError, ValidationError
from utils.text_utils import clean_cell

logger = structlog.get_logger(__name__)

SUPPLY_FIELDS = [CanonicalField.SKU, CanonicalField.ITEM_NAME, CanonicalField.QUANTITY]


class SupplyImportService:
    def __init__(
        self,
        supply_service: Optional[SupplyService] = None,
        supply_inventory_service: Optional[SupplyInventoryService] = None,
        max_upload_bytes: Optional[int] = None,
    ):
        self.supplies = supply_service or get_supply_service()
        self.inventory = supply_inventory_service or get_supply_inventory_service()
        self.max_upload_bytes = max_upload_bytes or settings.max_upload_bytes

    # ===================
    # PARSE
    # ===================

    def parse(
        self,
        content: bytes,
        filename: str,
        location_id: Optional[str] = None,
    ) -> SupplyParsePreviewResponse:
        """
        Build the supply import preview.

        A missing SKU or quantity column is a warning, not an error: the
        operator sees the preview and decides.

        Raises:
            FileTooLargeError, UnsupportedFileTypeError, SpreadsheetParseError,
            EmptySpreadsheetError
        """
        if len(content) > self.max_upload_bytes:
            raise FileTooLargeError(len(content), self.max_upload_bytes)

        detect_file_type(filename)

        logger.info("supply_parse_started", filename=filename, location_id=location_id)

        sheet = read_spreadsheet(content, filename)
        by_field = mapping_by_field(detect_columns(sheet.headers))
        columns = [by_field[f] for f in SUPPLY_FIELDS]

        warnings = []
        if not by_field[CanonicalField.SKU].is_mapped:
            warnings.append("No SKU/Code column detected.")
        if not by_field[CanonicalField.QUANTITY].is_mapped:
            warnings.append("No Quantity column detected.")

        catalog = self.supplies.get_catalog()
        existing_inventory = {}
        if location_id:
            existing_inventory = {
                supply_id: record.qty_on_hand
                for supply_id, record in self.inventory.get_by_location(location_id).items()
            }

        rows: list[SupplyParsedRow] = []
        empty_rows = 0
        lines_by_sku: dict[str, list[int]] = defaultdict(list)

        for offset, raw in enumerate(sheet.rows):
            line = offset + FIRST_DATA_LINE
            sku = clean_cell(_cell(raw, by_field[CanonicalField.SKU]))
            name = clean_cell(_cell(raw, by_field[CanonicalField.ITEM_NAME]))

            if not sku and not name:
                empty_rows += 1
                continue

            quantity, qty_warning = 0, None
            if by_field[CanonicalField.QUANTITY].is_mapped:
                quantity, qty_warning = parse_quantity(_cell(raw, by_field[CanonicalField.QUANTITY]))

            row_warnings = []
            if not sku:
                row_warnings.append("Missing SKU")
            if qty_warning:
                row_warnings.append(qty_warning)

            existing = catalog.get(sku.lower()) if sku else None
            if sku:
                lines_by_sku[sku].append(line)

            rows.append(SupplyParsedRow(
                row_index=line,
                sku=sku,
                name=name or (existing.name if existing and existing.name else sku),
                quantity=quantity,
                warnings=row_warnings,
                existing_supply_id=existing.id if existing else None,
                existing_supply_name=existing.name if existing else None,
                is_new=bool(sku) and existing is None,
            ))

        # Duplicates are kept; applying them in order leaves the last count
        duplicate_skus = []
        for sku, lines in lines_by_sku.items():
            if len(lines) < 2:
                continue
            duplicate_skus.append(sku)
            warnings.append(f'Duplicate SKU "{sku}" on rows {", ".join(str(n) for n in lines)}')
            for row in rows:
                if row.sku == sku:
                    row.warnings.append(f"Duplicate SKU (appears {len(lines)} times)")

        stats = SupplyImportStats(
            total_rows=len(sheet.rows),
            valid_rows=len(rows),
            empty_rows=empty_rows,
            matched_supplies=sum(1 for r in rows if r.existing_supply_id),
            new_supplies=sum(1 for r in rows if r.is_new),
            duplicate_skus=duplicate_skus,
        )

        logger.info(
            "supply_parse_completed",
            filename=filename,
            rows=len(rows),
            new_supplies=stats.new_supplies,
            duplicates=len(duplicate_skus)
        )

        return SupplyParsePreviewResponse(
            filename=filename,
            file_type=sheet.file_type,
            columns=columns,
            rows=rows,
            warnings=warnings,
            existing_inventory=existing_inventory,
            stats=stats,
        )

    # ===================
    # APPLY
    # ===================

    def apply(self, request: SupplyApplyRequest) -> SupplyApplyResponse:
        """
        Create unknown supplies and replace counted quantities.

        Raises:
            ValidationError: No location, or no included rows
        """
        if not request.location_id:
            raise ValidationError("Location is required", code="LOCATION_REQUIRED", status_code=400)

        rows = [row for row in request.rows if row.included]
        if not rows:
            raise ValidationError("No rows selected for import", code="NO_ROWS_SELECTED", status_code=400)

        logger.info("supply_apply_started", location_id=request.location_id, rows=len(rows))

        catalog = self.supplies.get_catalog()
        stock = self.inventory.get_by_location(request.location_id)
        stats = SupplyApplyStats()
        errors: list[RowError] = []

        for row in rows:
            sku = row.sku.strip()
            if not sku:
                stats.rows_skipped += 1
                errors.append(RowError(row=row.row_index, sku="", error="Missing SKU, skipped"))
                continue

            try:
                created = self._apply_row(row, sku, request.location_id, catalog, stock)
                stats.supplies_created += int(created)
                stats.inventory_updated += 1
            except ROW_ERRORS as e:
                message = e.message if isinstance(e, AppError) else str(e)
                stats.rows_skipped += 1
                errors.append(RowError(row=row.row_index, sku=sku, error=message))
                logger.warning("supply_row_skipped", row=row.row_index, sku=sku, error=message)

        stats.errors_count = len(errors)

        logger.info(
            "supply_apply_completed",
            location_id=request.location_id,
            supplies_created=stats.supplies_created,
            inventory_updated=stats.inventory_updated,
            rows_skipped=stats.rows_skipped
        )

        return SupplyApplyResponse(stats=stats, errors=errors)

    def _apply_row(
        self,
        row: SupplyApplyRow,
        sku: str,
        location_id: str,
        catalog: dict[str, SupplySnapshot],
        stock: dict,
    ) -> bool:
        """Write one row. Returns True when the supply had to be created."""
        if row.quantity < 0:
            raise ValidationError(
                f"Quantity cannot be negative ({row.quantity})",
                code="NEGATIVE_QUANTITY"
            )

        created = False
        supply = catalog.get(sku.lower())
        supply_id = row.existing_supply_id or (supply.id if supply else None)

        if supply_id is None:
            try:
                supply = self.supplies.create(sku, row.name or sku, row.category)
            except AppError as e:
                raise ValidationError(
                    f"Failed to create supply: {e.message}",
                    code="SUPPLY_CREATE_FAILED"
                )
            catalog[supply.sku_key] = supply
            supply_id = supply.id
            created = True

        existing = stock.get(supply_id)
        if existing:
            self.inventory.replace_quantity(existing.id, row.quantity)
            stock[supply_id] = existing.model_copy(update={"qty_on_hand": row.quantity})
        else:
            stock[supply_id] = self.inventory.create(supply_id, location_id, row.quantity)

        return created


def _cell(raw: dict[str, str], mapping: ColumnMapping) -> str:
    if not mapping.is_mapped:
        return ""
    return raw.get(mapping.header, "")


_supply_import_service: Optional[SupplyImportService] = None


def get_supply_import_service() -> SupplyImportService:
    """Get or create SupplyImportService instance."""
    global _supply_import_service
    if _supply_import_service is None:
        _supply_import_service = SupplyImportService()
    return _supply_import_service
