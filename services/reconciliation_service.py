"""
Reconciliation of confirmed spreadsheet rows.

Applies an import row by row, in file order:
    1. Resolve the owning client (row override, then brand map)
    2. Find the product by SKU, creating it if the catalog lacks it
    3. Replace the inventory quantity at the location
    4. Log the change to activity_log

Rows are not transactional. A row that fails is recorded in the outcome
and skipped; everything before it stays written. Confirmed brand -> client
mappings are saved as aliases once all rows are processed.
"""

from dataclasses import dataclass, field
from typing import Optional
import structlog
from pydantic import ValidationError as SchemaValidationError

from config import ContainerTypeMapping, get_container_type_mapping
from models.inventory import InventoryRecord
from models.product import ProductCreate, ProductSnapshot
from models.spreadsheet_import import (
    AppliedRow,
    ApplyRow,
    ApplyStats,
    DiscrepancyClass,
    DiscrepancyRow,
    ImportStatus,
    ImportType,
    RowError,
)
from services.activity_log_service import ActivityLogService, get_activity_log_service
from services.brand_alias_service import BrandAliasService, get_brand_alias_service
from services.import_record_service import ImportRecordService, get_import_record_service
from services.inventory_service import InventoryService, get_inventory_service
from services.product_service import ProductService, get_product_service
from exceptions import AppError, ValidationError
from utils.text_utils import normalize_brand

logger = structlog.get_logger(__name__)

ACTIVITY_ACTIONS = {
    ImportType.BASELINE: "spreadsheet_baseline_import",
    ImportType.UPDATE: "spreadsheet_ground_count",
}

# Failures that belong to one row rather than the whole import
ROW_ERRORS = (AppError, SchemaValidationError)


@dataclass
class ApplyOutcome:
    """Accumulated result of one apply run."""
    products_created: int = 0
    products_updated: int = 0
    inventory_updated: int = 0
    rows_skipped: int = 0
    discrepancies: list[DiscrepancyRow] = field(default_factory=list)
    errors: list[RowError] = field(default_factory=list)
    applied: list[AppliedRow] = field(default_factory=list)

    @property
    def status(self) -> ImportStatus:
        if self.inventory_updated == 0:
            return ImportStatus.FAILED
        return ImportStatus.COMPLETED

    def skip(self, row: ApplyRow, error: str) -> None:
        self.rows_skipped += 1
        self.errors.append(RowError(row=row.row_index, sku=row.sku, error=error))

    def to_stats(self) -> ApplyStats:
        return ApplyStats(
            products_created=self.products_created,
            products_updated=self.products_updated,
            inventory_updated=self.inventory_updated,
            rows_skipped=self.rows_skipped,
            errors_count=len(self.errors),
            discrepancies_count=len(self.discrepancies),
        )


class ReconciliationService:
    """
    Writes a confirmed import to products, inventory and the audit trail.

    Collaborators are injectable for tests; defaults are the module
    singletons.
    """

    def __init__(
        self,
        product_service: Optional[ProductService] = None,
        inventory_service: Optional[InventoryService] = None,
        activity_log_service: Optional[ActivityLogService] = None,
        brand_alias_service: Optional[BrandAliasService] = None,
        import_record_service: Optional[ImportRecordService] = None,
        container_types: Optional[ContainerTypeMapping] = None,
    ):
        self.products = product_service or get_product_service()
        self.inventory = inventory_service or get_inventory_service()
        self.activity_log = activity_log_service or get_activity_log_service()
        self.aliases = brand_alias_service or get_brand_alias_service()
        self.import_records = import_record_service or get_import_record_service()
        self.container_types = container_types or get_container_type_mapping()

    def apply(
        self,
        import_id: str,
        rows: list[ApplyRow],
        brand_client_map: dict[str, Optional[str]],
        import_type: ImportType,
        location_id: str,
        performed_by: Optional[str] = None,
    ) -> ApplyOutcome:
        """
        Apply rows and close the import record.

        Args:
            import_id: Audit record opened by the caller (status processing)
            rows: Included rows, in file order
            brand_client_map: Confirmed brand text -> client id (or None)
            import_type: Baseline or update
            location_id: Location whose inventory is replaced
            performed_by: User id recorded in the activity log

        Returns:
            ApplyOutcome with counters, apply-time discrepancies and errors
        """
        logger.info(
            "import_apply_started",
            import_id=import_id,
            import_type=import_type.value,
            location_id=location_id,
            rows=len(rows)
        )

        outcome = ApplyOutcome()
        # Spellings that collapse to one key never lose a confirmed client to a null
        client_by_brand: dict[str, Optional[str]] = {}
        for brand, client_id in brand_client_map.items():
            key = normalize_brand(brand)
            if client_id or key not in client_by_brand:
                client_by_brand[key] = client_id

        # Snapshots taken once; rows created below are added as they go
        catalog = self.products.get_catalog_snapshot()
        stock = self.inventory.get_by_location(location_id)

        for row in rows:
            if not row.sku.strip():
                outcome.skip(row, "Missing SKU, skipped")
                logger.debug("row_skipped", import_id=import_id, row=row.row_index, reason="missing_sku")
                continue

            try:
                self._apply_row(
                    import_id, row, client_by_brand, import_type,
                    location_id, catalog, stock, outcome, performed_by
                )
            except ROW_ERRORS as e:
                message = e.message if isinstance(e, AppError) else _schema_error_message(e)
                outcome.skip(row, message)
                logger.warning(
                    "row_skipped",
                    import_id=import_id,
                    row=row.row_index,
                    sku=row.sku,
                    error=message
                )

        self._save_aliases(brand_client_map, outcome)

        # Rows are already written; a record that cannot be closed stays
        # processing and the caller still gets the outcome
        try:
            self.import_records.complete(
                import_id,
                status=outcome.status,
                products_created=outcome.products_created,
                products_updated=outcome.products_updated,
                inventory_updated=outcome.inventory_updated,
                rows_skipped=outcome.rows_skipped,
                discrepancies=outcome.discrepancies,
                errors=outcome.errors,
                applied_data=outcome.applied,
            )
        except AppError as e:
            outcome.errors.append(RowError(
                row=None,
                sku="",
                error=f"Import record not updated: {e.message}",
            ))
            logger.error("import_record_complete_failed", import_id=import_id, error=e.message)

        logger.info(
            "import_apply_completed",
            import_id=import_id,
            status=outcome.status.value,
            products_created=outcome.products_created,
            inventory_updated=outcome.inventory_updated,
            rows_skipped=outcome.rows_skipped,
            errors=len(outcome.errors)
        )

        return outcome

    # ===================
    # PER ROW
    # ===================

    def _apply_row(
        self,
        import_id: str,
        row: ApplyRow,
        client_by_brand: dict[str, Optional[str]],
        import_type: ImportType,
        location_id: str,
        catalog: dict[str, ProductSnapshot],
        stock: dict[str, InventoryRecord],
        outcome: ApplyOutcome,
        performed_by: Optional[str],
    ) -> None:
        if row.ground_inventory < 0:
            raise ValidationError(
                f"Quantity cannot be negative ({row.ground_inventory})",
                code="NEGATIVE_QUANTITY"
            )

        sku = row.sku.strip()
        sku_key = sku.lower()
        name = row.item or sku
        client_id = row.client_id or client_by_brand.get(normalize_brand(row.brand))

        product = catalog.get(sku_key)
        if product is None:
            product = self._create_product(row, sku, name, client_id)
            catalog[sku_key] = product
            outcome.products_created += 1
        elif import_type == ImportType.UPDATE and row.item and row.item != product.name:
            self.products.update_name(product.id, row.item)
            catalog[sku_key] = product.model_copy(update={"name": row.item})
            outcome.products_updated += 1

        existing = stock.get(product.id)
        previous_qty = existing.qty_on_hand if existing else None

        if existing:
            if existing.qty_on_hand != row.ground_inventory:
                outcome.discrepancies.append(DiscrepancyRow(
                    sku=sku,
                    name=row.item or product.name or sku,
                    product_id=product.id,
                    sheet_qty=row.ground_inventory,
                    system_qty=existing.qty_on_hand,
                    difference=row.ground_inventory - existing.qty_on_hand,
                    classification=DiscrepancyClass.DISCREPANCY,
                ))
            self.inventory.replace_quantity(existing.id, row.ground_inventory)
            stock[product.id] = existing.model_copy(update={"qty_on_hand": row.ground_inventory})
        else:
            stock[product.id] = self.inventory.create(product.id, location_id, row.ground_inventory)

        outcome.inventory_updated += 1
        outcome.applied.append(AppliedRow(
            sku=sku,
            name=name,
            action="updated" if existing else "created",
            qty=row.ground_inventory,
            client_id=client_id,
        ))

        # The quantity is already written; a logging failure does not skip the row
        try:
            self.activity_log.append(
                entity_type="inventory",
                entity_id=product.id,
                action=ACTIVITY_ACTIONS[import_type],
                details={
                    "import_id": import_id,
                    "sku": sku,
                    "name": row.item,
                    "qty_set": row.ground_inventory,
                    "previous_qty": previous_qty,
                    "client_id": client_id,
                },
                performed_by=performed_by,
            )
        except AppError as e:
            outcome.errors.append(RowError(
                row=row.row_index,
                sku=sku,
                error=f"Activity log failed: {e.message}",
            ))

    def _create_product(
        self,
        row: ApplyRow,
        sku: str,
        name: str,
        client_id: Optional[str],
    ) -> ProductSnapshot:
        override = (row.container_type or "").strip().lower()
        if override and not self.container_types.is_known(override):
            raise ValidationError(
                f'Unknown container type "{row.container_type}"',
                code="UNKNOWN_CONTAINER_TYPE"
            )
        container_type = override or self.container_types.infer(row.unit)
        data = ProductCreate(
            sku=sku,
            name=name,
            client_id=client_id,
            container_type=container_type,
            units_per_case=self.container_types.units_per_case(container_type),
        )
        try:
            return self.products.create(data)
        except AppError as e:
            raise ValidationError(
                f"Failed to create product: {e.message}",
                code="PRODUCT_CREATE_FAILED"
            )

    # ===================
    # ALIASES
    # ===================

    def _save_aliases(
        self,
        brand_client_map: dict[str, Optional[str]],
        outcome: ApplyOutcome,
    ) -> None:
        """Remember confirmed brand -> client mappings for future imports."""
        for brand, client_id in brand_client_map.items():
            if not client_id or not normalize_brand(brand):
                continue
            try:
                self.aliases.upsert(brand, client_id)
            except AppError as e:
                outcome.errors.append(RowError(
                    row=None,
                    sku="",
                    error=f'Brand alias "{brand}" not saved: {e.message}',
                ))
                logger.warning("brand_alias_save_failed", brand=brand, error=e.message)


def _schema_error_message(error: SchemaValidationError) -> str:
    first = error.errors()[0] if error.errors() else {}
    return first.get("msg") or str(error)


_reconciliation_service: Optional[ReconciliationService] = None


def get_reconciliation_service() -> ReconciliationService:
    """Get or create ReconciliationService instance."""
    global _reconciliation_service
    if _reconciliation_service is None:
        _reconciliation_service = ReconciliationService()
    return _reconciliation_service
