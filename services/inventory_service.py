"""
Inventory service for a single location.

Quantities written by imports are absolute counts: the on-hand value is
replaced, never incremented.
"""

from typing import Optional
from datetime import datetime, timezone
import structlog

from config import get_supabase_client, settings
from models.inventory import InventoryRecord, LocationInventoryItem
from exceptions import DatabaseError

logger = structlog.get_logger(__name__)


class InventoryService:
    """
    Inventory business logic.

    Handles per-location reads and quantity replacement.
    """

    def __init__(self, page_size: Optional[int] = None):
        self.db = get_supabase_client()
        self.table = "inventory"
        self.page_size = page_size or settings.catalog_page_size

    # ===================
    # READ OPERATIONS
    # ===================

    def get_by_location(self, location_id: str) -> dict[str, InventoryRecord]:
        """
        Inventory rows at a location keyed by product_id.

        Args:
            location_id: Location UUID

        Returns:
            Dict of product_id -> InventoryRecord
        """
        logger.debug("getting_location_inventory", location_id=location_id)

        try:
            records = {}
            for row in self._location_rows("id, product_id, qty_on_hand", location_id):
                record = InventoryRecord(**row)
                records.setdefault(record.product_id, record)

            logger.info("location_inventory_retrieved", location_id=location_id, count=len(records))

            return records

        except Exception as e:
            logger.error("get_location_inventory_failed", location_id=location_id, error=str(e))
            raise DatabaseError("select", str(e))

    def get_location_items(self, location_id: str) -> list[LocationInventoryItem]:
        """
        Inventory rows at a location joined with product SKU and name.

        Used for discrepancy detection in update imports.
        """
        logger.debug("getting_location_inventory_items", location_id=location_id)

        try:
            rows = self._location_rows(
                "id, product_id, qty_on_hand, product:products!inner(id, sku, name)",
                location_id
            )

            items = []
            for row in rows:
                product = row.pop("product", None) or {}
                if not product.get("sku"):
                    continue
                items.append(LocationInventoryItem(
                    **row,
                    sku=product["sku"],
                    name=product.get("name"),
                ))

            return items

        except Exception as e:
            logger.error("get_location_inventory_items_failed", location_id=location_id, error=str(e))
            raise DatabaseError("select", str(e))

    def _location_rows(self, columns: str, location_id: str) -> list[dict]:
        """Every row at a location, paged since PostgREST caps a single response."""
        rows: list[dict] = []
        offset = 0

        while True:
            result = (
                self.db.table(self.table)
                .select(columns)
                .eq("location_id", location_id)
                .order("id")
                .range(offset, offset + self.page_size - 1)
                .execute()
            )
            rows.extend(result.data)

            if len(result.data) < self.page_size:
                return rows
            offset += self.page_size

    # ===================
    # WRITE OPERATIONS
    # ===================

    def replace_quantity(self, inventory_id: str, qty_on_hand: int) -> None:
        """
        Overwrite qty_on_hand on an existing inventory row.

        Args:
            inventory_id: Inventory UUID
            qty_on_hand: New absolute quantity
        """
        try:
            (
                self.db.table(self.table)
                .update({
                    "qty_on_hand": qty_on_hand,
                    "updated_at": datetime.now(timezone.utc).isoformat(),
                })
                .eq("id", inventory_id)
                .execute()
            )

            logger.debug("inventory_quantity_replaced", inventory_id=inventory_id, qty=qty_on_hand)

        except Exception as e:
            logger.error("replace_inventory_quantity_failed", inventory_id=inventory_id, error=str(e))
            raise DatabaseError("update", str(e))

    def create(self, product_id: str, location_id: str, qty_on_hand: int) -> InventoryRecord:
        """
        Create an available inventory row for a product at a location.

        Returns:
            Created InventoryRecord
        """
        try:
            result = (
                self.db.table(self.table)
                .insert({
                    "product_id": product_id,
                    "location_id": location_id,
                    "qty_on_hand": qty_on_hand,
                    "qty_reserved": 0,
                    "status": "available",
                })
                .execute()
            )

            if not result.data:
                raise DatabaseError("insert", "no row returned")

            record = InventoryRecord(**result.data[0])

            logger.debug("inventory_created", inventory_id=record.id, product_id=product_id)

            return record

        except DatabaseError:
            raise
        except Exception as e:
            logger.error("create_inventory_failed", product_id=product_id, error=str(e))
            raise DatabaseError("insert", str(e))


# Singleton instance for convenience
_inventory_service: Optional[InventoryService] = None


def get_inventory_service() -> InventoryService:
    """Get or create InventoryService instance."""
    global _inventory_service
    if _inventory_service is None:
        _inventory_service = InventoryService()
    return _inventory_service
