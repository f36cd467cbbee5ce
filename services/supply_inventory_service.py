"""
Supply inventory per location.

Same replace semantics as product inventory: a counted quantity overwrites
qty_on_hand.
"""

from typing import Optional
from datetime import datetime, timezone
import structlog

from config import get_supabase_client, settings
from models.supply_import import SupplyInventoryRecord
from exceptions import DatabaseError

logger = structlog.get_logger(__name__)


class SupplyInventoryService:
    def __init__(self, page_size: Optional[int] = None):
        self.db = get_supabase_client()
        self.table = "supply_inventory"
        self.page_size = page_size or settings.catalog_page_size

    def get_by_location(self, location_id: str) -> dict[str, SupplyInventoryRecord]:
        """
        Supply inventory at a location keyed by supply_id.

        Paged since PostgREST caps a single response.
        """
        try:
            records: dict[str, SupplyInventoryRecord] = {}
            offset = 0

            while True:
                result = (
                    self.db.table(self.table)
                    .select("id, supply_id, qty_on_hand")
                    .eq("location_id", location_id)
                    .order("id")
                    .range(offset, offset + self.page_size - 1)
                    .execute()
                )

                for row in result.data:
                    record = SupplyInventoryRecord(**row)
                    records.setdefault(record.supply_id, record)

                if len(result.data) < self.page_size:
                    break
                offset += self.page_size

            logger.info("supply_inventory_retrieved", location_id=location_id, count=len(records))

            return records

        except Exception as e:
            logger.error("get_supply_inventory_failed", location_id=location_id, error=str(e))
            raise DatabaseError("select", str(e))

    def replace_quantity(self, inventory_id: str, qty_on_hand: int) -> None:
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
        except Exception as e:
            logger.error("replace_supply_quantity_failed", inventory_id=inventory_id, error=str(e))
            raise DatabaseError("update", str(e))

    def create(self, supply_id: str, location_id: str, qty_on_hand: int) -> SupplyInventoryRecord:
        try:
            result = (
                self.db.table(self.table)
                .insert({
                    "supply_id": supply_id,
                    "location_id": location_id,
                    "qty_on_hand": qty_on_hand,
                    "reorder_point": 0,
                })
                .execute()
            )

            if not result.data:
                raise DatabaseError("insert", "no row returned")

            return SupplyInventoryRecord(**result.data[0])

        except DatabaseError:
            raise
        except Exception as e:
            logger.error("create_supply_inventory_failed", supply_id=supply_id, error=str(e))
            raise DatabaseError("insert", str(e))


_supply_inventory_service: Optional[SupplyInventoryService] = None


def get_supply_inventory_service() -> SupplyInventoryService:
    global _supply_inventory_service
    if _supply_inventory_service is None:
        _supply_inventory_service = SupplyInventoryService()
    return _supply_inventory_service
