"""
Packaging supply store.

Warehouse supplies (boxes, tape, mailers) sometimes show up in client count
sheets, where their rows are flagged in the preview. They are also counted
on their own through the supply import.
"""

from typing import Optional
import structlog

from config import get_supabase_client
from models.supply_import import SupplySnapshot
from exceptions import DatabaseError

logger = structlog.get_logger(__name__)

DEFAULT_CATEGORY = "other"


class SupplyService:
    def __init__(self):
        self.db = get_supabase_client()
        self.table = "supplies"

    def get_active_sku_map(self) -> dict[str, str]:
        """Lowercase SKU -> supply name for active supplies."""
        try:
            result = (
                self.db.table(self.table)
                .select("sku, name")
                .eq("is_active", True)
                .execute()
            )
            return {
                row["sku"].lower(): row.get("name") or row["sku"]
                for row in result.data
                if row.get("sku")
            }
        except Exception as e:
            logger.error("get_supply_skus_failed", error=str(e))
            raise DatabaseError("select", str(e))

    def get_catalog(self) -> dict[str, SupplySnapshot]:
        """
        Every supply keyed by lowercase SKU, active or not.

        If two supplies share a SKU ignoring case, the first one read wins.
        """
        try:
            result = (
                self.db.table(self.table)
                .select("id, sku, name")
                .order("sku")
                .execute()
            )

            catalog: dict[str, SupplySnapshot] = {}
            for row in result.data:
                if not row.get("sku"):
                    continue
                supply = SupplySnapshot(**row)
                catalog.setdefault(supply.sku_key, supply)

            logger.info("supply_catalog_retrieved", count=len(catalog))

            return catalog

        except Exception as e:
            logger.error("get_supply_catalog_failed", error=str(e))
            raise DatabaseError("select", str(e))

    def create(self, sku: str, name: str, category: Optional[str] = None) -> SupplySnapshot:
        """
        Create a non-standard, zero-priced active supply.

        Returns:
            Created SupplySnapshot
        """
        logger.info("creating_supply", sku=sku, category=category or DEFAULT_CATEGORY)

        try:
            result = (
                self.db.table(self.table)
                .insert({
                    "sku": sku,
                    "name": name,
                    "category": category or DEFAULT_CATEGORY,
                    "base_price": 0,
                    "cost": 0,
                    "unit": "each",
                    "is_standard": False,
                    "is_active": True,
                    "sort_order": 0,
                    "industries": [],
                })
                .execute()
            )

            if not result.data:
                raise DatabaseError("insert", "no row returned")

            return SupplySnapshot(**result.data[0])

        except DatabaseError:
            raise
        except Exception as e:
            logger.error("create_supply_failed", sku=sku, error=str(e))
            raise DatabaseError("insert", str(e))


_supply_service: Optional[SupplyService] = None


def get_supply_service() -> SupplyService:
    global _supply_service
    if _supply_service is None:
        _supply_service = SupplyService()
    return _supply_service
