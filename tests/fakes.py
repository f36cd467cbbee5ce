"""
In-memory stand-ins for the product and inventory stores.

Used by reconciliation tests, which need stores that remember writes
across rows and across repeated applies.
"""

from itertools import count
from typing import Optional

from models.inventory import InventoryRecord
from models.product import ProductCreate, ProductSnapshot
from exceptions import DatabaseError


class InMemoryProducts:
    """Stands in for ProductService in reconciliation tests."""

    def __init__(self, products: Optional[list[dict]] = None):
        self._ids = count(1)
        self.rows: dict[str, dict] = {}
        self.created: list[ProductCreate] = []
        self.renamed: list[tuple[str, str]] = []
        self.fail_skus: set[str] = set()
        for product in products or []:
            self.rows[product["id"]] = dict(product)

    def get_catalog_snapshot(self) -> dict[str, ProductSnapshot]:
        catalog = {}
        for row in self.rows.values():
            snapshot = ProductSnapshot(**row)
            catalog.setdefault(snapshot.sku_key, snapshot)
        return catalog

    def get_sku_keys(self) -> set[str]:
        return set(self.get_catalog_snapshot())

    def create(self, data: ProductCreate) -> ProductSnapshot:
        if data.sku in self.fail_skus:
            raise DatabaseError("insert", "duplicate key value violates unique constraint")
        product_id = f"product-{next(self._ids)}"
        self.rows[product_id] = {
            "id": product_id,
            "sku": data.sku,
            "name": data.name,
            "client_id": data.client_id,
            "container_type": data.container_type,
            "units_per_case": data.units_per_case,
        }
        self.created.append(data)
        return ProductSnapshot(**self.rows[product_id])

    def update_name(self, product_id: str, name: str) -> None:
        self.rows[product_id]["name"] = name
        self.renamed.append((product_id, name))


class InMemoryInventory:
    """Stands in for InventoryService in reconciliation tests."""

    def __init__(self, records: Optional[list[dict]] = None):
        self._ids = count(1)
        self.rows: dict[str, dict] = {}
        self.fail_product_ids: set[str] = set()
        for record in records or []:
            self.rows[record["id"]] = dict(record)

    def get_by_location(self, location_id: str) -> dict[str, InventoryRecord]:
        records = {}
        for row in self.rows.values():
            if row["location_id"] == location_id:
                records.setdefault(row["product_id"], InventoryRecord(**row))
        return records

    def replace_quantity(self, inventory_id: str, qty_on_hand: int) -> None:
        row = self.rows[inventory_id]
        if row["product_id"] in self.fail_product_ids:
            raise DatabaseError("update", "connection reset")
        row["qty_on_hand"] = qty_on_hand

    def create(self, product_id: str, location_id: str, qty_on_hand: int) -> InventoryRecord:
        if product_id in self.fail_product_ids:
            raise DatabaseError("insert", "connection reset")
        inventory_id = f"inventory-{next(self._ids)}"
        self.rows[inventory_id] = {
            "id": inventory_id,
            "product_id": product_id,
            "location_id": location_id,
            "qty_on_hand": qty_on_hand,
        }
        return InventoryRecord(**self.rows[inventory_id])

    def quantity(self, product_id: str, location_id: str) -> Optional[int]:
        for row in self.rows.values():
            if row["product_id"] == product_id and row["location_id"] == location_id:
                return row["qty_on_hand"]
        return None

