"""
Inventory schemas for a single location.
"""

from pydantic import Field, field_validator
from typing import Optional

from models.base import BaseSchema


class InventoryRecord(BaseSchema):
    """Inventory row for one product at one location."""

    id: str = Field(..., description="Inventory UUID")
    product_id: str = Field(..., description="Product UUID")
    qty_on_hand: int = Field(default=0, description="Quantity on hand")

    @field_validator("qty_on_hand", mode="before")
    @classmethod
    def coerce_quantity(cls, v) -> int:
        """Numeric columns may come back as float or None."""
        if v is None:
            return 0
        return int(round(float(v)))


class LocationInventoryItem(InventoryRecord):
    """Inventory row joined with its product, for discrepancy detection."""

    sku: str = Field(..., description="Product SKU")
    name: Optional[str] = Field(None, description="Product name")
