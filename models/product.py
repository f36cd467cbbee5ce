"""
Product schemas used by the import pipeline.

Products are owned by the wider system; imports only read them by SKU
and create the ones a spreadsheet introduces.
"""

from pydantic import Field, field_validator
from typing import Optional

from models.base import BaseSchema


class ProductSnapshot(BaseSchema):
    """Minimal product row used for SKU resolution."""

    id: str = Field(..., description="Product UUID")
    sku: str = Field(..., description="Product SKU (case preserved)")
    name: Optional[str] = Field(None, description="Product name")
    client_id: Optional[str] = Field(None, description="Owning client UUID")

    @property
    def sku_key(self) -> str:
        return self.sku.lower()


class ProductCreate(BaseSchema):
    """
    Create a product discovered in a spreadsheet.

    Required: sku, name, container_type
    Optional: client_id
    """

    sku: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Product SKU (unique identifier)"
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="Product display name"
    )
    client_id: Optional[str] = Field(None, description="Owning client UUID")
    container_type: str = Field(..., min_length=1, max_length=50)
    units_per_case: int = Field(default=1, ge=1)

    @field_validator("sku")
    @classmethod
    def sku_not_blank(cls, v: str) -> str:
        """SKU keeps its case but cannot be only whitespace."""
        if not v.strip():
            raise ValueError("SKU cannot be blank")
        return v.strip()

    def to_insert(self) -> dict:
        """Row for the products table; pricing starts at zero."""
        return {
            "sku": self.sku,
            "name": self.name,
            "client_id": self.client_id,
            "container_type": self.container_type,
            "units_per_case": self.units_per_case,
            "unit_cost": 0,
            "base_price": 0,
            "reorder_point": 0,
            "active": True,
        }
