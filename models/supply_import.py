"""
Packaging supply import schemas.

Supplies (boxes, tape, mailers) are counted with the same spreadsheet flow
as client products, but with no brands, no clients and no audit record.
"""

from pydantic import Field, field_validator
from typing import Optional

from models.base import BaseSchema, ApiSchema
from models.spreadsheet_import import ColumnMapping, FileType, RowError


class SupplySnapshot(BaseSchema):
    """Supply row used for SKU resolution."""

    id: str = Field(..., description="Supply UUID")
    sku: str = Field(..., description="Supply SKU (case preserved)")
    name: Optional[str] = Field(None, description="Supply name")

    @property
    def sku_key(self) -> str:
        return self.sku.lower()


class SupplyInventoryRecord(BaseSchema):
    """Supply inventory row for one supply at one location."""

    id: str
    supply_id: str
    qty_on_hand: int = 0

    @field_validator("qty_on_hand", mode="before")
    @classmethod
    def coerce_quantity(cls, v) -> int:
        if v is None:
            return 0
        return int(round(float(v)))


# ===================
# PARSE PHASE
# ===================

class SupplyParsedRow(ApiSchema):
    row_index: int = Field(..., ge=1)
    sku: str = ""
    name: str = ""
    quantity: int = Field(default=0, ge=0)
    warnings: list[str] = Field(default_factory=list)
    existing_supply_id: Optional[str] = None
    existing_supply_name: Optional[str] = None
    is_new: bool = False


class SupplyImportStats(ApiSchema):
    total_rows: int = 0
    valid_rows: int = 0
    empty_rows: int = 0
    matched_supplies: int = 0
    new_supplies: int = 0
    duplicate_skus: list[str] = Field(default_factory=list)


class SupplyParsePreviewResponse(ApiSchema):
    success: bool = True
    filename: str
    file_type: FileType
    columns: list[ColumnMapping]
    rows: list[SupplyParsedRow]
    warnings: list[str] = Field(default_factory=list)
    existing_inventory: dict[str, int] = Field(
        default_factory=dict,
        description="supply_id -> qty_on_hand at the location"
    )
    stats: SupplyImportStats


# ===================
# APPLY PHASE
# ===================

class SupplyApplyRow(ApiSchema):
    """Confirmed supply row. A negative quantity fails only this row."""

    row_index: int = 0
    sku: str = ""
    name: str = ""
    quantity: int = 0
    existing_supply_id: Optional[str] = None
    included: bool = True
    category: Optional[str] = Field(None, max_length=50)


class SupplyApplyRequest(ApiSchema):
    filename: str = Field(..., min_length=1, max_length=255)
    file_type: FileType
    location_id: Optional[str] = None
    rows: list[SupplyApplyRow] = Field(default_factory=list)


class SupplyApplyStats(ApiSchema):
    supplies_created: int = 0
    inventory_updated: int = 0
    rows_skipped: int = 0
    errors_count: int = 0


class SupplyApplyResponse(ApiSchema):
    success: bool = True
    stats: SupplyApplyStats
    errors: list[RowError] = Field(default_factory=list)
