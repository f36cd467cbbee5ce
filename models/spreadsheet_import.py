"""
Spreadsheet import schemas.

Covers both phases of an inventory import:
    - parse: column mapping, parsed rows, brand suggestions, discrepancies
    - apply: confirmed rows in, audit record and stats out
"""

from pydantic import ConfigDict, Field
from typing import Optional
from enum import Enum
from datetime import datetime

from models.base import ApiSchema
from models.client import ClientOption


class ImportType(str, Enum):
    """Baseline = initial full load. Update = recount against current stock."""
    BASELINE = "baseline"
    UPDATE = "update"


class ImportStatus(str, Enum):
    """Audit record status. Terminal once it leaves PROCESSING."""
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class FileType(str, Enum):
    CSV = "csv"
    XLSX = "xlsx"
    XLS = "xls"


class CanonicalField(str, Enum):
    """Logical spreadsheet columns the pipeline understands."""
    SKU = "sku"
    ITEM_NAME = "item_name"
    BRAND = "brand"
    UNIT = "unit"
    QUANTITY = "quantity"


REQUIRED_FIELDS = [CanonicalField.SKU, CanonicalField.QUANTITY]


class MatchTier(str, Enum):
    """Column detection confidence, strongest first."""
    EXACT = "exact"
    SYNONYM = "synonym"
    POSITIONAL = "positional"
    UNMAPPED = "unmapped"

    @property
    def rank(self) -> int:
        """Higher is stronger: EXACT=3 ... UNMAPPED=0."""
        return {
            MatchTier.EXACT: 3,
            MatchTier.SYNONYM: 2,
            MatchTier.POSITIONAL: 1,
            MatchTier.UNMAPPED: 0,
        }[self]


class BrandConfidence(str, Enum):
    EXACT = "exact"
    ALIAS = "alias"
    FUZZY = "fuzzy"
    NONE = "none"


class DiscrepancyClass(str, Enum):
    MATCH = "match"
    DISCREPANCY = "discrepancy"
    NEW = "new"
    MISSING_FROM_SHEET = "missing_from_sheet"


# ===================
# PARSE PHASE
# ===================

class ColumnMapping(ApiSchema):
    """Which source header feeds a canonical field. Immutable once detected."""

    model_config = ConfigDict(frozen=True, validate_assignment=False)

    field: CanonicalField
    header: Optional[str] = Field(None, description="Matched source header")
    column_index: Optional[int] = Field(None, ge=0)
    confidence: MatchTier = MatchTier.UNMAPPED

    @property
    def is_mapped(self) -> bool:
        return self.header is not None


class ParsedRow(ApiSchema):
    """One cleaned spreadsheet line."""

    row_index: int = Field(..., ge=1, description="Spreadsheet line number (header is line 1)")
    sku: str = ""
    item_name: str = ""
    brand: str = ""
    unit: str = ""
    quantity: int = Field(default=0, ge=0)
    is_new_sku: bool = False
    is_supply: bool = False
    supply_name: Optional[str] = None
    warnings: list[str] = Field(default_factory=list)

    @property
    def sku_key(self) -> str:
        return self.sku.lower()


class BrandSuggestion(ApiSchema):
    brand: str
    client_id: Optional[str] = None
    client_name: Optional[str] = None
    confidence: BrandConfidence = BrandConfidence.NONE
    score: Optional[float] = Field(None, ge=0, le=100)


class DiscrepancyRow(ApiSchema):
    sku: str
    name: str = ""
    product_id: Optional[str] = None
    sheet_qty: int = 0
    system_qty: int = 0
    difference: int = 0
    classification: DiscrepancyClass


class DiscrepancyStats(ApiSchema):
    matches: int = 0
    discrepancies: int = 0
    new_skus: int = 0
    missing_from_sheet: int = 0


class ImportStats(ApiSchema):
    total_rows: int = 0
    valid_rows: int = 0
    empty_rows: int = 0
    duplicate_skus: int = 0
    duplicate_sku_list: list[str] = Field(default_factory=list)
    unique_brands: int = 0
    matched_brands: int = 0
    unmatched_brands: int = 0
    new_skus: int = 0
    supply_rows: int = 0


class ParsePreviewResponse(ApiSchema):
    """Everything the operator needs to review before applying."""

    success: bool = True
    filename: str
    file_type: FileType
    import_type: ImportType
    columns: list[ColumnMapping]
    unmapped_headers: list[str] = Field(default_factory=list)
    rows: list[ParsedRow]
    brand_suggestions: list[BrandSuggestion]
    discrepancies: list[DiscrepancyRow] = Field(default_factory=list)
    discrepancy_stats: Optional[DiscrepancyStats] = None
    stats: ImportStats
    warnings: list[str] = Field(default_factory=list)
    clients: list[ClientOption] = Field(default_factory=list)


# ===================
# APPLY PHASE
# ===================

class ApplyRow(ApiSchema):
    """
    A row as confirmed (and possibly edited) by the operator.

    Quantity is not range-checked here; a negative value fails that row
    during apply instead of rejecting the whole request.
    """

    row_index: int = 0
    sku: str = ""
    item: str = ""
    brand: str = ""
    unit: str = ""
    ground_inventory: int = 0
    client_id: Optional[str] = None
    included: bool = True
    container_type: Optional[str] = None


class ApplyRequest(ApiSchema):
    filename: str = Field(..., min_length=1, max_length=255)
    file_type: FileType
    import_type: ImportType
    location_id: Optional[str] = None
    rows: list[ApplyRow] = Field(default_factory=list)
    brand_client_map: dict[str, Optional[str]] = Field(default_factory=dict)
    notes: Optional[str] = Field(None, max_length=1000)


class RowError(ApiSchema):
    """Row-level failure. row is None for batch-level errors (alias upserts, record close)."""
    row: Optional[int] = None
    sku: str = ""
    error: str


class AppliedRow(ApiSchema):
    sku: str
    name: str
    action: str
    qty: int
    client_id: Optional[str] = None


class ApplyStats(ApiSchema):
    products_created: int = 0
    products_updated: int = 0
    inventory_updated: int = 0
    rows_skipped: int = 0
    errors_count: int = 0
    discrepancies_count: int = 0


class ApplyResponse(ApiSchema):
    success: bool = True
    import_id: str
    status: ImportStatus
    stats: ApplyStats
    discrepancies: list[DiscrepancyRow] = Field(default_factory=list)
    errors: list[RowError] = Field(default_factory=list)


# ===================
# AUDIT HISTORY
# ===================

class ImportSummary(ApiSchema):
    id: str
    filename: str
    file_type: str
    import_type: ImportType
    status: ImportStatus
    total_rows: int = 0
    products_created: int = 0
    products_updated: int = 0
    inventory_updated: int = 0
    rows_skipped: int = 0
    created_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    notes: Optional[str] = None


class ImportDetail(ImportSummary):
    discrepancies: list[DiscrepancyRow] = Field(default_factory=list)
    errors: list[RowError] = Field(default_factory=list)
    applied_data: list[AppliedRow] = Field(default_factory=list)
    brand_client_map: dict[str, Optional[str]] = Field(default_factory=dict)
    location_id: Optional[str] = None
    imported_by: Optional[str] = None
