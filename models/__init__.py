"""
Pydantic models for validation and serialization.
"""

from models.base import (
    BaseSchema,
    ApiSchema,
)
from models.client import (
    ClientForMatching,
    ClientOption,
    BrandAlias,
    BrandAliasResponse,
    CreateClientRequest,
    CreateClientResponse,
)
from models.product import (
    ProductSnapshot,
    ProductCreate,
)
from models.inventory import (
    InventoryRecord,
    LocationInventoryItem,
)
from models.spreadsheet_import import (
    ImportType,
    ImportStatus,
    FileType,
    CanonicalField,
    REQUIRED_FIELDS,
    MatchTier,
    BrandConfidence,
    DiscrepancyClass,
    ColumnMapping,
    ParsedRow,
    BrandSuggestion,
    DiscrepancyRow,
    DiscrepancyStats,
    ImportStats,
    ParsePreviewResponse,
    ApplyRow,
    ApplyRequest,
    RowError,
    AppliedRow,
    ApplyStats,
    ApplyResponse,
    ImportSummary,
    ImportDetail,
)
from models.supply_import import (
    SupplySnapshot,
    SupplyInventoryRecord,
    SupplyParsedRow,
    SupplyImportStats,
    SupplyParsePreviewResponse,
    SupplyApplyRow,
    SupplyApplyRequest,
    SupplyApplyStats,
    SupplyApplyResponse,
)

__all__ = [
    # Base
    "BaseSchema",
    "ApiSchema",

    # Clients
    "ClientForMatching",
    "ClientOption",
    "BrandAlias",
    "BrandAliasResponse",
    "CreateClientRequest",
    "CreateClientResponse",

    # Products
    "ProductSnapshot",
    "ProductCreate",

    # Inventory
    "InventoryRecord",
    "LocationInventoryItem",

    # Spreadsheet import
    "ImportType",
    "ImportStatus",
    "FileType",
    "CanonicalField",
    "REQUIRED_FIELDS",
    "MatchTier",
    "BrandConfidence",
    "DiscrepancyClass",
    "ColumnMapping",
    "ParsedRow",
    "BrandSuggestion",
    "DiscrepancyRow",
    "DiscrepancyStats",
    "ImportStats",
    "ParsePreviewResponse",
    "ApplyRow",
    "ApplyRequest",
    "RowError",
    "AppliedRow",
    "ApplyStats",
    "ApplyResponse",
    "ImportSummary",
    "ImportDetail",

    # Supply import
    "SupplySnapshot",
    "SupplyInventoryRecord",
    "SupplyParsedRow",
    "SupplyImportStats",
    "SupplyParsePreviewResponse",
    "SupplyApplyRow",
    "SupplyApplyRequest",
    "SupplyApplyStats",
    "SupplyApplyResponse",
]
