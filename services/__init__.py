"""
Business logic services.

Table gateways own one Supabase table each. brand_matcher and
discrepancy_service are pure functions over already-fetched data.
"""

from services.client_service import ClientService, get_client_service
from services.brand_alias_service import BrandAliasService, get_brand_alias_service
from services.product_service import ProductService, get_product_service
from services.supply_service import SupplyService, get_supply_service
from services.inventory_service import InventoryService, get_inventory_service
from services.supply_inventory_service import SupplyInventoryService, get_supply_inventory_service
from services.activity_log_service import ActivityLogService, get_activity_log_service
from services.import_record_service import ImportRecordService, get_import_record_service
from services.reconciliation_service import (
    ReconciliationService,
    ApplyOutcome,
    get_reconciliation_service,
)
from services.spreadsheet_import_service import (
    SpreadsheetImportService,
    get_spreadsheet_import_service,
)
from services.supply_import_service import SupplyImportService, get_supply_import_service

__all__ = [
    "ClientService",
    "get_client_service",
    "BrandAliasService",
    "get_brand_alias_service",
    "ProductService",
    "get_product_service",
    "SupplyService",
    "get_supply_service",
    "InventoryService",
    "get_inventory_service",
    "SupplyInventoryService",
    "get_supply_inventory_service",
    "ActivityLogService",
    "get_activity_log_service",
    "ImportRecordService",
    "get_import_record_service",
    "ReconciliationService",
    "ApplyOutcome",
    "get_reconciliation_service",
    "SpreadsheetImportService",
    "get_spreadsheet_import_service",
    "SupplyImportService",
    "get_supply_import_service",
]
