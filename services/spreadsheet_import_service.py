"""
Spreadsheet inventory import orchestration.

Two phases:
    parse - read the upload, detect columns, clean rows, suggest brand ->
            client matches and (update imports) diff against the location.
            Read-only; returns a preview.
    apply - open an audit record and hand the operator-confirmed rows to
            the reconciliation service.
"""

from typing import Optional
import structlog

from config import settings
from models.client import CreateClientResponse, ClientOption
from models.spreadsheet_import import (
    ApplyRequest,
    ApplyResponse,
    BrandConfidence,
    ImportDetail,
    ImportStats,
    ImportSummary,
    ImportType,
    ParsePreviewResponse,
)
from parsers.column_detector import detect_columns, missing_required, unmapped_headers
from parsers.row_normalizer import normalize_rows
from parsers.spreadsheet_reader import detect_file_type, read_spreadsheet
from services.brand_alias_service import BrandAliasService, get_brand_alias_service
from services.brand_matcher import match_brands, unique_brands
from services.client_service import ClientService, get_client_service
from services.discrepancy_service import classify_discrepancies, summarize
from services.import_record_service import ImportRecordService, get_import_record_service
from services.inventory_service import InventoryService, get_inventory_service
from services.product_service import ProductService, get_product_service
from services.reconciliation_service import ReconciliationService, get_reconciliation_service
from services.supply_service import SupplyService, get_supply_service
from exceptions import FileTooLargeError, MissingRequiredColumnsError, ValidationError

logger = structlog.get_logger(__name__)


class SpreadsheetImportService:
    """
    Entry point for spreadsheet inventory imports.

    Collaborators are injectable for tests; defaults are the module
    singletons.
    """

    def __init__(
        self,
        client_service: Optional[ClientService] = None,
        brand_alias_service: Optional[BrandAliasService] = None,
        product_service: Optional[ProductService] = None,
        supply_service: Optional[SupplyService] = None,
        inventory_service: Optional[InventoryService] = None,
        import_record_service: Optional[ImportRecordService] = None,
        reconciliation_service: Optional[ReconciliationService] = None,
        max_upload_bytes: Optional[int] = None,
        fuzzy_threshold: Optional[int] = None,
    ):
        self.clients = client_service or get_client_service()
        self.aliases = brand_alias_service or get_brand_alias_service()
        self.products = product_service or get_product_service()
        self.supplies = supply_service or get_supply_service()
        self.inventory = inventory_service or get_inventory_service()
        self.import_records = import_record_service or get_import_record_service()
        self.reconciliation = reconciliation_service or get_reconciliation_service()
        self.max_upload_bytes = max_upload_bytes or settings.max_upload_bytes
        self.fuzzy_threshold = fuzzy_threshold or settings.brand_fuzzy_threshold

    # ===================
    # PARSE
    # ===================

    def parse(
        self,
        content: bytes,
        filename: str,
        import_type: ImportType,
        location_id: Optional[str] = None,
    ) -> ParsePreviewResponse:
        """
        Build the import preview for an uploaded spreadsheet.

        Args:
            content: Uploaded file bytes
            filename: Original filename
            import_type: Baseline or update
            location_id: Required for update imports

        Returns:
            ParsePreviewResponse

        Raises:
            FileTooLargeError, UnsupportedFileTypeError, SpreadsheetParseError,
            EmptySpreadsheetError, MissingRequiredColumnsError, ValidationError
        """
        if len(content) > self.max_upload_bytes:
            raise FileTooLargeError(len(content), self.max_upload_bytes)

        detect_file_type(filename)

        if import_type == ImportType.UPDATE and not location_id:
            raise ValidationError(
                "Location is required for update imports",
                code="LOCATION_REQUIRED",
                status_code=400
            )

        logger.info(
            "import_parse_started",
            filename=filename,
            import_type=import_type.value,
            location_id=location_id
        )

        sheet = read_spreadsheet(content, filename)

        columns = detect_columns(sheet.headers)
        missing = missing_required(columns)
        if missing:
            logger.warning(
                "required_columns_missing",
                filename=filename,
                missing=[f.value for f in missing],
                headers=sheet.headers
            )
            raise MissingRequiredColumnsError([f.value for f in missing], sheet.headers)

        clients = self.clients.get_active()
        aliases = self.aliases.get_all()
        known_skus = self.products.get_sku_keys()
        supply_skus = self.supplies.get_active_sku_map()

        normalized = normalize_rows(
            sheet.rows,
            columns,
            known_skus=known_skus,
            supply_skus=supply_skus,
        )

        brands = unique_brands(normalized.rows)
        suggestions = match_brands(brands, clients, aliases, self.fuzzy_threshold)

        discrepancies = []
        discrepancy_stats = None
        if import_type == ImportType.UPDATE:
            location_items = self.inventory.get_location_items(location_id)
            discrepancies = classify_discrepancies(normalized.rows, location_items)
            discrepancy_stats = summarize(discrepancies)

        matched = sum(1 for s in suggestions if s.confidence != BrandConfidence.NONE)
        stats = ImportStats(
            total_rows=normalized.stats.total_raw_rows,
            valid_rows=normalized.stats.valid_rows,
            empty_rows=normalized.stats.empty_rows,
            duplicate_skus=normalized.stats.duplicate_skus,
            duplicate_sku_list=normalized.stats.duplicate_sku_list,
            unique_brands=len(brands),
            matched_brands=matched,
            unmatched_brands=len(suggestions) - matched,
            new_skus=sum(1 for r in normalized.rows if r.is_new_sku),
            supply_rows=sum(1 for r in normalized.rows if r.is_supply),
        )

        logger.info(
            "import_parse_completed",
            filename=filename,
            rows=len(normalized.rows),
            brands=len(brands),
            matched_brands=matched,
            discrepancies=len(discrepancies)
        )

        return ParsePreviewResponse(
            filename=filename,
            file_type=sheet.file_type,
            import_type=import_type,
            columns=columns,
            unmapped_headers=unmapped_headers(sheet.headers, columns),
            rows=normalized.rows,
            brand_suggestions=suggestions,
            discrepancies=discrepancies,
            discrepancy_stats=discrepancy_stats,
            stats=stats,
            warnings=normalized.warnings,
            clients=[
                ClientOption(id=c.id, name=c.company_name, industries=c.industries)
                for c in clients
            ],
        )

    # ===================
    # APPLY
    # ===================

    def apply(self, request: ApplyRequest, performed_by: Optional[str] = None) -> ApplyResponse:
        """
        Apply operator-confirmed rows to products and inventory.

        Raises:
            ValidationError: No location, or no included rows
        """
        if not request.location_id:
            raise ValidationError("Location is required", code="LOCATION_REQUIRED", status_code=400)

        rows = [row for row in request.rows if row.included]
        if not rows:
            raise ValidationError("No rows selected for import", code="NO_ROWS_SELECTED", status_code=400)

        import_id = self.import_records.create_processing(
            filename=request.filename,
            file_type=request.file_type,
            import_type=request.import_type,
            location_id=request.location_id,
            total_rows=len(rows),
            brand_client_map=request.brand_client_map,
            notes=request.notes,
            imported_by=performed_by,
        )

        try:
            outcome = self.reconciliation.apply(
                import_id,
                rows,
                request.brand_client_map,
                request.import_type,
                request.location_id,
                performed_by=performed_by,
            )
        except Exception as e:
            logger.error("import_apply_aborted", import_id=import_id, error=str(e))
            self.import_records.mark_failed(import_id, str(e))
            raise

        return ApplyResponse(
            import_id=import_id,
            status=outcome.status,
            stats=outcome.to_stats(),
            discrepancies=outcome.discrepancies,
            errors=outcome.errors,
        )

    # ===================
    # CLIENTS
    # ===================

    def create_client_for_brand(self, brand_name: str) -> CreateClientResponse:
        """
        Client for an unmatched brand: existing one by name, else a new one.
        """
        name = brand_name.strip()
        if not name:
            raise ValidationError("brandName is required", code="BRAND_NAME_REQUIRED", status_code=400)

        existing = self.clients.find_by_company_name(name)
        if existing:
            logger.info("client_for_brand_exists", brand=name, client_id=existing.id)
            return CreateClientResponse(
                id=existing.id,
                company_name=existing.company_name,
                already_existed=True,
            )

        client = self.clients.create_minimal(name)
        return CreateClientResponse(
            id=client.id,
            company_name=client.company_name,
            already_existed=False,
        )

    # ===================
    # HISTORY
    # ===================

    def list_imports(self, limit: int = 50) -> list[ImportSummary]:
        return self.import_records.list_recent(limit)

    def get_import(self, import_id: str) -> ImportDetail:
        return self.import_records.get(import_id)


_spreadsheet_import_service: Optional[SpreadsheetImportService] = None


def get_spreadsheet_import_service() -> SpreadsheetImportService:
    """Get or create SpreadsheetImportService instance."""
    global _spreadsheet_import_service
    if _spreadsheet_import_service is None:
        _spreadsheet_import_service = SpreadsheetImportService()
    return _spreadsheet_import_service
