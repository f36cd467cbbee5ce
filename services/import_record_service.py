"""
Spreadsheet import audit records.

One row in spreadsheet_imports per apply. Records are created as
processing, completed or failed exactly once, and never deleted.
"""

from typing import Any, Optional
from datetime import datetime, timezone
import structlog

from config import get_supabase_client
from models.spreadsheet_import import (
    AppliedRow,
    DiscrepancyRow,
    FileType,
    ImportDetail,
    ImportStatus,
    ImportSummary,
    ImportType,
    RowError,
)
from exceptions import DatabaseError, ImportNotFoundError

logger = structlog.get_logger(__name__)

SUMMARY_COLUMNS = (
    "id, filename, file_type, import_type, status, total_rows, "
    "products_created, products_updated, inventory_updated, rows_skipped, "
    "created_at, completed_at, notes"
)


def _dump(items: list) -> list[dict[str, Any]]:
    return [item.model_dump(mode="json") for item in items]


class ImportRecordService:
    """Import audit record store."""

    def __init__(self):
        self.db = get_supabase_client()
        self.table = "spreadsheet_imports"

    # ===================
    # LIFECYCLE
    # ===================

    def create_processing(
        self,
        filename: str,
        file_type: FileType,
        import_type: ImportType,
        location_id: Optional[str],
        total_rows: int,
        brand_client_map: dict[str, Optional[str]],
        notes: Optional[str] = None,
        imported_by: Optional[str] = None,
    ) -> str:
        """
        Open an audit record in processing state.

        Returns:
            The new import id
        """
        logger.info(
            "creating_import_record",
            filename=filename,
            import_type=import_type.value,
            total_rows=total_rows
        )

        try:
            result = (
                self.db.table(self.table)
                .insert({
                    "filename": filename,
                    "file_type": file_type.value,
                    "import_type": import_type.value,
                    "location_id": location_id,
                    "status": ImportStatus.PROCESSING.value,
                    "total_rows": total_rows,
                    "brand_client_map": brand_client_map,
                    "notes": notes,
                    "imported_by": imported_by,
                })
                .execute()
            )

            if not result.data:
                raise DatabaseError("insert", "no row returned")

            import_id = result.data[0]["id"]

            logger.info("import_record_created", import_id=import_id)

            return import_id

        except DatabaseError:
            raise
        except Exception as e:
            logger.error("create_import_record_failed", filename=filename, error=str(e))
            raise DatabaseError("insert", str(e))

    def complete(
        self,
        import_id: str,
        status: ImportStatus,
        products_created: int,
        products_updated: int,
        inventory_updated: int,
        rows_skipped: int,
        discrepancies: list[DiscrepancyRow],
        errors: list[RowError],
        applied_data: list[AppliedRow],
    ) -> None:
        """Write the outcome of an apply and close the record."""
        try:
            (
                self.db.table(self.table)
                .update({
                    "status": status.value,
                    "products_created": products_created,
                    "products_updated": products_updated,
                    "inventory_updated": inventory_updated,
                    "rows_skipped": rows_skipped,
                    "discrepancies": _dump(discrepancies),
                    "errors": _dump(errors),
                    "applied_data": _dump(applied_data),
                    "completed_at": datetime.now(timezone.utc).isoformat(),
                })
                .eq("id", import_id)
                .execute()
            )

            logger.info("import_record_completed", import_id=import_id, status=status.value)

        except Exception as e:
            logger.error("complete_import_record_failed", import_id=import_id, error=str(e))
            raise DatabaseError("update", str(e))

    def mark_failed(self, import_id: str, error: str) -> None:
        """Close a record whose apply aborted before completion."""
        try:
            (
                self.db.table(self.table)
                .update({
                    "status": ImportStatus.FAILED.value,
                    "errors": [{"row": None, "sku": "", "error": error}],
                    "completed_at": datetime.now(timezone.utc).isoformat(),
                })
                .eq("id", import_id)
                .execute()
            )

            logger.warning("import_record_failed", import_id=import_id, error=error)

        except Exception as e:
            logger.error("mark_import_failed_failed", import_id=import_id, error=str(e))
            raise DatabaseError("update", str(e))

    # ===================
    # HISTORY
    # ===================

    def list_recent(self, limit: int = 50) -> list[ImportSummary]:
        """Most recent imports first."""
        try:
            result = (
                self.db.table(self.table)
                .select(SUMMARY_COLUMNS)
                .order("created_at", desc=True)
                .limit(limit)
                .execute()
            )

            return [ImportSummary(**row) for row in result.data]

        except Exception as e:
            logger.error("list_imports_failed", error=str(e))
            raise DatabaseError("select", str(e))

    def get(self, import_id: str) -> ImportDetail:
        """
        Full audit record.

        Raises:
            ImportNotFoundError: If no record has that id
        """
        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .eq("id", import_id)
                .execute()
            )
        except Exception as e:
            logger.error("get_import_failed", import_id=import_id, error=str(e))
            raise DatabaseError("select", str(e))

        if not result.data:
            raise ImportNotFoundError(import_id)

        row = result.data[0]
        for key in ("discrepancies", "errors", "applied_data"):
            if row.get(key) is None:
                row[key] = []
        if row.get("brand_client_map") is None:
            row["brand_client_map"] = {}

        return ImportDetail(**row)


_import_record_service: Optional[ImportRecordService] = None


def get_import_record_service() -> ImportRecordService:
    """Get or create ImportRecordService instance."""
    global _import_record_service
    if _import_record_service is None:
        _import_record_service = ImportRecordService()
    return _import_record_service
