"""
Spreadsheet inventory import routes.

Two-step flow used by the import screen:
    POST /parse  - upload a spreadsheet, get a preview
    POST /apply  - send back the confirmed rows
"""

from fastapi import APIRouter, File, Form, Query, UploadFile
from fastapi.responses import JSONResponse
from typing import Optional
import structlog

from models.client import BrandAliasResponse, CreateClientRequest, CreateClientResponse
from models.spreadsheet_import import (
    ApplyRequest,
    ApplyResponse,
    ImportDetail,
    ImportSummary,
    ImportType,
    ParsePreviewResponse,
)
from services.brand_alias_service import get_brand_alias_service
from services.spreadsheet_import_service import get_spreadsheet_import_service
from exceptions import AppError

logger = structlog.get_logger(__name__)

router = APIRouter()


# ===================
# EXCEPTION HANDLER
# ===================

def handle_error(e: Exception) -> JSONResponse:
    """Convert exception to JSON response."""
    if isinstance(e, AppError):
        return JSONResponse(
            status_code=e.status_code,
            content=e.to_dict()
        )
    # Unexpected error
    logger.error("unexpected_error", error=str(e), type=type(e).__name__)
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred"
            }
        }
    )


# ===================
# ROUTES
# ===================

@router.post("/parse", response_model=ParsePreviewResponse)
async def parse_spreadsheet(
    file: UploadFile = File(...),
    import_type: ImportType = Form(ImportType.BASELINE, alias="importType"),
    location_id: Optional[str] = Form(None, alias="locationId"),
):
    """
    Parse an uploaded CSV/XLSX/XLS and return the import preview.

    Nothing is written.

    Raises:
        400: Unsupported, unreadable or empty file, required columns missing,
             update import without location
        413: File too large
    """
    logger.info(
        "import_upload_received",
        filename=file.filename,
        content_type=file.content_type,
        import_type=import_type.value
    )

    try:
        content = await file.read()
        service = get_spreadsheet_import_service()
        return service.parse(content, file.filename or "", import_type, location_id)

    except Exception as e:
        return handle_error(e)


@router.post("/apply", response_model=ApplyResponse)
async def apply_import(request: ApplyRequest):
    """
    Apply confirmed rows: create products, replace inventory quantities,
    save brand aliases and record the import.

    Row failures are reported in the response, not as HTTP errors.

    Raises:
        400: No location or no included rows
    """
    try:
        service = get_spreadsheet_import_service()
        return service.apply(request)

    except Exception as e:
        return handle_error(e)


@router.post("/create-client", response_model=CreateClientResponse)
async def create_client(request: CreateClientRequest):
    """
    Create a client for an unmatched brand, or return the one that already
    has that name.
    """
    try:
        service = get_spreadsheet_import_service()
        return service.create_client_for_brand(request.brand_name)

    except Exception as e:
        return handle_error(e)


@router.get("/history", response_model=list[ImportSummary])
async def list_imports(limit: int = Query(50, ge=1, le=200)):
    """Recent imports, newest first."""
    try:
        service = get_spreadsheet_import_service()
        return service.list_imports(limit)

    except Exception as e:
        return handle_error(e)


@router.get("/history/{import_id}", response_model=ImportDetail)
async def get_import(import_id: str):
    """
    Full audit record of one import.

    Raises:
        404: Import not found
    """
    try:
        service = get_spreadsheet_import_service()
        return service.get_import(import_id)

    except Exception as e:
        return handle_error(e)


@router.get("/brand-aliases", response_model=list[BrandAliasResponse])
async def list_brand_aliases():
    """Stored brand -> client aliases."""
    try:
        return get_brand_alias_service().list_with_clients()

    except Exception as e:
        return handle_error(e)
