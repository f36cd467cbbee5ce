"""
Packaging supply import routes.

Same two-step flow as the inventory import:
    POST /parse  - upload a supply count sheet, get a preview
    POST /apply  - send back the confirmed rows
"""

from fastapi import APIRouter, File, Form, UploadFile
from fastapi.responses import JSONResponse
from typing import Optional
import structlog

from models.supply_import import (
    SupplyApplyRequest,
    SupplyApplyResponse,
    SupplyParsePreviewResponse,
)
from services.supply_import_service import get_supply_import_service
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

@router.post("/parse", response_model=SupplyParsePreviewResponse)
async def parse_supply_sheet(
    file: UploadFile = File(...),
    location_id: Optional[str] = Form(None, alias="locationId"),
):
    """
    Parse an uploaded supply count sheet and return the preview.

    Raises:
        400: Unsupported, unreadable or empty file
        413: File too large
    """
    logger.info("supply_upload_received", filename=file.filename, content_type=file.content_type)

    try:
        content = await file.read()
        service = get_supply_import_service()
        return service.parse(content, file.filename or "", location_id)

    except Exception as e:
        return handle_error(e)


@router.post("/apply", response_model=SupplyApplyResponse)
async def apply_supply_import(request: SupplyApplyRequest):
    """
    Create unknown supplies and replace their quantities at the location.

    Raises:
        400: No location or no included rows
    """
    try:
        service = get_supply_import_service()
        return service.apply(request)

    except Exception as e:
        return handle_error(e)
