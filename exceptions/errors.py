"""
Custom exception classes for the application.

Fatal, whole-import failures are raised as AppError subclasses and rendered
with to_dict(). Row-level failures during apply are recorded as data, not
raised (see services/reconciliation_service.py).
"""

from typing import Optional, Any
from datetime import datetime, timezone


class AppError(Exception):
    """
    Base exception for all application errors.

    All custom exceptions inherit from this.

    Attributes:
        code: Error code (e.g., "IMPORT_NOT_FOUND")
        message: Human-readable message
        status_code: HTTP status code
        details: Additional context
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: Optional[dict[str, Any]] = None
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc).isoformat()
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert to API response format."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
                "timestamp": self.timestamp
            }
        }


class NotFoundError(AppError):
    """Resource not found (404)."""

    def __init__(
        self,
        resource: str,
        identifier: str,
        code: Optional[str] = None
    ):
        super().__init__(
            code=code or f"{resource.upper()}_NOT_FOUND",
            message=f"{resource} not found",
            status_code=404,
            details={"id": identifier}
        )


class ValidationError(AppError):
    """Validation failed (422)."""

    def __init__(
        self,
        message: str,
        code: str = "VALIDATION_ERROR",
        details: Optional[dict] = None,
        status_code: int = 422
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=status_code,
            details=details
        )


class DatabaseError(AppError):
    """Database operation failed (500)."""

    def __init__(
        self,
        operation: str,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code="DATABASE_ERROR",
            message=f"Database {operation} failed: {message}",
            status_code=500,
            details={"operation": operation, **(details or {})}
        )


# ===================
# SPREADSHEET UPLOAD ERRORS
# ===================

class UnsupportedFileTypeError(ValidationError):
    """File extension is not csv/xlsx/xls."""

    def __init__(self, filename: str, allowed: list[str]):
        super().__init__(
            code="UNSUPPORTED_FILE_TYPE",
            message="Unsupported file type. Please upload a CSV or XLSX file.",
            details={"filename": filename, "allowed": allowed},
            status_code=400
        )


class FileTooLargeError(ValidationError):
    """Upload exceeds the configured size limit."""

    def __init__(self, size_bytes: int, max_bytes: int):
        super().__init__(
            code="FILE_TOO_LARGE",
            message=f"File exceeds maximum size of {max_bytes // (1024 * 1024)}MB",
            details={"size_bytes": size_bytes, "max_bytes": max_bytes},
            status_code=413
        )


class SpreadsheetParseError(ValidationError):
    """File could not be read as a spreadsheet."""

    def __init__(
        self,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code="SPREADSHEET_PARSE_ERROR",
            message=message,
            details=details,
            status_code=400
        )


class EmptySpreadsheetError(ValidationError):
    """File parsed but contains no data rows."""

    def __init__(self, filename: str):
        super().__init__(
            code="SPREADSHEET_EMPTY",
            message="No data rows found in file",
            details={"filename": filename},
            status_code=400
        )


class MissingRequiredColumnsError(ValidationError):
    """Required canonical fields could not be mapped to any header."""

    def __init__(self, missing: list[str], headers: list[str]):
        super().__init__(
            code="MISSING_REQUIRED_COLUMNS",
            message=f"Could not detect required columns: {', '.join(missing)}",
            details={"missing": missing, "headers": headers},
            status_code=400
        )


# ===================
# IMPORT RECORD ERRORS
# ===================

class ImportNotFoundError(NotFoundError):
    """Spreadsheet import audit record not found."""

    def __init__(self, import_id: str):
        super().__init__(
            resource="Spreadsheet import",
            identifier=import_id,
            code="IMPORT_NOT_FOUND"
        )
