"""
Custom exceptions module.
"""

from exceptions.errors import (
    # Base exceptions
    AppError,
    NotFoundError,
    ValidationError,
    DatabaseError,

    # Spreadsheet upload
    UnsupportedFileTypeError,
    FileTooLargeError,
    SpreadsheetParseError,
    EmptySpreadsheetError,
    MissingRequiredColumnsError,

    # Import records
    ImportNotFoundError,
)

__all__ = [
    # Base
    "AppError",
    "NotFoundError",
    "ValidationError",
    "DatabaseError",

    # Spreadsheet upload
    "UnsupportedFileTypeError",
    "FileTooLargeError",
    "SpreadsheetParseError",
    "EmptySpreadsheetError",
    "MissingRequiredColumnsError",

    # Import records
    "ImportNotFoundError",
]
