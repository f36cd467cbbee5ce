"""
Spreadsheet parsing: reading uploads, detecting columns, cleaning rows.
"""

from parsers.spreadsheet_reader import (
    read_spreadsheet,
    detect_file_type,
    SpreadsheetContent,
)
from parsers.column_detector import (
    detect_columns,
    missing_required,
    unmapped_headers,
)
from parsers.row_normalizer import (
    normalize_rows,
    parse_quantity,
    normalize_unit,
    NormalizeResult,
)

__all__ = [
    "read_spreadsheet",
    "detect_file_type",
    "SpreadsheetContent",
    "detect_columns",
    "missing_required",
    "unmapped_headers",
    "normalize_rows",
    "parse_quantity",
    "normalize_unit",
    "NormalizeResult",
]
