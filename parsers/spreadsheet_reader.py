"""
Spreadsheet reader for client inventory uploads.

Turns uploaded bytes (CSV, XLSX or XLS) into an ordered header list and
raw text rows. Column meaning is not interpreted here; see
parsers/column_detector.py.
"""

from dataclasses import dataclass, field
from io import BytesIO
from pathlib import Path
import structlog

import pandas as pd

from exceptions import (
    SpreadsheetParseError,
    EmptySpreadsheetError,
    UnsupportedFileTypeError,
)
from models.spreadsheet_import import FileType

logger = structlog.get_logger(__name__)

# Extension -> file type
SUPPORTED_EXTENSIONS = {
    ".csv": FileType.CSV,
    ".xlsx": FileType.XLSX,
    ".xls": FileType.XLS,
}

EXCEL_ENGINES = {
    FileType.XLSX: "openpyxl",
    FileType.XLS: "xlrd",
}

CSV_ENCODINGS = ["utf-8-sig", "latin-1"]


@dataclass
class SpreadsheetContent:
    """Headers and raw rows from the first sheet of an upload."""
    file_type: FileType
    headers: list[str] = field(default_factory=list)
    rows: list[dict[str, str]] = field(default_factory=list)

    @property
    def row_count(self) -> int:
        return len(self.rows)


def detect_file_type(filename: str) -> FileType:
    """
    File type from the upload's extension.

    Raises:
        UnsupportedFileTypeError: If extension is not csv/xlsx/xls
    """
    suffix = Path(filename or "").suffix.lower()
    if suffix not in SUPPORTED_EXTENSIONS:
        raise UnsupportedFileTypeError(filename, allowed=list(SUPPORTED_EXTENSIONS))
    return SUPPORTED_EXTENSIONS[suffix]


def read_spreadsheet(content: bytes, filename: str) -> SpreadsheetContent:
    """
    Read an uploaded spreadsheet into raw rows.

    Args:
        content: Raw file bytes
        filename: Original filename (extension selects the reader)

    Returns:
        SpreadsheetContent with trimmed headers and text-only rows

    Raises:
        UnsupportedFileTypeError: Unknown extension
        SpreadsheetParseError: File cannot be read or rows are malformed
        EmptySpreadsheetError: No data rows
    """
    file_type = detect_file_type(filename)
    logger.info("reading_spreadsheet", filename=filename, file_type=file_type.value, size=len(content))

    if not content:
        raise EmptySpreadsheetError(filename)

    if file_type == FileType.CSV:
        df = _load_csv(content)
    else:
        df = _load_workbook(content, engine=EXCEL_ENGINES[file_type])

    df.columns = [str(col).strip() for col in df.columns]
    df = df.fillna("")

    headers = df.columns.tolist()
    rows = [
        {header: str(value) for header, value in zip(headers, record)}
        for record in df.itertuples(index=False, name=None)
    ]

    if not rows:
        logger.warning("spreadsheet_empty", filename=filename)
        raise EmptySpreadsheetError(filename)

    logger.info(
        "spreadsheet_read",
        filename=filename,
        columns=len(headers),
        rows=len(rows)
    )

    return SpreadsheetContent(file_type=file_type, headers=headers, rows=rows)


# ===================
# HELPER FUNCTIONS
# ===================

def _load_csv(content: bytes) -> pd.DataFrame:
    """Load CSV as text cells, trying UTF-8 (with BOM) then Latin-1."""
    last_error = None

    for enc in CSV_ENCODINGS:
        try:
            return pd.read_csv(
                BytesIO(content),
                encoding=enc,
                dtype=str,
                keep_default_na=False,
                skip_blank_lines=True,
            )
        except UnicodeDecodeError as e:
            last_error = e
            continue
        except pd.errors.EmptyDataError as e:
            logger.warning("csv_empty", error=str(e))
            raise SpreadsheetParseError(
                message="File has no header row",
                details={"errors": [str(e)]}
            )
        except pd.errors.ParserError as e:
            # pandas reports the offending line, e.g. "Expected 5 fields in line 7, saw 6"
            logger.error("csv_parse_failed", error=str(e))
            raise SpreadsheetParseError(
                message="CSV parsing errors",
                details={"errors": [str(e).strip()]}
            )

    logger.error("csv_decode_failed", error=str(last_error))
    raise SpreadsheetParseError(
        message="Failed to decode CSV file",
        details={"original_error": str(last_error)}
    )


def _load_workbook(content: bytes, engine: str) -> pd.DataFrame:
    """Load the first sheet of a workbook as text cells."""
    try:
        return pd.read_excel(
            BytesIO(content),
            sheet_name=0,
            engine=engine,
            dtype=str,
            keep_default_na=False,
        )
    except Exception as e:
        logger.error("workbook_read_failed", engine=engine, error=str(e))
        raise SpreadsheetParseError(
            message="Failed to read spreadsheet file",
            details={"original_error": str(e)}
        )
