"""
Unit tests for the spreadsheet reader.

Run: pytest tests/unit/test_spreadsheet_reader.py -v
"""

import pytest
from io import BytesIO

from openpyxl import Workbook

from parsers.spreadsheet_reader import detect_file_type, read_spreadsheet
from models.spreadsheet_import import FileType
from exceptions import (
    EmptySpreadsheetError,
    SpreadsheetParseError,
    UnsupportedFileTypeError,
)


def _xlsx_bytes(rows: list[list]) -> bytes:
    wb = Workbook()
    ws = wb.active
    for row in rows:
        ws.append(row)
    extra = wb.create_sheet("Ignored")
    extra.append(["Other", "Sheet"])
    buf = BytesIO()
    wb.save(buf)
    return buf.getvalue()


class TestDetectFileType:
    """Tests for detect_file_type()"""

    @pytest.mark.parametrize("filename,expected", [
        ("count.csv", FileType.CSV),
        ("COUNT.XLSX", FileType.XLSX),
        ("legacy.xls", FileType.XLS),
    ])
    def test_known_extensions(self, filename, expected):
        assert detect_file_type(filename) == expected

    def test_unknown_extension_raises(self):
        with pytest.raises(UnsupportedFileTypeError) as exc_info:
            detect_file_type("count.pdf")

        assert exc_info.value.status_code == 400
        assert exc_info.value.code == "UNSUPPORTED_FILE_TYPE"


class TestReadCsv:
    """Tests for read_spreadsheet() with CSV input"""

    def test_reads_headers_and_rows_as_text(self):
        content = b" SKU ,Qty,Notes\nABC-1,0012,\nABC-2,5,fragile\n"

        sheet = read_spreadsheet(content, "count.csv")

        assert sheet.file_type == FileType.CSV
        assert sheet.headers == ["SKU", "Qty", "Notes"]
        assert sheet.rows[0] == {"SKU": "ABC-1", "Qty": "0012", "Notes": ""}
        assert sheet.row_count == 2

    def test_blank_header_keeps_placeholder(self):
        content = b"Brand,,Item\nAcme,ABC-1,Widget\n"

        sheet = read_spreadsheet(content, "count.csv")

        assert sheet.headers[1].startswith("Unnamed")

    def test_falls_back_to_latin1(self):
        content = "Código,Qty\nA-1,3\n".encode("latin-1")

        sheet = read_spreadsheet(content, "count.csv")

        assert sheet.headers == ["Código", "Qty"]
        assert sheet.rows[0]["Código"] == "A-1"

    def test_utf8_bom_is_stripped(self):
        content = "SKU,Qty\nA-1,3\n".encode("utf-8-sig")

        sheet = read_spreadsheet(content, "count.csv")

        assert sheet.headers[0] == "SKU"

    def test_malformed_row_raises_with_line_details(self):
        content = b"SKU,Qty\nA-1,3\nA-2,4,extra\n"

        with pytest.raises(SpreadsheetParseError) as exc_info:
            read_spreadsheet(content, "count.csv")

        errors = exc_info.value.details["errors"]
        assert errors
        assert "line 3" in errors[0]

    def test_empty_file_raises(self):
        with pytest.raises(EmptySpreadsheetError):
            read_spreadsheet(b"", "count.csv")

    def test_header_only_raises(self):
        with pytest.raises(EmptySpreadsheetError) as exc_info:
            read_spreadsheet(b"SKU,Qty\n", "count.csv")

        assert exc_info.value.details["filename"] == "count.csv"


class TestReadWorkbook:
    """Tests for read_spreadsheet() with XLSX input"""

    def test_reads_first_sheet_only(self):
        content = _xlsx_bytes([
            ["Brand", "SKU", "Ground Inventory"],
            ["Acme Co", "ABC-1", 12],
        ])

        sheet = read_spreadsheet(content, "count.xlsx")

        assert sheet.file_type == FileType.XLSX
        assert sheet.headers == ["Brand", "SKU", "Ground Inventory"]
        assert sheet.row_count == 1
        assert sheet.rows[0]["SKU"] == "ABC-1"
        assert sheet.rows[0]["Ground Inventory"] == "12"

    def test_corrupt_workbook_raises(self):
        with pytest.raises(SpreadsheetParseError):
            read_spreadsheet(b"not a zip file", "count.xlsx")
