"""
Unit tests for row normalization.

Run: pytest tests/unit/test_row_normalizer.py -v
"""

import pytest

from parsers.column_detector import detect_columns
from parsers.row_normalizer import normalize_rows, normalize_unit, parse_quantity

HEADERS = ["Brand", "SKU", "Item", "Unit", "Qty"]
MAPPINGS = detect_columns(HEADERS)


def _raw(brand="Acme Co", sku="ABC-1", item="Widget", unit="case", qty="1"):
    return dict(zip(HEADERS, [brand, sku, item, unit, qty]))


class TestParseQuantity:
    """Tests for parse_quantity()"""

    @pytest.mark.parametrize("value,expected", [
        ("12", 12),
        ("1,250", 1250),
        (" 7 ", 7),
        ("12.0", 12),
    ])
    def test_clean_numbers_have_no_warning(self, value, expected):
        assert parse_quantity(value) == (expected, None)

    @pytest.mark.parametrize("value", ["", None, "   "])
    def test_blank_is_zero_with_warning(self, value):
        qty, warning = parse_quantity(value)

        assert qty == 0
        assert warning == "Quantity is blank, set to 0"

    @pytest.mark.parametrize("value", ["n/a", "twelve", "NaN", "inf"])
    def test_non_numeric_is_zero_with_warning(self, value):
        qty, warning = parse_quantity(value)

        assert qty == 0
        assert "not a number" in warning

    def test_negative_is_clamped(self):
        assert parse_quantity("-3") == (0, "Negative quantity -3 clamped to 0")

    def test_fraction_rounds_half_up(self):
        assert parse_quantity("2.5") == (3, "Quantity 2.5 rounded to 3")
        assert parse_quantity("2.4") == (2, "Quantity 2.4 rounded to 2")

    @pytest.mark.parametrize("value", ["1e30", "9" * 40, "2147483648", "1E+999999"])
    def test_out_of_range_is_zero_with_warning(self, value):
        qty, warning = parse_quantity(value)

        assert qty == 0
        assert warning == f'Quantity "{value}" is out of range, set to 0'

    def test_largest_storable_quantity_kept(self):
        assert parse_quantity("2,147,483,647") == (2147483647, None)

    def test_tiny_exponent_rounds_to_zero(self):
        assert parse_quantity("1e-40") == (0, "Quantity 1e-40 rounded to 0")


class TestNormalizeUnit:
    """Tests for normalize_unit()"""

    @pytest.mark.parametrize("value,expected", [
        ("bottles", "Bottle"),
        ("CASE", "Case"),
        ("bag in box", "Bag-in-Box"),
        ("ea", "Piece"),
        ("750ml", "ML"),
        ("", "Piece"),
        ("tin", "Tin"),
    ])
    def test_canonical_display(self, value, expected):
        assert normalize_unit(value) == expected


class TestNormalizeRows:
    """Tests for normalize_rows()"""

    def test_cleans_cells_and_keeps_case(self):
        raw = [_raw(brand="  Acme\nCo ", sku=" abc-1 ", item="Red   Widget", qty="12")]

        result = normalize_rows(raw, MAPPINGS)

        row = result.rows[0]
        assert row.row_index == 2
        assert row.brand == "Acme Co"
        assert row.sku == "abc-1"
        assert row.item_name == "Red Widget"
        assert row.unit == "Case"
        assert row.quantity == 12
        assert row.warnings == []

    def test_blank_rows_are_counted_and_dropped(self):
        raw = [_raw(), dict.fromkeys(HEADERS, ""), _raw(sku="ABC-2")]

        result = normalize_rows(raw, MAPPINGS)

        assert [r.row_index for r in result.rows] == [2, 4]
        assert result.stats.total_raw_rows == 3
        assert result.stats.empty_rows == 1
        assert result.stats.valid_rows == 2

    def test_bad_quantity_becomes_zero_with_row_warning(self):
        result = normalize_rows([_raw(qty="lots")], MAPPINGS)

        row = result.rows[0]
        assert row.quantity == 0
        assert any("not a number" in w for w in row.warnings)

    def test_missing_sku_and_brand_flagged_but_kept(self):
        raw = [_raw(sku="", brand=""), _raw(sku="", brand="")]

        result = normalize_rows(raw, MAPPINGS)

        assert len(result.rows) == 2
        assert "Missing SKU/Code" in result.rows[0].warnings
        assert "Missing Brand" in result.rows[0].warnings
        assert result.stats.duplicate_skus == 0

    def test_duplicates_keep_last_occurrence(self):
        raw = [
            _raw(sku="ABC-1", qty="1"),
            _raw(sku="XYZ-9", qty="4"),
            _raw(sku="abc-1", qty="2"),
            _raw(sku="ABC-1", qty="3"),
        ]

        result = normalize_rows(raw, MAPPINGS)

        skus = [r.sku for r in result.rows]
        assert skus == ["XYZ-9", "ABC-1"]
        survivor = result.rows[1]
        assert survivor.quantity == 3
        assert survivor.row_index == 5
        assert result.stats.duplicate_skus == 2
        assert result.stats.duplicate_sku_list == ["ABC-1"]
        assert "Duplicate SKU (appears 3 times, last row kept)" in survivor.warnings
        assert 'Duplicate SKU "ABC-1" found on rows 2, 4, 5; using row 5' in result.warnings

    def test_new_sku_and_supply_flags(self):
        raw = [_raw(sku="ABC-1"), _raw(sku="BOX-12"), _raw(sku="NEW-1")]

        result = normalize_rows(
            raw,
            MAPPINGS,
            known_skus={"abc-1", "box-12"},
            supply_skus={"box-12": "12x12 Shipper"},
        )

        flags = {r.sku: (r.is_new_sku, r.is_supply, r.supply_name) for r in result.rows}
        assert flags["ABC-1"] == (False, False, None)
        assert flags["BOX-12"] == (False, True, "12x12 Shipper")
        assert flags["NEW-1"] == (True, False, None)

    def test_prefix_brand_mismatch_warns(self):
        raw = [
            _raw(sku="ACM-1", brand="Acme Co"),
            _raw(sku="ACM-2", brand="Acme Co"),
            _raw(sku="ACM-3", brand="Zenith"),
        ]

        result = normalize_rows(raw, MAPPINGS)

        odd = result.rows[2]
        assert any('typically belongs to "Acme Co"' in w for w in odd.warnings)
        assert not any("typically" in w for w in result.rows[0].warnings)
        assert len(result.warnings) == 1

    def test_unmapped_optional_columns_are_blank(self):
        mappings = detect_columns(["SKU", "Qty"])

        result = normalize_rows([{"SKU": "A-1", "Qty": "3"}], mappings)

        row = result.rows[0]
        assert row.item_name == ""
        assert row.unit == "Piece"
        assert "Missing Brand" in row.warnings
