"""
Unit tests for discrepancy classification.

Run: pytest tests/unit/test_discrepancy_service.py -v
"""

from services.discrepancy_service import classify_discrepancies, summarize
from models.spreadsheet_import import DiscrepancyClass
from tests.factories import InventoryFactory, RowFactory


def _by_sku(results):
    return {r.sku.lower(): r for r in results}


class TestClassifyDiscrepancies:
    """Tests for classify_discrepancies()"""

    def test_each_union_sku_classified_once(self):
        rows = [
            RowFactory.parsed("ABC-1", quantity=12),
            RowFactory.parsed("ABC-2", quantity=3),
            RowFactory.parsed("NEW-1", quantity=7, item_name="Gadget"),
            RowFactory.parsed("", quantity=9),
        ]
        inventory = [
            InventoryFactory.location_item("abc-1", 12),
            InventoryFactory.location_item("ABC-2", 5),
            InventoryFactory.location_item("OLD-1", 4),
            InventoryFactory.location_item("EMPTY-1", 0),
        ]

        results = classify_discrepancies(rows, inventory)

        assert len(results) == 4
        by_sku = _by_sku(results)
        assert set(by_sku) == {"abc-1", "abc-2", "new-1", "old-1"}
        assert by_sku["abc-1"].classification == DiscrepancyClass.MATCH
        assert by_sku["abc-1"].difference == 0
        assert by_sku["abc-2"].classification == DiscrepancyClass.DISCREPANCY
        assert by_sku["abc-2"].difference == -2
        assert by_sku["new-1"].classification == DiscrepancyClass.NEW
        assert by_sku["old-1"].classification == DiscrepancyClass.MISSING_FROM_SHEET

    def test_missing_from_sheet_values(self):
        inventory = [InventoryFactory.location_item("OLD-1", 5, name="Old Widget")]

        result = classify_discrepancies([], inventory)[0]

        assert result.sheet_qty == 0
        assert result.system_qty == 5
        assert result.difference == -5
        assert result.name == "Old Widget"
        assert result.product_id == "product-old-1"

    def test_new_sku_values(self):
        rows = [RowFactory.parsed("NEW-1", quantity=7, item_name="Gadget")]

        result = classify_discrepancies(rows, [])[0]

        assert result.product_id is None
        assert result.name == "Gadget"
        assert result.system_qty == 0
        assert result.difference == 7

    def test_sheet_sku_with_zero_stock_is_compared(self):
        rows = [RowFactory.parsed("ABC-1", quantity=0)]
        inventory = [InventoryFactory.location_item("ABC-1", 0)]

        result = classify_discrepancies(rows, inventory)[0]

        assert result.classification == DiscrepancyClass.MATCH

    def test_multiple_records_for_one_sku_are_summed(self):
        rows = [RowFactory.parsed("ABC-1", quantity=10)]
        inventory = [
            InventoryFactory.location_item("ABC-1", 6, product_id="p-1"),
            InventoryFactory.location_item("ABC-1", 4, product_id="p-1"),
        ]

        result = classify_discrepancies(rows, inventory)[0]

        assert result.system_qty == 10
        assert result.classification == DiscrepancyClass.MATCH


class TestSummarize:
    """Tests for summarize()"""

    def test_counts_per_classification(self):
        rows = [RowFactory.parsed("A", quantity=1), RowFactory.parsed("B", quantity=2)]
        inventory = [
            InventoryFactory.location_item("A", 1),
            InventoryFactory.location_item("C", 3),
            InventoryFactory.location_item("D", 3),
        ]

        stats = summarize(classify_discrepancies(rows, inventory))

        assert stats.matches == 1
        assert stats.discrepancies == 0
        assert stats.new_skus == 1
        assert stats.missing_from_sheet == 2
