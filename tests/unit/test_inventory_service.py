"""
Unit tests for InventoryService.

Run: pytest tests/unit/test_inventory_service.py -v
"""

import pytest
from unittest.mock import MagicMock, patch

from services.inventory_service import InventoryService
from exceptions import DatabaseError


class TestInventoryServiceGetByLocation:
    """Tests for InventoryService.get_by_location()"""

    def test_keyed_by_product_id(self, mock_db, mock_supabase):
        mock_supabase.set_table_data("inventory", [
            {"id": "inv-1", "product_id": "p-1", "qty_on_hand": 5},
            {"id": "inv-2", "product_id": "p-2", "qty_on_hand": None},
        ])

        records = InventoryService().get_by_location("loc-1")

        assert records["p-1"].id == "inv-1"
        assert records["p-1"].qty_on_hand == 5
        assert records["p-2"].qty_on_hand == 0

    def test_numeric_quantity_coerced_to_int(self, mock_db, mock_supabase):
        mock_supabase.set_table_data("inventory", [
            {"id": "inv-1", "product_id": "p-1", "qty_on_hand": 7.0},
        ])

        assert InventoryService().get_by_location("loc-1")["p-1"].qty_on_hand == 7


class TestInventoryServicePaging:
    """Location reads page past the PostgREST response cap."""

    @staticmethod
    def _paged_client(pages):
        client = MagicMock()
        query = client.table.return_value.select.return_value.eq.return_value.order.return_value
        query.range.return_value.execute.side_effect = [MagicMock(data=page) for page in pages]
        return client, query

    def test_get_by_location_reads_every_page(self):
        full_page = [
            {"id": f"inv-{i}", "product_id": f"p-{i}", "qty_on_hand": 1}
            for i in range(100)
        ]
        last_page = [{"id": "inv-last", "product_id": "p-last", "qty_on_hand": 4}]
        client, query = self._paged_client([full_page, last_page])

        with patch("services.inventory_service.get_supabase_client", return_value=client):
            records = InventoryService(page_size=100).get_by_location("loc-1")

        assert len(records) == 101
        assert records["p-last"].qty_on_hand == 4
        query.range.assert_any_call(0, 99)
        query.range.assert_any_call(100, 199)

    def test_get_location_items_reads_every_page(self):
        full_page = [
            {"id": f"inv-{i}", "product_id": f"p-{i}", "qty_on_hand": 1,
             "product": {"id": f"p-{i}", "sku": f"SKU-{i}", "name": None}}
            for i in range(100)
        ]
        client, query = self._paged_client([full_page, []])

        with patch("services.inventory_service.get_supabase_client", return_value=client):
            items = InventoryService(page_size=100).get_location_items("loc-1")

        assert len(items) == 100
        assert query.range.call_count == 2


class TestInventoryServiceLocationItems:
    """Tests for InventoryService.get_location_items()"""

    def test_joins_product_sku_and_name(self, mock_db, mock_supabase):
        mock_supabase.set_table_data("inventory", [
            {
                "id": "inv-1",
                "product_id": "p-1",
                "qty_on_hand": 5,
                "product": {"id": "p-1", "sku": "ABC-1", "name": "Widget"},
            },
            {"id": "inv-2", "product_id": "p-2", "qty_on_hand": 1, "product": None},
        ])

        items = InventoryService().get_location_items("loc-1")

        assert len(items) == 1
        assert items[0].sku == "ABC-1"
        assert items[0].name == "Widget"


class TestInventoryServiceWrites:
    """Tests for replace_quantity() and create()"""

    def test_replace_quantity_sets_absolute_value(self, mock_db, mock_supabase):
        mock_supabase.set_table_data("inventory", [
            {"id": "inv-1", "product_id": "p-1", "qty_on_hand": 5},
        ])

        InventoryService().replace_quantity("inv-1", 12)

        op, payload = mock_supabase.writes("inventory")[0]
        assert op == "update"
        assert payload["qty_on_hand"] == 12
        assert "updated_at" in payload

    def test_create_is_available_and_unreserved(self, mock_db, mock_supabase):
        record = InventoryService().create("p-1", "loc-1", 9)

        assert record.qty_on_hand == 9
        _, inserted = mock_supabase.writes("inventory")[0]
        assert inserted[0]["qty_reserved"] == 0
        assert inserted[0]["status"] == "available"
        assert inserted[0]["location_id"] == "loc-1"

    def test_write_failure_raises_database_error(self, mock_db, mock_supabase):
        mock_supabase.set_table_error("inventory", RuntimeError("timeout"))

        with pytest.raises(DatabaseError) as exc_info:
            InventoryService().replace_quantity("inv-1", 1)

        assert exc_info.value.details["operation"] == "update"
