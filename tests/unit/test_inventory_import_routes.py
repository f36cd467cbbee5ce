"""
API tests for the spreadsheet import routes.

The orchestrator is mocked; these tests cover request binding, camelCase
serialization and the error envelope.

Run: pytest tests/unit/test_inventory_import_routes.py -v
"""

from unittest.mock import patch

from models.client import BrandAliasResponse, CreateClientResponse
from models.spreadsheet_import import (
    ApplyResponse,
    ApplyStats,
    FileType,
    ImportStats,
    ImportStatus,
    ImportType,
    ParsePreviewResponse,
)
from exceptions import FileTooLargeError, ImportNotFoundError

BASE = "/api/inventory/import"


def _preview(import_type: ImportType = ImportType.BASELINE) -> ParsePreviewResponse:
    return ParsePreviewResponse(
        filename="count.csv",
        file_type=FileType.CSV,
        import_type=import_type,
        columns=[],
        rows=[],
        brand_suggestions=[],
        stats=ImportStats(total_rows=2, valid_rows=2),
    )


class TestParseRoute:

    def test_form_fields_bound(self, test_client, import_service_mock):
        import_service_mock.parse.return_value = _preview(ImportType.UPDATE)

        response = test_client.post(
            f"{BASE}/parse",
            files={"file": ("count.csv", b"SKU,Quantity\nABC-1,3\n", "text/csv")},
            data={"importType": "update", "locationId": "loc-1"},
        )

        assert response.status_code == 200
        args = import_service_mock.parse.call_args.args
        assert args == (b"SKU,Quantity\nABC-1,3\n", "count.csv", ImportType.UPDATE, "loc-1")

    def test_response_is_camel_case(self, test_client, import_service_mock):
        import_service_mock.parse.return_value = _preview()

        response = test_client.post(
            f"{BASE}/parse",
            files={"file": ("count.csv", b"SKU,Quantity\n", "text/csv")},
        )

        body = response.json()
        assert body["fileType"] == "csv"
        assert body["importType"] == "baseline"
        assert body["stats"]["totalRows"] == 2
        assert "brandSuggestions" in body

    def test_app_error_rendered_as_envelope(self, test_client, import_service_mock):
        import_service_mock.parse.side_effect = FileTooLargeError(20 * 1024 * 1024, 10 * 1024 * 1024)

        response = test_client.post(
            f"{BASE}/parse",
            files={"file": ("count.csv", b"x", "text/csv")},
        )

        assert response.status_code == 413
        error = response.json()["error"]
        assert error["code"] == "FILE_TOO_LARGE"
        assert error["message"] == "File exceeds maximum size of 10MB"

    def test_unexpected_error_is_internal(self, test_client, import_service_mock):
        import_service_mock.parse.side_effect = RuntimeError("boom")

        response = test_client.post(
            f"{BASE}/parse",
            files={"file": ("count.csv", b"x", "text/csv")},
        )

        assert response.status_code == 500
        assert response.json()["error"]["code"] == "INTERNAL_ERROR"


class TestApplyRoute:

    def test_camel_case_body_accepted(self, test_client, import_service_mock):
        import_service_mock.apply.return_value = ApplyResponse(
            import_id="import-1",
            status=ImportStatus.COMPLETED,
            stats=ApplyStats(products_created=1, inventory_updated=1),
        )

        response = test_client.post(f"{BASE}/apply", json={
            "filename": "count.csv",
            "fileType": "csv",
            "importType": "baseline",
            "locationId": "loc-1",
            "rows": [{"rowIndex": 2, "sku": "ABC-1", "groundInventory": 12, "included": True}],
            "brandClientMap": {"Acme": "client-1"},
        })

        assert response.status_code == 200
        body = response.json()
        assert body["importId"] == "import-1"
        assert body["stats"]["productsCreated"] == 1

        request = import_service_mock.apply.call_args.args[0]
        assert request.location_id == "loc-1"
        assert request.rows[0].ground_inventory == 12

    def test_invalid_body_rejected(self, test_client, import_service_mock):
        response = test_client.post(f"{BASE}/apply", json={"filename": "count.csv"})

        assert response.status_code == 422
        import_service_mock.apply.assert_not_called()


class TestClientAndHistoryRoutes:

    def test_create_client(self, test_client, import_service_mock):
        import_service_mock.create_client_for_brand.return_value = CreateClientResponse(
            id="c-1", company_name="Zenith", already_existed=False
        )

        response = test_client.post(f"{BASE}/create-client", json={"brandName": "Zenith"})

        assert response.status_code == 200
        assert response.json() == {"id": "c-1", "companyName": "Zenith", "alreadyExisted": False}
        import_service_mock.create_client_for_brand.assert_called_once_with("Zenith")

    def test_history_limit_bounds(self, test_client, import_service_mock):
        import_service_mock.list_imports.return_value = []

        assert test_client.get(f"{BASE}/history?limit=0").status_code == 422
        assert test_client.get(f"{BASE}/history?limit=10").status_code == 200
        import_service_mock.list_imports.assert_called_once_with(10)

    def test_history_detail_not_found(self, test_client, import_service_mock):
        import_service_mock.get_import.side_effect = ImportNotFoundError("nope")

        response = test_client.get(f"{BASE}/history/nope")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "IMPORT_NOT_FOUND"

    def test_brand_aliases(self, test_client):
        aliases = [BrandAliasResponse(id="a-1", alias="acme", client_id="c-1", client_name="Acme Co")]

        with patch("routes.inventory_import.get_brand_alias_service") as get_service:
            get_service.return_value.list_with_clients.return_value = aliases
            response = test_client.get(f"{BASE}/brand-aliases")

        assert response.status_code == 200
        assert response.json()[0]["clientName"] == "Acme Co"
