"""
Shared test fixtures.

Supabase is never contacted: services get a mock client, and the
reconciliation tests use small in-memory stores.
"""

import os
import sys
from pathlib import Path

# Settings are read at import time
os.environ.setdefault("SUPABASE_URL", "http://localhost:54321")
os.environ.setdefault("SUPABASE_KEY", "test-anon-key")
os.environ.setdefault("ENVIRONMENT", "development")

# Add project root to Python path
project_dir = Path(__file__).parent.parent
sys.path.insert(0, str(project_dir))

import pytest
from unittest.mock import MagicMock, patch
from datetime import datetime, timezone
from typing import Generator

from tests.fakes import InMemoryInventory, InMemoryProducts

STORE_SERVICES = [
    "services.client_service",
    "services.brand_alias_service",
    "services.product_service",
    "services.supply_service",
    "services.inventory_service",
    "services.supply_inventory_service",
    "services.activity_log_service",
    "services.import_record_service",
]


# ===================
# MOCK SUPABASE CLIENT
# ===================

class MockSupabaseResponse:
    """Mock Supabase query response."""

    def __init__(self, data: list = None, count: int = None):
        self.data = data or []
        self.count = count if count is not None else len(self.data)


class MockSupabaseQuery:
    """Mock Supabase query builder with chainable methods."""

    def __init__(self, table: "MockSupabaseTable", data: list = None, count: int = None):
        self._table = table
        self._data = data or []
        self._count = count

    def select(self, *args, **kwargs):
        return self

    def insert(self, data):
        # Simulate insert - add id and timestamps
        rows = [data] if isinstance(data, dict) else data
        now = datetime.now(timezone.utc).isoformat()
        inserted = []
        for item in rows:
            row = {"id": "test-uuid-123", "created_at": now, **item}
            inserted.append(row)
        self._table.writes.append(("insert", inserted))
        self._data = inserted
        return self

    def upsert(self, data, on_conflict: str = None):
        rows = [data] if isinstance(data, dict) else data
        self._table.writes.append(("upsert", rows))
        self._data = rows
        return self

    def update(self, data):
        self._table.writes.append(("update", data))
        self._data = [{**item, **data} for item in self._data] or [data]
        return self

    def eq(self, column, value):
        return self

    def ilike(self, column, pattern):
        return self

    def order(self, column, **kwargs):
        return self

    def range(self, start, end):
        return self

    def limit(self, count):
        return self

    def execute(self) -> MockSupabaseResponse:
        if self._table.error:
            raise self._table.error
        return MockSupabaseResponse(
            data=self._data,
            count=self._count if self._count is not None else len(self._data)
        )


class MockSupabaseTable:
    """Mock Supabase table with configurable responses."""

    def __init__(self, data: list = None, count: int = None, error: Exception = None):
        self._data = data or []
        self._count = count
        self.error = error
        self.writes: list = []

    def _query(self) -> MockSupabaseQuery:
        return MockSupabaseQuery(self, [dict(row) for row in self._data], self._count)

    def select(self, *args, **kwargs):
        return self._query()

    def insert(self, data):
        return self._query().insert(data)

    def upsert(self, data, on_conflict: str = None):
        return self._query().upsert(data, on_conflict=on_conflict)

    def update(self, data):
        return self._query().update(data)


class MockSupabaseClient:
    """Mock Supabase client. Tables keep a log of writes for assertions."""

    def __init__(self):
        self._tables: dict[str, MockSupabaseTable] = {}

    def set_table_data(self, table_name: str, data: list, count: int = None):
        """Configure mock data for a table."""
        self._tables[table_name] = MockSupabaseTable(data, count)

    def set_table_error(self, table_name: str, error: Exception):
        """Make every query on a table raise."""
        self._tables[table_name] = MockSupabaseTable(error=error)

    def table(self, name: str) -> MockSupabaseTable:
        if name not in self._tables:
            self._tables[name] = MockSupabaseTable()
        return self._tables[name]

    def writes(self, table_name: str) -> list:
        return self.table(table_name).writes


# ===================
# FIXTURES
# ===================

@pytest.fixture
def mock_supabase() -> MockSupabaseClient:
    """
    Create a mock Supabase client.

    Usage:
        def test_something(mock_db, mock_supabase):
            mock_supabase.set_table_data("products", [
                {"id": "1", "sku": "ABC-1", ...}
            ])
    """
    return MockSupabaseClient()


@pytest.fixture
def mock_db(mock_supabase) -> Generator:
    """
    Patch the database client in every store service.

    Any service constructed inside the test gets the mock client.
    """
    patches = [
        patch(f"{module}.get_supabase_client", return_value=mock_supabase)
        for module in STORE_SERVICES
    ]
    for p in patches:
        p.start()
    try:
        yield mock_supabase
    finally:
        for p in patches:
            p.stop()


@pytest.fixture
def products() -> InMemoryProducts:
    return InMemoryProducts()


@pytest.fixture
def inventory() -> InMemoryInventory:
    return InMemoryInventory()


@pytest.fixture
def activity_log() -> MagicMock:
    return MagicMock()


@pytest.fixture
def brand_aliases() -> MagicMock:
    return MagicMock()


@pytest.fixture
def import_records() -> MagicMock:
    records = MagicMock()
    records.create_processing.return_value = "import-1"
    return records


# ===================
# API TEST CLIENT
# ===================

@pytest.fixture
def import_service_mock() -> Generator:
    """Patch the orchestrator used by the import routes."""
    service = MagicMock()
    with patch("routes.inventory_import.get_spreadsheet_import_service", return_value=service):
        yield service


@pytest.fixture
def test_client(import_service_mock):
    """
    FastAPI test client with the database health check patched out.

    Usage:
        def test_endpoint(test_client, import_service_mock):
            import_service_mock.parse.return_value = ...
            response = test_client.post("/api/inventory/import/parse", ...)
    """
    from fastapi.testclient import TestClient

    healthy = {"status": "healthy", "products_count": 0, "clients_count": 0}
    with patch("main.check_connection", return_value=healthy):
        from main import app
        with TestClient(app) as client:
            yield client
