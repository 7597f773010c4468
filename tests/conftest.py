from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple, Union

import pytest
from fastapi.testclient import TestClient

from app.api import deps as api_deps
from app.main import app

# -----------------------------------------------------------------------------
# Fake SQLAlchemy session
# -----------------------------------------------------------------------------

Responder = Union[List[Dict[str, Any]], Exception, Callable[[str, Dict[str, Any]], List[Dict[str, Any]]]]


class FakeResult:
    def __init__(self, rows: Optional[List[Dict[str, Any]]] = None, scalar: Any = None):
        self._rows = rows or []
        self._scalar = scalar

    def mappings(self):
        return self

    def all(self):
        return list(self._rows)

    def first(self):
        return self._rows[0] if self._rows else None

    def scalar_one(self):
        return self._scalar


class FakeSession:
    """Answers catalog queries from ``schema`` and data queries from ``responders``.

    ``schema`` maps table name to its columns. ``responders`` is a list of
    ``(sql_substring, response)`` pairs checked in order; the response is a
    row list, an exception to raise, or a callable ``(sql, params) -> rows``.
    Unmatched data queries return no rows.
    """

    def __init__(
        self,
        schema: Dict[str, Iterable[str]],
        responders: Sequence[Tuple[str, Responder]] = (),
    ):
        self.schema = {table: list(columns) for table, columns in schema.items()}
        self.responders = list(responders)
        self.statements: List[Tuple[str, Dict[str, Any]]] = []
        self.rollbacks = 0
        self.closed = False

    def execute(self, statement, params=None):
        sql = str(statement)
        params = params or {}
        if "information_schema.columns" in sql:
            columns = self.schema.get(params["table_name"], [])
            return FakeResult([{"column_name": column} for column in columns])
        if "information_schema.tables" in sql:
            return FakeResult(scalar=params["table_name"] in self.schema)

        self.statements.append((sql, params))
        for needle, response in self.responders:
            if needle in sql:
                if isinstance(response, Exception):
                    raise response
                if callable(response):
                    return FakeResult(response(sql, params))
                return FakeResult(response)
        return FakeResult([])

    def data_statements(self, needle: str) -> List[Tuple[str, Dict[str, Any]]]:
        return [(sql, params) for sql, params in self.statements if needle in sql]

    def rollback(self):
        self.rollbacks += 1

    def close(self):
        self.closed = True


FULL_SCHEMA: Dict[str, List[str]] = {
    "parks": [
        "id", "name", "municipality_id", "park_type", "description", "address",
        "postal_code", "latitude", "longitude", "area", "green_area",
        "conservation_status", "created_at",
    ],
    "municipalities": ["id", "name", "state"],
    "park_images": ["id", "park_id", "image_url", "caption", "is_primary", "created_at"],
    "park_documents": ["id", "park_id", "title", "file_url", "file_type", "created_at"],
    "amenities": ["id", "name", "icon", "category"],
    "park_amenities": ["id", "park_id", "amenity_id", "module_name", "status"],
    "activities": ["id", "park_id", "title", "start_date"],
    "activity_images": ["id", "activity_id", "image_url", "is_primary"],
    "trees": ["id", "park_id", "health_condition"],
    "assets": ["id", "name", "park_id", "category_id", "status", "next_maintenance_date"],
    "asset_categories": ["id", "name", "icon"],
}


@pytest.fixture
def full_schema() -> Dict[str, List[str]]:
    return {table: list(columns) for table, columns in FULL_SCHEMA.items()}


@pytest.fixture
def fake_db() -> Callable[..., FakeSession]:
    """Factory for fake sessions: ``fake_db(schema, responders)``."""
    return FakeSession


# -----------------------------------------------------------------------------
# Client Fixtures
# -----------------------------------------------------------------------------


@pytest.fixture(scope="function")
def client_for():
    """
    Returns a factory building a TestClient whose get_db yields the given session.
    Unhandled exceptions are answered by the global handler instead of re-raised.
    """
    clients = []

    def _make(session) -> TestClient:
        def override_get_db():
            yield session

        app.dependency_overrides[api_deps.get_db] = override_get_db
        client = TestClient(app, raise_server_exceptions=False)
        clients.append(client)
        return client

    yield _make

    for client in clients:
        client.close()
    app.dependency_overrides.clear()
