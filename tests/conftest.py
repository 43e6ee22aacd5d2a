"""Pytest fixtures for backend tests."""

from __future__ import annotations

import itertools
import os
from collections.abc import Iterator
from datetime import UTC, datetime
from types import SimpleNamespace
from typing import Any

import pytest
from fastapi.testclient import TestClient


def _set_default_env() -> None:
    os.environ.setdefault("SUPABASE_URL", "https://example.supabase.co")
    os.environ.setdefault("SUPABASE_ANON_KEY", "anon-key")
    os.environ.setdefault("SUPABASE_SERVICE_KEY", "service-key")
    os.environ.setdefault("ADMIN_CACHE_TTL_SECONDS", "0")
    os.environ.setdefault("TIMEZONE", "UTC")


_set_default_env()


class FakeQuery:
    """Subset of the PostgREST query builder used by SupabaseService."""

    def __init__(self, db: FakeSupabase, table: str) -> None:
        self.db = db
        self.table = table
        self.action = "select"
        self.payload: dict[str, Any] | None = None
        self.filters: list[tuple[str, Any]] = []
        self.order_by: list[tuple[str, bool]] = []
        self.limit_value: int | None = None
        self.offset_value = 0
        self.head = False

    def select(self, _columns: str = "*", count: str | None = None, head: bool | None = None):
        self.head = bool(head)
        return self

    def insert(self, payload: dict[str, Any]):
        self.action = "insert"
        self.payload = payload
        return self

    def delete(self):
        self.action = "delete"
        return self

    def eq(self, key: str, value: Any):
        self.filters.append((key, value))
        return self

    def order(self, column: str, desc: bool = False):
        self.order_by.append((column, desc))
        return self

    def limit(self, value: int):
        self.limit_value = value
        return self

    def offset(self, value: int):
        self.offset_value = value
        return self

    def range(self, start: int, end: int):
        self.offset_value = start
        self.limit_value = end - start + 1
        return self

    def _matches(self, row: dict[str, Any]) -> bool:
        return all(str(row.get(key)) == str(value) for key, value in self.filters)

    def execute(self) -> SimpleNamespace:
        rows = self.db.tables.setdefault(self.table, [])

        if self.action == "insert":
            row = {
                "id": str(next(self.db.ids)),
                "created_at": datetime.now(tz=UTC).isoformat(),
                **(self.payload or {}),
            }
            rows.append(row)
            return SimpleNamespace(data=[dict(row)], count=None)

        matched = [row for row in rows if self._matches(row)]

        if self.action == "delete":
            self.db.tables[self.table] = [row for row in rows if not self._matches(row)]
            return SimpleNamespace(data=[dict(row) for row in matched], count=None)

        for column, desc in reversed(self.order_by):
            matched.sort(key=lambda row, column=column: str(row.get(column)), reverse=desc)
        matched = matched[self.offset_value :]
        if self.limit_value is not None:
            matched = matched[: self.limit_value]
        if self.head:
            return SimpleNamespace(data=None, count=len(matched))
        if self.db.max_rows is not None:
            matched = matched[: self.db.max_rows]
        return SimpleNamespace(data=[dict(row) for row in matched], count=len(matched))


class FakeSupabase:
    """In-memory stand-in for a Supabase client's table API.

    ``max_rows`` caps every select the way PostgREST's ``max-rows`` does.
    """

    def __init__(self, max_rows: int | None = None) -> None:
        self.max_rows = max_rows
        self.tables: dict[str, list[dict[str, Any]]] = {}
        self.ids = itertools.count(1)

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def seed(self, table: str, rows: list[dict[str, Any]]) -> None:
        self.tables.setdefault(table, []).extend(dict(row) for row in rows)


@pytest.fixture(scope="session")
def client() -> TestClient:
    """Create a FastAPI test client."""
    from school_ledger.main import app

    return TestClient(app)


@pytest.fixture
def fake_db() -> FakeSupabase:
    """Fake database with an admin for each of two schools and one teacher."""
    db = FakeSupabase()
    db.seed(
        "users",
        [
            {"id": "admin-1", "role": "admin", "school_id": "school-1"},
            {"id": "admin-2", "role": "admin", "school_id": "school-2"},
            {"id": "teacher-1", "role": "teacher", "school_id": "school-1"},
        ],
    )
    return db


@pytest.fixture
def as_user(client: TestClient, fake_db: FakeSupabase) -> Iterator:
    """Return a function that authenticates the test client as a user id."""
    from school_ledger.dependencies import get_current_user, get_db_client
    from school_ledger.main import app

    def authenticate(user_id: str) -> TestClient:
        app.dependency_overrides[get_current_user] = lambda: SimpleNamespace(id=user_id)
        app.dependency_overrides[get_db_client] = lambda: fake_db
        return client

    yield authenticate
    app.dependency_overrides.clear()


@pytest.fixture
def capped_db() -> FakeSupabase:
    """Fake database that returns at most 1000 rows per select."""
    return FakeSupabase(max_rows=1000)
