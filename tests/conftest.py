from types import SimpleNamespace
from typing import Any

import pytest


class FakeQuery:
    """Minimal stand-in for the Supabase query builder."""

    def __init__(self, table: "FakeTable") -> None:
        self.table = table
        self.filters: list[tuple[str, Any]] = []
        self.limit_to: int | None = None
        self.action = "select"
        self.payload: dict | None = None

    def select(self, _columns: str = "*") -> "FakeQuery":
        self.action = "select"
        return self

    def update(self, payload: dict) -> "FakeQuery":
        self.action, self.payload = "update", payload
        return self

    def insert(self, payload: dict) -> "FakeQuery":
        self.action, self.payload = "insert", payload
        return self

    def eq(self, column: str, value: Any) -> "FakeQuery":
        self.filters.append((column, value))
        return self

    def limit(self, count: int) -> "FakeQuery":
        self.limit_to = count
        return self

    def _matches(self, row: dict) -> bool:
        return all(row.get(column) == value for column, value in self.filters)

    def execute(self) -> SimpleNamespace:
        rows = self.table.rows
        if self.action == "insert":
            row = {"id": len(rows) + 1, **self.payload}
            rows.append(row)
            self.table.writes.append(("insert", row))
            return SimpleNamespace(data=[row])
        matched = [row for row in rows if self._matches(row)]
        if self.action == "update":
            for row in matched:
                row.update(self.payload)
            self.table.writes.append(("update", self.payload))
            return SimpleNamespace(data=matched)
        if self.limit_to is not None:
            matched = matched[: self.limit_to]
        return SimpleNamespace(data=[dict(row) for row in matched])


class FakeTable:
    def __init__(self) -> None:
        self.rows: list[dict] = []
        self.writes: list[tuple[str, dict]] = []


class FakeSupabase:
    def __init__(self, **tables: list[dict]) -> None:
        self.tables: dict[str, FakeTable] = {}
        for name, rows in tables.items():
            self.tables.setdefault(name, FakeTable()).rows.extend(rows)

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self.tables.setdefault(name, FakeTable()))


@pytest.fixture(autouse=True)
def no_database(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep tests off any Supabase project configured in the environment."""
    from delivery_engine.data import policy_repository, warehouses_repository

    monkeypatch.setattr(policy_repository, "get_supabase_client", lambda: None)
    monkeypatch.setattr(warehouses_repository, "get_supabase_client", lambda: None)
