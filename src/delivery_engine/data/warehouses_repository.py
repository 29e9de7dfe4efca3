"""Warehouse loader with database-first approach, falling back to a JSON seed file."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Iterable, Mapping, Protocol, Sequence

from ..config import settings
from ..db.supabase import get_supabase_client
from ..models.domain import OperatingHours, Warehouse
from .policy_repository import policy_from_row

logger = logging.getLogger(__name__)


class WarehouseStore(Protocol):
    def list_warehouses(self) -> tuple[Warehouse, ...]: ...

    def get_warehouse(self, warehouse_id: str) -> Warehouse | None: ...

    def find_by_ids(self, warehouse_ids: Iterable[str]) -> list[Warehouse]: ...


def _optional_float(value: Any) -> float | None:
    if value is None or value == "":
        return None
    return float(value)


def _clock(value: Any, default: str) -> str:
    """Normalise a time of day to zero-padded "HH:MM"; accepts "9:00" and "09:00:00"."""
    if value is None or value == "":
        return default
    parts = str(value).strip().split(":")
    if len(parts) not in (2, 3):
        raise ValueError(f"Invalid time of day {value!r}, expected HH:MM")
    hour, minute = int(parts[0]), int(parts[1])
    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        raise ValueError(f"Invalid time of day {value!r}, expected HH:MM")
    return f"{hour:02d}:{minute:02d}"


def warehouse_from_row(row: Mapping[str, Any]) -> Warehouse:
    """Build a ``Warehouse`` from a database row or seed-file record."""
    hours = row.get("operating_hours") or {}
    max_radius = _optional_float(row.get("max_delivery_radius_km"))
    return Warehouse(
        warehouse_id=str(row["id"]),
        name=str(row["name"]).strip(),
        address=str(row.get("address") or ""),
        latitude=_optional_float(row.get("latitude")),
        longitude=_optional_float(row.get("longitude")),
        is_delivery_enabled=bool(row.get("is_delivery_enabled", True)),
        is_24x7=bool(row.get("is_24x7", False)),
        service_postal_codes=frozenset(str(code).strip() for code in row.get("service_postal_codes") or ()),
        operating_days=tuple(str(day).strip().lower() for day in row.get("operating_days") or ()),
        operating_hours=OperatingHours(
            start=_clock(hours.get("start"), "09:00"),
            end=_clock(hours.get("end"), "21:00"),
        ),
        max_delivery_radius_km=max_radius if max_radius is not None else settings.default_max_delivery_radius_km,
        free_delivery_radius_km=_optional_float(row.get("free_delivery_radius_km")),
        disabled_message=str(row.get("disabled_message") or ""),
        policy=policy_from_row(row["delivery_policy"]) if row.get("delivery_policy") else None,
    )


def _parse_rows(rows: Iterable[Mapping[str, Any]]) -> tuple[Warehouse, ...]:
    warehouses: list[Warehouse] = []
    for row in rows:
        if str(row.get("status", "active")).lower() != "active":
            continue
        try:
            warehouses.append(warehouse_from_row(row))
        except (KeyError, ValueError, TypeError) as e:
            # Skip invalid rows but continue processing
            logger.warning(f"Skipping invalid warehouse row {row.get('id')!r}: {e}")
    return tuple(warehouses)


class WarehouseRepository:
    """Reads active warehouses from Supabase, or from the seed file when the database is absent."""

    table_name = "warehouses"

    def __init__(self, client: Any | None = None, source: Path | None = None) -> None:
        self._client = client if client is not None else get_supabase_client()
        self._source = source or settings.warehouses_file

    def _load_from_database(self) -> tuple[Warehouse, ...] | None:
        if not self._client:
            return None
        response = self._client.table(self.table_name).select("*").eq("status", "active").execute()
        if not response.data:
            return None
        return _parse_rows(response.data)

    def _load_from_file(self) -> tuple[Warehouse, ...]:
        if not self._source.exists():
            raise FileNotFoundError(f"Warehouse seed file not found: {self._source}")
        with self._source.open("r", encoding="utf-8") as handle:
            payload = json.load(handle)
        rows = payload.get("warehouses", []) if isinstance(payload, dict) else payload
        return _parse_rows(rows)

    def list_warehouses(self) -> tuple[Warehouse, ...]:
        db_warehouses = self._load_from_database()
        if db_warehouses:
            return db_warehouses
        return self._load_from_file()

    def get_warehouse(self, warehouse_id: str) -> Warehouse | None:
        for warehouse in self.list_warehouses():
            if warehouse.warehouse_id == warehouse_id:
                return warehouse
        return None

    def find_by_ids(self, warehouse_ids: Iterable[str]) -> list[Warehouse]:
        wanted = list(dict.fromkeys(warehouse_ids))
        by_id = {warehouse.warehouse_id: warehouse for warehouse in self.list_warehouses()}
        return [by_id[warehouse_id] for warehouse_id in wanted if warehouse_id in by_id]


class StaticWarehouseStore:
    """Fixed warehouse set, for callers that already hold the records."""

    def __init__(self, warehouses: Sequence[Warehouse]) -> None:
        self._warehouses = tuple(warehouses)

    def list_warehouses(self) -> tuple[Warehouse, ...]:
        return self._warehouses

    def get_warehouse(self, warehouse_id: str) -> Warehouse | None:
        return next((w for w in self._warehouses if w.warehouse_id == warehouse_id), None)

    def find_by_ids(self, warehouse_ids: Iterable[str]) -> list[Warehouse]:
        wanted = list(dict.fromkeys(warehouse_ids))
        by_id = {warehouse.warehouse_id: warehouse for warehouse in self._warehouses}
        return [by_id[warehouse_id] for warehouse_id in wanted if warehouse_id in by_id]
