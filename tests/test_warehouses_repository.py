import json
from datetime import datetime
from pathlib import Path
from zoneinfo import ZoneInfo

import pytest

from conftest import FakeSupabase
from delivery_engine.data.warehouses_repository import WarehouseRepository, warehouse_from_row
from delivery_engine.services.eligibility.schedule import is_currently_open


def _row(wid: str, **overrides) -> dict:
    row = {
        "id": wid,
        "name": f" Warehouse {wid} ",
        "address": "Somewhere",
        "latitude": "28.61",
        "longitude": 77.2,
        "status": "active",
        "service_postal_codes": ["110001", " 110002"],
        "operating_days": ["Monday", "TUESDAY"],
        "operating_hours": {"start": "08:00", "end": "20:00"},
    }
    row.update(overrides)
    return row


def _seed(tmp_path: Path, rows: list[dict]) -> Path:
    path = tmp_path / "warehouses.json"
    path.write_text(json.dumps({"warehouses": rows}), encoding="utf-8")
    return path


def test_row_conversion_normalises_fields():
    warehouse = warehouse_from_row(_row("W1", max_delivery_radius_km=None))

    assert warehouse.name == "Warehouse W1"
    assert warehouse.latitude == 28.61
    assert warehouse.service_postal_codes == frozenset({"110001", "110002"})
    assert warehouse.operating_days == ("monday", "tuesday")
    assert warehouse.operating_hours.start == "08:00"
    assert warehouse.max_delivery_radius_km == 50.0
    assert warehouse.policy is None
    assert warehouse.warehouse_type == "custom"


def test_row_with_embedded_policy():
    policy_row = {
        "free_delivery_min_amount": 300,
        "free_delivery_radius_km": 2,
        "base_charge": 15,
        "min_charge": 10,
        "max_charge": 60,
        "per_km_charge": 4,
    }

    warehouse = warehouse_from_row(_row("W1", delivery_policy=policy_row, is_24x7=True))

    assert warehouse.policy.base_charge == 15.0
    assert warehouse.warehouse_type == "global"


def test_missing_location_is_kept_but_unlocated():
    warehouse = warehouse_from_row(_row("W1", latitude=None, longitude=""))

    assert warehouse.has_location is False


def test_reads_database_first(tmp_path: Path):
    client = FakeSupabase(warehouses=[_row("DB1"), _row("DB2", status="inactive")])
    repository = WarehouseRepository(client=client, source=_seed(tmp_path, [_row("FILE1")]))

    assert [w.warehouse_id for w in repository.list_warehouses()] == ["DB1"]


def test_falls_back_to_seed_file(tmp_path: Path):
    rows = [_row("F1"), _row("F2", status="archived"), {"name": "no id"}]
    repository = WarehouseRepository(client=FakeSupabase(), source=_seed(tmp_path, rows))

    assert [w.warehouse_id for w in repository.list_warehouses()] == ["F1"]
    assert repository.get_warehouse("F1").name == "Warehouse F1"
    assert repository.get_warehouse("F2") is None


def test_find_by_ids_keeps_request_order(tmp_path: Path):
    repository = WarehouseRepository(source=_seed(tmp_path, [_row("A"), _row("B"), _row("C")]))

    found = repository.find_by_ids(["C", "missing", "A", "C"])

    assert [w.warehouse_id for w in found] == ["C", "A"]


def test_missing_seed_file(tmp_path: Path):
    repository = WarehouseRepository(source=tmp_path / "absent.json")

    with pytest.raises(FileNotFoundError):
        repository.list_warehouses()


def test_bundled_seed_file_loads():
    seed = Path(__file__).resolve().parents[1] / "data" / "warehouses.json"

    warehouses = WarehouseRepository(source=seed).list_warehouses()

    assert {w.warehouse_type for w in warehouses} == {"custom", "global"}


@pytest.mark.parametrize(
    ("hours", "expected"),
    [
        ({"start": "9:00", "end": "21:30"}, ("09:00", "21:30")),
        ({"start": "08:15:00", "end": "18:00:00"}, ("08:15", "18:00")),
        ({}, ("09:00", "21:00")),
    ],
)
def test_operating_hours_are_zero_padded(hours, expected):
    warehouse = warehouse_from_row(_row("W1", operating_hours=hours))

    assert (warehouse.operating_hours.start, warehouse.operating_hours.end) == expected


def test_unpadded_opening_time_is_open_mid_morning():
    # 2024-01-08 is a Monday
    warehouse = warehouse_from_row(_row("W1", operating_hours={"start": "9:00", "end": "21:00"}))

    status = is_currently_open(warehouse, now=datetime(2024, 1, 8, 10, 0, tzinfo=ZoneInfo("Asia/Kolkata")))

    assert status.reason == "open_now"


def test_rows_with_malformed_hours_are_skipped(tmp_path: Path):
    rows = [
        _row("OK"),
        _row("BAD", operating_hours={"start": "25:00", "end": "21:00"}),
        _row("NOON", operating_hours={"start": "noon"}),
    ]
    repository = WarehouseRepository(source=_seed(tmp_path, rows))

    assert [w.warehouse_id for w in repository.list_warehouses()] == ["OK"]


def test_zero_delivery_radius_is_kept():
    assert warehouse_from_row(_row("W1", max_delivery_radius_km=0)).max_delivery_radius_km == 0.0
    assert warehouse_from_row(_row("W2", max_delivery_radius_km="12.5")).max_delivery_radius_km == 12.5
