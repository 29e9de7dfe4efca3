from delivery_engine.models.domain import Warehouse
from delivery_engine.services.eligibility.postal import (
    deliverable_warehouses,
    find_candidates,
    find_postal_code_conflicts,
    is_valid_postal_code,
    validate_postal_codes,
)


def _warehouse(warehouse_id: str, **overrides) -> Warehouse:
    fields = dict(
        warehouse_id=warehouse_id,
        name=f"Warehouse {warehouse_id}",
        address="",
        latitude=28.6139,
        longitude=77.2090,
    )
    fields.update(overrides)
    return Warehouse(**fields)


def test_custom_warehouse_serving_code_takes_priority_over_global():
    local = _warehouse("L1", service_postal_codes=frozenset({"110001"}))
    other = _warehouse("L2", service_postal_codes=frozenset({"110099"}))
    global_wh = _warehouse("G1", is_24x7=True)

    candidates = find_candidates("110001", [global_wh, local, other])

    assert [w.warehouse_id for w in candidates.custom_candidates] == ["L1"]
    assert [w.warehouse_id for w in candidates.global_candidates] == ["G1"]
    assert candidates.mode == "custom"
    assert [w.warehouse_id for w in candidates.selected()] == ["L1"]


def test_global_used_when_no_custom_serves_code():
    local = _warehouse("L1", service_postal_codes=frozenset({"110001"}))
    global_wh = _warehouse("G1", is_24x7=True)

    candidates = find_candidates("560034", [local, global_wh])

    assert candidates.mode == "global"
    assert [w.warehouse_id for w in candidates.selected()] == ["G1"]


def test_custom_with_empty_service_list_serves_nothing():
    candidates = find_candidates("110001", [_warehouse("L1")])

    assert candidates.custom_candidates == []
    assert candidates.mode == "none"
    assert candidates.selected() == []


def test_missing_postal_code_only_matches_global():
    local = _warehouse("L1", service_postal_codes=frozenset({"110001"}))
    global_wh = _warehouse("G1", is_24x7=True)

    candidates = find_candidates(None, [local, global_wh])

    assert candidates.custom_candidates == []
    assert [w.warehouse_id for w in candidates.global_candidates] == ["G1"]


def test_disabled_or_unlocated_warehouses_are_not_candidates():
    disabled = _warehouse("L1", service_postal_codes=frozenset({"110001"}), is_delivery_enabled=False)
    unlocated = _warehouse("G1", is_24x7=True, latitude=None)

    candidates = find_candidates("110001", [disabled, unlocated])

    assert candidates.mode == "none"


def test_postal_code_format():
    assert is_valid_postal_code("110001")
    assert not is_valid_postal_code("11001")
    assert not is_valid_postal_code("11000A")
    assert not is_valid_postal_code("")
    assert not is_valid_postal_code(None)


def test_validate_postal_codes_reports_invalid_and_duplicates():
    problems = validate_postal_codes(["110001", "abc", "110001", "110002"])

    assert len(problems) == 2
    assert "abc" in problems[0]
    assert "110001" in problems[1]
    assert validate_postal_codes(["110001", "110002"]) == []


def test_conflicts_ignore_global_and_excluded_warehouses():
    warehouses = [
        _warehouse("L1", service_postal_codes=frozenset({"110001", "110002"})),
        _warehouse("L2", service_postal_codes=frozenset({"110003"})),
        _warehouse("G1", is_24x7=True, service_postal_codes=frozenset({"110001"})),
    ]

    conflicts = find_postal_code_conflicts(["110002", "110001", "110003"], warehouses, exclude_warehouse_id="L2")

    assert len(conflicts) == 1
    assert conflicts[0].warehouse_id == "L1"
    assert conflicts[0].postal_codes == ["110001", "110002"]


def test_deliverable_warehouses_without_postal_code_include_local_ones():
    local = _warehouse("L1", service_postal_codes=frozenset({"110001"}))
    empty_local = _warehouse("L2")
    disabled = _warehouse("L3", is_delivery_enabled=False)
    global_wh = _warehouse("G1", is_24x7=True)

    found = deliverable_warehouses(None, [local, empty_local, disabled, global_wh])

    assert [w.warehouse_id for w in found] == ["L1", "L2", "G1"]


def test_deliverable_warehouses_with_postal_code_keep_local_priority():
    local = _warehouse("L1", service_postal_codes=frozenset({"110001"}))
    global_wh = _warehouse("G1", is_24x7=True)

    assert [w.warehouse_id for w in deliverable_warehouses("110001", [global_wh, local])] == ["L1"]
    assert [w.warehouse_id for w in deliverable_warehouses("560034", [global_wh, local])] == ["G1"]
