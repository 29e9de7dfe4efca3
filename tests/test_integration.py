import pytest
from fastapi.testclient import TestClient

from delivery_engine.data.policy_repository import DeliveryPolicyRepository
from delivery_engine.data.warehouses_repository import StaticWarehouseStore
from delivery_engine.main import create_app
from delivery_engine.models.domain import Warehouse
from delivery_engine.services.routing.distance import DistanceProvider

CUSTOMER = {"customer_lat": 28.6139, "customer_lng": 77.2090}
KM_PER_DEGREE_LAT = 111.19493


def _warehouse(wid: str, km: float, **overrides) -> Warehouse:
    fields = dict(
        warehouse_id=wid,
        name=f"Warehouse {wid}",
        address=f"{wid} address",
        latitude=CUSTOMER["customer_lat"] + km / KM_PER_DEGREE_LAT,
        longitude=CUSTOMER["customer_lng"],
    )
    fields.update(overrides)
    return Warehouse(**fields)


WAREHOUSES = [
    _warehouse("L1", 8.0, service_postal_codes=frozenset({"110001", "110002"})),
    _warehouse("L2", 2.0, service_postal_codes=frozenset({"110003"}), is_delivery_enabled=False),
    _warehouse("G1", 1.0, is_24x7=True),
    _warehouse("FAR", 120.0, is_24x7=True, max_delivery_radius_km=50.0),
]


@pytest.fixture
def api_client(monkeypatch: pytest.MonkeyPatch) -> TestClient:
    from delivery_engine.services.delivery import service as delivery_service

    policies = DeliveryPolicyRepository()
    monkeypatch.setattr(delivery_service, "get_warehouse_store", lambda: StaticWarehouseStore(WAREHOUSES))
    monkeypatch.setattr(delivery_service, "get_distance_provider", lambda: DistanceProvider(use_routing=False))
    monkeypatch.setattr(delivery_service, "get_policy_repository", lambda: policies)

    return TestClient(create_app())


def test_health(api_client: TestClient):
    assert api_client.get("/api/health").json() == {"status": "ok"}


def test_quote_prefers_local_warehouse(api_client: TestClient):
    response = api_client.post("/api/delivery/quote", json={**CUSTOMER, "postal_code": "110001", "cart_total": 300})

    assert response.status_code == 200
    payload = response.json()
    assert payload["warehouse_id"] == "L1"
    assert payload["tier"] == "auto"
    assert payload["method"] == "haversine_fallback"
    assert payload["is_free_delivery"] is False
    assert payload["charge"] == pytest.approx(45.0, abs=0.5)
    assert payload["breakdown"]["amount_needed_for_free_delivery"] == 200.0
    assert payload["message"] == payload["delivery_status"]["human_message"]


def test_quote_falls_back_to_global(api_client: TestClient):
    response = api_client.post(
        "/api/delivery/quote",
        json={**CUSTOMER, "postal_code": "560034", "cart_total": 300, "payment_method": "cod"},
    )

    payload = response.json()
    assert payload["warehouse_id"] == "G1"
    assert payload["is_free_delivery"] is True
    assert payload["charge"] == 0.0
    assert payload["delivery_status"]["reason"] == "open_24x7"


def test_quote_requires_cart_total(api_client: TestClient):
    response = api_client.post("/api/delivery/quote", json={**CUSTOMER})

    assert response.status_code == 400
    assert response.json()["detail"]["code"] == "MISSING_REQUIRED_FIELDS"


def test_quote_rejects_bad_timezone(api_client: TestClient):
    response = api_client.post(
        "/api/delivery/quote", json={**CUSTOMER, "cart_total": 10, "timezone": "Nowhere/Special"}
    )

    assert response.status_code == 400
    assert response.json()["detail"]["code"] == "INVALID_TIMEZONE"


def test_quote_unknown_explicit_warehouse(api_client: TestClient):
    response = api_client.post("/api/delivery/quote", json={**CUSTOMER, "cart_total": 10, "warehouse_id": "nope"})

    assert response.status_code == 404
    assert response.json()["detail"]["code"] == "WAREHOUSE_NOT_FOUND"


def test_quote_limited_to_cart_warehouses(api_client: TestClient):
    response = api_client.post(
        "/api/delivery/quote",
        json={
            **CUSTOMER,
            "postal_code": "560034",
            "cart_total": 50,
            "cart_items": [{"product_id": "p1", "price": 50, "warehouse_id": "L1"}],
        },
    )

    assert response.status_code == 400
    assert response.json()["detail"]["code"] == "NO_CART_WAREHOUSE_AVAILABLE"


def test_mixed_quote_reports_failed_groups(api_client: TestClient):
    response = api_client.post(
        "/api/delivery/quote/mixed",
        json={
            **CUSTOMER,
            "warehouse_items": {
                "G1": [{"product_id": "p1", "price": 120, "quantity": 2}],
                "FAR": [{"product_id": "p2", "price": 80}],
            },
        },
    )

    assert response.status_code == 200
    payload = response.json()
    assert payload["has_errors"] is True
    assert list(payload["quotes"]) == ["G1"]
    assert payload["errors"]["FAR"]["code"] == "DELIVERY_RADIUS_EXCEEDED"
    assert payload["cart_total"] == 320.0


def test_location_check_lists_reachable_warehouses(api_client: TestClient):
    response = api_client.post("/api/delivery/location-check", json={"lat": 28.6139, "lng": 77.2090})

    payload = response.json()
    assert payload["delivery_available"] is True
    assert payload["total_warehouses"] == 3
    assert [w["warehouse_id"] for w in payload["available_warehouses"]] == ["L1", "G1"]


def test_location_check_requires_coordinates(api_client: TestClient):
    response = api_client.post("/api/delivery/location-check", json={"lat": 28.6})

    assert response.status_code == 400
    assert response.json()["detail"]["code"] == "MISSING_REQUIRED_FIELDS"


def test_policy_round_trip_and_validation(api_client: TestClient):
    assert api_client.get("/api/delivery/policies/custom").json()["base_charge"] == 20.0

    policy = {
        "free_delivery_min_amount": 800,
        "free_delivery_radius_km": 1,
        "base_charge": 40,
        "min_charge": 30,
        "max_charge": 90,
        "per_km_charge": 7,
        "cod_surcharge": 10,
    }
    assert api_client.put("/api/delivery/policies/custom", json=policy).status_code == 200
    assert api_client.get("/api/delivery/policies/custom").json()["cod_surcharge"] == 10.0

    rejected = api_client.put("/api/delivery/policies/custom", json={**policy, "min_charge": 95})
    assert rejected.status_code == 400
    assert rejected.json()["detail"]["code"] == "INVALID_DELIVERY_POLICY"

    assert api_client.get("/api/delivery/policies/regional").status_code == 422


def test_delivery_status_for_global_warehouse(api_client: TestClient):
    response = api_client.post("/api/warehouses/delivery-status", json={"warehouse_id": "G1"})

    payload = response.json()
    assert payload["warehouse"]["type"] == "global"
    assert payload["delivery_status"]["reason"] == "open_24x7"
    assert payload["timezone"] == "Asia/Kolkata"


def test_delivery_status_for_disabled_warehouse(api_client: TestClient):
    response = api_client.post("/api/warehouses/delivery-status", json={"warehouse_id": "L2"})

    assert response.json()["delivery_status"]["reason"] == "disabled"


def test_postal_code_check_modes(api_client: TestClient):
    global_only = api_client.post("/api/warehouses/postal-code-check", json={"postal_code": "560034"}).json()
    disabled_local = api_client.post("/api/warehouses/postal-code-check", json={"postal_code": "110003"}).json()
    invalid = api_client.post("/api/warehouses/postal-code-check", json={"postal_code": "12"})

    assert global_only["mode"] == "global"
    assert global_only["matched_warehouse"] is None
    # The only local warehouse for 110003 has delivery switched off
    assert disabled_local["mode"] == "global"
    assert disabled_local["has_custom_warehouse"] is False
    assert invalid.status_code == 400
    assert invalid.json()["detail"]["code"] == "INVALID_POSTAL_CODE"


def test_postal_code_availability(api_client: TestClient):
    taken = api_client.get("/api/warehouses/postal-codes/110001/availability").json()
    own = api_client.get("/api/warehouses/postal-codes/110001/availability?exclude_warehouse_id=L1").json()

    assert taken["is_available"] is False
    assert taken["conflicts"][0]["warehouse_id"] == "L1"
    assert own["is_available"] is True


def test_importing_the_app_leaves_logging_configuration_alone(monkeypatch: pytest.MonkeyPatch):
    import importlib
    import logging

    from delivery_engine import main

    calls = []
    monkeypatch.setattr(logging, "basicConfig", lambda *args, **kwargs: calls.append(kwargs))

    importlib.reload(main)

    assert calls == []
