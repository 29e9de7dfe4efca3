import pytest

from conftest import FakeSupabase
from delivery_engine.data.policy_repository import DeliveryPolicyRepository, default_policy
from delivery_engine.models.domain import DeliveryPolicy
from delivery_engine.services.delivery.errors import PolicyValidationError


def _policy(**overrides) -> DeliveryPolicy:
    fields = dict(
        free_delivery_min_amount=400.0,
        free_delivery_radius_km=2.0,
        base_charge=25.0,
        min_charge=15.0,
        max_charge=80.0,
        per_km_charge=6.0,
    )
    fields.update(overrides)
    return DeliveryPolicy(**fields)


def _row(warehouse_type: str, **overrides) -> dict:
    row = {
        "id": 7,
        "warehouse_type": warehouse_type,
        "is_active": True,
        "free_delivery_min_amount": "750",
        "free_delivery_radius_km": 4,
        "base_charge": 30,
        "min_charge": 20,
        "max_charge": 120,
        "per_km_charge": 8,
        "cod_surcharge": None,
    }
    row.update(overrides)
    return row


def test_defaults_when_nothing_stored():
    repository = DeliveryPolicyRepository(client=FakeSupabase())

    assert repository.get_active("custom") == default_policy()


def test_reads_active_row_for_type():
    client = FakeSupabase(
        delivery_policies=[
            _row("custom", id=1, is_active=False, base_charge=99),
            _row("global", id=2, cod_surcharge="12.5"),
            _row("custom", id=3),
        ]
    )

    custom = DeliveryPolicyRepository(client=client).get_active("custom")
    global_policy = DeliveryPolicyRepository(client=client).get_active("global")

    assert custom.base_charge == 30.0
    assert custom.free_delivery_min_amount == 750.0
    assert custom.cod_surcharge is None
    assert global_policy.cod_surcharge == 12.5


def test_save_replaces_the_active_row():
    client = FakeSupabase(delivery_policies=[_row("custom", id=3)])
    repository = DeliveryPolicyRepository(client=client)

    repository.save_active("custom", _policy())

    table = client.tables["delivery_policies"]
    assert len(table.rows) == 1
    assert table.writes[0][0] == "update"
    assert repository.get_active("custom") == _policy()


def test_save_inserts_first_policy():
    client = FakeSupabase()
    repository = DeliveryPolicyRepository(client=client)

    repository.save_active("global", _policy(cod_surcharge=10.0))

    rows = client.tables["delivery_policies"].rows
    assert len(rows) == 1
    assert rows[0]["warehouse_type"] == "global"
    assert rows[0]["is_active"] is True
    assert repository.get_active("global").cod_surcharge == 10.0


def test_invalid_policy_is_not_saved():
    client = FakeSupabase()
    repository = DeliveryPolicyRepository(client=client)

    with pytest.raises(PolicyValidationError):
        repository.save_active("custom", _policy(min_charge=100.0))

    assert client.tables.get("delivery_policies") is None or client.tables["delivery_policies"].rows == []


def test_unknown_warehouse_type():
    with pytest.raises(ValueError):
        DeliveryPolicyRepository().get_active("regional")


def test_policies_are_kept_locally_without_database():
    repository = DeliveryPolicyRepository()

    repository.save_active("custom", _policy())

    assert repository.get_active("custom") == _policy()
    assert repository.get_active("global") == default_policy()
