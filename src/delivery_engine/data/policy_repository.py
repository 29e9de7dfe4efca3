"""Active delivery charge policy per warehouse type."""

from __future__ import annotations

import logging
from dataclasses import asdict
from datetime import datetime, timezone
from typing import Any, Mapping

from ..config import settings
from ..db.supabase import get_supabase_client
from ..models.domain import DeliveryPolicy, WarehouseType
from ..services.delivery.charges import validate_policy

logger = logging.getLogger(__name__)

WAREHOUSE_TYPES: tuple[WarehouseType, ...] = ("custom", "global")


def default_policy() -> DeliveryPolicy:
    return DeliveryPolicy(
        free_delivery_min_amount=settings.default_free_delivery_min_amount,
        free_delivery_radius_km=settings.default_free_delivery_radius_km,
        base_charge=settings.default_base_charge,
        min_charge=settings.default_min_charge,
        max_charge=settings.default_max_charge,
        per_km_charge=settings.default_per_km_charge,
    )


def policy_from_row(row: Mapping[str, Any]) -> DeliveryPolicy:
    cod = row.get("cod_surcharge")
    return DeliveryPolicy(
        free_delivery_min_amount=float(row["free_delivery_min_amount"]),
        free_delivery_radius_km=float(row["free_delivery_radius_km"]),
        base_charge=float(row["base_charge"]),
        min_charge=float(row["min_charge"]),
        max_charge=float(row["max_charge"]),
        per_km_charge=float(row["per_km_charge"]),
        cod_surcharge=float(cod) if cod is not None else None,
    )


def _check_type(warehouse_type: str) -> None:
    if warehouse_type not in WAREHOUSE_TYPES:
        raise ValueError(f"Unknown warehouse type '{warehouse_type}'. Expected one of: {', '.join(WAREHOUSE_TYPES)}.")


class DeliveryPolicyRepository:
    """Keeps exactly one active policy per warehouse type.

    Saving replaces the active record for that type rather than adding
    another. Without a configured database, policies live on the instance.
    """

    table_name = "delivery_policies"

    def __init__(self, client: Any | None = None) -> None:
        self._client = client if client is not None else get_supabase_client()
        self._local: dict[str, DeliveryPolicy] = {}

    def _active_row(self, warehouse_type: str) -> dict[str, Any] | None:
        response = (
            self._client.table(self.table_name)
            .select("*")
            .eq("warehouse_type", warehouse_type)
            .eq("is_active", True)
            .limit(1)
            .execute()
        )
        return response.data[0] if response.data else None

    def get_active(self, warehouse_type: WarehouseType) -> DeliveryPolicy:
        _check_type(warehouse_type)
        if not self._client:
            return self._local.get(warehouse_type) or default_policy()
        row = self._active_row(warehouse_type)
        if row is None:
            logger.info(f"No active {warehouse_type} delivery policy stored; using defaults")
            return default_policy()
        return policy_from_row(row)

    def save_active(self, warehouse_type: WarehouseType, policy: DeliveryPolicy) -> DeliveryPolicy:
        _check_type(warehouse_type)
        validate_policy(policy)
        if not self._client:
            self._local[warehouse_type] = policy
            return policy

        record = {
            **asdict(policy),
            "warehouse_type": warehouse_type,
            "is_active": True,
            "updated_at": datetime.now(timezone.utc).isoformat(),
        }
        existing = self._active_row(warehouse_type)
        if existing:
            self._client.table(self.table_name).update(record).eq("id", existing["id"]).execute()
        else:
            self._client.table(self.table_name).insert(record).execute()
        logger.info(f"Saved active {warehouse_type} delivery policy")
        return policy
