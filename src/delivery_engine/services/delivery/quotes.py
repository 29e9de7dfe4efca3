"""Turns a warehouse selection into a priced delivery quote."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ...data.policy_repository import DeliveryPolicyRepository
from ..eligibility.schedule import EligibilityResult, is_currently_open
from ..routing.models import DistanceMethod
from .charges import ChargeBreakdown, calculate_charge, resolve_policy
from .selector import Selection, SelectionTier


@dataclass(slots=True)
class DeliveryQuote:
    warehouse_id: str
    warehouse_name: str
    warehouse_address: str
    distance_km: float
    duration_minutes: float
    method: DistanceMethod
    charge: float
    is_free_delivery: bool
    cod_surcharge: Optional[float]
    message: str
    delivery_status: EligibilityResult
    breakdown: ChargeBreakdown
    tier: SelectionTier


def build_quote(
    selection: Selection,
    cart_total: float,
    payment_method: Optional[str],
    policies: DeliveryPolicyRepository,
    *,
    now: datetime | None = None,
    timezone: str | None = None,
) -> DeliveryQuote:
    warehouse = selection.warehouse
    policy = resolve_policy(warehouse, policies.get_active(warehouse.warehouse_type))
    charge = calculate_charge(selection.distance.distance_km, cart_total, payment_method, policy)
    status = is_currently_open(warehouse, now=now, timezone=timezone)

    return DeliveryQuote(
        warehouse_id=warehouse.warehouse_id,
        warehouse_name=warehouse.name,
        warehouse_address=warehouse.address,
        distance_km=round(selection.distance.distance_km, 2),
        duration_minutes=round(selection.distance.duration_minutes, 2),
        method=selection.distance.method,
        charge=charge.delivery_charge,
        is_free_delivery=charge.is_free_delivery,
        cod_surcharge=charge.breakdown.cod_surcharge or None,
        message=status.human_message,
        delivery_status=status,
        breakdown=charge.breakdown,
        tier=selection.tier,
    )
