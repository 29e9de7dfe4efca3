"""Delivery charge formula and policy validation."""

from __future__ import annotations

from dataclasses import asdict, dataclass, replace
from typing import Optional

from ...models.domain import DeliveryPolicy, Warehouse
from .errors import PolicyValidationError

COD_PAYMENT_METHOD = "cod"


@dataclass(slots=True)
class ChargeBreakdown:
    raw_charge: float
    clamped_charge: float
    cod_surcharge: float
    chargeable_distance_km: float
    amount_needed_for_free_delivery: float
    policy: dict


@dataclass(slots=True)
class ChargeResult:
    delivery_charge: float
    is_free_delivery: bool
    breakdown: ChargeBreakdown


def validate_policy(policy: DeliveryPolicy) -> DeliveryPolicy:
    """Reject inconsistent policies before they are stored."""
    numeric_fields = {
        "free_delivery_min_amount": policy.free_delivery_min_amount,
        "free_delivery_radius_km": policy.free_delivery_radius_km,
        "base_charge": policy.base_charge,
        "min_charge": policy.min_charge,
        "max_charge": policy.max_charge,
        "per_km_charge": policy.per_km_charge,
    }
    if policy.cod_surcharge is not None:
        numeric_fields["cod_surcharge"] = policy.cod_surcharge
    negative = sorted(name for name, value in numeric_fields.items() if value < 0)
    if negative:
        raise PolicyValidationError(f"Policy values cannot be negative: {', '.join(negative)}", fields=negative)
    if policy.min_charge > policy.max_charge:
        raise PolicyValidationError(
            "Minimum delivery charge cannot be greater than maximum delivery charge",
            min_charge=policy.min_charge,
            max_charge=policy.max_charge,
        )
    if policy.base_charge < policy.min_charge:
        raise PolicyValidationError(
            "Base delivery charge cannot be less than minimum delivery charge",
            base_charge=policy.base_charge,
            min_charge=policy.min_charge,
        )
    return policy


def resolve_policy(warehouse: Warehouse, type_policy: DeliveryPolicy) -> DeliveryPolicy:
    """Policy for one warehouse: its own if set, else its type's, with its free radius on top."""
    policy = warehouse.policy or type_policy
    if warehouse.free_delivery_radius_km is not None:
        policy = replace(policy, free_delivery_radius_km=warehouse.free_delivery_radius_km)
    return policy


def calculate_charge(
    distance_km: float,
    cart_total: float,
    payment_method: Optional[str],
    policy: DeliveryPolicy,
) -> ChargeResult:
    chargeable_distance = max(0.0, distance_km - policy.free_delivery_radius_km)
    amount_needed = max(0.0, policy.free_delivery_min_amount - cart_total)
    is_free = cart_total >= policy.free_delivery_min_amount or distance_km <= policy.free_delivery_radius_km

    if is_free:
        raw = clamped = 0.0
    else:
        raw = policy.base_charge + policy.per_km_charge * chargeable_distance
        clamped = min(policy.max_charge, max(policy.min_charge, raw))

    surcharge = 0.0
    # Free delivery stays free for cash on delivery too
    if not is_free and (payment_method or "").lower() == COD_PAYMENT_METHOD and policy.cod_surcharge:
        surcharge = policy.cod_surcharge

    return ChargeResult(
        delivery_charge=round(clamped + surcharge, 2),
        is_free_delivery=is_free,
        breakdown=ChargeBreakdown(
            raw_charge=round(raw, 2),
            clamped_charge=round(clamped, 2),
            cod_surcharge=surcharge,
            chargeable_distance_km=round(chargeable_distance, 3),
            amount_needed_for_free_delivery=round(amount_needed, 2),
            policy=asdict(policy),
        ),
    )
