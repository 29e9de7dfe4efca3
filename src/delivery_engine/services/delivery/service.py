"""Delivery quoting orchestration for the HTTP layer."""

from __future__ import annotations

import logging
from dataclasses import asdict
from datetime import datetime
from functools import lru_cache

from ...data.policy_repository import DeliveryPolicyRepository
from ...data.warehouses_repository import WarehouseRepository, WarehouseStore
from ...models.domain import DeliveryPolicy, Warehouse, WarehouseType
from ...schemas.delivery import (
    DeliveryPolicyModel,
    DeliveryQuoteModel,
    DeliveryQuoteRequest,
    LocationCheckResponse,
    MixedCartQuoteRequest,
    MixedCartQuoteResponse,
    ReachableWarehouseModel,
)
from ...schemas.warehouses import (
    DeliveryStatusResponse,
    PostalCodeAvailabilityResponse,
    PostalCodeCheckResponse,
    PostalCodeConflictModel,
    WarehouseSummaryModel,
)
from ..eligibility.postal import find_candidates, find_postal_code_conflicts, is_valid_postal_code
from ..eligibility.schedule import is_currently_open, resolve_timezone
from ..geospatial import is_valid_coordinate
from ..routing.distance import DistanceProvider
from . import errors
from .aggregator import quote_mixed_cart
from .charges import resolve_policy
from .errors import DeliveryError
from .quotes import build_quote
from .selector import select_warehouse

logger = logging.getLogger(__name__)


def get_warehouse_store() -> WarehouseStore:
    return WarehouseRepository()


@lru_cache()
def get_policy_repository() -> DeliveryPolicyRepository:
    return DeliveryPolicyRepository()


def get_distance_provider() -> DistanceProvider:
    return DistanceProvider()


def _require_location(lat: float | None, lng: float | None) -> tuple[float, float]:
    if lat is None or lng is None:
        raise DeliveryError(errors.MISSING_REQUIRED_FIELDS, "Customer latitude and longitude are required")
    if not is_valid_coordinate(lat, lng):
        raise DeliveryError(
            errors.INVALID_COORDINATES,
            "Valid latitude and longitude are required",
            lat=lat,
            lng=lng,
        )
    return lat, lng


def _check_postal_code(postal_code: str | None) -> str | None:
    if postal_code is None or postal_code == "":
        return None
    postal_code = postal_code.strip()
    if not is_valid_postal_code(postal_code):
        raise DeliveryError(
            errors.INVALID_POSTAL_CODE,
            "Valid 6-digit postal code is required",
            postal_code=postal_code,
        )
    return postal_code


def _check_timezone(timezone: str | None) -> str:
    try:
        return resolve_timezone(timezone).key
    except ValueError as exc:
        raise DeliveryError(errors.INVALID_TIMEZONE, str(exc), timezone=timezone) from exc


def _summary(warehouse: Warehouse) -> WarehouseSummaryModel:
    return WarehouseSummaryModel(
        id=warehouse.warehouse_id,
        name=warehouse.name,
        type=warehouse.warehouse_type,
        address=warehouse.address,
    )


def quote_delivery(payload: DeliveryQuoteRequest, *, now: datetime | None = None) -> DeliveryQuoteModel:
    lat, lng = _require_location(payload.customer_lat, payload.customer_lng)
    if payload.cart_total is None:
        raise DeliveryError(errors.MISSING_REQUIRED_FIELDS, "Cart total is required")
    if payload.cart_total < 0:
        raise DeliveryError(errors.INVALID_CART_TOTAL, "Cart total cannot be negative", cart_total=payload.cart_total)
    postal_code = _check_postal_code(payload.postal_code)
    timezone = _check_timezone(payload.timezone)

    cart_warehouse_ids = [item.warehouse_id for item in payload.cart_items if item.warehouse_id]
    selection = select_warehouse(
        lat,
        lng,
        store=get_warehouse_store(),
        provider=get_distance_provider(),
        postal_code=postal_code,
        warehouse_id=payload.warehouse_id,
        cart_warehouse_ids=cart_warehouse_ids or None,
    )
    quote = build_quote(
        selection,
        payload.cart_total,
        payload.payment_method,
        get_policy_repository(),
        now=now,
        timezone=timezone,
    )
    logger.info(
        f"Quoted delivery from {quote.warehouse_id} ({selection.tier}): "
        f"{quote.distance_km}km via {quote.method}, charge {quote.charge}"
    )
    return DeliveryQuoteModel(**asdict(quote))


def quote_mixed_delivery(payload: MixedCartQuoteRequest, *, now: datetime | None = None) -> MixedCartQuoteResponse:
    lat, lng = _require_location(payload.customer_lat, payload.customer_lng)
    if not payload.warehouse_items:
        raise DeliveryError(errors.MISSING_REQUIRED_FIELDS, "Cart items grouped by warehouse are required")
    postal_code = _check_postal_code(payload.postal_code)
    timezone = _check_timezone(payload.timezone)

    groups = {
        warehouse_id: [item.to_domain() for item in items]
        for warehouse_id, items in payload.warehouse_items.items()
    }
    result = quote_mixed_cart(
        lat,
        lng,
        groups,
        store=get_warehouse_store(),
        policies=get_policy_repository(),
        provider=get_distance_provider(),
        payment_method=payload.payment_method,
        postal_code=postal_code,
        now=now,
        timezone=timezone,
    )
    return MixedCartQuoteResponse(
        quotes={wid: DeliveryQuoteModel(**asdict(quote)) for wid, quote in result.quotes.items()},
        errors={wid: asdict(error) for wid, error in result.errors.items()},
        total_delivery_charge=result.total_delivery_charge,
        cart_total=result.cart_total,
        has_errors=result.has_errors,
    )


def check_location_delivery(lat: float | None, lng: float | None) -> LocationCheckResponse:
    """List every enabled warehouse whose distance is within its delivery radius."""
    lat, lng = _require_location(lat, lng)
    warehouses = [
        warehouse
        for warehouse in get_warehouse_store().list_warehouses()
        if warehouse.has_location and warehouse.is_delivery_enabled
    ]
    destinations = [(warehouse.latitude, warehouse.longitude) for warehouse in warehouses]
    results = get_distance_provider().matrix((lat, lng), destinations)

    policies = get_policy_repository()
    reachable: list[ReachableWarehouseModel] = []
    for warehouse, result in zip(warehouses, results):
        if result.distance_km > warehouse.max_delivery_radius_km:
            continue
        policy = resolve_policy(warehouse, policies.get_active(warehouse.warehouse_type))
        reachable.append(
            ReachableWarehouseModel(
                warehouse_id=warehouse.warehouse_id,
                warehouse_name=warehouse.name,
                warehouse_address=warehouse.address,
                distance_km=round(result.distance_km, 2),
                duration_minutes=round(result.duration_minutes, 2),
                method=result.method,
                max_delivery_radius_km=warehouse.max_delivery_radius_km,
                is_free_delivery_zone=result.distance_km <= policy.free_delivery_radius_km,
            )
        )

    available = bool(reachable)
    return LocationCheckResponse(
        delivery_available=available,
        message=f"Delivery available from {len(reachable)} warehouse(s)"
        if available
        else "No delivery available in your area. Please try a different location.",
        available_warehouses=reachable,
        total_warehouses=len(warehouses),
    )


def warehouse_delivery_status(
    warehouse_id: str | None, timezone: str | None = None, *, now: datetime | None = None
) -> DeliveryStatusResponse:
    if not warehouse_id:
        raise DeliveryError(errors.MISSING_REQUIRED_FIELDS, "Warehouse ID is required")
    tz_name = _check_timezone(timezone)
    warehouse = get_warehouse_store().get_warehouse(warehouse_id)
    if warehouse is None:
        raise DeliveryError(errors.WAREHOUSE_NOT_FOUND, "Warehouse not found", warehouse_id=warehouse_id)
    status = is_currently_open(warehouse, now=now, timezone=tz_name)
    return DeliveryStatusResponse(
        warehouse=_summary(warehouse),
        delivery_status=asdict(status),
        timezone=tz_name,
    )


def check_postal_code(
    postal_code: str | None, timezone: str | None = None, *, now: datetime | None = None
) -> PostalCodeCheckResponse:
    """Report which delivery mode applies to a postal code.

    ``custom`` when a local warehouse is delivering now, ``custom-disabled``
    when local warehouses exist but none is delivering, ``global`` when only
    24x7 warehouses apply and ``none`` when nothing does.
    """
    code = _check_postal_code(postal_code)
    if code is None:
        raise DeliveryError(errors.MISSING_REQUIRED_FIELDS, "Valid 6-digit postal code is required")
    tz_name = _check_timezone(timezone)
    candidates = find_candidates(code, get_warehouse_store().list_warehouses())

    matched: Warehouse | None = None
    status = None
    mode = "global" if candidates.global_candidates else "none"
    for warehouse in candidates.custom_candidates:
        current = is_currently_open(warehouse, now=now, timezone=tz_name)
        if current.is_delivering:
            matched, status, mode = warehouse, current, "custom"
            break
        if matched is None:
            # First closed local warehouse, shown if none is open
            matched, status, mode = warehouse, current, "custom-disabled"

    return PostalCodeCheckResponse(
        postal_code=code,
        mode=mode,
        matched_warehouse=_summary(matched) if matched else None,
        delivery_status=asdict(status) if status else None,
        custom_warehouses=len(candidates.custom_candidates),
        global_warehouses=len(candidates.global_candidates),
        has_custom_warehouse=bool(candidates.custom_candidates),
        has_global_warehouse=bool(candidates.global_candidates),
    )


def postal_code_availability(
    postal_code: str, exclude_warehouse_id: str | None = None
) -> PostalCodeAvailabilityResponse:
    code = _check_postal_code(postal_code)
    if code is None:
        raise DeliveryError(errors.MISSING_REQUIRED_FIELDS, "Valid 6-digit postal code is required")
    conflicts = find_postal_code_conflicts([code], get_warehouse_store().list_warehouses(), exclude_warehouse_id)
    return PostalCodeAvailabilityResponse(
        postal_code=code,
        is_available=not conflicts,
        conflicts=[PostalCodeConflictModel(**asdict(conflict)) for conflict in conflicts],
    )


def get_active_policy(warehouse_type: WarehouseType) -> DeliveryPolicyModel:
    return DeliveryPolicyModel(**asdict(get_policy_repository().get_active(warehouse_type)))


def save_active_policy(warehouse_type: WarehouseType, payload: DeliveryPolicyModel) -> DeliveryPolicyModel:
    policy = DeliveryPolicy(**payload.model_dump())
    saved = get_policy_repository().save_active(warehouse_type, policy)
    return DeliveryPolicyModel(**asdict(saved))
